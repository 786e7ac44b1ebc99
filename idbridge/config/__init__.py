"""Configuration module for idbridge."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
