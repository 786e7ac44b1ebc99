"""Gunicorn configuration for the idbridge API.

Run with:
    gunicorn -c gunicorn.conf.py "idbridge.flask_app:create_app()"

Settings are read by each worker through idbridge.config.load_settings(),
so /run/secrets must be mounted before workers fork.
"""
import os
from pathlib import Path

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"


def post_fork(server, worker):
    """Called just after a worker has been forked."""
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true - demo credentials are in use")

    secrets_dir = Path("/run/secrets")
    if secrets_dir.is_dir():
        secret_files = [path for path in secrets_dir.iterdir() if path.is_file()]
        worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")
    else:
        worker.log.info("No /run/secrets mount; reading secrets from environment")
