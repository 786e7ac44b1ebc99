"""HTTP layer: Flask blueprints, request wrapper and error handlers."""
