"""idbridge - Keycloak identity provisioning with paired Directus accounts.

To use the Flask app:
    from idbridge.flask_app import create_app

To use the provisioning workflow directly:
    from idbridge.core.provisioning_service import provision_user
"""

__version__ = "1.2.0"
