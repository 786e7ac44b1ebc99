"""Core Business Logic Module

Provisioning logic for idbridge, independent of Flask.

Module Structure:
    - keycloak/               : Keycloak Admin API client (users, groups)
    - directus.py             : Directus REST client (paired-account store)
    - group_catalog.py        : Facet configuration, classifier, per-request catalog
    - validators.py           : Field schema and payload validation
    - memberships.py          : Sequential membership calls with per-call outcomes
    - provisioning_service.py : Joiner workflow and password resets
    - reconciliation.py       : Mover workflow (minimal facet deltas)
    - paired_accounts.py      : Best-effort Directus account creation
    - projection.py           : Outbound user representations
    - passwords.py            : Temporary credential generation
    - errors.py               : Domain errors

Usage Pattern:
    Import explicitly when needed:
        from idbridge.core.provisioning_service import provision_user
        from idbridge.core.reconciliation import update_user
        from idbridge.core.group_catalog import FacetConfig, GroupCatalog
"""
