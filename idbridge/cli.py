"""Operator command line for idbridge.

This module is a thin wrapper around the same core services the HTTP API
uses. Connection settings come from the environment (see idbridge.config).

Examples:
    idbridge create-user --username jdoe --email jdoe@example.org \\
        --first Jane --last Doe --association hsm --type student --profile gpu-a100
    idbridge reset-password --user-id 4f1c...
    idbridge show-user --user-id 4f1c...
    idbridge groups --facet profile
"""
from __future__ import annotations
import argparse
import json
import logging
import sys

from idbridge.config import load_settings
from idbridge.core.errors import REMOTE_ERRORS, IncompleteOperationError, ValidationError
from idbridge.core.group_catalog import Facet, GroupCatalog
from idbridge.core.keycloak import GroupService, UserService
from idbridge.core.paired_accounts import PairedAccountProvisioner
from idbridge.core.projection import project_user
from idbridge.core.provisioning_service import SKIP_SECONDARY_FLAG, provision_user, reset_temporary_password
from idbridge.flask_app import directory_client_factory, secondary_store_factory

logger = logging.getLogger("idbridge.cli")

FACET_CHOICES = [facet.value for facet in Facet if facet != Facet.UNCLASSIFIED]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="idbridge", description="Keycloak user provisioning helper")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")

    sub = parser.add_subparsers(dest="cmd")

    sc = sub.add_parser("create-user", help="Create a user with facets and a temporary password")
    sc.add_argument("--username", required=True)
    sc.add_argument("--email", required=True)
    sc.add_argument("--first", required=True)
    sc.add_argument("--last", required=True)
    sc.add_argument("--association", required=True)
    sc.add_argument("--type", dest="user_type", required=True)
    sc.add_argument("--profile", dest="profiles", action="append", default=[])
    sc.add_argument("--skip-secondary", action="store_true", help="Do not create the paired Directus account")

    sr = sub.add_parser("reset-password", help="Issue a fresh temporary password")
    sr.add_argument("--user-id", required=True)

    ss = sub.add_parser("show-user", help="Print a user with derived facets")
    ss.add_argument("--user-id", required=True)

    sg = sub.add_parser("groups", help="List group names of one facet")
    sg.add_argument("--facet", choices=FACET_CHOICES, default=Facet.PROFILE.value)

    return parser


def _print(data) -> None:
    print(json.dumps(data, indent=2, sort_keys=True))


def main(argv=None) -> int:
    """Command-line entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.cmd:
        parser.print_help()
        return 1

    cfg = load_settings()
    logging.basicConfig(level=(args.log_level or cfg.log_level).upper(), format="%(levelname)s %(name)s %(message)s")

    try:
        client = directory_client_factory(cfg)()
        users = UserService(client)
        groups = GroupService(client)

        if args.cmd == "create-user":
            store = secondary_store_factory(cfg)()
            paired = None
            if store is not None:
                paired = PairedAccountProvisioner(
                    store, cfg.facets, cfg.role_mapping_collection, cfg.secondary_provider
                )
            payload = {
                "username": args.username,
                "email": args.email,
                "firstName": args.first,
                "lastName": args.last,
                "association": args.association,
                "type": args.user_type,
                "profiles": args.profiles,
                SKIP_SECONDARY_FLAG: args.skip_secondary,
            }
            result = provision_user(
                payload,
                users=users,
                groups=groups,
                facets=cfg.facets,
                paired=paired,
                password_length=cfg.temp_password_length,
            )
            _print(result.to_response())
            if result.memberships.unresolved:
                print(f"[warn] Groups not found: {', '.join(result.memberships.unresolved)}", file=sys.stderr)

        elif args.cmd == "reset-password":
            _print({"temporaryPassword": reset_temporary_password(users, args.user_id, cfg.temp_password_length)})

        elif args.cmd == "show-user":
            record = users.get_user(args.user_id)
            _print(project_user(record, users.get_user_groups(args.user_id), cfg.facets))

        elif args.cmd == "groups":
            catalog = GroupCatalog.fetch(groups, cfg.facets)
            for name in catalog.names(Facet(args.facet)):
                print(name)

    except ValidationError as exc:
        print(f"[error] Invalid input: {exc}", file=sys.stderr)
        return 2
    except IncompleteOperationError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        _print(exc.to_dict())
        return 1
    except REMOTE_ERRORS as exc:
        print(f"[error] Keycloak request failed: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
