"""Group catalog endpoints: the group names available per facet."""
from flask import Blueprint, current_app, g, jsonify

from idbridge.api.decorators import with_directory
from idbridge.core.group_catalog import Facet, GroupCatalog

bp = Blueprint("catalog", __name__)


def _facet_names(facet: Facet):
    catalog = GroupCatalog.fetch(g.groups, current_app.config["APP_CONFIG"].facets)
    return jsonify(catalog.names(facet)), 200


@bp.route("/associations")
@with_directory
def list_associations():
    return _facet_names(Facet.ASSOCIATION)


@bp.route("/types")
@with_directory
def list_types():
    return _facet_names(Facet.TYPE)


@bp.route("/profiles")
@with_directory
def list_profiles():
    return _facet_names(Facet.PROFILE)
