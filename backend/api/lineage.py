from flask import Blueprint, request, jsonify, current_app
from typing import Dict, Any

import db_helpers
from errors import NotFoundError, ValidationError
from schemas import LineageEdgeCreate
from services import lineage_service
from services.lineage_traversal import build_entries

lineage_bp = Blueprint('lineage_bp', __name__)


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("A JSON object body is required")
    return payload


def _query_args(*names: str) -> Dict[str, Any]:
    # blank query values mean "use the default"
    return {name: request.args.get(name) for name in names if request.args.get(name) not in (None, "")}


def _require_asset(asset_id: str, label: str = "Data asset") -> None:
    if not db_helpers.asset_exists(asset_id):
        raise NotFoundError(f"{label} not found")


@lineage_bp.route("/lineage", methods=["POST"])
def create_lineage_relationship():
    payload = _json_body()
    request_model = lineage_service.parse_model(LineageEdgeCreate, payload)
    _require_asset(request_model.source_asset_id, "Source asset")
    _require_asset(request_model.target_asset_id, "Target asset")
    edge, created = lineage_service.upsert_lineage_edge(
        request_model.source_asset_id,
        request_model.target_asset_id,
        request_model.relationship_type,
        payload.get("metadata"),
        request_model.created_by or current_app.config['LINEAGE_DEFAULT_ACTOR'],
        request_model.strength,
    )
    entry = build_entries([edge])[0]
    return jsonify({"success": True, "created": created, "data": entry}), 201 if created else 200


@lineage_bp.route("/lineage", methods=["GET"])
def get_all_lineage():
    result = lineage_service.list_lineage_edges(_query_args("page", "limit", "relationshipType", "isActive"))
    return jsonify({"success": True, **result})


@lineage_bp.route("/lineage/stats", methods=["GET"])
def get_lineage_stats():
    return jsonify({"success": True, "data": lineage_service.lineage_stats()})


@lineage_bp.route("/lineage/<int:edge_id>", methods=["PUT"])
def update_lineage_relationship(edge_id: int):
    edge = lineage_service.update_lineage_edge(edge_id, _json_body())
    return jsonify({"success": True, "data": build_entries([edge])[0]})


@lineage_bp.route("/lineage/<int:edge_id>", methods=["DELETE"])
def delete_lineage_relationship(edge_id: int):
    lineage_service.deactivate_lineage_edge(edge_id)
    return jsonify({"success": True, "message": "Lineage relationship deleted successfully"})


@lineage_bp.route("/assets/<path:asset_id>/lineage", methods=["GET"])
def get_asset_lineage(asset_id: str):
    _require_asset(asset_id)
    args = _query_args("direction", "depth")
    entries = lineage_service.get_lineage(asset_id, args.get("direction"), args.get("depth"))
    return jsonify(entries)


@lineage_bp.route("/assets/<path:asset_id>/lineage/graph", methods=["GET"])
def get_asset_lineage_graph(asset_id: str):
    _require_asset(asset_id)
    args = _query_args("direction", "depth")
    graph = lineage_service.get_lineage_graph(asset_id, args.get("direction"), args.get("depth"))
    return jsonify({"success": True, "data": graph})
