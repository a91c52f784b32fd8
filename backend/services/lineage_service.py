import json
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app
from pydantic import ValidationError as PydanticValidationError

import db_helpers
from database import LineageEdge, DEFAULT_RELATIONSHIP_TYPE, DEFAULT_STRENGTH, utcnow
from errors import ConflictError, NotFoundError, ValidationError
from schemas import (
    AssetStub, GraphLink, GraphMetadata, GraphNode, LineageEdgeCreate, LineageEdgeUpdate,
    LineageGraphResponse, LineageListQuery, LineageQuery,
)
from services.lineage_traversal import LineageTraversal, TraversalResult, build_entries

logger = logging.getLogger(__name__)


def parse_model(model, data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid lineage request", details=json.loads(e.json(include_url=False))) from e


def _config(key: str):
    return current_app.config[key]


def upsert_lineage_edge(source_id: str, target_id: str, relationship_type: str = DEFAULT_RELATIONSHIP_TYPE,
                        metadata: Optional[Dict[str, Any]] = None, created_by: Optional[str] = None,
                        strength: Optional[float] = None) -> Tuple[LineageEdge, bool]:
    """Create the edge for ``(source_id, target_id)`` or update the one that exists.

    On update the relationship type is replaced, metadata is shallow-merged
    (new keys win) and ``created_by`` becomes the new actor. A create that
    loses a race against a concurrent upsert of the same pair is retried as an
    update, up to ``LINEAGE_UPSERT_MAX_RETRIES`` times.

    Returns:
        ``(edge, created)``.

    Raises:
        ValidationError: unknown relationship type, strength outside [0, 1],
            blank identifiers, or ``source_id == target_id``.
        ConflictError: the create race could not be resolved.
        StoreUnavailableError: the store is unreachable.
    """
    request = parse_model(LineageEdgeCreate, {
        'sourceAssetId': source_id,
        'targetAssetId': target_id,
        'relationshipType': relationship_type,
        'metadata': metadata,
        'createdBy': created_by,
        'strength': strength,
    })
    if request.source_asset_id == request.target_asset_id:
        raise ValidationError("Cannot create lineage relationship to the same asset")
    actor = request.created_by or _config('LINEAGE_DEFAULT_ACTOR')
    new_metadata = request.metadata.as_stored()
    max_retries = _config('LINEAGE_UPSERT_MAX_RETRIES')

    attempt = 0
    while True:
        existing = db_helpers.find_lineage_edge(request.source_asset_id, request.target_asset_id)
        try:
            if existing is not None:
                existing.relationship_type = request.relationship_type
                existing.extra_data = {**(existing.extra_data or {}), **new_metadata}
                if request.strength is not None:
                    existing.strength = request.strength
                existing.is_active = True
                existing.created_by = actor
                existing.updated_at = utcnow()
                db_helpers.save_lineage_edge(existing)
                logger.info("Updated lineage edge %s (%s) by %s", existing.key, existing.relationship_type, actor)
                return existing, False
            now = utcnow()
            edge = LineageEdge(
                source_id=request.source_asset_id,
                target_id=request.target_asset_id,
                relationship_type=request.relationship_type,
                strength=request.strength if request.strength is not None else DEFAULT_STRENGTH,
                extra_data=new_metadata,
                is_active=True,
                created_by=actor,
                created_at=now,
                updated_at=now,
            )
            db_helpers.insert_lineage_edge(edge)
            logger.info("Created lineage edge %s (%s) by %s", edge.key, edge.relationship_type, actor)
            return edge, True
        except ConflictError:
            attempt += 1
            if attempt > max_retries:
                logger.error("Giving up on lineage edge %s-%s after %d conflicting attempts",
                             request.source_asset_id, request.target_asset_id, attempt)
                raise
            logger.warning("Concurrent create of lineage edge %s-%s, retrying as update (%d/%d)",
                           request.source_asset_id, request.target_asset_id, attempt, max_retries)


def _require_edge(edge_id: int) -> LineageEdge:
    edge = db_helpers.get_lineage_edge(edge_id)
    if edge is None:
        raise NotFoundError("Lineage relationship not found")
    return edge


def update_lineage_edge(edge_id: int, changes: Dict[str, Any]) -> LineageEdge:
    update = parse_model(LineageEdgeUpdate, changes or {})
    edge = _require_edge(edge_id)
    if update.relationship_type is not None:
        edge.relationship_type = update.relationship_type
    if update.metadata is not None:
        edge.extra_data = {**(edge.extra_data or {}), **update.metadata.as_stored()}
    if update.strength is not None:
        edge.strength = update.strength
    if update.is_active is not None:
        edge.is_active = update.is_active
    edge.updated_at = utcnow()
    db_helpers.save_lineage_edge(edge)
    logger.info("Updated lineage edge %s by id %s", edge.key, edge_id)
    return edge


def deactivate_lineage_edge(edge_id: int) -> LineageEdge:
    edge = _require_edge(edge_id)
    edge.is_active = False
    edge.updated_at = utcnow()
    db_helpers.save_lineage_edge(edge)
    logger.info("Deactivated lineage edge %s", edge.key)
    return edge


def list_lineage_edges(params: Dict[str, Any]) -> Dict[str, Any]:
    query = parse_model(LineageListQuery, params)
    edges = db_helpers.load_lineage_edges(query.page, query.limit, query.relationship_type, query.is_active)
    total = db_helpers.count_lineage_edges(query.relationship_type, query.is_active)
    return {
        'count': len(edges),
        'total': total,
        'pagination': {
            'page': query.page,
            'limit': query.limit,
            'pages': math.ceil(total / query.limit),
        },
        'data': build_entries(edges),
    }


def lineage_stats() -> Dict[str, Any]:
    total_relationships = db_helpers.count_lineage_edges(is_active=True)
    total_assets = db_helpers.count_assets()
    with_lineage = db_helpers.assets_with_lineage_count()
    coverage = round(with_lineage / total_assets * 100, 2) if total_assets > 0 else 0
    return {
        'totalRelationships': total_relationships,
        'totalAssets': total_assets,
        'assetsWithLineage': with_lineage,
        'coveragePercentage': coverage,
        'relationshipTypes': db_helpers.lineage_type_breakdown(),
    }


def _traverse(asset_id: str, direction: Optional[str], depth: Optional[int]) -> Tuple[LineageQuery, TraversalResult]:
    query = parse_model(LineageQuery, {'direction': direction, 'depth': depth})
    query.direction = query.direction or _config('LINEAGE_DEFAULT_DIRECTION')
    query.depth = _config('LINEAGE_DEFAULT_DEPTH') if query.depth is None else query.depth
    if query.depth > _config('LINEAGE_MAX_DEPTH'):
        raise ValidationError(f"Lineage depth cannot exceed {_config('LINEAGE_MAX_DEPTH')}")
    traversal = LineageTraversal(
        max_edges=_config('LINEAGE_MAX_EDGES'),
        timeout_seconds=_config('LINEAGE_TRAVERSAL_TIMEOUT_SECONDS'),
    )
    return query, traversal.traverse(asset_id, query.direction, query.depth)


def get_lineage(asset_id: str, direction: Optional[str] = None, depth: Optional[int] = None) -> List[Dict[str, Any]]:
    """Distinct lineage edges around ``asset_id``, each with source and target stubs.

    An asset without edges, known or not, yields an empty list.
    """
    _, result = _traverse(asset_id, direction, depth)
    return build_entries(result.edges.values())


def get_lineage_graph(asset_id: str, direction: Optional[str] = None, depth: Optional[int] = None) -> Dict[str, Any]:
    query, result = _traverse(asset_id, direction, depth)
    entries = build_entries(result.edges.values())
    center = db_helpers.load_asset_stubs([asset_id]).get(asset_id) or AssetStub(id=asset_id).model_dump()

    nodes = {asset_id: GraphNode(**center, is_center=True, level=0)}
    links = []
    for entry in entries:
        source, target, relationship = entry['source'], entry['target'], entry['relationship']
        if source['id'] not in nodes:
            nodes[source['id']] = GraphNode(**source, level=-1)
        if target['id'] not in nodes:
            nodes[target['id']] = GraphNode(**target, level=1)
        links.append(GraphLink(
            source=source['id'],
            target=target['id'],
            type=relationship['relationshipType'],
            strength=relationship['strength'],
            metadata=relationship['metadata'],
        ))

    response = LineageGraphResponse(
        asset=AssetStub(**center),
        nodes=list(nodes.values()),
        links=links,
        metadata=GraphMetadata(
            total_relationships=len(entries),
            upstream_count=sum(1 for link in links if link.target == asset_id),
            downstream_count=sum(1 for link in links if link.source == asset_id),
            depth=query.depth,
            direction=query.direction,
            truncated=result.truncated,
        ),
    )
    return response.model_dump(by_alias=True)
