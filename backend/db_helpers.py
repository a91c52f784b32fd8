from database import db, Asset, LineageEdge
from errors import ConflictError, StoreUnavailableError, ValidationError
from typing import List, Dict, Any, Optional, Iterable
from functools import wraps
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, StatementError
import logging

logger = logging.getLogger(__name__)

DOWNSTREAM = "downstream"


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


def _store_call(f):
    """Roll back and translate SQLAlchemy failures into lineage errors."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except IntegrityError as e:
            db.session.rollback()
            if _is_unique_violation(e):
                raise ConflictError("Lineage edge already exists for this source and target") from e
            raise ValidationError(f"Lineage edge rejected by store: {e.orig}") from e
        except (OperationalError, InterfaceError) as e:
            db.session.rollback()
            logger.error("Lineage store unavailable in %s: %s", f.__name__, e)
            raise StoreUnavailableError("Lineage store is unavailable") from e
        except StatementError as e:
            db.session.rollback()
            if isinstance(e.orig, LookupError):
                raise ValidationError(str(e.orig)) from e
            raise
    return decorated_function


@_store_call
def find_lineage_edge(source_id: str, target_id: str) -> Optional[LineageEdge]:
    return (
        db.session.query(LineageEdge)
        .filter(LineageEdge.source_id == source_id, LineageEdge.target_id == target_id)
        .first()
    )


@_store_call
def get_lineage_edge(edge_id: int) -> Optional[LineageEdge]:
    return db.session.get(LineageEdge, edge_id)


@_store_call
def find_active_edges(node_ids: Iterable[str], direction: str) -> List[LineageEdge]:
    """All active edges leaving (downstream) or entering (upstream) any of ``node_ids``."""
    node_ids = list(node_ids)
    if not node_ids:
        return []
    column = LineageEdge.source_id if direction == DOWNSTREAM else LineageEdge.target_id
    return (
        db.session.query(LineageEdge)
        .filter(column.in_(node_ids), LineageEdge.is_active.is_(True))
        .order_by(LineageEdge.id)
        .all()
    )


@_store_call
def insert_lineage_edge(edge: LineageEdge) -> LineageEdge:
    db.session.add(edge)
    db.session.commit()
    return edge


@_store_call
def save_lineage_edge(edge: LineageEdge) -> LineageEdge:
    db.session.commit()
    return edge


def _edge_filters(relationship_type: Optional[str], is_active: Optional[bool]):
    filters = []
    if is_active is not None:
        filters.append(LineageEdge.is_active.is_(is_active))
    if relationship_type:
        filters.append(LineageEdge.relationship_type == relationship_type)
    return filters


@_store_call
def load_lineage_edges(page: int = 1, limit: int = 50, relationship_type: Optional[str] = None,
                       is_active: Optional[bool] = True) -> List[LineageEdge]:
    return (
        db.session.query(LineageEdge)
        .filter(*_edge_filters(relationship_type, is_active))
        .order_by(LineageEdge.created_at.desc(), LineageEdge.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )


@_store_call
def count_lineage_edges(relationship_type: Optional[str] = None, is_active: Optional[bool] = True) -> int:
    return db.session.query(func.count(LineageEdge.id)).filter(*_edge_filters(relationship_type, is_active)).scalar()


@_store_call
def lineage_type_breakdown() -> List[Dict[str, Any]]:
    rows = (
        db.session.query(
            LineageEdge.relationship_type,
            func.count(LineageEdge.id),
            func.avg(LineageEdge.strength),
        )
        .filter(LineageEdge.is_active.is_(True))
        .group_by(LineageEdge.relationship_type)
        .all()
    )
    breakdown = [
        {'relationshipType': rel_type, 'count': count, 'avgStrength': round(float(avg or 0.0), 4)}
        for rel_type, count, avg in rows
    ]
    breakdown.sort(key=lambda item: (-item['count'], item['relationshipType']))
    return breakdown


@_store_call
def assets_with_lineage_count() -> int:
    active = LineageEdge.is_active.is_(True)
    sources = db.session.query(LineageEdge.source_id.label("asset_id")).filter(active)
    targets = db.session.query(LineageEdge.target_id.label("asset_id")).filter(active)
    touched = sources.union(targets).subquery()
    return db.session.query(func.count()).select_from(touched).scalar()


@_store_call
def load_asset_stubs(asset_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
    asset_ids = list(set(asset_ids))
    if not asset_ids:
        return {}
    assets = db.session.query(Asset).filter(Asset.id.in_(asset_ids)).all()
    return {asset.id: asset.to_stub() for asset in assets}


@_store_call
def asset_exists(asset_id: str) -> bool:
    return db.session.query(Asset.id).filter(Asset.id == asset_id).first() is not None


@_store_call
def count_assets() -> int:
    return db.session.query(func.count(Asset.id)).scalar()


@_store_call
def save_asset(asset_data: Dict[str, Any]) -> Dict[str, Any]:
    existing = db.session.get(Asset, asset_data['id'])
    if existing:
        for key, value in asset_data.items():
            setattr(existing, key, value)
        asset = existing
    else:
        asset = Asset(**asset_data)
        db.session.add(asset)
    db.session.commit()
    return asset.to_stub()

