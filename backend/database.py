from sqlalchemy import (
    Column, String, Integer, Float, DateTime, Boolean, JSON, Enum,
    CheckConstraint, Index, UniqueConstraint,
)
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base
from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

RELATIONSHIP_TYPES = (
    "feeds_into",
    "derived_from",
    "transforms_to",
    "aggregates_to",
    "copies_to",
    "references",
    "depends_on",
)
DEFAULT_RELATIONSHIP_TYPE = "feeds_into"
DEFAULT_STRENGTH = 0.8

Base = declarative_base()
db = SQLAlchemy(metadata=Base.metadata)


def utcnow() -> datetime:
    # naive UTC; MySQL DATETIME and SQLite both drop tzinfo
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Asset(Base):
    """Catalog projection of a data asset. Owned by the catalog; read-only here."""
    __tablename__ = "assets"
    id = Column(String(255), primary_key=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False)
    domain = Column(String(255), nullable=True)
    catalog = Column(String(255), nullable=True)
    status = Column(String(50), default="active")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def to_stub(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'domain': self.domain,
        }


class LineageEdge(Base):
    __tablename__ = "lineage_edges"
    __table_args__ = (
        UniqueConstraint("source_id", "target_id", name="uq_lineage_edges_source_target"),
        Index("ix_lineage_edges_source_active", "source_id", "is_active"),
        Index("ix_lineage_edges_target_active", "target_id", "is_active"),
        Index("ix_lineage_edges_type_active", "relationship_type", "is_active"),
        CheckConstraint("strength >= 0 AND strength <= 1", name="ck_lineage_edges_strength"),
    )
    id = Column(Integer, primary_key=True, autoincrement=True)
    source_id = Column(String(255), nullable=False)
    target_id = Column(String(255), nullable=False)
    relationship_type = Column(
        Enum(*RELATIONSHIP_TYPES, name="lineage_relationship_type", native_enum=False,
             create_constraint=True, validate_strings=True),
        nullable=False,
        default=DEFAULT_RELATIONSHIP_TYPE,
    )
    strength = Column(Float, nullable=False, default=DEFAULT_STRENGTH)
    extra_data = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    @property
    def key(self) -> str:
        return f"{self.source_id}-{self.target_id}"

    def to_dict(self):
        return {
            'id': self.id,
            'key': self.key,
            'sourceAssetId': self.source_id,
            'targetAssetId': self.target_id,
            'relationshipType': self.relationship_type,
            'strength': self.strength,
            'metadata': self.extra_data or {},
            'isActive': bool(self.is_active),
            'createdBy': self.created_by,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<LineageEdge {self.key} {self.relationship_type}>'


def init_db(app) -> bool:
    location = app.config.get("SQLALCHEMY_DATABASE_URI", "").split("@")[-1]
    try:
        with app.app_context():
            db.create_all()
    except OperationalError as e:
        # requests will answer 503 until the store is reachable
        logger.error("Could not create lineage tables on %s: %s", location, e)
        return False
    logger.info("Lineage tables ready on %s", location)
    return True
