"""Pytest configuration and shared fixtures."""

import pytest

from config import TestingConfig
from database import db
from main import create_app
import db_helpers


@pytest.fixture
def app():
    """App bound to a fresh in-memory SQLite store."""
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register_assets(app):
    """Register catalog assets by id; name and type are derived from the id."""
    def _register(*asset_ids, domain="Sales"):
        for asset_id in asset_ids:
            db_helpers.save_asset({
                'id': asset_id,
                'name': f"{asset_id} table",
                'type': 'Table',
                'domain': domain,
            })
    return _register


@pytest.fixture
def link(app):
    """Declare lineage edges through the upsert service."""
    from services.lineage_service import upsert_lineage_edge

    def _link(source, target, relationship_type="feeds_into", metadata=None, created_by="tester", strength=None):
        edge, _ = upsert_lineage_edge(source, target, relationship_type, metadata, created_by, strength)
        return edge
    return _link
