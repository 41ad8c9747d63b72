"""Pytest configuration and fixtures for collections tests.

Unit tests use plain objects and mocks. Integration tests build a real app
on a throwaway SQLite database inside ``tmp_path``; SQLite files (not
``:memory:``) are used because PyDAL gives every worker thread its own
connection.
"""

import os

import pytest

# Set testing environment before any app imports
os.environ.setdefault("FLASK_ENV", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")


@pytest.fixture
def app(tmp_path, monkeypatch):
    """
    Create Flask application for testing.

    Returns:
        Bare Flask app (not ASGI-wrapped) on a fresh SQLite database
    """
    from apps.api.config import TestingConfig
    from apps.api.main import create_app
    from apps.api.services.schema_compiler.reconciler import stop_reconciler

    monkeypatch.setattr(TestingConfig, "DATABASE_URL", "sqlite://collections.sqlite")
    monkeypatch.setattr(TestingConfig, "DB_FOLDER", str(tmp_path / "db"))
    monkeypatch.setattr(
        TestingConfig, "SCHEMA_ARTIFACT_PATH", str(tmp_path / "generated" / "schema.json")
    )
    monkeypatch.setattr(
        TestingConfig, "SCHEMA_ARTIFACT_MIRRORS", [str(tmp_path / "client" / "schema.json")]
    )

    app = create_app("testing", asgi=False)

    with app.app_context():
        yield app

    stop_reconciler(app)
    app.db.close()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def store(app):
    """The app's SchemaStore."""
    return app.extensions["schema_store"]


@pytest.fixture
def products_table(store):
    """A ``products`` table with name (required), price (min 0) and is_active."""
    store.create_table({"table_name": "products", "table_label": "Products"})
    store.create_field(
        "products",
        {
            "field_name": "name",
            "field_type": "string",
            "field_label": "Name",
            "is_required": True,
            "field_order": 1,
        },
    )
    store.create_field(
        "products",
        {
            "field_name": "price",
            "field_type": "number",
            "field_label": "Price",
            "validation_rules": {"min": 0},
            "field_order": 2,
        },
    )
    store.create_field(
        "products",
        {
            "field_name": "is_active",
            "field_type": "boolean",
            "field_label": "Active",
            "field_order": 3,
        },
    )
    return store.get_table("products")


# Markers for test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (requires database)"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
