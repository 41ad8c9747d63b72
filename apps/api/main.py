"""Main Flask application for the collections service."""

# flake8: noqa: E501


import atexit
import os

import structlog
from asgiref.wsgi import WsgiToAsgi
from flask import Flask, jsonify
from flask_cors import CORS
from prometheus_flask_exporter import PrometheusMetrics
from werkzeug.exceptions import HTTPException

from apps.api.config import get_config
from apps.api.exceptions import CoreError, UnexpectedError, ValidationError
from apps.api.logging_config import setup_logging
from apps.api.services.storage.config import check_storage_config
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.async_utils import shutdown_thread_pool
from shared.database import init_db, log_startup_status

logger = structlog.get_logger()


def create_app(config_name: str = None, asgi: bool = True):
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name (development, production, testing)
        asgi: Wrap the app for uvicorn; pass False to get the bare Flask app

    Returns:
        ASGI application, or the Flask application when ``asgi`` is False

    Raises:
        StorageConfigError: If upload storage is enabled without credentials
    """
    app = Flask(__name__, instance_relative_config=True)
    # Records are returned in their stored key order
    app.json.sort_keys = False

    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    config = get_config(config_name)
    app.config.from_object(config)
    config.init_app(app)

    # Setup logging (must be after config but before other initializations)
    setup_logging(app)

    # Storage credentials are fatal before anything touches the database
    check_storage_config(app.config)

    _init_extensions(app)

    init_db(app)
    log_startup_status(app.db)

    _init_services(app)
    _register_blueprints(app)
    _register_error_handlers(app)

    @app.route("/healthz")
    def health_check():
        """Health check endpoint."""
        return jsonify({"status": "healthy", "service": "collections"}), 200

    logger.info(
        "collections_app_created",
        config=config_name,
        debug=app.config["DEBUG"],
        version=app.config["APP_VERSION"],
    )

    if not asgi:
        return app

    # Wrap Flask WSGI app with ASGI adapter for uvicorn
    return WsgiToAsgi(app)


def _init_extensions(app: Flask) -> None:
    """
    Initialize Flask extensions.

    Args:
        app: Flask application
    """
    CORS(
        app,
        origins=app.config["CORS_ORIGINS"],
        methods=app.config["CORS_METHODS"],
        allow_headers=app.config["CORS_ALLOW_HEADERS"],
        supports_credentials=app.config.get("CORS_SUPPORTS_CREDENTIALS", False),
    )

    if app.config.get("METRICS_ENABLED"):
        metrics = PrometheusMetrics(app)
        metrics.info(
            "collections_app_info",
            "Collections Application",
            version=app.config["APP_VERSION"],
        )

    logger.info("extensions_initialized")


def _init_services(app: Flask) -> None:
    """
    Build the core services and attach them to ``app.extensions``.

    Args:
        app: Flask application (``app.db`` must be initialized)
    """
    from apps.api.services.collections import CollectionRegistry, GenericCrudService
    from apps.api.services.schema_compiler import SchemaCompiler
    from apps.api.services.schema_compiler.reconciler import init_reconciler, stop_reconciler
    from apps.api.services.schema_store import SchemaStore

    store = SchemaStore(app.db)
    registry = CollectionRegistry(app.db)
    compiler = SchemaCompiler(store)

    app.extensions["schema_store"] = store
    app.extensions["collection_registry"] = registry
    app.extensions["crud_service"] = GenericCrudService(
        store, registry, strict=app.config.get("STRICT_COLLECTIONS", False)
    )
    app.extensions["schema_compiler"] = compiler

    reconciler = init_reconciler(app, compiler)
    atexit.register(stop_reconciler, app)

    logger.info(
        "services_initialized",
        strict_collections=app.config.get("STRICT_COLLECTIONS", False),
        reconciler_running=reconciler.is_running,
    )


def _register_blueprints(app: Flask) -> None:
    """
    Register Flask blueprints.

    Static prefixes (``/schema``, ``/stats``) win over the generic
    ``/<collection>`` routes.

    Args:
        app: Flask application
    """
    from apps.api.api.v1 import collections, schema, schema_cron

    api_prefix = app.config["API_PREFIX"]

    app.register_blueprint(schema.bp, url_prefix=f"{api_prefix}/schema")
    app.register_blueprint(schema_cron.bp, url_prefix=f"{api_prefix}/schema/cron")
    app.register_blueprint(collections.bp, url_prefix=api_prefix)

    logger.info(
        "blueprints_registered",
        api_prefix=api_prefix,
        blueprints=["schema", "schema_cron", "collections"],
    )


def _register_error_handlers(app: Flask) -> None:
    """
    Register error handlers.

    Args:
        app: Flask application
    """

    @app.errorhandler(CoreError)
    def core_error(error: CoreError):
        """Turn core exceptions into ``{"error": ...}`` responses."""
        status_code = error.status_code
        if isinstance(error, ValidationError):
            status_code = app.config.get("VALIDATION_ERROR_STATUS", 500)

        if status_code >= 500:
            logger.error("core_error", error_type=type(error).__name__, error=error.message)
        else:
            logger.info("core_error", error_type=type(error).__name__, error=error.message)
        return ApiResponse.raw(error.to_dict(), status_code)

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        """Handle routing and protocol errors (404, 405, ...)."""
        return ApiResponse.error(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def unexpected_error(error: Exception):
        """Anything else surfaces as a 500 with its message."""
        wrapped = UnexpectedError.wrap(error)
        logger.error("unexpected_error", error=wrapped.message, exc_info=error)
        return ApiResponse.raw(wrapped.to_dict(), wrapped.status_code)

    logger.info("error_handlers_registered")


if __name__ == "__main__":
    import uvicorn

    asgi_app = create_app()
    uvicorn.run(
        asgi_app,
        host=os.getenv("FLASK_HOST", "0.0.0.0"),
        port=int(os.getenv("FLASK_PORT", 5000)),
    )
    shutdown_thread_pool()
