"""Schema reconciler control endpoints."""

# flake8: noqa: E501


from flask import Blueprint, current_app

from apps.api.services.schema_compiler import SchemaReconciler
from apps.api.utils.api_responses import ApiResponse
from apps.api.utils.async_utils import run_in_threadpool

bp = Blueprint("schema_cron", __name__)


def _reconciler() -> SchemaReconciler:
    return current_app.extensions["schema_reconciler"]


@bp.route("/start", methods=["POST"])
async def start():
    """Start the schedule. Starting a running reconciler is a no-op."""
    reconciler = _reconciler()
    started = reconciler.start()
    message = "Schema reconciler started" if started else "Schema reconciler already running"
    return ApiResponse.success(reconciler.status(), message=message)


@bp.route("/stop", methods=["POST"])
async def stop():
    """Stop the schedule. A compile already running finishes."""
    reconciler = _reconciler()
    stopped = reconciler.stop()
    message = "Schema reconciler stopped" if stopped else "Schema reconciler not running"
    return ApiResponse.success(reconciler.status(), message=message)


@bp.route("/force-update", methods=["POST"])
async def force_update():
    """Compile now, waiting for any compile in flight."""
    result = await run_in_threadpool(_reconciler().force_update)
    return ApiResponse.success(result, message="Schema updated")


@bp.route("/status", methods=["GET"])
async def status():
    """
    Reconciler state.

    Returns:
        200: {success, data: {isRunning, isCompiling, lastUpdate, nextUpdate, updateInterval, lastChecksum, tablesCount}}
    """
    return ApiResponse.success(_reconciler().status())
