"""Async utility functions for the collections service.

Provides helpers for running blocking PyDAL operations from async Flask views
using a thread pool.
"""

# flake8: noqa: E501


import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, ParamSpec, TypeVar

from flask import copy_current_request_context, current_app, has_app_context, has_request_context

from shared.database import ensure_thread_connection

logger = logging.getLogger(__name__)

# Thread pool for blocking operations (PyDAL database calls)
_executor = ThreadPoolExecutor(max_workers=20, thread_name_prefix="pydal_")

P = ParamSpec("P")
T = TypeVar("T")

_CONNECTION_ERRORS = (
    "cursor already closed",
    "connection already closed",
    "server closed the connection",
    "connection refused",
    "can't connect to",
    "lost connection",
    "connection reset",
    "interfaceerror",
)


async def run_in_threadpool(
    func: Callable[P, T], *args: P.args, **kwargs: P.kwargs
) -> T:
    """
    Run a blocking function in the thread pool with Flask context support.

    PyDAL is synchronous and keeps one connection per thread, so the worker
    thread attaches a connection before running ``func``. Stale connections
    are reopened and the call retried; any other failure rolls back the
    thread's transaction and re-raises.

    Args:
        func: The blocking function to run
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The result of the function call

    Example:
        >>> db = current_app.db
        >>> count = await run_in_threadpool(lambda: db(db.collection_records).count())
    """
    loop = asyncio.get_running_loop()
    app = current_app._get_current_object() if has_app_context() else None
    db = getattr(app, "db", None)

    def safe_wrapper():
        max_retries = 2
        retry_count = 0

        while True:
            if db is not None:
                ensure_thread_connection(db)
            try:
                return func(*args, **kwargs)
            except Exception as e:
                error_msg = str(e).lower()
                is_connection_error = any(msg in error_msg for msg in _CONNECTION_ERRORS)

                if db is not None and is_connection_error and retry_count < max_retries:
                    try:
                        db._adapter.close()
                    except Exception as close_error:
                        logger.warning(f"Failed to close stale connection: {close_error}")
                    retry_count += 1
                    continue

                if db is not None:
                    try:
                        db.rollback()
                    except Exception as rollback_error:
                        logger.error(f"Failed to rollback transaction: {rollback_error}")
                raise

    if has_request_context():
        wrapped_func = copy_current_request_context(safe_wrapper)
    elif app is not None:

        def wrapped_func():
            with app.app_context():
                return safe_wrapper()

    else:
        wrapped_func = safe_wrapper

    return await loop.run_in_executor(_executor, wrapped_func)


async def run_parallel(*tasks) -> list[Any]:
    """
    Run multiple async tasks in parallel and return all results.

    Args:
        *tasks: Awaitables to run in parallel

    Returns:
        List of results in the same order as tasks
    """
    return await asyncio.gather(*tasks)


def shutdown_thread_pool():
    """
    Gracefully shutdown the thread pool.

    Call this during application shutdown to clean up threads.
    """
    _executor.shutdown(wait=True)
