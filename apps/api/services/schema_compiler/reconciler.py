"""Schema reconciler.

Keeps the generated schema artifact in step with the schema store by
recompiling it on an interval. Operators can start and stop the schedule,
force an immediate compile and inspect its status.
"""

import datetime
import logging
import os
import tempfile
import threading
import time
from typing import Any, Dict, Iterable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from prometheus_client import Counter, Gauge, Histogram

from apps.api.services.schema_compiler.compiler import SchemaCompiler
from shared.database import ensure_thread_connection

logger = logging.getLogger(__name__)

JOB_ID = "schema_reconciler"

schema_compiles_total = Counter(
    "schema_compiles_total",
    "Total number of schema compile runs",
    ["trigger", "status"],
)
schema_compile_duration = Histogram(
    "schema_compile_duration_seconds",
    "Schema compile run duration",
)
schema_tables_compiled = Gauge(
    "schema_tables_compiled",
    "Number of tables in the last compiled schema",
)


class SchemaReconciler:
    """Background recompilation of the schema artifact.

    One BackgroundScheduler is created per reconciler and started on first
    use; start/stop add and remove the single interval job. A compile lock
    serialises scheduled and forced runs, so a force-update arriving while a
    compile is in flight waits for it and then runs.
    """

    def __init__(
        self,
        compiler: SchemaCompiler,
        artifact_path: str,
        interval: int = 300,
        mirrors: Iterable[str] = (),
        db=None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """Initialize reconciler.

        Args:
            compiler: Schema compiler to run
            artifact_path: Where the rendered schema is written
            interval: Seconds between scheduled compiles
            mirrors: Extra paths that receive a copy of the artifact
            db: PyDAL database instance (attached to scheduler threads)
            scheduler: Scheduler to use instead of a private one
        """
        self.compiler = compiler
        self.artifact_path = artifact_path
        self.interval = interval
        self.mirrors = tuple(mirrors)
        self.db = db
        self._scheduler = scheduler or BackgroundScheduler(
            daemon=True, timezone=datetime.timezone.utc
        )
        self._state_lock = threading.Lock()
        self._compile_lock = threading.Lock()
        self._running = False
        self._compiling = False
        self.last_update: Optional[datetime.datetime] = None
        self.last_checksum: Optional[str] = None
        self.tables_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Schedule the interval job with an immediate first run.

        Returns:
            False when the reconciler was already running
        """
        with self._state_lock:
            if self._running:
                logger.info("Schema reconciler already running")
                return False

            if not self._scheduler.running:
                self._scheduler.start()

            self._scheduler.add_job(
                self._run_scheduled,
                trigger=IntervalTrigger(seconds=self.interval),
                id=JOB_ID,
                name="Schema Reconciler",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
                next_run_time=datetime.datetime.now(datetime.timezone.utc),
            )
            self._running = True

        logger.info(f"Schema reconciler started (every {self.interval}s)")
        return True

    def stop(self) -> bool:
        """Remove the interval job. A compile already running is left to finish.

        Returns:
            False when the reconciler was already stopped
        """
        with self._state_lock:
            if not self._running:
                return False
            try:
                self._scheduler.remove_job(JOB_ID)
            except JobLookupError:
                logger.warning("Schema reconciler job was already gone")
            self._running = False

        logger.info("Schema reconciler stopped")
        return True

    def shutdown(self) -> None:
        """Stop the schedule and the scheduler thread for good."""
        self.stop()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)

    def force_update(self) -> Dict[str, Any]:
        """Compile now, whatever the schedule state. Errors propagate."""
        return self.run_once(trigger="manual")

    def run_once(self, trigger: str = "manual") -> Dict[str, Any]:
        """Compile, render and write the artifact under the compile lock.

        Returns:
            Summary of the run (tables, checksum, path, lastUpdate)
        """
        with self._compile_lock:
            self._compiling = True
            started = time.monotonic()
            try:
                if self.db is not None:
                    ensure_thread_connection(self.db)
                document = self.compiler.compile()
                rendered = self.compiler.render(document)
                checksum = self.compiler.checksum(rendered)

                for path in (self.artifact_path, *self.mirrors):
                    write_atomic(path, rendered)

                self.last_update = datetime.datetime.now(datetime.timezone.utc)
                self.last_checksum = checksum
                self.tables_count = len(document)
            except Exception:
                schema_compiles_total.labels(trigger=trigger, status="error").inc()
                raise
            finally:
                self._compiling = False
                schema_compile_duration.observe(time.monotonic() - started)

        schema_compiles_total.labels(trigger=trigger, status="success").inc()
        schema_tables_compiled.set(self.tables_count)
        logger.info(
            f"Schema compiled ({trigger}): {self.tables_count} tables -> {self.artifact_path}"
        )
        return {
            "tables": self.tables_count,
            "checksum": checksum,
            "path": self.artifact_path,
            "lastUpdate": _isoformat(self.last_update),
        }

    def status(self) -> Dict[str, Any]:
        """Current schedule and last-run state."""
        last_update = self.last_update
        next_update = (
            last_update + datetime.timedelta(seconds=self.interval) if last_update else None
        )
        return {
            "isRunning": self._running,
            "isCompiling": self._compiling,
            "lastUpdate": _isoformat(last_update),
            "nextUpdate": _isoformat(next_update),
            "updateInterval": self.interval * 1000,
            "lastChecksum": self.last_checksum,
            "tablesCount": self.tables_count,
        }

    def _run_scheduled(self):
        """Scheduler entry point. Failures are logged; the schedule keeps going."""
        try:
            self.run_once(trigger="schedule")
        except Exception as e:
            logger.error(f"Scheduled schema compile failed: {e}", exc_info=True)
        finally:
            if self.db is not None:
                try:
                    self.db.rollback()
                except Exception as e:
                    logger.warning(f"Failed to release scheduler transaction: {e}")


def write_atomic(path: str, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file and rename."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".schema-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def _isoformat(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.isoformat() if value else None


# ===========================
# App-level lifecycle
# ===========================


def init_reconciler(app, compiler: SchemaCompiler) -> SchemaReconciler:
    """Create the app's reconciler and start it when configured to.

    Args:
        app: Flask application
        compiler: Schema compiler bound to the app's schema store
    """
    reconciler = SchemaReconciler(
        compiler,
        artifact_path=app.config["SCHEMA_ARTIFACT_PATH"],
        interval=app.config["SCHEMA_SYNC_INTERVAL"],
        mirrors=app.config.get("SCHEMA_ARTIFACT_MIRRORS", ()),
        db=app.db,
    )
    app.extensions["schema_reconciler"] = reconciler

    if app.config.get("SCHEMA_SYNC_AUTOSTART"):
        reconciler.start()
    return reconciler


def get_reconciler(app) -> Optional[SchemaReconciler]:
    """Get the app's reconciler, if one was initialised."""
    return app.extensions.get("schema_reconciler")


def stop_reconciler(app) -> None:
    """Shut down the app's reconciler."""
    reconciler = get_reconciler(app)
    if reconciler is not None:
        reconciler.shutdown()
