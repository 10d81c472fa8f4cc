# ============================================================================
# TIMER HANDLER BASE CLASS
# ============================================================================
# STATUS: Trigger layer - Base class for scheduled job handlers
# PURPOSE: Past-due logging, cluster lock, timing and result logging
# EXPORTS: TimerHandlerBase, get_service_factory, reset_service_factory
# ============================================================================
"""
Timer Handler Base Class.

A tick of any scheduled job: note a past-due timer, take the cluster lock
named after the job, run execute(), stamp the duration and log a one-line
summary. Another replica holding the lock turns the tick into a skip.
Exceptions never escape to the Functions host; they come back as an
error result so the next tick simply retries.

Subclass contract:
    name       logger name
    job_name   cluster lock key (SchedulerDefaults.*_JOB)
    execute()  returns {"success": bool, "summary": {...}, ...}

Exports:
    TimerHandlerBase
    get_service_factory, reset_service_factory: Process-wide ServiceFactory
"""

import traceback
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import azure.functions as func

from util_logger import LoggerFactory, ComponentType

_service_factory = None


def get_service_factory():
    """ServiceFactory shared by all handlers in this process."""
    global _service_factory
    if _service_factory is None:
        from services.factory import ServiceFactory
        _service_factory = ServiceFactory()
    return _service_factory


def reset_service_factory(factory=None) -> None:
    """Replace (or drop) the shared factory. Used by tests."""
    global _service_factory
    _service_factory = factory


class TimerHandlerBase(ABC):
    """Scheduled job run under the cluster lock named `job_name`."""

    name: str = "UnnamedTimer"
    job_name: str = ""

    def __init__(self):
        self._logger = None

    @property
    def logger(self):
        # Created on first tick; handler instances are built at import time
        if self._logger is None:
            self._logger = LoggerFactory.create_with_context(
                ComponentType.TRIGGER, self.name, job_name=self.job_name
            )
        return self._logger

    @property
    def factory(self):
        return get_service_factory()

    def handle(self, timer: Optional[func.TimerRequest] = None) -> Dict[str, Any]:
        """
        One tick of the job.

        Args:
            timer: TimerRequest from the trigger; None for manual runs

        Returns:
            execute() result with duration_seconds and job_name added,
            {"success": True, "skipped": True, ...} when the lock is held
            elsewhere, or {"success": False, "error": ..., "traceback": ...}
        """
        if timer is not None and timer.past_due:
            self.logger.warning(f"⏰ {self.name}: timer is past due, running now")

        started = datetime.now(timezone.utc)
        self.logger.info(f"⏰ {self.name}: tick at {started.isoformat()}")

        try:
            ran, result = self.factory.cluster_lock.with_cluster_lock(self.job_name, self.execute)
        except Exception as e:
            tb = traceback.format_exc()
            self.logger.error(f"❌ {self.name}: {type(e).__name__}: {e}\n{tb}")
            return {"success": False, "job_name": self.job_name, "error": str(e), "traceback": tb}

        if not ran:
            return {"success": True, "skipped": True, "job_name": self.job_name}

        result.setdefault(
            "duration_seconds",
            round((datetime.now(timezone.utc) - started).total_seconds(), 2)
        )
        result.setdefault("job_name", self.job_name)
        self._log_result(result)
        return result

    @abstractmethod
    def execute(self) -> Dict[str, Any]:
        """Run the job body. Must return a dict with a 'success' key."""
        raise NotImplementedError("Subclass must implement execute()")

    def _log_result(self, result: Dict[str, Any]) -> None:
        if not result.get("success", False):
            self.logger.error(f"❌ {self.name}: failed: {result.get('error', 'unknown error')}")
            return

        summary = result.get("summary", {})
        counters = ", ".join(
            f"{key}={value}" for key, value in summary.items()
            if isinstance(value, (int, float, str, bool))
        )
        suffix = f" | {counters}" if counters else ""
        duration = result["duration_seconds"]
        if summary.get("failed"):
            self.logger.warning(f"⚠️ {self.name}: done with failures ({duration}s){suffix}")
        else:
            self.logger.info(f"✅ {self.name}: done ({duration}s){suffix}")


__all__ = ['TimerHandlerBase', 'get_service_factory', 'reset_service_factory']
