# ============================================================================
# TIMER TRIGGERS BLUEPRINT
# ============================================================================
# STATUS: Trigger layer - Timer-based scheduled triggers
# PURPOSE: Azure Functions Blueprint with the six scheduled jobs
# ============================================================================
"""
Timer Triggers Blueprint.

Schedules are NCRONTAB expressions read from SchedulerConfig at import time
(BLOB_DISPATCHER_SCHEDULE, DELETE_DISPATCHED_FILES_SCHEDULE, ...). Every
replica fires every timer; the cluster lock in TimerHandlerBase lets one
replica run each tick.

Default schedules:
    - blob_dispatcher_timer: Every 5 minutes
    - delete_dispatched_files_timer: Every 10 minutes
    - delete_rejected_files_timer: Every hour on the hour
    - handle_rejected_files_timer: Every 10 minutes
    - reject_duplicates_timer: Every 10 minutes
    - send_notifications_timer: Every 10 minutes
"""

import azure.functions as func

from config.scheduler_config import SchedulerConfig

bp = func.Blueprint()

_schedules = SchedulerConfig.from_environment()


@bp.timer_trigger(
    schedule=_schedules.blob_dispatcher_schedule,
    arg_name="timer",
    run_on_startup=False
)
def blob_dispatcher_timer(timer: func.TimerRequest) -> None:
    """Scan enabled source containers; verify and dispatch or reject new blobs."""
    from triggers.jobs import blob_dispatcher_handler
    blob_dispatcher_handler.handle(timer)


@bp.timer_trigger(
    schedule=_schedules.delete_dispatched_files_schedule,
    arg_name="timer",
    run_on_startup=False
)
def delete_dispatched_files_timer(timer: func.TimerRequest) -> None:
    """Delete dispatched source blobs and mark their envelopes deleted."""
    from triggers.jobs import delete_dispatched_files_handler
    delete_dispatched_files_handler.handle(timer)


@bp.timer_trigger(
    schedule=_schedules.delete_rejected_files_schedule,
    arg_name="timer",
    run_on_startup=False
)
def delete_rejected_files_timer(timer: func.TimerRequest) -> None:
    """Delete expired blobs and snapshots from -rejected containers."""
    from triggers.jobs import delete_rejected_files_handler
    delete_rejected_files_handler.handle(timer)


@bp.timer_trigger(
    schedule=_schedules.handle_rejected_files_schedule,
    arg_name="timer",
    run_on_startup=False
)
def handle_rejected_files_timer(timer: func.TimerRequest) -> None:
    """Move rejected source blobs to their -rejected container."""
    from triggers.jobs import handle_rejected_files_handler
    handle_rejected_files_handler.handle(timer)


@bp.timer_trigger(
    schedule=_schedules.reject_duplicates_schedule,
    arg_name="timer",
    run_on_startup=False
)
def reject_duplicates_timer(timer: func.TimerRequest) -> None:
    """Move re-uploads of already processed files to -rejected."""
    from triggers.jobs import reject_duplicates_handler
    reject_duplicates_handler.handle(timer)


@bp.timer_trigger(
    schedule=_schedules.send_notifications_schedule,
    arg_name="timer",
    run_on_startup=False
)
def send_notifications_timer(timer: func.TimerRequest) -> None:
    """Publish pending rejection notifications to Service Bus."""
    from triggers.jobs import send_notifications_handler
    send_notifications_handler.handle(timer)
