"""
Azure Functions entry point for the Blob Router.

Suppliers upload signed zip archives into per-supplier source containers.
Scheduled jobs verify each upload, dispatch verified content to the routed
target container, reject the rest, notify suppliers of rejections and clean
up the source containers afterwards.

Architecture:
    Timer -> TimerHandlerBase (cluster lock) -> Service -> Repositories
                                                    |
                         Blob Storage (leases) / PostgreSQL (envelopes) / Service Bus

Scheduled jobs (triggers/timers/timer_bp.py):
    blob-dispatcher          Verify and dispatch or reject new blobs
    delete-dispatched-files  Remove dispatched source blobs
    delete-rejected-files    TTL sweep of -rejected containers
    handle-rejected-files    Move rejected source blobs to -rejected
    reject-duplicates        Move re-uploads of processed files to -rejected
    send-notifications       Publish rejection notices

Endpoints:
    POST /api/envelopes/{envelope_id}/complete - Complete a stale envelope
    GET  /api/envelopes/incomplete - List stale CREATED envelopes
    POST /api/admin/db/initialize - Create envelope store tables
    GET  /api/admin/config - Sanitized configuration

Environment Variables:
    SOURCE_STORAGE_ACCOUNT / SOURCE_STORAGE_CONNECTION_STRING: Source account
    TARGET_ACCOUNTS_JSON: Target accounts by name
    SOURCE_CONTAINERS_JSON: Routing table
    PUBLIC_KEYS_JSON: Supplier public keys by name
    POSTGRES_HOST / POSTGRES_DATABASE / POSTGRES_USER / ...: Envelope store
    ServiceBusConnection / SERVICE_BUS_NAMESPACE: Notifications queue
"""

import azure.functions as func

from triggers.timers import timer_bp
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "FunctionApp")

app = func.FunctionApp(http_auth_level=func.AuthLevel.FUNCTION)

app.register_blueprint(timer_bp)


# ============================================================================
# ENVELOPE ADMIN
# ============================================================================

@app.route(route="envelopes/incomplete", methods=["GET"])
def envelopes_incomplete(req: func.HttpRequest) -> func.HttpResponse:
    """List CREATED envelopes with no activity for the stale threshold."""
    from triggers.envelope_admin import incomplete_envelopes_handler
    return incomplete_envelopes_handler(req)


@app.route(route="envelopes/{envelope_id}/complete", methods=["POST"])
def envelopes_complete(req: func.HttpRequest) -> func.HttpResponse:
    """Reject a stale envelope with error code stale-envelope."""
    from triggers.envelope_admin import complete_stale_envelope_handler
    return complete_stale_envelope_handler(req)


# ============================================================================
# ADMIN
# ============================================================================

@app.route(route="admin/db/initialize", methods=["POST"])
def admin_db_initialize(req: func.HttpRequest) -> func.HttpResponse:
    """Idempotent envelope store DDL."""
    from triggers.admin import initialize_database_handler
    return initialize_database_handler(req)


@app.route(route="admin/config", methods=["GET"])
def admin_config(req: func.HttpRequest) -> func.HttpResponse:
    """Sanitized configuration."""
    from triggers.admin import show_config_handler
    return show_config_handler(req)


logger.info("✅ Blob Router function app loaded")
