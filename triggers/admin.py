"""
Admin HTTP triggers.

    POST /api/admin/db/initialize
        Runs the idempotent envelope store DDL and returns the step results.
    GET  /api/admin/config
        Sanitized configuration.
"""

import json

import azure.functions as func

from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "AdminHTTP")


def initialize_database_handler(req: func.HttpRequest) -> func.HttpResponse:
    from config import get_config
    from infrastructure.database_initializer import DatabaseInitializer

    logger.info("🗄️ Database initialization requested")
    try:
        result = DatabaseInitializer(config=get_config().database).initialize_all()
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        return func.HttpResponse(
            json.dumps({"success": False, "error": str(e), "error_type": type(e).__name__}),
            status_code=500,
            mimetype="application/json"
        )

    return func.HttpResponse(
        json.dumps(result.to_dict()),
        status_code=200 if result.success else 500,
        mimetype="application/json"
    )


def show_config_handler(req: func.HttpRequest) -> func.HttpResponse:
    """Sanitized configuration; secrets and public key material are masked."""
    from config import debug_config

    info = debug_config()
    return func.HttpResponse(
        json.dumps(info, default=str),
        status_code=500 if "error" in info else 200,
        mimetype="application/json"
    )
