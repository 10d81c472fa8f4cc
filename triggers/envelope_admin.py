# ============================================================================
# ENVELOPE ADMIN HTTP TRIGGERS
# ============================================================================
# STATUS: Trigger layer - /api/envelopes/* operator endpoints
# PURPOSE: Stale envelope completion and incomplete envelope listing
# EXPORTS: complete_stale_envelope_handler, incomplete_envelopes_handler
# DEPENDENCIES: services.envelope_action_service
# ============================================================================
"""
Envelope Admin HTTP Triggers.

    POST /api/envelopes/{envelope_id}/complete
        200 completed, 400 bad id, 404 not found, 409 completed or not stale

    GET  /api/envelopes/incomplete
        200 with CREATED envelopes older than the stale threshold

Both routes are function-key protected.
"""

import json
from typing import Any, Dict
from uuid import UUID

import azure.functions as func

from exceptions import EnvelopeCompletedOrNotStaleError, EnvelopeNotFoundError
from util_logger import LoggerFactory, ComponentType
from .timer_base import get_service_factory

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "EnvelopeAdminHTTP")


def _json_response(body: Dict[str, Any], status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body, default=str),
        status_code=status_code,
        mimetype="application/json"
    )


def complete_stale_envelope_handler(req: func.HttpRequest) -> func.HttpResponse:
    raw_id = req.route_params.get("envelope_id", "")
    try:
        envelope_id = UUID(raw_id)
    except ValueError:
        return _json_response({
            "success": False,
            "error": f"Invalid envelope id: {raw_id}",
            "error_type": "ValidationError",
        }, status_code=400)

    logger.info(f"🛠️ Stale envelope completion requested: {envelope_id}")
    try:
        envelope = get_service_factory().create_envelope_action_service().complete_stale_envelope(envelope_id)
    except EnvelopeNotFoundError as e:
        return _json_response({"success": False, "error": str(e), "error_type": "NotFound"}, status_code=404)
    except EnvelopeCompletedOrNotStaleError as e:
        return _json_response({"success": False, "error": str(e), "error_type": "Conflict"}, status_code=409)
    except Exception as e:
        logger.error(f"❌ Stale envelope completion failed for {envelope_id}: {e}")
        return _json_response({"success": False, "error": str(e), "error_type": type(e).__name__},
                              status_code=500)

    return _json_response({
        "success": True,
        "envelope": envelope.model_dump(mode="json") if envelope else None,
    })


def incomplete_envelopes_handler(req: func.HttpRequest) -> func.HttpResponse:
    try:
        envelopes = get_service_factory().create_envelope_action_service().get_incomplete_envelopes()
    except Exception as e:
        logger.error(f"❌ Incomplete envelope listing failed: {e}")
        return _json_response({"success": False, "error": str(e), "error_type": type(e).__name__},
                              status_code=500)

    return _json_response({
        "success": True,
        "count": len(envelopes),
        "envelopes": [envelope.model_dump(mode="json") for envelope in envelopes],
    })


__all__ = ['complete_stale_envelope_handler', 'incomplete_envelopes_handler']
