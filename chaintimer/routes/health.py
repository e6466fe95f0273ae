"""
🩺 Health Routes Blueprint
Liveness and aggregated service health.
"""

import logging

from flask import Blueprint, jsonify

from ..services.service_manager import get_service_manager
from ..version import VERSION, get_version_dict
from .helpers import api_error_handler, api_response

health_bp = Blueprint("health", __name__)
logger = logging.getLogger("chain.routes.health")


@health_bp.route("/healthz")
def healthz():
    """Basic health check endpoint."""
    return jsonify({"ok": True, "version": str(VERSION)})


@health_bp.route("/api/health")
@api_error_handler
def api_health():
    """Aggregated service health; 503 when any service is degraded."""
    result = get_service_manager().health_check_all()
    if not result.success:
        return api_response(False, message=result.message, status=500, error_code=result.error_code)

    data = dict(result.data or {})
    data["app"] = get_version_dict()
    status = 200 if data.get("overall_healthy") else 503
    return api_response(True, data=data, status=status)
