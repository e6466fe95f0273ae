"""
⛓️ Chain Routes Blueprint
Timer status and manual controls.
"""

import logging

from flask import Blueprint

from ..services.service_manager import get_service
from .helpers import (api_error_handler, api_response, request_payload,
                      service_response)

chain_bp = Blueprint("chain", __name__, url_prefix="/api/chain")
logger = logging.getLogger("chain.routes.chain")


@chain_bp.route("/status")
@api_error_handler
def chain_status():
    """Current countdown, classification and sync details."""
    return service_response(get_service("chain").get_status())


@chain_bp.route("/start", methods=["POST"])
@api_error_handler
def chain_start():
    return service_response(get_service("chain").start_timer())


@chain_bp.route("/reset", methods=["POST"])
@api_error_handler
def chain_reset():
    return service_response(get_service("chain").reset_timer())


@chain_bp.route("/stop", methods=["POST"])
@api_error_handler
def chain_stop():
    return service_response(get_service("chain").stop_timer())


@chain_bp.route("/mode", methods=["POST"])
@api_error_handler
def chain_mode():
    """Switch between manual and synced mode.

    Accepts ``{"mode": "manual"|"synced"}`` or the legacy ``{"api_mode": bool}``.
    """
    data = request_payload()
    value = data.get("mode", data.get("api_mode"))
    if value is None:
        return api_response(False, message="mode is required", status=400, error_code="mode")
    return service_response(get_service("chain").set_mode(value))


@chain_bp.route("/test-alarm", methods=["POST"])
@api_error_handler
def chain_test_alarm():
    return service_response(get_service("chain").test_alarm())
