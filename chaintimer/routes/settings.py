"""
⚙️ Settings Routes Blueprint
Read and update alarm threshold, volume, API key and mode.
"""

import logging

from flask import Blueprint

from ..services.service_manager import get_service
from ..utils.logger import log_structured
from .helpers import api_error_handler, request_payload, service_response

settings_bp = Blueprint("settings", __name__, url_prefix="/api")
logger = logging.getLogger("chain.routes.settings")


@settings_bp.route("/settings", methods=["GET"])
@api_error_handler
def get_settings():
    return service_response(get_service("chain").get_settings())


@settings_bp.route("/settings", methods=["POST"])
@api_error_handler
def update_settings():
    """Apply a partial settings update (JSON body or form fields)."""
    data = request_payload()
    result = get_service("chain").update_settings(data)
    if not result.success:
        log_structured(logger, logging.WARNING, "Settings update rejected",
                       error_code=result.error_code, validation_message=result.message,
                       endpoint="/api/settings")
    return service_response(result)
