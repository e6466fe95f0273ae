"""
Chain Timer Route Blueprints
Flask blueprints for the JSON API.
"""

from .chain import chain_bp
from .health import health_bp
from .settings import settings_bp

__all__ = [
    "chain_bp",
    "health_bp",
    "settings_bp",
]
