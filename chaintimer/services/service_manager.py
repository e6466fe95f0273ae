"""
🔧 Service Manager - Central Service Coordination
===============================================

Owns the service instances for one running session and gives the Flask
routes a single lookup point.
"""

import logging
from typing import Any, Dict, Optional

from . import ServiceResult
from .chain_service import ChainService
from ..core.session import ChainTimerSession
from ..utils.thread_safety import ThreadSafeConfigManager


class ServiceManager:
    """Central manager for all application services."""

    def __init__(self, session: ChainTimerSession, config_store: Optional[ThreadSafeConfigManager] = None):
        self.logger = logging.getLogger("chain.service_manager")

        self.chain = ChainService(session, config_store)

        self.services = {
            "chain": self.chain,
        }

        self._initialize_all()

    def _initialize_all(self) -> None:
        """Initialize all services."""
        self.logger.info("🚀 Initializing service manager...")

        for name, service in self.services.items():
            try:
                result = service.initialize()
                if result.success:
                    self.logger.info(f"✅ {name} service initialized")
                else:
                    self.logger.error(f"❌ {name} service initialization failed: {result.message}")
            except Exception as e:
                self.logger.error(f"💥 {name} service crashed during initialization: {e}")

        self.logger.info("🎯 Service manager initialization completed")

    def get_service(self, name: str) -> Optional[Any]:
        return self.services.get(name)

    def health_check_all(self) -> ServiceResult:
        """Perform health check on all services."""
        try:
            results = {}
            overall_healthy = True

            for name, service in self.services.items():
                health = service.health_check()

                if health.success and isinstance(health.data, dict):
                    status_payload: Dict[str, Any] = health.data
                else:
                    status_payload = {"status": "unhealthy", "error": health.message}

                status_value = str(status_payload.get("status", "")).lower()
                service_healthy = health.success and status_value == "healthy"

                results[name] = {
                    "healthy": service_healthy,
                    "status": status_payload,
                }
                if not service_healthy:
                    overall_healthy = False

            return ServiceResult(
                success=True,
                data={
                    "overall_healthy": overall_healthy,
                    "services": results,
                    "total_services": len(self.services),
                    "healthy_services": sum(1 for r in results.values() if r["healthy"]),
                },
                message="Health check completed for all services"
            )

        except Exception as e:
            self.logger.error(f"Error during health check: {e}")
            return ServiceResult(
                success=False,
                message=f"Health check failed: {str(e)}",
                error_code="HEALTH_CHECK_FAILED"
            )


# Global service manager instance, bound by the app factory
_service_manager: Optional[ServiceManager] = None

def set_service_manager(manager: Optional[ServiceManager]) -> None:
    global _service_manager
    _service_manager = manager

def get_service_manager() -> ServiceManager:
    if _service_manager is None:
        raise RuntimeError("Service manager not initialized. Call create_app() first.")
    return _service_manager

def get_service(name: str) -> Optional[Any]:
    """Get a specific service by name."""
    return get_service_manager().get_service(name)
