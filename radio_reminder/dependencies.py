"""
Service registry

The lifespan builds the application services once and registers them here;
route handlers resolve them through FastAPI dependencies, which tests replace
with `app.dependency_overrides`.
"""
import logging
from typing import Any, TypeVar

from radio_reminder.services.scheduler_service import SweepScheduler
from radio_reminder.services.task_lifecycle import TaskLifecycleEngine


logger = logging.getLogger(__name__)

T = TypeVar('T')


class ServiceLocator:
    """Holds the application-wide service instances, keyed by type."""

    def __init__(self):
        self._singletons: dict[type, Any] = {}

    def register_singleton(self, service_type: type[T], instance: T) -> None:
        self._singletons[service_type] = instance
        logger.debug(f"Registered singleton: {service_type.__name__}")

    def get(self, service_type: type[T]) -> T:
        """
        Get a registered service instance.

        Raises:
            KeyError: If service type is not registered
        """
        if service_type not in self._singletons:
            raise KeyError(f"Service {service_type.__name__} not registered")
        return self._singletons[service_type]

    def reset(self) -> None:
        self._singletons.clear()
        logger.debug("Service locator reset")


_service_locator: ServiceLocator | None = None


def get_service_locator() -> ServiceLocator:
    global _service_locator
    if _service_locator is None:
        _service_locator = ServiceLocator()
    return _service_locator


def reset_service_locator() -> None:
    """Drop all registered services (shutdown and tests)."""
    global _service_locator
    _service_locator = None


def get_task_engine() -> TaskLifecycleEngine:
    """FastAPI dependency returning the task lifecycle engine"""
    return get_service_locator().get(TaskLifecycleEngine)


def get_sweep_scheduler() -> SweepScheduler | None:
    """FastAPI dependency returning the sweep scheduler, if one is running"""
    try:
        return get_service_locator().get(SweepScheduler)
    except KeyError:
        return None
