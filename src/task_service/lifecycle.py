from __future__ import annotations

import asyncio
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Component(Protocol):
    """Infrastructure piece with an explicit start/stop lifecycle."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class LifecycleError(Exception):
    """Raised when a registered component fails to start or stop."""

    def __init__(self, component: str, action: str) -> None:
        super().__init__(f"failed to {action} {component}")
        self.component = component
        self.action = action


class LifecycleManager:
    """
    Ordered registry of components.

    Registration order is dependency order: ``start_all`` walks it forward and
    ``stop_all`` walks the started components backwards, so the entry point for
    new work stops first and foundational resources stop last.
    """

    def __init__(self, min_stop_timeout: float = 1.0) -> None:
        self._min_stop_timeout = min_stop_timeout
        self._components: list[tuple[str, Component]] = []
        self._started: list[tuple[str, Component]] = []

    def register(self, component: Component, name: str | None = None) -> None:
        name = name or getattr(component, "name", None) or type(component).__name__
        self._components.append((name, component))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self._components]

    async def start_all(self) -> None:
        """Start components in order, stopping at the first failure."""
        for name, component in self._components:
            logger.info("Starting component", extra={"component": name})
            try:
                await component.start()
            except Exception as exc:
                logger.error("Failed to start component", extra={"component": name, "error": repr(exc)})
                raise LifecycleError(name, "start") from exc
            self._started.append((name, component))

    async def stop_all(self, timeout: float | None = None) -> None:
        """
        Stop started components in reverse order within ``timeout`` seconds overall.

        Every component gets a stop attempt of at least ``min_stop_timeout`` seconds,
        even after a slow one has used up the shared budget. Each failure is logged
        and the last one is raised as ``LifecycleError`` once all attempts are done.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        failure: tuple[str, BaseException] | None = None

        while self._started:
            name, component = self._started.pop()
            remaining = (
                None
                if deadline is None
                else max(deadline - loop.time(), self._min_stop_timeout)
            )
            logger.info("Stopping component", extra={"component": name})
            try:
                await asyncio.wait_for(component.stop(), remaining)
            except Exception as exc:
                logger.error("Failed to stop component", extra={"component": name, "error": repr(exc)})
                failure = (name, exc)

        if failure is not None:
            name, exc = failure
            raise LifecycleError(name, "stop") from exc
