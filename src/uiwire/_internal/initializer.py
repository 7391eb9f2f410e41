from __future__ import annotations

import asyncio
import importlib
import importlib.util
import logging
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import Any, ClassVar, TypeAlias

from uiwire._internal.container import Container
from uiwire.exceptions import UIWireInitializationError

BootstrapFunction: TypeAlias = Callable[[], Awaitable[None]]
"""Asynchronous operation completing once the container is populated."""

logger = logging.getLogger(__name__)


class GateState(Enum):
    """States of a container initializer gate."""

    PENDING = "pending"
    """Bootstrap has not completed; the gate renders its fallback."""

    READY = "ready"
    """Bootstrap completed; the gate renders its children. Terminal."""


class ContainerInitializer:
    """Gate withholding its children until the container bootstrap completes.

    Subclasses are created with ``container_initializer_factory``, which binds
    the bootstrap operation. Each instance is one mounted gate.

    Examples:
        .. code-block:: python

            gate = ContainerInitializer(
                fallback="Initializing...",
                children=lambda: MessageDecorator(message="hi"),
            )
            gate.mount()
            gate.render()  # "Initializing..."
            await gate.wait_ready()
            gate.render()  # "<p>** hi **</p>"

    """

    bootstrap: ClassVar[BootstrapFunction]

    def __init__(self, *, fallback: Any = None, children: Any = None) -> None:
        """Create an unmounted gate.

        Args:
            fallback: Value rendered while the bootstrap is pending.
            children: Value rendered once ready. Callables are called without
                arguments at render time.

        """
        self.fallback = fallback
        self.children = children
        self._state = GateState.PENDING
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> GateState:
        """Current gate state."""
        return self._state

    @property
    def is_mounted(self) -> bool:
        """Whether the gate is currently mounted."""
        return self._task is not None

    def mount(self) -> asyncio.Task[None]:
        """Start the bootstrap operation for this mount.

        Must be called with a running event loop. Calling it again while
        mounted returns the same task; mounting again after ``unmount`` calls
        the bootstrap operation again.

        """
        if self._task is not None:
            return self._task

        task = asyncio.get_running_loop().create_task(self._run_bootstrap())
        task.add_done_callback(self._on_bootstrap_done)
        self._task = task
        return task

    def unmount(self) -> None:
        """Detach the gate. A pending bootstrap keeps running; its completion is ignored."""
        self._task = None

    def render(self) -> Any:
        """Render the fallback while pending and the children once ready."""
        if self._state is not GateState.READY:
            return self.fallback
        if callable(self.children):
            return self.children()
        return self.children

    async def wait_ready(self) -> None:
        """Wait for the current mount's bootstrap and re-raise its failure.

        Raises:
            RuntimeError: If the gate is not mounted.

        """
        task = self._task
        if task is None:
            msg = "ContainerInitializer.wait_ready() requires a mounted gate; call mount() first."
            raise RuntimeError(msg)
        await task
        if self._task is task:
            self._state = GateState.READY

    async def _run_bootstrap(self) -> None:
        await type(self).bootstrap()

    def _on_bootstrap_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Container bootstrap failed", exc_info=error)
            return
        if self._task is not task:
            logger.debug("Ignoring bootstrap completion for an unmounted gate")
            return
        self._state = GateState.READY


def container_initializer_factory(bootstrap: BootstrapFunction) -> type[ContainerInitializer]:
    """Create a ``ContainerInitializer`` subclass bound to ``bootstrap``.

    Args:
        bootstrap: Asynchronous operation run once per mount, usually the
            generated ``init_container``.

    """
    return type(
        "ContainerInitializer",
        (ContainerInitializer,),
        {
            "bootstrap": staticmethod(bootstrap),
            "__module__": getattr(bootstrap, "__module__", __name__),
        },
    )


async def initialize_modules(
    container: Container[Any],
    modules: Sequence[str],
    *,
    package: str | None = None,
) -> list[str]:
    """Import the modules registering items into ``container``.

    Each module is imported at most once per container: imported names are
    tracked in ``container.initialized_modules`` and skipped on later calls.

    Args:
        container: Container whose registrations the modules perform.
        modules: Absolute or relative module names, imported in order.
        package: Anchor package for relative names, usually ``__package__`` of
            the generated module.

    Returns:
        Names of the modules imported by this call.

    Raises:
        UIWireInitializationError: If a module name cannot be resolved or a
            module fails to import. Remaining modules are not imported.

    """
    imported: list[str] = []
    for module_reference in modules:
        try:
            module_name = importlib.util.resolve_name(module_reference, package)
        except (ImportError, ValueError) as error:
            msg = f"Cannot resolve container module {module_reference!r} from package {package!r}."
            raise UIWireInitializationError(msg) from error

        if module_name in container.initialized_modules:
            continue

        try:
            importlib.import_module(module_name)
        except Exception as error:
            msg = f"Failed to import container module {module_name!r}."
            raise UIWireInitializationError(msg) from error

        container.initialized_modules.add(module_name)
        imported.append(module_name)
        await asyncio.sleep(0)

    logger.debug(
        "Initialized %d container modules (%d already initialized)",
        len(imported),
        len(modules) - len(imported),
    )
    return imported
