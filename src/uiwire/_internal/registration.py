from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, ParamSpec, Protocol, TypeVar, overload

from uiwire._internal.container import Container
from uiwire._internal.items import ComponentItem, ConfigItem, FunctionItem, ItemKind

P = ParamSpec("P")
R = TypeVar("R")


class RegisterComponent(Protocol):
    """Signature of the component registration entry point bound to a container."""

    @overload
    def __call__(
        self,
        name: str,
        dependencies: Sequence[str],
        component: Callable[..., Any],
    ) -> ComponentItem: ...

    @overload
    def __call__(
        self,
        name: str,
        dependencies: Sequence[str],
        component: None = None,
    ) -> Callable[[Callable[..., Any]], ComponentItem]: ...


class RegisterFunction(Protocol):
    """Signature of the function and hook registration entry points bound to a container."""

    @overload
    def __call__(
        self,
        name: str,
        dependencies: Sequence[str],
        func: Callable[P, R],
    ) -> FunctionItem[P, R]: ...

    @overload
    def __call__(
        self,
        name: str,
        dependencies: Sequence[str],
        func: None = None,
    ) -> Callable[[Callable[P, R]], FunctionItem[P, R]]: ...


class RegisterConfig(Protocol):
    """Signature of the config registration entry point bound to a container."""

    def __call__(self, name: str, config: Mapping[str, Any]) -> ConfigItem: ...


def register_component_factory(container: Container[Any]) -> RegisterComponent:
    """Bind a component registration entry point to ``container``.

    The entry point registers directly when given the implementation, and
    returns a decorator otherwise.

    Args:
        container: Container receiving the registrations.

    Examples:
        .. code-block:: python

            register_component = register_component_factory(container)


            @register_component("MessageDecorator", ["use_decorated_message"])
            def MessageDecorator(*, message: str, deps) -> str:
                return f"<p>{deps['use_decorated_message'](message)}</p>"

    """

    def register_component(
        name: str,
        dependencies: Sequence[str],
        component: Callable[..., Any] | None = None,
    ) -> ComponentItem | Callable[[Callable[..., Any]], ComponentItem]:
        if component is not None:
            return container.register_component(name, dependencies, component)

        def decorator(decorated: Callable[..., Any]) -> ComponentItem:
            return container.register_component(name, dependencies, decorated)

        return decorator

    return register_component  # type: ignore[return-value]


def register_function_factory(
    container: Container[Any],
    kind: ItemKind = ItemKind.FUNCTION,
) -> RegisterFunction:
    """Bind a function registration entry point to ``container``.

    Args:
        container: Container receiving the registrations.
        kind: Tag of the registered items, ``ItemKind.FUNCTION`` or
            ``ItemKind.HOOK``.

    Examples:
        .. code-block:: python

            register_function = register_function_factory(container)


            @register_function("decorate_message", ["CONFIG"])
            def decorate_message(message: str, deps) -> str:
                decoration = deps["CONFIG"]["DECORATION"]
                return f"{decoration} {message} {decoration}"

    """

    def register_function(
        name: str,
        dependencies: Sequence[str],
        func: Callable[..., Any] | None = None,
    ) -> FunctionItem[..., Any] | Callable[[Callable[..., Any]], FunctionItem[..., Any]]:
        if func is not None:
            return container.register_function(name, dependencies, func, kind)

        def decorator(decorated: Callable[..., Any]) -> FunctionItem[..., Any]:
            return container.register_function(name, dependencies, decorated, kind)

        return decorator

    return register_function  # type: ignore[return-value]


def register_hook_factory(container: Container[Any]) -> RegisterFunction:
    """Bind a hook registration entry point to ``container``.

    Args:
        container: Container receiving the registrations.

    """
    return register_function_factory(container, ItemKind.HOOK)


def register_config_factory(container: Container[Any]) -> RegisterConfig:
    """Bind a config registration entry point to ``container``.

    Args:
        container: Container receiving the registrations.

    """

    def register_config(name: str, config: Mapping[str, Any]) -> ConfigItem:
        return container.register_config(name, config)

    return register_config
