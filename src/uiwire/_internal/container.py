from __future__ import annotations

import logging
from collections import ChainMap
from collections.abc import Callable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, Generic, ParamSpec, TypeVar

from uiwire._internal.items import (
    ComponentItem,
    ConfigItem,
    ContainerItem,
    FunctionItem,
    ItemKind,
    get_item_metadata,
)
from uiwire.exceptions import UIWireDependencyNotRegisteredError, UIWireInvalidRegistrationError

CD = TypeVar("CD", bound=Mapping[str, Any])
P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class Container(Generic[CD]):
    """Named registry of config, component, function and hook items.

    Items are registered under a dependency key and declare the keys they
    depend on. Dependencies are never resolved at registration time: each call
    of a function or hook and each render of a component builds a fresh
    dependency set from the registry, letting the caller override any key for
    that call only.

    Generated container modules parameterize the container with their
    ``ContainerDependencies`` mapping type. The parameter is only read by type
    checkers.
    """

    def __init__(self, *, strict_resolution: bool = False) -> None:
        """Initialize an empty container.

        Args:
            strict_resolution: Raise ``UIWireDependencyNotRegisteredError`` when a
                declared dependency is neither overridden nor registered. By
                default the key is left out of the dependency set and the
                dependent implementation decides how to handle its absence.

        Examples:
            .. code-block:: python

                container = Container()
                strict_container = Container(strict_resolution=True)

        """
        self._strict_resolution = strict_resolution
        self._items: dict[str, ContainerItem] = {}
        self.initialized_modules: set[str] = set()

    # region Registration Methods
    def register_config(self, name: str, config: Mapping[str, Any]) -> ConfigItem:
        """Register a configuration mapping.

        The returned item is a ``dict`` holding the same keys and values, so it
        is consumed directly rather than through a wrapper. Re-registering a
        name replaces the previous item.

        Args:
            name: Dependency key of the item.
            config: Mapping of configuration values.

        Raises:
            UIWireInvalidRegistrationError: If ``name`` is invalid or ``config``
                is not a mapping.

        Examples:
            .. code-block:: python

                settings = container.register_config("CONFIG", {"DECORATION": "**"})
                assert settings["DECORATION"] == "**"

        """
        self._validate_name(name, method_name="register_config")
        if not isinstance(config, Mapping):
            msg = (
                f"register_config() expects a mapping for {name!r}, "
                f"got {type(config).__name__}."
            )
            raise UIWireInvalidRegistrationError(msg)

        item = ConfigItem(name, config)
        self._store(name, item)
        return item

    def register_component(
        self,
        name: str,
        dependencies: Sequence[str],
        component: Callable[..., Any],
    ) -> ComponentItem:
        """Register a component rendered with its dependency set.

        The returned wrapper is called with keyword props. The reserved
        ``deps`` prop is the override bag; the implementation receives every
        other prop plus ``deps`` holding the resolved dependency set.

        Args:
            name: Dependency key of the item.
            dependencies: Ordered dependency keys resolved on every render.
            component: Implementation called with the props and ``deps``.

        Raises:
            UIWireInvalidRegistrationError: If any argument is invalid.

        Examples:
            .. code-block:: python

                def message_decorator(*, message: str, deps) -> str:
                    return f"<p>{deps['use_decorated_message'](message)}</p>"


                MessageDecorator = container.register_component(
                    "MessageDecorator",
                    ["use_decorated_message"],
                    message_decorator,
                )
                MessageDecorator(message="hi")

        """
        self._validate_name(name, method_name="register_component")
        normalized_dependencies = self._normalize_dependencies(
            dependencies,
            name=name,
            method_name="register_component",
        )
        self._validate_callable(component, name=name, method_name="register_component")

        item = ComponentItem(
            name=name,
            dependencies=normalized_dependencies,
            component=component,
            resolve_dependencies=self.build_dependencies,
            lookup_registered=self.get,
        )
        self._store(name, item)
        return item

    def register_function(
        self,
        name: str,
        dependencies: Sequence[str],
        func: Callable[P, R],
        kind: ItemKind = ItemKind.FUNCTION,
    ) -> FunctionItem[P, R]:
        """Register a function called with its dependency set.

        When ``dependencies`` is not empty, the last positional parameter of
        ``func`` receives the dependency set. The returned wrapper takes the
        positional arguments before it, plus an optional trailing override bag
        (also accepted as the ``deps`` keyword). Without dependencies, every
        argument is forwarded unchanged and no dependency set is passed.

        Args:
            name: Dependency key of the item.
            dependencies: Ordered dependency keys resolved on every call.
            func: Implementation.
            kind: ``ItemKind.FUNCTION`` or ``ItemKind.HOOK``.

        Raises:
            UIWireInvalidRegistrationError: If any argument is invalid, or
                dependencies are declared but ``func`` has no positional
                parameter to receive them.

        Examples:
            .. code-block:: python

                def decorate_message(message: str, deps) -> str:
                    decoration = deps["CONFIG"]["DECORATION"]
                    return f"{decoration} {message} {decoration}"


                decorate = container.register_function(
                    "decorate_message",
                    ["CONFIG"],
                    decorate_message,
                )
                decorate("hi")
                decorate("hi", {"CONFIG": {"DECORATION": "##"}})

        """
        self._validate_name(name, method_name="register_function")
        normalized_dependencies = self._normalize_dependencies(
            dependencies,
            name=name,
            method_name="register_function",
        )
        self._validate_callable(func, name=name, method_name="register_function")
        if kind not in (ItemKind.FUNCTION, ItemKind.HOOK):
            msg = f"register_function() parameter 'kind' must be FUNCTION or HOOK, got {kind!r}."
            raise UIWireInvalidRegistrationError(msg)

        item: FunctionItem[P, R] = FunctionItem(
            name=name,
            kind=kind,
            dependencies=normalized_dependencies,
            func=func,
            resolve_dependencies=self.build_dependencies,
        )
        self._store(name, item)
        return item

    def register_hook(
        self,
        name: str,
        dependencies: Sequence[str],
        func: Callable[P, R],
    ) -> FunctionItem[P, R]:
        """Register a hook; same call semantics as ``register_function``.

        Args:
            name: Dependency key of the item.
            dependencies: Ordered dependency keys resolved on every call.
            func: Implementation.

        """
        return self.register_function(name, dependencies, func, ItemKind.HOOK)

    # endregion Registration Methods

    # region Resolution Methods
    def get(self, name: str) -> ContainerItem | None:
        """Return the item currently registered under ``name``, or ``None``."""
        return self._items.get(name)

    def build_dependencies(
        self,
        dependencies: Sequence[str],
        overrides: Mapping[str, Any] | None = None,
    ) -> Mapping[str, Any]:
        """Build a read-only dependency set for one call or render.

        Each key is looked up first in ``overrides``, then in the registry.
        ``None`` overrides fall through to the registry. Keys found in neither
        are left out of the result, unless the container uses strict
        resolution.

        Args:
            dependencies: Dependency keys, resolved in order.
            overrides: Values taking precedence over the registry for this call.

        Raises:
            UIWireDependencyNotRegisteredError: In strict mode, for the first key
                that cannot be resolved.

        """
        overlay = {key: value for key, value in (overrides or {}).items() if value is not None}
        lookup: ChainMap[str, Any] = ChainMap(overlay, self._items)

        dependency_set: dict[str, Any] = {}
        for key in dependencies:
            if key in lookup:
                dependency_set[key] = lookup[key]
            elif self._strict_resolution:
                msg = f"Dependency {key!r} is not registered and was not overridden."
                raise UIWireDependencyNotRegisteredError(msg)
        return MappingProxyType(dependency_set)

    # endregion Resolution Methods

    def names(self) -> list[str]:
        """Return registered dependency keys in registration order."""
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def _store(self, name: str, item: ContainerItem) -> None:
        previous = self._items.get(name)
        if previous is not None:
            previous_metadata = get_item_metadata(previous)
            logger.debug(
                "Replacing container item %r (%s) registered earlier",
                name,
                previous_metadata.kind.value if previous_metadata else "unknown",
            )
        self._items[name] = item
        metadata = get_item_metadata(item)
        logger.debug(
            "Registered container item %r as %s",
            name,
            metadata.kind.value if metadata else "unknown",
        )

    def _validate_name(self, name: object, *, method_name: str) -> None:
        if not isinstance(name, str) or not name:
            msg = f"{method_name}() parameter 'name' must be a non-empty string, got {name!r}."
            raise UIWireInvalidRegistrationError(msg)

    def _normalize_dependencies(
        self,
        dependencies: Sequence[str],
        *,
        name: str,
        method_name: str,
    ) -> tuple[str, ...]:
        if isinstance(dependencies, (str, bytes)) or not isinstance(dependencies, Sequence):
            msg = (
                f"{method_name}() expects a list of dependency keys for {name!r}, "
                f"got {dependencies!r}."
            )
            raise UIWireInvalidRegistrationError(msg)

        invalid = [key for key in dependencies if not isinstance(key, str) or not key]
        if invalid:
            msg = f"{method_name}() got invalid dependency keys for {name!r}: {invalid!r}."
            raise UIWireInvalidRegistrationError(msg)
        return tuple(dependencies)

    def _validate_callable(self, candidate: object, *, name: str, method_name: str) -> None:
        if not callable(candidate):
            msg = f"{method_name}() expects a callable implementation for {name!r}."
            raise UIWireInvalidRegistrationError(msg)
