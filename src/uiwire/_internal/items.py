from __future__ import annotations

import functools
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Generic, ParamSpec, TypeAlias, TypeVar, Union

from uiwire._internal.injection import DEPS_PROP, FunctionItemInspector

T = TypeVar("T")
P = ParamSpec("P")
R = TypeVar("R")

ITEM_METADATA_ATTR = "__uiwire_item__"

DependencyResolver: TypeAlias = Callable[
    [Sequence[str], Union[Mapping[str, Any], None]],
    Mapping[str, Any],
]
"""Callable building a dependency set from a dependency list and an optional override bag."""

RegistryLookup: TypeAlias = Callable[[str], Any]
"""Callable returning the item currently registered under a key, or ``None``."""

_FUNCTION_ITEM_INSPECTOR = FunctionItemInspector()


class ItemKind(Enum):
    """Tag distinguishing the four kinds of container items."""

    CONFIG = "config"
    """Static configuration mapping, consumed as-is."""

    COMPONENT = "component"
    """Renderable called with keyword props."""

    FUNCTION = "function"
    """Plain function."""

    HOOK = "hook"
    """Function meant to be called while rendering a component."""


@dataclass(frozen=True, slots=True)
class ItemMetadata:
    """Metadata record attached to every registered item."""

    kind: ItemKind
    name: str


def get_item_metadata(candidate: object) -> ItemMetadata | None:
    """Return the metadata attached to ``candidate``, or ``None`` for plain objects."""
    metadata = getattr(candidate, ITEM_METADATA_ATTR, None)
    if isinstance(metadata, ItemMetadata):
        return metadata
    return None


class ConfigItem(dict[str, Any]):
    """Configuration mapping registered under a dependency key.

    The item is a regular ``dict`` so dependents read it directly, for example
    ``deps["CONFIG"]["DECORATION"]``. Equality ignores the metadata.
    """

    def __init__(self, name: str, config: Mapping[str, Any]) -> None:
        super().__init__(config)
        self._metadata = ItemMetadata(kind=ItemKind.CONFIG, name=name)

    @property
    def __uiwire_item__(self) -> ItemMetadata:
        return self._metadata

    def __repr__(self) -> str:
        return f"ConfigItem({self._metadata.name!r}, {dict.__repr__(self)})"


class FunctionItem(Generic[P, R]):
    """Callable wrapper resolving its dependency set on every call.

    ``P`` and ``R`` are the parameters and return type of the implementation.
    The trailing dependency-set parameter of ``P`` is the slot callers fill
    with the optional override bag.
    Positional arguments are forwarded to the implementation up to its
    dependency-set parameter. One extra trailing positional argument, or the
    ``deps`` keyword, is read as the override bag for this call only.
    """

    def __init__(
        self,
        *,
        name: str,
        kind: ItemKind,
        dependencies: tuple[str, ...],
        func: Callable[P, R],
        resolve_dependencies: DependencyResolver,
    ) -> None:
        inspection = _FUNCTION_ITEM_INSPECTOR.inspect_callable(
            func,
            name=name,
            has_dependencies=bool(dependencies),
        )
        functools.update_wrapper(self, func)
        self._metadata = ItemMetadata(kind=kind, name=name)
        self._dependencies = dependencies
        self._func = func
        self._resolve_dependencies = resolve_dependencies
        self._dependency_parameter = inspection.dependency_parameter
        self.__signature__ = inspection.public_signature

    @property
    def __uiwire_item__(self) -> ItemMetadata:
        return self._metadata

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Dependency keys declared at registration, in declaration order."""
        return self._dependencies

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        return self._call(args, dict(kwargs))

    def _call(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> R:
        parameter = self._dependency_parameter
        if parameter is None:
            return self._func(*args, **kwargs)

        overrides = kwargs.pop(DEPS_PROP, None)
        split = parameter.position
        if len(args) > split + 1:
            msg = (
                f"{self._metadata.name}() takes at most {split + 1} positional "
                f"arguments but {len(args)} were given"
            )
            raise TypeError(msg)
        if len(args) == split + 1:
            if overrides is not None:
                msg = f"{self._metadata.name}() got multiple override bags"
                raise TypeError(msg)
            overrides = args[split]
            args = args[:split]

        dependency_set = self._resolve_dependencies(self._dependencies, overrides)
        if parameter.positional_only:
            return self._func(*args, dependency_set, **kwargs)
        kwargs[parameter.name] = dependency_set
        return self._func(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<FunctionItem {self._metadata.kind.value} {self._metadata.name!r}>"


class ComponentItem:
    """Renderable wrapper injecting the dependency set as the ``deps`` prop.

    The ``deps`` prop passed by the caller is the override bag. The computed
    props are memoized against identity changes of the other props, of the
    override bag and of the items registered under the declared keys, so
    re-rendering with the same inputs reuses the same dependency set until a
    declared dependency is registered or replaced.
    """

    def __init__(
        self,
        *,
        name: str,
        dependencies: tuple[str, ...],
        component: Callable[..., Any],
        resolve_dependencies: DependencyResolver,
        lookup_registered: RegistryLookup,
    ) -> None:
        self._metadata = ItemMetadata(kind=ItemKind.COMPONENT, name=name)
        self._dependencies = dependencies
        self._component = component
        self._resolve_dependencies = resolve_dependencies
        self._lookup_registered = lookup_registered
        self._memo: tuple[_ShallowKey, dict[str, Any]] | None = None
        functools.update_wrapper(self, component, updated=())
        component_name = getattr(component, "__qualname__", None) or "Component"
        self.display_name = f"uiwire({component_name})"

    @property
    def __uiwire_item__(self) -> ItemMetadata:
        return self._metadata

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Dependency keys declared at registration, in declaration order."""
        return self._dependencies

    def __call__(self, **props: Any) -> Any:
        overrides = props.pop(DEPS_PROP, None) or {}
        props_with_deps = self._props_with_dependencies(props=props, overrides=overrides)
        return self._component(**props_with_deps)

    def _props_with_dependencies(
        self,
        *,
        props: dict[str, Any],
        overrides: Mapping[str, Any],
    ) -> dict[str, Any]:
        registered = {key: self._lookup_registered(key) for key in self._dependencies}
        memo_key = (_shallow_key(props), _shallow_key(overrides), _shallow_key(registered))
        if self._memo is not None and _shallow_equal(self._memo[0], memo_key):
            return self._memo[1]

        props_with_deps = {
            **props,
            DEPS_PROP: self._resolve_dependencies(self._dependencies, overrides),
        }
        self._memo = (memo_key, props_with_deps)
        return props_with_deps

    def __repr__(self) -> str:
        return f"<ComponentItem {self._metadata.name!r} {self.display_name}>"


_ShallowKey: TypeAlias = tuple[tuple[tuple[str, Any], ...], ...]


def _shallow_key(values: Mapping[str, Any]) -> tuple[tuple[str, Any], ...]:
    return tuple(values.items())


def _shallow_equal(left: _ShallowKey, right: _ShallowKey) -> bool:
    for left_items, right_items in zip(left, right):
        if len(left_items) != len(right_items):
            return False
        for (left_key, left_value), (right_key, right_value) in zip(left_items, right_items):
            if left_key != right_key or left_value is not right_value:
                return False
    return True


class ExtractedItemMarker:
    """Marker identifying a dependency-map entry normalized to its consumable type."""


ExtractedContainerItem: TypeAlias = Annotated[T, ExtractedItemMarker()]
"""Type an item as what dependents consume.

Every item is itself its consumable form: a ``ConfigItem`` is the ``dict``
read by dependents, a ``FunctionItem[P, R]`` is called with ``P`` and returns
``R``, and a ``ComponentItem`` is called with keyword props. Generated
container modules use ``ExtractedContainerItem[<item>]`` inside string
annotations of ``ContainerDependencies``; the marker tells those entries
apart from plain annotations at runtime.
"""


ContainerItem: TypeAlias = Union[ConfigItem, ComponentItem, FunctionItem[..., Any]]
"""Any object the container stores."""
