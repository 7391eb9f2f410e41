"""Tests for container registration, lookup and per-call dependency resolution."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Annotated, Any, get_args, get_origin

import pytest

from uiwire import (
    ComponentItem,
    ConfigItem,
    Container,
    ExtractedContainerItem,
    FunctionItem,
    ItemKind,
    UIWireDependencyNotRegisteredError,
    UIWireInvalidRegistrationError,
    get_item_metadata,
)
from uiwire._internal.items import ExtractedItemMarker


def decorate(message: str) -> str:
    return f"** {message} **"


def use_decorated_message(message: str, deps: Mapping[str, Any]) -> str:
    return deps["decorate"](message)


def message_decorator(*, message: str, deps: Mapping[str, Any]) -> str:
    return f"<p>{deps['use_decorated_message'](message)}</p>"


class TestRegistrationMetadata:
    def test_config_item_metadata(self, container: Container[Any]) -> None:
        item = container.register_config("CONFIG", {"DECORATION": "**"})

        assert isinstance(item, ConfigItem)
        assert item == {"DECORATION": "**"}
        assert get_item_metadata(container.get("CONFIG")) == get_item_metadata(item)
        metadata = get_item_metadata(item)
        assert metadata is not None
        assert metadata.name == "CONFIG"
        assert metadata.kind is ItemKind.CONFIG

    @pytest.mark.parametrize(
        ("register", "kind"),
        [
            ("register_function", ItemKind.FUNCTION),
            ("register_hook", ItemKind.HOOK),
        ],
    )
    def test_function_item_metadata(self, container: Container[Any], register: str, kind: ItemKind) -> None:
        item = getattr(container, register)("decorate", [], decorate)

        assert isinstance(item, FunctionItem)
        assert container.get("decorate") is item
        metadata = get_item_metadata(item)
        assert metadata is not None
        assert metadata.name == "decorate"
        assert metadata.kind is kind

    def test_component_item_metadata(self, container: Container[Any]) -> None:
        item = container.register_component("MessageDecorator", ["use_decorated_message"], message_decorator)

        assert isinstance(item, ComponentItem)
        assert container.get("MessageDecorator") is item
        metadata = get_item_metadata(item)
        assert metadata is not None
        assert metadata.name == "MessageDecorator"
        assert metadata.kind is ItemKind.COMPONENT
        assert item.display_name == "uiwire(message_decorator)"
        assert item.dependencies == ("use_decorated_message",)

    def test_plain_objects_have_no_metadata(self) -> None:
        assert get_item_metadata(decorate) is None
        assert get_item_metadata({"DECORATION": "**"}) is None

    def test_get_unknown_name_returns_none(self, container: Container[Any]) -> None:
        assert container.get("missing") is None

    def test_reregistration_replaces_item(self, container: Container[Any]) -> None:
        container.register_config("CONFIG", {"DECORATION": "**"})
        replacement = container.register_config("CONFIG", {"DECORATION": "##"})

        assert container.get("CONFIG") is replacement
        assert container.names() == ["CONFIG"]
        assert len(container) == 1

    def test_names_keep_registration_order(self, container: Container[Any]) -> None:
        container.register_function("decorate", [], decorate)
        container.register_config("CONFIG", {})
        container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        assert container.names() == ["decorate", "CONFIG", "use_decorated_message"]
        assert list(container) == container.names()
        assert "CONFIG" in container
        assert "missing" not in container


class TestRegistrationValidation:
    @pytest.mark.parametrize("name", ["", None, 1])
    def test_invalid_name(self, container: Container[Any], name: Any) -> None:
        with pytest.raises(UIWireInvalidRegistrationError, match="parameter 'name'"):
            container.register_config(name, {})

    def test_config_must_be_mapping(self, container: Container[Any]) -> None:
        with pytest.raises(UIWireInvalidRegistrationError, match="expects a mapping"):
            container.register_config("CONFIG", ["DECORATION"])  # type: ignore[arg-type]

    @pytest.mark.parametrize("dependencies", ["decorate", b"decorate", None, ["ok", ""], ["ok", 3]])
    def test_invalid_dependencies(self, container: Container[Any], dependencies: Any) -> None:
        with pytest.raises(UIWireInvalidRegistrationError):
            container.register_function("use_decorated_message", dependencies, use_decorated_message)

    def test_implementation_must_be_callable(self, container: Container[Any]) -> None:
        with pytest.raises(UIWireInvalidRegistrationError, match="callable implementation"):
            container.register_component("MessageDecorator", [], "not callable")  # type: ignore[arg-type]

    def test_function_with_dependencies_needs_positional_parameter(self, container: Container[Any]) -> None:
        def keyword_only(*, message: str) -> str:
            return message

        with pytest.raises(UIWireInvalidRegistrationError, match="no positional parameter"):
            container.register_function("keyword_only", ["decorate"], keyword_only)

    def test_function_with_dependencies_rejects_var_positional(self, container: Container[Any]) -> None:
        def variadic(*args: Any) -> None:
            return None

        with pytest.raises(UIWireInvalidRegistrationError, match="'\\*args'"):
            container.register_function("variadic", ["decorate"], variadic)

    def test_reserved_parameter_name(self, container: Container[Any]) -> None:
        def clashing(deps: str, dependency_set: Mapping[str, Any]) -> str:
            return deps

        with pytest.raises(UIWireInvalidRegistrationError, match="reserved parameter name"):
            container.register_function("clashing", ["decorate"], clashing)

    def test_register_function_rejects_component_kind(self, container: Container[Any]) -> None:
        with pytest.raises(UIWireInvalidRegistrationError, match="FUNCTION or HOOK"):
            container.register_function("decorate", [], decorate, ItemKind.COMPONENT)

    def test_registration_failure_leaves_registry_untouched(self, container: Container[Any]) -> None:
        with pytest.raises(UIWireInvalidRegistrationError):
            container.register_function("decorate", "decorate", decorate)  # type: ignore[arg-type]

        assert container.get("decorate") is None


class TestResolution:
    def test_registry_value_without_override(self, container: Container[Any]) -> None:
        config = container.register_config("CONFIG", {"DECORATION": "**"})

        dependency_set = container.build_dependencies(["CONFIG"])

        assert dependency_set["CONFIG"] is config

    def test_override_takes_precedence(self, container: Container[Any]) -> None:
        container.register_config("CONFIG", {"DECORATION": "**"})
        override = {"DECORATION": "##"}

        dependency_set = container.build_dependencies(["CONFIG"], {"CONFIG": override})

        assert dependency_set["CONFIG"] is override
        assert container.build_dependencies(["CONFIG"])["CONFIG"] == {"DECORATION": "**"}

    def test_none_override_falls_back_to_registry(self, container: Container[Any]) -> None:
        config = container.register_config("CONFIG", {"DECORATION": "**"})

        dependency_set = container.build_dependencies(["CONFIG"], {"CONFIG": None})

        assert dependency_set["CONFIG"] is config

    def test_unresolvable_key_is_absent(self, container: Container[Any]) -> None:
        dependency_set = container.build_dependencies(["missing"])

        assert "missing" not in dependency_set
        assert dict(dependency_set) == {}

    def test_override_for_unregistered_key(self, container: Container[Any]) -> None:
        dependency_set = container.build_dependencies(["missing"], {"missing": 1})

        assert dependency_set["missing"] == 1

    def test_undeclared_override_is_ignored(self, container: Container[Any]) -> None:
        dependency_set = container.build_dependencies(["CONFIG"], {"other": 1})

        assert "other" not in dependency_set

    def test_dependency_set_is_read_only(self, container: Container[Any]) -> None:
        container.register_config("CONFIG", {})
        dependency_set = container.build_dependencies(["CONFIG"])

        with pytest.raises(TypeError):
            dependency_set["CONFIG"] = {}  # type: ignore[index]

    def test_dependency_set_keeps_declaration_order(self, container: Container[Any]) -> None:
        container.register_config("B", {})
        container.register_config("A", {})

        assert list(container.build_dependencies(["A", "B"])) == ["A", "B"]

    def test_strict_resolution_raises(self, strict_container: Container[Any]) -> None:
        with pytest.raises(UIWireDependencyNotRegisteredError, match="'missing'"):
            strict_container.build_dependencies(["missing"])

    def test_strict_resolution_accepts_override(self, strict_container: Container[Any]) -> None:
        assert strict_container.build_dependencies(["missing"], {"missing": 1})["missing"] == 1

    def test_items_resolved_at_call_time(self, container: Container[Any]) -> None:
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)
        container.register_function("decorate", [], decorate)

        assert hook("hi") == "** hi **"


class TestFunctionItemCalls:
    def test_function_without_dependencies_is_called_unchanged(self, container: Container[Any]) -> None:
        item = container.register_function("decorate", [], decorate)

        assert item("hi") == "** hi **"
        assert item(message="hi") == "** hi **"

    def test_trailing_positional_override(self, container: Container[Any]) -> None:
        container.register_function("decorate", [], decorate)
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        assert hook("hi") == "** hi **"
        assert hook("hi", {"decorate": lambda message: f"## {message} ##"}) == "## hi ##"

    def test_keyword_override(self, container: Container[Any]) -> None:
        container.register_function("decorate", [], decorate)
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        assert hook("hi", deps={"decorate": lambda message: f"## {message} ##"}) == "## hi ##"

    def test_override_applies_to_one_call_only(self, container: Container[Any]) -> None:
        container.register_function("decorate", [], decorate)
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        hook("hi", {"decorate": lambda message: message})

        assert hook("hi") == "** hi **"

    def test_positional_and_keyword_override_conflict(self, container: Container[Any]) -> None:
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        with pytest.raises(TypeError, match="multiple override bags"):
            hook("hi", {}, deps={})

    def test_too_many_positional_arguments(self, container: Container[Any]) -> None:
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        with pytest.raises(TypeError, match="at most 2 positional"):
            hook("hi", {}, {})

    def test_positional_only_dependency_parameter(self, container: Container[Any]) -> None:
        def positional_only(message: str, dependency_set: Mapping[str, Any], /) -> str:
            return dependency_set["decorate"](message)

        container.register_function("decorate", [], decorate)
        item = container.register_function("positional_only", ["decorate"], positional_only)

        assert item("hi") == "** hi **"

    def test_keyword_arguments_are_forwarded(self, container: Container[Any]) -> None:
        def greet(name: str, deps: Mapping[str, Any], *, punctuation: str = "!") -> str:
            return f"{deps['CONFIG']['GREETING']} {name}{punctuation}"

        container.register_config("CONFIG", {"GREETING": "Hello"})
        item = container.register_function("greet", ["CONFIG"], greet)

        assert item("Ada", punctuation="?") == "Hello Ada?"

    def test_public_signature_hides_dependency_set(self, container: Container[Any]) -> None:
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        parameters = inspect.signature(hook).parameters

        assert list(parameters) == ["message", "deps"]
        assert parameters["deps"].kind is inspect.Parameter.KEYWORD_ONLY
        assert parameters["deps"].default is None

    def test_wrapper_keeps_function_identity(self, container: Container[Any]) -> None:
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        assert hook.__name__ == "use_decorated_message"
        assert hook.__wrapped__ is use_decorated_message
        assert hook.dependencies == ("decorate",)


class TestNestedOverrides:
    def test_override_does_not_propagate_into_nested_resolution(self, container: Container[Any]) -> None:
        container.register_config("CONFIG", {"DECORATION": "**"})

        def decorate_with_config(message: str, deps: Mapping[str, Any]) -> str:
            decoration = deps["CONFIG"]["DECORATION"]
            return f"{decoration} {message} {decoration}"

        container.register_function("decorate", ["CONFIG"], decorate_with_config)
        hook = container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)

        overridden_config = {"CONFIG": {"DECORATION": "##"}}

        assert hook("hi", overridden_config) == "** hi **"

    def test_nested_call_with_its_own_override(self, container: Container[Any]) -> None:
        container.register_config("CONFIG", {"DECORATION": "**"})

        def decorate_with_config(message: str, deps: Mapping[str, Any]) -> str:
            decoration = deps["CONFIG"]["DECORATION"]
            return f"{decoration} {message} {decoration}"

        container.register_function("decorate", ["CONFIG"], decorate_with_config)

        def use_plain_message(message: str, deps: Mapping[str, Any]) -> str:
            return deps["decorate"](message, {"CONFIG": {"DECORATION": "~"}})

        hook = container.register_hook("use_plain_message", ["decorate"], use_plain_message)

        assert hook("hi") == "~ hi ~"


class TestComponentItemRendering:
    @pytest.fixture()
    def component(self, container: Container[Any]) -> ComponentItem:
        container.register_function("decorate", [], decorate)
        container.register_hook("use_decorated_message", ["decorate"], use_decorated_message)
        return container.register_component("MessageDecorator", ["use_decorated_message"], message_decorator)

    def test_renders_with_registry_dependencies(self, component: ComponentItem) -> None:
        assert component(message="hi") == "<p>** hi **</p>"

    def test_deps_prop_overrides_for_one_render(self, component: ComponentItem) -> None:
        rendered = component(
            message="hi",
            deps={"use_decorated_message": lambda message: f"## {message} ##"},
        )

        assert rendered == "<p>## hi ##</p>"
        assert component(message="hi") == "<p>** hi **</p>"

    def test_same_props_reuse_dependency_set(self, container: Container[Any]) -> None:
        received: list[Mapping[str, Any]] = []

        def capture(*, message: str, deps: Mapping[str, Any]) -> str:
            received.append(deps)
            return message

        container.register_config("CONFIG", {})
        component = container.register_component("Capture", ["CONFIG"], capture)

        component(message="hi")
        component(message="hi")
        component(message="bye")

        assert received[0] is received[1]
        assert received[2] is not received[1]

    def test_new_override_bag_with_same_values_is_reused(self, container: Container[Any]) -> None:
        received: list[Mapping[str, Any]] = []

        def capture(*, deps: Mapping[str, Any]) -> None:
            received.append(deps)

        config = {"DECORATION": "##"}
        component = container.register_component("Capture", ["CONFIG"], capture)

        component(deps={"CONFIG": config})
        component(deps={"CONFIG": config})
        component(deps={"CONFIG": {"DECORATION": "##"}})

        assert received[0] is received[1]
        assert received[2] is not received[1]
        assert received[2]["CONFIG"] == config

    def test_component_wrapper_keeps_identity(self, component: ComponentItem) -> None:
        assert component.__name__ == "message_decorator"
        assert component.__wrapped__ is message_decorator

    def test_reregistered_dependency_is_picked_up(self, container: Container[Any]) -> None:
        container.register_function("greet", [], lambda message: f"v1 {message}")

        def greeting(*, message: str, deps: Mapping[str, Any]) -> str:
            return deps["greet"](message)

        component = container.register_component("Greeting", ["greet"], greeting)

        assert component(message="hi") == "v1 hi"

        container.register_function("greet", [], lambda message: f"v2 {message}")

        assert component(message="hi") == "v2 hi"

    def test_late_registered_dependency_is_picked_up(self, container: Container[Any]) -> None:
        received: list[list[str]] = []

        def capture(*, message: str, deps: Mapping[str, Any]) -> None:
            received.append(list(deps))

        component = container.register_component("Capture", ["greet"], capture)

        component(message="hi")
        container.register_function("greet", [], str.upper)
        component(message="hi")

        assert received == [[], ["greet"]]

    def test_unchanged_registry_keeps_memoized_dependency_set(self, container: Container[Any]) -> None:
        received: list[Mapping[str, Any]] = []

        def capture(*, message: str, deps: Mapping[str, Any]) -> None:
            received.append(deps)

        container.register_function("greet", [], str.upper)
        component = container.register_component("Capture", ["greet"], capture)

        component(message="hi")
        container.register_config("unrelated", {})
        component(message="hi")

        assert received[0] is received[1]


class TestExtractedContainerItem:
    def test_marks_the_item_type(self) -> None:
        extracted = ExtractedContainerItem[FunctionItem[[str], str]]

        assert get_origin(extracted) is Annotated
        item_type, marker = get_args(extracted)
        assert item_type == FunctionItem[[str], str]
        assert isinstance(marker, ExtractedItemMarker)

    def test_function_item_keeps_call_parameters(self) -> None:
        assert get_args(FunctionItem[[str, int], str]) == ((str, int), str)

    def test_config_item_is_consumed_as_mapping(self) -> None:
        item_type, _ = get_args(ExtractedContainerItem[ConfigItem])

        assert issubclass(item_type, Mapping)
