from uiwire._internal.container import Container
from uiwire._internal.initializer import (
    ContainerInitializer,
    GateState,
    container_initializer_factory,
    initialize_modules,
)
from uiwire._internal.injection import DEPS_PROP
from uiwire._internal.items import (
    ComponentItem,
    ConfigItem,
    ExtractedContainerItem,
    FunctionItem,
    ItemKind,
    ItemMetadata,
    get_item_metadata,
)
from uiwire._internal.registration import (
    register_component_factory,
    register_config_factory,
    register_function_factory,
    register_hook_factory,
)
from uiwire.exceptions import (
    UIWireCodegenError,
    UIWireDependencyNotRegisteredError,
    UIWireError,
    UIWireInitializationError,
    UIWireInvalidRegistrationError,
)

__all__ = [
    "DEPS_PROP",
    "ComponentItem",
    "ConfigItem",
    "Container",
    "ContainerInitializer",
    "ExtractedContainerItem",
    "FunctionItem",
    "GateState",
    "ItemKind",
    "ItemMetadata",
    "UIWireCodegenError",
    "UIWireDependencyNotRegisteredError",
    "UIWireError",
    "UIWireInitializationError",
    "UIWireInvalidRegistrationError",
    "container_initializer_factory",
    "get_item_metadata",
    "initialize_modules",
    "register_component_factory",
    "register_config_factory",
    "register_function_factory",
    "register_hook_factory",
]
