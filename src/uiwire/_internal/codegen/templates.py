from textwrap import dedent

MODULE_TEMPLATE = dedent(
    """
    {{ module_docstring_block }}

    {{ imports_block }}

    {{ dependencies_block }}

    {{ container_block }}

    {{ initializer_block }}
    """,
).strip()

IMPORTS_TEMPLATE = dedent(
    """
    from __future__ import annotations

    from typing import {% if type_imports %}TYPE_CHECKING, {% endif %}TypedDict

    from {{ runtime_module }} import (
    {% for name in runtime_names %}
        {{ name }},
    {% endfor %}
    )
    {% if type_imports %}

    if TYPE_CHECKING:
    {% for line in type_imports %}
        {{ line }}
    {% endfor %}
    {% endif %}
    """,
).strip()

DEPENDENCIES_TEMPLATE = dedent(
    """
    ContainerDependencies = TypedDict(
        "ContainerDependencies",
    {% if entries %}
        {
    {% for key, annotation in entries %}
            {{ key }}: {{ annotation }},
    {% endfor %}
        },
    {% else %}
        {},
    {% endif %}
        total=False,
    )
    \"\"\"Dependency keys registered in ``container`` mapped to the types dependents consume.\"\"\"
    """,
).strip()

CONTAINER_TEMPLATE = dedent(
    """
    container: Container[ContainerDependencies] = Container()

    register_component = register_component_factory(container)
    register_hook = register_hook_factory(container)
    register_function = register_function_factory(container)
    register_config = register_config_factory(container)
    """,
).strip()

INITIALIZER_TEMPLATE = dedent(
    """
    CONTRIBUTING_MODULES: tuple[str, ...] = (
    {% for module in modules %}
        {{ module }},
    {% endfor %}
    )


    async def init_container() -> None:
        \"\"\"Import every module registering items into ``container``.\"\"\"
        await initialize_modules(container, CONTRIBUTING_MODULES, package=__package__)


    ContainerInitializer = container_initializer_factory(init_container)

    __all__ = [
        "CONTRIBUTING_MODULES",
        "ContainerDependencies",
        "ContainerInitializer",
        "container",
        "init_container",
        "register_component",
        "register_config",
        "register_function",
        "register_hook",
    ]
    """,
).strip()
