class UIWireError(Exception):
    """Represent a base class for all uiwire-specific failures.

    Catch this type when you want to handle any uiwire error path without
    matching each concrete exception class individually.
    """


class UIWireInvalidRegistrationError(UIWireError):
    """Signal invalid registration arguments.

    Raised by ``Container.register_config``, ``Container.register_component``,
    ``Container.register_function`` and the registration helpers bound to a
    container when the name, the dependency list or the implementation is
    invalid.

    Typical fixes include passing a non-empty string name, passing the
    dependency keys as a list or tuple instead of a bare string, and declaring
    a trailing positional parameter that receives the dependency set.
    """


class UIWireDependencyNotRegisteredError(UIWireError):
    """Signal that a declared dependency key has no registered item.

    Raised during dependency resolution only when the container was created
    with ``strict_resolution=True``. Lenient containers omit the key from the
    dependency set instead.

    Typical fixes include registering the missing item, making sure the module
    that registers it is imported (``init_container``), or passing an override
    for the key at the call site.
    """


class UIWireInitializationError(UIWireError):
    """Signal that the container bootstrap could not import a module.

    Raised by ``initialize_modules`` (and therefore by the generated
    ``init_container``) when one of the contributing modules fails to import.
    The original exception is chained as ``__cause__``. Bootstrap is not
    retried.
    """


class UIWireCodegenError(UIWireError):
    """Signal that the container module could not be generated.

    Raised by the generator when the rendered module is not valid Python, or
    when the generator configuration cannot describe a valid module (for
    example an invalid runtime module name).
    """
