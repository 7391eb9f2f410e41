from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from uiwire.exceptions import UIWireInvalidRegistrationError

DEPS_PROP = "deps"
"""Reserved argument name carrying the override bag in and the dependency set out."""

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


@dataclass(frozen=True, slots=True)
class DependencySetParameter:
    """Trailing positional parameter that receives the dependency set."""

    name: str
    position: int
    positional_only: bool


@dataclass(frozen=True, slots=True)
class FunctionItemInspection:
    """Call metadata derived from a registered function signature."""

    signature: inspect.Signature
    dependency_parameter: DependencySetParameter | None
    public_signature: inspect.Signature


@dataclass(slots=True)
class FunctionItemInspector:
    """Inspect registered functions for their dependency-set parameter and public signature."""

    def inspect_callable(
        self,
        callable_obj: Callable[..., Any],
        *,
        name: str,
        has_dependencies: bool,
    ) -> FunctionItemInspection:
        """Build call metadata for a function registered under ``name``.

        Args:
            callable_obj: Function implementation passed to the registration call.
            name: Dependency key used in error messages.
            has_dependencies: Whether the registration declared any dependency key.

        Raises:
            UIWireInvalidRegistrationError: If the signature cannot be inspected, or
                dependencies are declared but there is no positional parameter to
                receive them.

        """
        try:
            signature = inspect.signature(callable_obj)
        except (TypeError, ValueError) as error:
            msg = f"Cannot inspect the signature of the function registered as {name!r}."
            raise UIWireInvalidRegistrationError(msg) from error

        if not has_dependencies:
            return FunctionItemInspection(
                signature=signature,
                dependency_parameter=None,
                public_signature=signature,
            )

        dependency_parameter = self.extract_dependency_parameter(signature=signature, name=name)
        public_signature = self.build_public_signature(
            signature=signature,
            dependency_parameter=dependency_parameter,
        )
        return FunctionItemInspection(
            signature=signature,
            dependency_parameter=dependency_parameter,
            public_signature=public_signature,
        )

    def extract_dependency_parameter(
        self,
        *,
        signature: inspect.Signature,
        name: str,
    ) -> DependencySetParameter:
        """Return the last positional parameter, which receives the dependency set."""
        parameters = list(signature.parameters.values())
        if any(parameter.kind is inspect.Parameter.VAR_POSITIONAL for parameter in parameters):
            msg = (
                f"Function registered as {name!r} declares dependencies and '*args'; "
                "the dependency set must be its last positional parameter."
            )
            raise UIWireInvalidRegistrationError(msg)

        positional = [parameter for parameter in parameters if parameter.kind in _POSITIONAL_KINDS]
        if not positional:
            msg = (
                f"Function registered as {name!r} declares dependencies but has no "
                "positional parameter to receive the dependency set."
            )
            raise UIWireInvalidRegistrationError(msg)

        last = positional[-1]
        clashing = [
            parameter.name
            for parameter in parameters
            if parameter.name == DEPS_PROP and parameter is not last
        ]
        if clashing:
            msg = (
                f"Function registered as {name!r} uses the reserved parameter name "
                f"{DEPS_PROP!r} for something other than its dependency set."
            )
            raise UIWireInvalidRegistrationError(msg)

        return DependencySetParameter(
            name=last.name,
            position=len(positional) - 1,
            positional_only=last.kind is inspect.Parameter.POSITIONAL_ONLY,
        )

    def build_public_signature(
        self,
        *,
        signature: inspect.Signature,
        dependency_parameter: DependencySetParameter,
    ) -> inspect.Signature:
        """Build a signature that hides the dependency set and exposes the override bag."""
        parameters = [
            parameter
            for parameter in signature.parameters.values()
            if parameter.name != dependency_parameter.name
        ]
        override_parameter = inspect.Parameter(
            DEPS_PROP,
            inspect.Parameter.KEYWORD_ONLY,
            default=None,
        )
        insert_at = len(parameters)
        if parameters and parameters[-1].kind is inspect.Parameter.VAR_KEYWORD:
            insert_at -= 1
        parameters.insert(insert_at, override_parameter)
        return signature.replace(parameters=parameters)
