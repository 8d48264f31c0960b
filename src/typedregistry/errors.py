# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Error hierarchy for :mod:`typedregistry`.

Every failure of a ``make`` call is a :class:`BuildError`. None of them is
retried: the first one raised aborts the whole call.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .typed import TypedValue
    from .typerep import TypeRep


def _show(rep: TypeRep) -> str:
    from .typerep import describe

    return describe(rep)


class RegistryError(Exception):
    """Base class for all typedregistry exceptions.

    Catch this to handle any library-specific failure with a single handler
    while letting standard Python exceptions propagate normally::

        try:
            service = registry.make(Service)
        except RegistryError as e:
            logger.error("Wiring failed: %s", e)
    """


class SignatureError(RegistryError, TypeError):
    """The runtime type of a value or function cannot be introspected.

    Raised at registration time, typically for an un-annotated parameter or
    lambda. Pass ``as_type=`` to ``val``/``fun`` to declare the type.
    """

    def __init__(self, subject: object, reason: str) -> None:
        self.subject = subject
        self.reason = reason
        name = getattr(subject, "__qualname__", None) or repr(subject)
        super().__init__(f"Cannot determine the type of {name}: {reason}")


class BuildError(RegistryError, RuntimeError):
    """Base class for failures while building a value out of a registry."""

    target: TypeRep | None = None


class CycleDetectedError(BuildError):
    """A type is required, directly or transitively, to build itself.

    ``context`` is the chain of types under construction (outermost first)
    and ``repeated`` the type requested again.
    """

    def __init__(self, context: Sequence[TypeRep], repeated: TypeRep) -> None:
        self.context = tuple(context)
        self.repeated = repeated
        self.target = context[0] if context else repeated
        chain = " -> ".join(_show(t) for t in (*self.context, repeated))
        super().__init__(
            "Cycle detected! The types currently being built are "
            f"[{', '.join(_show(t) for t in self.context)}] "
            f"but {_show(repeated)} is requested again ({chain})"
        )


class MissingInputsError(BuildError):
    """Some inputs of a matching constructor could not be built.

    ``built`` holds the values that were produced, ``missing`` the input
    types for which no value or constructor was available.
    """

    def __init__(
        self,
        constructor: TypedValue[object],
        built: Sequence[TypedValue[object]],
        missing: Sequence[TypeRep],
    ) -> None:
        self.constructor = constructor
        self.built = tuple(built)
        self.missing = tuple(missing)
        self.target = _output_of(constructor)
        made = ", ".join(f"{v.value!r}: {_show(v.rep)}" for v in self.built) or "none"
        super().__init__(
            f"Could not make all the inputs for {_show(constructor.rep)}. "
            f"Only [{made}] could be made; "
            f"missing [{', '.join(_show(t) for t in self.missing)}]"
        )


class NoConstructionPathError(BuildError, LookupError):
    """No value, override or constructor exists for the requested type."""

    def __init__(
        self, target: TypeRep, available: Sequence[TypeRep] = (), reason: str = ""
    ) -> None:
        self.target = target
        self.available = tuple(available)
        outputs = ", ".join(_show(t) for t in self.available) or "nothing"
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Could not create a {_show(target)} out of the registry{detail}. "
            f"Available outputs: {outputs}"
        )


class TypeCastError(BuildError, TypeError):
    """The resolved value does not conform to the requested type.

    Indicates a declared type that lies about the runtime value, e.g. a
    ``val(x, as_type=...)`` or a modifier returning the wrong type.
    """

    def __init__(self, target: TypeRep, actual: object) -> None:
        self.target = target
        self.actual = actual
        super().__init__(
            f"Could not cast the computed value to a {_show(target)}. "
            f"The value is of type: {type(actual).__qualname__}"
        )


class TypeMismatchError(BuildError, TypeError):
    """A function was applied to an argument of the wrong type."""

    def __init__(
        self, function: TypedValue[object], argument: TypedValue[object]
    ) -> None:
        self.function = function
        self.argument = argument
        super().__init__(
            f"Failed to apply {argument.value!r}: {_show(argument.rep)} "
            f"to {_show(function.rep)}"
        )


class EmptyArgsError(BuildError, ValueError):
    """A function was applied to an empty list of arguments."""

    def __init__(self, function: TypedValue[object]) -> None:
        self.function = function
        super().__init__(
            f"The function {_show(function.rep)} cannot be applied to an empty "
            "list of parameters"
        )


class ConstructorError(BuildError):
    """A registered constructor, thunk or modifier raised an exception."""

    def __init__(self, constructor: TypedValue[object], cause: BaseException) -> None:
        self.constructor = constructor
        self.cause = cause
        self.target = _output_of(constructor)
        super().__init__(
            f"Constructor {_show(constructor.rep)} raised "
            f"{type(cause).__name__}: {cause}"
        )


class UnsolvableRegistryError(BuildError):
    """Some constructor inputs are not produced by anything in the registry."""

    def __init__(self, target: TypeRep, missing: Sequence[TypeRep]) -> None:
        self.target = target
        self.missing = tuple(missing)
        super().__init__(
            f"Registry cannot make {_show(target)}: no constructor produces "
            f"[{', '.join(_show(t) for t in self.missing)}]"
        )


def _output_of(value: TypedValue[object]) -> TypeRep:
    from .typerep import output_type

    return output_type(value.rep)


__all__ = [
    "BuildError",
    "ConstructorError",
    "CycleDetectedError",
    "EmptyArgsError",
    "MissingInputsError",
    "NoConstructionPathError",
    "RegistryError",
    "SignatureError",
    "TypeCastError",
    "TypeMismatchError",
    "UnsolvableRegistryError",
]
