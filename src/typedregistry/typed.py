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

"""Typed values: a value or a function boxed with its runtime type.

Example::

    from typedregistry.typed import apply, fun, val

    def odd(i: int) -> bool:
        return i % 2 == 1

    f = fun(odd)                # int -> bool
    result = apply(f, val(5))   # TypedValue(True, bool)

Application checks the argument's type identity against the next declared
input before invoking anything; a mismatch raises ``TypeMismatchError``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial, reduce
from typing import get_type_hints

from .errors import EmptyArgsError, SignatureError, TypeMismatchError
from .typerep import Arrow, Nominal, TypeRep, input_types, output_type, type_rep


@dataclass(slots=True, frozen=True)
class TypedValue[T]:
    """A value or function together with its type identity.

    Immutable once created. Build instances with :func:`val`, :func:`fun`
    or :func:`typed` rather than directly.
    """

    value: T
    """The boxed Python object."""

    rep: TypeRep
    """Its type identity."""

    @property
    def is_function(self) -> bool:
        return isinstance(self.rep, Arrow)


def val[T](value: T, as_type: object = None) -> TypedValue[T]:
    """Box a plain value. Its type defaults to ``type(value)``."""
    rep = type_rep(as_type) if as_type is not None else Nominal(type(value))
    return TypedValue(value, rep)


def fun[T: Callable[..., object]](func: T, as_type: object = None) -> TypedValue[T]:
    """Box a function, or a class used as its own constructor.

    The signature is read from the annotations unless ``as_type`` (a
    ``Callable[[...], ...]`` annotation) is given, which is the way to box
    a lambda.

    Raises:
        SignatureError: The signature cannot be determined.
    """
    if as_type is None:
        return TypedValue(func, _signature_of(func))
    rep = type_rep(as_type)
    if not isinstance(rep, Arrow):
        raise SignatureError(func, "as_type must be a Callable annotation")
    return TypedValue(func, rep)


def typed(entry: object) -> TypedValue[object]:
    """Box anything that can be registered.

    ``TypedValue`` instances pass through, classes and annotated functions
    become constructors, everything else (including callable objects) is a
    plain value.
    """
    if isinstance(entry, TypedValue):
        return entry
    if isinstance(entry, type) or inspect.isroutine(entry):
        return fun(entry)
    return val(entry)


def _signature_of(func: Callable[..., object]) -> Arrow:
    try:
        parameters = inspect.signature(func).parameters
    except (TypeError, ValueError) as e:
        raise SignatureError(func, "signature is not inspectable") from e

    try:
        # classes take their inputs from __init__ alone
        target = func.__init__ if isinstance(func, type) else func
        hints = get_type_hints(target, include_extras=True)
    except (NameError, TypeError) as e:
        raise SignatureError(func, f"annotations cannot be resolved ({e})") from e

    inputs: list[TypeRep] = []
    for name, param in parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.kind is param.KEYWORD_ONLY:
            if param.default is param.empty:
                raise SignatureError(
                    func, f"keyword-only parameter {name!r} has no default"
                )
            continue
        if name not in hints:
            raise SignatureError(func, f"parameter {name!r} is not annotated")
        inputs.append(type_rep(hints[name]))

    if isinstance(func, type):
        return Arrow(tuple(inputs), Nominal(func))
    if "return" not in hints:
        raise SignatureError(func, "missing return annotation")
    return Arrow(tuple(inputs), type_rep(hints["return"]))


def is_function(value: TypedValue[object]) -> bool:
    """Return True iff ``value``'s type is an arrow."""
    return isinstance(value.rep, Arrow)


def signature(value: TypedValue[object]) -> tuple[tuple[TypeRep, ...], TypeRep]:
    """Return the curried input chain and final output of ``value``.

    A plain value has no inputs and is its own output.
    """
    return input_types(value.rep), output_type(value.rep)


def invoke(thunk: TypedValue[object]) -> TypedValue[object]:
    """Call a function that takes no inputs.

    Raises:
        EmptyArgsError: ``thunk`` is not a zero-input function.
    """
    rep = thunk.rep
    if not isinstance(rep, Arrow) or rep.inputs:
        raise EmptyArgsError(thunk)
    return TypedValue(thunk.value(), rep.result)


def apply(function: TypedValue[object], argument: TypedValue[object]) -> TypedValue[object]:
    """Apply ``function`` to one argument.

    The Python callable runs once the last input of its arrow is supplied;
    earlier steps return a partial application.

    Raises:
        TypeMismatchError: ``function`` is not a function, or ``argument``
            does not have the type of its next input.
    """
    rep = function.rep
    if not isinstance(rep, Arrow):
        raise TypeMismatchError(function, argument)
    if not rep.inputs:
        return apply(invoke(function), argument)
    if argument.rep != rep.inputs[0]:
        raise TypeMismatchError(function, argument)

    remaining = rep.inputs[1:]
    if remaining:
        return TypedValue(
            partial(function.value, argument.value), Arrow(remaining, rep.result)
        )
    return TypedValue(function.value(argument.value), rep.result)


def apply_all(
    function: TypedValue[object], arguments: Sequence[TypedValue[object]]
) -> TypedValue[object]:
    """Apply ``arguments`` left to right.

    Raises:
        EmptyArgsError: ``arguments`` is empty.
        TypeMismatchError: The first argument of the wrong type.
    """
    if not arguments:
        raise EmptyArgsError(function)
    return reduce(apply, arguments, function)


def call(
    function: TypedValue[object], arguments: Sequence[TypedValue[object]]
) -> TypedValue[object]:
    """Apply all ``arguments`` then force any remaining zero-input arrows.

    This is how the resolver runs a constructor whose whole input chain has
    been built; it also accepts thunks with no arguments at all.
    """
    result = apply_all(function, arguments) if arguments else function
    while isinstance(result.rep, Arrow) and not result.rep.inputs:
        result = invoke(result)
    return result


__all__ = [
    "TypedValue",
    "apply",
    "apply_all",
    "call",
    "fun",
    "invoke",
    "is_function",
    "signature",
    "typed",
    "val",
]
