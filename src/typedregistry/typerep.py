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

"""Runtime type identities.

A :data:`TypeRep` is either a :class:`Nominal` type (anything that is not a
function) or an :class:`Arrow` (a function). Two identities are equal iff
they denote the same type: ``Nominal(list[int]) == Nominal(list[int])`` but
``Nominal(bool) != Nominal(int)``.

An arrow describes one native Python call. Its result may itself be an
arrow, so ``Callable[[int], Callable[[bool], str]]`` and a two-parameter
function ``(int, bool) -> str`` share the same curried chain
``int -> bool -> str`` even though they are different types.
"""

from __future__ import annotations

import collections.abc
import types
from dataclasses import dataclass
from typing import Annotated, Literal, Union, get_args, get_origin

from .dbc import pure
from .errors import SignatureError


@dataclass(slots=True, frozen=True)
class Nominal:
    """A non-function type, identified by its annotation."""

    annotation: object


@dataclass(slots=True, frozen=True)
class Arrow:
    """A function type: ``inputs`` taken in one call, producing ``result``."""

    inputs: tuple[TypeRep, ...]
    result: TypeRep


type TypeRep = Nominal | Arrow


def type_rep(annotation: object) -> TypeRep:
    """Return the type identity denoted by a Python annotation.

    ``Callable[[A, B], C]`` becomes ``Arrow((A, B), C)``, ``Annotated[X, ...]``
    is unwrapped and ``None`` stands for ``NoneType``.

    Raises:
        SignatureError: The annotation is a string forward reference or a
            ``Callable`` whose parameters are not spelled out.
    """
    if isinstance(annotation, (Nominal, Arrow)):
        return annotation
    if annotation is None:
        return Nominal(type(None))
    if isinstance(annotation, str):
        raise SignatureError(annotation, "unresolved forward reference")

    origin = get_origin(annotation)
    if origin is Annotated:
        return type_rep(get_args(annotation)[0])
    if origin is collections.abc.Callable:
        args = get_args(annotation)
        if len(args) != 2 or not isinstance(args[0], list):
            raise SignatureError(
                annotation, "callable parameters must be listed explicitly"
            )
        params, result = args
        return Arrow(tuple(type_rep(p) for p in params), type_rep(result))
    return Nominal(annotation)


@pure
def input_types(rep: TypeRep) -> tuple[TypeRep, ...]:
    """Return the full curried input chain of ``rep`` (empty for values)."""
    collected: list[TypeRep] = []
    current = rep
    while isinstance(current, Arrow):
        collected.extend(current.inputs)
        current = current.result
    return tuple(collected)


@pure
def output_type(rep: TypeRep) -> TypeRep:
    """Return the final, fully uncurried output of ``rep``."""
    current = rep
    while isinstance(current, Arrow):
        current = current.result
    return current


@pure
def describe(rep: TypeRep) -> str:
    """Render ``rep`` for diagnostics, e.g. ``int -> bool -> str``."""
    if isinstance(rep, Nominal):
        return _annotation_name(rep.annotation)
    chain = input_types(rep)
    if not chain:
        return f"() -> {describe(output_type(rep))}"
    parts = [f"({describe(t)})" if isinstance(t, Arrow) else describe(t) for t in chain]
    return " -> ".join([*parts, describe(output_type(rep))])


def _annotation_name(annotation: object) -> str:
    if annotation is type(None):
        return "None"
    if get_origin(annotation) is None and isinstance(annotation, type):
        return annotation.__qualname__
    return repr(annotation).replace("typing.", "")


def conforms(value: object, rep: TypeRep) -> bool:
    """Check that ``value`` is, at runtime, an inhabitant of ``rep``.

    Annotations that cannot be checked at runtime (``Any``, type variables,
    protocols without ``@runtime_checkable``) always conform.
    """
    if isinstance(rep, Arrow):
        return callable(value)

    annotation = rep.annotation
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        return any(conforms(value, type_rep(arg)) for arg in get_args(annotation))
    if origin is Literal:
        return value in get_args(annotation)

    target = origin if origin is not None else annotation
    if not isinstance(target, type):
        return True
    try:
        return isinstance(value, target)
    except TypeError:
        # non-runtime protocols refuse isinstance checks
        return True


__all__ = [
    "Arrow",
    "Nominal",
    "TypeRep",
    "conforms",
    "describe",
    "input_types",
    "output_type",
    "type_rep",
]
