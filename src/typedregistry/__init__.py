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

"""Type-directed value construction.

A registry holds typed values and functions. Asking it to ``make`` a type
finds a value of that type, or a function producing it whose inputs can in
turn be made, and wires everything together.

Quick Start::

    from typedregistry import Registry

    def odd(i: int) -> bool:
        return i % 2 == 1

    def parity(b: bool) -> str:
        return "odd" if b else "even"

    registry = Registry.empty().register(5, odd, parity)
    assert registry.make(str) == "odd"

Precedence
----------

The most recently registered entry wins. ``Registry.of(10, 5)`` lists
entries highest priority first and makes ``10`` for ``int``.

Overrides and Modifiers
-----------------------

- ``specialize(Context, value)``: use ``value`` for its type only while a
  ``Context`` is being built.
- ``tweak(Target, f)``: pass every built ``Target`` through ``f``.

Errors
------

Failures abort the whole ``make`` call with a ``BuildError``:
``CycleDetectedError``, ``MissingInputsError``, ``NoConstructionPathError``,
``TypeCastError``, ``TypeMismatchError``, ``EmptyArgsError``,
``ConstructorError`` or ``UnsolvableRegistryError``.
"""

from __future__ import annotations

from .config import ModifierPolicy, OverridePolicy, ResolverConfig
from .errors import (
    BuildError,
    ConstructorError,
    CycleDetectedError,
    EmptyArgsError,
    MissingInputsError,
    NoConstructionPathError,
    RegistryError,
    SignatureError,
    TypeCastError,
    TypeMismatchError,
    UnsolvableRegistryError,
)
from .registry import (
    Modifier,
    Override,
    Registry,
    combine,
    empty,
    register,
    specialize,
    tweak,
)
from .resolver import Resolver, make, make_unsafe
from .solver import is_solvable, missing_inputs
from .typed import TypedValue, apply, apply_all, fun, signature, typed, val
from .typerep import Arrow, Nominal, TypeRep, describe, type_rep

__all__ = [
    "Arrow",
    "BuildError",
    "ConstructorError",
    "CycleDetectedError",
    "EmptyArgsError",
    "MissingInputsError",
    "Modifier",
    "ModifierPolicy",
    "NoConstructionPathError",
    "Nominal",
    "Override",
    "OverridePolicy",
    "Registry",
    "RegistryError",
    "Resolver",
    "ResolverConfig",
    "SignatureError",
    "TypeCastError",
    "TypeMismatchError",
    "TypeRep",
    "TypedValue",
    "UnsolvableRegistryError",
    "apply",
    "apply_all",
    "combine",
    "describe",
    "empty",
    "fun",
    "is_solvable",
    "make",
    "make_unsafe",
    "missing_inputs",
    "register",
    "signature",
    "specialize",
    "tweak",
    "type_rep",
    "typed",
    "val",
]
