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

"""Reachability queries over a registry's declared inputs and outputs.

These only look at signatures, never run anything. A registry is
*solvable* when every input of every constructor is the output of some
constructor; ``make`` checks that its target is an output and, when
configured, that the registry is solvable.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .typerep import TypeRep, input_types, output_type

if TYPE_CHECKING:
    from .registry import Registry


def _distinct(reps: Iterable[TypeRep]) -> tuple[TypeRep, ...]:
    seen: list[TypeRep] = []
    for rep in reps:
        if rep not in seen:
            seen.append(rep)
    return tuple(seen)


def outputs(registry: Registry) -> tuple[TypeRep, ...]:
    """Return the distinct final output types of the registry's constructors."""
    return _distinct(output_type(c.rep) for c in registry.constructors)


def inputs(registry: Registry) -> tuple[TypeRep, ...]:
    """Return the distinct input types required by the registry's functions."""
    return _distinct(t for c in registry.constructors for t in input_types(c.rep))


def contains(registry: Registry, target: TypeRep) -> bool:
    """Return True when some constructor produces ``target``."""
    return target in outputs(registry)


def missing_inputs(registry: Registry) -> tuple[TypeRep, ...]:
    """Return the input types that no constructor produces."""
    produced = outputs(registry)
    return tuple(t for t in inputs(registry) if t not in produced)


def is_solvable(registry: Registry) -> bool:
    return not missing_inputs(registry)


__all__ = ["contains", "inputs", "is_solvable", "missing_inputs", "outputs"]
