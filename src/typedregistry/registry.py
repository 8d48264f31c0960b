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

"""Immutable registry of constructors, overrides and modifiers."""

from __future__ import annotations

import reprlib
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from .dbc import ensure
from .errors import SignatureError
from .typed import TypedValue, typed, val
from .typerep import Arrow, TypeRep, describe, type_rep

if TYPE_CHECKING:
    from .config import ResolverConfig


@dataclass(slots=True, frozen=True)
class Override:
    """A value only eligible while ``context`` is being built."""

    context: TypeRep
    value: TypedValue[object]


@dataclass(slots=True, frozen=True)
class Modifier:
    """A transform ``target -> target`` applied to values as they are stored."""

    target: TypeRep
    transform: TypedValue[object]


def _stores_kept(*names: str) -> Callable[..., bool]:
    def predicate(self: Registry, *args: object, result: Registry, **kwargs: object) -> bool:
        return all(getattr(result, name) == getattr(self, name) for name in names)

    predicate.__name__ = f"keeps_{'_and_'.join(names)}"
    return predicate


def _prepended(name: str, count: Callable[..., int]) -> Callable[..., bool]:
    def predicate(self: Registry, *args: object, result: Registry, **kwargs: object) -> bool:
        added = count(*args)
        after: tuple[object, ...] = getattr(result, name)
        return len(after) == len(getattr(self, name)) + added and (
            after[added:] == getattr(self, name)
        )

    predicate.__name__ = f"prepends_{name}"
    return predicate


def _concatenated(self: Registry, other: Registry, *, result: Registry) -> bool:
    return (
        result.overrides == self.overrides + other.overrides
        and result.modifiers == self.modifiers + other.modifiers
        and result.constructors == self.constructors + other.constructors
    )


@dataclass(slots=True, frozen=True)
class Registry:
    """Immutable collection of values and functions used to build other values.

    Every operation returns a new registry. The most recently registered
    entry has the highest priority ("last write wins")::

        registry = (
            Registry.empty()
            .register(5)
            .register(odd)                  # int -> bool
            .register(describe_parity)      # bool -> str
        )
        assert registry.make(str) == "odd"

    Overrides (``specialize``) are consulted before constructors but only
    while their context type is being built. Modifiers (``tweak``) transform
    values of their target type as they are built or fetched.
    """

    overrides: tuple[Override, ...] = ()
    """Context-scoped values, first qualifying one wins."""

    modifiers: tuple[Modifier, ...] = ()
    """Post-construction transforms, first matching one applies."""

    constructors: tuple[TypedValue[object], ...] = ()
    """Values and functions, highest priority first."""

    # === Factory Methods ===

    @staticmethod
    def empty() -> Registry:
        """Return a registry with no overrides, modifiers or constructors."""
        return Registry()

    @staticmethod
    def of(*entries: object) -> Registry:
        """Build a registry from entries listed in priority order.

        The first entry has the highest priority, so ``Registry.of(10, 5)``
        makes ``10`` for ``int``. Same as registering the entries in
        reverse order.
        """
        return Registry(constructors=tuple(typed(entry) for entry in entries))

    # === Composition ===

    @ensure(
        _stores_kept("overrides", "modifiers"),
        _prepended("constructors", lambda *entries: len(entries)),
    )
    def register(self, *entries: object) -> Registry:
        """Add entries, each one taking priority over everything before it.

        Entries are boxed with :func:`~typedregistry.typed.typed`: classes
        and annotated functions become constructors, other objects plain
        values. Pass ``val(...)``/``fun(...)`` results to control the type.

        Raises:
            SignatureError: An entry's type cannot be introspected.
        """
        constructors = self.constructors
        for entry in entries:
            constructors = (typed(entry), *constructors)
        return replace(self, constructors=constructors)

    @ensure(_concatenated)
    def combine(self, other: Registry) -> Registry:
        """Concatenate two registries; this one's entries keep precedence."""
        return Registry(
            overrides=self.overrides + other.overrides,
            modifiers=self.modifiers + other.modifiers,
            constructors=self.constructors + other.constructors,
        )

    def __add__(self, other: object) -> Registry:
        if not isinstance(other, Registry):
            return NotImplemented
        return self.combine(other)

    @ensure(
        _stores_kept("modifiers", "constructors"),
        _prepended("overrides", lambda *args, **kwargs: 1),
    )
    def specialize(
        self, context: object, value: object, *, as_type: object = None
    ) -> Registry:
        """Use ``value`` for its type while ``context`` is being built.

        Example::

            # every Client built for Service gets a short timeout
            registry = registry.specialize(Service, Timeout(1))

        Args:
            context: The type whose construction activates the override.
            value: The replacement value.
            as_type: Declared type of ``value`` (default: ``type(value)``).
        """
        payload = value if isinstance(value, TypedValue) else val(value, as_type)
        return replace(
            self, overrides=(Override(type_rep(context), payload), *self.overrides)
        )

    @ensure(
        _stores_kept("overrides", "constructors"),
        _prepended("modifiers", lambda *args: 1),
    )
    def tweak(self, target: object, transform: Callable[..., object]) -> Registry:
        """Transform every value of type ``target`` once it has been built.

        ``transform`` takes and returns a ``target``; it needs no
        annotations.

        Raises:
            SignatureError: ``target`` is a function type.
        """
        rep = type_rep(target)
        if isinstance(rep, Arrow):
            raise SignatureError(target, "modifiers only apply to values")
        modifier = Modifier(rep, TypedValue(transform, Arrow((rep,), rep)))
        return replace(self, modifiers=(modifier, *self.modifiers))

    # === Query Methods ===

    def __len__(self) -> int:
        """Return the number of constructors (values and functions)."""
        return len(self.constructors)

    def __contains__(self, target: object) -> bool:
        """Check that some constructor produces ``target``."""
        from .solver import contains

        return contains(self, type_rep(target))

    def describe(self) -> str:
        """Return a multi-line listing of the registry for diagnostics."""
        lines = ["constructors:"]
        lines.extend(f"  {_entry(value)}" for value in self.constructors)
        if self.overrides:
            lines.append("overrides:")
            lines.extend(
                f"  while building {describe(o.context)}: {_entry(o.value)}"
                for o in self.overrides
            )
        if self.modifiers:
            lines.append("modifiers:")
            lines.extend(
                f"  {describe(m.target)}: {_entry(m.transform)}" for m in self.modifiers
            )
        return "\n".join(lines)

    # === Resolution ===

    def make[T](self, target: type[T], *, config: ResolverConfig | None = None) -> T:
        """Build a ``target`` out of this registry. See :func:`~typedregistry.make`."""
        from .resolver import make

        return make(target, self, config=config)

    def make_unsafe[T](
        self, target: type[T], *, config: ResolverConfig | None = None
    ) -> T:
        """Build a ``target`` without the reachability precondition."""
        from .resolver import make_unsafe

        return make_unsafe(target, self, config=config)


def _entry(value: TypedValue[object]) -> str:
    if value.is_function:
        name = getattr(value.value, "__qualname__", None) or reprlib.repr(value.value)
    else:
        name = reprlib.repr(value.value)
    return f"{name}: {describe(value.rep)}"


# === Curried forms ===


def empty() -> Registry:
    """Return the empty registry."""
    return Registry.empty()


def register(*entries: object) -> Callable[[Registry], Registry]:
    """Return a step adding ``entries`` to a registry."""
    return lambda registry: registry.register(*entries)


def combine(first: Registry, second: Registry) -> Registry:
    """Concatenate ``first`` and ``second``; ``first`` keeps precedence."""
    return first.combine(second)


def specialize(
    context: object, value: object, *, as_type: object = None
) -> Callable[[Registry], Registry]:
    """Return a step adding a context-scoped override."""
    return lambda registry: registry.specialize(context, value, as_type=as_type)


def tweak(target: object, transform: Callable[..., object]) -> Callable[[Registry], Registry]:
    """Return a step adding a modifier for ``target``."""
    return lambda registry: registry.tweak(target, transform)


__all__ = [
    "Modifier",
    "Override",
    "Registry",
    "combine",
    "empty",
    "register",
    "specialize",
    "tweak",
]
