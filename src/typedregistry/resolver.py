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

"""Recursive, type-directed construction of values out of a registry.

To build a target type the resolver:

1. returns an override for the target whose context type is currently being
   built, or else the most recent plain value of the target type;
2. otherwise picks the most recent function whose final output is the
   target, builds each of its inputs recursively and applies it;
3. passes the value through the first matching modifier and pushes the
   result on the front of the working store, so that later requests in the
   same call reuse it. Override values are returned without being pushed.

The working store starts as a copy of the registry's constructors and is
private to one ``make`` call. Any error aborts the whole call.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, cast

from .config import DEFAULT_CONFIG, ModifierPolicy, OverridePolicy, ResolverConfig
from .errors import (
    BuildError,
    ConstructorError,
    CycleDetectedError,
    MissingInputsError,
    NoConstructionPathError,
    TypeCastError,
    UnsolvableRegistryError,
)
from .logging import StructuredLogger, get_logger
from .solver import contains, missing_inputs, outputs
from .typed import TypedValue, call
from .typerep import TypeRep, conforms, describe, input_types, output_type, type_rep

if TYPE_CHECKING:
    from .registry import Modifier, Override, Registry

logger: StructuredLogger = get_logger(__name__, context={"component": "resolver"})

type Context = tuple[TypeRep, ...]
"""Types currently being built, outermost first."""


@dataclass(slots=True)
class Resolver:
    """Resolution state for a single ``make`` call.

    Overrides and modifiers are read-only; ``store`` is the working copy of
    the constructors and grows as values are built.
    """

    overrides: tuple[Override, ...]
    modifiers: tuple[Modifier, ...]
    store: deque[TypedValue[object]]
    modifier_policy: ModifierPolicy = ModifierPolicy.ONCE
    override_policy: OverridePolicy = OverridePolicy.FIRST
    _modified: dict[int, TypedValue[object]] = field(
        default_factory=lambda: dict[int, TypedValue[object]]()
    )
    """Values already produced by a modifier, keyed by ``id``. Held so their
    ids stay unique for the whole call."""

    @classmethod
    def for_registry(
        cls, registry: Registry, config: ResolverConfig = DEFAULT_CONFIG
    ) -> Resolver:
        return cls(
            overrides=registry.overrides,
            modifiers=registry.modifiers,
            store=deque(registry.constructors),
            modifier_policy=config.resolved_modifier_policy(),
            override_policy=config.resolved_override_policy(),
        )

    def resolve(self, target: TypeRep) -> TypedValue[object] | None:
        """Build ``target``, or return None when nothing can produce it."""
        return self._resolve_untyped(target, (target,))

    def _resolve_untyped(
        self, target: TypeRep, context: Context
    ) -> TypedValue[object] | None:
        override = self.find_override(target, context)
        if override is not None:
            self._log_value(target, context, source="override")
            # scoped to this subtree, so never memoized
            return self._modify(override)

        found = self.find_value(target)
        if found is not None:
            self._log_value(target, context, source="store")
            return self._store(found)

        constructor = self.find_constructor(target)
        if constructor is None:
            return None

        arguments = self._make_inputs(constructor, context)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "registry.resolve.construct",
                event="registry.resolve.construct",
                context={
                    "type": describe(target),
                    "constructor": describe(constructor.rep),
                    "depth": len(context),
                },
            )
        return self._store(self._run(constructor, arguments))

    def find_override(
        self, target: TypeRep, context: Context
    ) -> TypedValue[object] | None:
        """Return an override for ``target`` whose context type is being built."""
        candidates = [
            o for o in self.overrides if o.value.rep == target and o.context in context
        ]
        if not candidates:
            return None
        if self.override_policy is OverridePolicy.FIRST:
            return candidates[0].value
        # max keeps the first of equal keys, so ties go to list order
        return max(candidates, key=lambda o: _innermost(o.context, context)).value

    def find_value(self, target: TypeRep) -> TypedValue[object] | None:
        """Return the most recent plain value of type ``target`` in the store."""
        for value in self.store:
            if not value.is_function and value.rep == target:
                return value
        return None

    def find_constructor(self, target: TypeRep) -> TypedValue[object] | None:
        """Return the most recent function whose final output is ``target``."""
        for value in self.store:
            if value.is_function and output_type(value.rep) == target:
                return value
        return None

    def _make_inputs(
        self, constructor: TypedValue[object], context: Context
    ) -> list[TypedValue[object]]:
        built: list[TypedValue[object]] = []
        missing: list[TypeRep] = []
        for input_type in input_types(constructor.rep):
            if input_type in context:
                raise CycleDetectedError(context, input_type)
            # siblings share the store, not the context
            value = self._resolve_untyped(input_type, (*context, input_type))
            if value is None:
                missing.append(input_type)
            else:
                built.append(value)

        if missing:
            raise MissingInputsError(constructor, built, missing)
        return built

    def _store(self, value: TypedValue[object]) -> TypedValue[object]:
        stored = self._modify(value)
        self.store.appendleft(stored)
        return stored

    def _modify(self, value: TypedValue[object]) -> TypedValue[object]:
        if self.modifier_policy is ModifierPolicy.ONCE and id(value) in self._modified:
            return value
        modifier = next((m for m in self.modifiers if m.target == value.rep), None)
        if modifier is None:
            return value

        modified = self._run(modifier.transform, [value])
        self._modified[id(modified)] = modified
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "registry.modifier.apply",
                event="registry.modifier.apply",
                context={"type": describe(value.rep)},
            )
        return modified

    @staticmethod
    def _log_value(target: TypeRep, context: Context, *, source: str) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "registry.resolve.value",
                event="registry.resolve.value",
                context={
                    "type": describe(target),
                    "depth": len(context),
                    "source": source,
                },
            )

    @staticmethod
    def _run(
        function: TypedValue[object], arguments: Sequence[TypedValue[object]]
    ) -> TypedValue[object]:
        try:
            return call(function, arguments)
        except BuildError:
            # nested make calls and application errors keep their own type
            raise
        except Exception as e:
            raise ConstructorError(function, e) from e


def _innermost(context_type: TypeRep, context: Context) -> int:
    return max(i for i, t in enumerate(context) if t == context_type)


def make_unsafe[T](
    target: type[T], registry: Registry, *, config: ResolverConfig | None = None
) -> T:
    """Build a ``target`` out of ``registry`` with runtime checks only.

    Raises:
        NoConstructionPathError: Nothing in the registry produces ``target``.
        CycleDetectedError: ``target`` needs itself, directly or not.
        MissingInputsError: A matching constructor's inputs cannot all be built.
        ConstructorError: A constructor or modifier raised.
        TypeCastError: The built value is not a ``target`` at runtime.
    """
    rep = type_rep(target)
    resolver = Resolver.for_registry(registry, config or DEFAULT_CONFIG)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "registry.make.start",
            event="registry.make.start",
            context={
                "target": describe(rep),
                "constructors": len(registry.constructors),
            },
        )
    try:
        result = resolver.resolve(rep)
        if result is None:
            raise NoConstructionPathError(rep, outputs(registry))
        if result.rep != rep or not conforms(result.value, rep):
            raise TypeCastError(rep, result.value)
    except BuildError as e:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "registry.make.failed",
                event="registry.make.failed",
                context={"target": describe(rep), "error": type(e).__name__},
            )
        raise

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "registry.make.complete",
            event="registry.make.complete",
            context={
                "target": describe(rep),
                "stored": len(resolver.store) - len(registry),
            },
        )
    return cast(T, result.value)


def make[T](
    target: type[T], registry: Registry, *, config: ResolverConfig | None = None
) -> T:
    """Build a ``target`` out of ``registry``.

    Same as :func:`make_unsafe` once the registry is known to declare
    ``target`` among its outputs. With ``config.check_solvable`` the
    registry must also produce every input its functions need.

    Raises:
        NoConstructionPathError: No constructor declares ``target`` as output.
        UnsolvableRegistryError: ``check_solvable`` is set and some input
            type is produced by nothing.
    """
    resolved = config or DEFAULT_CONFIG
    rep = type_rep(target)
    if not contains(registry, rep):
        raise NoConstructionPathError(
            rep, outputs(registry), reason="no constructor declares it as output"
        )
    if resolved.check_solvable:
        missing = missing_inputs(registry)
        if missing:
            raise UnsolvableRegistryError(rep, missing)
    return make_unsafe(target, registry, config=resolved)


__all__ = ["Context", "Resolver", "make", "make_unsafe"]
