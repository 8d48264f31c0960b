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

"""Resolver configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

_MODIFIER_POLICY_ENV = "TYPEDREGISTRY_MODIFIER_POLICY"
_OVERRIDE_POLICY_ENV = "TYPEDREGISTRY_OVERRIDE_POLICY"


class ModifierPolicy(Enum):
    """When a modifier registered with ``tweak`` runs on a value.

    - ``ONCE``: once per value within a ``make`` call. A value already
      transformed is stored and refetched as is.
    - ``EVERY_FETCH``: every time the value passes through the store step,
      including when it is refetched as a memoized input. Non-idempotent
      transforms compound.
    """

    ONCE = "once"
    EVERY_FETCH = "every_fetch"


class OverridePolicy(Enum):
    """Which override wins when several qualify for the same type.

    - ``FIRST``: the first qualifying override in registration order
      (most recently specialized first).
    - ``MOST_SPECIFIC``: the override whose context type is nearest the
      innermost type being built; ties fall back to registration order.
    """

    FIRST = "first"
    MOST_SPECIFIC = "most_specific"


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    """Configuration for ``make`` calls.

    Policies left as ``None`` fall back to environment variables:

    - ``modifier_policy``: ``TYPEDREGISTRY_MODIFIER_POLICY`` (default ``once``)
    - ``override_policy``: ``TYPEDREGISTRY_OVERRIDE_POLICY`` (default ``first``)

    Example::

        config = ResolverConfig(modifier_policy=ModifierPolicy.EVERY_FETCH)
        value = registry.make(Service, config=config)

    Attributes:
        modifier_policy: When modifiers run, see :class:`ModifierPolicy`.
        override_policy: How competing overrides are chosen.
        check_solvable: If True, ``make`` refuses registries where some
            constructor input is produced by nothing.
    """

    modifier_policy: ModifierPolicy | None = None
    override_policy: OverridePolicy | None = None
    check_solvable: bool = False

    def resolved_modifier_policy(
        self, env: Mapping[str, str] | None = None
    ) -> ModifierPolicy:
        """Return the modifier policy, falling back to the environment."""
        if self.modifier_policy is not None:
            return self.modifier_policy
        return _from_env(env, _MODIFIER_POLICY_ENV, ModifierPolicy, ModifierPolicy.ONCE)

    def resolved_override_policy(
        self, env: Mapping[str, str] | None = None
    ) -> OverridePolicy:
        """Return the override policy, falling back to the environment."""
        if self.override_policy is not None:
            return self.override_policy
        return _from_env(env, _OVERRIDE_POLICY_ENV, OverridePolicy, OverridePolicy.FIRST)


def _from_env[E: Enum](
    env: Mapping[str, str] | None, key: str, kind: type[E], default: E
) -> E:
    raw = (env if env is not None else os.environ).get(key)
    if not raw:
        return default
    try:
        return kind(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(str(member.value) for member in kind)
        raise ValueError(f"{key}={raw!r} is not one of: {allowed}") from None


DEFAULT_CONFIG = ResolverConfig()


__all__ = ["DEFAULT_CONFIG", "ModifierPolicy", "OverridePolicy", "ResolverConfig"]
