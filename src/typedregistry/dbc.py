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

"""Design-by-contract checks for :mod:`typedregistry`.

Checks run only when ``TYPEDREGISTRY_DBC`` is truthy or inside
:func:`dbc_enabled`; a violated contract raises ``AssertionError``.
"""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from functools import wraps

_ENV_FLAG = "TYPEDREGISTRY_DBC"
_forced_state: bool | None = None

type Postcondition = Callable[..., bool | tuple[bool, str]]
"""Called with the call's arguments plus ``result=``; returns a verdict or
``(verdict, detail)``."""


def dbc_active() -> bool:
    """Return True when contracts are checked."""
    if _forced_state is not None:
        return _forced_state
    flag = os.getenv(_ENV_FLAG, "").strip().lower()
    return flag not in {"", "0", "false", "off", "no"}


@contextmanager
def dbc_enabled(*, active: bool = True) -> Iterator[None]:
    """Force contract checking on (or off) inside a ``with`` block."""
    global _forced_state
    previous, _forced_state = _forced_state, active
    try:
        yield
    finally:
        _forced_state = previous


def _name(target: object) -> str:
    return getattr(target, "__qualname__", None) or repr(target)


def ensure[**P, R](
    *postconditions: Postcondition,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Check ``postconditions`` against the arguments and the return value."""
    if not postconditions:
        raise ValueError("@ensure expects at least one postcondition")

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def checked(*args: P.args, **kwargs: P.kwargs) -> R:
            result = func(*args, **kwargs)
            if not dbc_active():
                return result
            for condition in postconditions:
                try:
                    verdict = condition(*args, **kwargs, result=result)
                except Exception as e:
                    raise AssertionError(
                        f"postcondition {_name(condition)} of {_name(func)} "
                        f"raised {type(e).__name__}: {e}"
                    ) from e
                detail = ""
                if isinstance(verdict, tuple):
                    verdict, detail = verdict
                if not verdict:
                    suffix = f": {detail}" if detail else ""
                    raise AssertionError(
                        f"postcondition {_name(condition)} of {_name(func)} "
                        f"failed{suffix}"
                    )
            return result

        return checked

    return decorator


_UNCOPYABLE = object()


def _snapshot(value: object) -> object:
    try:
        return copy.deepcopy(value)
    except Exception:
        # nothing to compare against; the argument goes unchecked
        return _UNCOPYABLE


@contextmanager
def _logging_forbidden(func: Callable[..., object]) -> Iterator[None]:
    original = logging.Logger._log  # pyright: ignore[reportPrivateUsage]

    def refuse(*args: object, **kwargs: object) -> None:
        raise AssertionError(f"pure function {_name(func)} must not log")

    logging.Logger._log = refuse  # type: ignore[method-assign]
    try:
        yield
    finally:
        logging.Logger._log = original  # type: ignore[method-assign]


def pure[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Check that ``func`` leaves its positional arguments unchanged and
    does not log."""

    @wraps(func)
    def checked(*args: P.args, **kwargs: P.kwargs) -> R:
        if not dbc_active():
            return func(*args, **kwargs)
        before = [_snapshot(arg) for arg in args]
        with _logging_forbidden(func):
            result = func(*args, **kwargs)
        for index, (arg, snapshot) in enumerate(zip(args, before, strict=True)):
            if snapshot is not _UNCOPYABLE and arg != snapshot:
                raise AssertionError(
                    f"pure function {_name(func)} mutated positional argument {index}"
                )
        return result

    return checked


__all__ = ["Postcondition", "dbc_active", "dbc_enabled", "ensure", "pure"]
