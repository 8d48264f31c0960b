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

"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from io import StringIO

import pytest

import typedregistry.resolver as resolver_module
from typedregistry import Registry
from typedregistry.errors import CycleDetectedError
from typedregistry.logging import (
    StructuredLogger,
    _coerce_level,
    configure_logging,
    get_logger,
)


class _CaptureHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@contextmanager
def _capture(
    logger: logging.Logger, level: int = logging.DEBUG
) -> Iterator[list[logging.LogRecord]]:
    handler = _CaptureHandler()
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(level)
    try:
        yield handler.records
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)
        handler.close()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in original_handlers:
                handler.close()
        root.handlers = original_handlers
        root.setLevel(original_level)


@dataclass(frozen=True)
class Left:
    right: Right


@dataclass(frozen=True)
class Right:
    left: Left


def odd(i: int) -> bool:
    return i % 2 == 1


def test_structured_logger_emits_structured_records() -> None:
    logger = get_logger("tests.logging", context={"component": "unit-test"})

    with _capture(logger.logger, logging.INFO) as records:
        logger.info("structured", event="tests.event", context={"attempt": 1})

    assert len(records) == 1
    record = records[0]
    assert record.event == "tests.event"
    assert record.context == {"component": "unit-test", "attempt": 1}
    assert record.getMessage() == "structured"


def test_get_logger_returns_named_adapter() -> None:
    logger = get_logger("tests.named", context={"plain": True})

    assert isinstance(logger, StructuredLogger)
    assert logger.logger is logging.getLogger("tests.named")
    assert logger.extra == {"plain": True}


def test_inline_context_wins_over_bound_context() -> None:
    logger = get_logger("tests.merge", context={"component": "a", "depth": 0})

    with _capture(logger.logger, logging.INFO) as records:
        logger.info("merged", event="tests.merge", context={"depth": 2})

    assert records[0].context == {"component": "a", "depth": 2}


def test_structured_logger_requires_event_metadata() -> None:
    logger = get_logger("tests.missing")

    with _capture(logger.logger, logging.INFO), pytest.raises(TypeError):
        logger.info("missing-event", context={"detail": True})


def test_structured_logger_rejects_non_mapping_context() -> None:
    logger = get_logger("tests.context")

    with _capture(logger.logger, logging.INFO), pytest.raises(TypeError):
        logger.info("bad", event="tests.bad", context=["not", "a", "mapping"])


def test_coerce_level() -> None:
    assert _coerce_level("debug") == logging.DEBUG
    assert _coerce_level(logging.ERROR) == logging.ERROR
    with pytest.raises(TypeError):
        _coerce_level("loud")


def test_configure_logging_respects_existing_handlers() -> None:
    root = logging.getLogger()
    root_handler = logging.NullHandler()
    root.handlers = [root_handler]

    configure_logging(level="DEBUG", json_mode=True)

    assert root.handlers == [root_handler]
    assert root.level == logging.DEBUG


def test_configure_logging_honors_env_toggle() -> None:
    configure_logging(
        force=True,
        env={"TYPEDREGISTRY_LOG_FORMAT": "json", "TYPEDREGISTRY_LOG_LEVEL": "warning"},
    )

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.handlers[0].formatter.__class__.__name__ == "_JsonFormatter"
    assert root.level == logging.WARNING


def test_configure_logging_defaults_to_text_formatter() -> None:
    configure_logging(force=True, env={})

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.handlers[0].formatter.__class__.__name__ != "_JsonFormatter"
    assert root.level == logging.INFO


def test_configure_logging_json_mode_emits_structured_output(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging(json_mode=True, force=True)

    logger = get_logger("tests.logging.json", context={"component": "json-test"})
    logger.logger.setLevel(logging.INFO)
    logger.info("payload", event="tests.json", context={"key": object()})
    logging.getLogger().handlers[0].flush()

    payload = json.loads(stream.getvalue().strip())
    assert payload["event"] == "tests.json"
    assert payload["context"]["component"] == "json-test"
    assert payload["context"]["key"].startswith("<object object")
    assert payload["message"] == "payload"
    assert payload["logger"] == "tests.logging.json"


class TestResolverEvents:
    def test_successful_make_logs_progress(self) -> None:
        registry = Registry.empty().register(5, odd)

        with _capture(logging.getLogger("typedregistry.resolver")) as records:
            assert registry.make(bool) is True

        events = [record.event for record in records]
        assert events[0] == "registry.make.start"
        assert "registry.resolve.construct" in events
        assert "registry.resolve.value" in events
        assert events[-1] == "registry.make.complete"
        assert all(record.context["component"] == "resolver" for record in records)
        assert records[0].context["target"] == "bool"

    def test_modifier_is_logged(self) -> None:
        registry = Registry.empty().register(5).tweak(int, abs)

        with _capture(logging.getLogger("typedregistry.resolver")) as records:
            registry.make(int)

        applied = [r for r in records if r.event == "registry.modifier.apply"]
        assert [r.context["type"] for r in applied] == ["int"]

    def test_failed_make_logs_error_type(self) -> None:
        registry = Registry.empty().register(Left, Right)

        with (
            _capture(logging.getLogger("typedregistry.resolver")) as records,
            pytest.raises(CycleDetectedError),
        ):
            registry.make(Left)

        assert records[-1].event == "registry.make.failed"
        assert records[-1].context["error"] == "CycleDetectedError"

    def test_quiet_above_debug(self) -> None:
        registry = Registry.empty().register(5, odd)

        with _capture(logging.getLogger("typedregistry.resolver"), logging.INFO) as records:
            registry.make(bool)

        assert records == []

    def test_no_payload_rendering_above_debug(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        rendered: list[object] = []

        def counting_describe(rep: object) -> str:
            rendered.append(rep)
            return "rendered"

        monkeypatch.setattr(resolver_module, "describe", counting_describe)
        registry = Registry.empty().register(5, odd).tweak(int, abs)

        with _capture(logging.getLogger("typedregistry.resolver"), logging.INFO):
            assert registry.make(bool) is True
            with pytest.raises(CycleDetectedError):
                Registry.empty().register(Left, Right).make(Left)

        assert rendered == []
