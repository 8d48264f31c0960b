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

"""Tests for building values out of a registry."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import pytest

from typedregistry import Registry, make, make_unsafe
from typedregistry.typed import fun, val


@dataclass(frozen=True)
class Config:
    url: str


@dataclass(frozen=True)
class Client:
    config: Config


@dataclass(frozen=True)
class Service:
    client: Client


@dataclass(frozen=True)
class Auditor:
    client: Client


@dataclass(frozen=True)
class App:
    service: Service
    auditor: Auditor


@dataclass(frozen=True)
class Timeout:
    seconds: int


@dataclass(frozen=True)
class Fetcher:
    timeout: Timeout


@dataclass(frozen=True)
class Uploader:
    timeout: Timeout


@dataclass(frozen=True)
class Worker:
    fetcher: Fetcher
    uploader: Uploader


@dataclass(frozen=True)
class Greeting:
    text: str


@dataclass(frozen=True)
class Formatter:
    text: str


def formatter(render: Callable[[int], str]) -> Formatter:
    return Formatter(render(7))


def odd(i: int) -> bool:
    return i % 2 == 1


def parity(b: bool) -> str:
    return "odd" if b else "even"


def greeter(name: str) -> Callable[[int], Greeting]:
    return lambda times: Greeting(name * times)


def default_config() -> Config:
    return Config("thunk")


class TestRoundTrip:
    def test_registered_value_is_returned(self) -> None:
        assert Registry.empty().register(5).make(int) == 5

    def test_registered_object_is_returned_as_is(self) -> None:
        config = Config("http://example.com")

        assert Registry.empty().register(config).make(Config) is config

    def test_module_level_make(self) -> None:
        registry = Registry.of(5)

        assert make(int, registry) == 5
        assert make_unsafe(int, registry) == 5


class TestPrecedence:
    def test_last_registered_value_wins(self) -> None:
        assert Registry.empty().register(5).register(10).make(int) == 10

    def test_first_listed_value_wins(self) -> None:
        assert Registry.of(10, 5).make(int) == 10

    def test_last_registered_constructor_wins(self) -> None:
        def first(i: int) -> str:
            return "first"

        def second(i: int) -> str:
            return "second"

        registry = Registry.empty().register(5, first, second)

        assert registry.make(str) == "second"

    def test_value_beats_constructor(self) -> None:
        registry = Registry.empty().register(parity, True, "stored")

        assert registry.make(str) == "stored"

    def test_combine_keeps_left_precedence(self) -> None:
        assert (Registry.of(1) + Registry.of(2)).make(int) == 1


class TestWiring:
    def test_chained_functions(self) -> None:
        registry = Registry.empty().register(5, odd, parity)

        assert registry.make(str) == "odd"

    def test_classes_as_constructors(self) -> None:
        registry = Registry.empty().register(Config("u"), Client, Service)

        assert registry.make(Service) == Service(Client(Config("u")))

    def test_thunk_constructor(self) -> None:
        registry = Registry.empty().register(default_config, Client)

        assert registry.make(Client) == Client(Config("thunk"))

    def test_function_returning_function(self) -> None:
        registry = Registry.empty().register("ab", 2, greeter)

        assert registry.make(Greeting) == Greeting("abab")

    def test_lambda_with_declared_type(self) -> None:
        registry = Registry.empty().register(
            3, fun(lambda i: str(i * 2), as_type=Callable[[int], str])
        )

        assert registry.make(str) == "6"

    def test_value_with_declared_type(self) -> None:
        registry = Registry.empty().register(val(3, as_type=int | None))

        assert registry.make(int | None) == 3  # type: ignore[arg-type]


class TestMemoization:
    def test_shared_dependency_built_once(self) -> None:
        calls: list[Config] = []

        def make_client(config: Config) -> Client:
            calls.append(config)
            return Client(config)

        registry = Registry.empty().register(
            Config("u"), make_client, Service, Auditor, App
        )

        app = registry.make(App)

        assert len(calls) == 1
        assert app.service.client is app.auditor.client

    def test_each_make_starts_fresh(self) -> None:
        calls: list[Config] = []

        def make_client(config: Config) -> Client:
            calls.append(config)
            return Client(config)

        registry = Registry.empty().register(Config("u"), make_client)

        registry.make(Client)
        registry.make(Client)

        assert len(calls) == 2

    def test_make_does_not_change_registry(self) -> None:
        registry = Registry.empty().register(5, odd, parity)
        before = registry.constructors

        registry.make(str)

        assert registry.constructors == before


class TestOverrides:
    def _registry(self) -> Registry:
        return Registry.empty().register(Timeout(30), Fetcher, Uploader, Worker)

    def test_override_applies_only_inside_its_context(self) -> None:
        registry = self._registry().specialize(Uploader, Timeout(300))

        worker = registry.make(Worker)

        assert worker.fetcher.timeout == Timeout(30)
        assert worker.uploader.timeout == Timeout(300)

    def test_override_does_not_leak_to_later_siblings(self) -> None:
        registry = self._registry().specialize(Fetcher, Timeout(1))

        worker = registry.make(Worker)

        assert worker.fetcher.timeout == Timeout(1)
        assert worker.uploader.timeout == Timeout(30)

    def test_override_applies_to_whole_subtree(self) -> None:
        registry = self._registry().specialize(Worker, Timeout(5))

        worker = registry.make(Worker)

        assert worker.fetcher.timeout == Timeout(5)
        assert worker.uploader.timeout == Timeout(5)

    def test_override_ignored_outside_context(self) -> None:
        registry = self._registry().specialize(Worker, Timeout(5))

        assert registry.make(Fetcher) == Fetcher(Timeout(30))
        assert registry.make(Timeout) == Timeout(30)

    def test_override_beats_more_recent_constructor(self) -> None:
        registry = (
            Registry.empty()
            .register(Fetcher)
            .specialize(Fetcher, Timeout(1))
            .register(Timeout(30))
        )

        assert registry.make(Fetcher) == Fetcher(Timeout(1))

    def test_override_can_supply_function_typed_input(self) -> None:
        registry = (
            Registry.empty()
            .register(formatter)
            .specialize(
                Formatter,
                fun(lambda i: f"<{i}>", as_type=Callable[[int], str]),
            )
        )

        assert registry.make_unsafe(Formatter) == Formatter("<7>")
