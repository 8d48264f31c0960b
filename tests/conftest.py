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

from __future__ import annotations

from collections.abc import Iterator

import pytest

import typedregistry.dbc as dbc_module

_ENV_KEYS = (
    "TYPEDREGISTRY_DBC",
    "TYPEDREGISTRY_LOG_FORMAT",
    "TYPEDREGISTRY_LOG_LEVEL",
    "TYPEDREGISTRY_MODIFIER_POLICY",
    "TYPEDREGISTRY_OVERRIDE_POLICY",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run every test with default policies and contracts in their default state."""

    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    previous = dbc_module._forced_state
    dbc_module._forced_state = None
    try:
        yield
    finally:
        dbc_module._forced_state = previous
