# Copyright 2025 Ant Group Co., Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import pytest

from ecdh_psi import EcdhPsi, PsiConfig, disable_logging


@pytest.fixture
def range_items():
    """Factory for ``size`` decimal strings starting at ``begin``."""

    def create(begin: int, size: int) -> list[str]:
        return [str(begin + i) for i in range(size)]

    return create


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep ECDH_PSI_* settings of the host environment out of tests."""
    for key in (
        "ECDH_PSI_CURVE",
        "ECDH_PSI_NUM_WORKERS",
        "ECDH_PSI_PARALLEL_THRESHOLD",
        "ECDH_PSI_FAIL_FAST",
    ):
        monkeypatch.delenv(key, raising=False)
    yield
    disable_logging()


@pytest.fixture
def alice():
    with EcdhPsi(config=PsiConfig()) as engine:
        yield engine


@pytest.fixture
def bob():
    with EcdhPsi(config=PsiConfig()) as engine:
        yield engine
