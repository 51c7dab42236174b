"""Shared test fixtures."""

from __future__ import annotations

import pytest

from chainwallet.shared.providers import NetworkRegistry

from fakes import FakeClientPool, make_provider


@pytest.fixture
def client_pool() -> FakeClientPool:
    return FakeClientPool()


@pytest.fixture
def registry() -> NetworkRegistry:
    """Network 1 with three providers, network 137 with a single one."""
    return NetworkRegistry(
        {
            1: [
                make_provider("alpha", 1),
                make_provider("beta", 2),
                make_provider("gamma", 3),
            ],
            137: [make_provider("solo", 1)],
        }
    )
