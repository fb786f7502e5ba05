"""Global pytest configuration."""

import os

import httpx
import pytest

# Keep test runs from writing dated log files into the repo
os.environ.setdefault("RENDER", "1")


@pytest.fixture
def mock_transport_factory():
    def factory(handler):
        return httpx.MockTransport(handler)
    return factory
