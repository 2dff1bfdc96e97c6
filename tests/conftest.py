"""
Pytest configuration and shared fixtures for Traffic Breaks tests.
"""

import json

import pytest

from fakes import FakeAliyunApi
from traffic_breaks.services.client import SignedRequestClient


GB = 1024 ** 3


@pytest.fixture
def fake_api():
    """Fake CDT/ECS endpoints behind a mocked requests session."""
    return FakeAliyunApi()


@pytest.fixture
def client(fake_api):
    """Signed client wired to the fake endpoints."""
    return SignedRequestClient('test-key-id', 'test-key-secret', session=fake_api.session)


@pytest.fixture
def sample_instances():
    """Two instances sharing the Hong Kong quota plus one in Singapore."""
    return [
        {"region": "cn-hongkong", "id": "i-a", "threshold": 200},
        {"region": "cn-hongkong", "id": "i-b", "threshold": 10},
        {"region": "ap-southeast-1", "id": "i-c", "threshold": 180},
    ]


@pytest.fixture
def sample_env(sample_instances):
    """Environment-style configuration for a run."""
    return {
        "ACCESS_KEY_ID": "test-key-id",
        "ACCESS_KEY_SECRET": "test-key-secret",
        "INSTANCES": json.dumps(sample_instances),
    }
