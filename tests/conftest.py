"""
Pytest configuration for IsilonClient tests.
"""

import pytest

from test_utils import FakeOneFS, make_client


@pytest.fixture
def cluster():
    """A fresh in-memory OneFS API."""
    return FakeOneFS()


@pytest.fixture
def session_client(cluster):
    with make_client(cluster, auth_type=1) as client:
        yield client


@pytest.fixture
def basic_client(cluster):
    with make_client(cluster, auth_type=0) as client:
        yield client
