import base64
import sys
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

# Add the project root to sys.path so tests can import it directly.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# Also add src/ to the path so tests can import modules as top-level packages like `flowlog`.
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

SAMPLE_LINE = (
    "2 123456789012 eni-4ff3618a 2.178.18.24 10.100.5.78 23458 7547 6 1 40 "
    "1490365304 1490365358 ACCEPT OK"
)


def encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class FakePaginator:
    def __init__(self, pages):
        self._pages = pages

    def paginate(self):
        for p in self._pages:
            yield p


class FakeEC2:
    """Minimal EC2 client exposing the describe_network_interfaces paginator."""

    def __init__(self, interfaces=None, error_code=None):
        self.interfaces = interfaces or []
        self.error_code = error_code
        self.calls = 0

    def get_paginator(self, name):
        assert name == 'describe_network_interfaces'
        self.calls += 1
        if self.error_code:
            raise ClientError(
                {'Error': {'Code': self.error_code, 'Message': 'denied'}},
                'DescribeNetworkInterfaces',
            )
        return FakePaginator([{'NetworkInterfaces': self.interfaces}])


def eni(interface_id, groups, primary=None, secondary=()):
    addresses = []
    if primary:
        addresses.append({'PrivateIpAddress': primary, 'Primary': True})
    addresses.extend({'PrivateIpAddress': a, 'Primary': False} for a in secondary)
    interface = {
        'NetworkInterfaceId': interface_id,
        'Groups': [{'GroupId': g, 'GroupName': g.replace('sg-', 'group-')} for g in groups],
        'PrivateIpAddresses': addresses,
    }
    if primary:
        interface['PrivateIpAddress'] = primary
    return interface


@pytest.fixture
def sample_line():
    return SAMPLE_LINE


@pytest.fixture
def encode_line():
    return encode


@pytest.fixture
def fake_ec2():
    return FakeEC2


@pytest.fixture
def make_eni():
    return eni


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration overrides that may leak in from the environment."""
    for name in (
        "ENVIRONMENT",
        "FLOWLOG_CONFIG_DIR",
        "AWS_REGION",
        "AWS_PROFILE",
        "GEOLOCATION_ENABLED",
        "GEOCODE_ENDPOINT",
        "GEOCODE_API_KEY_PARAMETER",
        "DELIVERY_STREAM_NAME",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
