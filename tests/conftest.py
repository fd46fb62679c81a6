"""
Pytest configuration and shared fixtures for the REST core tests.

Provides fake clocks, recorded sleeps and a scripted transport so
time-dependent and network-dependent behaviour is tested deterministically.
"""

import os
import sys
from pathlib import Path
from typing import List, Union

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Configure test environment
os.environ['ENVIRONMENT'] = 'test'

from cex_rest.logging.factory import LoggerFactory
from cex_rest.logging.structs import LoggingConfig, ConsoleBackendConfig

# Quiet console logging; configured before test modules create their loggers
LoggerFactory.configure(LoggingConfig(
    environment="test",
    console=ConsoleBackendConfig(enabled=True, min_level="WARNING", color=False),
))

from cex_rest.networking.http import HttpResponse, HttpTransport, PreparedRequest


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records delays and advances an optional clock."""

    def __init__(self, clock: FakeClock = None):
        self.clock = clock
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.clock is not None:
            self.clock.advance(delay)


class ScriptedTransport(HttpTransport):
    """Returns scripted responses (or raises scripted exceptions) in order."""

    def __init__(self, *script: Union[HttpResponse, BaseException]):
        self.script = list(script)
        self.requests: List[PreparedRequest] = []
        self.closed = False

    async def send(self, request: PreparedRequest) -> HttpResponse:
        self.requests.append(request)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


def json_response(body: str, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=body.encode('utf-8'))


@pytest.fixture
def fake_clock():
    return FakeClock(start=100.0)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
