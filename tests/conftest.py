"""Pytest configuration for dfuserial tests."""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import logging

import pytest

from dfuserial.config.settings import TransportConfig
from tests.mocks import FakeChannel, nrf_peer

_HAS_PYTEST_ASYNCIO = importlib.util.find_spec("pytest_asyncio") is not None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test to run on asyncio loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Fallback asyncio runner when pytest-asyncio is unavailable."""
    if _HAS_PYTEST_ASYNCIO:
        return None
    if "asyncio" not in pyfuncitem.keywords:
        return None
    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        kwargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
        loop.run_until_complete(test_function(**kwargs))
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        except (RuntimeError, ValueError):
            pass
        loop.close()
        asyncio.set_event_loop(None)
    return True


@pytest.fixture(autouse=True)
def reset_logging_handlers():
    """Close and remove all logging handlers after each test to prevent ResourceWarnings."""
    root = logging.getLogger()
    root_level = root.level
    yield
    root.setLevel(root_level)
    logging.getLogger("dfuserial").setLevel(logging.NOTSET)
    for handler in root.handlers[:]:
        try:
            handler.close()
        except (OSError, RuntimeError):
            pass
        root.removeHandler(handler)


@pytest.fixture()
def transport_config() -> TransportConfig:
    return TransportConfig(serial_port="/dev/null", receipt_interval=16, max_chunk_size=None)


@pytest.fixture()
def fake_channel() -> FakeChannel:
    return FakeChannel(nrf_peer())
