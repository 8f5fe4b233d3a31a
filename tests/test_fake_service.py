"""Tests for FakeReachabilityService and shared service bookkeeping."""

import socket

import pytest
from PySide6.QtCore import QCoreApplication, QEventLoop, QObject, QTimer

from reachability.fake_service import FakeReachabilityService
from reachability.models import ReachabilityFlags, SocketAddress, TargetKind
from reachability.service import is_valid_host_name

F = ReachabilityFlags


def wait_ms(ms):
    """Wait for specified milliseconds in Qt event loop."""
    loop = QEventLoop()
    QTimer.singleShot(ms, loop.quit)
    loop.exec()


@pytest.fixture(scope="module")
def qapp():
    """Create QCoreApplication instance for tests."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


class TestHostNameValidation:
    """Test is_valid_host_name syntax checks."""

    @pytest.mark.parametrize(
        "host_name",
        ["example.com", "localhost", "a-b.example.org", "example.com.", "8.8.8.8", "2001:db8::1"],
    )
    def test_valid(self, host_name):
        assert is_valid_host_name(host_name)

    @pytest.mark.parametrize(
        "host_name",
        ["", "   ", "bad host", "-leading.com", "trailing-.com", "a..b", "x" * 64 + ".com"],
    )
    def test_invalid(self, host_name):
        assert not is_valid_host_name(host_name)

    def test_too_long(self):
        name = ".".join(["a" * 60] * 5)

        assert not is_valid_host_name(name)


class TestFakeReachabilityService:
    """Test the fake service contract."""

    def test_create_with_name(self):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")

        assert handle is not None
        assert handle.target.host_name == "example.com"
        assert service.handles == [handle]

    def test_create_with_zero_address_is_default_route(self):
        service = FakeReachabilityService()
        handle = service.create_with_address(SocketAddress.zero_ipv4())

        assert handle.target.kind is TargetKind.DEFAULT_ROUTE

    def test_create_with_invalid_address(self):
        service = FakeReachabilityService()

        assert service.create_with_address(SocketAddress(socket.AF_INET, "nope")) is None

    def test_handles_are_distinct(self):
        service = FakeReachabilityService()

        first = service.create_with_name("example.com")
        second = service.create_with_name("example.com")

        assert first is not second
        assert first != second

    def test_default_flags(self):
        service = FakeReachabilityService(default_flags=F.REACHABLE | F.IS_WWAN)
        handle = service.create_with_name("example.com")

        assert service.get_flags(handle) == F.REACHABLE | F.IS_WWAN

    def test_get_flags_failure(self):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")
        service.fail_get_flags = True

        assert service.get_flags(handle) is None

    def test_clearing_callback_allowed_while_failing(self):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")
        service.set_callback(handle, lambda h, f: None)
        service.fail_set_callback = True

        assert service.set_callback(handle, None) is True
        assert not service.has_callback(handle)

    def test_schedule_other_context_fails(self, qapp):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")
        first, second = QObject(), QObject()

        assert service.schedule(handle, first) is True
        assert service.schedule(handle, second) is False

    def test_unschedule_wrong_context_ignored(self, qapp):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")
        first, second = QObject(), QObject()
        service.schedule(handle, first)

        service.unschedule(handle, second)

        assert service.is_scheduled(handle)

    def test_change_delivered_on_context(self, qapp):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")
        calls = []
        service.set_callback(handle, lambda h, flags: calls.append((h, flags)))
        service.schedule(handle, QObject(qapp))

        service.set_flags(handle, F(0))

        assert calls == []  # queued, not synchronous
        wait_ms(20)
        assert calls == [(handle, F(0))]

    def test_unchanged_flags_not_dispatched(self, qapp):
        service = FakeReachabilityService()
        handle = service.create_with_name("example.com")
        calls = []
        service.set_callback(handle, lambda h, flags: calls.append(flags))
        service.schedule(handle, QObject(qapp))

        service.set_flags(handle, F.REACHABLE)
        wait_ms(20)

        assert calls == []
