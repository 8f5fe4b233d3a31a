"""Tests for reachability.models."""

import socket

import pytest

from reachability.models import (
    NetworkStatus,
    ReachabilityFlags,
    ReachabilityTarget,
    SocketAddress,
    TargetKind,
    describe_flags,
)


class TestSocketAddress:
    """Test SocketAddress construction and parsing."""

    def test_zero_ipv4_is_zeroed_inet_address(self):
        """Test the default-route address has family INET and all else zero."""
        address = SocketAddress.zero_ipv4()

        assert address.family == socket.AF_INET
        assert address.host == "0.0.0.0"
        assert address.port == 0
        assert address.ip_address().is_unspecified

    def test_ip_address_ipv6(self):
        """Test IPv6 literal parses with AF_INET6."""
        address = SocketAddress(family=socket.AF_INET6, host="2001:db8::1", port=443)

        assert address.ip_address().version == 6

    def test_ip_address_family_mismatch(self):
        """Test an IPv4 literal with AF_INET6 is rejected."""
        address = SocketAddress(family=socket.AF_INET6, host="10.0.0.1")

        with pytest.raises(ValueError, match="does not match family"):
            address.ip_address()

    def test_ip_address_not_a_literal(self):
        """Test host names are not accepted as socket addresses."""
        address = SocketAddress(family=socket.AF_INET, host="example.com")

        with pytest.raises(ValueError):
            address.ip_address()

    def test_immutable(self):
        """Test SocketAddress cannot be modified after construction."""
        address = SocketAddress.zero_ipv4()

        with pytest.raises(AttributeError):
            address.port = 80


class TestReachabilityTarget:
    """Test ReachabilityTarget variants."""

    def test_host_name_target(self):
        target = ReachabilityTarget.for_host_name("example.com")

        assert target.kind is TargetKind.HOST_NAME
        assert target.host_name == "example.com"
        assert target.address is None
        assert str(target) == "example.com"

    def test_address_target(self):
        address = SocketAddress(family=socket.AF_INET, host="192.168.1.1", port=80)
        target = ReachabilityTarget.for_address(address)

        assert target.kind is TargetKind.ADDRESS
        assert target.address == address
        assert str(target) == "192.168.1.1:80"

    def test_ipv6_address_target_is_bracketed(self):
        address = SocketAddress(family=socket.AF_INET6, host="::1", port=80)

        assert str(ReachabilityTarget.for_address(address)) == "[::1]:80"

    def test_default_route_target(self):
        target = ReachabilityTarget.for_default_route()

        assert target.kind is TargetKind.DEFAULT_ROUTE
        assert target.address == SocketAddress.zero_ipv4()
        assert str(target) == "default route"


class TestNetworkStatus:
    """Test NetworkStatus labels."""

    def test_labels_are_distinct(self):
        labels = {status.label for status in NetworkStatus}

        assert len(labels) == 3

    def test_not_reachable_label(self):
        assert NetworkStatus.NOT_REACHABLE.label == "Not reachable"


class TestDescribeFlags:
    """Test the flag trace string."""

    def test_no_flags(self):
        assert describe_flags(ReachabilityFlags(0)) == "-- -------"

    def test_reachable_only(self):
        assert describe_flags(ReachabilityFlags.REACHABLE) == "-R -------"

    def test_all_flags(self):
        flags = ReachabilityFlags(0)
        for flag in ReachabilityFlags:
            flags |= flag

        assert describe_flags(flags) == "WR tcCiDld"

    def test_cellular_on_demand(self):
        flags = (
            ReachabilityFlags.IS_WWAN
            | ReachabilityFlags.REACHABLE
            | ReachabilityFlags.CONNECTION_REQUIRED
            | ReachabilityFlags.CONNECTION_ON_DEMAND
        )

        assert describe_flags(flags) == "WR -c--D--"
