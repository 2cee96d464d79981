"""
Network Reachability Tests
==========================

Tests for NetworkMonitor with psutil patched.

Run with: python -m pytest tests/test_network.py -v

Module: tests.test_network
Version: 1.0.0
"""

import socket
import pytest
import sys
from collections import namedtuple
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import network as network_module
from core.errors import NetworkNotReadyError, NetworkStatusError
from network import NetworkMonitor

IfStats = namedtuple("IfStats", "isup")
IfAddr = namedtuple("IfAddr", "family address")


def patch_interfaces(stats, addrs):
    psutil_mock = MagicMock()
    psutil_mock.Error = network_module.psutil.Error
    psutil_mock.net_if_stats.return_value = stats
    psutil_mock.net_if_addrs.return_value = addrs
    return patch.object(network_module, "psutil", psutil_mock)


class TestNetworkMonitor:
    """Test interface-based reachability."""

    def test_up_with_address_is_reachable(self):
        with patch_interfaces(
            {"wlan0": IfStats(True)},
            {"wlan0": [IfAddr(socket.AF_INET, "192.168.1.20")]},
        ):
            assert NetworkMonitor("wlan0").is_reachable() is True

    def test_down_is_unreachable(self):
        with patch_interfaces(
            {"wlan0": IfStats(False)},
            {"wlan0": [IfAddr(socket.AF_INET, "192.168.1.20")]},
        ):
            assert NetworkMonitor("wlan0").is_reachable() is False

    def test_link_local_only_is_unreachable(self):
        with patch_interfaces(
            {"wlan0": IfStats(True)},
            {"wlan0": [IfAddr(socket.AF_INET, "169.254.3.4"), IfAddr(socket.AF_INET6, "fe80::1%wlan0")]},
        ):
            assert NetworkMonitor("wlan0").is_reachable() is False

    def test_global_ipv6_is_reachable(self):
        with patch_interfaces(
            {"eth0": IfStats(True)},
            {"eth0": [IfAddr(socket.AF_INET6, "2001:db8::10")]},
        ):
            assert NetworkMonitor("eth0").is_reachable() is True

    def test_missing_interface_not_ready(self):
        with patch_interfaces({"lo": IfStats(True)}, {}):
            with pytest.raises(NetworkNotReadyError):
                NetworkMonitor("wlan0").is_reachable()

    def test_query_failure_is_status_error(self):
        psutil_mock = MagicMock()
        psutil_mock.Error = network_module.psutil.Error
        psutil_mock.net_if_stats.side_effect = OSError("netlink failed")
        with patch.object(network_module, "psutil", psutil_mock):
            with pytest.raises(NetworkStatusError):
                NetworkMonitor("wlan0").is_reachable()


class TestProbe:
    """Test the optional TCP probe."""

    def test_probe_success(self):
        with patch_interfaces(
            {"wlan0": IfStats(True)},
            {"wlan0": [IfAddr(socket.AF_INET, "10.0.0.5")]},
        ), patch.object(network_module.socket, "create_connection") as create:
            assert NetworkMonitor("wlan0", probe_host="example.net").is_reachable() is True
        create.assert_called_once_with(("example.net", 443), timeout=2.0)

    def test_probe_failure_is_unreachable(self):
        with patch_interfaces(
            {"wlan0": IfStats(True)},
            {"wlan0": [IfAddr(socket.AF_INET, "10.0.0.5")]},
        ), patch.object(network_module.socket, "create_connection", side_effect=OSError("timed out")):
            assert NetworkMonitor("wlan0", probe_host="example.net").is_reachable() is False
