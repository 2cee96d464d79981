"""
Network Reachability
====================
Answers "is the internet reachable right now?" for the hub poll tick.

Reachability is derived from the network interface state reported by psutil:
the interface must exist, be up, and carry a routable (non-loopback,
non-link-local) address. An optional TCP probe to a known host can tighten the
check on networks where an address does not imply a route.

Error mapping:
    - interface not present yet (stack still starting) -> NetworkNotReadyError
    - interface status query failed -> NetworkStatusError (fatal)
    - probe connection refused or timed out -> not reachable

Module: network
Version: 1.0.0
"""

import ipaddress
import socket

import psutil

from core.constants import DEBUG_ENABLED, DEFAULT_NETWORK_INTERFACE
from core.errors import NetworkNotReadyError, NetworkStatusError

_ADDRESS_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _is_routable(address):
    # IPv6 addresses may carry a scope suffix ("fe80::1%wlan0")
    try:
        ip = ipaddress.ip_address(address.split("%", 1)[0])
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


class NetworkMonitor:
    """
    Interface-based reachability check.

    Attributes:
        interface: Interface name, e.g. "wlan0"
        probe_host: Optional host for a TCP connect probe
        probe_port: Port for the probe
        probe_timeout: Probe timeout in seconds
    """

    def __init__(
        self,
        interface=DEFAULT_NETWORK_INTERFACE,
        probe_host=None,
        probe_port=443,
        probe_timeout=2.0):
        self.interface = interface
        self.probe_host = probe_host
        self.probe_port = probe_port
        self.probe_timeout = probe_timeout

    def is_reachable(self):
        """
        Check whether the hub can be reached through the interface.

        Returns:
            bool: True if the interface is up with a routable address
                  (and the probe succeeded, when configured)

        Raises:
            NetworkNotReadyError: Interface not present yet
            NetworkStatusError: Interface status query failed
        """
        try:
            if_stats = psutil.net_if_stats()
            if_addrs = psutil.net_if_addrs()
        except (psutil.Error, OSError) as e:
            raise NetworkStatusError(
                "Failed to get network interface status for {}: {}".format(self.interface, e)
            ) from e

        stats = if_stats.get(self.interface)
        if stats is None:
            raise NetworkNotReadyError("Interface {} not present".format(self.interface))

        if not stats.isup:
            if DEBUG_ENABLED:
                print("[NET] [DEBUG] {} is down".format(self.interface))
            return False

        routable = [
            addr.address for addr in if_addrs.get(self.interface, [])
            if addr.family in _ADDRESS_FAMILIES and _is_routable(addr.address)
        ]
        if not routable:
            if DEBUG_ENABLED:
                print("[NET] [DEBUG] {} has no routable address".format(self.interface))
            return False

        if self.probe_host:
            return self._probe()
        return True

    def _probe(self):
        try:
            with socket.create_connection((self.probe_host, self.probe_port), timeout=self.probe_timeout):
                return True
        except OSError as e:
            if DEBUG_ENABLED:
                print("[NET] [DEBUG] Probe {}:{} failed: {}".format(self.probe_host, self.probe_port, e))
            return False

    def __repr__(self):
        return "NetworkMonitor(interface={}, probe_host={})".format(self.interface, self.probe_host)
