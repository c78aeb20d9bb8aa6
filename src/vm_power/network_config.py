"""cloud-init network-config rendering.

Produces netplan version 2 YAML for the NoCloud datasource. Interfaces are
matched by MAC address and named eth0, eth1, ... in input order. Gateways and
nameservers are only emitted for the first interface.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Sequence
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from vm_power import constants
from vm_power._logging import get_logger
from vm_power.exceptions import (
    MalformedIPAddressError,
    MissingGatewayError,
    MissingIPAddressError,
    MissingMacAddressError,
    MissingNetworkConfigDataError,
)

logger = get_logger(__name__)


class NetworkConfigData(BaseModel):
    """Addressing for one guest network interface."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mac_address: str = Field(default="", description="MAC address the interface is matched on")
    ip_address: str = Field(default="", description="Static IPv4 address in CIDR form")
    ipv6_address: str = Field(default="", description="Static IPv6 address in CIDR form")
    gateway: str = Field(default="", description="IPv4 default gateway")
    gateway6: str = Field(default="", description="IPv6 default gateway")
    dns_servers: list[str] = Field(default_factory=list)
    dhcp4: bool = False
    dhcp6: bool = False


def _validate_prefix(address: str, version: int) -> None:
    if not address:
        raise MissingIPAddressError()
    if "/" not in address:
        raise MalformedIPAddressError(address)
    try:
        iface = ipaddress.ip_interface(address)
    except ValueError as e:
        raise MalformedIPAddressError(address) from e
    if iface.version != version:
        raise MalformedIPAddressError(address, {"expected_version": version})


class NetworkConfig:
    """Renders machine network-config.

    Usage:
        data = NetworkConfig([NetworkConfigData(mac_address=..., ip_address="10.0.0.5/24", gateway="10.0.0.1")])
        payload = data.render()
    """

    def __init__(self, configs: Sequence[NetworkConfigData]):
        self._configs = list(configs)

    def validate(self) -> None:
        """Check every interface, raising the first NetworkConfigError found."""
        if not self._configs:
            raise MissingNetworkConfigDataError()

        for index, d in enumerate(self._configs):
            ctx = {"interface": index}
            if not d.dhcp4 and not d.dhcp6 and not d.ip_address and not d.ipv6_address:
                raise MissingIPAddressError(ctx)
            if not d.mac_address:
                raise MissingMacAddressError(ctx)

            if not d.dhcp4 and d.ip_address:
                _validate_prefix(d.ip_address, 4)
                if not d.gateway:
                    raise MissingGatewayError(ctx)

            if not d.dhcp6 and d.ipv6_address:
                _validate_prefix(d.ipv6_address, 6)
                if not d.gateway6:
                    raise MissingGatewayError(ctx)

    def to_dict(self) -> dict[str, Any]:
        ethernets: dict[str, Any] = {}
        for index, d in enumerate(self._configs):
            iface: dict[str, Any] = {
                "match": {"macaddress": d.mac_address},
                "dhcp4": d.dhcp4,
            }
            if d.dhcp6:
                iface["dhcp6"] = True
            addresses = [a for a in (d.ip_address, d.ipv6_address) if a]
            if addresses:
                iface["addresses"] = addresses
            if index == 0:
                if d.gateway:
                    iface["gateway4"] = d.gateway
                if d.gateway6:
                    iface["gateway6"] = d.gateway6
                if d.dns_servers:
                    iface["nameservers"] = {"addresses": list(d.dns_servers)}
            ethernets[f"{constants.CLOUD_INIT_INTERFACE_PREFIX}{index}"] = iface

        return {"version": constants.NETWORK_CONFIG_VERSION, "ethernets": ethernets}

    def render(self) -> bytes:
        """Validate and render network-config YAML.

        Raises:
            NetworkConfigError: If the interface data is incomplete or malformed
        """
        self.validate()
        rendered = yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)
        logger.debug("Rendered network-config:\n%s", rendered)
        return rendered.encode()
