"""IP address assignment from the allocation ranges of a subnet."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence, Union

IPAM_LABEL_KEY = "ipam.network.openstack.org"

_Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class IPAMError(Exception):
    """Raised when an address cannot be assigned."""


@dataclass(frozen=True)
class AllocationRange:
    """An inclusive range of addresses that may be handed out."""

    start: str
    end: str


@dataclass
class Subnet:
    """A subnet with its allocation ranges and excluded addresses."""

    name: str
    allocation_ranges: list[AllocationRange] = field(default_factory=list)
    exclude_addresses: list[str] = field(default_factory=list)
    cidr: str = ""


@dataclass
class Reservation:
    """Addresses held by one IP set, keyed by network name."""

    ipset: str
    addresses: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class IPAddress:
    """An address assigned on a network and subnet."""

    network: str
    subnet: str
    address: str


def _parse_range_bound(value: str, which: str) -> _Address:
    try:
        return ipaddress.ip_address(value)
    except ValueError as exc:
        raise IPAMError(
            f"failed to parse AllocationRange.{which} IP {value}: {exc}"
        ) from exc


def _ends_with_zero(ip: _Address) -> bool:
    packed = ip.packed
    if ip.version == 4:
        return packed[3] == 0
    return packed[14] == 0 and packed[15] == 0


def _order_key(ip: _Address) -> tuple[int, int]:
    return ip.version, int(ip)


def _walk(start: _Address, end: _Address) -> Iterator[_Address]:
    """Yield every address from start up to and including end."""
    current = start
    while _order_key(current) <= _order_key(end):
        yield current
        try:
            current = current + 1
        except ValueError:
            return


@dataclass
class AssignIPDetails:
    """Everything needed to pick an address for one IP set on one network."""

    ipset: str
    net_name: str
    subnet: Subnet
    reservations: Sequence[Reservation] = ()
    fixed_ip: Optional[Union[str, _Address]] = None

    def assign_ip(self) -> IPAddress:
        """Return the fixed address if one is requested, else the first free one."""
        if self.fixed_ip is not None:
            return self._assign_fixed()
        return self._assign_next_free()

    def _owner_of(self, address: str) -> Optional[str]:
        for reservation in self.reservations:
            if reservation.addresses.get(self.net_name) == address:
                return reservation.ipset
        return None

    def _address(self, address: str) -> IPAddress:
        return IPAddress(network=self.net_name, subnet=self.subnet.name, address=address)

    def _assign_fixed(self) -> IPAddress:
        try:
            fixed = str(ipaddress.ip_address(self.fixed_ip))
        except ValueError as exc:
            raise IPAMError(f"invalid FixedIP {self.fixed_ip}: {exc}") from exc

        if fixed in self.subnet.exclude_addresses:
            raise IPAMError(f"FixedIP {fixed} is in ExcludeAddresses")

        owner = self._owner_of(fixed)
        if owner is not None and owner != self.ipset:
            raise IPAMError(f"{fixed} already reserved for {owner}")

        return self._address(fixed)

    def _assign_next_free(self) -> IPAddress:
        for allocation in self.subnet.allocation_ranges:
            first = _parse_range_bound(allocation.start, "Start")
            last = _parse_range_bound(allocation.end, "End")
            for candidate in _walk(first, last):
                if _ends_with_zero(candidate):
                    continue
                text = str(candidate)
                if text in self.subnet.exclude_addresses:
                    continue
                owner = self._owner_of(text)
                if owner is not None and owner != self.ipset:
                    continue
                return self._address(text)

        raise IPAMError(
            f"no ip address could be created for {self.ipset} "
            f"in subnet {self.subnet.name}"
        )