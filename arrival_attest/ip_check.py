"""
Optional IP reputation screening.

Best-effort anti-spoofing, disabled unless IP_CHECK_ENABLED is set:
- the client IP must geolocate to the destination's jurisdiction
- proxy / hosting-provider addresses are refused
- a failed lookup fails closed
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from arrival_attest.destinations import Destination
from arrival_attest.settings import DEFAULT_IP_LOOKUP_URL
from arrival_attest.verdict import Outcome, Verdict

logger = logging.getLogger(__name__)

IP_MISMATCH = "IP-GPS location mismatch."
PROXY_DETECTED = "VPN or Proxy detected."
LOOKUP_FAILED = "Location integrity verification failed."


@dataclass(frozen=True)
class IpInfo:
    """Subset of an IP geolocation record."""

    status: str
    country_code: Optional[str]
    proxy: bool = False
    hosting: bool = False


class IpLookup(Protocol):
    def lookup(self, ip: str) -> IpInfo:
        ...


@dataclass
class IpApiLookup:
    """ip-api.com style JSON lookup over HTTP."""

    url_template: str = DEFAULT_IP_LOOKUP_URL
    timeout_s: float = 5.0

    def lookup(self, ip: str) -> IpInfo:
        """
        Fetch geolocation for `ip`.

        Raises:
            httpx.HTTPError: On transport failure or non-2xx status
            ValueError: On a non-JSON body
        """
        r = httpx.get(self.url_template.format(ip=ip), timeout=self.timeout_s)
        r.raise_for_status()
        data = r.json()
        return IpInfo(
            status=str(data.get("status", "")),
            country_code=data.get("countryCode"),
            proxy=bool(data.get("proxy", False)),
            hosting=bool(data.get("hosting", False)),
        )


def client_ip(forwarded_for: Optional[str], peer: Optional[str]) -> Optional[str]:
    """Originating client IP: first x-forwarded-for hop, else the socket peer."""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer or None


@dataclass
class IpReputationCheck:
    lookup: IpLookup

    def evaluate(self, ip: Optional[str], destination: Destination) -> Optional[Verdict]:
        """
        Screen a client IP against a destination.

        Returns:
            None if the IP passes (or cannot be attributed to a remote client),
            otherwise the rejecting Verdict
        """
        if not ip:
            return None
        try:
            addr = ipaddress.ip_address(ip)
        except ValueError:
            logger.info(f"ip_check rejected reason=unparseable_ip destination={destination.id}")
            return Verdict.reject(Outcome.FORBIDDEN, IP_MISMATCH)
        if addr.is_loopback:
            return None

        try:
            info = self.lookup.lookup(str(addr))
        except Exception:
            logger.exception(f"IP lookup failed destination={destination.id}")
            return Verdict.reject(Outcome.INTERNAL_ERROR, LOOKUP_FAILED)

        if info.country_code != destination.jurisdiction:
            logger.info(
                f"ip_check rejected reason=country_mismatch "
                f"got={info.country_code} want={destination.jurisdiction}"
            )
            return Verdict.reject(Outcome.FORBIDDEN, IP_MISMATCH)
        if info.proxy or info.hosting:
            logger.info(f"ip_check rejected reason=proxy destination={destination.id}")
            return Verdict.reject(Outcome.FORBIDDEN, PROXY_DETECTED)
        return None
