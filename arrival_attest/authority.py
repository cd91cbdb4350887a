"""
Attestation authority - the arrival verification pipeline.

    RECEIVED -> AUTH_CHECKED -> CLAIM_VALIDATED -> DESTINATION_RESOLVED
             -> [IP_CHECKED] -> DISTANCE_CHECKED -> SIGNED

Any step may end the request with a rejecting Verdict. Steps return
values or Verdicts; nothing is retried and nothing is persisted, so a
resubmitted claim is simply evaluated again from scratch.
"""

from __future__ import annotations

import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from eth_utils import is_address

from arrival_attest.destinations import Destination, Registry, StaticRegistry
from arrival_attest.digest import arrival_digest
from arrival_attest.distance import (
    ARRIVAL_THRESHOLD_M,
    Proximity,
    classify,
    haversine_distance_m,
    parse_latitude,
    parse_longitude,
    round_half_up,
)
from arrival_attest.ip_check import IpApiLookup, IpLookup, IpReputationCheck
from arrival_attest.metrics import Metrics
from arrival_attest.settings import Settings
from arrival_attest.signer import SigningIdentity, signature_hex
from arrival_attest.verdict import INTERNAL_ERROR, MISSING_PARAMETERS, Outcome, Verdict

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"
DESTINATION_NOT_FOUND = "Destination not found."
INVALID_ADDRESS = "Invalid wallet address."
INVALID_DESTINATION = "Invalid destinationId."
INVALID_COORDINATES = "Invalid coordinates."

_FIELDS = ("walletAddress", "destinationId", "userLat", "userLon")


def _missing(v: Any) -> bool:
    return v is None or v == ""


def _parse_destination_id(v: Any) -> Optional[int]:
    if isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v if v >= 0 else None
    if isinstance(v, float):
        return int(v) if v.is_integer() and v >= 0 else None
    if isinstance(v, str):
        s = v.strip()
        if s.isascii() and s.isdigit():
            return int(s)
    return None


@dataclass(frozen=True)
class LocationClaim:
    """Untrusted per-request claim, validated."""

    wallet_address: str
    destination_id: int
    claimed_latitude: float
    claimed_longitude: float

    @staticmethod
    def parse(payload: Any) -> Union[LocationClaim, Verdict]:
        """
        Validate a decoded JSON body.

        Returns:
            LocationClaim, or a BAD_REQUEST Verdict naming the problem
        """
        if not isinstance(payload, dict):
            return Verdict.reject(Outcome.BAD_REQUEST, MISSING_PARAMETERS)
        if any(_missing(payload.get(k)) for k in _FIELDS):
            return Verdict.reject(Outcome.BAD_REQUEST, MISSING_PARAMETERS)

        wallet = payload["walletAddress"]
        if not isinstance(wallet, str) or not is_address(wallet):
            return Verdict.reject(Outcome.BAD_REQUEST, INVALID_ADDRESS)

        destination_id = _parse_destination_id(payload["destinationId"])
        if destination_id is None:
            return Verdict.reject(Outcome.BAD_REQUEST, INVALID_DESTINATION)

        lat = parse_latitude(payload["userLat"])
        lon = parse_longitude(payload["userLon"])
        if lat is None or lon is None:
            return Verdict.reject(Outcome.BAD_REQUEST, INVALID_COORDINATES)

        return LocationClaim(wallet, destination_id, lat, lon)


@dataclass
class AttestationAuthority:
    """
    Decides arrivals and signs the accepted ones.

    Holds the signing identity and the shared API secret for its whole
    lifetime. Safe to share across concurrent requests: the registry and
    key are read-only, metrics are best-effort counters.
    """

    identity: SigningIdentity
    api_key: str = field(repr=False)
    registry: Registry = field(default_factory=StaticRegistry)
    ip_check: Optional[IpReputationCheck] = None
    metrics: Metrics = field(default_factory=Metrics)

    @staticmethod
    def from_settings(
        settings: Settings,
        *,
        registry: Optional[Registry] = None,
        ip_lookup: Optional[IpLookup] = None,
        metrics: Optional[Metrics] = None,
    ) -> AttestationAuthority:
        """
        Build the authority from configuration.

        Raises:
            ValueError: If the verifier private key is invalid
        """
        ip_check = None
        if settings.IP_CHECK_ENABLED:
            ip_check = IpReputationCheck(
                ip_lookup
                or IpApiLookup(settings.IP_LOOKUP_URL, settings.IP_LOOKUP_TIMEOUT_S)
            )
        authority = AttestationAuthority(
            identity=SigningIdentity.from_key(settings.VERIFIER_PRIVATE_KEY),
            api_key=settings.API_KEY,
            registry=registry if registry is not None else StaticRegistry(),
            ip_check=ip_check,
            metrics=metrics if metrics is not None else Metrics(),
        )
        logger.info(
            f"AttestationAuthority ready signer={authority.identity.address} "
            f"ip_check={'on' if ip_check else 'off'}"
        )
        return authority

    # --- steps ---

    def check_credential(self, credential: Optional[str]) -> Optional[Verdict]:
        """Single constant-time comparison against the shared secret."""
        supplied = (credential or "").encode("utf-8")
        if hmac.compare_digest(supplied, self.api_key.encode("utf-8")):
            return None
        return Verdict.reject(Outcome.UNAUTHORIZED, UNAUTHORIZED)

    def resolve(self, claim: LocationClaim) -> Union[Destination, Verdict]:
        destination = self.registry.lookup(claim.destination_id)
        if destination is None:
            return Verdict.reject(Outcome.NOT_FOUND, DESTINATION_NOT_FOUND)
        return destination

    def measure(self, claim: LocationClaim, destination: Destination) -> Union[float, Verdict]:
        """Distance gate. Rejections carry the measured distance."""
        self.metrics.inc("distance_checks_total")
        distance = haversine_distance_m(
            claim.claimed_latitude,
            claim.claimed_longitude,
            destination.latitude,
            destination.longitude,
        )
        if classify(distance, ARRIVAL_THRESHOLD_M) is Proximity.OUTSIDE:
            return Verdict.reject(
                Outcome.FORBIDDEN,
                f"You are {round_half_up(distance)} meters away.",
                distance_m=distance,
            )
        return distance

    def attest(self, claim: LocationClaim, distance_m: float) -> Verdict:
        """Sign the arrival digest. Any failure is an internal error."""
        t0 = time.time()
        try:
            digest = arrival_digest(claim.wallet_address, claim.destination_id)
            signature = self.identity.sign_digest(digest)
        except Exception:
            logger.exception(
                f"signing failed wallet={claim.wallet_address} "
                f"destination={claim.destination_id}"
            )
            return Verdict.reject(Outcome.INTERNAL_ERROR, INTERNAL_ERROR)
        self.metrics.observe("signing_ms", (time.time() - t0) * 1000.0)
        logger.info(
            f"arrival signed wallet={claim.wallet_address} "
            f"destination={claim.destination_id} digest=0x{digest.hex()}"
        )
        return Verdict.signed(signature_hex(signature), distance_m)

    # --- pipeline ---

    def verify(
        self,
        credential: Optional[str],
        payload: Any,
        client_ip: Optional[str] = None,
    ) -> Verdict:
        """
        Run one claim through the full pipeline.

        Args:
            credential: Value of the x-api-key header (None if absent)
            payload: Decoded JSON body
            client_ip: Originating IP, used only when IP screening is on

        Returns:
            Terminal Verdict; never raises for a routine rejection
        """
        self.metrics.inc("requests_total")
        verdict = self._run(credential, payload, client_ip)
        self.metrics.inc(f"outcome_{verdict.outcome.value.lower()}_total")
        if verdict.outcome not in (Outcome.SIGNED, Outcome.INTERNAL_ERROR):
            logger.info(f"verify rejected outcome={verdict.outcome.value} reason={verdict.message!r}")
        return verdict

    def _run(self, credential: Optional[str], payload: Any, client_ip: Optional[str]) -> Verdict:
        rejected = self.check_credential(credential)
        if rejected is not None:
            return rejected

        claim = LocationClaim.parse(payload)
        if isinstance(claim, Verdict):
            return claim

        destination = self.resolve(claim)
        if isinstance(destination, Verdict):
            return destination

        if self.ip_check is not None:
            rejected = self.ip_check.evaluate(client_ip, destination)
            if rejected is not None:
                return rejected

        distance = self.measure(claim, destination)
        if isinstance(distance, Verdict):
            return distance

        return self.attest(claim, distance)
