"""
Arrival Attest - geofenced proof-of-location attestations.

Signs (wallet, destination) pairs for on-chain proof-of-arrival.
Commitment only: coordinates are checked, never signed or stored.
"""

from arrival_attest.authority import AttestationAuthority, LocationClaim
from arrival_attest.destinations import (
    Destination,
    InMemoryRegistry,
    Registry,
    StaticRegistry,
)
from arrival_attest.digest import arrival_digest, to_hex32
from arrival_attest.distance import (
    ARRIVAL_THRESHOLD_M,
    EARTH_RADIUS_M,
    Proximity,
    classify,
    haversine_distance_m,
)
from arrival_attest.metrics import Metrics
from arrival_attest.settings import Settings
from arrival_attest.signer import SigningIdentity
from arrival_attest.verdict import Outcome, Verdict

__version__ = "0.1.0"

__all__ = [
    "ARRIVAL_THRESHOLD_M",
    "AttestationAuthority",
    "Destination",
    "EARTH_RADIUS_M",
    "InMemoryRegistry",
    "LocationClaim",
    "Metrics",
    "Outcome",
    "Proximity",
    "Registry",
    "Settings",
    "SigningIdentity",
    "StaticRegistry",
    "Verdict",
    "arrival_digest",
    "classify",
    "haversine_distance_m",
    "to_hex32",
]
