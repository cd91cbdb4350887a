"""
Tests for the Arrival Attest HTTP API.

Coverage:
- Liveness probe
- Status mapping for every outcome
- End-to-end signing against a known verifier key
- Auth gate short-circuits before any distance work
"""

import logging

import pytest
from fastapi.testclient import TestClient

from api.server import create_app
from arrival_attest.authority import AttestationAuthority
from arrival_attest.destinations import Destination, InMemoryRegistry
from arrival_attest.digest import arrival_digest
from arrival_attest.metrics import Metrics
from arrival_attest.signer import SigningIdentity, recover_signer

DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
WALLET = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
API_KEY = "test-api-key"


class BrokenIdentity:
    address = "0x" + "00" * 20

    def sign_digest(self, _digest):
        raise RuntimeError("signer unavailable")


def _authority(identity=None):
    return AttestationAuthority(
        identity=identity or SigningIdentity.from_key(DEV_KEY),
        api_key=API_KEY,
        registry=InMemoryRegistry.of([Destination(1, 28.0026, 86.8528, "NP")]),
        metrics=Metrics(),
    )


@pytest.fixture
def authority():
    return _authority()


@pytest.fixture
def client(authority):
    """FastAPI test client with an injected authority."""
    with TestClient(create_app(authority=authority)) as c:
        yield c


def _post(client, body, key=API_KEY):
    headers = {"x-api-key": key} if key is not None else {}
    return client.post("/api/verify", json=body, headers=headers)


def _body(**overrides):
    body = {"walletAddress": WALLET, "destinationId": 1, "userLat": 28.0026, "userLon": 86.8528}
    body.update(overrides)
    return body


class TestLiveness:
    """Test unauthenticated liveness probe."""

    def test_hello_world(self, client):
        response = client.get("/api")
        assert response.status_code == 200
        assert response.text == "Hello World"


class TestVerifyEndpoint:
    """Test POST /api/verify."""

    def test_end_to_end_signature(self, client):
        response = _post(client, _body())
        assert response.status_code == 200

        sig_hex = response.json()["signature"]
        assert sig_hex.startswith("0x")
        assert len(sig_hex) == 2 + 130

        signer = recover_signer(arrival_digest(WALLET, 1), bytes.fromhex(sig_hex[2:]))
        assert signer == DEV_ADDRESS

    def test_string_coordinates(self, client):
        response = _post(client, _body(userLat="28.0026", userLon="86.8528"))
        assert response.status_code == 200

    def test_far_away_is_403_with_distance(self, client):
        response = _post(client, _body(userLat=0, userLon=0))
        assert response.status_code == 403

        error = response.json()["error"]
        assert error.startswith("You are ") and error.endswith(" meters away.")
        meters = int(error.split()[2])
        assert meters > 1_000_000
        assert "signature" not in response.json()

    @pytest.mark.parametrize("key", [None, "", "wrong", API_KEY + "x"])
    def test_bad_api_key_is_401(self, client, authority, key, caplog):
        with caplog.at_level(logging.INFO):
            response = _post(client, _body(), key=key)

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}
        assert authority.metrics.count("distance_checks_total") == 0
        assert "arrival signed" not in caplog.text

    def test_same_claim_good_key_then_bad_key(self, client, authority):
        assert _post(client, _body()).status_code == 200
        assert authority.metrics.count("distance_checks_total") == 1

        assert _post(client, _body(), key="wrong").status_code == 401
        assert authority.metrics.count("distance_checks_total") == 1

    def test_antipodal_claim_is_403(self):
        authority = _authority()
        authority.registry = InMemoryRegistry.of([Destination(1, 35.6517, 138.7944, "JP")])
        with TestClient(create_app(authority=authority)) as c:
            response = _post(c, _body(userLat=-35.6517, userLon=-41.2056))

        assert response.status_code == 403
        meters = int(response.json()["error"].split()[2])
        assert meters > 20_000_000

    def test_unknown_destination_is_404(self, client):
        for lat, lon in [(28.0026, 86.8528), (0, 0)]:
            response = _post(client, _body(destinationId=9999, userLat=lat, userLon=lon))
            assert response.status_code == 404
            assert response.json() == {"error": "Destination not found."}

    def test_missing_user_lat_is_400_before_lookup(self, client, authority):
        body = _body()
        del body["userLat"]
        response = _post(client, body)

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required parameters."}
        assert authority.registry.lookups == 0

    def test_malformed_coordinates_are_400(self, client):
        response = _post(client, _body(userLon="east"))
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid coordinates."}

    def test_non_json_body_is_400(self, client):
        response = client.post(
            "/api/verify",
            content=b"not json",
            headers={"x-api-key": API_KEY, "content-type": "application/json"},
        )
        assert response.status_code == 400

    def test_unauthorized_wins_over_bad_body(self, client):
        response = client.post("/api/verify", content=b"{", headers={"x-api-key": "nope"})
        assert response.status_code == 401

    def test_signer_failure_is_500(self):
        with TestClient(create_app(authority=_authority(BrokenIdentity()))) as c:
            response = _post(c, _body())
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error."}


class TestAppConfiguration:
    """Test app construction from the environment."""

    def test_refuses_to_start_without_secrets(self, monkeypatch):
        monkeypatch.delenv("VERIFIER_PRIVATE_KEY", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)
        with pytest.raises(RuntimeError, match="Missing required env var"):
            create_app()

    def test_builds_from_environment(self, monkeypatch):
        monkeypatch.setenv("VERIFIER_PRIVATE_KEY", DEV_KEY)
        monkeypatch.setenv("API_KEY", API_KEY)
        monkeypatch.setenv("IP_CHECK_ENABLED", "false")
        app = create_app()

        assert app.state.authority.identity.address == DEV_ADDRESS
        with TestClient(app) as c:
            # Production table: LNMIIT Jaipur
            ok = _post(c, _body(destinationId=6, userLat=26.93377, userLon=75.9236))
            assert ok.status_code == 200
