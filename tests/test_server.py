import unittest

from fastapi.testclient import TestClient

from zklogin import server
from zklogin.auth import AuthOrchestrator
from zklogin.commitment import create_commitment, decode_salt, derive_witness_scalar
from zklogin.config import Settings
from zklogin.crypto import DEFAULT_KEY, SchnorrBackend, Witness
from zklogin.proof import generate_proof
from zklogin.server import create_app
from zklogin.store import Credential, InMemoryCredentialStore


class TestServer(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryCredentialStore()
        self.client = TestClient(
            create_app(settings=Settings(), orchestrator=AuthOrchestrator(self.store, DEFAULT_KEY))
        )

    def _signup(self, account_id: str, password: str):
        salt, commitment = create_commitment(password)
        response = self.client.post(
            "/signup",
            json={"accountId": account_id, "salt": salt, "commitment": commitment},
        )
        return response, salt, commitment

    def _login(self, account_id: str, proof, signals):
        return self.client.post(
            "/login",
            json={"accountId": account_id, "proof": proof, "publicSignals": signals},
        )

    def test_full_flow(self) -> None:
        response, salt, commitment = self._signup("alice@x.com", "hunter2")
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json(), {"accountId": "alice@x.com", "ok": True})

        response = self.client.get("/loginData", params={"accountId": "alice@x.com"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"salt": salt, "commitment": commitment})

        proof, signals = generate_proof("hunter2", salt, commitment)
        response = self._login("alice@x.com", proof, signals)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"ok": True})

    def test_duplicate_signup(self) -> None:
        self._signup("alice@x.com", "hunter2")
        response, _, _ = self._signup("alice@x.com", "other")
        self.assertEqual(response.status_code, 409)

    def test_signup_missing_fields(self) -> None:
        response = self.client.post("/signup", json={"accountId": "alice@x.com"})
        self.assertEqual(response.status_code, 422)

    def test_signup_malformed_salt(self) -> None:
        _, commitment = create_commitment("hunter2")
        response = self.client.post(
            "/signup",
            json={"accountId": "alice@x.com", "salt": "xyz", "commitment": commitment},
        )
        self.assertEqual(response.status_code, 400)

    def test_login_data_unknown(self) -> None:
        response = self.client.get("/loginData", params={"accountId": "ghost@x.com"})
        self.assertEqual(response.status_code, 404)

    def test_login_unknown(self) -> None:
        response = self._login("ghost@x.com", {}, [])
        self.assertEqual(response.status_code, 404)

    def test_invalid_and_malformed_proofs_look_the_same(self) -> None:
        _, salt, commitment = self._signup("alice@x.com", "hunter2")
        salt_bytes = decode_salt(salt)
        forged = Witness(
            scalar=derive_witness_scalar("wrongpass", salt_bytes),
            commitment=int(commitment, 16),
            salt=salt_bytes,
        )
        proof, signals = SchnorrBackend().prove(forged, DEFAULT_KEY)

        invalid = self._login("alice@x.com", proof, signals)
        malformed = self._login("alice@x.com", {"garbage": True}, "not-a-list")
        self.assertEqual(invalid.status_code, 401)
        self.assertEqual(malformed.status_code, 401)
        self.assertEqual(invalid.json(), malformed.json())

    def test_cross_account_proof_rejected(self) -> None:
        _, salt, commitment = self._signup("alice@x.com", "hunter2")
        self._signup("bob@x.com", "hunter2")
        proof, signals = generate_proof("hunter2", salt, commitment)
        self.assertEqual(self._login("bob@x.com", proof, signals).status_code, 401)

    def test_missing_verification_key(self) -> None:
        client = TestClient(create_app(settings=Settings(), orchestrator=AuthOrchestrator(self.store, None)))
        _, salt, commitment = self._signup("alice@x.com", "hunter2")
        proof, signals = generate_proof("hunter2", salt, commitment)
        response = client.post(
            "/login",
            json={"accountId": "alice@x.com", "proof": proof, "publicSignals": signals},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Internal server error"})
        self.assertFalse(client.get("/health").json()["verificationKey"])

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/health").json(), {"status": "ok", "verificationKey": True})

    def test_signup_rejects_commitment_outside_subgroup(self) -> None:
        response = self.client.post(
            "/signup",
            json={"accountId": "alice@x.com", "salt": "00" * 16, "commitment": hex(DEFAULT_KEY.p - 1)},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(len(self.store), 0)

    def test_corrupt_stored_credential_is_generic_error(self) -> None:
        _, commitment = create_commitment("hunter2")
        self.store.put("alice@x.com", Credential(salt="zz" * 16, commitment=commitment))
        response = self._login("alice@x.com", {}, [])
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Internal server error"})

    def test_cors_preflight_for_configured_origin(self) -> None:
        origin = "http://localhost:5173"
        client = TestClient(
            create_app(
                settings=Settings(cors_origins=(origin,)),
                orchestrator=AuthOrchestrator(self.store, DEFAULT_KEY),
            )
        )
        response = client.options(
            "/signup",
            headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], origin)

        refused = client.options(
            "/signup",
            headers={"Origin": "http://evil.example", "Access-Control-Request-Method": "POST"},
        )
        self.assertEqual(refused.status_code, 400)

    def test_any_origin_allowed_by_default(self) -> None:
        response = self.client.get("/health", headers={"Origin": "http://localhost:5173"})
        self.assertEqual(response.headers["access-control-allow-origin"], "*")

    def test_import_has_no_side_effects(self) -> None:
        self.assertFalse(hasattr(server, "app"))


if __name__ == "__main__":
    unittest.main()
