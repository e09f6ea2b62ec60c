import json
import os
import tempfile
import unittest

from fastapi.testclient import TestClient

from snippr_api.app.core.config import DEFAULT_SEED_DATA_PATH, Settings
from snippr_api.app.core.errors import FatalConfiguration, InvalidOrExpiredToken
from snippr_api.app.main import create_app


KEY_HEX = "0f" * 32


def make_settings(**overrides) -> Settings:
    values = dict(
        encryption_key=KEY_HEX,
        secret_key="test-secret",
        salt_rounds=4,
        seed_data_path="",
        api_prefix="",
    )
    values.update(overrides)
    return Settings(**values)


class SnipprApiTests(unittest.TestCase):
    def setUp(self):
        self.app = create_app(make_settings())
        self.client = TestClient(self.app)

    def _register_and_login(self, email="alice@example.com", password="secret123"):
        response = self.client.post("/user", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 201)
        response = self.client.post("/login", json={"email": email, "password": password})
        self.assertEqual(response.status_code, 200)
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    def test_welcome(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Welcome to the Snippr API!"})

    def test_register_and_login(self):
        response = self.client.post("/user", json={"email": "alice@example.com", "password": "secret123"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json(), {"id": 1, "email": "alice@example.com"})

        response = self.client.post("/login", json={"email": "alice@example.com", "password": "secret123"})
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["token_type"], "bearer")
        self.assertTrue(payload["expires_at"].endswith("Z"))

        claims = self.app.state.access_controller.tokens.verify(payload["access_token"])
        self.assertEqual(claims.user_id, 1)
        self.assertEqual(claims.expires_at - claims.issued_at, 24 * 60 * 60)

    def test_duplicate_email_conflict(self):
        self.client.post("/user", json={"email": "alice@example.com", "password": "secret123"})
        response = self.client.post("/user", json={"email": "ALICE@example.com", "password": "other"})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["kind"], "DuplicateEmail")

    def test_login_failures_are_indistinguishable(self):
        self.client.post("/user", json={"email": "alice@example.com", "password": "secret123"})
        wrong_password = self.client.post("/login", json={"email": "alice@example.com", "password": "nope"})
        unknown_user = self.client.post("/login", json={"email": "eve@example.com", "password": "secret123"})
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_user.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_user.json())
        self.assertEqual(wrong_password.json()["kind"], "InvalidCredentials")

    def test_missing_fields_are_validation_errors(self):
        response = self.client.post("/user", json={"email": "alice@example.com"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["kind"], "ValidationError")
        self.assertIn("password", response.json()["message"])

        response = self.client.post("/snippets", json={"language": "python"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("code", response.json()["message"])

    def test_validation_error_does_not_echo_password(self):
        response = self.client.post("/user", json={"email": "", "password": "topsecret"})
        self.assertEqual(response.status_code, 400)
        self.assertNotIn("topsecret", response.text)

    def test_store_and_read_back_private_snippet(self):
        headers = self._register_and_login()
        response = self.client.post(
            "/snippets",
            json={"language": "python", "code": "print('hi')", "private": True},
            headers=headers,
        )
        self.assertEqual(response.status_code, 201)
        created = response.json()
        self.assertEqual(created["code"], "print('hi')")
        self.assertEqual(created["owner_id"], 1)

        response = self.client.get(f"/snippets/{created['id']}", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["code"], "print('hi')")
        self.assertTrue(response.json()["readable"])

        stored = self.app.state.access_controller.snippets.get(created["id"])
        self.assertNotIn("print", stored.code)

    def test_anonymous_get_of_private_snippet(self):
        headers = self._register_and_login()
        created = self.client.post(
            "/snippets",
            json={"language": "python", "code": "secret()", "private": True},
            headers=headers,
        ).json()

        private_attempt = self.client.get(f"/snippets/{created['id']}")
        missing = self.client.get("/snippets/999")
        self.assertEqual(private_attempt.status_code, 404)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(private_attempt.json()["kind"], missing.json()["kind"])
        self.assertNotIn("secret()", private_attempt.text)

    def test_other_user_gets_forbidden(self):
        alice = self._register_and_login()
        bob = self._register_and_login("bob@example.com", "hunter22")
        created = self.client.post(
            "/snippets",
            json={"language": "python", "code": "x = 1", "private": True},
            headers=alice,
        ).json()
        response = self.client.get(f"/snippets/{created['id']}", headers=bob)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["kind"], "Forbidden")

    def test_anonymous_create_is_public(self):
        response = self.client.post("/snippets", json={"language": "python", "code": "x = 1"})
        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()["owner_id"])
        self.assertEqual(self.client.get(f"/snippets/{response.json()['id']}").status_code, 200)

    def test_anonymous_private_create_rejected(self):
        response = self.client.post("/snippets", json={"language": "python", "code": "x", "private": True})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["kind"], "AuthenticationRequired")

    def test_my_snippets(self):
        alice = self._register_and_login()
        bob = self._register_and_login("bob@example.com", "hunter22")
        self.client.post("/snippets", json={"language": "python", "code": "a", "private": True}, headers=alice)
        self.client.post("/snippets", json={"language": "python", "code": "b", "private": True}, headers=bob)
        self.client.post("/snippets", json={"language": "python", "code": "c"})

        mine = self.client.get("/snippets/mine", headers=alice).json()
        self.assertEqual([s["code"] for s in mine], ["a"])

        listing = self.client.get("/snippets", headers=alice).json()
        self.assertEqual(sorted(s["code"] for s in listing), ["a", "c"])

    def test_my_snippets_requires_valid_token(self):
        response = self.client.get("/snippets/mine")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["kind"], "AuthenticationRequired")

        response = self.client.get("/snippets/mine", headers={"Authorization": "Bearer not.a.token"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"kind": "InvalidOrExpiredToken", "message": "Invalid or expired token"})
        self.assertEqual(response.headers["www-authenticate"], "Bearer")

    def test_invalid_token_on_public_listing_is_anonymous(self):
        self.client.post("/snippets", json={"language": "python", "code": "x = 1"})
        response = self.client.get("/snippets", headers={"Authorization": "Bearer garbage"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)

    def test_current_user(self):
        headers = self._register_and_login()
        response = self.client.get("/user/me", headers=headers)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"id": 1, "email": "alice@example.com"})
        self.assertEqual(self.client.get("/user/me").status_code, 401)

    def test_corrupted_record_is_reported_unreadable(self):
        record = self.app.state.access_controller.snippets.create("python", "00:00")
        response = self.client.get(f"/snippets/{record.id}")
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()["readable"])
        self.assertEqual(response.json()["code"], "[Decryption Error]")

    def test_non_integer_id_is_validation_error(self):
        response = self.client.get("/snippets/abc")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["kind"], "ValidationError")


class SeedDataTests(unittest.TestCase):
    def test_packaged_seed_data_is_loaded(self):
        client = TestClient(create_app(make_settings(seed_data_path=DEFAULT_SEED_DATA_PATH)))
        listing = client.get("/snippets").json()
        self.assertEqual(len(listing), 5)
        self.assertTrue(all(s["readable"] and s["owner_id"] is None for s in listing))
        self.assertEqual(len(client.get("/snippets", params={"lang": "python"}).json()), 2)

        created = client.post("/snippets", json={"language": "go", "code": "package main"}).json()
        self.assertEqual(created["id"], 6)

    def test_seed_bodies_are_encrypted(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "seed.json")
            with open(path, "w", encoding="utf-8") as fh:
                json.dump([{"id": 3, "language": "python", "code": "print('seed')"}], fh)
            app = create_app(make_settings(seed_data_path=path))
        store = app.state.access_controller.snippets
        self.assertNotIn("seed", store.get(3).code)
        self.assertEqual(TestClient(app).get("/snippets/3").json()["code"], "print('seed')")

    def test_missing_or_malformed_seed_starts_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            bad = os.path.join(tmp, "bad.json")
            with open(bad, "w", encoding="utf-8") as fh:
                fh.write("{not json")
            for path in [os.path.join(tmp, "absent.json"), bad]:
                with self.subTest(path=path):
                    client = TestClient(create_app(make_settings(seed_data_path=path)))
                    self.assertEqual(client.get("/snippets").json(), [])


class ConfigurationTests(unittest.TestCase):
    def test_bad_encryption_key_prevents_startup(self):
        for key in ["", "abcd", "zz" * 32, "0f" * 31]:
            with self.subTest(key=key):
                with self.assertRaises(FatalConfiguration):
                    create_app(make_settings(encryption_key=key))

    def test_unusable_salt_rounds_prevent_startup(self):
        for rounds in [3, 32, "ten", None]:
            with self.subTest(rounds=rounds):
                with self.assertRaises(FatalConfiguration):
                    create_app(make_settings(salt_rounds=rounds))

    def test_non_integer_salt_rounds_in_environment_is_fatal(self):
        old = os.environ.get("SALT_ROUNDS")
        os.environ["SALT_ROUNDS"] = "ten"
        try:
            with self.assertRaises(FatalConfiguration):
                Settings()
        finally:
            if old is None:
                os.environ.pop("SALT_ROUNDS", None)
            else:
                os.environ["SALT_ROUNDS"] = old

    def test_missing_secret_key_generates_one(self):
        app = create_app(make_settings(secret_key=""))
        client = TestClient(app)
        client.post("/user", json={"email": "a@example.com", "password": "pw"})
        token = client.post("/login", json={"email": "a@example.com", "password": "pw"}).json()["access_token"]
        self.assertEqual(client.get("/user/me", headers={"Authorization": f"Bearer {token}"}).status_code, 200)

        # A second process run gets a different secret, so old tokens stop working.
        other = create_app(make_settings(secret_key=""))
        with self.assertRaises(InvalidOrExpiredToken):
            other.state.access_controller.tokens.verify(token)

    def test_api_prefix(self):
        client = TestClient(create_app(make_settings(api_prefix="/api")))
        self.assertEqual(client.get("/api/snippets").status_code, 200)
        self.assertEqual(client.get("/snippets").status_code, 404)

    def test_settings_read_environment(self):
        old = {name: os.environ.get(name) for name in ("SALT_ROUNDS", "API_PREFIX")}
        os.environ["SALT_ROUNDS"] = "12"
        os.environ["API_PREFIX"] = "/v"
        try:
            settings = Settings()
        finally:
            for name, value in old.items():
                if value is None:
                    os.environ.pop(name, None)
                else:
                    os.environ[name] = value
        self.assertEqual(settings.salt_rounds, 12)
        self.assertEqual(settings.api_prefix, "/v")
        self.assertEqual(settings.access_token_expire_minutes, 24 * 60)


if __name__ == "__main__":
    unittest.main()
