import unittest
from unittest.mock import patch

from app.db import close_db
from app.ui_strings import error_message
from tests.freight_utils import build_temp_app, register_client
from tests.helpers.temp_db import TempDbSandbox


class ErrorPermissionTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="error_perm")
        self.app = build_temp_app(self._temp_db, TESTING=False, DB_AUTO_INIT=False)
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def test_permission_error_for_unauthenticated_api(self) -> None:
        response = self.client.get("/api/solicitacoes", headers={"X-Request-Id": "req-perm-1"})
        self.assertEqual(response.status_code, 401)

        payload = response.get_json()
        self.assertEqual(payload.get("error"), "auth_required")
        self.assertEqual(payload.get("message"), error_message("auth_required"))
        self.assertEqual(payload.get("request_id"), "req-perm-1")
        self.assertEqual(response.headers.get("X-Request-Id"), "req-perm-1")
        self.assertNotIn("Traceback", response.get_data(as_text=True))

    def test_auth_disabled_still_needs_identity(self) -> None:
        self.app.config["AUTH_ENABLED"] = False
        response = self.client.get("/api/cotacoes")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json().get("error"), "auth_required")


class ErrorHandlingApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="error_api")
        self.app = build_temp_app(self._temp_db)
        self.client = self.app.test_client()
        register_client(self.client, "erros@empresa.com")

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def test_invalid_json_payload(self) -> None:
        response = self.client.post("/api/solicitacoes", data="{nope", content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json().get("error"), "payload_invalid")

    def test_unknown_api_route_is_json(self) -> None:
        response = self.client.get("/api/does-not-exist")
        self.assertEqual(response.status_code, 404)
        payload = response.get_json()
        self.assertEqual(payload.get("error"), "not_found")
        self.assertTrue((payload.get("request_id") or "").strip())

    def test_not_found_uses_domain_message(self) -> None:
        response = self.client.get("/api/solicitacoes/4242")
        self.assertEqual(response.status_code, 404)
        payload = response.get_json()
        self.assertEqual(payload.get("error"), "request_not_found")
        self.assertEqual(payload.get("message"), error_message("request_not_found"))

    def test_stack_trace_not_exposed_for_unhandled_error(self) -> None:
        with patch(
            "app.routes.quote_routes._QUOTE_SERVICE.list_quotes",
            side_effect=RuntimeError("stack_secret_token"),
        ):
            response = self.client.get("/api/cotacoes")

        self.assertEqual(response.status_code, 500)
        payload = response.get_json()
        self.assertEqual(payload.get("error"), "unexpected_error")
        self.assertEqual(payload.get("message"), error_message("unexpected_error"))
        body = response.get_data(as_text=True)
        self.assertNotIn("Traceback", body)
        self.assertNotIn("stack_secret_token", body)

    def test_storage_failure_on_quote_creation(self) -> None:
        with patch(
            "app.application.quote_engine_service.QuoteRepository.create_quote",
            side_effect=RuntimeError("disk full"),
        ):
            response = self.client.post(
                "/api/cotacoes",
                json={"origin_zip": "01001000", "destination_zip": "20040020", "weight_kg": "10"},
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json().get("error"), "quote_create_failed")
        self.assertNotIn("disk full", response.get_data(as_text=True))


if __name__ == "__main__":
    unittest.main()
