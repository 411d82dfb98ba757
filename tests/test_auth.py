import unittest

from app.application.auth_service import AuthService
from app.company import company_id_candidates
from app.db import close_db
from app.domain.contracts import AuthRegisterInput
from app.errors import ConflictError
from app.ui_strings import error_message
from tests.freight_utils import build_temp_app, freight_request_payload, register_carrier, register_client
from tests.helpers.temp_db import TempDbSandbox


class AuthApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="auth_api")
        self.app = build_temp_app(
            self._temp_db,
            APP_USERS="admin@demo.com:admin123:company-demo:Admin:ADMIN,frota@demo.com:frota123:-:Frota Demo:TRANSPORTADOR",
        )
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def test_register_client_creates_company_and_session(self) -> None:
        user = register_client(self.client, "Nova@Empresa.com", company_name="Logistica Nova")
        self.assertEqual(user["email"], "nova@empresa.com")
        self.assertEqual(user["role"], "CLIENTE")
        self.assertEqual(user["company_id"], "company-logistica-nova")
        self.assertIsNone(user["carrier_id"])

        me = self.client.get("/api/auth/me")
        self.assertEqual(me.status_code, 200)
        profile = me.get_json()["profile"]
        self.assertEqual(profile["company_name"], "Logistica Nova")
        self.assertNotIn("password_hash", profile)
        self.assertTrue(me.get_json()["csrf_token"])

    def test_register_carrier_creates_carrier(self) -> None:
        user = register_carrier(self.client, "frete@transp.com", "Frete Rapido")
        self.assertEqual(user["role"], "TRANSPORTADOR")
        self.assertIsNone(user["company_id"])
        self.assertTrue(user["carrier_id"])

        profile = self.client.get("/api/auth/me").get_json()["profile"]
        self.assertEqual(profile["carrier_name"], "Frete Rapido")

    def test_register_validation(self) -> None:
        cases = [
            ({"email": "", "password": "x", "role": "CLIENTE", "company_name": "E"}, "credentials_required"),
            ({"email": "a@b.com", "password": "x", "role": "ADMIN"}, "role_invalid"),
            ({"email": "a@b.com", "password": "x", "role": "GERENTE"}, "role_invalid"),
            ({"email": "a@b.com", "password": "x", "role": "CLIENTE"}, "company_name_required"),
            ({"email": "a@b.com", "password": "x", "role": "TRANSPORTADOR"}, "carrier_name_required"),
        ]
        for body, expected in cases:
            with self.subTest(expected=expected):
                response = self.client.post("/api/auth/register", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json()["error"], expected)

    def test_same_company_name_gets_a_separate_company(self) -> None:
        owner = register_client(self.client, "dono@acme.com", company_name="Acme Ltda")
        request_id = self.client.post("/api/solicitacoes", json=freight_request_payload()).get_json()["id"]

        stranger = self.app.test_client()
        user = register_client(stranger, "estranho@acme.com", company_name="ACME  ltda")
        self.assertEqual(owner["company_id"], "company-acme-ltda")
        self.assertEqual(user["company_id"], "company-acme-ltda-2")

        self.assertEqual(stranger.get("/api/solicitacoes").get_json()["total"], 0)
        self.assertEqual(stranger.get(f"/api/solicitacoes/{request_id}").status_code, 404)
        self.assertEqual(stranger.post(f"/api/solicitacoes/{request_id}/cancelar").status_code, 404)

        detail = self.client.get(f"/api/solicitacoes/{request_id}").get_json()
        self.assertEqual(detail["request"]["status"], "OPEN")

    def test_company_name_exhausted_is_conflict(self) -> None:
        class _NoProfiles:
            def email_exists(self, db, email):
                return False

        class _TakenCompanies:
            def create_company(self, db, company_id, name):
                return False

        service = AuthService(profiles=_NoProfiles(), companies=_TakenCompanies())
        with self.assertRaises(ConflictError) as ctx:
            service.register(
                None,
                AuthRegisterInput(email="novo@acme.com", password="x", full_name=None, role="CLIENTE", company_name="Acme"),
            )
        self.assertEqual(ctx.exception.code, "company_already_registered")
        self.assertEqual(ctx.exception.http_status, 409)

    def test_company_id_candidates(self) -> None:
        candidates = list(company_id_candidates("Transportes  Sao-Jose!", attempts=3))
        self.assertEqual(
            candidates,
            ["company-transportes-sao-jose", "company-transportes-sao-jose-2", "company-transportes-sao-jose-3"],
        )

    def test_duplicate_email_is_conflict(self) -> None:
        register_client(self.client, "dup@empresa.com")
        response = self.app.test_client().post(
            "/api/auth/register",
            json={"email": "DUP@empresa.com", "password": "y", "role": "TRANSPORTADOR", "carrier_name": "T"},
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()["error"], "email_already_registered")

    def test_login_logout_cycle(self) -> None:
        register_client(self.client, "ciclo@empresa.com")
        self.client.post("/api/auth/logout")
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

        wrong = self.client.post("/api/auth/login", json={"email": "ciclo@empresa.com", "password": "errada"})
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(wrong.get_json()["message"], error_message("invalid_credentials"))

        missing = self.client.post("/api/auth/login", json={"email": "ciclo@empresa.com"})
        self.assertEqual(missing.status_code, 400)
        self.assertEqual(missing.get_json()["error"], "credentials_required")

        ok = self.client.post("/api/auth/login", json={"email": "CICLO@empresa.com", "password": "senha123"})
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.get_json()["user"]["role"], "CLIENTE")
        self.assertEqual(self.client.get("/api/auth/me").status_code, 200)

    def test_configured_users_are_bootstrapped_on_first_login(self) -> None:
        first = self.client.post("/api/auth/login", json={"email": "admin@demo.com", "password": "admin123"})
        self.assertEqual(first.status_code, 200)
        user = first.get_json()["user"]
        self.assertEqual(user["role"], "ADMIN")
        self.assertEqual(user["company_id"], "company-demo")

        again = self.app.test_client().post("/api/auth/login", json={"email": "admin@demo.com", "password": "admin123"})
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.get_json()["user"]["id"], user["id"])

        carrier = self.app.test_client().post("/api/auth/login", json={"email": "frota@demo.com", "password": "frota123"})
        self.assertEqual(carrier.status_code, 200)
        self.assertTrue(carrier.get_json()["user"]["carrier_id"])
        self.assertIsNone(carrier.get_json()["user"]["company_id"])

    def test_api_requires_session(self) -> None:
        for path in ("/api/home", "/api/solicitacoes", "/api/cotacoes", "/api/transportadora/tabelas"):
            with self.subTest(path=path):
                response = self.client.get(path)
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.get_json()["error"], "auth_required")


if __name__ == "__main__":
    unittest.main()
