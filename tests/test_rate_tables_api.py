import unittest

from app.db import close_db
from tests.freight_utils import RJ_CEP, SP_CEP, build_temp_app, rate_row, register_carrier, register_client
from tests.helpers.temp_db import TempDbSandbox


class RateTablesApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="rate_tables_api")
        self.app = build_temp_app(self._temp_db)
        self.carrier = self.app.test_client()
        register_carrier(self.carrier, "tabelas@transp.com", "Transportes Tabela")

    def tearDown(self) -> None:
        with self.app.app_context():
            close_db()
        self._temp_db.cleanup()

    def _create_table(self, name=None) -> dict:
        body = {"name": name} if name is not None else {}
        response = self.carrier.post("/api/transportadora/tabelas", json=body)
        self.assertEqual(response.status_code, 201, response.get_data(as_text=True))
        return response.get_json()["table"]

    def test_create_table_with_default_name(self) -> None:
        table = self._create_table()
        self.assertEqual(table["name"], "Tabela padrao")
        self.assertTrue(table["is_active"])

        listing = self.carrier.get("/api/transportadora/tabelas").get_json()
        self.assertEqual(listing["total"], 1)
        self.assertEqual(listing["items"][0]["row_count"], 0)

    def test_rename_and_toggle_table(self) -> None:
        table_id = self._create_table("Sul")["id"]

        renamed = self.carrier.patch(f"/api/transportadora/tabelas/{table_id}", json={"name": "Sul e Sudeste"})
        self.assertEqual(renamed.status_code, 200)
        self.assertEqual(renamed.get_json()["table"]["name"], "Sul e Sudeste")

        blank = self.carrier.patch(f"/api/transportadora/tabelas/{table_id}", json={"name": "  "})
        self.assertEqual(blank.status_code, 400)
        self.assertEqual(blank.get_json()["error"], "rate_table_name_required")

        toggled = self.carrier.post(f"/api/transportadora/tabelas/{table_id}/ativo", json={"is_active": False})
        self.assertEqual(toggled.status_code, 200)
        self.assertFalse(toggled.get_json()["table"]["is_active"])

    def test_add_and_delete_rows(self) -> None:
        table_id = self._create_table()["id"]

        added = self.carrier.post(
            f"/api/transportadora/tabelas/{table_id}/linhas",
            json=rate_row("sp", "rj", "0", "100", "99,90", "2"),
        )
        self.assertEqual(added.status_code, 201)
        row = added.get_json()["row"]
        self.assertEqual(row["uf_origem"], "SP")
        self.assertEqual(row["preco_cents"], 9990)
        self.assertTrue(row["is_active"])

        invalid = self.carrier.post(
            f"/api/transportadora/tabelas/{table_id}/linhas",
            json=rate_row("SP", "RJ", "300", "100", "10", "2"),
        )
        self.assertEqual(invalid.status_code, 400)
        self.assertEqual(invalid.get_json()["error"], "rate_row_weight_range_invalid")

        detail = self.carrier.get(f"/api/transportadora/tabelas/{table_id}").get_json()
        self.assertEqual([item["id"] for item in detail["rows"]], [row["id"]])

        deleted = self.carrier.delete(f"/api/transportadora/tabelas/{table_id}/linhas/{row['id']}")
        self.assertEqual(deleted.status_code, 200)
        missing = self.carrier.delete(f"/api/transportadora/tabelas/{table_id}/linhas/{row['id']}")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.get_json()["error"], "rate_row_not_found")

    def test_form_posts_need_csrf_token(self) -> None:
        table_id = self._create_table()["id"]
        form = {"uf_origem": "SP", "uf_destino": "RJ", "peso_min_kg": "0", "peso_max_kg": "10", "preco": "5", "prazo_dias": "1"}

        rejected = self.carrier.post(f"/api/transportadora/tabelas/{table_id}/linhas", data=form)
        self.assertEqual(rejected.status_code, 400)
        self.assertEqual(rejected.get_json()["error"], "csrf_invalid")

        token = self.carrier.get("/api/auth/me").get_json()["csrf_token"]
        accepted = self.carrier.post(
            f"/api/transportadora/tabelas/{table_id}/linhas",
            data={**form, "csrf_token": token},
        )
        self.assertEqual(accepted.status_code, 201, accepted.get_data(as_text=True))

    def test_tables_are_private_to_carrier(self) -> None:
        table_id = self._create_table()["id"]
        other = self.app.test_client()
        register_carrier(other, "outra@transp.com", "Outra")

        self.assertEqual(other.get(f"/api/transportadora/tabelas/{table_id}").status_code, 404)
        self.assertEqual(
            other.post(f"/api/transportadora/tabelas/{table_id}/linhas", json=rate_row("SP", "RJ", 0, 10, 5, 1)).status_code,
            404,
        )
        self.assertEqual(other.get("/api/transportadora/tabelas").get_json()["total"], 0)

        client = self.app.test_client()
        register_client(client, "cliente@tabela.com")
        self.assertEqual(client.get("/api/transportadora/tabelas").status_code, 403)

    def test_inactive_rows_and_tables_are_ignored_by_quotes(self) -> None:
        table_id = self._create_table()["id"]
        self.carrier.post(
            f"/api/transportadora/tabelas/{table_id}/linhas",
            json=rate_row("SP", "RJ", 0, 100, "50", 1, is_active=False),
        )
        self.carrier.post(
            f"/api/transportadora/tabelas/{table_id}/linhas",
            json=rate_row("SP", "RJ", 0, 100, "80", 2),
        )

        client = self.app.test_client()
        register_client(client, "cliente@cotacao.com")
        body = {"origin_zip": SP_CEP, "destination_zip": RJ_CEP, "weight_kg": "10"}

        offers = client.post("/api/cotacoes", json=body).get_json()["results"]
        self.assertEqual([offer["price_cents"] for offer in offers], [8000])

        self.carrier.post(f"/api/transportadora/tabelas/{table_id}/ativo", json={"is_active": False})
        self.assertEqual(client.post("/api/cotacoes", json=body).get_json()["results"], [])


if __name__ == "__main__":
    unittest.main()
