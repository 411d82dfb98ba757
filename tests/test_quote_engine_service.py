import sqlite3
import unittest

from app.application.quote_engine_service import QuoteEngineService
from app.cep_client import CepLookupError
from app.db import _connect_database, _init_db_sqlite
from app.domain.contracts import CepAddress, QuoteInput, RateRowInput, UserContext
from app.errors import PermissionError as AppPermissionError
from app.errors import SystemError as AppSystemError
from app.errors import ValidationError
from app.infrastructure.repositories.carrier_repository import CarrierRepository
from app.infrastructure.repositories.company_repository import CompanyRepository
from app.infrastructure.repositories.profile_repository import ProfileRepository
from app.infrastructure.repositories.rate_table_repository import RateTableRepository
from app.observability import metrics_snapshot, reset_metrics_for_tests
from tests.helpers.temp_db import TempDbSandbox


_ADDRESSES = {
    "01001000": CepAddress(city="Sao Paulo", state="SP"),
    "20040020": CepAddress(city="Rio de Janeiro", state="RJ"),
}


def _fake_resolve(cep: str) -> CepAddress:
    found = _ADDRESSES.get(cep)
    if not found:
        raise CepLookupError("cep_not_found")
    return found


class _FailingRateTables:
    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    def list_candidate_rows(self, db, **_kwargs):
        raise self._exc


class QuoteEngineServiceTest(unittest.TestCase):
    def setUp(self) -> None:
        reset_metrics_for_tests()
        self._temp_db = TempDbSandbox(prefix="quote_engine")
        self.db = _connect_database(self._temp_db.db_path)
        _init_db_sqlite(self.db)
        CompanyRepository().ensure_company(self.db, "company-engine", "Empresa Engine")
        user_id = ProfileRepository().create_profile(
            self.db,
            email="cliente@engine.com",
            password="senha123",
            full_name="Cliente",
            role="CLIENTE",
            company_id="company-engine",
        )
        self.db.commit()
        self.user = UserContext(user_id=user_id, role="CLIENTE", company_id="company-engine")

    def tearDown(self) -> None:
        self.db.close()
        self._temp_db.cleanup()
        reset_metrics_for_tests()

    def _carrier(self, name: str, rows: list[tuple], *, table_active: bool = True) -> int:
        carrier_id = CarrierRepository().create_carrier(self.db, name=name, owner_user_id=None)
        tables = RateTableRepository(carrier_id=carrier_id)
        table_id = tables.create_table(self.db, "Tabela", is_active=table_active)
        for uf_origem, uf_destino, peso_min, peso_max, preco_cents, prazo in rows:
            tables.add_row(
                self.db,
                table_id,
                RateRowInput(uf_origem, uf_destino, float(peso_min), float(peso_max), preco_cents, prazo),
            )
        return carrier_id

    def _quote_count(self) -> int:
        return int(self.db.execute("SELECT COUNT(*) AS total FROM quotes").fetchone()["total"])

    def _input(self, **overrides) -> QuoteInput:
        values = {"origin_zip": "01001-000", "destination_zip": "20040-020", "weight_kg": 80.0}
        values.update(overrides)
        return QuoteInput(**values)

    def test_best_row_per_carrier_ranked_by_price(self) -> None:
        cheap = self._carrier("Barata", [("SP", "RJ", 0, 100, 15000, 3), ("SP", "RJ", 0, 500, 9000, 6)])
        fast = self._carrier("Rapida", [("SP", "RJ", 0, 100, 12000, 1)])
        self._carrier("Sem rota", [("SP", "MG", 0, 100, 5000, 2)])
        self._carrier("Inativa", [("SP", "RJ", 0, 100, 1000, 1)], table_active=False)

        result = QuoteEngineService(resolve_cep_fn=_fake_resolve).create_quote_and_results(
            self.db, self._input(), self.user
        )

        self.assertEqual(result.quote["status"], "OPEN")
        self.assertEqual(result.quote["origin_state"], "SP")
        self.assertEqual(result.quote["destination_city"], "Rio de Janeiro")
        self.assertEqual(result.quote["origin_zip"], "01001000")
        self.assertEqual([item["carrier_id"] for item in result.results], [cheap, fast])
        self.assertEqual(result.results[0]["price_cents"], 9000)
        self.assertEqual(result.results[0]["deadline_days"], 6)
        self.assertEqual(result.results[0]["origin_source"], "TABELA")
        self.assertEqual(result.results[1]["carrier_name"], "Rapida")

        engine = metrics_snapshot()["quote_engine"]
        self.assertEqual(engine["quotes_created"], 1)
        self.assertEqual(engine["carriers_evaluated"], 3)
        self.assertEqual(engine["offers_generated"], 2)

    def test_quote_without_matching_carriers_is_still_created(self) -> None:
        self._carrier("Sem rota", [("SP", "MG", 0, 100, 5000, 2)])
        result = QuoteEngineService(resolve_cep_fn=_fake_resolve).create_quote_and_results(
            self.db, self._input(weight_kg=5000.0), self.user
        )
        self.assertEqual(result.results, [])
        self.assertEqual(self._quote_count(), 1)

    def test_failing_carrier_is_skipped(self) -> None:
        healthy = self._carrier("Saudavel", [("SP", "RJ", 0, 100, 15000, 3)])
        broken = self._carrier("Quebrada", [("SP", "RJ", 0, 100, 1000, 1)])
        duplicated = self._carrier("Duplicada", [("SP", "RJ", 0, 100, 2000, 1)])
        failures = {
            broken: _FailingRateTables(RuntimeError("boom")),
            duplicated: _FailingRateTables(sqlite3.IntegrityError("UNIQUE constraint failed")),
        }

        service = QuoteEngineService(
            resolve_cep_fn=_fake_resolve,
            rate_tables_factory=lambda carrier_id: failures.get(carrier_id) or RateTableRepository(carrier_id=carrier_id),
        )
        result = service.create_quote_and_results(self.db, self._input(), self.user)

        self.assertEqual([item["carrier_id"] for item in result.results], [healthy])
        self.assertEqual(metrics_snapshot()["quote_engine"]["carriers_skipped"], 2)

    def test_carrier_listing_failure_is_pricing_error(self) -> None:
        class _BrokenCarriers:
            def list_priced_carrier_ids(self, db):
                raise RuntimeError("carriers unavailable")

        service = QuoteEngineService(resolve_cep_fn=_fake_resolve, carriers=_BrokenCarriers())
        with self.assertRaises(AppSystemError) as ctx:
            service.create_quote_and_results(self.db, self._input(), self.user)
        self.assertEqual(ctx.exception.code, "quote_pricing_failed")
        self.assertEqual(ctx.exception.http_status, 500)
        self.assertTrue(ctx.exception.critical)
        self.assertEqual(metrics_snapshot()["quote_engine"]["quotes_created"], 0)

    def test_invalid_input_never_creates_a_quote(self) -> None:
        service = QuoteEngineService(resolve_cep_fn=_fake_resolve)
        cases = [
            (self._input(origin_zip="0100100"), "cep_invalid"),
            (self._input(weight_kg=0.0), "weight_invalid"),
            (self._input(weight_kg=float("nan")), "weight_invalid"),
            (self._input(height_cm=-1.0), "dimension_invalid"),
        ]
        for quote_input, expected in cases:
            with self.subTest(expected=expected):
                with self.assertRaises(ValidationError) as ctx:
                    service.create_quote_and_results(self.db, quote_input, self.user)
                self.assertEqual(ctx.exception.code, expected)
        self.assertEqual(self._quote_count(), 0)

    def test_unknown_cep_propagates_before_any_insert(self) -> None:
        service = QuoteEngineService(resolve_cep_fn=_fake_resolve)
        with self.assertRaises(CepLookupError) as ctx:
            service.create_quote_and_results(self.db, self._input(destination_zip="99999-999"), self.user)
        self.assertEqual(ctx.exception.code, "cep_not_found")
        self.assertEqual(self._quote_count(), 0)

    def test_only_client_roles_with_company(self) -> None:
        service = QuoteEngineService(resolve_cep_fn=_fake_resolve)
        with self.assertRaises(AppPermissionError):
            service.create_quote_and_results(
                self.db,
                self._input(),
                UserContext(user_id=self.user.user_id, role="TRANSPORTADOR", carrier_id=1),
            )
        with self.assertRaises(ValidationError) as ctx:
            service.create_quote_and_results(
                self.db,
                self._input(),
                UserContext(user_id=self.user.user_id, role="CLIENTE"),
            )
        self.assertEqual(ctx.exception.code, "company_required")


if __name__ == "__main__":
    unittest.main()
