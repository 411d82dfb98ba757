import unittest

from app.db import _connect_database, _init_db_sqlite
from app.domain.contracts import ProposalInput, RateRowInput
from app.infrastructure.repositories import (
    CarrierRepository,
    CompanyRepository,
    FreightRequestRepository,
    ProfileRepository,
    ProposalRepository,
    QuoteRepository,
    QuoteResultRepository,
    RateTableRepository,
    StatusEventRepository,
)
from app.infrastructure.repositories.base import CarrierScopeRequiredError, CompanyScopeRequiredError
from app.freight.forms import parse_freight_request_payload
from tests.freight_utils import freight_request_payload
from tests.helpers.temp_db import TempDbSandbox


class RepositoryScopeTest(unittest.TestCase):
    def test_company_scoped_repositories_require_company(self) -> None:
        for repository_cls in (FreightRequestRepository, QuoteRepository, QuoteResultRepository, StatusEventRepository):
            with self.subTest(repository=repository_cls.__name__):
                with self.assertRaises(CompanyScopeRequiredError):
                    repository_cls(company_id=None)
                with self.assertRaises(CompanyScopeRequiredError):
                    repository_cls(company_id="  ")

    def test_carrier_scoped_repositories_require_carrier(self) -> None:
        for repository_cls in (ProposalRepository, RateTableRepository):
            with self.subTest(repository=repository_cls.__name__):
                for value in (None, 0, "", "abc"):
                    with self.assertRaises(CarrierScopeRequiredError):
                        repository_cls(carrier_id=value)


class RepositoryIsolationTest(unittest.TestCase):
    def setUp(self) -> None:
        self._temp_db = TempDbSandbox(prefix="repository_scope")
        self.db = _connect_database(self._temp_db.db_path)
        _init_db_sqlite(self.db)
        companies = CompanyRepository()
        companies.ensure_company(self.db, "company-a", "Empresa A")
        companies.ensure_company(self.db, "company-b", "Empresa B")
        companies.ensure_company(self.db, "company-a", "Nome ignorado")
        self.user_id = ProfileRepository().create_profile(
            self.db,
            email="a@empresa.com",
            password="senha123",
            full_name=None,
            role="CLIENTE",
            company_id="company-a",
        )
        self.carrier_a = CarrierRepository().create_carrier(self.db, name="Carrier A", owner_user_id=None)
        self.carrier_b = CarrierRepository().create_carrier(self.db, name="Carrier B", owner_user_id=None)

    def tearDown(self) -> None:
        self.db.close()
        self._temp_db.cleanup()

    def test_ensure_company_keeps_first_name(self) -> None:
        self.assertEqual(CompanyRepository().get_by_id(self.db, "company-a")["name"], "Empresa A")

    def test_requests_are_invisible_to_other_company(self) -> None:
        request_input = parse_freight_request_payload(freight_request_payload())
        request_id = FreightRequestRepository(company_id="company-a").create(self.db, request_input, created_by=self.user_id)

        self.assertIsNotNone(FreightRequestRepository(company_id="company-a").get_by_id(self.db, request_id))
        self.assertIsNone(FreightRequestRepository(company_id="company-b").get_by_id(self.db, request_id))
        self.assertEqual(FreightRequestRepository(company_id="company-b").list_requests(self.db), [])

        FreightRequestRepository(company_id="company-b").update_status(self.db, request_id, "CANCELLED")
        self.assertEqual(
            FreightRequestRepository(company_id="company-a").get_by_id(self.db, request_id)["status"],
            "OPEN",
        )

    def test_proposals_are_private_to_carrier(self) -> None:
        request_input = parse_freight_request_payload(freight_request_payload())
        request_id = FreightRequestRepository(company_id="company-a").create(self.db, request_input, created_by=self.user_id)
        proposal_id = ProposalRepository(carrier_id=self.carrier_a).create(
            self.db, ProposalInput(freight_request_id=request_id, price_cents=1000, deadline_days=2)
        )

        self.assertIsNotNone(ProposalRepository(carrier_id=self.carrier_a).get_by_id(self.db, proposal_id))
        self.assertIsNone(ProposalRepository(carrier_id=self.carrier_b).get_by_id(self.db, proposal_id))
        self.assertIsNone(ProposalRepository(carrier_id=self.carrier_b).get_for_request(self.db, request_id))

    def test_rate_rows_are_private_to_carrier(self) -> None:
        tables_a = RateTableRepository(carrier_id=self.carrier_a)
        table_id = tables_a.create_table(self.db, "A")
        row_id = tables_a.add_row(self.db, table_id, RateRowInput("SP", "RJ", 0.0, 10.0, 100, 1))

        tables_b = RateTableRepository(carrier_id=self.carrier_b)
        self.assertIsNone(tables_b.get_table(self.db, table_id))
        self.assertEqual(tables_b.list_rows(self.db, table_id), [])
        self.assertFalse(tables_b.delete_row(self.db, table_id, row_id))
        self.assertTrue(tables_a.delete_row(self.db, table_id, row_id))


if __name__ == "__main__":
    unittest.main()
