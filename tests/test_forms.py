import unittest

from app.errors import ValidationError
from app.freight.forms import (
    parse_freight_request_payload,
    parse_proposal_payload,
    parse_quote_payload,
    parse_rate_row_payload,
)
from tests.freight_utils import freight_request_payload, rate_row


class QuoteFormTest(unittest.TestCase):
    def test_parses_quote_fields(self) -> None:
        quote = parse_quote_payload(
            {"origin_zip": "01001-000", "destination_zip": "20040020", "weight_kg": "12,5", "height_cm": "40"}
        )
        self.assertEqual(quote.weight_kg, 12.5)
        self.assertEqual(quote.height_cm, 40.0)
        self.assertIsNone(quote.length_cm)

    def test_missing_weight_is_rejected(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            parse_quote_payload({"origin_zip": "01001000", "destination_zip": "20040020"})
        self.assertEqual(ctx.exception.code, "quote_fields_required")


class FreightRequestFormTest(unittest.TestCase):
    def test_parses_request_and_normalizes_values(self) -> None:
        parsed = parse_freight_request_payload(freight_request_payload())
        self.assertEqual(parsed.origin_state, "SP")
        self.assertEqual(parsed.weight_kg, 350.5)
        self.assertEqual(parsed.invoice_value_cents, 123456)
        self.assertEqual(parsed.pickup_date, "2026-11-03")

    def test_required_fields(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            parse_freight_request_payload(freight_request_payload(cargo_type=""))
        self.assertEqual(ctx.exception.code, "request_fields_required")

    def test_invalid_state_date_and_invoice(self) -> None:
        cases = [
            ({"origin_state": "Sao Paulo"}, "state_invalid"),
            ({"pickup_date": "amanha"}, "pickup_date_invalid"),
            ({"invoice_value": "abc"}, "invoice_value_invalid"),
            ({"invoice_value": "-10"}, "invoice_value_invalid"),
        ]
        for overrides, expected in cases:
            with self.subTest(expected=expected, overrides=overrides):
                with self.assertRaises(ValidationError) as ctx:
                    parse_freight_request_payload(freight_request_payload(**overrides))
                self.assertEqual(ctx.exception.code, expected)


class ProposalFormTest(unittest.TestCase):
    def test_parses_price_and_deadline(self) -> None:
        proposal = parse_proposal_payload(7, {"price": "1.500,00", "deadline_days": "4", "notes": " coleta 8h "})
        self.assertEqual(proposal.freight_request_id, 7)
        self.assertEqual(proposal.price_cents, 150000)
        self.assertEqual(proposal.deadline_days, 4)
        self.assertEqual(proposal.notes, "coleta 8h")

    def test_rejects_non_positive_values(self) -> None:
        for payload in ({"price": "0", "deadline_days": "3"}, {"price": "100", "deadline_days": "1,5"}, {}):
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError) as ctx:
                    parse_proposal_payload(1, payload)
                self.assertEqual(ctx.exception.code, "proposal_fields_required")


class RateRowFormTest(unittest.TestCase):
    def test_parses_row_and_defaults_to_active(self) -> None:
        row = parse_rate_row_payload(rate_row("sp", "rj", "0", "100,5", "120,50", "3"))
        self.assertEqual(row.uf_origem, "SP")
        self.assertEqual(row.peso_max_kg, 100.5)
        self.assertEqual(row.preco_cents, 12050)
        self.assertTrue(row.is_active)

    def test_inactive_flag_from_form(self) -> None:
        row = parse_rate_row_payload(rate_row("SP", "RJ", 0, 100, 10, 2, is_active="0"))
        self.assertFalse(row.is_active)

    def test_invalid_rows(self) -> None:
        cases = [
            (rate_row("SPX", "RJ", 0, 100, 10, 2), "rate_row_invalid"),
            (rate_row("SP", "RJ", 0, 100, 10, 0), "rate_row_invalid"),
            (rate_row("SP", "RJ", -1, 100, 10, 2), "rate_row_invalid"),
            (rate_row("SP", "RJ", 0, 100, -5, 2), "rate_row_invalid"),
            (rate_row("SP", "RJ", 200, 100, 10, 2), "rate_row_weight_range_invalid"),
        ]
        for payload, expected in cases:
            with self.subTest(expected=expected, payload=payload):
                with self.assertRaises(ValidationError) as ctx:
                    parse_rate_row_payload(payload)
                self.assertEqual(ctx.exception.code, expected)


if __name__ == "__main__":
    unittest.main()
