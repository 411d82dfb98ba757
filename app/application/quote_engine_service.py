"""Automated freight quotes priced from carrier rate tables.

A run resolves both CEPs before touching the database, stores an OPEN
quote, then asks every carrier with an active rate table for its best
matching row. A carrier that fails (lookup error, duplicate result) is
logged and skipped; the remaining carriers still produce offers.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable

from app.cep_client import resolve_cep
from app.db import is_integrity_error
from app.domain.contracts import CepAddress, QuoteEngineResult, QuoteInput, UserContext
from app.errors import SystemError, ValidationError
from app.freight.parsing import normalize_zip, positive_or_none
from app.freight.rate_matching import pick_best_rate_row, rank_offers
from app.infrastructure.repositories.carrier_repository import CarrierRepository
from app.infrastructure.repositories.quote_repository import QuoteRepository
from app.infrastructure.repositories.quote_result_repository import QuoteResultRepository
from app.infrastructure.repositories.rate_table_repository import RateTableRepository
from app.observability import observe_quote_carrier_skipped, observe_quote_engine_run
from app.policies import CLIENT_ROLES, require_roles


LOGGER = logging.getLogger("cotafrete.quote_engine")


class QuoteEngineService:
    def __init__(
        self,
        *,
        resolve_cep_fn: Callable[[str], CepAddress] | None = None,
        carriers: CarrierRepository | None = None,
        rate_tables_factory: Callable[[int], RateTableRepository] | None = None,
    ) -> None:
        self.resolve_cep_fn = resolve_cep_fn or resolve_cep
        self.carriers = carriers or CarrierRepository()
        self.rate_tables_factory = rate_tables_factory or (lambda carrier_id: RateTableRepository(carrier_id=carrier_id))

    def create_quote_and_results(self, db, quote_input: QuoteInput, user: UserContext) -> QuoteEngineResult:
        require_roles(*CLIENT_ROLES, role=user.role)
        if not user.company_id:
            raise ValidationError(code="company_required", http_status=400, critical=False)

        normalized = self._validate(quote_input)
        started = time.perf_counter()

        origin = self.resolve_cep_fn(normalized.origin_zip)
        destination = self.resolve_cep_fn(normalized.destination_zip)

        quotes = QuoteRepository(company_id=user.company_id)
        results_repo = QuoteResultRepository(company_id=user.company_id)

        try:
            quote_id = quotes.create_quote(
                db,
                normalized,
                origin=origin,
                destination=destination,
                created_by=user.user_id,
            )
        except Exception as exc:
            raise SystemError(
                code="quote_create_failed",
                http_status=500,
                critical=True,
                details=str(exc),
            ) from exc

        try:
            carrier_ids = self.carriers.list_priced_carrier_ids(db)
        except Exception as exc:
            raise SystemError(
                code="quote_pricing_failed",
                http_status=500,
                critical=True,
                details=str(exc),
            ) from exc

        offers = 0
        for carrier_id in carrier_ids:
            try:
                rows = self.rate_tables_factory(carrier_id).list_candidate_rows(
                    db,
                    uf_origem=origin.state,
                    uf_destino=destination.state,
                    peso_kg=normalized.weight_kg,
                )
                pick = pick_best_rate_row(
                    rows,
                    uf_origem=origin.state,
                    uf_destino=destination.state,
                    peso_kg=normalized.weight_kg,
                )
                if pick is None:
                    continue
                results_repo.add_table_result(db, quote_id=quote_id, carrier_id=carrier_id, pick=pick)
                offers += 1
            except Exception as exc:  # noqa: BLE001
                reason = "duplicate_result" if is_integrity_error(exc) else "carrier_error"
                observe_quote_carrier_skipped(reason)
                LOGGER.warning(
                    "quote_engine_carrier_skipped",
                    extra={
                        "quote_id": quote_id,
                        "carrier_id": carrier_id,
                        "reason": reason,
                        "details": str(exc),
                    },
                )

        results = rank_offers(results_repo.list_for_quote(db, quote_id))
        quote = quotes.get_by_id(db, quote_id) or {"id": quote_id}
        duration_ms = (time.perf_counter() - started) * 1000.0
        observe_quote_engine_run(
            carriers_evaluated=len(carrier_ids),
            offers_generated=len(results),
            duration_ms=duration_ms,
        )
        LOGGER.info(
            "quote_engine_completed",
            extra={
                "quote_id": quote_id,
                "company_id": user.company_id,
                "carriers_evaluated": len(carrier_ids),
                "offers_inserted": offers,
                "origin_state": origin.state,
                "destination_state": destination.state,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return QuoteEngineResult(quote=quote, results=results)

    @staticmethod
    def _validate(quote_input: QuoteInput) -> QuoteInput:
        origin_zip = normalize_zip(quote_input.origin_zip)
        destination_zip = normalize_zip(quote_input.destination_zip)
        if len(origin_zip) != 8 or len(destination_zip) != 8:
            raise ValidationError(code="cep_invalid", http_status=400, critical=False)

        weight = quote_input.weight_kg
        if weight is None or not math.isfinite(float(weight)) or float(weight) <= 0:
            raise ValidationError(code="weight_invalid", http_status=400, critical=False)

        for dimension in (quote_input.length_cm, quote_input.width_cm, quote_input.height_cm):
            if not positive_or_none(dimension):
                raise ValidationError(code="dimension_invalid", http_status=400, critical=False)

        return QuoteInput(
            origin_zip=origin_zip,
            destination_zip=destination_zip,
            weight_kg=float(weight),
            length_cm=quote_input.length_cm,
            width_cm=quote_input.width_cm,
            height_cm=quote_input.height_cm,
            cargo_type=(quote_input.cargo_type or "").strip() or None,
        )
