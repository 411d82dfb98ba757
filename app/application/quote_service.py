from __future__ import annotations

from app.application.guards import not_found, require_action, require_client
from app.domain.contracts import ServiceOutput, UserContext
from app.errors import ConflictError
from app.freight.flow_policy import flow_meta
from app.infrastructure.repositories.quote_repository import QuoteRepository
from app.infrastructure.repositories.quote_result_repository import QuoteResultRepository
from app.infrastructure.repositories.status_event_repository import StatusEventRepository
from app.ui_strings import status_label, success_message


class QuoteService:
    """Follow-up on automated quotes: listing, detail, choice and cancellation."""

    def list_quotes(self, db, user: UserContext) -> ServiceOutput:
        company_id = require_client(user)
        items = [self._decorate(quote) for quote in QuoteRepository(company_id=company_id).list_quotes(db)]
        return ServiceOutput(payload={"items": items, "total": len(items)})

    def get_quote_detail(self, db, user: UserContext, quote_id: int) -> ServiceOutput:
        company_id = require_client(user)
        quote = QuoteRepository(company_id=company_id).get_by_id(db, quote_id)
        if not quote:
            raise not_found("quote_not_found")
        results = QuoteResultRepository(company_id=company_id).list_for_quote(db, quote_id)
        for result in results:
            result["status_label"] = status_label("proposta", result.get("status"))
        return ServiceOutput(payload={"quote": self._decorate(quote), "results": results})

    def choose_result(self, db, user: UserContext, quote_id: int, result_id: int | None) -> ServiceOutput:
        company_id = require_client(user)
        quotes = QuoteRepository(company_id=company_id)
        results = QuoteResultRepository(company_id=company_id)
        events = StatusEventRepository(company_id=company_id)

        quote = quotes.get_by_id(db, quote_id)
        if not quote:
            raise not_found("quote_not_found")
        if quote.get("status") != "OPEN" or quote.get("selected_result_id"):
            raise ConflictError(code="quote_closed", http_status=409, critical=False)
        require_action("cotacao", quote.get("status"), "choose_result")

        if not result_id:
            raise not_found("quote_result_not_found")
        chosen = results.get_for_quote(db, quote_id, result_id)
        if not chosen:
            raise not_found("quote_result_not_found")
        if chosen.get("status") != "SENT":
            raise ConflictError(code="proposal_not_available", http_status=409, critical=False)

        quotes.close_with_selection(
            db,
            quote_id,
            result_id=result_id,
            final_price_cents=int(chosen["price_cents"]),
            final_deadline_days=int(chosen["deadline_days"]),
        )
        results.set_status(db, result_id, "WON")
        lost = results.lose_pending_results(db, quote_id, exclude_id=result_id)

        events.add_event(
            db,
            entity="quote",
            entity_id=quote_id,
            from_status="OPEN",
            to_status="CLOSED",
            reason="quote_result_chosen",
        )
        events.add_event(
            db,
            entity="quote_result",
            entity_id=result_id,
            from_status="SENT",
            to_status="WON",
            reason="quote_result_chosen",
        )
        for lost_id in lost:
            events.add_event(
                db,
                entity="quote_result",
                entity_id=lost_id,
                from_status="SENT",
                to_status="LOST",
                reason="other_result_chosen",
            )

        return ServiceOutput(
            payload={
                "quote": self._decorate(quotes.get_by_id(db, quote_id)),
                "selected_result_id": result_id,
                "lost_result_ids": lost,
                "message": success_message("quote_result_chosen"),
            }
        )

    def cancel_quote(self, db, user: UserContext, quote_id: int) -> ServiceOutput:
        company_id = require_client(user)
        quotes = QuoteRepository(company_id=company_id)
        quote = quotes.get_by_id(db, quote_id)
        if not quote:
            raise not_found("quote_not_found")
        require_action("cotacao", quote.get("status"), "cancel_quote")

        quotes.update_status(db, quote_id, "CANCELLED")
        StatusEventRepository(company_id=company_id).add_event(
            db,
            entity="quote",
            entity_id=quote_id,
            from_status=quote.get("status"),
            to_status="CANCELLED",
            reason="quote_cancelled",
        )
        return ServiceOutput(
            payload={
                "quote": self._decorate(quotes.get_by_id(db, quote_id)),
                "message": success_message("quote_cancelled"),
            }
        )

    @staticmethod
    def _decorate(quote: dict) -> dict:
        quote["status_label"] = status_label("cotacao", quote.get("status"))
        quote["flow"] = flow_meta("cotacao", quote.get("status"))
        return quote
