from __future__ import annotations

import logging

from app.application.guards import not_found, require_action, require_client
from app.domain.contracts import FreightRequestCreateInput, ServiceOutput, UserContext
from app.errors import ConflictError, SystemError, ValidationError
from app.freight.flow_policy import flow_meta
from app.infrastructure.repositories.freight_request_repository import FreightRequestRepository
from app.infrastructure.repositories.status_event_repository import StatusEventRepository
from app.ui_strings import status_keys_for_group, status_label, success_message


LOGGER = logging.getLogger("cotafrete.freight_requests")
REQUEST_STATUSES = set(status_keys_for_group("solicitacao"))


class FreightRequestService:
    """Client side of the request-for-proposal flow."""

    def create_request(self, db, user: UserContext, request_input: FreightRequestCreateInput) -> ServiceOutput:
        company_id = require_client(user)
        requests = FreightRequestRepository(company_id=company_id)
        try:
            request_id = requests.create(db, request_input, created_by=user.user_id)
        except Exception as exc:
            raise SystemError(code="request_create_failed", http_status=500, details=str(exc)) from exc

        StatusEventRepository(company_id=company_id).add_event(
            db,
            entity="freight_request",
            entity_id=request_id,
            from_status=None,
            to_status="OPEN",
            reason="freight_request_created",
        )
        LOGGER.info("freight_request_created", extra={"freight_request_id": request_id, "company_id": company_id})
        return ServiceOutput(
            payload={
                "id": request_id,
                "status": "OPEN",
                "request": self._decorate(requests.get_by_id(db, request_id)),
                "message": success_message("request_created"),
            },
            status_code=201,
        )

    def list_requests(self, db, user: UserContext, status: str | None = None) -> ServiceOutput:
        company_id = require_client(user)
        normalized_status = (status or "").strip().upper() or None
        if normalized_status and normalized_status not in REQUEST_STATUSES:
            raise ValidationError(
                code="validation_error",
                http_status=400,
                critical=False,
                payload={"allowed_statuses": sorted(REQUEST_STATUSES)},
            )
        items = FreightRequestRepository(company_id=company_id).list_requests(db, status=normalized_status)
        return ServiceOutput(payload={"items": [self._decorate(item) for item in items], "total": len(items)})

    def get_request_detail(self, db, user: UserContext, request_id: int) -> ServiceOutput:
        company_id = require_client(user)
        requests = FreightRequestRepository(company_id=company_id)
        freight_request = requests.get_by_id(db, request_id)
        if not freight_request:
            raise not_found("request_not_found")

        proposals = requests.list_proposals(db, request_id)
        for proposal in proposals:
            proposal["status_label"] = status_label("proposta", proposal.get("status"))

        can_choose = freight_request.get("status") == "OPEN" and not freight_request.get("selected_quote_id")
        return ServiceOutput(
            payload={
                "request": self._decorate(freight_request),
                "proposals": proposals,
                "can_choose": can_choose,
            }
        )

    def choose_proposal(self, db, user: UserContext, request_id: int, proposal_id: int | None) -> ServiceOutput:
        company_id = require_client(user)
        requests = FreightRequestRepository(company_id=company_id)
        events = StatusEventRepository(company_id=company_id)

        freight_request = requests.get_by_id(db, request_id)
        if not freight_request:
            raise not_found("request_not_found")
        if freight_request.get("status") != "OPEN" or freight_request.get("selected_quote_id"):
            raise ConflictError(code="request_closed", http_status=409, critical=False)
        require_action("solicitacao", freight_request.get("status"), "choose_proposal")

        if not proposal_id:
            raise not_found("proposal_not_found")
        proposal = requests.get_proposal(db, request_id, proposal_id)
        if not proposal:
            raise not_found("proposal_not_found")
        if proposal.get("status") != "SENT":
            raise ConflictError(code="proposal_not_available", http_status=409, critical=False)

        requests.close_with_selection(
            db,
            request_id,
            proposal_id=proposal_id,
            final_price_cents=int(proposal["price_cents"]),
            final_deadline_days=int(proposal["deadline_days"]),
        )
        requests.set_proposal_status(db, proposal_id, "WON")
        lost = requests.lose_pending_proposals(db, request_id, exclude_id=proposal_id)

        events.add_event(
            db,
            entity="freight_request",
            entity_id=request_id,
            from_status="OPEN",
            to_status="CLOSED",
            reason="proposal_chosen",
        )
        events.add_event(
            db,
            entity="freight_quote",
            entity_id=proposal_id,
            from_status="SENT",
            to_status="WON",
            reason="proposal_chosen",
        )
        for lost_id in lost:
            events.add_event(
                db,
                entity="freight_quote",
                entity_id=lost_id,
                from_status="SENT",
                to_status="LOST",
                reason="other_proposal_chosen",
            )

        LOGGER.info(
            "freight_request_closed",
            extra={"freight_request_id": request_id, "proposal_id": proposal_id, "lost": len(lost)},
        )
        return ServiceOutput(
            payload={
                "request": self._decorate(requests.get_by_id(db, request_id)),
                "selected_quote_id": proposal_id,
                "lost_proposal_ids": lost,
                "message": success_message("proposal_chosen"),
            }
        )

    def cancel_request(self, db, user: UserContext, request_id: int) -> ServiceOutput:
        company_id = require_client(user)
        requests = FreightRequestRepository(company_id=company_id)
        events = StatusEventRepository(company_id=company_id)

        freight_request = requests.get_by_id(db, request_id)
        if not freight_request:
            raise not_found("request_not_found")
        require_action("solicitacao", freight_request.get("status"), "cancel_request")

        requests.update_status(db, request_id, "CANCELLED")
        lost = requests.lose_pending_proposals(db, request_id)
        events.add_event(
            db,
            entity="freight_request",
            entity_id=request_id,
            from_status=freight_request.get("status"),
            to_status="CANCELLED",
            reason="freight_request_cancelled",
        )
        for lost_id in lost:
            events.add_event(
                db,
                entity="freight_quote",
                entity_id=lost_id,
                from_status="SENT",
                to_status="LOST",
                reason="freight_request_cancelled",
            )
        return ServiceOutput(
            payload={
                "request": self._decorate(requests.get_by_id(db, request_id)),
                "lost_proposal_ids": lost,
                "message": success_message("request_cancelled"),
            }
        )

    @staticmethod
    def _decorate(freight_request: dict) -> dict:
        freight_request["status_label"] = status_label("solicitacao", freight_request.get("status"))
        freight_request["flow"] = flow_meta("solicitacao", freight_request.get("status"))
        return freight_request
