from __future__ import annotations

import logging

from app.application.guards import not_found, require_action, require_carrier
from app.db import is_integrity_error
from app.domain.contracts import ProposalInput, ServiceOutput, UserContext
from app.errors import ConflictError
from app.freight.flow_policy import flow_meta
from app.infrastructure.repositories.proposal_repository import OpenRequestRepository, ProposalRepository
from app.infrastructure.repositories.status_event_repository import StatusEventRepository
from app.policies import require_roles
from app.ui_strings import status_label, success_message


LOGGER = logging.getLogger("cotafrete.proposals")


class ProposalService:
    """Carrier side of the request-for-proposal flow."""

    def __init__(self, open_requests: OpenRequestRepository | None = None) -> None:
        self.open_requests = open_requests or OpenRequestRepository()

    def list_open_requests(self, db, user: UserContext) -> ServiceOutput:
        role = require_roles("ADMIN", "TRANSPORTADOR", role=user.role)
        carrier_id = require_carrier(user) if role == "TRANSPORTADOR" else None
        items = self.open_requests.list_open_requests(db, carrier_id=carrier_id)
        for item in items:
            item["status_label"] = status_label("solicitacao", item.get("status"))
            item["my_proposal"] = self._own_proposal_summary(item)
        return ServiceOutput(payload={"items": items, "total": len(items), "read_only": carrier_id is None})

    def get_request(self, db, user: UserContext, request_id: int) -> ServiceOutput:
        carrier_id = require_carrier(user)
        freight_request = self.open_requests.get_request(db, request_id)
        own = ProposalRepository(carrier_id=carrier_id).get_for_request(db, request_id)
        if not freight_request or (freight_request.get("status") != "OPEN" and not own):
            raise not_found("request_not_found")

        if own:
            own["status_label"] = status_label("proposta", own.get("status"))
            own["flow"] = flow_meta("proposta", own.get("status"))
        can_submit = (
            freight_request.get("status") == "OPEN"
            and not freight_request.get("selected_quote_id")
            and own is None
        )
        freight_request["status_label"] = status_label("solicitacao", freight_request.get("status"))
        return ServiceOutput(payload={"request": freight_request, "my_proposal": own, "can_submit": can_submit})

    def submit_proposal(self, db, user: UserContext, proposal_input: ProposalInput) -> ServiceOutput:
        carrier_id = require_carrier(user)
        proposals = ProposalRepository(carrier_id=carrier_id)
        request_id = proposal_input.freight_request_id

        freight_request = self.open_requests.get_request(db, request_id)
        if not freight_request:
            raise not_found("request_not_found")
        if freight_request.get("status") != "OPEN" or freight_request.get("selected_quote_id"):
            raise ConflictError(code="request_closed", http_status=409, critical=False)
        require_action("solicitacao", freight_request.get("status"), "submit_proposal")
        if proposals.get_for_request(db, request_id):
            raise ConflictError(code="proposal_already_sent", http_status=409, critical=False)

        try:
            proposal_id = proposals.create(db, proposal_input)
        except Exception as exc:
            if is_integrity_error(exc):
                raise ConflictError(code="proposal_already_sent", http_status=409, critical=False) from exc
            raise

        StatusEventRepository(company_id=freight_request["company_id"]).add_event(
            db,
            entity="freight_quote",
            entity_id=proposal_id,
            from_status=None,
            to_status="SENT",
            reason="proposal_sent",
        )
        LOGGER.info(
            "proposal_sent",
            extra={"proposal_id": proposal_id, "freight_request_id": request_id, "carrier_id": carrier_id},
        )
        return ServiceOutput(
            payload={
                "id": proposal_id,
                "status": "SENT",
                "proposal": proposals.get_by_id(db, proposal_id),
                "message": success_message("proposal_sent"),
            },
            status_code=201,
        )

    def withdraw_proposal(self, db, user: UserContext, proposal_id: int) -> ServiceOutput:
        carrier_id = require_carrier(user)
        proposals = ProposalRepository(carrier_id=carrier_id)
        proposal = proposals.get_by_id(db, proposal_id)
        if not proposal:
            raise not_found("proposal_not_found")
        require_action("proposta", proposal.get("status"), "withdraw_proposal")
        if proposal.get("request_status") != "OPEN" or proposal.get("request_selected_quote_id"):
            raise ConflictError(code="request_closed", http_status=409, critical=False)

        proposals.update_status(db, proposal_id, "WITHDRAWN")
        StatusEventRepository(company_id=proposal["request_company_id"]).add_event(
            db,
            entity="freight_quote",
            entity_id=proposal_id,
            from_status=proposal.get("status"),
            to_status="WITHDRAWN",
            reason="proposal_withdrawn",
        )
        return ServiceOutput(
            payload={
                "proposal": proposals.get_by_id(db, proposal_id),
                "message": success_message("proposal_withdrawn"),
            }
        )

    @staticmethod
    def _own_proposal_summary(item: dict) -> dict | None:
        proposal_id = item.pop("my_proposal_id", None)
        price_cents = item.pop("my_price_cents", None)
        deadline_days = item.pop("my_deadline_days", None)
        status = item.pop("my_proposal_status", None)
        if not proposal_id:
            return None
        return {
            "id": proposal_id,
            "price_cents": price_cents,
            "deadline_days": deadline_days,
            "status": status,
            "status_label": status_label("proposta", status),
        }
