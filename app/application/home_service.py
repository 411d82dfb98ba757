from __future__ import annotations

from app.application.auth_service import AuthService
from app.domain.contracts import ServiceOutput, UserContext
from app.infrastructure.repositories.freight_request_repository import FreightRequestRepository
from app.infrastructure.repositories.proposal_repository import OpenRequestRepository, ProposalRepository
from app.infrastructure.repositories.quote_repository import QuoteRepository
from app.infrastructure.repositories.rate_table_repository import RateTableRepository
from app.ui_strings import ROLE_LABELS, nav_items_for_role


class HomeService:
    def __init__(self, auth_service: AuthService | None = None) -> None:
        self.auth_service = auth_service or AuthService()

    def build_home(self, db, user: UserContext) -> ServiceOutput:
        profile = self.auth_service.profile_payload(db, user.user_id) or {"id": user.user_id, "email": user.email}
        role = user.role or None
        payload = {
            "profile": profile,
            "role": role,
            "role_label": ROLE_LABELS.get(role or "", ""),
            "nav": nav_items_for_role(role),
            "counters": self._counters(db, user),
            "profile_incomplete": not role,
        }
        return ServiceOutput(payload=payload)

    @staticmethod
    def _counters(db, user: UserContext) -> dict:
        if user.role in {"ADMIN", "CLIENTE"} and user.company_id:
            return {
                "open_requests": FreightRequestRepository(company_id=user.company_id).count_by_status(db, "OPEN"),
                "open_quotes": QuoteRepository(company_id=user.company_id).count_by_status(db, "OPEN"),
            }
        if user.role == "TRANSPORTADOR" and user.carrier_id:
            return {
                "open_requests": OpenRequestRepository().count_open(db),
                "sent_proposals": ProposalRepository(carrier_id=user.carrier_id).count_by_status(db, "SENT"),
                "active_tables": RateTableRepository(carrier_id=user.carrier_id).count_active_tables(db),
            }
        return {}
