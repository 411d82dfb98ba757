from app.infrastructure.repositories.base import (
    BaseRepository,
    CarrierScopedRepository,
    CarrierScopeRequiredError,
    CompanyScopedRepository,
    CompanyScopeRequiredError,
    ScopeRequiredError,
)
from app.infrastructure.repositories.carrier_repository import CarrierRepository
from app.infrastructure.repositories.company_repository import CompanyRepository
from app.infrastructure.repositories.freight_request_repository import FreightRequestRepository
from app.infrastructure.repositories.profile_repository import ProfileRepository
from app.infrastructure.repositories.proposal_repository import OpenRequestRepository, ProposalRepository
from app.infrastructure.repositories.quote_repository import QuoteRepository
from app.infrastructure.repositories.quote_result_repository import QuoteResultRepository
from app.infrastructure.repositories.rate_table_repository import RateTableRepository
from app.infrastructure.repositories.status_event_repository import StatusEventRepository

__all__ = [
    "BaseRepository",
    "CarrierRepository",
    "CarrierScopedRepository",
    "CarrierScopeRequiredError",
    "CompanyRepository",
    "CompanyScopedRepository",
    "CompanyScopeRequiredError",
    "FreightRequestRepository",
    "OpenRequestRepository",
    "ProfileRepository",
    "ProposalRepository",
    "QuoteRepository",
    "QuoteResultRepository",
    "RateTableRepository",
    "ScopeRequiredError",
    "StatusEventRepository",
]
