from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class ServiceOutput:
    payload: Dict[str, Any]
    status_code: int = 200


@dataclass(frozen=True)
class UserContext:
    user_id: int
    role: str
    company_id: str | None = None
    carrier_id: int | None = None
    email: str | None = None


@dataclass(frozen=True)
class QuoteInput:
    origin_zip: str
    destination_zip: str
    weight_kg: float
    length_cm: float | None = None
    width_cm: float | None = None
    height_cm: float | None = None
    cargo_type: str | None = None


@dataclass(frozen=True)
class CepAddress:
    city: str
    state: str


@dataclass(frozen=True)
class RateRowPick:
    rate_row_id: int
    preco_cents: int
    prazo_dias: int


@dataclass(frozen=True)
class QuoteEngineResult:
    quote: Dict[str, Any]
    results: List[Dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {"quote": self.quote, "results": self.results}


@dataclass(frozen=True)
class FreightRequestCreateInput:
    origin_zip: str
    origin_city: str
    origin_state: str
    destination_zip: str
    destination_city: str
    destination_state: str
    cargo_type: str
    pickup_date: str
    cargo_description: str | None = None
    weight_kg: float | None = None
    volume_m3: float | None = None
    length_cm: int | None = None
    width_cm: int | None = None
    height_cm: int | None = None
    invoice_value_cents: int | None = None


@dataclass(frozen=True)
class ProposalInput:
    freight_request_id: int
    price_cents: int
    deadline_days: int
    notes: str | None = None


@dataclass(frozen=True)
class RateRowInput:
    uf_origem: str
    uf_destino: str
    peso_min_kg: float
    peso_max_kg: float
    preco_cents: int
    prazo_dias: int
    is_active: bool = True


@dataclass(frozen=True)
class AuthLoginInput:
    email: str
    password: str


@dataclass(frozen=True)
class AuthRegisterInput:
    email: str
    password: str
    full_name: str | None
    role: str
    company_name: str | None = None
    carrier_name: str | None = None


@dataclass(frozen=True)
class AuthUser:
    user_id: int
    email: str
    display_name: str
    role: str
    company_id: str | None = None
    carrier_id: int | None = None
