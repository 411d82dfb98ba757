"""Turn raw JSON or form payloads into validated input contracts."""

from __future__ import annotations

from typing import Any, Mapping

from app.domain.contracts import FreightRequestCreateInput, ProposalInput, QuoteInput, RateRowInput
from app.errors import ValidationError
from app.freight.parsing import (
    clean_text,
    optional_text,
    parse_flag,
    parse_int_strict,
    parse_iso_date,
    parse_money_cents,
    parse_number_br,
    parse_optional_int,
    parse_uf,
)


def _invalid(code: str, **payload: Any) -> ValidationError:
    return ValidationError(code=code, message_key=code, http_status=400, critical=False, payload=payload or None)


def parse_quote_payload(payload: Mapping[str, Any]) -> QuoteInput:
    origin_zip = clean_text(payload.get("origin_zip"))
    destination_zip = clean_text(payload.get("destination_zip"))
    weight_kg = parse_number_br(payload.get("weight_kg"))
    if not origin_zip or not destination_zip or not weight_kg:
        raise _invalid("quote_fields_required")

    return QuoteInput(
        origin_zip=origin_zip,
        destination_zip=destination_zip,
        weight_kg=weight_kg,
        length_cm=parse_number_br(payload.get("length_cm")),
        width_cm=parse_number_br(payload.get("width_cm")),
        height_cm=parse_number_br(payload.get("height_cm")),
        cargo_type=optional_text(payload.get("cargo_type")),
    )


def parse_freight_request_payload(payload: Mapping[str, Any]) -> FreightRequestCreateInput:
    origin_zip = clean_text(payload.get("origin_zip"))
    origin_city = clean_text(payload.get("origin_city"))
    raw_origin_state = clean_text(payload.get("origin_state"))
    destination_zip = clean_text(payload.get("destination_zip"))
    destination_city = clean_text(payload.get("destination_city"))
    raw_destination_state = clean_text(payload.get("destination_state"))
    cargo_type = clean_text(payload.get("cargo_type"))
    raw_pickup_date = clean_text(payload.get("pickup_date"))

    required = [
        origin_zip,
        origin_city,
        raw_origin_state,
        destination_zip,
        destination_city,
        raw_destination_state,
        cargo_type,
        raw_pickup_date,
    ]
    if not all(required):
        raise _invalid("request_fields_required")

    origin_state = parse_uf(raw_origin_state)
    destination_state = parse_uf(raw_destination_state)
    if not origin_state or not destination_state:
        raise _invalid("state_invalid")

    pickup_date = parse_iso_date(raw_pickup_date)
    if not pickup_date:
        raise _invalid("pickup_date_invalid")

    invoice_value_cents = None
    if clean_text(payload.get("invoice_value")):
        invoice_value_cents = parse_money_cents(payload.get("invoice_value"))
        if invoice_value_cents is None or invoice_value_cents < 0:
            raise _invalid("invoice_value_invalid")

    return FreightRequestCreateInput(
        origin_zip=origin_zip,
        origin_city=origin_city,
        origin_state=origin_state,
        destination_zip=destination_zip,
        destination_city=destination_city,
        destination_state=destination_state,
        cargo_type=cargo_type,
        pickup_date=pickup_date,
        cargo_description=optional_text(payload.get("cargo_description")),
        weight_kg=parse_number_br(payload.get("weight_kg")),
        volume_m3=parse_number_br(payload.get("volume_m3")),
        length_cm=parse_optional_int(payload.get("length_cm")),
        width_cm=parse_optional_int(payload.get("width_cm")),
        height_cm=parse_optional_int(payload.get("height_cm")),
        invoice_value_cents=invoice_value_cents,
    )


def parse_proposal_payload(request_id: int, payload: Mapping[str, Any]) -> ProposalInput:
    price_cents = parse_money_cents(payload.get("price"))
    deadline_days = parse_int_strict(payload.get("deadline_days"))
    if price_cents is None or price_cents <= 0 or deadline_days is None or deadline_days <= 0:
        raise _invalid("proposal_fields_required")
    return ProposalInput(
        freight_request_id=int(request_id),
        price_cents=price_cents,
        deadline_days=deadline_days,
        notes=optional_text(payload.get("notes")),
    )


def parse_rate_row_payload(payload: Mapping[str, Any]) -> RateRowInput:
    uf_origem = parse_uf(payload.get("uf_origem"))
    uf_destino = parse_uf(payload.get("uf_destino"))
    peso_min_kg = parse_number_br(payload.get("peso_min_kg"))
    peso_max_kg = parse_number_br(payload.get("peso_max_kg"))
    preco = parse_number_br(payload.get("preco"))
    prazo_dias = parse_int_strict(payload.get("prazo_dias"))

    if (
        not uf_origem
        or not uf_destino
        or peso_min_kg is None
        or peso_max_kg is None
        or preco is None
        or prazo_dias is None
        or prazo_dias <= 0
        or peso_min_kg < 0
        or preco < 0
    ):
        raise _invalid("rate_row_invalid")
    if peso_min_kg > peso_max_kg:
        raise _invalid("rate_row_weight_range_invalid")

    return RateRowInput(
        uf_origem=uf_origem,
        uf_destino=uf_destino,
        peso_min_kg=peso_min_kg,
        peso_max_kg=peso_max_kg,
        preco_cents=parse_money_cents(preco),
        prazo_dias=prazo_dias,
        is_active=parse_flag(payload.get("is_active", True)),
    )
