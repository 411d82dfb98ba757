"""Rate table lookup and offer ranking used by the quote engine."""

from __future__ import annotations

from typing import Iterable, List, Mapping

from app.domain.contracts import RateRowPick


def _uf(value) -> str:
    return str(value or "").strip().upper()


def _is_active(value) -> bool:
    return bool(value) and str(value).strip().lower() not in {"0", "false", "f"}


def row_matches(row: Mapping, uf_origem: str, uf_destino: str, peso_kg: float) -> bool:
    if not _is_active(row.get("is_active", True)):
        return False
    if not _is_active(row.get("table_is_active", True)):
        return False
    if _uf(row.get("uf_origem")) != _uf(uf_origem):
        return False
    if _uf(row.get("uf_destino")) != _uf(uf_destino):
        return False
    peso_min = float(row.get("peso_min_kg") or 0)
    peso_max = float(row.get("peso_max_kg") or 0)
    return peso_min <= float(peso_kg) <= peso_max


def _row_rank(row: Mapping) -> tuple:
    band_width = float(row.get("peso_max_kg") or 0) - float(row.get("peso_min_kg") or 0)
    return (
        int(row.get("preco_cents") or 0),
        int(row.get("prazo_dias") or 0),
        band_width,
        int(row.get("id") or 0),
    )


def pick_best_rate_row(
    rows: Iterable[Mapping],
    *,
    uf_origem: str,
    uf_destino: str,
    peso_kg: float,
) -> RateRowPick | None:
    """Choose the cheapest row whose UF pair and weight band cover the shipment.

    Ties on price go to the shorter deadline, then to the narrower weight
    band, then to the oldest row.
    """
    candidates = [row for row in rows if row_matches(row, uf_origem, uf_destino, peso_kg)]
    if not candidates:
        return None
    best = min(candidates, key=_row_rank)
    return RateRowPick(
        rate_row_id=int(best["id"]),
        preco_cents=int(best["preco_cents"]),
        prazo_dias=int(best["prazo_dias"]),
    )


def offer_sort_key(offer: Mapping) -> tuple:
    return (
        int(offer.get("price_cents") or 0),
        int(offer.get("deadline_days") or 0),
        int(offer.get("carrier_id") or 0),
    )


def rank_offers(offers: Iterable[Mapping]) -> List[dict]:
    return sorted((dict(offer) for offer in offers), key=offer_sort_key)
