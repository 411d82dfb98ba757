from __future__ import annotations

import re
from typing import Iterator


DEFAULT_COMPANY_ID = "company-demo"


def slugify(value: str) -> str:
    normalized = str(value or "").strip().lower()
    normalized = re.sub(r"[^\w\s-]", "", normalized)
    normalized = re.sub(r"[\s_-]+", "-", normalized)
    return normalized.strip("-")


def company_id_for_name(company_name: str | None) -> str:
    slug = slugify(company_name or "")
    if not slug:
        return DEFAULT_COMPANY_ID
    return f"company-{slug}"


def company_id_candidates(company_name: str | None, *, attempts: int = 50) -> Iterator[str]:
    """``company-acme``, then ``company-acme-2``, ``company-acme-3``..."""
    base = company_id_for_name(company_name)
    yield base
    for suffix in range(2, attempts + 1):
        yield f"{base}-{suffix}"
