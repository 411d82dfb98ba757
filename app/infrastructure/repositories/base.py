from __future__ import annotations

from typing import Any, Iterable


class ScopeRequiredError(ValueError):
    """Raised when a scoped repository is instantiated without its owner id."""


class CompanyScopeRequiredError(ScopeRequiredError):
    """Raised when a repository of company-owned data has no company scope."""


class CarrierScopeRequiredError(ScopeRequiredError):
    """Raised when a repository of carrier-owned data has no carrier scope."""


class BaseRepository:
    @staticmethod
    def rows_to_dicts(rows: Iterable[Any]) -> list[dict]:
        return [dict(row) for row in rows]

    @staticmethod
    def row_to_dict(row: Any) -> dict | None:
        return dict(row) if row else None


class CompanyScopedRepository(BaseRepository):
    def __init__(self, *, company_id: str | None = None) -> None:
        scope = str(company_id or "").strip()
        if not scope:
            raise CompanyScopeRequiredError("company_id is required for repository access")
        self.company_id = scope

    def scoped_params(self, params: Iterable[Any] | None = None) -> tuple[Any, ...]:
        values = tuple(params or ())
        return (*values, self.company_id)


class CarrierScopedRepository(BaseRepository):
    def __init__(self, *, carrier_id: int | None = None) -> None:
        try:
            scope = int(carrier_id) if carrier_id not in (None, "") else 0
        except (TypeError, ValueError):
            scope = 0
        if scope <= 0:
            raise CarrierScopeRequiredError("carrier_id is required for repository access")
        self.carrier_id = scope

    def scoped_params(self, params: Iterable[Any] | None = None) -> tuple[Any, ...]:
        values = tuple(params or ())
        return (*values, self.carrier_id)
