from __future__ import annotations

import logging

from app.application.guards import not_found, require_carrier
from app.domain.contracts import RateRowInput, ServiceOutput, UserContext
from app.errors import ValidationError
from app.freight.parsing import clean_text
from app.infrastructure.repositories.rate_table_repository import RateTableRepository
from app.ui_strings import success_message


LOGGER = logging.getLogger("cotafrete.rate_tables")
DEFAULT_TABLE_NAME = "Tabela padrao"


class RateTableService:
    def list_tables(self, db, user: UserContext) -> ServiceOutput:
        tables = RateTableRepository(carrier_id=require_carrier(user)).list_tables(db)
        return ServiceOutput(payload={"items": tables, "total": len(tables)})

    def create_table(self, db, user: UserContext, name: str | None = None) -> ServiceOutput:
        repository = RateTableRepository(carrier_id=require_carrier(user))
        table_id = repository.create_table(db, clean_text(name) or DEFAULT_TABLE_NAME, is_active=True)
        LOGGER.info("rate_table_created", extra={"rate_table_id": table_id, "carrier_id": repository.carrier_id})
        return ServiceOutput(payload={"table": repository.get_table(db, table_id)}, status_code=201)

    def get_table_detail(self, db, user: UserContext, table_id: int) -> ServiceOutput:
        repository = RateTableRepository(carrier_id=require_carrier(user))
        table = self._load_table(db, repository, table_id)
        return ServiceOutput(payload={"table": table, "rows": repository.list_rows(db, table_id)})

    def rename_table(self, db, user: UserContext, table_id: int, name: str | None) -> ServiceOutput:
        repository = RateTableRepository(carrier_id=require_carrier(user))
        self._load_table(db, repository, table_id)
        new_name = clean_text(name)
        if not new_name:
            raise ValidationError(code="rate_table_name_required", http_status=400, critical=False)
        repository.rename_table(db, table_id, new_name)
        return ServiceOutput(
            payload={
                "table": repository.get_table(db, table_id),
                "message": success_message("rate_table_updated"),
            }
        )

    def set_table_active(self, db, user: UserContext, table_id: int, is_active: bool) -> ServiceOutput:
        repository = RateTableRepository(carrier_id=require_carrier(user))
        self._load_table(db, repository, table_id)
        repository.set_table_active(db, table_id, bool(is_active))
        return ServiceOutput(
            payload={
                "table": repository.get_table(db, table_id),
                "message": success_message("rate_table_status_updated"),
            }
        )

    def add_row(self, db, user: UserContext, table_id: int, row_input: RateRowInput) -> ServiceOutput:
        repository = RateTableRepository(carrier_id=require_carrier(user))
        self._load_table(db, repository, table_id)
        row_id = repository.add_row(db, table_id, row_input)
        row = next((item for item in repository.list_rows(db, table_id) if int(item["id"]) == row_id), None)
        return ServiceOutput(
            payload={"id": row_id, "row": row, "message": success_message("rate_row_added")},
            status_code=201,
        )

    def delete_row(self, db, user: UserContext, table_id: int, row_id: int) -> ServiceOutput:
        repository = RateTableRepository(carrier_id=require_carrier(user))
        self._load_table(db, repository, table_id)
        if not repository.delete_row(db, table_id, row_id):
            raise not_found("rate_row_not_found")
        return ServiceOutput(payload={"deleted": row_id, "message": success_message("rate_row_removed")})

    @staticmethod
    def _load_table(db, repository: RateTableRepository, table_id: int) -> dict:
        table = repository.get_table(db, table_id)
        if not table:
            raise not_found("rate_table_not_found")
        return table
