from __future__ import annotations

from app import create_app
from app.config import Config
from tests.helpers.temp_db import TempDbSandbox


SP_CEP = "01001-000"
RJ_CEP = "20040-020"
MG_CEP = "30130-010"


def build_temp_app(temp_db: TempDbSandbox, **overrides):
    attrs = {"TESTING": True, "AUTH_ENABLED": True}
    attrs.update(overrides)
    return create_app(temp_db.make_config(Config, **attrs))


def register_client(client, email: str, company_name: str = "Empresa Teste") -> dict:
    response = client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": "senha123",
            "full_name": "Cliente Teste",
            "role": "CLIENTE",
            "company_name": company_name,
        },
    )
    assert response.status_code == 201, response.get_data(as_text=True)
    return response.get_json()["user"]


def register_carrier(client, email: str, carrier_name: str) -> dict:
    response = client.post(
        "/api/auth/register",
        json={
            "email": email,
            "password": "senha123",
            "role": "TRANSPORTADOR",
            "carrier_name": carrier_name,
        },
    )
    assert response.status_code == 201, response.get_data(as_text=True)
    return response.get_json()["user"]


def create_rate_table(client, rows: list[dict], name: str = "Tabela teste") -> int:
    response = client.post("/api/transportadora/tabelas", json={"name": name})
    assert response.status_code == 201, response.get_data(as_text=True)
    table_id = int(response.get_json()["table"]["id"])
    for row in rows:
        added = client.post(f"/api/transportadora/tabelas/{table_id}/linhas", json=row)
        assert added.status_code == 201, added.get_data(as_text=True)
    return table_id


def rate_row(uf_origem: str, uf_destino: str, peso_min, peso_max, preco, prazo_dias, **extra) -> dict:
    row = {
        "uf_origem": uf_origem,
        "uf_destino": uf_destino,
        "peso_min_kg": peso_min,
        "peso_max_kg": peso_max,
        "preco": preco,
        "prazo_dias": prazo_dias,
    }
    row.update(extra)
    return row


def freight_request_payload(**overrides) -> dict:
    payload = {
        "origin_zip": SP_CEP,
        "origin_city": "Sao Paulo",
        "origin_state": "sp",
        "destination_zip": RJ_CEP,
        "destination_city": "Rio de Janeiro",
        "destination_state": "RJ",
        "cargo_type": "Paletizada",
        "cargo_description": "Caixas de pecas",
        "weight_kg": "350,5",
        "invoice_value": "1.234,56",
        "pickup_date": "2026-11-03",
    }
    payload.update(overrides)
    return payload
