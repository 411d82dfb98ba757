from __future__ import annotations

import logging

from app.domain.contracts import RateRowInput
from app.infrastructure.repositories.carrier_repository import CarrierRepository
from app.infrastructure.repositories.company_repository import CompanyRepository
from app.infrastructure.repositories.profile_repository import ProfileRepository
from app.infrastructure.repositories.rate_table_repository import RateTableRepository


LOGGER = logging.getLogger("cotafrete.seed")

DEMO_COMPANY = {"id": "company-demo", "name": "Empresa Demo"}
DEMO_CLIENT = {"email": "cliente@demo.com", "password": "cliente123", "full_name": "Cliente Demo"}
DEMO_CARRIERS = [
    {
        "email": "rapidosul@demo.com",
        "password": "transp123",
        "name": "Rapido Sul Transportes",
        "rows": [
            ("SP", "RJ", 0, 100, 12000, 3),
            ("SP", "RJ", 100.01, 1000, 35000, 5),
            ("SP", "MG", 0, 500, 18000, 4),
            ("SP", "PR", 0, 500, 16000, 3),
            ("PR", "RS", 0, 1000, 21000, 4),
        ],
    },
    {
        "email": "vianorte@demo.com",
        "password": "transp123",
        "name": "Via Norte Logistica",
        "rows": [
            ("SP", "RJ", 0, 500, 15000, 2),
            ("SP", "BA", 0, 1000, 42000, 7),
            ("RJ", "SP", 0, 500, 14500, 2),
            ("MG", "DF", 0, 800, 27000, 5),
        ],
    },
]


def seed_demo_data(db) -> dict:
    """Create a demo company, one client and two carriers with rate tables.

    Users that already exist are left untouched, so running it twice is safe.
    """
    profiles = ProfileRepository()
    carriers = CarrierRepository()
    CompanyRepository().ensure_company(db, DEMO_COMPANY["id"], DEMO_COMPANY["name"])

    created = {"profiles": 0, "carriers": 0, "rate_rows": 0}
    if not profiles.email_exists(db, DEMO_CLIENT["email"]):
        profiles.create_profile(
            db,
            email=DEMO_CLIENT["email"],
            password=DEMO_CLIENT["password"],
            full_name=DEMO_CLIENT["full_name"],
            role="CLIENTE",
            company_id=DEMO_COMPANY["id"],
        )
        created["profiles"] += 1

    for demo_carrier in DEMO_CARRIERS:
        if profiles.email_exists(db, demo_carrier["email"]):
            continue
        user_id = profiles.create_profile(
            db,
            email=demo_carrier["email"],
            password=demo_carrier["password"],
            full_name=demo_carrier["name"],
            role="TRANSPORTADOR",
            company_id=None,
        )
        carrier_id = carriers.create_carrier(db, name=demo_carrier["name"], owner_user_id=user_id)
        created["profiles"] += 1
        created["carriers"] += 1

        tables = RateTableRepository(carrier_id=carrier_id)
        table_id = tables.create_table(db, "Tabela padrao", is_active=True)
        for uf_origem, uf_destino, peso_min, peso_max, preco_cents, prazo in demo_carrier["rows"]:
            tables.add_row(
                db,
                table_id,
                RateRowInput(
                    uf_origem=uf_origem,
                    uf_destino=uf_destino,
                    peso_min_kg=float(peso_min),
                    peso_max_kg=float(peso_max),
                    preco_cents=preco_cents,
                    prazo_dias=prazo,
                ),
            )
            created["rate_rows"] += 1

    LOGGER.info("demo_seed_completed", extra=created)
    return created
