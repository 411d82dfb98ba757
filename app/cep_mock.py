from __future__ import annotations

from typing import Dict


# Capital-city CEPs used when CEP_MODE=mock (development and tests).
CEP_DATA: Dict[str, Dict[str, str]] = {
    "01001000": {"city": "Sao Paulo", "state": "SP"},
    "04538133": {"city": "Sao Paulo", "state": "SP"},
    "13010111": {"city": "Campinas", "state": "SP"},
    "20040020": {"city": "Rio de Janeiro", "state": "RJ"},
    "30130010": {"city": "Belo Horizonte", "state": "MG"},
    "29010120": {"city": "Vitoria", "state": "ES"},
    "80010000": {"city": "Curitiba", "state": "PR"},
    "88010400": {"city": "Florianopolis", "state": "SC"},
    "90010000": {"city": "Porto Alegre", "state": "RS"},
    "40010000": {"city": "Salvador", "state": "BA"},
    "50030230": {"city": "Recife", "state": "PE"},
    "60060440": {"city": "Fortaleza", "state": "CE"},
    "70040010": {"city": "Brasilia", "state": "DF"},
    "74003010": {"city": "Goiania", "state": "GO"},
    "69005010": {"city": "Manaus", "state": "AM"},
    "66010000": {"city": "Belem", "state": "PA"},
}


def lookup_cep(cep: str) -> Dict[str, str] | None:
    """Exact CEP first, then any known CEP sharing the 5-digit prefix."""
    found = CEP_DATA.get(cep)
    if found:
        return dict(found)
    prefix = cep[:5]
    for known_cep in sorted(CEP_DATA):
        if known_cep.startswith(prefix):
            return dict(CEP_DATA[known_cep])
    return None
