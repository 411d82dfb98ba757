from __future__ import annotations

import json
import logging
import os
import re
import urllib.error
import urllib.request

from flask import current_app

from app.cep_mock import lookup_cep as lookup_mock_cep
from app.domain.contracts import CepAddress
from app.freight.parsing import normalize_zip
from app.observability import observe_cep_lookup


LOGGER = logging.getLogger("cotafrete.cep")
_UF_PATTERN = re.compile(r"^[A-Z]{2}$")


class CepLookupError(RuntimeError):
    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        super().__init__(message or code)


def resolve_cep(cep: str) -> CepAddress:
    try:
        address = _resolve(cep)
    except CepLookupError as exc:
        observe_cep_lookup(exc.code)
        raise
    observe_cep_lookup("ok")
    return address


def _resolve(cep: str) -> CepAddress:
    digits = normalize_zip(cep)
    if len(digits) != 8:
        raise CepLookupError("cep_invalid", f"CEP invalido: {cep!r}")

    mode = str(_get_config("CEP_MODE", "mock") or "mock").strip().lower()
    if mode == "mock":
        record = lookup_mock_cep(digits)
        if not record:
            raise CepLookupError("cep_not_found", f"CEP nao encontrado: {digits}")
        return _to_address(record.get("city"), record.get("state"), digits)
    if mode != "viacep":
        raise CepLookupError("cep_unavailable", f"CEP_MODE invalido: {mode}")
    return _resolve_viacep(digits)


def _resolve_viacep(digits: str) -> CepAddress:
    base_url = str(_get_config("CEP_BASE_URL", "https://viacep.com.br/ws") or "").rstrip("/")
    payload = _request_json(f"{base_url}/{digits}/json/")
    if not isinstance(payload, dict):
        raise CepLookupError("cep_unavailable", "Servico de CEP retornou resposta inesperada.")
    if str(payload.get("erro", "")).strip().lower() in {"true", "1"}:
        raise CepLookupError("cep_not_found", f"CEP nao encontrado: {digits}")
    return _to_address(payload.get("localidade"), payload.get("uf"), digits)


def _to_address(city: object, state: object, digits: str) -> CepAddress:
    city_name = str(city or "").strip()
    uf = str(state or "").strip().upper()
    if not city_name or not _UF_PATTERN.match(uf):
        raise CepLookupError("cep_invalid", f"CEP sem cidade/UF validos: {digits}")
    return CepAddress(city=city_name, state=uf)


def _request_json(url: str) -> object:
    timeout = _int_config("CEP_TIMEOUT_SECONDS", 10)
    request = urllib.request.Request(url, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            body = response.read().decode("utf-8")
            if not body:
                return {}
            return json.loads(body)
    except urllib.error.HTTPError as exc:  # noqa: PERF203
        LOGGER.warning("cep_lookup_http_error", extra={"status": exc.code, "url": url})
        raise CepLookupError("cep_unavailable", f"CEP HTTP {exc.code}") from exc
    except urllib.error.URLError as exc:
        LOGGER.warning("cep_lookup_connection_error", extra={"reason": str(exc.reason), "url": url})
        raise CepLookupError("cep_unavailable", f"Erro de conexao CEP: {exc.reason}") from exc
    except (TimeoutError, OSError) as exc:
        raise CepLookupError("cep_unavailable", f"Erro de conexao CEP: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CepLookupError("cep_unavailable", "Servico de CEP retornou JSON invalido.") from exc


def _get_config(key: str, default: object | None = None) -> object | None:
    try:
        return current_app.config.get(key, default)
    except RuntimeError:
        return os.environ.get(key, default)


def _int_config(key: str, default: int) -> int:
    value = _get_config(key, default)
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
