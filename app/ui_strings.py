from __future__ import annotations

from typing import Dict, List

from app.freight.flow_policy import frontend_bundle as flow_frontend_bundle


FRIENDLY_TERMS: Dict[str, str] = {
    "app_name": "CotaFrete",
    "freight_request": "Solicitacao de frete",
    "proposal": "Proposta",
    "quote": "Cotacao",
    "quote_result": "Opcao de frete",
    "rate_table": "Tabela de frete",
    "carrier": "Transportadora",
    "company": "Empresa",
}


ROLE_LABELS: Dict[str, str] = {
    "ADMIN": "Administrador",
    "CLIENTE": "Cliente",
    "TRANSPORTADOR": "Transportadora",
}


STATUS_GROUPS: Dict[str, List[Dict[str, str]]] = {
    "solicitacao": [
        {
            "key": "OPEN",
            "label": "Aberta",
            "description": "Solicitacao recebendo propostas das transportadoras.",
        },
        {
            "key": "CLOSED",
            "label": "Fechada",
            "description": "Proposta escolhida; solicitacao encerrada.",
        },
        {
            "key": "CANCELLED",
            "label": "Cancelada",
            "description": "Solicitacao encerrada sem escolha de proposta.",
        },
    ],
    "proposta": [
        {
            "key": "SENT",
            "label": "Enviada",
            "description": "Proposta aguardando decisao do cliente.",
        },
        {
            "key": "WITHDRAWN",
            "label": "Retirada",
            "description": "Proposta retirada pela transportadora.",
        },
        {
            "key": "WON",
            "label": "Vencedora",
            "description": "Proposta escolhida pelo cliente.",
        },
        {
            "key": "LOST",
            "label": "Nao escolhida",
            "description": "Outra proposta foi escolhida ou a solicitacao foi cancelada.",
        },
    ],
    "cotacao": [
        {
            "key": "OPEN",
            "label": "Aberta",
            "description": "Cotacao calculada, aguardando escolha de uma opcao.",
        },
        {
            "key": "CLOSED",
            "label": "Fechada",
            "description": "Opcao de frete escolhida.",
        },
        {
            "key": "CANCELLED",
            "label": "Cancelada",
            "description": "Cotacao descartada pelo cliente.",
        },
    ],
}


MESSAGES: Dict[str, Dict[str, str]] = {
    "success": {
        "request_created": "Solicitacao criada.",
        "proposal_sent": "Proposta enviada.",
        "proposal_chosen": "Proposta escolhida.",
        "proposal_withdrawn": "Proposta retirada.",
        "request_cancelled": "Solicitacao cancelada.",
        "quote_result_chosen": "Opcao de frete escolhida.",
        "quote_cancelled": "Cotacao cancelada.",
        "rate_table_updated": "Tabela atualizada.",
        "rate_table_status_updated": "Status atualizado.",
        "rate_row_added": "Linha adicionada.",
        "rate_row_removed": "Linha removida.",
        "logged_out": "Sessao encerrada.",
    },
    "error": {
        "auth_required": "Autenticacao necessaria.",
        "invalid_credentials": "Credenciais invalidas. Tente novamente.",
        "credentials_required": "Informe email e senha.",
        "email_already_registered": "Email ja cadastrado. Use outro email ou faca login.",
        "company_already_registered": "Ja existem empresas demais com esse nome. Use um nome mais especifico.",
        "role_invalid": "Perfil invalido. Escolha CLIENTE ou TRANSPORTADOR.",
        "company_name_required": "Informe o nome da empresa.",
        "carrier_name_required": "Informe o nome da transportadora.",
        "permission_denied": "Acesso negado.",
        "company_required": "Seu usuario nao esta vinculado a uma empresa.",
        "carrier_required": "Seu usuario nao esta vinculado a uma transportadora.",
        "payload_invalid": "Payload invalido.",
        "validation_error": "Dados invalidos.",
        "action_invalid": "Acao invalida.",
        "not_found": "Registro nao encontrado.",
        "conflict": "Operacao em conflito com o estado atual.",
        "action_not_allowed_for_status": "Acao nao permitida para o status atual.",
        "csrf_invalid": "Sessao expirada ou formulario invalido. Recarregue a pagina.",
        "rate_limit_exceeded": "Muitas requisicoes. Tente novamente em instantes.",
        "cep_invalid": "CEP invalido. Informe CEP de origem e destino com 8 digitos.",
        "cep_not_found": "CEP nao encontrado. Verifique e tente novamente.",
        "cep_unavailable": "Nao foi possivel consultar o CEP no momento. Tente novamente.",
        "weight_invalid": "Peso invalido. Informe um peso maior que zero.",
        "dimension_invalid": "Dimensao invalida. Informe valores maiores que zero.",
        "quote_fields_required": "Informe CEP origem, CEP destino e peso.",
        "quote_create_failed": "Nao foi possivel criar a cotacao. Tente novamente.",
        "quote_pricing_failed": "Nao foi possivel calcular as opcoes de frete. Tente novamente.",
        "quote_not_found": "Cotacao nao encontrada.",
        "quote_result_not_found": "Opcao de frete nao encontrada.",
        "quote_closed": "Esta cotacao ja esta fechada.",
        "request_fields_required": "Preencha origem, destino, tipo de carga e data de coleta.",
        "state_invalid": "UF invalida. Informe 2 letras.",
        "pickup_date_invalid": "Data de coleta invalida. Use o formato AAAA-MM-DD.",
        "invoice_value_invalid": "Valor da nota fiscal invalido.",
        "request_not_found": "Solicitacao nao encontrada.",
        "request_closed": "Esta solicitacao ja esta fechada.",
        "request_create_failed": "Nao foi possivel criar a solicitacao. Tente novamente.",
        "proposal_fields_required": "Preencha valor e prazo (em dias).",
        "proposal_not_found": "Proposta nao encontrada.",
        "proposal_already_sent": "Voce ja enviou uma proposta para esta solicitacao.",
        "proposal_not_available": "Esta proposta nao pode mais ser escolhida.",
        "rate_table_not_found": "Tabela nao encontrada.",
        "rate_table_name_required": "Preencha o nome da tabela.",
        "rate_row_invalid": "Preencha UF (2 letras), pesos, preco e prazo (dias) corretamente.",
        "rate_row_weight_range_invalid": "Peso minimo deve ser menor ou igual ao peso maximo.",
        "rate_row_not_found": "Linha da tabela nao encontrada.",
        "unexpected_error": "Nao foi possivel concluir a operacao. Tente novamente em instantes.",
    },
}


NAV_ITEMS: List[Dict[str, object]] = [
    {"key": "solicitacoes", "label": "Solicitacoes", "href": "/api/solicitacoes", "roles": ["ADMIN", "CLIENTE"]},
    {"key": "cotacoes", "label": "Cotacoes", "href": "/api/cotacoes", "roles": ["ADMIN", "CLIENTE"]},
    {"key": "nova_cotacao", "label": "Nova cotacao", "href": "/api/quotes", "roles": ["ADMIN", "CLIENTE"]},
    {
        "key": "solicitacoes_abertas",
        "label": "Solicitacoes abertas",
        "href": "/api/transportadora/solicitacoes",
        "roles": ["ADMIN", "TRANSPORTADOR"],
    },
    {
        "key": "tabelas",
        "label": "Tabelas de frete",
        "href": "/api/transportadora/tabelas",
        "roles": ["TRANSPORTADOR"],
    },
]


def status_keys_for_group(group: str) -> List[str]:
    return [item["key"] for item in STATUS_GROUPS.get(group, [])]


def status_label(group: str, key: str | None) -> str:
    for item in STATUS_GROUPS.get(group, []):
        if item["key"] == key:
            return item["label"]
    return str(key or "")


def nav_items_for_role(role: str | None) -> List[Dict[str, object]]:
    if not role:
        return []
    return [
        {"key": item["key"], "label": item["label"], "href": item["href"]}
        for item in NAV_ITEMS
        if role in item["roles"]
    ]


def get_message(category: str, key: str, default: str | None = None) -> str:
    message = MESSAGES.get(category, {}).get(key)
    if message:
        return message
    if default is not None:
        return default
    return key


def error_message(key: str, default: str | None = None) -> str:
    return get_message("error", key, default)


def success_message(key: str, default: str | None = None) -> str:
    return get_message("success", key, default)


def frontend_bundle() -> Dict[str, object]:
    return {
        "terms": FRIENDLY_TERMS,
        "roles": ROLE_LABELS,
        "status_groups": STATUS_GROUPS,
        "messages": MESSAGES,
        "flow": flow_frontend_bundle(),
    }
