from __future__ import annotations

from typing import Dict, List


ACTION_LABELS: Dict[str, str] = {
    "submit_proposal": "Enviar proposta",
    "choose_proposal": "Escolher proposta",
    "cancel_request": "Cancelar solicitacao",
    "withdraw_proposal": "Retirar proposta",
    "be_chosen": "Aguardando decisao",
    "choose_result": "Escolher opcao",
    "cancel_quote": "Cancelar cotacao",
    "view": "Visualizar",
}


FLOW_POLICY: Dict[str, Dict[str, Dict[str, object]]] = {
    "solicitacao": {
        "OPEN": {
            "allowed_actions": ["submit_proposal", "choose_proposal", "cancel_request", "view"],
            "primary_action": "choose_proposal",
        },
        "CLOSED": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
        "CANCELLED": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
    },
    "proposta": {
        "SENT": {
            "allowed_actions": ["withdraw_proposal", "be_chosen", "view"],
            "primary_action": "be_chosen",
        },
        "WITHDRAWN": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
        "WON": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
        "LOST": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
    },
    "cotacao": {
        "OPEN": {
            "allowed_actions": ["choose_result", "cancel_quote", "view"],
            "primary_action": "choose_result",
        },
        "CLOSED": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
        "CANCELLED": {
            "allowed_actions": ["view"],
            "primary_action": "view",
        },
    },
}


def _fallback_policy() -> Dict[str, object]:
    return {"allowed_actions": [], "primary_action": None}


def status_policy(stage: str, status: str | None) -> Dict[str, object]:
    if not status:
        return _fallback_policy()
    return FLOW_POLICY.get(stage, {}).get(str(status), _fallback_policy())


def allowed_actions(stage: str, status: str | None) -> List[str]:
    actions = status_policy(stage, status).get("allowed_actions") or []
    if not isinstance(actions, list):
        return []
    return [str(action) for action in actions]


def primary_action(stage: str, status: str | None) -> str | None:
    action = status_policy(stage, status).get("primary_action")
    if not action:
        return None
    return str(action)


def action_allowed(stage: str, status: str | None, action: str) -> bool:
    if not action:
        return False
    return action in set(allowed_actions(stage, status))


def flow_meta(stage: str, status: str | None) -> Dict[str, object]:
    return {
        "stage": stage,
        "status": status,
        "allowed_actions": allowed_actions(stage, status),
        "primary_action": primary_action(stage, status),
    }


def frontend_bundle() -> Dict[str, object]:
    return {
        "policy": FLOW_POLICY,
        "action_labels": ACTION_LABELS,
    }
