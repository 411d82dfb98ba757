from __future__ import annotations

from flask import Blueprint, jsonify

from app.application.guards import current_user, require_client
from app.application.quote_engine_service import QuoteEngineService
from app.application.quote_service import QuoteService
from app.db import get_db
from app.freight.forms import parse_quote_payload
from app.routes.payloads import payload_id, request_payload


quote_bp = Blueprint("quotes", __name__)

_QUOTE_ENGINE = QuoteEngineService()
_QUOTE_SERVICE = QuoteService()


@quote_bp.route("/api/quotes", methods=["POST"])
@quote_bp.route("/api/cotacoes", methods=["POST"])
def create_quote():
    user = current_user()
    require_client(user)
    quote_input = parse_quote_payload(request_payload())
    db = get_db()
    result = _QUOTE_ENGINE.create_quote_and_results(db, quote_input, user)
    db.commit()
    return jsonify(result.to_payload()), 200


@quote_bp.route("/api/cotacoes", methods=["GET"])
def list_quotes():
    output = _QUOTE_SERVICE.list_quotes(get_db(), current_user())
    return jsonify(output.payload), output.status_code


@quote_bp.route("/api/cotacoes/<int:quote_id>", methods=["GET"])
def quote_detail(quote_id: int):
    output = _QUOTE_SERVICE.get_quote_detail(get_db(), current_user(), quote_id)
    return jsonify(output.payload), output.status_code


@quote_bp.route("/api/cotacoes/<int:quote_id>/escolher", methods=["POST"])
def choose_quote_result(quote_id: int):
    payload = request_payload()
    db = get_db()
    output = _QUOTE_SERVICE.choose_result(db, current_user(), quote_id, payload_id(payload, "result_id"))
    db.commit()
    return jsonify(output.payload), output.status_code


@quote_bp.route("/api/cotacoes/<int:quote_id>/cancelar", methods=["POST"])
def cancel_quote(quote_id: int):
    db = get_db()
    output = _QUOTE_SERVICE.cancel_quote(db, current_user(), quote_id)
    db.commit()
    return jsonify(output.payload), output.status_code
