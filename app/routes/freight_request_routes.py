from __future__ import annotations

from flask import Blueprint, jsonify, request

from app.application.freight_request_service import FreightRequestService
from app.application.guards import current_user, require_client
from app.db import get_db
from app.freight.forms import parse_freight_request_payload
from app.routes.payloads import payload_id, request_payload


freight_request_bp = Blueprint("freight_requests", __name__)

_REQUEST_SERVICE = FreightRequestService()


@freight_request_bp.route("/api/solicitacoes", methods=["POST"])
def create_request():
    user = current_user()
    require_client(user)
    request_input = parse_freight_request_payload(request_payload())
    db = get_db()
    output = _REQUEST_SERVICE.create_request(db, user, request_input)
    db.commit()
    return jsonify(output.payload), output.status_code


@freight_request_bp.route("/api/solicitacoes", methods=["GET"])
def list_requests():
    output = _REQUEST_SERVICE.list_requests(get_db(), current_user(), request.args.get("status"))
    return jsonify(output.payload), output.status_code


@freight_request_bp.route("/api/solicitacoes/<int:request_id>", methods=["GET"])
def request_detail(request_id: int):
    output = _REQUEST_SERVICE.get_request_detail(get_db(), current_user(), request_id)
    return jsonify(output.payload), output.status_code


@freight_request_bp.route("/api/solicitacoes/<int:request_id>/escolher", methods=["POST"])
def choose_proposal(request_id: int):
    payload = request_payload()
    db = get_db()
    output = _REQUEST_SERVICE.choose_proposal(db, current_user(), request_id, payload_id(payload, "quote_id"))
    db.commit()
    return jsonify(output.payload), output.status_code


@freight_request_bp.route("/api/solicitacoes/<int:request_id>/cancelar", methods=["POST"])
def cancel_request(request_id: int):
    db = get_db()
    output = _REQUEST_SERVICE.cancel_request(db, current_user(), request_id)
    db.commit()
    return jsonify(output.payload), output.status_code
