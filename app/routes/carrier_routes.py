from __future__ import annotations

from flask import Blueprint, jsonify

from app.application.guards import current_user, require_carrier
from app.application.proposal_service import ProposalService
from app.application.rate_table_service import RateTableService
from app.db import get_db
from app.freight.forms import parse_proposal_payload, parse_rate_row_payload
from app.freight.parsing import parse_flag
from app.routes.payloads import request_payload


carrier_bp = Blueprint("carrier", __name__, url_prefix="/api/transportadora")

_PROPOSAL_SERVICE = ProposalService()
_RATE_TABLE_SERVICE = RateTableService()


@carrier_bp.route("/solicitacoes", methods=["GET"])
def open_requests():
    output = _PROPOSAL_SERVICE.list_open_requests(get_db(), current_user())
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/solicitacoes/<int:request_id>", methods=["GET"])
def open_request_detail(request_id: int):
    output = _PROPOSAL_SERVICE.get_request(get_db(), current_user(), request_id)
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/solicitacoes/<int:request_id>/propostas", methods=["POST"])
def submit_proposal(request_id: int):
    user = current_user()
    require_carrier(user)
    proposal_input = parse_proposal_payload(request_id, request_payload())
    db = get_db()
    output = _PROPOSAL_SERVICE.submit_proposal(db, user, proposal_input)
    db.commit()
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/propostas/<int:proposal_id>/retirar", methods=["POST"])
def withdraw_proposal(proposal_id: int):
    db = get_db()
    output = _PROPOSAL_SERVICE.withdraw_proposal(db, current_user(), proposal_id)
    db.commit()
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas", methods=["GET"])
def list_tables():
    output = _RATE_TABLE_SERVICE.list_tables(get_db(), current_user())
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas", methods=["POST"])
def create_table():
    payload = request_payload()
    db = get_db()
    output = _RATE_TABLE_SERVICE.create_table(db, current_user(), payload.get("name"))
    db.commit()
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas/<int:table_id>", methods=["GET"])
def table_detail(table_id: int):
    output = _RATE_TABLE_SERVICE.get_table_detail(get_db(), current_user(), table_id)
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas/<int:table_id>", methods=["PATCH"])
def rename_table(table_id: int):
    payload = request_payload()
    db = get_db()
    output = _RATE_TABLE_SERVICE.rename_table(db, current_user(), table_id, payload.get("name"))
    db.commit()
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas/<int:table_id>/ativo", methods=["POST"])
def toggle_table(table_id: int):
    payload = request_payload()
    db = get_db()
    output = _RATE_TABLE_SERVICE.set_table_active(
        db,
        current_user(),
        table_id,
        parse_flag(payload.get("is_active")),
    )
    db.commit()
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas/<int:table_id>/linhas", methods=["POST"])
def add_row(table_id: int):
    user = current_user()
    require_carrier(user)
    row_input = parse_rate_row_payload(request_payload())
    db = get_db()
    output = _RATE_TABLE_SERVICE.add_row(db, user, table_id, row_input)
    db.commit()
    return jsonify(output.payload), output.status_code


@carrier_bp.route("/tabelas/<int:table_id>/linhas/<int:row_id>", methods=["DELETE"])
def delete_row(table_id: int, row_id: int):
    db = get_db()
    output = _RATE_TABLE_SERVICE.delete_row(db, current_user(), table_id, row_id)
    db.commit()
    return jsonify(output.payload), output.status_code
