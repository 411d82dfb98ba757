from flask import Blueprint, jsonify

from app.application.guards import current_user
from app.application.home_service import HomeService
from app.db import get_db
from app.ui_strings import frontend_bundle


home_bp = Blueprint("home", __name__)

_HOME_SERVICE = HomeService()


@home_bp.route("/api/home")
def home():
    output = _HOME_SERVICE.build_home(get_db(), current_user())
    return jsonify(output.payload), output.status_code


@home_bp.route("/api/ui")
def ui_bundle():
    return jsonify(frontend_bundle()), 200
