from flask import Blueprint, jsonify
from database import db
from services.dashboard_service import DashboardService
from decorators.auth_decorator import roles_required

dashboard_bp = Blueprint("dashboard", __name__)


@dashboard_bp.route("/resumo", methods=["GET"])
@roles_required("admin", "operador")
def resumo():
    return jsonify({"success": True, "resumo": DashboardService(db.session).resumo()}), 200
