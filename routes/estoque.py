from flask import Blueprint, jsonify, request
from database import db
from services.estoque_service import EstoqueService
from decorators.auth_decorator import roles_required

estoque_bp = Blueprint("estoque", __name__)


def _service():
    return EstoqueService(db.session)


@estoque_bp.route("", methods=["GET"])
def listar_estoque():
    registros = _service().listar()
    return jsonify({"success": True, "estoque": [r.to_dict() for r in registros]}), 200


@estoque_bp.route("/produto/<int:produto_id>", methods=["GET"])
def estoque_do_produto(produto_id):
    return jsonify({"success": True, "estoque": _service().por_produto(produto_id).to_dict()}), 200


@estoque_bp.route("", methods=["POST"])
@roles_required("admin")
def criar_estoque():
    """Body: {"produtoId": 1, "quantidade": 10, "localizacao": "Freezer A", "dataReposicao": "2024-01-01"}"""
    data = request.get_json(force=True, silent=True) or {}
    registro = _service().criar(
        data.get("produtoId"), data.get("quantidade"), data.get("localizacao"), data.get("dataReposicao")
    )
    return jsonify({"success": True, "estoque": registro.to_dict()}), 201


@estoque_bp.route("/<int:estoque_id>", methods=["PUT"])
@roles_required("admin")
def atualizar_estoque(estoque_id):
    data = request.get_json(force=True, silent=True) or {}
    return jsonify({"success": True, "estoque": _service().atualizar(estoque_id, data).to_dict()}), 200


@estoque_bp.route("/<int:estoque_id>", methods=["DELETE"])
@roles_required("admin")
def remover_estoque(estoque_id):
    _service().remover(estoque_id)
    return "", 204
