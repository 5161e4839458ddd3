from flask import Blueprint, jsonify, request
from database import db
from services.venda_service import VendaService
from decorators.auth_decorator import roles_required

# Produtos vendidos: snapshot por linha de pedido entregue + registro manual.
venda_bp = Blueprint("venda", __name__)


def _service():
    return VendaService(db.session)


def _lista(vendas):
    return jsonify({"success": True, "vendas": [v.to_dict() for v in vendas]}), 200


@venda_bp.route("", methods=["GET"])
def listar_vendas():
    return _lista(_service().listar())


@venda_bp.route("/estatisticas", methods=["GET"])
def estatisticas():
    """Totais e top 5 produtos por quantidade vendida."""
    return jsonify({"success": True, "estatisticas": _service().estatisticas()}), 200


@venda_bp.route("/produto/<int:produto_id>", methods=["GET"])
def vendas_do_produto(produto_id):
    return _lista(_service().por_produto(produto_id))


@venda_bp.route("/pedido/<int:pedido_id>", methods=["GET"])
def vendas_do_pedido(pedido_id):
    return _lista(_service().por_pedido(pedido_id))


@venda_bp.route("", methods=["POST"])
@roles_required("admin", "operador")
def registrar_venda():
    data = request.get_json(force=True, silent=True) or {}
    return jsonify({"success": True, "venda": _service().registrar(data).to_dict()}), 201


@venda_bp.route("/<int:venda_id>", methods=["PUT"])
@roles_required("admin", "operador")
def atualizar_venda(venda_id):
    data = request.get_json(force=True, silent=True) or {}
    return jsonify({"success": True, "venda": _service().atualizar(venda_id, data).to_dict()}), 200
