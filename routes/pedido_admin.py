from flask import Blueprint, current_app, jsonify, request
from database import db
from services.pedido_service import PedidoService
from decorators.auth_decorator import roles_required

# Criação de pedidos pelo painel (admin/operador): direta, por template e duplicação.
pedido_admin_bp = Blueprint("pedido_admin", __name__)


def _service():
    return PedidoService(db.session, notificador=current_app.extensions["notificador"])


def _body():
    return request.get_json(force=True, silent=True) or {}


def _criado(pedido, message):
    return jsonify({"success": True, "message": message, "pedido": pedido.to_dict(incluir_usuario=True)}), 201


@pedido_admin_bp.route("", methods=["POST"])
@roles_required("admin", "operador")
def criar_pedido_direto():
    """Pedido direto para um usuário.

    Body:
        {
          "usuarioId": 1,
          "enderecoEntrega": {...},
          "itens": [{"produtoId": 1, "quantidade": 2}],
          "observacoes": "opcional"
        }

    Produtos com registro de estoque têm a quantidade conferida e debitada.
    """
    data = _body()
    pedido = _service().criar_direto(
        data.get("usuarioId"), data.get("enderecoEntrega"), data.get("itens"), data.get("observacoes")
    )
    return _criado(pedido, "Pedido criado com sucesso.")


@pedido_admin_bp.route("/rapido", methods=["POST"])
@roles_required("admin", "operador")
def criar_pedido_rapido():
    data = _body()
    pedido = _service().criar_por_template(
        data.get("usuarioId"), data.get("enderecoEntrega"), data.get("templateId")
    )
    return _criado(pedido, "Pedido criado a partir do template.")


@pedido_admin_bp.route("/templates", methods=["GET"])
@roles_required("admin", "operador")
def listar_templates():
    return jsonify({"success": True, "templates": _service().templates()}), 200


@pedido_admin_bp.route("/duplicar/<int:pedido_id>", methods=["POST"])
@roles_required("admin", "operador")
def duplicar_pedido(pedido_id):
    data = _body()
    pedido = _service().duplicar(
        pedido_id, usuario_id=data.get("usuarioId"), endereco_entrega=data.get("enderecoEntrega")
    )
    return _criado(pedido, f"Pedido duplicado do pedido #{pedido_id}.")
