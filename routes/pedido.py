from flask import Blueprint, current_app, jsonify, request
from database import db
from services.pedido_service import PedidoService
from decorators.auth_decorator import login_required, roles_required

# =============================================================================
# Pedidos
# -----------------------------------------------------------------------------
# - POST /pedidos fecha o carrinho do usuário autenticado.
# - Dono lista/consulta/cancela os próprios pedidos.
# - Operador/admin consultam todos e movem o status.
# - Admin edita (endereço/status livre) e apaga.
# Toda criação/mudança de status notifica a sala do dono (melhor esforço).
# =============================================================================

pedido_bp = Blueprint("pedido", __name__)


def _service():
    return PedidoService(db.session, notificador=current_app.extensions["notificador"])


def _body():
    return request.get_json(force=True, silent=True) or {}


@pedido_bp.route("", methods=["POST"])
@login_required
def criar_pedido():
    """Cria pedido a partir do carrinho.

    Body:
        {"enderecoEntrega": {...}, "observacoes": "opcional"}

    Respostas:
        201: {"success": True, "pedido": {...}}
        400: endereço ausente / carrinho vazio / produto sem preço.
    """
    data = _body()
    pedido = _service().criar_do_carrinho(
        request.current_user.id, data.get("enderecoEntrega"), data.get("observacoes")
    )
    return jsonify({"success": True, "pedido": pedido.to_dict()}), 201


@pedido_bp.route("/me", methods=["GET"])
@login_required
def meus_pedidos():
    pedidos = _service().listar_do_usuario(request.current_user.id)
    return jsonify({"success": True, "pedidos": [p.to_dict() for p in pedidos]}), 200


@pedido_bp.route("/admin/all", methods=["GET"])
@roles_required("admin", "operador")
def todos_pedidos():
    """Filtros: ?status=&userId=&startDate=&endDate=&sortBy=&order="""
    pedidos = _service().listar_todos(
        status=request.args.get("status"),
        usuario_id=request.args.get("userId"),
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
        sort_by=request.args.get("sortBy", "createdAt"),
        order=request.args.get("order", "DESC"),
    )
    return jsonify({"success": True, "pedidos": [p.to_dict(incluir_usuario=True) for p in pedidos]}), 200


@pedido_bp.route("/<int:pedido_id>", methods=["GET"])
@login_required
def obter_pedido(pedido_id):
    pedido = _service().obter(pedido_id, request.current_user)
    return jsonify({"success": True, "pedido": pedido.to_dict(incluir_usuario=True)}), 200


@pedido_bp.route("/<int:pedido_id>/cancel", methods=["PATCH"])
@login_required
def cancelar_pedido(pedido_id):
    pedido = _service().cancelar(pedido_id, request.current_user)
    return jsonify({"success": True, "message": "Pedido cancelado com sucesso.", "pedido": pedido.to_dict()}), 200


@pedido_bp.route("/<int:pedido_id>/status", methods=["PATCH"])
@roles_required("admin", "operador")
def atualizar_status(pedido_id):
    pedido = _service().atualizar_status(pedido_id, _body().get("status"))
    return jsonify({"success": True, "pedido": pedido.to_dict(incluir_usuario=True)}), 200


@pedido_bp.route("/<int:pedido_id>", methods=["PUT"])
@roles_required("admin")
def editar_pedido(pedido_id):
    data = _body()
    pedido = _service().editar(
        pedido_id, endereco_entrega=data.get("enderecoEntrega"), status=data.get("status")
    )
    return jsonify({"success": True, "pedido": pedido.to_dict(incluir_usuario=True)}), 200


@pedido_bp.route("/<int:pedido_id>", methods=["DELETE"])
@roles_required("admin")
def remover_pedido(pedido_id):
    _service().remover(pedido_id)
    return "", 204
