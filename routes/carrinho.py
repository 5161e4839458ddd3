from flask import Blueprint, jsonify, request
from database import db
from services.carrinho_service import CarrinhoService
from decorators.auth_decorator import login_required

# Carrinho do usuário autenticado (criado sob demanda no primeiro acesso).
carrinho_bp = Blueprint("carrinho", __name__)


def _service():
    return CarrinhoService(db.session)


def _ok(carrinho, status=200):
    return jsonify({"success": True, "carrinho": carrinho.to_dict()}), status


@carrinho_bp.route("", methods=["GET"])
@login_required
def obter_carrinho():
    return _ok(_service().obter_ou_criar(request.current_user.id))


@carrinho_bp.route("/itens", methods=["POST"])
@login_required
def adicionar_item():
    """Adiciona produto ao carrinho; se já existir, soma a quantidade.

    Body: {"produtoId": 1, "quantidade": 2}
    """
    data = request.get_json(force=True, silent=True) or {}
    carrinho = _service().adicionar_item(
        request.current_user.id, data.get("produtoId"), data.get("quantidade", 1)
    )
    return _ok(carrinho, 201)


@carrinho_bp.route("/itens/<int:item_id>", methods=["PUT"])
@login_required
def atualizar_item(item_id):
    data = request.get_json(force=True, silent=True) or {}
    return _ok(_service().atualizar_item(request.current_user.id, item_id, data.get("quantidade")))


@carrinho_bp.route("/itens/<int:item_id>", methods=["DELETE"])
@login_required
def remover_item(item_id):
    return _ok(_service().remover_item(request.current_user.id, item_id))


@carrinho_bp.route("", methods=["DELETE"])
@login_required
def limpar_carrinho():
    return _ok(_service().limpar(request.current_user.id))
