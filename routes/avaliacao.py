from flask import Blueprint, jsonify, request
from database import db
from services.avaliacao_service import AvaliacaoService
from decorators.auth_decorator import login_required

avaliacao_bp = Blueprint("avaliacao", __name__)


def _service():
    return AvaliacaoService(db.session)


def _lista(avaliacoes):
    return jsonify({"success": True, "avaliacoes": [a.to_dict() for a in avaliacoes]}), 200


@avaliacao_bp.route("", methods=["POST"])
@login_required
def criar_avaliacao():
    """Body: {"produtoId": 1, "nota": 1..5, "comentario": "opcional"}"""
    data = request.get_json(force=True, silent=True) or {}
    avaliacao = _service().criar(
        request.current_user.id, data.get("produtoId"), data.get("nota"), data.get("comentario")
    )
    return jsonify({"success": True, "avaliacao": avaliacao.to_dict()}), 201


@avaliacao_bp.route("", methods=["GET"])
def listar_avaliacoes():
    return _lista(_service().listar())


@avaliacao_bp.route("/distribuicao", methods=["GET"])
def distribuicao():
    return jsonify({"success": True, "distribuicao": _service().distribuicao_notas()}), 200


@avaliacao_bp.route("/produto/<int:produto_id>", methods=["GET"])
def avaliacoes_do_produto(produto_id):
    return _lista(_service().por_produto(produto_id))


@avaliacao_bp.route("/usuario/<int:usuario_id>", methods=["GET"])
@login_required
def avaliacoes_do_usuario(usuario_id):
    return _lista(_service().por_usuario(usuario_id, request.current_user))


@avaliacao_bp.route("/<int:avaliacao_id>", methods=["PUT"])
@login_required
def atualizar_avaliacao(avaliacao_id):
    data = request.get_json(force=True, silent=True) or {}
    avaliacao = _service().atualizar(
        avaliacao_id, data.get("nota"), data.get("comentario"), request.current_user
    )
    return jsonify({"success": True, "avaliacao": avaliacao.to_dict()}), 200


@avaliacao_bp.route("/<int:avaliacao_id>", methods=["DELETE"])
@login_required
def remover_avaliacao(avaliacao_id):
    _service().remover(avaliacao_id, request.current_user)
    return "", 204
