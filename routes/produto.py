# produto.py
from flask import Blueprint, jsonify, request
from database import db
from services.produto_service import ProdutoService, ler_csv_produtos
from decorators.auth_decorator import roles_required
from utils.errors import ValidationError

produto_bp = Blueprint("produto", __name__)


def _service():
    return ProdutoService(db.session)


@produto_bp.route("", methods=["GET"])
def listar_produtos():
    """Lista pública: ?search=&minPrice=&maxPrice=&sortBy=&order="""
    produtos = _service().listar(
        search=request.args.get("search"),
        min_price=request.args.get("minPrice"),
        max_price=request.args.get("maxPrice"),
        sort_by=request.args.get("sortBy", "createdAt"),
        order=request.args.get("order", "DESC"),
    )
    return jsonify({"success": True, "produtos": [p.to_dict() for p in produtos]}), 200


@produto_bp.route("/busca", methods=["GET"])
@roles_required("admin", "operador")
def buscar_produtos():
    produtos = _service().buscar(request.args.get("termo"))
    return jsonify({"success": True, "produtos": [p.to_resumo() for p in produtos]}), 200


@produto_bp.route("/<int:produto_id>", methods=["GET"])
def obter_produto(produto_id):
    produto = _service().obter(produto_id)
    return jsonify({"success": True, "produto": produto.to_dict()}), 200


@produto_bp.route("", methods=["POST"])
@roles_required("admin", "operador")
def criar_produto():
    dados = request.get_json(force=True, silent=True) or {}
    produto = _service().criar(dados)
    return jsonify({"success": True, "produto": produto.to_dict()}), 201


@produto_bp.route("/bulk", methods=["POST"])
@roles_required("admin", "operador")
def criar_produtos_bulk():
    """Cadastro em massa.

    Aceita:
        - JSON {"produtos": [{nome, descricao, preco, imagemUrl}, ...]}
        - multipart com arquivo CSV em `arquivo` (cabeçalho nome,descricao,preco,imagemUrl)

    Respostas:
        201 quando todas as linhas entram; 207 (Multi-Status) quando alguma falha.
    """
    arquivo = request.files.get("arquivo")
    if arquivo is not None:
        try:
            conteudo = arquivo.read().decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("Arquivo CSV deve estar em UTF-8.")
        produtos = ler_csv_produtos(conteudo)
    else:
        produtos = (request.get_json(force=True, silent=True) or {}).get("produtos")

    resultados = _service().criar_em_massa(produtos)
    status = 201 if not resultados["erros"] else 207
    return jsonify({
        "success": not resultados["erros"],
        "message": (
            f"Processamento concluído: {len(resultados['sucessos'])} sucessos, "
            f"{len(resultados['erros'])} erros"
        ),
        "resultados": resultados,
    }), status


@produto_bp.route("/<int:produto_id>", methods=["PUT"])
@roles_required("admin", "operador")
def atualizar_produto(produto_id):
    dados = request.get_json(force=True, silent=True) or {}
    produto = _service().atualizar(produto_id, dados)
    return jsonify({"success": True, "produto": produto.to_dict()}), 200


@produto_bp.route("/<int:produto_id>", methods=["DELETE"])
@roles_required("admin", "operador")
def remover_produto(produto_id):
    _service().remover(produto_id)
    return "", 204
