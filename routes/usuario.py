from flask import Blueprint, request, jsonify
from database import db
from services.usuario_service import UsuarioService
from decorators.auth_decorator import login_required, roles_required

# =============================================================================
# Módulo de Usuários / Autenticação
# -----------------------------------------------------------------------------
# Cadastro, login, perfil e gestão de usuários.
# - Persistência: SQLAlchemy (tabela usuario) via UsuarioService
# - Sessão: JWT no header Authorization: Bearer <token>
# Convenção de erro: {"success": False, "error": "<mensagem>"} (handler em app.py).
# =============================================================================

usuario_bp = Blueprint("usuario", __name__)


def _service():
    return UsuarioService(db.session)


def _body():
    return request.get_json(force=True, silent=True) or {}


@usuario_bp.route("/register", methods=["POST"])
def register():
    """Registrar novo usuário (sempre com papel cliente).

    Corpo JSON esperado:
        {"nome": "...", "email": "...", "senha": "...", "telefone": "63999999999"}

    Respostas:
      201: {"success": True, "user": {...}}
      409: Email já cadastrado.
      400: Campos obrigatórios ausentes / inválidos.
    """
    data = _body()
    user = _service().registrar(
        data.get("nome"), data.get("email"), data.get("senha"), telefone=data.get("telefone"),
    )
    return jsonify({"success": True, "user": user.to_public_dict()}), 201


@usuario_bp.route("", methods=["POST"])
@usuario_bp.route("/admin/create", methods=["POST"])
@roles_required("admin")
def admin_create():
    """Cadastro pelo painel admin (permite escolher o papel)."""
    data = _body()
    user = _service().registrar(
        data.get("nome"), data.get("email"), data.get("senha"),
        telefone=data.get("telefone"), role=data.get("role"), por_admin=True,
    )
    return jsonify({"success": True, "user": user.to_public_dict()}), 201


@usuario_bp.route("/login", methods=["POST"])
def login():
    """Autenticar usuário e emitir JWT.

    Respostas:
      200: {"success": True, "token": "<jwt>", "user": {...}}
      401: Credenciais inválidas.
      400: Campos obrigatórios ausentes.
    """
    data = _body()
    token, user = _service().autenticar(data.get("email"), data.get("senha"))
    return jsonify({"success": True, "token": token, "user": user.to_public_dict()}), 200


@usuario_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({"success": True, "user": request.current_user.to_public_dict()}), 200


@usuario_bp.route("", methods=["GET"])
@roles_required("admin")
def listar():
    users = _service().listar()
    return jsonify({"success": True, "usuarios": [u.to_public_dict() for u in users]}), 200


@usuario_bp.route("/busca", methods=["GET"])
@roles_required("admin", "operador")
def buscar():
    users = _service().buscar(request.args.get("termo"))
    return jsonify({"success": True, "usuarios": [u.to_resumo() for u in users]}), 200


@usuario_bp.route("/<int:user_id>", methods=["GET"])
@login_required
def obter(user_id):
    user = _service().obter(user_id, request.current_user)
    return jsonify({"success": True, "user": user.to_public_dict()}), 200


@usuario_bp.route("/<int:user_id>", methods=["PUT"])
@login_required
def atualizar(user_id):
    """Atualizar usuário (próprio ou admin). Apenas chaves presentes são aplicadas."""
    user = _service().atualizar(user_id, _body(), request.current_user)
    return jsonify({"success": True, "user": user.to_public_dict()}), 200


@usuario_bp.route("/<int:user_id>", methods=["DELETE"])
@roles_required("admin")
def remover(user_id):
    _service().remover(user_id)
    return "", 204


@usuario_bp.route("/<int:user_id>/reset-password", methods=["PUT"])
@login_required
def reset_password(user_id):
    data = _body()
    user = _service().redefinir_senha(user_id, data.get("novaSenha"), request.current_user)
    return jsonify({"success": True, "message": "Senha alterada com sucesso.", "userId": user.id}), 200
