# decorators/auth_decorator.py
"""
Decorators de autenticação/autorização
-------------------------------------------------------------------------------
login_required:
    - Exige JWT no header Authorization (formato "Bearer <token>").
    - Decodifica/valida o token e injeta o usuário autenticado em
      `request.current_user` para uso nas rotas protegidas.
    - Responde 204 para preflight CORS (OPTIONS) sem exigir token.
    - Em falhas (token ausente/inválido/expirado, usuário inexistente),
      retorna JSON padronizado {"success": False, "error": "..."} com 401.

roles_required(*roles):
    - Camada declarativa de papéis: autentica como login_required e, antes
      da view, confere se `current_user.role` está no conjunto pedido.
      Fora do conjunto -> 403.

Contrato:
    - Rotas protegidas acessam o usuário autenticado via:
        `u = request.current_user`
    - Regras de dono (ex.: "próprio usuário ou admin") ficam nos serviços,
      pois dependem da entidade carregada.
-------------------------------------------------------------------------------
"""

from functools import wraps
from flask import request, jsonify
from database import db
from database.models import Usuario, ROLES
from utils.security import decode_token


def _unauth(msg="Não autorizado."):
    """Retorna resposta JSON de não autorizado (401) com mensagem padronizada."""
    return jsonify({"success": False, "error": msg}), 401


def _forbidden(msg="Acesso negado."):
    return jsonify({"success": False, "error": msg}), 403


def _extract_bearer_token() -> str | None:
    """Extrai o token do header Authorization (esquema Bearer).

    Retorna:
        str | None: token sem o prefixo "Bearer ", ou None se ausente.
    """
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def _authenticate():
    """Resolve o usuário do token. Retorna (usuario, None) ou (None, resposta_401)."""
    token = _extract_bearer_token()
    if not token:
        return None, _unauth("Token ausente.")

    try:
        payload = decode_token(token)
    except ValueError as e:
        # decode_token lança ValueError com mensagens amigáveis
        return None, _unauth(str(e))

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None, _unauth("Token inválido (sub ausente).")

    user = db.session.get(Usuario, user_id)
    if not user:
        return None, _unauth("Usuário não encontrado.")
    return user, None


def login_required(fn):
    """Decorator para proteger rotas com JWT.

    Comportamento:
        - OPTIONS (preflight CORS): retorna 204 de imediato (sem exigir token).
        - Demais métodos: exige token Bearer; valida e injeta `request.current_user`.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if request.method == "OPTIONS":
            return "", 204

        user, erro = _authenticate()
        if erro is not None:
            return erro

        request.current_user = user
        return fn(*args, **kwargs)

    return wrapper


def roles_required(*roles):
    """Decorator que exige autenticação e um dos papéis informados.

    Uso:
        @bp.route("/admin/all")
        @roles_required("admin", "operador")
        def listar_todos(): ...
    """
    desconhecidos = set(roles) - set(ROLES)
    if desconhecidos:
        raise ValueError(f"Papéis desconhecidos: {', '.join(sorted(desconhecidos))}")
    permitidos = frozenset(roles)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if request.method == "OPTIONS":
                return "", 204

            user, erro = _authenticate()
            if erro is not None:
                return erro
            if user.role not in permitidos:
                return _forbidden()

            request.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
