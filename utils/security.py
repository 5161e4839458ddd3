# utils/security.py
"""
Utilitários de Segurança
-------------------------------------------------------------------------------
Escopo:
- Hash/validação de senhas (Werkzeug, pbkdf2:sha256).
- Emissão e validação de JWT (PyJWT) para autenticação stateless.

O segredo vem de `current_app.config["SECRET_KEY"]` quando há app ativa
(create_app lê de SECRET_KEY no ambiente); fora de contexto (ex.: handler
do Socket.IO) usa a ENV diretamente.
-------------------------------------------------------------------------------
"""

from datetime import datetime, timedelta, timezone
import os
import jwt
from flask import current_app, has_app_context
from werkzeug.security import generate_password_hash, check_password_hash

DEFAULT_SECRET_KEY = "change-me-in-prod"
ALGORITHM = "HS256"
TOKEN_TTL_HOURS = 12


def _secret_key() -> str:
    if has_app_context():
        return current_app.config.get("SECRET_KEY") or DEFAULT_SECRET_KEY
    return os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)


# ---- Senhas ---------------------------------------------------------------
def hash_password(password: str) -> str:
    """Gera hash seguro (pbkdf2:sha256, com salt aleatório de 16 bytes)."""
    return generate_password_hash(password, method="pbkdf2:sha256", salt_length=16)


def verify_password(password: str, password_hash: str) -> bool:
    """Confere senha em texto claro vs hash armazenado (tempo constante)."""
    return check_password_hash(password_hash, password)


# ---- JWT ------------------------------------------------------------------
def create_access_token(user_id: int, role: str | None = None, hours: int = TOKEN_TTL_HOURS,
                        secret: str | None = None) -> str:
    """Cria um JWT com subject=user_id e expiração em `hours`.

    Claims:
        sub: identificador do usuário (string, por compatibilidade PyJWT)
        role: papel no momento da emissão (informativo; o decorator relê do banco)
        iat / exp: emitido em / expira em (UTC)
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(hours=hours),
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, secret or _secret_key(), algorithm=ALGORITHM)


def decode_token(token: str, secret: str | None = None) -> dict:
    """Decodifica/valida um JWT e retorna o payload (claims) como dict.

    Levanta:
        ValueError: com mensagem amigável para token expirado ou inválido.
    """
    try:
        return jwt.decode(token, secret or _secret_key(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise ValueError("Token expirado.")
    except jwt.InvalidTokenError:
        raise ValueError("Token inválido.")
