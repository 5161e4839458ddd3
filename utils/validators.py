# utils/validators.py
"""
Validadores de entrada
-------------------------------------------------------------------------------
Funções pequenas usadas pelos serviços antes de abrir qualquer transação.
Todas levantam `ValidationError` (400) com mensagem pronta para o cliente.
-------------------------------------------------------------------------------
"""

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from utils.errors import ValidationError

_TELEFONE_RE = re.compile(r"^\d{11}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

SENHA_MIN = 6


def is_int(value) -> bool:
    """True para int "de verdade" (bool não conta)."""
    return isinstance(value, int) and not isinstance(value, bool)


def validar_endereco(endereco, obrigatorio=True):
    """Endereço de entrega deve ser um objeto (dict) não vazio."""
    if endereco is None and not obrigatorio:
        return None
    if not isinstance(endereco, dict) or not endereco:
        raise ValidationError("Endereço de entrega é obrigatório e deve ser um objeto válido.")
    return endereco


def validar_nota(nota) -> int:
    """Nota de avaliação: inteiro de 1 a 5 (aceita string numérica)."""
    if nota is None or isinstance(nota, bool):
        raise ValidationError("Nota válida (1-5) é obrigatória.")
    try:
        valor = int(nota)
    except (TypeError, ValueError):
        raise ValidationError("Nota válida (1-5) é obrigatória.")
    if str(valor) != str(nota).strip() and not is_int(nota):
        raise ValidationError("Nota válida (1-5) é obrigatória.")
    if valor < 1 or valor > 5:
        raise ValidationError("Nota válida (1-5) é obrigatória.")
    return valor


def inteiro_positivo(value, campo="quantidade") -> int:
    """Inteiro estritamente maior que zero (sem coerção de float/str)."""
    if not is_int(value) or value <= 0:
        raise ValidationError(f"{campo} deve ser um número inteiro maior que zero.")
    return value


def inteiro_nao_negativo(value, campo="quantidade") -> int:
    """Inteiro >= 0; aceita string numérica (formulários)."""
    try:
        valor = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{campo} deve ser um número inteiro.")
    if isinstance(value, bool) or valor < 0:
        raise ValidationError(f"{campo} deve ser maior ou igual a zero.")
    return valor


def validar_preco(value) -> Decimal:
    """Preço obrigatório, numérico e >= 0, arredondado a 2 casas."""
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError("Preço deve ser um número válido.")
    try:
        preco = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Preço deve ser um número válido.")
    if not preco.is_finite() or preco < 0:
        raise ValidationError("Preço deve ser um número válido.")
    return preco.quantize(Decimal("0.01"))


def validar_telefone(telefone):
    """Telefone opcional; quando informado, exatamente 11 dígitos."""
    if telefone in (None, ""):
        return telefone or None
    if not _TELEFONE_RE.match(str(telefone)):
        raise ValidationError("Telefone deve conter exatamente 11 dígitos.")
    return str(telefone)


def texto_opcional(value, campo):
    """None ou string; qualquer outro tipo JSON (número, objeto, lista) -> 400."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{campo} deve ser um texto.")
    return value


def validar_email(email: str) -> str:
    email = (texto_opcional(email, "email") or "").strip().lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Email inválido.")
    return email


def validar_senha(senha) -> str:
    texto_opcional(senha, "senha")
    if not senha or not str(senha).strip():
        raise ValidationError("Nova senha é obrigatória.")
    if len(senha) < SENHA_MIN:
        raise ValidationError(f"A senha deve ter pelo menos {SENHA_MIN} caracteres.")
    return senha


def parse_data(value, campo="data"):
    """Data ISO-8601 opcional (YYYY-MM-DD ou datetime completo)."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"{campo} inválida (use ISO-8601).")
    # o banco guarda DateTime sem fuso (UTC)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt
