from datetime import datetime
from decimal import Decimal

import pytest

from utils.errors import ValidationError, InternalError
from utils.validators import (
    is_int,
    parse_data,
    validar_endereco,
    validar_nota,
    validar_preco,
    validar_telefone,
    texto_opcional,
)


def test_is_int_ignora_bool():
    assert is_int(3)
    assert not is_int(True)
    assert not is_int("3")


@pytest.mark.parametrize("nota,esperado", [(1, 1), (5, 5), ("4", 4)])
def test_nota_valida(nota, esperado):
    assert validar_nota(nota) == esperado


@pytest.mark.parametrize("nota", [0, 6, 4.5, 5.0, "4.5", "", None, False])
def test_nota_invalida(nota):
    with pytest.raises(ValidationError):
        validar_nota(nota)


def test_preco_quantizado():
    assert validar_preco("10.555") == Decimal("10.56")
    assert validar_preco(0) == Decimal("0.00")
    for invalido in (None, "", "abc", -0.01, "NaN", True):
        with pytest.raises(ValidationError):
            validar_preco(invalido)


def test_endereco_deve_ser_objeto():
    assert validar_endereco({"rua": "A"}) == {"rua": "A"}
    for invalido in (None, {}, "Rua A", ["Rua A"]):
        with pytest.raises(ValidationError):
            validar_endereco(invalido)


def test_telefone():
    assert validar_telefone("63999998888") == "63999998888"
    assert validar_telefone("") is None
    with pytest.raises(ValidationError):
        validar_telefone("(63) 99999-8888")


def test_parse_data_converte_para_utc():
    assert parse_data("2024-05-01T12:00:00-03:00") == datetime(2024, 5, 1, 15, 0)
    assert parse_data("2024-05-01T12:00:00Z") == datetime(2024, 5, 1, 12, 0)
    assert parse_data(None) is None
    with pytest.raises(ValidationError):
        parse_data("01/05/2024")


def test_erros_carregam_status_http():
    assert ValidationError("x").status == 400
    assert InternalError().to_dict() == {"success": False, "error": "Erro interno do servidor."}


def test_texto_opcional():
    assert texto_opcional(None, "obs") is None
    assert texto_opcional("ok", "obs") == "ok"
    for invalido in (1, 2.5, {"a": 1}, ["a"], True):
        with pytest.raises(ValidationError, match="obs deve ser um texto"):
            texto_opcional(invalido, "obs")
