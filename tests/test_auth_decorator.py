import pytest

from decorators.auth_decorator import roles_required
from utils.security import create_access_token, decode_token


def test_sem_token_retorna_401(client):
    r = client.get("/usuarios/me")
    assert r.status_code == 401
    assert r.get_json() == {"success": False, "error": "Token ausente."}


def test_token_invalido_retorna_401(client):
    r = client.get("/usuarios/me", headers={"Authorization": "Bearer nao-e-um-jwt"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Token inválido."


def test_token_expirado_retorna_401(app, client, cliente):
    with app.app_context():
        token = create_access_token(cliente.id, hours=-1)
    r = client.get("/usuarios/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Token expirado."


def test_token_assinado_com_outro_segredo(client, cliente):
    token = create_access_token(cliente.id, secret="outro-segredo")
    r = client.get("/usuarios/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_usuario_removido_retorna_401(app, client):
    with app.app_context():
        token = create_access_token(4242)
    r = client.get("/usuarios/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Usuário não encontrado."


def test_papel_fora_do_conjunto_retorna_403(client, cliente, operador):
    assert client.get("/dashboard/resumo", headers=cliente.headers).status_code == 403
    assert client.get("/dashboard/resumo", headers=operador.headers).status_code == 200


def test_papel_e_relido_do_banco(client, app, criar_usuario):
    # token emitido como admin, mas o usuário no banco é cliente
    user = criar_usuario("cliente")
    with app.app_context():
        token = create_access_token(user.id, role="admin")
    r = client.get("/usuarios", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


def test_preflight_nao_exige_token(client):
    assert client.options("/usuarios/me").status_code == 204


def test_papel_desconhecido_falha_na_declaracao():
    with pytest.raises(ValueError):
        roles_required("gerente")


def test_roundtrip_token(app):
    with app.app_context():
        payload = decode_token(create_access_token(7, role="operador"))
    assert payload["sub"] == "7"
    assert payload["role"] == "operador"
