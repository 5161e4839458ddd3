from conftest import SENHA_PADRAO
from database.models import Usuario


def _registrar(client, **dados):
    payload = {"nome": "Maria", "email": "maria@teste.com", "senha": "segredo1"}
    payload.update(dados)
    return client.post("/usuarios/register", json=payload)


def test_registro_e_login(client):
    r = _registrar(client, telefone="63999998888")
    assert r.status_code == 201
    user = r.get_json()["user"]
    assert user["role"] == "cliente"
    assert "password_hash" not in user

    r = client.post("/usuarios/login", json={"email": "MARIA@teste.com", "senha": "segredo1"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["success"] is True
    assert body["user"]["email"] == "maria@teste.com"

    me = client.get("/usuarios/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["id"] == user["id"]


def test_registro_email_duplicado_retorna_409(client):
    assert _registrar(client).status_code == 201
    r = _registrar(client, nome="Outra Maria")
    assert r.status_code == 409
    assert r.get_json() == {"success": False, "error": "Email já cadastrado."}


def test_registro_validacoes(client):
    assert _registrar(client, nome="").status_code == 400
    assert _registrar(client, senha="123").status_code == 400
    assert _registrar(client, email="sem-arroba").status_code == 400
    assert _registrar(client, telefone="1234").status_code == 400


def test_registro_publico_nao_escolhe_papel(client, contar):
    r = _registrar(client, role="admin")
    assert r.status_code == 403
    assert contar(Usuario) == 0


def test_login_credenciais_invalidas(client, cliente):
    r = client.post("/usuarios/login", json={"email": cliente.email, "senha": "errada"})
    assert r.status_code == 401
    assert r.get_json()["error"] == "Credenciais inválidas."
    assert client.post("/usuarios/login", json={"email": cliente.email, "senha": SENHA_PADRAO}).status_code == 200


def test_admin_cria_operador(client, admin, cliente):
    payload = {"nome": "Op", "email": "op@teste.com", "senha": "segredo1", "role": "operador"}
    r = client.post("/usuarios/admin/create", json=payload, headers=admin.headers)
    assert r.status_code == 201
    assert r.get_json()["user"]["role"] == "operador"

    payload["email"] = "op2@teste.com"
    assert client.post("/usuarios", json=payload, headers=cliente.headers).status_code == 403


def test_listar_e_buscar_usuarios(client, admin, operador, cliente, criar_usuario):
    criar_usuario(nome="Joana Sorvete", email="joana@teste.com")

    r = client.get("/usuarios", headers=admin.headers)
    assert r.status_code == 200
    assert len(r.get_json()["usuarios"]) == 4
    assert client.get("/usuarios", headers=operador.headers).status_code == 403

    r = client.get("/usuarios/busca?termo=joana", headers=operador.headers)
    assert r.status_code == 200
    assert [u["email"] for u in r.get_json()["usuarios"]] == ["joana@teste.com"]
    assert client.get("/usuarios/busca?termo=jo", headers=operador.headers).status_code == 400


def test_proprio_usuario_ou_admin(client, cliente, outro_cliente, admin):
    assert client.get(f"/usuarios/{cliente.id}", headers=cliente.headers).status_code == 200
    assert client.get(f"/usuarios/{cliente.id}", headers=admin.headers).status_code == 200
    assert client.get(f"/usuarios/{cliente.id}", headers=outro_cliente.headers).status_code == 403
    assert client.get("/usuarios/9999", headers=admin.headers).status_code == 404


def test_atualizacao_parcial(client, cliente):
    r = client.put(f"/usuarios/{cliente.id}", json={"telefone": "63912345678"}, headers=cliente.headers)
    assert r.status_code == 200
    assert r.get_json()["user"]["telefone"] == "63912345678"

    # chave presente com valor vazio limpa o campo
    r = client.put(f"/usuarios/{cliente.id}", json={"telefone": ""}, headers=cliente.headers)
    assert r.get_json()["user"]["telefone"] is None

    r = client.put(f"/usuarios/{cliente.id}", json={"nome": ""}, headers=cliente.headers)
    assert r.status_code == 400


def test_cliente_nao_promove_a_si_mesmo(client, cliente, admin):
    r = client.put(f"/usuarios/{cliente.id}", json={"role": "admin"}, headers=cliente.headers)
    assert r.status_code == 403

    r = client.put(f"/usuarios/{cliente.id}", json={"role": "operador"}, headers=admin.headers)
    assert r.status_code == 200
    assert r.get_json()["user"]["role"] == "operador"


def test_atualizar_email_em_uso(client, cliente, outro_cliente):
    r = client.put(f"/usuarios/{cliente.id}", json={"email": outro_cliente.email}, headers=cliente.headers)
    assert r.status_code == 409
    assert r.get_json()["error"] == "Email já está em uso."


def test_reset_password(client, cliente, outro_cliente):
    r = client.put(f"/usuarios/{cliente.id}/reset-password", json={"novaSenha": "nova-senha"}, headers=cliente.headers)
    assert r.status_code == 200
    assert client.post("/usuarios/login", json={"email": cliente.email, "senha": "nova-senha"}).status_code == 200

    r = client.put(f"/usuarios/{cliente.id}/reset-password", json={"novaSenha": "outra-senha"},
                   headers=outro_cliente.headers)
    assert r.status_code == 403


def test_admin_remove_usuario(client, admin, cliente, contar):
    assert client.delete(f"/usuarios/{cliente.id}", headers=cliente.headers).status_code == 403
    assert client.delete(f"/usuarios/{cliente.id}", headers=admin.headers).status_code == 204
    assert contar(Usuario, id=cliente.id) == 0


def test_campos_de_texto_com_tipo_errado_retornam_400(client, cliente, contar):
    assert _registrar(client, senha=123456).status_code == 400
    assert _registrar(client, nome=42).status_code == 400
    assert _registrar(client, email=["maria@teste.com"]).status_code == 400
    assert contar(Usuario) == 1

    r = client.post("/usuarios/login", json={"email": cliente.email, "senha": 123456})
    assert r.status_code == 400
    assert r.get_json()["success"] is False
    assert client.post("/usuarios/login", json={"email": {"a": 1}, "senha": SENHA_PADRAO}).status_code == 400

    assert client.put(f"/usuarios/{cliente.id}", json={"nome": 42}, headers=cliente.headers).status_code == 400
