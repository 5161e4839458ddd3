import io

from database.models import Produto


def test_crud_produto(client, operador):
    r = client.post("/produtos", json={"nome": "Sorvete de Coco", "descricao": "Cremoso", "preco": 12.5,
                                       "imagemUrl": "https://img/coco.png"}, headers=operador.headers)
    assert r.status_code == 201
    produto = r.get_json()["produto"]
    assert produto["preco"] == 12.5
    assert produto["imagemUrl"] == "https://img/coco.png"

    r = client.get(f"/produtos/{produto['id']}")
    assert r.status_code == 200
    assert r.get_json()["produto"]["nome"] == "Sorvete de Coco"

    r = client.put(f"/produtos/{produto['id']}", json={"preco": "13.90"}, headers=operador.headers)
    assert r.status_code == 200
    assert r.get_json()["produto"]["preco"] == 13.9
    assert r.get_json()["produto"]["descricao"] == "Cremoso"

    assert client.delete(f"/produtos/{produto['id']}", headers=operador.headers).status_code == 204
    assert client.get(f"/produtos/{produto['id']}").status_code == 404


def test_cliente_nao_altera_catalogo(client, cliente):
    assert client.post("/produtos", json={"nome": "X", "preco": 1}, headers=cliente.headers).status_code == 403
    assert client.post("/produtos", json={"nome": "X", "preco": 1}).status_code == 401


def test_validacoes_de_produto(client, admin):
    assert client.post("/produtos", json={"preco": 10}, headers=admin.headers).status_code == 400
    assert client.post("/produtos", json={"nome": "X", "preco": "abc"}, headers=admin.headers).status_code == 400
    assert client.post("/produtos", json={"nome": "X", "preco": -1}, headers=admin.headers).status_code == 400


def test_listagem_com_filtros_e_ordenacao(client, criar_produto):
    criar_produto("Picolé de Uva", "4.00")
    criar_produto("Sorvete de Uva", "12.00")
    criar_produto("Açaí", "20.00")

    r = client.get("/produtos?sortBy=preco&order=ASC")
    assert [p["preco"] for p in r.get_json()["produtos"]] == [4.0, 12.0, 20.0]

    r = client.get("/produtos?search=uva&minPrice=5")
    assert [p["nome"] for p in r.get_json()["produtos"]] == ["Sorvete de Uva"]

    r = client.get("/produtos?maxPrice=15&sortBy=nome&order=DESC")
    assert [p["nome"] for p in r.get_json()["produtos"]] == ["Sorvete de Uva", "Picolé de Uva"]

    assert client.get("/produtos?minPrice=barato").status_code == 400


def test_busca_exige_tres_caracteres(client, operador, criar_produto):
    criar_produto("Sorvete de Pistache", "15.00")
    r = client.get("/produtos/busca?termo=pist", headers=operador.headers)
    assert r.status_code == 200
    assert len(r.get_json()["produtos"]) == 1
    assert client.get("/produtos/busca?termo=pi", headers=operador.headers).status_code == 400


def test_bulk_json_com_falhas_parciais(client, admin, contar):
    produtos = [
        {"nome": "Sabor 1", "preco": 10},
        {"nome": "", "preco": 5},
        {"nome": "Sabor 3", "preco": "abc"},
    ]
    r = client.post("/produtos/bulk", json={"produtos": produtos}, headers=admin.headers)
    assert r.status_code == 207
    resultados = r.get_json()["resultados"]
    assert resultados["total"] == 3
    assert [s["linha"] for s in resultados["sucessos"]] == [2]
    assert [e["linha"] for e in resultados["erros"]] == [3, 4]
    assert contar(Produto) == 1


def test_bulk_csv(client, admin, contar):
    csv_ = "nome,descricao,preco,imagemUrl\nFlocos,Sorvete de flocos,9.90,\nNapolitano,,11.00,\n"
    r = client.post(
        "/produtos/bulk",
        data={"arquivo": (io.BytesIO(csv_.encode("utf-8")), "produtos.csv")},
        content_type="multipart/form-data",
        headers=admin.headers,
    )
    assert r.status_code == 201, r.get_json()
    assert r.get_json()["success"] is True
    assert contar(Produto) == 2


def test_bulk_sem_lista(client, admin):
    assert client.post("/produtos/bulk", json={"produtos": []}, headers=admin.headers).status_code == 400
