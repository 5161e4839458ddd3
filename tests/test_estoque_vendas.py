from database.models import ProdutoVendido


def test_crud_estoque(client, admin, operador, criar_produto):
    produto = criar_produto("Picolé de Manga", "5.00")
    payload = {"produtoId": produto, "quantidade": 30, "localizacao": "Freezer B", "dataReposicao": "2024-11-05"}

    assert client.post("/estoque", json=payload, headers=operador.headers).status_code == 403
    r = client.post("/estoque", json=payload, headers=admin.headers)
    assert r.status_code == 201
    registro = r.get_json()["estoque"]
    assert registro["quantidade"] == 30
    assert registro["dataReposicao"].startswith("2024-11-05")

    r = client.get(f"/estoque/produto/{produto}")
    assert r.status_code == 200
    assert r.get_json()["estoque"]["localizacao"] == "Freezer B"

    r = client.put(f"/estoque/{registro['id']}", json={"quantidade": 12}, headers=admin.headers)
    assert r.status_code == 200
    assert r.get_json()["estoque"]["quantidade"] == 12

    assert client.put(f"/estoque/{registro['id']}", json={}, headers=admin.headers).status_code == 400
    assert client.put(f"/estoque/{registro['id']}", json={"quantidade": -1}, headers=admin.headers).status_code == 400

    assert len(client.get("/estoque").get_json()["estoque"]) == 1
    assert client.delete(f"/estoque/{registro['id']}", headers=admin.headers).status_code == 204
    assert client.get(f"/estoque/produto/{produto}").status_code == 404


def test_estoque_de_produto_inexistente(client, admin):
    r = client.post("/estoque", json={"produtoId": 9999, "quantidade": 1}, headers=admin.headers)
    assert r.status_code == 404
    assert client.post("/estoque", json={"produtoId": 1}, headers=admin.headers).status_code == 400


def test_registro_manual_de_venda(client, operador, criar_produto, contar):
    produto = criar_produto("Banana Split", "25.00")
    payload = {
        "produtoId": produto,
        "quantidade": 2,
        "precoUnitario": 25,
        "dataVenda": "2024-10-01T15:30:00Z",
        "pedidoId": 77,
    }
    r = client.post("/vendidos", json=payload, headers=operador.headers)
    assert r.status_code == 201
    venda = r.get_json()["venda"]
    assert venda["nomeProduto"] == "Banana Split"
    assert venda["pedidoId"] == 77

    r = client.put(f"/vendidos/{venda['id']}", json={"quantidade": 3}, headers=operador.headers)
    assert r.status_code == 200
    assert r.get_json()["venda"]["quantidade"] == 3

    incompleto = dict(payload)
    del incompleto["dataVenda"]
    assert client.post("/vendidos", json=incompleto, headers=operador.headers).status_code == 400
    assert contar(ProdutoVendido) == 1


def test_consultas_de_vendas(client, operador, criar_produto):
    a = criar_produto("Taça", "20.00")
    b = criar_produto("Cone", "5.00")
    for produto, qtd, preco in ((a, 1, 20), (b, 4, 5), (b, 2, 5)):
        client.post("/vendidos", json={
            "produtoId": produto, "quantidade": qtd, "precoUnitario": preco,
            "dataVenda": "2024-10-01", "pedidoId": 1,
        }, headers=operador.headers)

    assert len(client.get("/vendidos").get_json()["vendas"]) == 3
    assert len(client.get(f"/vendidos/produto/{b}").get_json()["vendas"]) == 2
    assert len(client.get("/vendidos/pedido/1").get_json()["vendas"]) == 3
    assert client.get("/vendidos/pedido/999").status_code == 404
    assert client.get("/vendidos/produto/999").status_code == 404

    stats = client.get("/vendidos/estatisticas").get_json()["estatisticas"]
    assert stats["totalVendas"] == 3
    assert stats["totalItensVendidos"] == 7
    assert stats["faturamentoTotal"] == 50.0
    assert stats["produtosMaisVendidos"][0] == {"produtoId": b, "nomeProduto": "Cone", "totalVendido": 6}


def test_ids_nao_inteiros_retornam_400(client, admin, operador, criar_produto, contar):
    produto = criar_produto()
    assert client.post("/estoque", json={"produtoId": str(produto), "quantidade": 1}, headers=admin.headers).status_code == 400
    assert client.post("/estoque", json={"produtoId": {"id": produto}, "quantidade": 1}, headers=admin.headers).status_code == 400

    payload = {
        "produtoId": {"id": produto},
        "quantidade": 1,
        "precoUnitario": 5,
        "dataVenda": "2024-10-01T15:30:00Z",
        "pedidoId": 1,
    }
    assert client.post("/vendidos", json=payload, headers=operador.headers).status_code == 400
    payload.update(produtoId=produto, pedidoId="1")
    assert client.post("/vendidos", json=payload, headers=operador.headers).status_code == 400
    assert contar(ProdutoVendido) == 0


def test_textos_com_tipo_errado_retornam_400(client, admin, criar_produto):
    produto = criar_produto()
    r = client.post("/estoque", json={"produtoId": produto, "quantidade": 1, "localizacao": ["A"]}, headers=admin.headers)
    assert r.status_code == 400
    r = client.post("/estoque", json={"produtoId": produto, "quantidade": 1, "localizacao": "Freezer A"}, headers=admin.headers)
    assert r.status_code == 201
