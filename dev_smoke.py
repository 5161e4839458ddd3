# dev_smoke.py
# Smoke test contra uma API rodando (python app.py).
# Requer um admin existente: SMOKE_ADMIN_EMAIL / SMOKE_ADMIN_SENHA.
import os
import sys
import time
import requests

BASE = os.getenv("BASE_URL", "http://127.0.0.1:5000")
ADMIN_EMAIL = os.getenv("SMOKE_ADMIN_EMAIL", "admin@sorveteria.com")
ADMIN_SENHA = os.getenv("SMOKE_ADMIN_SENHA", "admin123")


def _headers(token=None):
    h = {"Content-Type": "application/json"}
    if token:
        h["Authorization"] = f"Bearer {token}"
    return h


def get(path, token=None, **params):
    r = requests.get(f"{BASE}{path}", params=params, timeout=20, headers=_headers(token))
    return r.status_code, (r.json() if r.content else None)


def send(method, path, payload=None, token=None):
    r = requests.request(method, f"{BASE}{path}", json=payload, timeout=20, headers=_headers(token))
    return r.status_code, (r.json() if r.content else None)


def assert_true(cond, msg):
    if not cond:
        print(f"[FALHA] {msg}")
        sys.exit(1)
    else:
        print(f"[OK] {msg}")


def main():
    print(f"== Smoke test em {BASE} ==")

    # 1) /health
    sc, body = get("/health")
    assert_true(sc == 200 and body.get("status") == "ok", "/health OK")

    # 2) admin
    sc, body = send("POST", "/usuarios/login", {"email": ADMIN_EMAIL, "senha": ADMIN_SENHA})
    assert_true(sc == 200 and body.get("token"), "login do admin")
    admin = body["token"]

    # 3) cliente novo (email único por execução)
    email = f"smoke{int(time.time())}@teste.com"
    sc, body = send("POST", "/usuarios/register", {"nome": "Smoke", "email": email, "senha": "smoke123"})
    assert_true(sc == 201, "registro de cliente")
    sc, body = send("POST", "/usuarios/login", {"email": email, "senha": "smoke123"})
    cliente = body["token"]

    # 4) produtos
    sc, body = send("POST", "/produtos", {"nome": "Smoke Morango", "preco": 10}, admin)
    assert_true(sc == 201, "produto A criado")
    prod_a = body["produto"]["id"]
    sc, body = send("POST", "/produtos", {"nome": "Smoke Limão", "preco": 5}, admin)
    prod_b = body["produto"]["id"]

    # 5) carrinho -> pedido
    send("POST", "/carrinho/itens", {"produtoId": prod_a, "quantidade": 2}, cliente)
    send("POST", "/carrinho/itens", {"produtoId": prod_b, "quantidade": 1}, cliente)
    sc, body = send("POST", "/pedidos", {"enderecoEntrega": {"rua": "Rua Smoke", "numero": "1"}}, cliente)
    assert_true(sc == 201, "pedido criado a partir do carrinho")
    pedido = body["pedido"]
    assert_true(pedido["valorTotal"] == 25.0, "total = 25.00")
    assert_true(pedido["status"] == "pendente", "status inicial pendente")

    sc, body = get("/carrinho", cliente)
    assert_true(body["carrinho"]["itens"] == [], "carrinho esvaziado")

    # 6) ciclo de status
    sc, _ = send("PATCH", f"/pedidos/{pedido['id']}/status", {"status": "processando"}, admin)
    assert_true(sc == 200, "pendente -> processando")
    sc, _ = send("PATCH", f"/pedidos/{pedido['id']}/cancel", None, cliente)
    assert_true(sc == 400, "cancelamento negado fora de pendente (400)")

    # 7) avaliação fora da faixa
    sc, _ = send("POST", "/avaliacoes", {"produtoId": prod_a, "nota": 6}, cliente)
    assert_true(sc == 400, "nota 6 rejeitada (400)")

    # limpeza
    send("DELETE", f"/pedidos/{pedido['id']}", None, admin)
    send("DELETE", f"/produtos/{prod_a}", None, admin)
    send("DELETE", f"/produtos/{prod_b}", None, admin)

    print("== Smoke test finalizado com sucesso ==")


if __name__ == "__main__":
    try:
        main()
    except requests.exceptions.RequestException as e:
        print(f"[FALHA] Erro de rede: {e}")
        sys.exit(1)
