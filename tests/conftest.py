import itertools
import os
import sys
from decimal import Decimal
from types import SimpleNamespace

import pytest

# ensure project root is on sys.path when running from tests/ folder
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from app import create_app
from database import db
from database.models import Usuario, Produto, ProdutoEmEstoque
from utils.security import hash_password, create_access_token

SENHA_PADRAO = "senha123"
_HASH_PADRAO = hash_password(SENHA_PADRAO)
_seq = itertools.count(1)


class NotificadorGravador:
    """Guarda os eventos emitidos para conferência nos testes."""

    def __init__(self):
        self.eventos = []

    def emitir(self, evento, dados, usuario_id):
        self.eventos.append((evento, dados, usuario_id))

    def nomes(self):
        return [e[0] for e in self.eventos]


@pytest.fixture
def notificador():
    return NotificadorGravador()


@pytest.fixture
def app(notificador):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "CREATE_SCHEMA": True,
            "SECRET_KEY": "segredo-de-teste",
            "REALTIME_ENABLED": False,
        },
        notifier=notificador,
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def criar_usuario(app):
    def _criar(role="cliente", nome=None, email=None):
        n = next(_seq)
        with app.app_context():
            user = Usuario(
                nome=nome or f"Usuário {n}",
                email=email or f"usuario{n}@teste.com",
                password_hash=_HASH_PADRAO,
                role=role,
            )
            db.session.add(user)
            db.session.commit()
            token = create_access_token(user.id, role=user.role)
            return SimpleNamespace(
                id=user.id,
                email=user.email,
                role=role,
                headers={"Authorization": f"Bearer {token}"},
            )
    return _criar


@pytest.fixture
def cliente(criar_usuario):
    return criar_usuario("cliente")


@pytest.fixture
def outro_cliente(criar_usuario):
    return criar_usuario("cliente")


@pytest.fixture
def operador(criar_usuario):
    return criar_usuario("operador")


@pytest.fixture
def admin(criar_usuario):
    return criar_usuario("admin")


@pytest.fixture
def criar_produto(app):
    def _criar(nome="Sorvete de Chocolate", preco="10.00"):
        with app.app_context():
            produto = Produto(nome=nome, preco=Decimal(preco) if preco is not None else None)
            db.session.add(produto)
            db.session.commit()
            return produto.id
    return _criar


@pytest.fixture
def criar_estoque(app):
    def _criar(produto_id, quantidade, localizacao="Freezer 1"):
        with app.app_context():
            registro = ProdutoEmEstoque(produto_id=produto_id, quantidade=quantidade, localizacao=localizacao)
            db.session.add(registro)
            db.session.commit()
            return registro.id
    return _criar


@pytest.fixture
def contar(app):
    """Conta linhas de um modelo com uma sessão nova."""
    def _contar(modelo, **filtros):
        with app.app_context():
            return db.session.query(modelo).filter_by(**filtros).count()
    return _contar


ENDERECO = {"rua": "Rua das Flores", "numero": "100", "cidade": "Palmas", "cep": "77000-000"}
