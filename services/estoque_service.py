"""Estoque Service
------------------------------------------------------------------------------
Registros de estoque (ProdutoEmEstoque) por produto/localização.

Um produto é "rastreado" quando possui ao menos um registro; o disponível é
a soma das quantidades de seus registros. `baixar` consome os registros em
ordem de id e só faz flush: quem chama controla a transação (fluxo de pedido).
------------------------------------------------------------------------------
"""

import logging

from sqlalchemy import func

from database.models import Produto, ProdutoEmEstoque
from database.transacao import transacao
from utils.errors import ValidationError, NotFoundError
from utils.validators import is_int, inteiro_nao_negativo, parse_data, texto_opcional

log = logging.getLogger(__name__)


class EstoqueService:
    def __init__(self, session):
        self.session = session

    def _get(self, estoque_id) -> ProdutoEmEstoque:
        estoque = self.session.get(ProdutoEmEstoque, estoque_id)
        if not estoque:
            raise NotFoundError("Registro de estoque não encontrado.")
        return estoque

    def criar(self, produto_id, quantidade, localizacao=None, data_reposicao=None) -> ProdutoEmEstoque:
        if not is_int(produto_id) or quantidade is None:
            raise ValidationError("ID do produto e quantidade são obrigatórios.")
        quantidade = inteiro_nao_negativo(quantidade)
        data_reposicao = parse_data(data_reposicao, "dataReposicao")

        if not self.session.get(Produto, produto_id):
            raise NotFoundError("Produto não encontrado.")

        with transacao(self.session, "criar estoque"):
            estoque = ProdutoEmEstoque(
                produto_id=produto_id,
                quantidade=quantidade,
                localizacao=(texto_opcional(localizacao, "localizacao") or None),
                data_reposicao=data_reposicao,
            )
            self.session.add(estoque)
            self.session.flush()
        return estoque

    def listar(self):
        return self.session.query(ProdutoEmEstoque).order_by(ProdutoEmEstoque.produto_id, ProdutoEmEstoque.id).all()

    def por_produto(self, produto_id) -> ProdutoEmEstoque:
        estoque = (
            self.session.query(ProdutoEmEstoque)
            .filter_by(produto_id=produto_id)
            .order_by(ProdutoEmEstoque.id)
            .first()
        )
        if not estoque:
            raise NotFoundError("Estoque não encontrado para este produto.")
        return estoque

    def atualizar(self, estoque_id, dados: dict) -> ProdutoEmEstoque:
        if dados.get("quantidade") is None:
            raise ValidationError("Quantidade é obrigatória.")
        quantidade = inteiro_nao_negativo(dados["quantidade"])

        estoque = self._get(estoque_id)
        with transacao(self.session, f"atualizar estoque {estoque_id}"):
            estoque.quantidade = quantidade
            if "localizacao" in dados:
                estoque.localizacao = texto_opcional(dados["localizacao"], "localizacao") or None
            if "dataReposicao" in dados:
                estoque.data_reposicao = parse_data(dados["dataReposicao"], "dataReposicao")
        return estoque

    def remover(self, estoque_id) -> None:
        estoque = self._get(estoque_id)
        with transacao(self.session, f"remover estoque {estoque_id}"):
            self.session.delete(estoque)

    # ---- usado pelo fluxo de pedido (sem commit próprio) -------------------
    def disponivel(self, produto_id):
        """None se o produto não tem registro de estoque; senão a soma."""
        existe, total = (
            self.session.query(func.count(ProdutoEmEstoque.id), func.coalesce(func.sum(ProdutoEmEstoque.quantidade), 0))
            .filter(ProdutoEmEstoque.produto_id == produto_id)
            .one()
        )
        return int(total) if existe else None

    def baixar(self, produto_id, quantidade) -> None:
        """Debita `quantidade` dos registros do produto, em ordem de id."""
        registros = (
            self.session.query(ProdutoEmEstoque)
            .filter_by(produto_id=produto_id)
            .order_by(ProdutoEmEstoque.id)
            .with_for_update()
            .all()
        )
        restante = quantidade
        for registro in registros:
            if restante <= 0:
                break
            debito = min(registro.quantidade, restante)
            registro.quantidade -= debito
            restante -= debito
        if restante > 0:
            raise ValidationError(f"Estoque insuficiente para o produto {produto_id}.")
        self.session.flush()
