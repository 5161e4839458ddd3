"""Carrinho Service
------------------------------------------------------------------------------
Um carrinho por usuário, criado sob demanda. Cada linha guarda o preço do
produto no momento da inclusão; adicionar um produto já presente soma a
quantidade. O fechamento do pedido limpa as linhas mas mantém o carrinho.
------------------------------------------------------------------------------
"""

import logging

from database.models import Carrinho, ItemCarrinho, Produto
from database.transacao import transacao
from utils.errors import ValidationError, NotFoundError
from utils.validators import is_int, inteiro_positivo

log = logging.getLogger(__name__)


class CarrinhoService:
    def __init__(self, session):
        self.session = session

    def _carrinho(self, usuario_id):
        return self.session.query(Carrinho).filter_by(usuario_id=usuario_id).first()

    def obter_ou_criar(self, usuario_id) -> Carrinho:
        carrinho = self._carrinho(usuario_id)
        if carrinho:
            return carrinho
        with transacao(self.session, f"criar carrinho usuario {usuario_id}"):
            carrinho = Carrinho(usuario_id=usuario_id)
            self.session.add(carrinho)
            self.session.flush()
        return carrinho

    def _item(self, usuario_id, item_id) -> ItemCarrinho:
        item = (
            self.session.query(ItemCarrinho)
            .join(Carrinho)
            .filter(ItemCarrinho.id == item_id, Carrinho.usuario_id == usuario_id)
            .first()
        )
        if not item:
            raise NotFoundError("Produto não encontrado no carrinho.")
        return item

    def adicionar_item(self, usuario_id, produto_id, quantidade=1) -> Carrinho:
        if not is_int(produto_id):
            raise ValidationError("ID do produto não fornecido.")
        quantidade = inteiro_positivo(quantidade)

        produto = self.session.get(Produto, produto_id)
        if not produto:
            raise NotFoundError("Produto não encontrado.")
        if produto.preco is None:
            raise ValidationError(f"Produto {produto.nome} não possui preço definido.")

        carrinho = self.obter_ou_criar(usuario_id)
        with transacao(self.session, f"adicionar item carrinho {carrinho.id}"):
            existente = (
                self.session.query(ItemCarrinho)
                .filter_by(carrinho_id=carrinho.id, produto_id=produto_id)
                .first()
            )
            if existente:
                existente.quantidade += quantidade
                existente.preco_unitario = produto.preco
            else:
                self.session.add(ItemCarrinho(
                    carrinho_id=carrinho.id,
                    produto_id=produto_id,
                    quantidade=quantidade,
                    preco_unitario=produto.preco,
                ))
        return carrinho

    def atualizar_item(self, usuario_id, item_id, quantidade) -> Carrinho:
        """Quantidade <= 0 remove a linha."""
        if not is_int(quantidade):
            raise ValidationError("quantidade deve ser um número inteiro.")

        item = self._item(usuario_id, item_id)
        carrinho = item.carrinho
        with transacao(self.session, f"atualizar item carrinho {item_id}"):
            if quantidade <= 0:
                self.session.delete(item)
            else:
                item.quantidade = quantidade
        self.session.refresh(carrinho)
        return carrinho

    def remover_item(self, usuario_id, item_id) -> Carrinho:
        item = self._item(usuario_id, item_id)
        carrinho = item.carrinho
        with transacao(self.session, f"remover item carrinho {item_id}"):
            self.session.delete(item)
        self.session.refresh(carrinho)
        return carrinho

    def limpar(self, usuario_id) -> Carrinho:
        carrinho = self.obter_ou_criar(usuario_id)
        with transacao(self.session, f"limpar carrinho {carrinho.id}"):
            self.session.query(ItemCarrinho).filter_by(carrinho_id=carrinho.id).delete(synchronize_session=False)
        self.session.expire(carrinho)
        return carrinho
