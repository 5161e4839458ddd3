"""Venda Service
------------------------------------------------------------------------------
Registros de produtos vendidos (ProdutoVendido): retrato desnormalizado das
linhas vendidas, usado só para relatórios. Não depende do pedido continuar
existindo.
------------------------------------------------------------------------------
"""

import logging

from sqlalchemy import func

from database.models import Produto, ProdutoVendido
from database.transacao import transacao
from utils.errors import ValidationError, NotFoundError
from utils.validators import is_int, inteiro_positivo, validar_preco, parse_data, texto_opcional

log = logging.getLogger(__name__)


class VendaService:
    def __init__(self, session):
        self.session = session

    def registrar(self, dados: dict) -> ProdutoVendido:
        """Registro manual (admin/operador)."""
        obrigatorios = ("produtoId", "quantidade", "precoUnitario", "dataVenda", "pedidoId")
        if any(dados.get(c) in (None, "") for c in obrigatorios):
            raise ValidationError("Campos obrigatórios estão faltando.")
        if not is_int(dados["produtoId"]) or not is_int(dados["pedidoId"]):
            raise ValidationError("produtoId e pedidoId devem ser números inteiros.")

        quantidade = inteiro_positivo(dados["quantidade"])
        preco = validar_preco(dados["precoUnitario"])
        data_venda = parse_data(dados["dataVenda"], "dataVenda")

        produto = self.session.get(Produto, dados["produtoId"])
        if not produto:
            raise NotFoundError("Produto não encontrado.")

        with transacao(self.session, "registrar venda"):
            venda = ProdutoVendido(
                produto_id=produto.id,
                nome_produto=(texto_opcional(dados.get("nomeProduto"), "nomeProduto") or produto.nome),
                quantidade=quantidade,
                preco_unitario=preco,
                data_venda=data_venda,
                pedido_id=dados["pedidoId"],
            )
            self.session.add(venda)
            self.session.flush()
        return venda

    def registrar_pedido(self, pedido) -> list:
        """Snapshot das linhas de um pedido entregue (sem commit próprio).

        Uma vez por pedido: se já há vendas com este pedido_id (ex.: admin
        voltou o status e entregou de novo), nada é gravado.
        """
        ja_registrado = (
            self.session.query(ProdutoVendido.id).filter_by(pedido_id=pedido.id).first()
        )
        if ja_registrado:
            log.info("Vendas do pedido %s já registradas; ignorando nova entrega", pedido.id)
            return []

        vendas = []
        for item in pedido.itens:
            venda = ProdutoVendido(
                produto_id=item.produto_id,
                nome_produto=item.produto.nome if item.produto else f"Produto {item.produto_id}",
                quantidade=item.quantidade,
                preco_unitario=item.preco_unitario,
                pedido_id=pedido.id,
            )
            self.session.add(venda)
            vendas.append(venda)
        return vendas

    def listar(self):
        return self.session.query(ProdutoVendido).order_by(ProdutoVendido.data_venda.desc(), ProdutoVendido.id.desc()).all()

    def por_produto(self, produto_id):
        vendidos = (
            self.session.query(ProdutoVendido)
            .filter_by(produto_id=produto_id)
            .order_by(ProdutoVendido.data_venda.desc())
            .all()
        )
        if not vendidos:
            raise NotFoundError("Nenhuma venda encontrada para este produto.")
        return vendidos

    def por_pedido(self, pedido_id):
        vendidos = (
            self.session.query(ProdutoVendido)
            .filter_by(pedido_id=pedido_id)
            .order_by(ProdutoVendido.data_venda.desc())
            .all()
        )
        if not vendidos:
            raise NotFoundError("Nenhuma venda encontrada para este pedido.")
        return vendidos

    def atualizar(self, venda_id, dados: dict) -> ProdutoVendido:
        venda = self.session.get(ProdutoVendido, venda_id)
        if not venda:
            raise NotFoundError("Produto vendido não encontrado.")

        with transacao(self.session, f"atualizar venda {venda_id}"):
            if dados.get("quantidade") is not None:
                venda.quantidade = inteiro_positivo(dados["quantidade"])
            if dados.get("precoUnitario") is not None:
                venda.preco_unitario = validar_preco(dados["precoUnitario"])
            if dados.get("dataVenda") is not None:
                venda.data_venda = parse_data(dados["dataVenda"], "dataVenda")
            if dados.get("nomeProduto") is not None:
                venda.nome_produto = texto_opcional(dados["nomeProduto"], "nomeProduto")
        return venda

    def estatisticas(self, limite=5) -> dict:
        total_vendas, total_itens, faturamento = self.session.query(
            func.count(ProdutoVendido.id),
            func.coalesce(func.sum(ProdutoVendido.quantidade), 0),
            func.coalesce(func.sum(ProdutoVendido.quantidade * ProdutoVendido.preco_unitario), 0),
        ).one()

        total_vendido = func.sum(ProdutoVendido.quantidade).label("total_vendido")
        mais_vendidos = (
            self.session.query(ProdutoVendido.produto_id, ProdutoVendido.nome_produto, total_vendido)
            .group_by(ProdutoVendido.produto_id, ProdutoVendido.nome_produto)
            .order_by(total_vendido.desc())
            .limit(limite)
            .all()
        )

        return {
            "totalVendas": int(total_vendas),
            "totalItensVendidos": int(total_itens),
            "faturamentoTotal": round(float(faturamento), 2),
            "produtosMaisVendidos": [
                {"produtoId": pid, "nomeProduto": nome, "totalVendido": int(qtd)}
                for pid, nome, qtd in mais_vendidos
            ],
        }
