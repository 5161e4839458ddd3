"""Dashboard Service
------------------------------------------------------------------------------
Resumo somente-leitura para o painel administrativo.
------------------------------------------------------------------------------
"""

from sqlalchemy import func

from database.models import Pedido, Produto, Usuario, STATUS_PEDIDO
from services.avaliacao_service import AvaliacaoService
from services.venda_service import VendaService


class DashboardService:
    def __init__(self, session):
        self.session = session

    def resumo(self) -> dict:
        por_status = dict.fromkeys(STATUS_PEDIDO, 0)
        for status, qtd in (
            self.session.query(Pedido.status, func.count(Pedido.id)).group_by(Pedido.status).all()
        ):
            por_status[status] = int(qtd)

        faturamento = (
            self.session.query(func.coalesce(func.sum(Pedido.valor_total), 0))
            .filter(Pedido.status != "cancelado")
            .scalar()
        )

        vendas = VendaService(self.session).estatisticas()
        return {
            "totalProdutos": self.session.query(func.count(Produto.id)).scalar(),
            "totalUsuarios": self.session.query(func.count(Usuario.id)).scalar(),
            "totalPedidos": sum(por_status.values()),
            "pedidosPorStatus": por_status,
            "faturamentoPedidos": round(float(faturamento), 2),
            "mediaAvaliacoes": AvaliacaoService(self.session).media(),
            "produtosMaisVendidos": vendas["produtosMaisVendidos"],
        }
