"""Pedido Service
------------------------------------------------------------------------------
Fluxo de pedidos: fechamento do carrinho, criação direta (admin/operador),
ciclo de status e notificação ao dono do pedido.

Criação (carrinho ou direta), dentro de UMA transação:
  1) resolve as linhas, congelando o preço atual de cada produto;
  2) total = Σ quantidade × preço unitário (produto sem preço -> 400);
  3) insere o Pedido com status "pendente";
  4) insere os ItemPedido;
  5) fluxo carrinho: apaga as linhas do carrinho (o carrinho continua);
  6) fluxo direto: baixa o estoque dos produtos rastreados;
  7) commit.
  8) fora da transação: recarrega o pedido e emite "novo_pedido_criado"
     (melhor esforço, nunca derruba a requisição).
Qualquer falha em 1..6 faz rollback completo: nenhum pedido, item, mudança
de carrinho ou de estoque fica visível.

Ciclo de status:
  pendente    -> processando | enviado | entregue | cancelado
  processando -> enviado | cancelado
  enviado     -> entregue | cancelado
  entregue, cancelado: terminais
O dono cancela só enquanto "pendente"; as demais transições exigem
operador/admin. A edição de admin (`editar`) não passa pela máquina.
------------------------------------------------------------------------------
"""

import logging
from decimal import Decimal

from sqlalchemy.orm import selectinload

from database.models import Carrinho, ItemCarrinho, ItemPedido, Pedido, Produto, Usuario, STATUS_PEDIDO
from database.transacao import transacao
from services.estoque_service import EstoqueService
from services.notificacao_service import NotificadorNulo, emitir_seguro
from services.venda_service import VendaService
from utils.errors import ValidationError, NotFoundError, ForbiddenError
from utils.validators import is_int, texto_opcional, validar_endereco, parse_data

log = logging.getLogger(__name__)

STATUS_INICIAL = "pendente"

TRANSICOES = {
    "pendente": frozenset({"processando", "enviado", "entregue", "cancelado"}),
    "processando": frozenset({"enviado", "cancelado"}),
    "enviado": frozenset({"entregue", "cancelado"}),
    "entregue": frozenset(),
    "cancelado": frozenset(),
}

# Templates de pedido rápido (admin/operador)
TEMPLATES = {
    1: {
        "nome": "Pedido Básico",
        "descricao": "Template com produtos básicos",
        "itens": [
            {"produtoId": 1, "quantidade": 1},
            {"produtoId": 2, "quantidade": 2},
        ],
    },
    2: {
        "nome": "Pedido Família",
        "descricao": "Template para pedidos familiares",
        "itens": [
            {"produtoId": 1, "quantidade": 2},
            {"produtoId": 3, "quantidade": 1},
            {"produtoId": 4, "quantidade": 3},
        ],
    },
}

_SORT_COLUMNS = {
    "valorTotal": Pedido.valor_total,
    "status": Pedido.status,
    "createdAt": Pedido.created_at,
    "updatedAt": Pedido.updated_at,
}

EVENTO_NOVO = "novo_pedido_criado"
EVENTO_STATUS = "status_pedido_atualizado"
EVENTO_DELETADO = "pedido_deletado"


def pode_transitar(atual: str, novo: str) -> bool:
    return novo in TRANSICOES.get(atual, frozenset())


def calcular_total(linhas) -> Decimal:
    """Σ quantidade × preço unitário; linhas = [(produto, quantidade, preco)]."""
    return sum((Decimal(q) * Decimal(p) for _, q, p in linhas), Decimal("0.00")).quantize(Decimal("0.01"))


class PedidoService:
    def __init__(self, session, notificador=None, estoque=None, vendas=None):
        self.session = session
        self.notificador = notificador or NotificadorNulo()
        self.estoque = estoque or EstoqueService(session)
        self.vendas = vendas or VendaService(session)

    # ---- leitura -----------------------------------------------------------
    def _get(self, pedido_id, com_itens=False) -> Pedido:
        q = self.session.query(Pedido).filter(Pedido.id == pedido_id)
        if com_itens:
            q = q.options(
                selectinload(Pedido.itens).selectinload(ItemPedido.produto),
                selectinload(Pedido.usuario),
            )
        pedido = q.first()
        if not pedido:
            raise NotFoundError("Pedido não encontrado.")
        return pedido

    def obter(self, pedido_id, solicitante) -> Pedido:
        pedido = self._get(pedido_id, com_itens=True)
        if pedido.usuario_id != solicitante.id and solicitante.role not in ("admin", "operador"):
            raise ForbiddenError("Acesso negado.")
        return pedido

    def listar_do_usuario(self, usuario_id):
        return (
            self.session.query(Pedido)
            .filter_by(usuario_id=usuario_id)
            .options(selectinload(Pedido.itens).selectinload(ItemPedido.produto))
            .order_by(Pedido.created_at.desc(), Pedido.id.desc())
            .all()
        )

    def listar_todos(self, status=None, usuario_id=None, start_date=None, end_date=None,
                     sort_by="createdAt", order="DESC"):
        q = self.session.query(Pedido).options(
            selectinload(Pedido.itens).selectinload(ItemPedido.produto),
            selectinload(Pedido.usuario),
        )
        if status:
            q = q.filter(Pedido.status == status)
        if usuario_id not in (None, ""):
            try:
                q = q.filter(Pedido.usuario_id == int(usuario_id))
            except (TypeError, ValueError):
                raise ValidationError("userId deve ser numérico.")
        inicio = parse_data(start_date, "startDate")
        fim = parse_data(end_date, "endDate")
        if inicio:
            q = q.filter(Pedido.created_at >= inicio)
        if fim:
            q = q.filter(Pedido.created_at <= fim)

        coluna = _SORT_COLUMNS.get(sort_by or "", Pedido.created_at)
        ordem = coluna.asc() if (order or "").upper() == "ASC" else coluna.desc()
        return q.order_by(ordem, Pedido.id.desc()).all()

    # ---- criação -----------------------------------------------------------
    def _inserir(self, usuario_id, endereco, linhas, observacoes=None) -> Pedido:
        """Passos 2..4: total, Pedido e ItemPedido (dentro da transação do chamador)."""
        pedido = Pedido(
            usuario_id=usuario_id,
            valor_total=calcular_total(linhas),
            status=STATUS_INICIAL,
            endereco_entrega=endereco,
            observacoes=observacoes,
        )
        self.session.add(pedido)
        self.session.flush()

        self.session.add_all([
            ItemPedido(pedido_id=pedido.id, produto_id=produto.id, quantidade=qtd, preco_unitario=preco)
            for produto, qtd, preco in linhas
        ])
        self.session.flush()
        return pedido

    def _apos_criacao(self, pedido_id, usuario_id, por_admin) -> Pedido:
        """Passo 8: recarrega com relações e notifica (melhor esforço)."""
        self.session.expire_all()
        pedido = self._get(pedido_id, com_itens=True)
        emitir_seguro(self.notificador, EVENTO_NOVO, {
            "pedidoId": pedido.id,
            "valorTotal": float(pedido.valor_total),
            "status": pedido.status,
            "criadoPorAdmin": por_admin,
        }, usuario_id)
        return pedido

    def criar_do_carrinho(self, usuario_id, endereco_entrega, observacoes=None) -> Pedido:
        validar_endereco(endereco_entrega)
        texto_opcional(observacoes, "observacoes")

        with transacao(self.session, f"criar pedido (carrinho) usuario {usuario_id}"):
            carrinho = (
                self.session.query(Carrinho)
                .filter_by(usuario_id=usuario_id)
                .with_for_update()
                .first()
            )
            itens = []
            if carrinho:
                itens = (
                    self.session.query(ItemCarrinho)
                    .filter_by(carrinho_id=carrinho.id)
                    .options(selectinload(ItemCarrinho.produto))
                    .order_by(ItemCarrinho.id)
                    .all()
                )
            if not itens:
                raise ValidationError("Carrinho vazio ou não encontrado.")

            linhas = []
            for item in itens:
                if item.produto is None or item.produto.preco is None:
                    log.error("Item de carrinho %s com produto inválido ou sem preço", item.id)
                    raise ValidationError(f"Erro ao processar item {item.id}: Produto inválido ou sem preço.")
                linhas.append((item.produto, item.quantidade, item.produto.preco))

            pedido = self._inserir(usuario_id, endereco_entrega, linhas, observacoes)

            self.session.query(ItemCarrinho).filter_by(carrinho_id=carrinho.id).delete(synchronize_session=False)
            pedido_id = pedido.id

        log.info("Pedido %s criado a partir do carrinho do usuário %s", pedido_id, usuario_id)
        return self._apos_criacao(pedido_id, usuario_id, por_admin=False)

    @staticmethod
    def _validar_itens(itens):
        if not isinstance(itens, list) or not itens:
            raise ValidationError("Lista de itens é obrigatória e deve conter pelo menos um item.")
        for i, item in enumerate(itens, start=1):
            if not isinstance(item, dict) or not is_int(item.get("produtoId")) or item["produtoId"] <= 0:
                raise ValidationError(f"Item {i}: ID do produto é obrigatório e deve ser um número inteiro.")
            if not is_int(item.get("quantidade")) or item["quantidade"] <= 0:
                raise ValidationError(f"Item {i}: Quantidade deve ser um número inteiro maior que zero.")

    def criar_direto(self, usuario_id, endereco_entrega, itens, observacoes=None) -> Pedido:
        """Pedido montado por admin/operador a partir de (produtoId, quantidade)."""
        if not is_int(usuario_id) or usuario_id <= 0:
            raise ValidationError("ID do usuário é obrigatório e deve ser um número inteiro.")
        validar_endereco(endereco_entrega)
        self._validar_itens(itens)
        texto_opcional(observacoes, "observacoes")

        with transacao(self.session, f"criar pedido (direto) usuario {usuario_id}"):
            if not self.session.get(Usuario, usuario_id):
                raise NotFoundError("Usuário não encontrado.")

            # agrega por produto para checar estoque contra a quantidade total pedida
            pedido_por_produto = {}
            linhas = []
            for item in itens:
                produto = self.session.get(Produto, item["produtoId"])
                if not produto:
                    raise NotFoundError(f"Produto com ID {item['produtoId']} não encontrado.")
                if produto.preco is None:
                    raise ValidationError(f"Produto {produto.nome} não possui preço definido.")
                pedido_por_produto[produto.id] = pedido_por_produto.get(produto.id, 0) + item["quantidade"]
                linhas.append((produto, item["quantidade"], produto.preco))

            for produto_id, quantidade in pedido_por_produto.items():
                disponivel = self.estoque.disponivel(produto_id)
                if disponivel is not None and disponivel < quantidade:
                    nome = self.session.get(Produto, produto_id).nome
                    raise ValidationError(
                        f"Estoque insuficiente para o produto {nome}. Estoque disponível: {disponivel}"
                    )

            pedido = self._inserir(usuario_id, endereco_entrega, linhas, observacoes)

            for produto_id, quantidade in pedido_por_produto.items():
                if self.estoque.disponivel(produto_id) is not None:
                    self.estoque.baixar(produto_id, quantidade)
            pedido_id = pedido.id

        log.info("Pedido %s criado diretamente para o usuário %s", pedido_id, usuario_id)
        return self._apos_criacao(pedido_id, usuario_id, por_admin=True)

    def templates(self):
        return {tid: {"nome": t["nome"], "descricao": t["descricao"]} for tid, t in TEMPLATES.items()}

    def criar_por_template(self, usuario_id, endereco_entrega, template_id) -> Pedido:
        try:
            template = TEMPLATES.get(int(template_id)) if template_id is not None else None
        except (TypeError, ValueError):
            template = None
        if not template:
            disponiveis = ", ".join(str(t) for t in TEMPLATES)
            raise ValidationError(f"Template inválido. Templates disponíveis: {disponiveis}")

        return self.criar_direto(
            usuario_id,
            endereco_entrega,
            [dict(i) for i in template["itens"]],
            observacoes=f"Pedido criado usando template: {template['nome']}",
        )

    def duplicar(self, pedido_id, usuario_id=None, endereco_entrega=None) -> Pedido:
        original = self._get(pedido_id, com_itens=True)
        itens = [{"produtoId": i.produto_id, "quantidade": i.quantidade} for i in original.itens]
        return self.criar_direto(
            usuario_id or original.usuario_id,
            endereco_entrega or original.endereco_entrega,
            itens,
            observacoes=f"Pedido duplicado do pedido #{original.id}",
        )

    # ---- ciclo de status ---------------------------------------------------
    def _notificar_status(self, pedido):
        emitir_seguro(self.notificador, EVENTO_STATUS,
                      {"pedidoId": pedido.id, "status": pedido.status}, pedido.usuario_id)

    def _aplicar_status(self, pedido, novo):
        pedido.status = novo
        if novo == "entregue":
            self.vendas.registrar_pedido(pedido)

    def atualizar_status(self, pedido_id, status) -> Pedido:
        """Transição por operador/admin respeitando a máquina de estados."""
        if not status or status not in STATUS_PEDIDO:
            raise ValidationError("Status inválido.")

        mudou = False
        with transacao(self.session, f"atualizar status pedido {pedido_id}"):
            pedido = self._get(pedido_id)
            if pedido.status != status:
                if not pode_transitar(pedido.status, status):
                    raise ValidationError(f"Transição de '{pedido.status}' para '{status}' não permitida.")
                self._aplicar_status(pedido, status)
                mudou = True

        if mudou:
            log.info("Pedido %s -> %s", pedido_id, status)
            self._notificar_status(pedido)
        return self._get(pedido_id, com_itens=True)

    def cancelar(self, pedido_id, solicitante) -> Pedido:
        """Autoatendimento: dono (ou admin) cancela enquanto pendente."""
        with transacao(self.session, f"cancelar pedido {pedido_id}"):
            pedido = self._get(pedido_id)
            if pedido.usuario_id != solicitante.id and solicitante.role != "admin":
                raise ForbiddenError("Acesso negado. Apenas o dono do pedido pode cancelá-lo.")
            if pedido.status != "pendente":
                raise ValidationError("Apenas pedidos pendentes podem ser cancelados.")
            pedido.status = "cancelado"

        log.info("Pedido %s cancelado pelo usuário %s", pedido_id, solicitante.id)
        self._notificar_status(pedido)
        return self._get(pedido_id, com_itens=True)

    def editar(self, pedido_id, endereco_entrega=None, status=None) -> Pedido:
        """Edição administrativa: endereço e/ou status, sem máquina de estados."""
        if status and status not in STATUS_PEDIDO:
            raise ValidationError("Status inválido.")
        if endereco_entrega:
            validar_endereco(endereco_entrega)

        mudou_status = False
        with transacao(self.session, f"editar pedido {pedido_id}"):
            pedido = self._get(pedido_id)
            if endereco_entrega:
                pedido.endereco_entrega = endereco_entrega
            if status and status != pedido.status:
                self._aplicar_status(pedido, status)
                mudou_status = True

        if mudou_status:
            self._notificar_status(pedido)
        return self._get(pedido_id, com_itens=True)

    def remover(self, pedido_id) -> None:
        with transacao(self.session, f"remover pedido {pedido_id}"):
            pedido = self._get(pedido_id)
            usuario_id = pedido.usuario_id
            self.session.query(ItemPedido).filter_by(pedido_id=pedido_id).delete(synchronize_session=False)
            self.session.delete(pedido)

        log.info("Pedido %s removido", pedido_id)
        emitir_seguro(self.notificador, EVENTO_DELETADO, {"pedidoId": pedido_id}, usuario_id)
