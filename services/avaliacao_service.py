"""Avaliacao Service
------------------------------------------------------------------------------
Avaliações (nota 1..5 + comentário). A nota é validada antes de qualquer
escrita. Não há unicidade por (usuário, produto): cada chamada cria uma linha.
------------------------------------------------------------------------------
"""

import logging

from sqlalchemy import func

from database.models import Avaliacao, Produto
from database.transacao import transacao
from utils.errors import ValidationError, NotFoundError, ForbiddenError
from utils.validators import is_int, texto_opcional, validar_nota

log = logging.getLogger(__name__)


class AvaliacaoService:
    def __init__(self, session):
        self.session = session

    def _get(self, avaliacao_id) -> Avaliacao:
        avaliacao = self.session.get(Avaliacao, avaliacao_id)
        if not avaliacao:
            raise NotFoundError("Avaliação não encontrada.")
        return avaliacao

    def criar(self, usuario_id, produto_id, nota, comentario=None) -> Avaliacao:
        if not is_int(produto_id):
            raise ValidationError("ID do produto e nota válida (1-5) são obrigatórios.")
        nota = validar_nota(nota)
        comentario = texto_opcional(comentario, "comentario")

        if not self.session.get(Produto, produto_id):
            raise NotFoundError("Produto não encontrado.")

        with transacao(self.session, "criar avaliacao"):
            avaliacao = Avaliacao(usuario_id=usuario_id, produto_id=produto_id, nota=nota, comentario=comentario)
            self.session.add(avaliacao)
            self.session.flush()
        return avaliacao

    def listar(self):
        return self.session.query(Avaliacao).order_by(Avaliacao.created_at.desc(), Avaliacao.id.desc()).all()

    def por_produto(self, produto_id):
        return (
            self.session.query(Avaliacao)
            .filter_by(produto_id=produto_id)
            .order_by(Avaliacao.created_at.desc(), Avaliacao.id.desc())
            .all()
        )

    def por_usuario(self, usuario_id, solicitante):
        if solicitante.role != "admin" and solicitante.id != usuario_id:
            raise ForbiddenError("Acesso negado.")
        return (
            self.session.query(Avaliacao)
            .filter_by(usuario_id=usuario_id)
            .order_by(Avaliacao.created_at.desc(), Avaliacao.id.desc())
            .all()
        )

    def atualizar(self, avaliacao_id, nota, comentario, solicitante) -> Avaliacao:
        nota = validar_nota(nota)
        comentario = texto_opcional(comentario, "comentario")
        avaliacao = self._get(avaliacao_id)
        if avaliacao.usuario_id != solicitante.id:
            raise ForbiddenError("Acesso negado. Você só pode editar suas próprias avaliações.")

        with transacao(self.session, f"atualizar avaliacao {avaliacao_id}"):
            avaliacao.nota = nota
            if comentario is not None:
                avaliacao.comentario = comentario
        return avaliacao

    def remover(self, avaliacao_id, solicitante) -> None:
        avaliacao = self._get(avaliacao_id)
        if avaliacao.usuario_id != solicitante.id and solicitante.role != "admin":
            raise ForbiddenError("Acesso negado.")
        with transacao(self.session, f"remover avaliacao {avaliacao_id}"):
            self.session.delete(avaliacao)

    def distribuicao_notas(self):
        linhas = (
            self.session.query(Avaliacao.nota, func.count(Avaliacao.id))
            .group_by(Avaliacao.nota)
            .order_by(Avaliacao.nota.desc())
            .all()
        )
        return [{"nota": nota, "quantidade": int(qtd)} for nota, qtd in linhas]

    def media(self):
        valor = self.session.query(func.avg(Avaliacao.nota)).scalar()
        return round(float(valor), 2) if valor is not None else None
