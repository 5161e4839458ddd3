"""Produto Service
------------------------------------------------------------------------------
Catálogo: CRUD, listagem com filtros, busca curta (autocomplete) e cadastro
em massa (lista JSON ou CSV já decodificado em linhas).
------------------------------------------------------------------------------
"""

import csv
import io
import logging

from sqlalchemy import or_

from database.models import Produto
from database.transacao import transacao
from utils.errors import ValidationError, NotFoundError, AppError
from utils.validators import validar_preco

log = logging.getLogger(__name__)

# nomes aceitos na query (camelCase do frontend) -> coluna
_SORT_COLUMNS = {
    "nome": Produto.nome,
    "preco": Produto.preco,
    "created_at": Produto.created_at,
    "createdAt": Produto.created_at,
    "updated_at": Produto.updated_at,
    "updatedAt": Produto.updated_at,
}


def _texto(value):
    return (value or "").strip() if isinstance(value, str) or value is None else str(value).strip()


def _float_ou_none(value, campo):
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{campo} deve ser numérico.")


def ler_csv_produtos(conteudo: str) -> list[dict]:
    """Converte CSV (cabeçalho nome,descricao,preco,imagemUrl) em lista de dicts."""
    leitor = csv.DictReader(io.StringIO(conteudo))
    return [{(k or "").strip(): v for k, v in linha.items()} for linha in leitor]


class ProdutoService:
    def __init__(self, session):
        self.session = session

    def _get(self, produto_id) -> Produto:
        produto = self.session.get(Produto, produto_id)
        if not produto:
            raise NotFoundError("Produto não encontrado.")
        return produto

    def criar(self, dados: dict) -> Produto:
        nome = _texto(dados.get("nome"))
        if not nome:
            raise ValidationError("Nome é obrigatório.")
        preco = validar_preco(dados.get("preco"))

        with transacao(self.session, "criar produto"):
            produto = Produto(
                nome=nome,
                descricao=_texto(dados.get("descricao")) or None,
                preco=preco,
                imagem_url=_texto(dados.get("imagemUrl")) or None,
            )
            self.session.add(produto)
            self.session.flush()
        return produto

    def listar(self, search=None, min_price=None, max_price=None, sort_by="createdAt", order="DESC"):
        """Lista pública com filtros opcionais.

        - search: casa nome OU descrição (LIKE, sem diferenciar caixa)
        - min_price / max_price: faixa inclusiva
        - sort_by fora da lista -> created_at; order fora de ASC/DESC -> DESC
        """
        q = self.session.query(Produto)

        search = _texto(search)
        if search:
            like = f"%{search}%"
            q = q.filter(or_(Produto.nome.ilike(like), Produto.descricao.ilike(like)))

        minimo = _float_ou_none(min_price, "minPrice")
        maximo = _float_ou_none(max_price, "maxPrice")
        if minimo is not None:
            q = q.filter(Produto.preco >= minimo)
        if maximo is not None:
            q = q.filter(Produto.preco <= maximo)

        coluna = _SORT_COLUMNS.get(sort_by or "", Produto.created_at)
        direcao = (order or "").upper()
        if direcao not in ("ASC", "DESC"):
            direcao = "DESC"
        ordem = coluna.asc() if direcao == "ASC" else coluna.desc()

        return q.order_by(ordem, Produto.id).all()

    def obter(self, produto_id) -> Produto:
        return self._get(produto_id)

    def buscar(self, termo):
        termo = _texto(termo)
        if len(termo) < 3:
            raise ValidationError("Termo de busca deve ter pelo menos 3 caracteres.")
        like = f"%{termo}%"
        return (
            self.session.query(Produto)
            .filter(or_(Produto.nome.ilike(like), Produto.descricao.ilike(like)))
            .order_by(Produto.nome)
            .limit(10)
            .all()
        )

    def atualizar(self, produto_id, dados: dict) -> Produto:
        """Aplica apenas as chaves presentes no corpo."""
        produto = self._get(produto_id)
        with transacao(self.session, f"atualizar produto {produto_id}"):
            if "nome" in dados:
                nome = _texto(dados["nome"])
                if not nome:
                    raise ValidationError("Nome é obrigatório.")
                produto.nome = nome
            if "descricao" in dados:
                produto.descricao = _texto(dados["descricao"]) or None
            if "preco" in dados:
                produto.preco = validar_preco(dados["preco"])
            if "imagemUrl" in dados:
                produto.imagem_url = _texto(dados["imagemUrl"]) or None
        return produto

    def remover(self, produto_id) -> None:
        produto = self._get(produto_id)
        with transacao(self.session, f"remover produto {produto_id}"):
            self.session.delete(produto)

    def criar_em_massa(self, produtos) -> dict:
        """Cria produtos linha a linha; falhas individuais não abortam o lote.

        Retorna:
            {"sucessos": [...], "erros": [...], "total": n}
            `linha` = índice + 2 (linha 1 é o cabeçalho do CSV de origem).
        """
        if not produtos or not isinstance(produtos, list):
            raise ValidationError("Lista de produtos é obrigatória e deve conter pelo menos um produto.")

        resultados = {"sucessos": [], "erros": [], "total": len(produtos)}
        for i, dados in enumerate(produtos):
            linha = i + 2
            nome = _texto(dados.get("nome")) if isinstance(dados, dict) else ""
            try:
                if not isinstance(dados, dict):
                    raise ValidationError("Linha inválida.")
                produto = self.criar(dados)
                resultados["sucessos"].append({"linha": linha, "nome": nome, "produto": produto.to_dict()})
            except AppError as e:
                log.info("Cadastro em massa: linha %s rejeitada (%s)", linha, e.message)
                resultados["erros"].append({"linha": linha, "nome": nome or "Nome não informado", "erro": e.message})
        return resultados
