# database/models.py
"""
Modelos de banco de dados (SQLAlchemy)
-------------------------------------------------------------------------------
Entidades persistentes da loja:

- Usuario: conta autenticável com papel (cliente, operador, admin).
- Produto: item do catálogo.
- Carrinho / ItemCarrinho: área de preparação do pedido (um carrinho por usuário).
- Pedido / ItemPedido: compra confirmada, com preço congelado por item.
- Avaliacao: nota 1..5 de um usuário para um produto.
- ProdutoEmEstoque: quantidade em mãos de um produto numa localização.
- ProdutoVendido: retrato desnormalizado de uma linha vendida (relatórios).

Boas práticas/documentação:
- Utilize `to_dict()` / `to_public_dict()` para serializar sem expor
  dados sensíveis (ex.: password_hash).
- Valores monetários são Numeric(10, 2) no banco e float no JSON.
-------------------------------------------------------------------------------
"""

from sqlalchemy.sql import func
from sqlalchemy import text

from database import db

ROLES = ("cliente", "operador", "admin")

STATUS_PEDIDO = ("pendente", "processando", "enviado", "entregue", "cancelado")


def _iso(dt):
    return dt.isoformat() if dt else None


def _money(value):
    return float(value) if value is not None else None


class Usuario(db.Model):
    """Usuário autenticável da aplicação.

    Campos principais:
        - id, nome, email, password_hash, role
    Opcionais:
        - telefone (11 dígitos)
    Metadados:
        - created_at, updated_at (mantidos pelo DB via func.now()).

    Relacionamentos:
        - carrinho: no máximo um (usuario_id único em Carrinho).
        - pedidos, avaliacoes.
    """
    __tablename__ = "usuario"

    id            = db.Column(db.Integer, primary_key=True)
    nome          = db.Column(db.String(80),  nullable=False)
    email         = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role          = db.Column(db.String(20),  nullable=False, server_default="cliente", default="cliente")

    # opcionais
    telefone = db.Column(db.String(20), nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    carrinho = db.relationship(
        "Carrinho",
        back_populates="usuario",
        uselist=False,
        cascade="all, delete-orphan",
    )
    pedidos = db.relationship(
        "Pedido",
        back_populates="usuario",
        lazy=True,
        cascade="all, delete-orphan",
    )
    avaliacoes = db.relationship(
        "Avaliacao",
        back_populates="usuario",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_public_dict(self):
        """Serialização segura para respostas públicas (sem password_hash)."""
        return {
            "id": self.id,
            "nome": self.nome,
            "email": self.email,
            "telefone": self.telefone,
            "role": self.role,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_resumo(self):
        return {"id": self.id, "nome": self.nome, "email": self.email, "telefone": self.telefone}


class Produto(db.Model):
    """Produto do catálogo.

    Observações:
        - `preco` é anulável no banco; a criação via API exige preço, mas
          linhas antigas/importadas podem não ter. O fluxo de pedido recusa
          produtos sem preço.
    """
    __tablename__ = "produto"

    id         = db.Column(db.Integer, primary_key=True)
    nome       = db.Column(db.String(255), nullable=False)
    descricao  = db.Column(db.Text, nullable=True)
    preco      = db.Column(db.Numeric(10, 2), nullable=True)
    imagem_url = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    estoques = db.relationship(
        "ProdutoEmEstoque",
        back_populates="produto",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ProdutoEmEstoque.id",
    )
    avaliacoes = db.relationship(
        "Avaliacao",
        back_populates="produto",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        """Serialização para respostas de API (campos utilizados no frontend)."""
        return {
            "id": self.id,
            "nome": self.nome,
            "descricao": self.descricao,
            "preco": _money(self.preco),
            "imagemUrl": self.imagem_url,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def to_resumo(self):
        return {
            "id": self.id,
            "nome": self.nome,
            "preco": _money(self.preco),
            "imagemUrl": self.imagem_url,
        }


class Carrinho(db.Model):
    """Carrinho do usuário (exatamente um por usuário, criado sob demanda)."""
    __tablename__ = "carrinho"

    id         = db.Column(db.Integer, primary_key=True)
    usuario_id = db.Column(
        db.Integer,
        db.ForeignKey("usuario.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    usuario = db.relationship("Usuario", back_populates="carrinho")
    itens = db.relationship(
        "ItemCarrinho",
        back_populates="carrinho",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ItemCarrinho.id",
    )

    def to_dict(self):
        itens = [i.to_dict() for i in self.itens]
        total = sum(i["quantidade"] * i["precoUnitario"] for i in itens)
        return {
            "id": self.id,
            "usuarioId": self.usuario_id,
            "itens": itens,
            "total": round(total, 2),
        }


class ItemCarrinho(db.Model):
    """Linha do carrinho.

    - A constraint única (_carrinho_produto_uc) impede a mesma linha de produto
      duas vezes no mesmo carrinho; adicionar de novo soma a quantidade.
    - `preco_unitario` guarda o preço do produto no momento da inclusão.
    """
    __tablename__ = "item_carrinho"

    id             = db.Column(db.Integer, primary_key=True)
    carrinho_id    = db.Column(db.Integer, db.ForeignKey("carrinho.id", ondelete="CASCADE"), nullable=False)
    produto_id     = db.Column(db.Integer, db.ForeignKey("produto.id", ondelete="CASCADE"), nullable=False)
    quantidade     = db.Column(db.Integer, nullable=False, server_default=text("1"))
    preco_unitario = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    carrinho = db.relationship("Carrinho", back_populates="itens")
    produto = db.relationship("Produto")

    __table_args__ = (
        db.UniqueConstraint("carrinho_id", "produto_id", name="_carrinho_produto_uc"),
        db.CheckConstraint("quantidade >= 1", name="ck_item_carrinho_quantidade"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "produtoId": self.produto_id,
            "quantidade": self.quantidade,
            "precoUnitario": _money(self.preco_unitario),
            "produto": self.produto.to_resumo() if self.produto else None,
        }


class Pedido(db.Model):
    """Pedido confirmado.

    - `valor_total` é calculado no servidor a partir das linhas na criação e
      nunca recalculado depois.
    - `endereco_entrega` é um objeto JSON (retrato do endereço no pedido).
    """
    __tablename__ = "pedido"

    id               = db.Column(db.Integer, primary_key=True)
    usuario_id       = db.Column(db.Integer, db.ForeignKey("usuario.id"), nullable=False, index=True)
    valor_total      = db.Column(db.Numeric(10, 2), nullable=False)
    status           = db.Column(db.String(20), nullable=False, server_default="pendente", default="pendente")
    endereco_entrega = db.Column(db.JSON, nullable=False)
    data_pedido      = db.Column(db.DateTime, server_default=func.now())
    observacoes      = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    usuario = db.relationship("Usuario", back_populates="pedidos")
    itens = db.relationship(
        "ItemPedido",
        back_populates="pedido",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="ItemPedido.id",
    )

    def to_dict(self, incluir_usuario=False):
        data = {
            "id": self.id,
            "usuarioId": self.usuario_id,
            "valorTotal": _money(self.valor_total),
            "status": self.status,
            "enderecoEntrega": self.endereco_entrega,
            "dataPedido": _iso(self.data_pedido),
            "observacoes": self.observacoes,
            "itens": [i.to_dict() for i in self.itens],
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if incluir_usuario and self.usuario is not None:
            data["usuario"] = self.usuario.to_resumo()
        return data


class ItemPedido(db.Model):
    """Linha do pedido com preço unitário congelado no momento da compra."""
    __tablename__ = "item_pedido"

    id             = db.Column(db.Integer, primary_key=True)
    pedido_id      = db.Column(db.Integer, db.ForeignKey("pedido.id", ondelete="CASCADE"), nullable=False, index=True)
    produto_id     = db.Column(db.Integer, db.ForeignKey("produto.id", ondelete="CASCADE"), nullable=False)
    quantidade     = db.Column(db.Integer, nullable=False)
    preco_unitario = db.Column(db.Numeric(10, 2), nullable=False)

    created_at = db.Column(db.DateTime, server_default=func.now())

    pedido = db.relationship("Pedido", back_populates="itens")
    produto = db.relationship("Produto")

    __table_args__ = (
        db.CheckConstraint("quantidade >= 1", name="ck_item_pedido_quantidade"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "produtoId": self.produto_id,
            "quantidade": self.quantidade,
            "precoUnitario": _money(self.preco_unitario),
            "produto": self.produto.to_resumo() if self.produto else None,
        }


class Avaliacao(db.Model):
    """Avaliação (nota 1..5) de um produto por um usuário."""
    __tablename__ = "avaliacao"

    id         = db.Column(db.Integer, primary_key=True)
    usuario_id = db.Column(db.Integer, db.ForeignKey("usuario.id", ondelete="CASCADE"), nullable=False, index=True)
    produto_id = db.Column(db.Integer, db.ForeignKey("produto.id", ondelete="CASCADE"), nullable=False, index=True)
    nota       = db.Column(db.Integer, nullable=False)
    comentario = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    usuario = db.relationship("Usuario", back_populates="avaliacoes")
    produto = db.relationship("Produto", back_populates="avaliacoes")

    __table_args__ = (
        db.CheckConstraint("nota >= 1 AND nota <= 5", name="ck_avaliacao_nota"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "usuarioId": self.usuario_id,
            "produtoId": self.produto_id,
            "nota": self.nota,
            "comentario": self.comentario,
            "usuario": {"id": self.usuario.id, "nome": self.usuario.nome} if self.usuario else None,
            "produto": {"id": self.produto.id, "nome": self.produto.nome} if self.produto else None,
            "created_at": _iso(self.created_at),
        }


class ProdutoEmEstoque(db.Model):
    """Quantidade em mãos de um produto numa localização (quantidade >= 0)."""
    __tablename__ = "produto_em_estoque"

    id             = db.Column(db.Integer, primary_key=True)
    produto_id     = db.Column(db.Integer, db.ForeignKey("produto.id", ondelete="CASCADE"), nullable=False, index=True)
    quantidade     = db.Column(db.Integer, nullable=False, server_default=text("0"), default=0)
    localizacao    = db.Column(db.String(100), nullable=True)
    data_reposicao = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now())

    produto = db.relationship("Produto", back_populates="estoques")

    __table_args__ = (
        db.CheckConstraint("quantidade >= 0", name="ck_estoque_quantidade"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "produtoId": self.produto_id,
            "quantidade": self.quantidade,
            "localizacao": self.localizacao,
            "dataReposicao": _iso(self.data_reposicao),
            "produto": self.produto.to_resumo() if self.produto else None,
        }


class ProdutoVendido(db.Model):
    """Retrato desnormalizado de uma linha vendida.

    `pedido_id` não é chave estrangeira: o registro sobrevive à exclusão do
    pedido e do produto para manter o histórico de relatórios estável.
    """
    __tablename__ = "produto_vendido"

    id             = db.Column(db.Integer, primary_key=True)
    produto_id     = db.Column(db.Integer, nullable=False, index=True)
    nome_produto   = db.Column(db.String(255), nullable=False)
    quantidade     = db.Column(db.Integer, nullable=False)
    preco_unitario = db.Column(db.Numeric(10, 2), nullable=False)
    data_venda     = db.Column(db.DateTime, server_default=func.now())
    pedido_id      = db.Column(db.Integer, nullable=True, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())

    __table_args__ = (
        db.CheckConstraint("quantidade >= 1", name="ck_vendido_quantidade"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "produtoId": self.produto_id,
            "nomeProduto": self.nome_produto,
            "quantidade": self.quantidade,
            "precoUnitario": _money(self.preco_unitario),
            "dataVenda": _iso(self.data_venda),
            "pedidoId": self.pedido_id,
        }
