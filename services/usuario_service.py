"""Usuario Service
------------------------------------------------------------------------------
Cadastro, autenticação e gestão de contas.

Regras de papel:
- Cadastro público sempre cria `cliente`; só admin escolhe outro papel.
- Leitura/edição/troca de senha: o próprio usuário ou admin.
- Apenas admin altera `role`.

Atualização parcial: somente as chaves presentes no corpo são aplicadas, e
uma chave presente substitui o valor atual mesmo quando "falsy"
(ex.: telefone "" limpa o campo). Campos obrigatórios (nome, email) não
podem ser esvaziados.
------------------------------------------------------------------------------
"""

import logging

from sqlalchemy import or_

from database.models import Usuario, ROLES
from database.transacao import transacao
from utils.errors import ValidationError, NotFoundError, ForbiddenError, ConflictError, AppError
from utils.security import hash_password, verify_password, create_access_token
from utils.validators import texto_opcional, validar_email, validar_senha, validar_telefone

log = logging.getLogger(__name__)

EMAIL_DUPLICADO = "Email já cadastrado."


def _exigir_dono_ou_admin(user_id, solicitante, msg="Acesso negado."):
    if solicitante.role != "admin" and solicitante.id != user_id:
        raise ForbiddenError(msg)


class UsuarioService:
    def __init__(self, session):
        self.session = session

    def _get(self, user_id) -> Usuario:
        user = self.session.get(Usuario, user_id)
        if not user:
            raise NotFoundError("Usuário não encontrado.")
        return user

    def registrar(self, nome, email, senha, telefone=None, role=None, por_admin=False) -> Usuario:
        """Cria usuário.

        Respostas (via exceção):
          400: campos obrigatórios ausentes / senha curta / telefone / role inválida.
          409: email já cadastrado.
        """
        nome = (texto_opcional(nome, "nome") or "").strip()
        if not nome or not email or not senha:
            raise ValidationError("nome, email e senha são obrigatórios.")
        email = validar_email(email)
        validar_senha(senha)
        telefone = validar_telefone(telefone)

        role = role or "cliente"
        if role not in ROLES:
            raise ValidationError("Papel inválido.")
        if role != "cliente" and not por_admin:
            raise ForbiddenError("Apenas administradores podem definir o papel do usuário.")

        if self.session.query(Usuario.id).filter_by(email=email).first():
            raise ConflictError(EMAIL_DUPLICADO)

        # hash fora do commit para capturar erros aqui (ex.: lib ausente)
        pwd_hash = hash_password(senha)

        with transacao(self.session, "registrar usuario", conflito=EMAIL_DUPLICADO):
            user = Usuario(nome=nome, email=email, password_hash=pwd_hash, telefone=telefone, role=role)
            self.session.add(user)
            # flush revela IntegrityError antes do commit
            self.session.flush()

        log.info("Usuário %s cadastrado (role=%s)", user.id, user.role)
        return user

    def autenticar(self, email, senha):
        """Retorna (token, usuario); credenciais inválidas -> 401."""
        email = (texto_opcional(email, "email") or "").strip().lower()
        texto_opcional(senha, "senha")
        if not email or not senha:
            raise ValidationError("email e senha são obrigatórios.")

        user = self.session.query(Usuario).filter_by(email=email).first()
        if not user or not verify_password(senha, user.password_hash):
            raise AppError("Credenciais inválidas.", 401)

        return create_access_token(user.id, role=user.role), user

    def listar(self):
        return self.session.query(Usuario).order_by(Usuario.id).all()

    def buscar(self, termo):
        termo = (termo or "").strip()
        if len(termo) < 3:
            raise ValidationError("Termo de busca deve ter pelo menos 3 caracteres.")
        like = f"%{termo}%"
        return (
            self.session.query(Usuario)
            .filter(or_(Usuario.nome.ilike(like), Usuario.email.ilike(like)))
            .order_by(Usuario.nome)
            .limit(10)
            .all()
        )

    def obter(self, user_id, solicitante) -> Usuario:
        _exigir_dono_ou_admin(user_id, solicitante)
        return self._get(user_id)

    def atualizar(self, user_id, dados: dict, solicitante) -> Usuario:
        _exigir_dono_ou_admin(user_id, solicitante)
        eh_admin = solicitante.role == "admin"

        if not eh_admin and "role" in dados and dados["role"] != solicitante.role:
            raise ForbiddenError("Você não tem permissão para alterar o papel do usuário.")

        user = self._get(user_id)

        with transacao(self.session, f"atualizar usuario {user_id}", conflito="Email já está em uso."):
            if "nome" in dados:
                nome = (texto_opcional(dados["nome"], "nome") or "").strip()
                if not nome:
                    raise ValidationError("nome não pode ser vazio.")
                user.nome = nome
            if "email" in dados:
                user.email = validar_email(dados["email"])
            if "telefone" in dados:
                user.telefone = validar_telefone(dados["telefone"])
            if eh_admin and "role" in dados:
                if dados["role"] not in ROLES:
                    raise ValidationError("Papel inválido.")
                user.role = dados["role"]
            if dados.get("senha"):
                user.password_hash = hash_password(validar_senha(dados["senha"]))
            self.session.flush()
        return user

    def redefinir_senha(self, user_id, nova_senha, solicitante) -> Usuario:
        validar_senha(nova_senha)
        _exigir_dono_ou_admin(user_id, solicitante, "Acesso negado. Você só pode alterar sua própria senha.")
        user = self._get(user_id)
        with transacao(self.session, f"redefinir senha {user_id}"):
            user.password_hash = hash_password(nova_senha)
        return user

    def remover(self, user_id) -> None:
        user = self._get(user_id)
        with transacao(self.session, f"remover usuario {user_id}"):
            self.session.delete(user)
        log.info("Usuário %s removido", user_id)
