"""Notificação em tempo real
------------------------------------------------------------------------------
Canal "melhor esforço" para avisar o cliente sobre pedidos:

- `Notificador`: interface injetada nos serviços (`emitir(evento, dados, usuario_id)`).
- `NotificadorNulo`: padrão quando não há transporte (testes, jobs, CLI).
- `NotificadorSocketIO`: publica na sala `user_<id>` de um `socketio.Server`.

Nenhuma emissão faz parte da garantia transacional: falhas são logadas em
WARNING e descartadas, nunca propagadas para a requisição.

Eventos emitidos pelo fluxo de pedidos:
- novo_pedido_criado        {pedidoId, valorTotal, status, criadoPorAdmin}
- status_pedido_atualizado  {pedidoId, status}
- pedido_deletado           {pedidoId}
------------------------------------------------------------------------------
"""

import logging

import socketio
from socketio.exceptions import ConnectionRefusedError

from utils.security import decode_token

log = logging.getLogger(__name__)


def sala_usuario(usuario_id) -> str:
    return f"user_{usuario_id}"


class Notificador:
    """Interface de publicação de eventos por usuário."""

    def emitir(self, evento: str, dados: dict, usuario_id: int) -> None:
        raise NotImplementedError


class NotificadorNulo(Notificador):
    def emitir(self, evento, dados, usuario_id):
        return None


class NotificadorSocketIO(Notificador):
    """Publica eventos via Socket.IO na sala do usuário."""

    def __init__(self, sio: socketio.Server):
        self.sio = sio

    def emitir(self, evento, dados, usuario_id):
        try:
            self.sio.emit(evento, dados, room=sala_usuario(usuario_id))
        except Exception:
            log.warning("Falha ao emitir '%s' para usuario %s", evento, usuario_id, exc_info=True)


def emitir_seguro(notificador: Notificador, evento: str, dados: dict, usuario_id: int) -> None:
    """Emite sem nunca levantar: o chamador já confirmou a transação."""
    try:
        notificador.emitir(evento, dados, usuario_id)
    except Exception:
        log.warning("Notificação '%s' descartada (usuario %s)", evento, usuario_id, exc_info=True)


def criar_servidor_socketio(cors_origins, secret_key: str) -> socketio.Server:
    """Cria o servidor Socket.IO (modo threading, montado via socketio.WSGIApp).

    O cliente conecta com `auth={"token": "<jwt>"}`; o token é validado e a
    sessão entra na sala do próprio usuário. Sem token válido a conexão é
    recusada.
    """
    sio = socketio.Server(
        async_mode="threading",
        cors_allowed_origins=cors_origins,
        logger=False,
        engineio_logger=False,
    )

    @sio.event
    def connect(sid, environ, auth=None):
        token = (auth or {}).get("token") if isinstance(auth, dict) else None
        if not token:
            raise ConnectionRefusedError("Token ausente.")
        try:
            payload = decode_token(token, secret=secret_key)
            usuario_id = int(payload.get("sub"))
        except (ValueError, TypeError) as e:
            raise ConnectionRefusedError(str(e) or "Token inválido.")

        sio.enter_room(sid, sala_usuario(usuario_id))
        sio.save_session(sid, {"usuario_id": usuario_id})
        log.info("Socket %s conectado (usuario %s)", sid, usuario_id)

    @sio.event
    def disconnect(sid, *args):
        log.info("Socket %s desconectado", sid)

    return sio
