# utils/errors.py
"""
Erros de domínio
-------------------------------------------------------------------------------
Os serviços levantam estas exceções; o handler registrado em app.py converte
qualquer AppError no payload padronizado da API:

    {"success": False, "error": "<mensagem>"}  + status HTTP

Mapa:
    ValidationError -> 400   entrada ausente/malformada/fora de faixa
    NotFoundError   -> 404   entidade referenciada não existe
    ForbiddenError  -> 403   papel/dono não confere
    ConflictError   -> 409   violação de unicidade (ex.: email duplicado)
    InternalError   -> 500   falha inesperada de persistência/execução
-------------------------------------------------------------------------------
"""


class AppError(Exception):
    status = 500

    def __init__(self, message, status=None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self):
        return {"success": False, "error": self.message}


class ValidationError(AppError):
    status = 400


class NotFoundError(AppError):
    status = 404


class ForbiddenError(AppError):
    status = 403


class ConflictError(AppError):
    status = 409


class InternalError(AppError):
    status = 500

    def __init__(self, message="Erro interno do servidor.", status=None):
        super().__init__(message, status)
