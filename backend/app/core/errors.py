from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorType:
    code: str
    status_code: int
    message: str


class ErrorTypes:
    UNAUTHORIZED = ErrorType("UNAUTHORIZED", 401, "Você precisa estar logado para acessar este recurso")
    INVALID_CREDENTIALS = ErrorType("INVALID_CREDENTIALS", 401, "E-mail ou senha inválidos")
    SESSION_EXPIRED = ErrorType("SESSION_EXPIRED", 401, "Sua sessão expirou. Faça login novamente")
    FORBIDDEN = ErrorType("FORBIDDEN", 403, "Você não tem permissão para acessar este recurso")
    SUBSCRIPTION_REQUIRED = ErrorType(
        "SUBSCRIPTION_REQUIRED", 403, "Este recurso requer uma assinatura ativa"
    )
    VALIDATION_ERROR = ErrorType("VALIDATION_ERROR", 400, "Dados inválidos")
    MISSING_FIELDS = ErrorType("MISSING_FIELDS", 400, "Campos obrigatórios não preenchidos")
    INVALID_FORMAT = ErrorType("INVALID_FORMAT", 400, "Formato inválido")
    NOT_FOUND = ErrorType("NOT_FOUND", 404, "Recurso não encontrado")
    ALREADY_EXISTS = ErrorType("ALREADY_EXISTS", 409, "Este registro já existe")
    INTERNAL_ERROR = ErrorType("INTERNAL_ERROR", 500, "Erro interno do servidor")
    DATABASE_ERROR = ErrorType("DATABASE_ERROR", 500, "Erro ao acessar o banco de dados")
    EXTERNAL_SERVICE_ERROR = ErrorType(
        "EXTERNAL_SERVICE_ERROR", 502, "Erro ao comunicar com serviço externo"
    )
    TOO_MANY_REQUESTS = ErrorType(
        "TOO_MANY_REQUESTS", 429, "Muitas requisições. Tente novamente em alguns instantes"
    )


class ApiError(Exception):
    """Error carrying an HTTP status, a machine code and a user-facing message."""

    def __init__(
        self,
        error_type: ErrorType = ErrorTypes.INTERNAL_ERROR,
        message: str | None = None,
        *,
        details: Any = None,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or error_type.message
        self.code = code or error_type.code
        self.status_code = status_code or error_type.status_code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class AuthorizationError(ApiError):
    def __init__(self, message: str, status_code: int = 403, code: str = "FORBIDDEN") -> None:
        super().__init__(ErrorTypes.FORBIDDEN, message, code=code, status_code=status_code)


class NotFoundError(ApiError):
    def __init__(self, message: str | None = None) -> None:
        super().__init__(ErrorTypes.NOT_FOUND, message)


class SubscriptionRequiredError(ApiError):
    def __init__(self, message: str | None = None, *, code: str | None = None, details: Any = None) -> None:
        super().__init__(ErrorTypes.SUBSCRIPTION_REQUIRED, message, code=code, details=details)


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]
