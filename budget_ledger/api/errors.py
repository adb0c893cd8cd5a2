"""Map ledger failures to HTTP responses"""

import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from budget_ledger.api.dependencies import get_request_id
from budget_ledger.domain.exceptions import (
    CreditLimitExceededError,
    DomainException,
    DuplicateError,
    InstallmentNotActiveError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidInstallmentCountError,
    InvalidTransactionError,
    NotFoundError,
    SameWalletError,
    WalletInUseError,
)
from budget_ledger.infrastructure.observability.metrics import record_failure, record_rejection

STATUS_CODES = {
    InsufficientFundsError: 409,
    CreditLimitExceededError: 409,
    InvalidAmountError: 400,
    InvalidInstallmentCountError: 400,
    NotFoundError: 404,
    SameWalletError: 400,
    InstallmentNotActiveError: 409,
    WalletInUseError: 409,
    DuplicateError: 409,
    InvalidTransactionError: 400,
}


def _operation(request: Request) -> str:
    return getattr(request.state, "operation", request.url.path)


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Request refused by a ledger rule; nothing was committed"""
    record_rejection(_operation(request), exc.code)
    logging.warning(
        f"Ledger rule rejected request: {exc}",
        extra={"request_id": get_request_id(request), "error_code": exc.code},
    )
    return JSONResponse(
        status_code=STATUS_CODES.get(type(exc), 400),
        content={"error": exc.code, "detail": str(exc)},
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database failure; distinct from invalid requests so callers can retry later"""
    record_failure(_operation(request))
    logging.error(f"Storage error: {exc}", extra={"request_id": get_request_id(request)})
    return JSONResponse(
        status_code=503,
        content={"error": "storage_unavailable", "detail": "Ledger storage unavailable"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(SQLAlchemyError, storage_exception_handler)
