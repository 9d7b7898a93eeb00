"""Operation-scoped context helpers."""

from __future__ import annotations

from contextvars import ContextVar, Token
from uuid import uuid4

_operation_id_ctx_var: ContextVar[str] = ContextVar("operation_id", default="-")


def get_operation_id() -> str:
    """Return the operation identifier for the current execution context."""

    return _operation_id_ctx_var.get()


def bind_operation_id(operation_id: str | None = None) -> Token[str]:
    """Bind an operation identifier (a fresh one when omitted) to the current context."""

    return _operation_id_ctx_var.set(operation_id or uuid4().hex)


def reset_operation_id(token: Token[str]) -> None:
    """Reset the operation identifier using the provided context token."""

    _operation_id_ctx_var.reset(token)


def clear_operation_id() -> None:
    """Explicitly clear any operation identifier from the current context."""

    _operation_id_ctx_var.set("-")


__all__ = [
    "bind_operation_id",
    "clear_operation_id",
    "get_operation_id",
    "reset_operation_id",
]
