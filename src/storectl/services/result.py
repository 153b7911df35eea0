"""ServiceResult and ServiceError — what every service method returns.

INVARIANT: All service-layer methods return ServiceResult; a refused
operation is ``ok=False`` with an error, never an exception.
The CLI and the command interpreter consume this type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from storectl.domain.errors import StoreError


class ServiceError(BaseModel):
    """Why an operation was refused.

    ``code`` is an ErrorKind value (or an interpreter/script code),
    ``action`` names the domain operation that refused to run, and
    ``message`` is the human-readable reason.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    action: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_store_error(cls, exc: StoreError) -> ServiceError:
        return cls(code=str(exc.kind), action=exc.action, message=exc.reason)


class ServiceResult(BaseModel):
    """Outcome of one service operation.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"add_basket_item"``).
        data: Operation-specific payload (on failure, any partial report).
        warnings: Non-fatal issues, such as plugin hooks that raised.
        error: Set exactly when ``ok`` is False.
        meta: Timing from ``@traced`` in verbose mode.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        data: dict[str, Any] | None = None,
        detail: dict[str, Any] | None = None,
    ) -> ServiceResult:
        """A failed result carrying *code* and *message*."""
        return cls(
            ok=False,
            op=op,
            data=data or {},
            error=ServiceError(code=code, message=message, detail=detail or {}),
        )

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None
