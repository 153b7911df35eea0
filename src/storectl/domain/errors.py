"""Typed failure conditions raised by the domain and the transaction engine.

Every failure carries ``(kind, action, reason)``:

- ``kind``: an :class:`ErrorKind` member, stable and machine-readable.
- ``action``: the operation that failed (e.g. ``"add_shelf"``).
- ``reason``: a human-readable description (e.g. ``"Shelf Already Exists"``).

INVARIANT: StoreError never escapes the service layer. Services convert it
into a failed ServiceResult; the command interpreter converts failed results
into CommandException records.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Error taxonomy shared by the engine, the interpreter, and the CLI."""

    DUPLICATE_ENTITY = "DUPLICATE_ENTITY"
    NOT_FOUND = "NOT_FOUND"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    TEMPERATURE_MISMATCH = "TEMPERATURE_MISMATCH"
    GUEST_NOT_ALLOWED = "GUEST_NOT_ALLOWED"
    AISLE_NOT_FOUND = "AISLE_NOT_FOUND"
    CUSTOMER_NOT_NEAR_PRODUCT = "CUSTOMER_NOT_NEAR_PRODUCT"
    AMBIGUOUS_PRODUCT_LOCATION = "AMBIGUOUS_PRODUCT_LOCATION"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    REMOVE_EXCEEDS_HELD = "REMOVE_EXCEEDS_HELD"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    BASKET_NOT_ASSIGNED = "BASKET_NOT_ASSIGNED"
    BASKET_UNAVAILABLE = "BASKET_UNAVAILABLE"
    CUSTOMER_NOT_IN_STORE = "CUSTOMER_NOT_IN_STORE"
    PRODUCT_IN_USE = "PRODUCT_IN_USE"
    STOCK_IN_BASKET = "STOCK_IN_BASKET"
    INVALID_DEVICE = "INVALID_DEVICE"


class StoreError(Exception):
    """A domain or engine operation refused to run."""

    def __init__(self, kind: ErrorKind, action: str, reason: str) -> None:
        super().__init__(f"{action}: {reason}")
        self.kind = kind
        self.action = action
        self.reason = reason


def duplicate(action: str, reason: str) -> StoreError:
    return StoreError(ErrorKind.DUPLICATE_ENTITY, action, reason)


def not_found(action: str, entity: str) -> StoreError:
    """Build the NOT_FOUND error for a missing *entity* (``"Store"``, ``"Aisle"``...)."""
    return StoreError(ErrorKind.NOT_FOUND, action, f"{entity} Does Not Exist")


class CommandException(Exception):
    """A command-script line that could not be applied.

    Recorded by the interpreter instead of being raised to the caller, so a
    single bad line never aborts a run.
    """

    def __init__(
        self,
        command: str,
        reason: str,
        line_number: int = 0,
        *,
        code: str = "MALFORMED_COMMAND",
    ) -> None:
        super().__init__(f"line {line_number}: {command}: {reason}")
        self.command = command
        self.reason = reason
        self.line_number = line_number
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line_number,
            "command": self.command,
            "code": self.code,
            "reason": self.reason,
        }
