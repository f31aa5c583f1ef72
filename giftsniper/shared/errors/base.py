# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, eq=False)
class AppError(Exception):
    code: str
    context: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        Exception.__init__(self, self.code)

    def __str__(self) -> str:
        if not self.context:
            return self.code
        details = " ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.code} ({details})"


class InfrastructureError(AppError):
    def __init__(
        self,
        code: str = "infrastructure_error",
        *,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(code=code, context=context)


class TransportError(InfrastructureError):
    """Remote procedure call failed at the network or protocol layer."""

    def __init__(self, procedure: str, detail: str) -> None:
        super().__init__("transport_error", context={"procedure": procedure, "detail": detail})

    @property
    def detail(self) -> str:
        return str((self.context or {}).get("detail", ""))


class PersistenceError(InfrastructureError):
    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(
            "persistence_error", context={"operation": operation, "detail": detail}
        )


class NotificationError(InfrastructureError):
    def __init__(self, method: str, detail: str) -> None:
        super().__init__("notification_error", context={"method": method, "detail": detail})


class PriceNotFoundError(AppError):
    def __init__(self, item_id: int) -> None:
        super().__init__(code="price_not_found", context={"item_id": item_id})
        self.item_id = item_id


class UnexpectedNotModifiedError(AppError):
    def __init__(self) -> None:
        super().__init__(code="unexpected_not_modified")


class DestinationResolutionError(AppError):
    def __init__(self, username: str, detail: str) -> None:
        super().__init__(
            code="destination_unresolved", context={"username": username, "detail": detail}
        )


class DuplicateRecipientError(AppError):
    def __init__(self, chat_id: int) -> None:
        super().__init__(code="duplicate_recipient", context={"chat_id": chat_id})
