# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations


class DomainError(Exception):
    """Catalog or purchase rule broken by a value built in this process."""


class InvariantViolationError(DomainError):
    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    def __str__(self) -> str:
        message = super().__str__()
        return f"{self.field}: {message}" if self.field else message


InvariantViolation = InvariantViolationError
