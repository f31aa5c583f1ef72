# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .sqlalchemy import (
    SqlAlchemyPeerRepository,
    SqlAlchemyRecipientRepository,
    SqlAlchemySessionRepository,
)

__all__ = [
    "SqlAlchemyPeerRepository",
    "SqlAlchemyRecipientRepository",
    "SqlAlchemySessionRepository",
]
