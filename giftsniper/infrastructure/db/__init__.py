# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .models import CachedPeer, RecipientChat, SessionRecord
from .session import Base, Database

__all__ = ["Base", "CachedPeer", "Database", "RecipientChat", "SessionRecord"]
