# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .update_listener import ADDED_REPLY, REJECTED_REPLY, BotUpdateListener

__all__ = ["ADDED_REPLY", "REJECTED_REPLY", "BotUpdateListener"]
