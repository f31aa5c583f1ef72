# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .asyncio_utils import drain_detached, spawn_detached

__all__ = ["drain_detached", "spawn_detached"]
