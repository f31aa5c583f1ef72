# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .bot_api import BotApi, inline_button_markup
from .notifier import TelegramBotNotifier, escape_markdown
from .pyrogram_session import PyrogramAccountSession, connect_session

__all__ = [
    "BotApi",
    "PyrogramAccountSession",
    "TelegramBotNotifier",
    "connect_session",
    "escape_markdown",
    "inline_button_markup",
]
