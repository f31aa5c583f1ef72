# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import re
from typing import Any

SENSITIVE_PATTERNS = [
    # API credentials
    (r"(api[_-]?hash\s*[:=]\s*['\"]?)([a-fA-F0-9]{32})(['\"]?)", r"\1***REDACTED***\3"),
    (r"(encryption[_-]?key\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-=]{20,})(['\"]?)", r"\1***REDACTED***\3"),

    # Bot tokens, also inside Bot API urls
    (r"(bot[_-]?token\s*[:=]\s*['\"]?)([0-9]+:[a-zA-Z0-9_\-]{30,})(['\"]?)", r"\1***REDACTED***\3"),
    (r"(/bot)([0-9]+:[a-zA-Z0-9_\-]{30,})", r"\1***REDACTED***"),

    # Exported pyrogram session strings
    (r"(session(?:[_-]?string)?\s*[:=]\s*['\"]?)([a-zA-Z0-9_\-]{100,}={0,2})(['\"]?)", r"\1***REDACTED***\3"),

    # Login codes and 2FA passwords
    (r"(password\s*[:=]\s*['\"]?)([^'\"\s]{4,})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),
    (r"(phone[_-]?code\s*[:=]\s*['\"]?)(\d{4,6})(['\"]?)", r"\1***REDACTED***\3", re.IGNORECASE),

    # Database URLs with credentials
    (r"(postgresql|postgres|mysql)(\+\w+)?://([^:/]+):([^@]+)@", r"\1\2://\3:***REDACTED***@"),

    # Phone numbers (keep the last two digits so accounts stay distinguishable)
    (r"(phone(?:[_-]?number)?\s*=\s*['\"]?)\+?\d{5,13}(\d{2})(['\"]?)", r"\1+***\2\3"),
    (r"\+\d{5,13}(\d{2})\b", r"+***\1"),
]


def sanitize_message(message: str) -> str:
    sanitized = message

    for pattern_tuple in SENSITIVE_PATTERNS:
        if len(pattern_tuple) == 2:
            pattern, replacement = pattern_tuple
            flags = 0
        else:
            pattern, replacement, flags = pattern_tuple

        sanitized = re.sub(pattern, replacement, sanitized, flags=flags)

    return sanitized


def sanitize_record(record: dict[str, Any]) -> bool:
    if "message" in record:
        record["message"] = sanitize_message(record["message"])
    return True
