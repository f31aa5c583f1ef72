# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from giftsniper.shared.logging import logger


class SessionCipher:
    """Fernet wrapper for session blobs at rest."""

    def __init__(self, key: str | bytes) -> None:
        raw = key.encode("utf-8") if isinstance(key, str) else key
        try:
            self._fernet = Fernet(raw)
        except ValueError as exc:
            raise ValueError(
                "SESSION_ENCRYPTION_KEY must be 32 url-safe base64-encoded bytes"
            ) from exc
        logger.debug("encryption:cipher ready")

    def encrypt(self, plaintext: bytes) -> bytes:
        return self._fernet.encrypt(plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        try:
            return self._fernet.decrypt(ciphertext)
        except InvalidToken as exc:
            raise ValueError("failed to decrypt: invalid token or corrupted data") from exc

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("utf-8")


__all__ = ["SessionCipher"]
