"""Entry body codecs.

Bodies are encoded before they reach the store and decoded after retrieval.
``Utf8Codec`` stores plaintext bytes; ``FernetCodec`` encrypts with a local
symmetric key (``cryptography``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from cryptography.fernet import Fernet, InvalidToken

from panelpress.errors import DecodeError


class BodyCodec(ABC):
    @abstractmethod
    def encode(self, plaintext: str) -> bytes:
        """Return the stored form of ``plaintext``."""

    @abstractmethod
    def decode(self, data: bytes) -> str:
        """Return the plaintext of ``data``; raise :class:`DecodeError` if malformed."""


class Utf8Codec(BodyCodec):
    def encode(self, plaintext: str) -> bytes:
        return plaintext.encode("utf-8")

    def decode(self, data: bytes) -> str:
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"body is not valid UTF-8: {e.reason}") from e


class FernetCodec(BodyCodec):
    """Symmetric encryption of entry bodies.

    Parameters
    ----------
    key:
        URL-safe base64 Fernet key, as produced by :meth:`generate_key`.
    """

    def __init__(self, key: bytes | str) -> None:
        self._fernet = Fernet(key)

    @staticmethod
    def generate_key() -> str:
        return Fernet.generate_key().decode("ascii")

    def encode(self, plaintext: str) -> bytes:
        return self._fernet.encrypt(plaintext.encode("utf-8"))

    def decode(self, data: bytes) -> str:
        try:
            raw = self._fernet.decrypt(bytes(data))
        except InvalidToken as e:
            raise DecodeError("body could not be decrypted") from e
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"decrypted body is not valid UTF-8: {e.reason}") from e


def build_codec(encryption_key: str | None) -> BodyCodec:
    """Fernet when a key is configured, plain UTF-8 otherwise."""

    if encryption_key:
        return FernetCodec(encryption_key)
    return Utf8Codec()
