"""Decryption of the encrypted image tiles served by Google Arts & Culture."""

from __future__ import annotations

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

_MARKER = 0x0A0A0A0A
_KEY = bytes([91, 99, 219, 17, 59, 122, 243, 224, 177, 67, 85, 86, 200, 249, 83, 12])
_IV = bytes([113, 231, 4, 5, 53, 58, 119, 139, 250, 111, 188, 48, 50, 27, 149, 146])


class InvalidEncryptedImage(ValueError):
    """An encrypted tile does not have the expected structure."""


def _u32_at(data: bytes, offset: int) -> int:
    chunk = data[offset : offset + 4]
    if len(chunk) < 4:
        raise InvalidEncryptedImage(
            "Unable to read from the buffer: failed to fill whole buffer"
        )
    return int.from_bytes(chunk, "little")


def _aes_decrypt(payload: bytes) -> bytes:
    decryptor = Cipher(algorithms.AES(_KEY), modes.CBC(_IV)).decryptor()
    try:
        return decryptor.update(payload) + decryptor.finalize()
    except ValueError as err:
        raise InvalidEncryptedImage(
            f"Unable to decrypt the encrypted data: {err}"
        ) from None


def decrypt(encrypted: bytes) -> bytes:
    """Decrypt a tile; data without the encryption marker is returned unchanged.

    Layout: marker, header, encrypted size, encrypted data, footer, header size.
    """
    data = bytes(encrypted)
    if _u32_at(data, 0) != _MARKER:
        return data
    end = len(data) - 4
    header_size = _u32_at(data, end)
    if 4 + header_size > end:
        raise InvalidEncryptedImage(
            f"The size of the unencrypted header ({header_size}) is invalid."
        )
    header = data[4 : 4 + header_size]
    encrypted_size = _u32_at(data, 4 + header_size)
    if 8 + header_size + encrypted_size > end:
        raise InvalidEncryptedImage(
            f"The size of the encrypted data ({encrypted_size}) is invalid."
        )
    start = 8 + header_size
    payload = data[start : start + encrypted_size]
    footer = data[start + encrypted_size : end]
    return header + _aes_decrypt(payload) + footer