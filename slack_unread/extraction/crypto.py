"""Key derivation and AES-CBC decryption for Chromium-format cookie values.

The parameters below are fixed by the cookie storage format the Slack desktop
client inherits from Chromium on macOS. They must match exactly; a wrong
iteration count or salt does not raise, it just yields garbage plaintext.
"""

from __future__ import annotations

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from slack_unread.extraction.errors import CookieDecryptionFailed

PBKDF2_SALT = b"saltysalt"
PBKDF2_ITERATIONS = 1003
KEY_LENGTH = 16
CBC_IV = b" " * 16
VERSION_PREFIX_LENGTH = 3  # b"v10"
COOKIE_MARKER = b"xoxd-"


def derive_key(passphrase: str) -> bytes:
    """Derive the 16-byte AES key from the keychain passphrase.

    Args:
        passphrase: The "Slack Safe Storage" keychain secret.

    Returns:
        PBKDF2-HMAC-SHA1 output, 1003 iterations over the fixed salt.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=KEY_LENGTH,
        salt=PBKDF2_SALT,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def aes_cbc_decrypt(data: bytes, key: bytes, iv: bytes = CBC_IV) -> bytes:
    """Decrypt ``data`` with AES-CBC and strip PKCS#7 padding.

    Raises:
        CookieDecryptionFailed: If the ciphertext length or padding is invalid.
    """
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    try:
        padded = decryptor.update(data) + decryptor.finalize()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise CookieDecryptionFailed(f"AES decryption failed: {exc}") from exc


def aes_cbc_encrypt(data: bytes, key: bytes, iv: bytes = CBC_IV) -> bytes:
    """Inverse of :func:`aes_cbc_decrypt`. Used to build fixtures."""
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(data) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt_cookie_value(encrypted_value: bytes, key: bytes) -> str:
    """Turn an ``encrypted_value`` blob from the cookie DB into the xoxd cookie.

    The blob is a 3-byte version tag followed by AES-CBC ciphertext. Newer
    Chromium builds prepend a hash of the host to the plaintext, so the
    cookie is located by its ``xoxd-`` marker rather than taken whole.

    Args:
        encrypted_value: Raw column value, including the version prefix.
        key: Output of :func:`derive_key`.

    Returns:
        The cookie from the marker to the end, control characters trimmed.

    Raises:
        CookieDecryptionFailed: If the blob is too short, fails to decrypt,
            lacks the marker, or is not valid UTF-8.
    """
    if len(encrypted_value) <= VERSION_PREFIX_LENGTH:
        raise CookieDecryptionFailed("Cookie data too short")

    plaintext = aes_cbc_decrypt(encrypted_value[VERSION_PREFIX_LENGTH:], key)

    start = plaintext.find(COOKIE_MARKER)
    if start == -1:
        raise CookieDecryptionFailed("No xoxd token in decrypted cookie")

    try:
        cookie = plaintext[start:].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CookieDecryptionFailed("Could not decode cookie as UTF-8") from exc

    return _strip_control_chars(cookie)


def _strip_control_chars(text: str) -> str:
    start, end = 0, len(text)
    while start < end and _is_control(text[start]):
        start += 1
    while end > start and _is_control(text[end - 1]):
        end -= 1
    return text[start:end]


def _is_control(char: str) -> bool:
    code = ord(char)
    return code < 0x20 or 0x7F <= code < 0xA0
