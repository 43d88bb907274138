"""AES-256 CBC + PKCS#7 helpers keyed by the device identifier."""

import logging
import os

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad

from devicecrypt.common.errors import (
    AESError,
    IVGenerationError,
    EncryptionError,
    DecryptionError,
    DecryptionKeyError,
)
from devicecrypt.crypto.device import derive_key, KEY_SIZE

logger = logging.getLogger(__name__)

BLOCK_SIZE = AES.block_size
IV_SIZE = BLOCK_SIZE


def _as_bytes(data, name):
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"{name} must be bytes, not {type(data).__name__}")


def generate_iv(size=IV_SIZE):
    """
    Generate a fresh IV from the OS secure random source.
    Raises IVGenerationError if the source fails; never retried.
    """
    try:
        iv = os.urandom(size)
    except (OSError, NotImplementedError) as e:
        raise IVGenerationError("secure random source failed") from e

    if len(iv) != size:
        raise IVGenerationError(f"secure random source returned {len(iv)} bytes, expected {size}")

    return iv


def aes_encrypt(plaintext):
    """
    Encrypt plaintext using AES-256 CBC mode with PKCS#7 padding.
    Returns: iv || ciphertext (both as bytes)

    Raises:
        EncryptionError: any failure; the failing step is on __cause__
    """
    plaintext = _as_bytes(plaintext, "plaintext")

    try:
        key = derive_key()
        iv = generate_iv()

        cipher = AES.new(key, AES.MODE_CBC, iv)
        ciphertext = cipher.encrypt(pad(plaintext, BLOCK_SIZE))
    except (AESError, ValueError) as e:
        logger.debug("encryption failed: %r", e)
        raise EncryptionError("encryption failed") from e

    return iv + ciphertext


def aes_decrypt(data):
    """
    Decrypt data (iv || ciphertext) using AES-256 CBC mode.
    Returns: plaintext bytes

    There is no integrity check: a tampered envelope either fails the
    padding check or decrypts to different bytes.

    Raises:
        DecryptionKeyError: the device key could not be derived
        DecryptionError: envelope malformed or padding invalid
    """
    data = _as_bytes(data, "data")

    try:
        key = derive_key()
    except (AESError, ValueError) as e:
        logger.debug("key derivation failed during decryption: %r", e)
        raise DecryptionKeyError("decryption failed") from e

    # Must hold a full IV, then whole blocks of ciphertext
    if len(data) < IV_SIZE:
        raise DecryptionError(f"envelope is {len(data)} bytes, shorter than the {IV_SIZE}-byte IV")

    iv = data[:IV_SIZE]
    ciphertext = data[IV_SIZE:]

    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise DecryptionError(f"ciphertext length {len(ciphertext)} is not a positive multiple of {BLOCK_SIZE}")

    try:
        cipher = AES.new(key, AES.MODE_CBC, iv)
        plaintext = unpad(cipher.decrypt(ciphertext), BLOCK_SIZE)
    except ValueError as e:
        logger.debug("decryption failed: %r", e)
        raise DecryptionError("decryption failed") from e

    return plaintext


__all__ = ["aes_encrypt", "aes_decrypt", "generate_iv", "KEY_SIZE", "BLOCK_SIZE", "IV_SIZE"]
