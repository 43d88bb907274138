"""AES-256-CBC encryption keyed by the local device identifier."""

from devicecrypt.common.errors import (
    AESError,
    InvalidKeyError,
    InvalidKeySizeError,
    IVGenerationError,
    EncryptionError,
    DecryptionError,
    DecryptionKeyError,
)
from devicecrypt.crypto.aes import aes_encrypt, aes_decrypt, generate_iv, KEY_SIZE, BLOCK_SIZE, IV_SIZE
from devicecrypt.crypto.device import current_device_identifier, derive_key, key_fingerprint

encrypt = aes_encrypt
decrypt = aes_decrypt

__version__ = "1.0.0"

__all__ = [
    "AESError",
    "InvalidKeyError",
    "InvalidKeySizeError",
    "IVGenerationError",
    "EncryptionError",
    "DecryptionError",
    "DecryptionKeyError",
    "aes_encrypt",
    "aes_decrypt",
    "encrypt",
    "decrypt",
    "generate_iv",
    "current_device_identifier",
    "derive_key",
    "key_fingerprint",
    "KEY_SIZE",
    "BLOCK_SIZE",
    "IV_SIZE",
]
