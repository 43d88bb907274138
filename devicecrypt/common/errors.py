"""Exceptions raised by the device-keyed AES helpers."""


class AESError(Exception):
    """Base class for every failure in this package."""


class InvalidKeyError(AESError):
    """No device identifier is available to build a key from."""


class InvalidKeySizeError(AESError):
    """The device identifier does not yield exactly 32 key bytes."""


class IVGenerationError(AESError):
    """The secure random source could not produce an IV."""


class EncryptionError(AESError):
    """Encryption failed. The failing step is kept on __cause__."""


class DecryptionError(AESError):
    """Decryption failed. The failing step is kept on __cause__."""


class DecryptionKeyError(DecryptionError, EncryptionError):
    """
    Key derivation failed while decrypting.

    Older callers expect the encrypt error kind here, so this is both
    an EncryptionError and a DecryptionError.
    """
