"""Envelope splitting, JSON form, inspection and whole-file encrypt/decrypt."""

import logging
from pathlib import Path

from devicecrypt.common.errors import DecryptionError
from devicecrypt.common.protocol import EnvelopeMessage, EnvelopeInfo
from devicecrypt.common.utils import b64e, b64d
from devicecrypt.crypto.aes import aes_encrypt, aes_decrypt, BLOCK_SIZE, IV_SIZE

logger = logging.getLogger(__name__)


def split_envelope(envelope):
    """
    Split an envelope into its IV and ciphertext.

    Returns:
        Tuple (iv, ciphertext)

    Raises:
        DecryptionError: envelope shorter than the IV
    """
    if len(envelope) < IV_SIZE:
        raise DecryptionError(f"envelope is {len(envelope)} bytes, shorter than the {IV_SIZE}-byte IV")
    return bytes(envelope[:IV_SIZE]), bytes(envelope[IV_SIZE:])


def envelope_to_json(envelope):
    """
    Convert envelope bytes to their JSON form.

    Returns:
        JSON string: {"type":"envelope","iv":base64,"ciphertext":base64}
    """
    iv, ciphertext = split_envelope(envelope)
    msg = EnvelopeMessage(iv=b64e(iv), ciphertext=b64e(ciphertext))
    return msg.model_dump_json()


def envelope_from_json(msg_json):
    """
    Rebuild envelope bytes from their JSON form.

    Args:
        msg_json: JSON string/bytes, or an already parsed dict

    Raises:
        DecryptionError: malformed JSON, bad base64, wrong type or IV size
    """
    try:
        if isinstance(msg_json, dict):
            msg = EnvelopeMessage.model_validate(msg_json)
        else:
            msg = EnvelopeMessage.model_validate_json(msg_json)
        iv = b64d(msg.iv)
        ciphertext = b64d(msg.ciphertext)
    except ValueError as e:
        raise DecryptionError(f"invalid envelope JSON: {e}") from e

    if msg.type != "envelope":
        raise DecryptionError(f"unexpected message type '{msg.type}'")

    if len(iv) != IV_SIZE:
        raise DecryptionError(f"envelope IV is {len(iv)} bytes, expected {IV_SIZE}")

    return iv + ciphertext


def describe_envelope(envelope):
    """
    Report an envelope's layout without touching the key.

    Returns:
        EnvelopeInfo
    """
    iv, ciphertext = split_envelope(envelope)
    return EnvelopeInfo(
        total_size=len(envelope),
        iv_size=len(iv),
        ciphertext_size=len(ciphertext),
        blocks=len(ciphertext) // BLOCK_SIZE,
        block_aligned=bool(ciphertext) and len(ciphertext) % BLOCK_SIZE == 0,
        iv_hex=iv.hex(),
    )


def write_bytes(path, data):
    """Write data to path, creating parent directories."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def encrypt_file(src_path, dst_path):
    """
    Encrypt a whole file into an envelope file.

    Returns:
        Tuple (input_size, output_size)
    """
    with open(src_path, "rb") as f:
        plaintext = f.read()

    envelope = aes_encrypt(plaintext)
    write_bytes(dst_path, envelope)

    logger.info("Encrypted %s (%d bytes) -> %s (%d bytes)", src_path, len(plaintext), dst_path, len(envelope))
    return len(plaintext), len(envelope)


def decrypt_file(src_path, dst_path):
    """
    Decrypt an envelope file. Nothing is written if decryption fails.

    Returns:
        Tuple (input_size, output_size)
    """
    with open(src_path, "rb") as f:
        envelope = f.read()

    plaintext = aes_decrypt(envelope)
    write_bytes(dst_path, plaintext)

    logger.info("Decrypted %s (%d bytes) -> %s (%d bytes)", src_path, len(envelope), dst_path, len(plaintext))
    return len(envelope), len(plaintext)
