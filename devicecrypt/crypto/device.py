"""Device identifier lookup + raw identifier -> AES-256 key derivation."""

import logging
import re
import subprocess
import sys

from devicecrypt import config
from devicecrypt.common.errors import InvalidKeyError, InvalidKeySizeError
from devicecrypt.common.utils import sha256_hex

logger = logging.getLogger(__name__)

KEY_SIZE = 32

_IOREG_UUID_RE = re.compile(r'"IOPlatformUUID"\s*=\s*"([^"]+)"')


def _read_machine_id(paths):
    """Return the first non-empty machine-id file content, or None."""
    for path in paths:
        try:
            with open(path, "r", encoding="utf-8") as f:
                value = f.read().strip()
        except (OSError, UnicodeDecodeError) as e:
            logger.debug("machine-id not readable at %s: %s", path, e)
            continue
        if value:
            return value
    return None


def _read_windows_machine_guid():
    """Read MachineGuid from the registry (Windows only)."""
    if sys.platform != "win32":
        return None
    try:
        import winreg

        with winreg.OpenKey(
            winreg.HKEY_LOCAL_MACHINE,
            config.WINDOWS_CRYPTOGRAPHY_KEY,
            0,
            winreg.KEY_READ | winreg.KEY_WOW64_64KEY,
        ) as key:
            value, _ = winreg.QueryValueEx(key, config.WINDOWS_MACHINE_GUID_VALUE)
        return str(value).strip() or None
    except OSError as e:
        logger.debug("MachineGuid lookup failed: %s", e)
        return None


def _read_macos_platform_uuid():
    """Read IOPlatformUUID through ioreg (macOS only)."""
    if sys.platform != "darwin":
        return None
    try:
        out = subprocess.run(
            config.IOREG_COMMAND,
            capture_output=True,
            text=True,
            timeout=config.IOREG_TIMEOUT,
            check=True,
        ).stdout
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("ioreg lookup failed: %s", e)
        return None
    match = _IOREG_UUID_RE.search(out)
    return match.group(1) if match else None


def current_device_identifier():
    """
    Return this install's unique identifier string, or None.

    Sources are queried on every call, in order: the DEVICECRYPT_DEVICE_ID
    override, the machine-id files, Windows MachineGuid, macOS IOPlatformUUID.
    """
    settings = config.get_device_config()

    if settings["device_id"]:
        return settings["device_id"].strip()

    for source in (
        lambda: _read_machine_id(settings["machine_id_paths"]),
        _read_windows_machine_guid,
        _read_macos_platform_uuid,
    ):
        value = source()
        if value:
            return value

    return None


def derive_key():
    """
    Build the AES-256 key from the device identifier.

    The identifier's dash-separated tokens are joined and their UTF-8
    bytes are used directly as the key. There is no KDF: ciphertexts
    written by earlier installs depend on this exact derivation.

    Returns:
        32 key bytes

    Raises:
        InvalidKeyError: no device identifier available
        InvalidKeySizeError: joined identifier is not 32 bytes
    """
    identifier = current_device_identifier()
    if identifier is None:
        raise InvalidKeyError("no device identifier available")

    key = "".join(identifier.split("-")).encode("utf-8")

    if len(key) != KEY_SIZE:
        raise InvalidKeySizeError(
            f"device identifier yields {len(key)} key bytes, expected {KEY_SIZE}"
        )

    return key


def key_fingerprint():
    """Short SHA256 hex of the device key, safe to print or compare."""
    return sha256_hex(derive_key())[:16]
