"""Settings read from the environment (and a local .env file)."""

import os
from dotenv import load_dotenv

load_dotenv()

# Names of the environment variables; values are read on every call
DEVICE_ID_ENV = "DEVICECRYPT_DEVICE_ID"
MACHINE_ID_PATHS_ENV = "DEVICECRYPT_MACHINE_ID_PATHS"
LOG_LEVEL_ENV = "DEVICECRYPT_LOG_LEVEL"

DEFAULT_MACHINE_ID_PATHS = ("/etc/machine-id", "/var/lib/dbus/machine-id")

# Windows keeps the install GUID here
WINDOWS_CRYPTOGRAPHY_KEY = r"SOFTWARE\Microsoft\Cryptography"
WINDOWS_MACHINE_GUID_VALUE = "MachineGuid"

# macOS hardware UUID query
IOREG_COMMAND = ["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"]
IOREG_TIMEOUT = 5


def get_device_config():
    """
    Return the device identity settings as they are right now.

    Returns:
        Dict with "device_id" (override or None) and "machine_id_paths".
    """
    raw_paths = os.getenv(MACHINE_ID_PATHS_ENV)
    if raw_paths:
        paths = [p for p in raw_paths.split(os.pathsep) if p]
    else:
        paths = list(DEFAULT_MACHINE_ID_PATHS)

    return {
        "device_id": os.getenv(DEVICE_ID_ENV) or None,
        "machine_id_paths": paths,
    }


LOG_CONFIG = {
    "level": os.getenv(LOG_LEVEL_ENV, "WARNING").upper(),
    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
}
