import os
import sys
from unittest import mock

# Ensure the package is importable when running tests from repo root
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from devicecrypt import config  # noqa: E402

DEVICE_ID = "123e4567-e89b-12d3-a456-426614174000"
DEVICE_KEY = b"123e4567e89b12d3a456426614174000"


def device_id_env(value=DEVICE_ID):
    """Patch the environment so the device identifier override is `value`."""
    return mock.patch.dict(os.environ, {config.DEVICE_ID_ENV: value})
