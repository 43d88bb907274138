#!/usr/bin/env python3
"""
Write a DEVICECRYPT_DEVICE_ID override into a .env file.

For hosts without a machine-id (containers, CI). Anything encrypted with
the override can only be decrypted while the same override is set.

Usage: python scripts/gen_device_id.py [path/to/.env]
"""

import os
import sys
import uuid

sys.path.insert(0, '.')

from devicecrypt import config
from devicecrypt.crypto.device import derive_key, key_fingerprint


def main():
    env_path = sys.argv[1] if len(sys.argv) > 1 else ".env"

    if os.path.exists(env_path):
        with open(env_path, "r", encoding="utf-8") as f:
            if any(line.startswith(f"{config.DEVICE_ID_ENV}=") for line in f):
                print(f"Error: {env_path} already sets {config.DEVICE_ID_ENV}; remove it first.")
                sys.exit(1)

    device_id = str(uuid.uuid4())

    print("Generating device identifier...")
    print(f"  - Writing {config.DEVICE_ID_ENV} to {env_path}...")
    with open(env_path, "a", encoding="utf-8") as f:
        f.write(f"{config.DEVICE_ID_ENV}={device_id}\n")

    os.environ[config.DEVICE_ID_ENV] = device_id
    derive_key()

    print("\n✓ Device identifier written!")
    print(f"  Key fingerprint: {key_fingerprint()}")


if __name__ == "__main__":
    main()
