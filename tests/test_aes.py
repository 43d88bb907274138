import os
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

from helpers import DEVICE_KEY, device_id_env

from Crypto.Cipher import AES
from Crypto.Util.Padding import unpad

from devicecrypt import config
from devicecrypt.crypto import aes as aes_module
from devicecrypt.crypto.aes import aes_encrypt, aes_decrypt, generate_iv, BLOCK_SIZE, IV_SIZE
from devicecrypt.common.errors import (
    InvalidKeyError,
    InvalidKeySizeError,
    IVGenerationError,
    EncryptionError,
    DecryptionError,
    DecryptionKeyError,
)


class AESRoundTripTests(unittest.TestCase):
    def setUp(self):
        patcher = device_id_env()
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_roundtrip_various_lengths(self):
        for size in (0, 1, 15, 16, 17, 31, 32, 100, 4096):
            with self.subTest(size=size):
                plaintext = os.urandom(size)
                self.assertEqual(aes_decrypt(aes_encrypt(plaintext)), plaintext)

    def test_empty_plaintext_is_one_padding_block(self):
        envelope = aes_encrypt(b"")
        self.assertEqual(len(envelope), 32)
        self.assertEqual(aes_decrypt(envelope), b"")

    def test_block_aligned_plaintext_gets_full_padding_block(self):
        envelope = aes_encrypt(b"A" * 16)
        self.assertEqual(len(envelope), 48)
        self.assertEqual(len(envelope) - IV_SIZE, 32)

    def test_envelope_length_is_iv_plus_whole_blocks(self):
        for size in range(0, 50):
            envelope = aes_encrypt(b"x" * size)
            self.assertEqual(len(envelope), IV_SIZE + BLOCK_SIZE * (size // BLOCK_SIZE + 1))
            self.assertEqual((len(envelope) - IV_SIZE) % BLOCK_SIZE, 0)

    def test_encryption_is_not_deterministic(self):
        plaintext = b"same message"
        first = aes_encrypt(plaintext)
        second = aes_encrypt(plaintext)
        self.assertNotEqual(first, second)
        self.assertNotEqual(first[:IV_SIZE], second[:IV_SIZE])
        self.assertEqual(aes_decrypt(first), plaintext)
        self.assertEqual(aes_decrypt(second), plaintext)

    def test_identifier_bytes_are_used_directly_as_key(self):
        plaintext = b"interop check"
        envelope = aes_encrypt(plaintext)
        cipher = AES.new(DEVICE_KEY, AES.MODE_CBC, envelope[:16])
        self.assertEqual(unpad(cipher.decrypt(envelope[16:]), 16), plaintext)

    def test_decrypts_envelope_built_outside_the_package(self):
        iv = bytes(range(16))
        cipher = AES.new(DEVICE_KEY, AES.MODE_CBC, iv)
        # "hello" + 11 bytes of PKCS7 padding
        envelope = iv + cipher.encrypt(b"hello" + bytes([11]) * 11)
        self.assertEqual(aes_decrypt(envelope), b"hello")

    def test_accepts_bytearray_memoryview_and_str(self):
        self.assertEqual(aes_decrypt(aes_encrypt(bytearray(b"abc"))), b"abc")
        self.assertEqual(aes_decrypt(aes_encrypt(memoryview(b"abc"))), b"abc")
        self.assertEqual(aes_decrypt(aes_encrypt("héllo")), "héllo".encode("utf-8"))

    def test_rejects_non_bytes_input(self):
        with self.assertRaises(TypeError):
            aes_encrypt(12345)
        with self.assertRaises(TypeError):
            aes_decrypt(None)

    def test_concurrent_calls(self):
        payloads = [os.urandom(n) for n in range(64)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda p: aes_decrypt(aes_encrypt(p)), payloads))
        self.assertEqual(results, payloads)


class AESDecryptFailureTests(unittest.TestCase):
    def setUp(self):
        patcher = device_id_env()
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_short_envelope_rejected(self):
        for size in (0, 1, 15):
            with self.subTest(size=size):
                with self.assertRaises(DecryptionError):
                    aes_decrypt(b"\x00" * size)

    def test_iv_only_envelope_rejected(self):
        with self.assertRaises(DecryptionError):
            aes_decrypt(os.urandom(16))

    def test_unaligned_ciphertext_rejected(self):
        envelope = aes_encrypt(b"data")
        with self.assertRaises(DecryptionError):
            aes_decrypt(envelope[:-1])

    def test_tampered_ciphertext_never_returns_original(self):
        plaintext = b"The quick brown fox jumps over the lazy dog"
        envelope = aes_encrypt(plaintext)
        for pos in range(IV_SIZE, len(envelope)):
            tampered = bytearray(envelope)
            tampered[pos] ^= 0x01
            try:
                result = aes_decrypt(bytes(tampered))
            except DecryptionError:
                continue
            self.assertNotEqual(result, plaintext)

    def test_wrong_device_key_does_not_recover_plaintext(self):
        plaintext = b"secret for one device only"
        envelope = aes_encrypt(plaintext)
        with device_id_env("ffffffff-ffff-ffff-ffff-ffffffffffff"):
            try:
                result = aes_decrypt(envelope)
            except DecryptionError:
                return
        self.assertNotEqual(result, plaintext)

    def test_bad_padding_chains_cause(self):
        iv = bytes(16)
        cipher = AES.new(DEVICE_KEY, AES.MODE_CBC, iv)
        # last byte 0x00 is never valid PKCS7 padding
        envelope = iv + cipher.encrypt(b"\x00" * 16)
        with self.assertRaises(DecryptionError) as ctx:
            aes_decrypt(envelope)
        self.assertIsInstance(ctx.exception.__cause__, ValueError)


class AESKeyFailureTests(unittest.TestCase):
    def test_missing_identifier_fails_encrypt(self):
        with mock.patch("devicecrypt.crypto.device.current_device_identifier", return_value=None):
            with self.assertRaises(EncryptionError) as ctx:
                aes_encrypt(b"data")
        self.assertIsInstance(ctx.exception.__cause__, InvalidKeyError)

    def test_key_size_gate_blocks_cipher_on_encrypt(self):
        with device_id_env("too-short"), mock.patch.object(aes_module.AES, "new") as new:
            with self.assertRaises(EncryptionError) as ctx:
                aes_encrypt(b"data")
        self.assertIsInstance(ctx.exception.__cause__, InvalidKeySizeError)
        new.assert_not_called()

    def test_key_size_gate_blocks_cipher_on_decrypt(self):
        with device_id_env("0123456789abcdef0123456789abcdef0"), mock.patch.object(aes_module.AES, "new") as new:
            with self.assertRaises(DecryptionError) as ctx:
                aes_decrypt(b"\x00" * 32)
        self.assertIsInstance(ctx.exception.__cause__, InvalidKeySizeError)
        new.assert_not_called()

    def test_decrypt_key_failure_is_also_an_encryption_error(self):
        with mock.patch("devicecrypt.crypto.device.current_device_identifier", return_value=None):
            with self.assertRaises(DecryptionKeyError) as ctx:
                aes_decrypt(b"\x00" * 32)
        self.assertIsInstance(ctx.exception, EncryptionError)
        self.assertIsInstance(ctx.exception, DecryptionError)
        self.assertIsInstance(ctx.exception.__cause__, InvalidKeyError)

    def test_undecodable_machine_id_fails_both_operations(self):
        with tempfile.TemporaryDirectory() as tmp:
            bad = os.path.join(tmp, "machine-id")
            with open(bad, "wb") as f:
                f.write(b"\xff" * 32)
            env = {config.MACHINE_ID_PATHS_ENV: bad}
            with mock.patch.dict(os.environ, env), \
                    mock.patch("devicecrypt.crypto.device._read_windows_machine_guid", return_value=None), \
                    mock.patch("devicecrypt.crypto.device._read_macos_platform_uuid", return_value=None):
                os.environ.pop(config.DEVICE_ID_ENV, None)
                with self.assertRaises(EncryptionError):
                    aes_encrypt(b"data")
                with self.assertRaises(DecryptionKeyError) as ctx:
                    aes_decrypt(b"\x00" * 32)
        self.assertIsInstance(ctx.exception.__cause__, InvalidKeyError)

    def test_decrypt_collapses_value_errors_from_key_lookup(self):
        with mock.patch("devicecrypt.crypto.device.current_device_identifier", side_effect=ValueError("bad id")):
            with self.assertRaises(DecryptionKeyError) as ctx:
                aes_decrypt(b"\x00" * 32)
        self.assertIsInstance(ctx.exception.__cause__, ValueError)

    def test_message_hides_sub_step_detail(self):
        with device_id_env("too-short"):
            with self.assertRaises(EncryptionError) as ctx:
                aes_encrypt(b"data")
        self.assertEqual(str(ctx.exception), "encryption failed")


class IVGenerationTests(unittest.TestCase):
    def test_default_size(self):
        self.assertEqual(len(generate_iv()), 16)

    def test_ivs_differ(self):
        self.assertNotEqual(generate_iv(), generate_iv())

    def test_random_source_failure(self):
        with mock.patch("devicecrypt.crypto.aes.os.urandom", side_effect=OSError("no entropy")):
            with self.assertRaises(IVGenerationError):
                generate_iv()

    def test_short_read_is_a_failure(self):
        with mock.patch("devicecrypt.crypto.aes.os.urandom", return_value=b"\x00" * 8):
            with self.assertRaises(IVGenerationError):
                generate_iv()

    def test_encrypt_reports_iv_failure_as_encryption_error(self):
        with device_id_env(), mock.patch("devicecrypt.crypto.aes.os.urandom", side_effect=NotImplementedError):
            with self.assertRaises(EncryptionError) as ctx:
                aes_encrypt(b"data")
        self.assertIsInstance(ctx.exception.__cause__, IVGenerationError)

    def test_random_source_failure_is_not_retried(self):
        with device_id_env(), mock.patch("devicecrypt.crypto.aes.os.urandom", side_effect=OSError) as urandom:
            with self.assertRaises(EncryptionError):
                aes_encrypt(b"data")
        self.assertEqual(urandom.call_count, 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
