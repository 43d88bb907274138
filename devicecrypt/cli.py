"""
Command line front end for the device-keyed AES helpers.

Usage:
    devicecrypt encrypt --in <file> --out <file>
    devicecrypt encrypt --text "hello" [--json]
    devicecrypt --json encrypt --text "hello"
    devicecrypt decrypt --in <file> --out <file>
    devicecrypt decrypt --hex <hex> | --json-in <file>
    devicecrypt inspect --in <file>
    devicecrypt fingerprint
"""

import argparse
import logging
import sys

from devicecrypt import config
from devicecrypt.common.envelope_utils import (
    envelope_to_json,
    envelope_from_json,
    describe_envelope,
    encrypt_file,
    decrypt_file,
    write_bytes,
)
from devicecrypt.common.errors import AESError
from devicecrypt.common.protocol import ResultMessage, ErrorMessage
from devicecrypt.crypto.aes import aes_encrypt, aes_decrypt
from devicecrypt.crypto.device import key_fingerprint

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser():
    parser = argparse.ArgumentParser(
        prog="devicecrypt",
        description="AES-256-CBC encrypt/decrypt keyed by this device's identifier",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON to stdout")

    # --json may also follow the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Print JSON to stdout")

    sub = parser.add_subparsers(dest="command", required=True)

    enc = sub.add_parser("encrypt", parents=[common], help="Encrypt a file or text")
    src = enc.add_mutually_exclusive_group(required=True)
    src.add_argument("--in", dest="in_path", help="Input file path")
    src.add_argument("--text", help="Input text (UTF-8)")
    enc.add_argument("--out", dest="out_path", help="Output envelope file path")

    dec = sub.add_parser("decrypt", parents=[common], help="Decrypt an envelope")
    src = dec.add_mutually_exclusive_group(required=True)
    src.add_argument("--in", dest="in_path", help="Envelope file path")
    src.add_argument("--hex", dest="in_hex", help="Envelope as hex")
    src.add_argument("--json-in", dest="json_path", help="Envelope JSON file path")
    dec.add_argument("--out", dest="out_path", help="Output plaintext file path")

    ins = sub.add_parser("inspect", parents=[common], help="Show envelope layout")
    src = ins.add_mutually_exclusive_group(required=True)
    src.add_argument("--in", dest="in_path", help="Envelope file path")
    src.add_argument("--hex", dest="in_hex", help="Envelope as hex")

    sub.add_parser("fingerprint", parents=[common], help="Print the device key fingerprint")

    return parser


def _read(path):
    with open(path, "rb") as f:
        return f.read()


def _emit(args, model, text):
    if args.json:
        print(model.model_dump_json())
    else:
        print(text)


def _cmd_encrypt(args):
    if args.in_path and args.out_path:
        in_size, out_size = encrypt_file(args.in_path, args.out_path)
        _emit(args, ResultMessage(op="encrypt", input_size=in_size, output_size=out_size),
              f"✓ Encrypted {in_size} -> {out_size} bytes: {args.out_path}")
        return EXIT_OK

    data = _read(args.in_path) if args.in_path else args.text.encode("utf-8")
    envelope = aes_encrypt(data)

    if args.out_path:
        write_bytes(args.out_path, envelope)
        _emit(args, ResultMessage(op="encrypt", input_size=len(data), output_size=len(envelope)),
              f"✓ Encrypted {len(data)} -> {len(envelope)} bytes: {args.out_path}")
    elif args.json:
        print(envelope_to_json(envelope))
    else:
        print(envelope.hex())
    return EXIT_OK


def _cmd_decrypt(args):
    if args.in_path and args.out_path:
        in_size, out_size = decrypt_file(args.in_path, args.out_path)
        _emit(args, ResultMessage(op="decrypt", input_size=in_size, output_size=out_size),
              f"✓ Decrypted {in_size} -> {out_size} bytes: {args.out_path}")
        return EXIT_OK

    if args.in_hex is not None:
        envelope = bytes.fromhex(args.in_hex)
    elif args.json_path:
        envelope = envelope_from_json(_read(args.json_path))
    else:
        envelope = _read(args.in_path)

    plaintext = aes_decrypt(envelope)

    if args.out_path:
        write_bytes(args.out_path, plaintext)
        _emit(args, ResultMessage(op="decrypt", input_size=len(envelope), output_size=len(plaintext)),
              f"✓ Decrypted {len(envelope)} -> {len(plaintext)} bytes: {args.out_path}")
    else:
        text = plaintext.decode("utf-8", errors="replace")
        _emit(args, ResultMessage(op="decrypt", input_size=len(envelope), output_size=len(plaintext), output=text),
              text)
    return EXIT_OK


def _cmd_inspect(args):
    envelope = bytes.fromhex(args.in_hex) if args.in_hex is not None else _read(args.in_path)
    info = describe_envelope(envelope)
    _emit(args, info,
          f"Envelope: {info.total_size} bytes\n"
          f"  IV:         {info.iv_hex}\n"
          f"  Ciphertext: {info.ciphertext_size} bytes ({info.blocks} blocks)\n"
          f"  Aligned:    {'yes' if info.block_aligned else 'no'}")
    return EXIT_OK


def _cmd_fingerprint(args):
    fp = key_fingerprint()
    if args.json:
        print(ResultMessage(op="fingerprint", input_size=0, output_size=len(fp), output=fp).model_dump_json())
    else:
        print(f"Device key fingerprint: {fp}")
    return EXIT_OK


COMMANDS = {
    "encrypt": _cmd_encrypt,
    "decrypt": _cmd_decrypt,
    "inspect": _cmd_inspect,
    "fingerprint": _cmd_fingerprint,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=config.LOG_CONFIG["level"], format=config.LOG_CONFIG["format"])

    try:
        return COMMANDS[args.command](args)
    except AESError as e:
        _emit(args, ErrorMessage(op=args.command, error=str(e)), f"✗ {args.command} failed: {e}")
        return EXIT_FAILED
    except (OSError, ValueError) as e:
        # unreadable input file or malformed hex
        _emit(args, ErrorMessage(op=args.command, error=str(e)), f"Error: {e}")
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
