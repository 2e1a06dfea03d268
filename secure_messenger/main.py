"""
Secure Messenger - Command Line Entry Point

Subcommands:
    keygen   create an identity (optionally into a keystore)
    pubkey   print the public key for a private key
    list     list keystore identities
    send     sign-then-encrypt a message for a receiver
    receive  decrypt-then-verify a package
    demo     Alice/Bob walkthrough

Private keys are read from an environment variable or an encrypted
keystore, never from the command line.
"""

import argparse
import getpass
import json
import logging
import os
import sys
from typing import List, Optional

from .core_crypto.keys import KeyPair, public_key_from_private
from .errors import InvalidKeyError, SecureMessengerError
from .keystore.keystore import open_keystore
from .messaging.cipher import decode_package, encode_package
from .messaging.secure_channel import SecureChannel

logger = logging.getLogger(__name__)

DEFAULT_KEY_ENV = "SECURE_MESSENGER_PRIVATE_KEY"
EXIT_OK = 0
EXIT_UNVERIFIED = 1
EXIT_ERROR = 2


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _passphrase(args) -> str:
    if args.passphrase_env:
        value = os.environ.get(args.passphrase_env)
        if value is None:
            raise SecureMessengerError(f"environment variable {args.passphrase_env} is not set")
        return value
    return getpass.getpass("Keystore passphrase: ")


def _load_identity(args) -> KeyPair:
    """Resolve the caller's own key pair from a keystore or environment."""
    if args.keystore:
        if not args.label:
            raise SecureMessengerError("--label is required with --keystore")
        return open_keystore(args.keystore).unlock(args.label, _passphrase(args))

    value = os.environ.get(args.key_env)
    if not value:
        raise InvalidKeyError(f"environment variable {args.key_env} is not set")
    return KeyPair.from_private_key(value)


def cmd_keygen(args) -> int:
    if args.keystore:
        if not args.label:
            raise SecureMessengerError("--label is required with --keystore")
        key_pair = open_keystore(args.keystore).generate(args.label, _passphrase(args))
        _print_json({
            'label': args.label,
            'public_key': key_pair.public_hex,
            'keystore': args.keystore,
        })
    else:
        key_pair = KeyPair.generate()
        _print_json({
            'public_key': key_pair.public_hex,
            'private_key': key_pair.private_hex(),
        })
    return EXIT_OK


def cmd_pubkey(args) -> int:
    value = os.environ.get(args.key_env)
    if not value:
        raise InvalidKeyError(f"environment variable {args.key_env} is not set")
    print(public_key_from_private(value))
    return EXIT_OK


def cmd_list(args) -> int:
    store = open_keystore(args.keystore)
    _print_json([
        {'label': label, 'public_key': store.public_key(label)}
        for label in store.labels()
    ])
    return EXIT_OK


def cmd_send(args) -> int:
    identity = _load_identity(args)
    print(SecureChannel(identity).send_to(args.message, args.to))
    return EXIT_OK


def cmd_receive(args) -> int:
    identity = _load_identity(args)
    result = SecureChannel(identity).receive_from(args.package, args.sender)
    _print_json({
        'verified': result.verified,
        'message': result.display_text(),
        'timestamp': result.timestamp,
        'from': result.sender,
    })
    return EXIT_OK if result.verified else EXIT_UNVERIFIED


def cmd_demo(args) -> int:
    print("Secure Messaging Demo: sign-then-encrypt")
    print("=" * 70)

    alice = KeyPair.generate()
    bob = KeyPair.generate()
    print(f"  Alice public key: {alice.public_hex[:64]}...")
    print(f"  Bob public key:   {bob.public_hex[:64]}...")

    package = SecureChannel(alice).send_to(args.message, bob.public_hex)
    print(f"\n  Package ({len(package)} chars): {package[:48]}...")

    result = SecureChannel(bob).receive_from(package, alice.public_hex)
    print(f"  Bob verified: {result.verified}")
    print(f"  Bob reads:    {result.display_text()}")
    print(f"  From Alice:   {result.sender == alice.public_hex}")

    raw = bytearray(decode_package(package))
    raw[len(raw) // 2] ^= 0x01
    tampered = SecureChannel(bob).receive_from(encode_package(bytes(raw)), alice.public_hex)
    print(f"\n  Tampered package verified: {tampered.verified}")
    print(f"  Bob reads:    {tampered.display_text()}")

    carol = KeyPair.generate()
    stolen = SecureChannel(carol).receive_from(package, alice.public_hex)
    print(f"  Carol (wrong key) verified: {stolen.verified}")

    ok = result.verified and not tampered.verified and not stolen.verified
    print("=" * 70)
    print(f"Overall: {'protocol behaved as expected' if ok else 'UNEXPECTED RESULT'}")
    return EXIT_OK if ok else EXIT_ERROR


def _add_identity_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--key-env", default=DEFAULT_KEY_ENV,
                        help=f"environment variable holding your private key (default {DEFAULT_KEY_ENV})")
    parser.add_argument("--keystore", help="keystore file to unlock your identity from")
    parser.add_argument("--label", help="identity label inside the keystore")
    parser.add_argument("--passphrase-env",
                        help="environment variable holding the keystore passphrase")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secure-messenger",
        description="Sign-then-encrypt messaging over secp256k1",
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("keygen", help="generate a new identity")
    p.add_argument("--keystore", help="store the identity in this keystore")
    p.add_argument("--label", help="identity label inside the keystore")
    p.add_argument("--passphrase-env",
                   help="environment variable holding the keystore passphrase")
    p.set_defaults(func=cmd_keygen)

    p = sub.add_parser("pubkey", help="print the public key for a private key")
    p.add_argument("--key-env", default=DEFAULT_KEY_ENV)
    p.set_defaults(func=cmd_pubkey)

    p = sub.add_parser("list", help="list keystore identities")
    p.add_argument("--keystore", required=True)
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("send", help="encrypt a message")
    _add_identity_options(p)
    p.add_argument("--to", required=True, help="receiver public key (hex)")
    p.add_argument("message")
    p.set_defaults(func=cmd_send)

    p = sub.add_parser("receive", help="decrypt and verify a package")
    _add_identity_options(p)
    p.add_argument("--sender", required=True, help="sender public key (hex)")
    p.add_argument("package")
    p.set_defaults(func=cmd_receive)

    p = sub.add_parser("demo", help="run the Alice/Bob walkthrough")
    p.add_argument("--message", default="Meet at midnight")
    p.set_defaults(func=cmd_demo)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for Secure Messenger."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except (SecureMessengerError, ValueError) as exc:
        logger.debug(f"{args.command} failed: {type(exc).__name__}")
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
