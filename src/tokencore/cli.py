"""Command-line tooling for hashing, HMAC, Base64 and compact tokens."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from .config import ConfigError, load_config
from .crypto import sha2
from .crypto.algorithms import Algorithm, HashAlgorithm
from .crypto.codec import b64decode, b64encode, b64url_decode, b64url_encode
from .crypto.errors import CredentialError
from .crypto.mac import hmac_digest
from .tokens import sign_claims, verify

_HASH_CHOICES = sorted(sha2.VARIANTS)


def _read_input(args: argparse.Namespace) -> bytes:
    if args.text is not None:
        return args.text.encode("utf-8")
    return sys.stdin.buffer.read()


def _resolve_secret(args: argparse.Namespace) -> str:
    if args.secret is not None:
        return args.secret
    return load_config().signing_secret()


def _parse_claim(raw: str) -> tuple[str, Any]:
    name, separator, value = raw.partition("=")
    if not separator or not name:
        raise argparse.ArgumentTypeError(f"Claims must look like name=value, got '{raw}'")
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        parsed = value
    return name, parsed


def _cmd_digest(args: argparse.Namespace) -> int:
    print(sha2.new(args.algorithm, _read_input(args)).hexdigest())
    return 0


def _cmd_hmac(args: argparse.Namespace) -> int:
    algorithm = HashAlgorithm(sha2.VARIANTS[args.algorithm])
    print(hmac_digest(_read_input(args), args.key, algorithm).hex())
    return 0


def _cmd_b64encode(args: argparse.Namespace) -> int:
    encode = b64url_encode if args.url else b64encode
    print(encode(_read_input(args)))
    return 0


def _cmd_b64decode(args: argparse.Namespace) -> int:
    decode = b64url_decode if args.url else b64decode
    text = _read_input(args).decode("ascii").strip()
    sys.stdout.buffer.write(decode(text))
    sys.stdout.flush()
    return 0


def _cmd_sign(args: argparse.Namespace) -> int:
    claims = dict(args.claim or [])
    print(sign_claims(claims, _resolve_secret(args), args.algorithm))
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    token = args.token if args.token is not None else sys.stdin.read().strip()
    algorithms = args.algorithm or [alg.value for alg in Algorithm]
    if verify(token, _resolve_secret(args), algorithms):
        print("valid")
        return 0
    print("invalid", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SHA-2, HMAC, Base64 and token tooling")
    subparsers = parser.add_subparsers(dest="command", required=True)

    digest_parser = subparsers.add_parser("digest", help="Print the hex digest of the input")
    digest_parser.add_argument("--algorithm", choices=_HASH_CHOICES, default="sha256")
    digest_parser.add_argument("--text", help="Input text (defaults to stdin)")
    digest_parser.set_defaults(func=_cmd_digest)

    hmac_parser = subparsers.add_parser("hmac", help="Print the hex HMAC of the input")
    hmac_parser.add_argument("--algorithm", choices=_HASH_CHOICES, default="sha256")
    hmac_parser.add_argument("--key", required=True, help="HMAC key")
    hmac_parser.add_argument("--text", help="Input text (defaults to stdin)")
    hmac_parser.set_defaults(func=_cmd_hmac)

    encode_parser = subparsers.add_parser("b64encode", help="Base64-encode the input")
    encode_parser.add_argument("--url", action="store_true", help="Use the unpadded URL alphabet")
    encode_parser.add_argument("--text", help="Input text (defaults to stdin)")
    encode_parser.set_defaults(func=_cmd_b64encode)

    decode_parser = subparsers.add_parser("b64decode", help="Decode Base64 input")
    decode_parser.add_argument("--url", action="store_true", help="Use the unpadded URL alphabet")
    decode_parser.add_argument("--text", help="Encoded text (defaults to stdin)")
    decode_parser.set_defaults(func=_cmd_b64decode)

    sign_parser = subparsers.add_parser("sign", help="Sign claims into a compact token")
    sign_parser.add_argument(
        "--claim",
        action="append",
        type=_parse_claim,
        help="Payload claim as name=value (JSON values allowed); repeatable",
    )
    sign_parser.add_argument(
        "--algorithm", choices=[alg.value for alg in Algorithm], default=Algorithm.HS256.value
    )
    sign_parser.add_argument("--secret", help="Signing secret (defaults to TOKEN_SECRET)")
    sign_parser.set_defaults(func=_cmd_sign)

    verify_parser = subparsers.add_parser("verify", help="Verify a compact token signature")
    verify_parser.add_argument("token", nargs="?", help="Compact token (defaults to stdin)")
    verify_parser.add_argument(
        "--algorithm",
        action="append",
        choices=[alg.value for alg in Algorithm],
        help="Accepted algorithm; repeatable (defaults to all HS algorithms)",
    )
    verify_parser.add_argument("--secret", help="Verification secret (defaults to TOKEN_SECRET)")
    verify_parser.set_defaults(func=_cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except (CredentialError, ConfigError) as exc:
        parser.error(str(exc))
    except UnicodeDecodeError as exc:
        parser.error(f"Input is not valid ASCII: {exc}")
    return 1


if __name__ == "__main__":  # pragma: no cover - manual execution path
    raise SystemExit(main())
