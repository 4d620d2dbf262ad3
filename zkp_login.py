"""Command line interface for the zero-knowledge password login."""

from __future__ import annotations

import argparse
import getpass
import json
import sys
from pathlib import Path

from zklogin.auth import AuthOrchestrator, authenticate, register_user
from zklogin.config import DEFAULT_STORE_PATH, DEFAULT_VKEY_PATH, configure_logging
from zklogin.crypto import DEFAULT_KEY, load_verification_key, save_verification_key
from zklogin.errors import NotFound, SystemFault, ZKLoginError
from zklogin.store import open_store


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE_PATH,
        help=f"Location of the JSON credential store (default: {DEFAULT_STORE_PATH})",
    )
    parser.add_argument(
        "--key",
        default=DEFAULT_VKEY_PATH,
        help=f"Location of the verification key (default: {DEFAULT_VKEY_PATH})",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen_parser = subparsers.add_parser("keygen", help="Write the verification key file")
    keygen_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing key file",
    )

    signup_parser = subparsers.add_parser("signup", help="Register a password commitment")
    signup_parser.add_argument("account", help="Account identifier, e.g. an email address")
    signup_parser.add_argument(
        "--password",
        help="Password to commit to. Prompted for when omitted.",
    )

    login_data_parser = subparsers.add_parser("login-data", help="Show the stored salt and commitment")
    login_data_parser.add_argument("account", help="Account identifier")

    login_parser = subparsers.add_parser("login", help="Prove knowledge of the password")
    login_parser.add_argument("account", help="Account identifier")
    login_parser.add_argument(
        "--password",
        help="Password to prove. Prompted for when omitted.",
    )

    return parser.parse_args(argv)


def _password(namespace: argparse.Namespace) -> str:
    return namespace.password if namespace.password is not None else getpass.getpass("Password: ")


def main(argv: list[str] | None = None) -> int:
    namespace = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging(namespace.log_level.upper())

    if namespace.command == "keygen":
        key_path = Path(namespace.key)
        if key_path.exists() and not namespace.force:
            print(f"{key_path} already exists, use --force to overwrite", file=sys.stderr)
            return 1
        save_verification_key(DEFAULT_KEY, key_path)
        print(json.dumps({"path": str(key_path), "protocol": DEFAULT_KEY.protocol}, indent=2))
        return 0

    store = open_store(namespace.store)
    try:
        key = load_verification_key(namespace.key)
    except SystemFault as exc:
        print(f"{exc}. Run 'keygen' first.", file=sys.stderr)
        return 2
    orchestrator = AuthOrchestrator(store=store, verification_key=key)

    try:
        if namespace.command == "signup":
            payload = register_user(orchestrator, namespace.account, _password(namespace))
            print(json.dumps(payload, indent=2))
            return 0 if payload["success"] else 1

        if namespace.command == "login-data":
            try:
                credential = orchestrator.login_data(namespace.account)
            except NotFound:
                print(f"Unknown account {namespace.account}", file=sys.stderr)
                return 1
            print(json.dumps(credential.to_dict(), indent=2))
            return 0

        if namespace.command == "login":
            result = authenticate(orchestrator, namespace.account, _password(namespace))
            print(json.dumps({k: result[k] for k in ("account_id", "state", "success")}, indent=2))
            return 0 if result["success"] else 1
    except ZKLoginError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    raise RuntimeError("Unreachable")


if __name__ == "__main__":
    raise SystemExit(main())
