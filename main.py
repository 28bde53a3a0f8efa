#!/usr/bin/env python3
"""
LibraryHub admin CLI.

Usage:
  python main.py create-admin --email root@library.org --password s3cret \\
      --name "Ana Souza" --cpf 12345678901 --address "Rua A, 1" \\
      --phone "+55 11 99999-0000" --birth-date 1980-05-17
  python main.py encrypt "some text"
  python main.py decrypt "<iv_base64>:<ciphertext_base64>"
  python main.py serve --port 8000

create-admin seeds the first administrator. Every /admin write requires a
token from an existing user, so the first one has to come from here.

Environment variables (or .env):
  AES_KEY, ALGORITHM, JWT_SECRET   required
  DATABASE_URL                     optional, defaults to ./libraryhub.db
"""

import argparse
import sys
from datetime import date
from typing import Optional

import uvicorn
from sqlalchemy.exc import IntegrityError

from auth.crypto import AESCipher
from auth.models import Admin, User
from auth.service import AuthConfig, AuthService
from auth.store import UserStore
from core.config import get_settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="libraryhub",
        description="LibraryHub administration commands.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    admin = sub.add_parser("create-admin", help="Create a user with a linked admin record.")
    admin.add_argument("--email", required=True)
    admin.add_argument("--password", required=True)
    admin.add_argument("--name", required=True)
    admin.add_argument("--cpf", required=True)
    admin.add_argument("--address", required=True)
    admin.add_argument("--phone", required=True)
    admin.add_argument("--birth-date", required=True, type=date.fromisoformat, help="YYYY-MM-DD")

    enc = sub.add_parser("encrypt", help="Encrypt TEXT into an iv:ciphertext envelope.")
    enc.add_argument("text")

    dec = sub.add_parser("decrypt", help="Decrypt an iv:ciphertext envelope.")
    dec.add_argument("envelope")

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    return parser


def create_admin(store: UserStore, auth: AuthService, args: argparse.Namespace) -> int:
    """Insert the user + admin pair. Returns a process exit code."""
    if store.get_by_email(args.email):
        print(f"  [!] A user with email {args.email!r} already exists.")
        return 1
    if store.get_admin_by_cpf(args.cpf):
        print(f"  [!] An admin with CPF {args.cpf!r} already exists.")
        return 1
    try:
        user_id = store.create_user(
            User(
                email=args.email,
                password=auth.hash_password(args.password),
                name=args.name,
                is_active=True,
                is_admin=True,
            )
        )
        admin_id = store.create_admin(
            Admin(
                address=args.address,
                birth_date=args.birth_date.isoformat(),
                cpf=args.cpf,
                name=args.name,
                phone=args.phone,
                user=user_id,
            )
        )
    except IntegrityError as e:
        print(f"  [!] Could not create admin: {e.orig}")
        return 1
    print(f"  Created admin {admin_id} (user {user_id}, {args.email})")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValueError as e:
        print(f"  [!] Configuration error: {e}")
        return 2

    if args.command == "encrypt":
        print(AESCipher(settings.aes_key, settings.algorithm).encrypt(args.text))
        return 0
    if args.command == "decrypt":
        try:
            print(AESCipher(settings.aes_key, settings.algorithm).decrypt(args.envelope))
        except ValueError as e:
            print(f"  [!] Could not decrypt: {e}")
            return 1
        return 0
    if args.command == "serve":
        uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    store = UserStore(settings.database_url)
    try:
        auth = AuthService(AuthConfig.from_settings(settings), users=store, admins=store)
        return create_admin(store, auth, args)
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
