#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from quill.auth.users import register
from quill.config import Settings
from quill.core.errors import QuillError
from quill.infra.data_store import DataStore


def main() -> None:
    settings = Settings.from_env()
    store = DataStore(settings.resolved_users_path, settings.resolved_posts_path)

    username = input("Username: ").strip()
    email = input("Email: ").strip()

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        user = register(store, username, email, pw1)
    except QuillError as exc:
        raise SystemExit(exc.message)
    print(f"OK -> user #{user.id} in {settings.resolved_users_path}")


if __name__ == "__main__":
    main()
