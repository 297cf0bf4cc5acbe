#!/usr/bin/env python3
"""
Reset a user's password in the LinkShelf SQLite database.

This script does not read or reveal any existing password.  It sets a
new hash, in the same format ``/api/login`` checks, for the given
email.

Usage:
    python reset_password.py --db ./linkshelf.db --email a@x.com --password "NewPass"

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sqlite3
import sys
from typing import List, Optional

from linkshelf_api.app.core.security import hash_password


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Reset a LinkShelf user's password (SQLite).")
    ap.add_argument("--db", required=True, help="Path to the SQLite DB file (e.g. ./linkshelf.db)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    if not os.path.exists(args.db):
        print(f"[!] DB not found: {args.db}", file=sys.stderr)
        return 1

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if not new_password:
        print("[!] Empty password is not allowed.", file=sys.stderr)
        return 1

    conn = sqlite3.connect(args.db)
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM app_users WHERE email = ?", (args.email,))
        if cur.fetchone() is None:
            print(f"[!] No user found with email: {args.email}", file=sys.stderr)
            return 2
        cur.execute(
            "UPDATE app_users SET password_hash = ? WHERE email = ?",
            (hash_password(new_password), args.email),
        )
        conn.commit()
        print(f"[+] Password updated for user: {args.email}")
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
