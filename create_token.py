#!/usr/bin/env python3
"""
Print a signed bearer token for an email.

Useful for scripting against the API without going through
``/api/login``.  The token is signed with ``JWT_SECRET`` from the
environment, so it is only accepted by servers sharing that secret.

Usage:
    python create_token.py --email admin@ex.com --days 365
"""

import argparse
import sys
from typing import List, Optional

from linkshelf_api.app.core.security import create_access_token


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Issue a LinkShelf bearer token.")
    ap.add_argument("--email", required=True, help="Email the token asserts")
    ap.add_argument("--days", type=int, default=7, help="Lifetime in days (default: 7)")
    args = ap.parse_args(argv)

    if args.days < 1:
        print("[!] --days must be at least 1.", file=sys.stderr)
        return 1

    print(create_access_token({"email": args.email}, expires_delta=args.days * 24 * 60 * 60))
    return 0


if __name__ == "__main__":
    sys.exit(main())
