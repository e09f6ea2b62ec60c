#!/usr/bin/env python3
"""
Generate secrets for a Snippr API deployment.

Prints an ``ENCRYPTION_KEY`` (32 random bytes, hex encoded) and a
``SECRET_KEY`` for signing access tokens, in ``NAME=value`` form so the
output can be appended to an environment file.

Usage:
    python generate_keys.py >> .env
    python generate_keys.py --only ENCRYPTION_KEY
"""

import argparse
import secrets

from snippr_api.app.core.crypto import KEY_LENGTH


def generate() -> dict:
    return {
        "ENCRYPTION_KEY": secrets.token_hex(KEY_LENGTH),
        "SECRET_KEY": secrets.token_urlsafe(48),
    }


def main():
    ap = argparse.ArgumentParser(description="Generate Snippr API secrets.")
    ap.add_argument("--only", choices=["ENCRYPTION_KEY", "SECRET_KEY"], help="Print just one of the secrets.")
    args = ap.parse_args()

    for name, value in generate().items():
        if args.only and name != args.only:
            continue
        print(f"{name}={value}")


if __name__ == "__main__":
    main()
