#!/usr/bin/env python3
"""
Mint an access token for the mutating worksheet endpoints.

There is no login endpoint; operators mint tokens with the same
JWT_SECRET_KEY the API verifies with.

Usage:
    python scripts/create_token.py
    python scripts/create_token.py --subject ops@example.com --minutes 120

    curl -H "Authorization: Bearer $(python scripts/create_token.py)" ...
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Create an access token for the Worksheet Library API"
    )
    parser.add_argument(
        "--subject",
        default="admin",
        help="Identity placed in the token's sub claim (default: admin)",
    )
    parser.add_argument(
        "--minutes",
        type=int,
        help="Lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args()

    from app.core.security import create_access_token

    expires_delta = timedelta(minutes=args.minutes) if args.minutes else None
    print(create_access_token(args.subject, expires_delta=expires_delta))


if __name__ == "__main__":
    main()
