#!/usr/bin/env python3
"""
Development Token Script

Mints a bearer token for an existing user so the chat endpoints can be
exercised locally. Real tokens come from the accounts service.

Usage:
    python scripts/issue_token.py <user_id> [--minutes N]

Example:
    python scripts/issue_token.py 65f0c1d2e3a4b5c6d7e8f901 --minutes 120

Note: Make sure to run this script from the project root directory.
"""

import sys
import os
import argparse
from datetime import datetime, timedelta, timezone

import jwt
from bson import ObjectId

# Add the project root directory to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

# Import after setting up path
from config import JWT_SECRET_KEY, JWT_ALGORITHM

def create_access_token(user_id: str, minutes: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode({"id": user_id, "exp": expire}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)

def main():
    parser = argparse.ArgumentParser(description="Mint a development bearer token")
    parser.add_argument("user_id", help="ObjectId of the user the token is for")
    parser.add_argument("--minutes", type=int, default=60, help="Token lifetime in minutes")
    args = parser.parse_args()

    if not ObjectId.is_valid(args.user_id):
        print(f"Error: '{args.user_id}' is not a valid ObjectId")
        sys.exit(1)

    token = create_access_token(args.user_id, args.minutes)
    print(f"Bearer token: {token}")

if __name__ == "__main__":
    main()
