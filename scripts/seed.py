#!/usr/bin/env python3
"""
Script to load demo users and books into a running Stacks server.
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from stacks.core.client import StacksClient

USERS = [
    ("Alice Reader", "alice@example.com", "student"),
    ("Bob Teacher", "bob@example.com", "teacher"),
    ("Ava Admin", "admin@example.com", "admin"),
]

BOOKS = [
    ("Dune", "Frank Herbert", 2),
    ("The Left Hand of Darkness", "Ursula K. Le Guin", 1),
    ("Clean Code", "Robert C. Martin", 3),
]


def seed(client: StacksClient) -> bool:
    ok = True
    for name, email, role in USERS:
        result = client.add_user(name, email, role)
        if result.get("success"):
            print(f"✓ User {name} ({role})")
        else:
            ok = False
            print(f"✗ User {name}: {result.get('message')}")
    for title, author, copies in BOOKS:
        result = client.add_book(title, author, copies)
        if result.get("success"):
            print(f"✓ Book {title} x{copies}")
        else:
            ok = False
            print(f"✗ Book {title}: {result.get('message')}")
    return ok


def main():
    parser = argparse.ArgumentParser(
        description="Load demo users and books into Stacks"
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="Base URL of the Stacks API (e.g., http://localhost:8080/v1/api)"
    )
    args = parser.parse_args()

    with StacksClient(api_url=args.api_url) as client:
        sys.exit(0 if seed(client) else 1)


if __name__ == "__main__":
    main()
