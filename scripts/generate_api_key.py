#!/usr/bin/env python3
"""
Generate an API key for one owner and print the matching API_KEYS entry.

The raw key is shown once; only its SHA-256 digest goes into configuration.

Usage:
    python scripts/generate_api_key.py team-finance

Output:
    key:       ars-5f1c...
    API_KEYS='{"<sha256 hex>": "team-finance"}'
"""

import json
import sys

from agentic_rag.services.auth import api_keys_entry, generate_api_key


def main(argv: list[str]) -> int:
    if len(argv) != 2:
        print(f"usage: {argv[0]} <owner_id>", file=sys.stderr)
        return 2

    raw_key, key_prefix, key_hash = generate_api_key()
    entry = api_keys_entry(key_hash, argv[1])

    print(f"key:       {raw_key}")
    print(f"prefix:    {key_prefix}")
    print(f"API_KEYS='{json.dumps(entry)}'")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
