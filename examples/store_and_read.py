#!/usr/bin/env python3
"""
Store and Read Example

Uploads a text blob straight to a Walrus publisher, then reads it back
from the aggregator and prints its metadata. Testnet publishers accept
uploads without payment, so this skips the bridge and swap phases.

Set WALRELAY_PUBLISHER_URL / WALRELAY_AGGREGATOR_URL to use other endpoints.

Run with: python examples/store_and_read.py "some text"
"""

import asyncio
import os
import sys

from walrelay import StorageClient, WalrusConfig, configure_logging
from walrelay.errors import RelayerError


async def main() -> None:
    configure_logging("INFO")

    print("=" * 60)
    print("walrelay - Store and Read")
    print("=" * 60)
    print()

    overrides = {
        key: value
        for key, value in {
            "publisher_url": os.environ.get("WALRELAY_PUBLISHER_URL"),
            "aggregator_url": os.environ.get("WALRELAY_AGGREGATOR_URL"),
        }.items()
        if value
    }
    client = StorageClient(WalrusConfig(**overrides))
    text = sys.argv[1] if len(sys.argv) > 1 else "hello walrus"

    try:
        blob = await client.store_text(text, retention_epochs=1)
        print(f"Blob ID:           {blob.blob_id}")
        print(f"Already certified: {blob.already_certified}")
        print(f"End epoch:         {blob.storage_end_epoch}")
        print()

        content = await client.read(blob.blob_id)
        print(f"Read back:         {content.decode('utf-8')!r}")
    except RelayerError as e:
        print(f"Failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
