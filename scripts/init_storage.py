#!/usr/bin/env python3
"""
Provision the resume storage bucket outside of application startup.

Creates the bucket and applies the public-read policy if the bucket does
not exist yet. Useful in deploy pipelines where the API runs with
STORAGE_SKIP_BUCKET_CHECK=true.

Usage:
    python scripts/init_storage.py
    python scripts/init_storage.py --print-policy

Requires:
    - .env file (or environment) with STORAGE_* settings
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from resume_storage.api.dependencies import build_storage_service
from resume_storage.config.settings import get_settings
from resume_storage.core.storage.models import StorageError
from resume_storage.core.storage.policy import build_public_read_policy


async def provision() -> bool:
    settings = get_settings()

    # This script exists to provision, so never honour the skip flag here
    settings = settings.model_copy(update={"storage_skip_bucket_check": False})
    service = build_storage_service(settings)

    print(f"Provisioning bucket: {service.bucket_name}")

    try:
        result = await service.ensure_bucket_ready()
    except StorageError as e:
        print(f"ERROR ({e.kind.value}): {e.message}")
        return False

    print(f"bucket-{result.value}:{service.bucket_name}")
    return True


def main():
    parser = argparse.ArgumentParser(description='Provision the resume storage bucket')
    parser.add_argument(
        '--print-policy',
        action='store_true',
        help='Print the public-read policy for the configured bucket and exit',
    )
    args = parser.parse_args()

    if args.print_policy:
        bucket = get_settings().storage_bucket
        print(json.dumps(build_public_read_policy(bucket), indent=2))
        sys.exit(0)

    success = asyncio.run(provision())

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
