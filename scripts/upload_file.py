#!/usr/bin/env python3
"""
Upload a local file into a scene, or print a presigned upload for it.

Handy for checking scene configuration and bucket credentials without
running the API.

Usage:
    python scripts/upload_file.py 1 ./report.pdf
    python scripts/upload_file.py 1 ./report.pdf --presign --expires 600
    python scripts/upload_file.py 1 ./notes.txt --attachment --path 2024 --path q3

Requires:
    - .env file with COS_* settings, SCENES and CONTENT_TYPES
"""

import asyncio
import json
import os
import sys
from pathlib import Path

# Add the project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


async def run(args) -> bool:
    from cosgate.api.dependencies import (
        get_credential_source,
        get_presign_service,
        get_storage_client,
        get_upload_config,
    )
    from cosgate.config.settings import get_settings
    from cosgate.core.storage.errors import StorageError
    from cosgate.core.storage.models import DispositionType

    settings = get_settings()
    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: Missing configuration: {', '.join(missing)}")
        return False

    service = get_presign_service(
        settings,
        get_upload_config(settings),
        get_storage_client(settings),
        get_credential_source(settings),
    )
    disposition = DispositionType.ATTACHMENT if args.attachment else DispositionType.INLINE

    try:
        if args.presign:
            info = await service.get_upload_presigned_info(
                args.scene,
                disposition,
                os.path.basename(args.file),
                args.expires,
                *args.path,
            )
            print(json.dumps({
                "upload_url": info.upload_url,
                "file_path": info.file_path,
                "headers": info.headers,
            }, indent=2))
        else:
            file_path = await service.put_file(args.scene, disposition, args.file, *args.path)
            print(f"[OK] Uploaded: {file_path}")
            print(await service.get_file_url(file_path, args.expires))
    except StorageError as e:
        print(f"[ERR] {type(e).__name__}: {e}")
        return False

    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Upload a file into a scene')
    parser.add_argument('scene', type=int, help='Scene type')
    parser.add_argument('file', help='Local file to upload')
    parser.add_argument('--path', action='append', default=[], help='Extra path segment (repeatable)')
    parser.add_argument('--attachment', action='store_true', help='Force attachment disposition')
    parser.add_argument('--presign', action='store_true', help='Print a presigned PUT instead of uploading')
    parser.add_argument('--expires', type=int, default=900, help='URL lifetime in seconds')
    args = parser.parse_args()

    if not args.presign and not os.path.exists(args.file):
        print(f"ERROR: Cannot find {args.file}")
        sys.exit(1)

    success = asyncio.run(run(args))
    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
