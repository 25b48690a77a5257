"""Command line access to a SharePoint site through filestore.

Connection settings come from the environment (or a .env file):
SHAREPOINT_SITE_URL, SHAREPOINT_USERNAME, SHAREPOINT_PASSWORD.

Usage:
    python -m filestore.scripts.filestore_cli list
    python -m filestore.scripts.filestore_cli upload report.pdf --parent "/sites/docs/Shared Documents"
    python -m filestore.scripts.filestore_cli download "/sites/docs/Shared Documents/report.pdf" -o report.pdf
    python -m filestore.scripts.filestore_cli delete "/sites/docs/Shared Documents/report.pdf"
"""

import argparse
import asyncio
import sys
from pathlib import Path

from filestore.config import get_settings
from filestore.core.exceptions import FilestoreError
from filestore.core.logging import configure_logging, get_logger
from filestore.core.registry import get_filestore
from filestore.core.storage import Filestore
from filestore.schemas.file import FileModel

logger = get_logger(__name__)


async def run_command(store: Filestore, args: argparse.Namespace) -> int:
    """Run one CLI command against a Filestore.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    if args.command == "list":
        result = await store.list(FileModel())
        sys.stdout.buffer.write(result.data or b"")
        sys.stdout.buffer.write(b"\n")
        return 0

    if args.command == "upload":
        local_path = Path(args.file)
        name = args.name or local_path.name
        with local_path.open("rb") as fh:
            await store.upload(
                FileModel(parent_id=args.parent, name=name, content=fh)
            )
        print(f"Uploaded {local_path} to {args.parent.rstrip('/')}/{name}")
        return 0

    if args.command == "download":
        result = await store.download(FileModel(sources_id=args.path))
        if args.output:
            Path(args.output).write_bytes(result.data)
            print(f"Saved {len(result.data)} bytes to {args.output}")
        else:
            sys.stdout.buffer.write(result.data)
        return 0

    if args.command == "delete":
        await store.delete(FileModel(sources_id=args.path))
        print(f"Moved {args.path} to the recycle bin")
        return 0

    raise ValueError(f"Unknown command: {args.command}")


async def run(args: argparse.Namespace) -> int:
    """Resolve the configured session and run the command."""
    settings = get_settings()

    try:
        store = get_filestore(settings.sharepoint_config())
    except FilestoreError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    try:
        return await run_command(store, args)
    except (FilestoreError, OSError) as e:
        logger.error(
            "filestore_cli_failed",
            command=args.command,
            error_type=type(e).__name__,
            error=str(e),
        )
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        await store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="List, upload, download and delete files on SharePoint",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List items of the Custom list")

    upload = subparsers.add_parser("upload", help="Upload a local file")
    upload.add_argument("file", help="Local file to upload")
    upload.add_argument(
        "--parent",
        required=True,
        help="Server-relative destination folder",
    )
    upload.add_argument("--name", help="Target file name (default: local name)")

    download = subparsers.add_parser("download", help="Download a file")
    download.add_argument("path", help="Server-relative file path")
    download.add_argument("-o", "--output", help="Write to file instead of stdout")

    delete = subparsers.add_parser("delete", help="Move a file to the recycle bin")
    delete.add_argument("path", help="Server-relative file path")

    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    configure_logging()

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
