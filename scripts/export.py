import argparse
import sys
from dataclasses import dataclass
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent))

import colorama

from mediasync import log
from mediasync.config.database import MediaSyncDB
from mediasync.config.settings import get_config
from mediasync.core.backup import export_to_file, import_from_file
from mediasync.core.local_store import LocalStore
from mediasync.exceptions import BackupParseError


@dataclass
class ExportArgs:
    file: Path
    restore: bool
    yes: bool


def confirm(prompt: str) -> bool:
    answer = input(f"{colorama.Fore.YELLOW}{prompt} [y/N]: {colorama.Style.RESET_ALL}")
    return answer.strip().lower() == "y"


def export_library(store: LocalStore, output_file: Path, assume_yes: bool) -> int:
    if (
        output_file.exists()
        and not assume_yes
        and not confirm(f"File '{output_file}' already exists. Overwrite it?")
    ):
        log.info("Export: Exiting...")
        return 1

    export_to_file(store, output_file)
    return 0


def import_library(store: LocalStore, input_file: Path, assume_yes: bool) -> int:
    if not input_file.exists():
        log.error(f"Export: File '{input_file}' does not exist")
        return 1
    if not assume_yes and not confirm(
        "Importing replaces every local media item and collection. Continue?"
    ):
        log.info("Export: Exiting...")
        return 1

    try:
        import_from_file(store, input_file)
    except BackupParseError as e:
        log.error(f"Export: {e}")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Export the local MediaSync library to a JSON file"
    )
    parser.add_argument(
        "--file",
        "-f",
        required=True,
        help="Input or output JSON file path for export/import",
        type=Path,
    )
    parser.add_argument(
        "--restore",
        "-r",
        action="store_true",
        help="Import the library from a JSON file instead of exporting it",
    )
    parser.add_argument(
        "--yes", "-y", action="store_true", help="Do not ask for confirmation"
    )
    args = ExportArgs(**vars(parser.parse_args(argv)))

    db = MediaSyncDB(get_config().data_path)
    try:
        store = LocalStore(db)
        if args.restore:
            return import_library(store, args.file, args.yes)
        return export_library(store, args.file, args.yes)
    finally:
        db.dispose()


if __name__ == "__main__":
    sys.exit(main())
