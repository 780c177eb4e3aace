# cli.py
# -----------------------------------------------------------------------------
# Export one Outlook folder into monthly gzip-compressed MMDF archives.
#
# Usage examples (PowerShell / CMD):
#   # List every folder with its recursive item count
#   outlook-mmdf-export --list
#
#   # Export up to 5000 Inbox messages created from 2023-01-15 on
#   outlook-mmdf-export ^
#     --folder Inbox ^
#     --dir "D:\Archive" ^
#     --count 5000 ^
#     --start-date 20230115
#
#   # Export one quarter, resolving Exchange senders through the address book
#   outlook-mmdf-export --folder "Sent Items" --dir out ^
#     --start-date 20230101 --end-date 20230401 --count 100000 --ab
#
# Output: <dir>\<folder>_<YYYYMM>.mmdf.gz, one file per month.
# -----------------------------------------------------------------------------

import argparse
import logging
import os
import sys
from datetime import datetime

from .archive import ArchiveWriter
from .date_range import resolve_window
from .engine import ExportEngine
from .errors import ExportError
from .extract import MessageExtractor
from .folders import build_folder_tree, find_folder, format_folder_listing
from .items import ItemSource

logger = logging.getLogger(__name__)

DAY_FORMAT = "%Y%m%d"


def parse_day(value):
    """argparse type for YYYYMMDD days."""
    try:
        return datetime.strptime(value, DAY_FORMAT)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYYMMDD, e.g. 20060102)")


def build_parser():
    ap = argparse.ArgumentParser(description="Export an Outlook folder → monthly MMDF archives (.mmdf.gz)")
    ap.add_argument("--list", action="store_true", help="List folders")
    ap.add_argument("--ab", action="store_true", help="Use the address book to translate email addresses")
    ap.add_argument("--folder", default="", help="Folder name to save")
    ap.add_argument("--dir", default=".", help="Target directory to save")
    ap.add_argument("--count", type=int, default=1000, help="Total emails to save")
    ap.add_argument("--start-date", type=parse_day, default=None, help="Start date of emails to save (e.g., 20060102)")
    ap.add_argument("--end-date", type=parse_day, default=None, help="End date of emails to save (e.g., 20060102)")
    ap.add_argument("--progress-every", type=int, default=500, help="Log progress every N messages (0 = disabled)")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                    help="Logging level")
    return ap


def setup_logging(level):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def export_folder(session, folder, args):
    """Export `folder` per `args`; returns the engine (stats on .stats)."""
    out_dir = os.path.normpath(args.dir)
    os.makedirs(out_dir, exist_ok=True)

    if args.ab:
        session.enable_address_book()

    source = ItemSource(folder.handle.Items)
    try:
        source.sort()
    except Exception as e:
        logger.warning("Sort: %s", e)
    total = source.count()

    window = resolve_window(source, total, args.count, args.start_date, args.end_date)
    logger.info("Folder %s: total %d items, from: %d, to: %d, count: %d",
                folder.name, total, window.start, window.end, window.count)

    engine = ExportEngine(
        source=source,
        extractor=MessageExtractor(session.converter, session.stream),
        writer=ArchiveWriter(out_dir, folder.name),
        progress_every=args.progress_every,
    )
    try:
        engine.run(window, total)
    finally:
        print(engine.stats.summary())
    return engine


def run(args, session):
    folders, _ = build_folder_tree(session.namespace)
    if args.list:
        for line in format_folder_listing(folders):
            print(line)

    if not args.folder:
        return 0

    folder = find_folder(folders, args.folder)
    export_folder(session, folder, args)
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        from .outlook import OutlookSession
    except ImportError:
        print("Error: pywin32 is not installed. Run:  pip install pywin32", file=sys.stderr)
        return 1

    try:
        with OutlookSession() as session:
            return run(args, session)
    except (ExportError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
