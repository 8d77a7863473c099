from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

import yaml

from .config import FixSettings, Settings, SyncSettings, load_settings
from .diagnostics import Diagnostics
from .encoder import Encoder, OutputMode
from .fixer import FlacFixer
from .models import ProcessingError
from .scanner import LibraryScanner
from .sync import LibrarySync, SyncState

LOG_FORMAT = "%(levelname).1s | %(message)s"

C_RESET = "\033[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",  # Cyan
    logging.INFO: "\033[37m",  # Light gray
    logging.WARNING: "\033[33m",  # Yellow
    logging.ERROR: "\033[31m",  # Red
    logging.CRITICAL: "\033[35m",  # Magenta
}

logger = logging.getLogger("flacfix")


class ShortPathFormatter(logging.Formatter):
    def __init__(self, fmt: str, roots: list[Path]) -> None:
        super().__init__(fmt)
        self.roots = [str(root) for root in roots if root]

    def _shorten(self, message: str) -> str:
        for root in self.roots:
            if not message:
                break
            message = message.replace(f"{root}/", "")
        return message

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        return self._shorten(message)


class ColorFormatter(ShortPathFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        if not color:
            return message
        return f"{color}{message}{C_RESET}"


class WarningBufferHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
        except Exception:  # pragma: no cover
            msg = record.getMessage()
        self.records.append(msg)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flacfix",
        description="Fix FLAC tags for LMS and mirror a FLAC library into Opus",
    )
    parser.add_argument("--config", type=Path, help="Path to flacfix.yaml")
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output (show every processed and skipped file)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fix_parser = subparsers.add_parser("fix", help="Merge MusicBrainz ids and embed covers")
    fix_parser.add_argument("path", type=Path, help="FLAC file or directory")
    fix_parser.add_argument(
        "-w",
        "--write",
        action="store_true",
        default=None,
        help="Write changes to disk (default is dry-run)",
    )
    fix_parser.add_argument(
        "--mb-ids",
        dest="fix_mbids",
        action="store_true",
        default=None,
        help="Fix MusicBrainz IDs (merge multiple IDs)",
    )
    fix_parser.add_argument(
        "--embed-cover",
        action="store_true",
        default=None,
        help="Embed the external cover image if no picture is embedded",
    )
    fix_parser.add_argument(
        "--cover-name", default=None, help="Filename for external cover art (default: cover.jpg)"
    )
    fix_parser.add_argument(
        "--merge-tags",
        default=None,
        help="Comma-separated list of tags to merge (overrides defaults)",
    )

    sync_parser = subparsers.add_parser("sync", help="Mirror FLAC files into an Opus tree")
    sync_parser.add_argument("path", type=Path, help="FLAC file or source directory")
    sync_parser.add_argument("output", type=Path, help="Output directory")
    sync_parser.add_argument(
        "--no-prune",
        dest="prune",
        action="store_false",
        default=None,
        help="Do not delete orphaned files in the output directory",
    )
    sync_parser.add_argument("--workers", type=int, default=None, help="Parallel conversions")
    sync_parser.add_argument(
        "--encoder", default=None, help="Encoder command (default: opusenc)"
    )
    sync_parser.add_argument(
        "--encoder-output",
        choices=[mode.value for mode in OutputMode],
        default=None,
        help="How encoder stdout/stderr are handled",
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    if args.command == "fix":
        updates = {
            key: getattr(args, key)
            for key in ("write", "fix_mbids", "embed_cover", "cover_name", "merge_tags")
            if getattr(args, key) is not None
        }
        fix = FixSettings.model_validate({**settings.fix.model_dump(), **updates})
        return settings.model_copy(update={"fix": fix})
    updates = {"output_root": args.output}
    if args.prune is not None:
        updates["prune"] = args.prune
    if args.workers is not None:
        updates["workers"] = args.workers
    if args.encoder is not None:
        updates["encoder"] = args.encoder
    if args.encoder_output is not None:
        updates["output_mode"] = args.encoder_output
    sync = SyncSettings.model_validate({**settings.sync.model_dump(), **updates})
    return settings.model_copy(update={"sync": sync})


def configure_logging(level: int, roots: list[Path]) -> WarningBufferHandler:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    color_handler = logging.StreamHandler()
    color_handler.setFormatter(ColorFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(color_handler)

    warn_buffer = WarningBufferHandler()
    warn_buffer.setFormatter(ShortPathFormatter(LOG_FORMAT, roots))
    root_logger.addHandler(warn_buffer)
    return warn_buffer


def run_fix(settings: Settings, path: Path, diagnostics: Diagnostics) -> int:
    fixer = FlacFixer(settings.fix, diagnostics=diagnostics)
    if path.is_file():
        try:
            result = fixer.fix_file(path)
        except ProcessingError as exc:
            logger.error("Error processing %s: %s", path, exc)
            return 1
        print("\nFiles Processed: 1 / 1")
        _print_fix_totals(settings, int(result.tags_merged), int(result.cover_embedded))
        return 0
    scanner = LibraryScanner(settings.library)
    report = fixer.fix_tree(path, scanner)
    print(f"\nFiles Processed: {len(report.results)} / {report.processed}")
    _print_fix_totals(settings, report.mbids_fixed, report.covers_embedded)
    return 0


def _print_fix_totals(settings: Settings, mbids: int, covers: int) -> None:
    if settings.fix.fix_mbids:
        print(f"Files with MB IDs Fixed: {mbids}")
    if settings.fix.embed_cover:
        print(f"Files with Covers Embedded: {covers}")


def run_sync(settings: Settings, path: Path, diagnostics: Diagnostics) -> int:
    encoder = Encoder(list(settings.sync.encoder), settings.sync.output_mode)
    if not encoder.available():
        logger.error("%s not found in PATH", encoder.executable)
        return 1
    sync = LibrarySync(
        settings.sync,
        LibraryScanner(settings.library),
        encoder=encoder,
        diagnostics=diagnostics,
    )
    if path.is_file():
        outcome = sync.sync_single(path)
        if outcome.state is SyncState.FAILED:
            return 1
        print(f"\nFiles Converted to Opus: {int(outcome.state is SyncState.COMMITTED)}")
        return 0
    report = sync.sync_tree(path)
    print(f"\nFiles Processed: {len(report.outcomes) - report.failed} / {len(report.outcomes)}")
    print(f"Files Converted to Opus: {report.converted}")
    print(f"Files Up To Date: {report.skipped}")
    if report.failed:
        print(f"Files Failed: {report.failed}")
    if report.prune is not None:
        print(
            f"Pruned: {report.prune.files_removed} files, "
            f"{report.prune.directories_removed} directories"
        )
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_overrides(load_settings(args.config), args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        parser.error(str(exc))

    if args.command == "fix" and not (settings.fix.fix_mbids or settings.fix.embed_cover):
        parser.error("nothing to do: pass --mb-ids and/or --embed-cover")

    path: Path = args.path
    if not path.exists():
        parser.error(f"Error accessing path {path}")

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    if args.verbose:
        log_level = logging.DEBUG
    roots = [path.resolve() if path.is_dir() else path.resolve().parent]
    warn_buffer = configure_logging(log_level, roots)
    diagnostics = Diagnostics()

    try:
        match args.command:
            case "fix":
                return run_fix(settings, path, diagnostics)
            case "sync":
                return run_sync(settings, path, diagnostics)
            case _:
                parser.error("Unknown command")
    except KeyboardInterrupt:
        print("\nProcessing Interrupted!")
        return 130
    finally:
        if warn_buffer.records:
            print("\n\033[33mWarnings/Errors summary:\033[0m")
            for line in warn_buffer.records:
                print(f" - {line}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
