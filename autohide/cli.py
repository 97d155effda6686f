#!/usr/bin/env python3
"""
autohide - hide files and directories by name or extension

Usage:
    autohide DIR                          # hide everything directly in DIR
    autohide DIR -x log tmp -r            # hide *.log and *.tmp files anywhere below DIR
    autohide DIR -n secret.txt -w         # keep hiding secret.txt whenever it shows up
    autohide DIR -n build -t directory -i -w --test
                                          # sweep then watch, only report what would be hidden

Hiding sets the hidden attribute on Windows and prefixes the name with a dot
elsewhere. Tuning knobs are read from AUTOHIDE_DEBOUNCE_SECONDS,
AUTOHIDE_QUEUE_SIZE, AUTOHIDE_ERROR_LIMIT, AUTOHIDE_ERROR_WINDOW_SECONDS,
AUTOHIDE_SWEEP_WORKERS and AUTOHIDE_LOG_LEVEL.
"""
import argparse
import logging
import signal
import sys
import threading

from autohide import __version__
from autohide.config import Config, HideConfig, TargetKind
from autohide.errors import AutohideError
from autohide.logging_config import configure_logging
from autohide.orchestration.mode_controller import ModeController, RunMode
from autohide.startup.config_validator import ConfigValidator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='autohide',
        description='Automatically hide files and directories',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('directories', nargs='+', metavar='DIR',
                        help='Directories to operate on (e.g. "C:\\Users\\user\\Documents" or "test/test")')
    parser.add_argument('-n', '--file-names', nargs='+', default=[], metavar='NAME',
                        help='File or directory names to hide (e.g. "file.txt" or "file")')
    parser.add_argument('-x', '--file-extensions', nargs='+', default=[], metavar='EXT',
                        help='File extensions to hide (e.g. "txt" or ".txt")')
    parser.add_argument('-r', '--recursive', action='store_true',
                        help='Include all subdirectories')
    parser.add_argument('-c', '--case-sensitive', action='store_true',
                        help='Match names and extensions case-sensitively')
    parser.add_argument('--test', '--dry-run', dest='dry_run', action='store_true',
                        help='Only print the paths that would be hidden')
    parser.add_argument('-w', '--watch', action='store_true',
                        help='Keep watching and hide matching entries as they appear')
    parser.add_argument('-i', '--immediate', action='store_true',
                        help='Hide matching entries right away (default when --watch is not given)')
    parser.add_argument('-t', '--file-types', nargs='+', choices=[k.value for k in TargetKind],
                        default=[k.value for k in TargetKind], metavar='TYPE',
                        help='Kinds of entries to hide: file, directory (default: both)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log every decision, not just hidden entries')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Turn parsed arguments into a validated Config"""
    hide = HideConfig.build(
        roots=args.directories,
        file_names=args.file_names,
        file_extensions=args.file_extensions,
        recursive=args.recursive,
        case_sensitive=args.case_sensitive,
        dry_run=args.dry_run,
        target_kinds=[TargetKind(value) for value in args.file_types],
    )
    ConfigValidator(hide).validate()
    return Config.from_env(hide)


def _install_signal_handlers(controller: ModeController):
    """Let SIGTERM end a watch session the same way Ctrl+C does"""
    if threading.current_thread() is not threading.main_thread():
        return
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, lambda signum, frame: controller.cancel())


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "INFO")

    try:
        config = build_config(args)
    except AutohideError as e:
        logger.error(str(e))
        return EXIT_FATAL

    if not args.verbose:
        configure_logging(config.log_level)
    if config.hide.dry_run:
        logger.info("Test mode enabled. No files will be hidden.")

    mode = RunMode.from_flags(immediate=args.immediate, watch=args.watch)
    controller = ModeController(config)
    if mode is not RunMode.IMMEDIATE:
        _install_signal_handlers(controller)

    try:
        controller.run(mode)
    except AutohideError as e:
        logger.error(str(e))
        return EXIT_FATAL
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
