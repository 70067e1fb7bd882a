"""Main CLI entry point for registrygc."""

import argparse
import json
import signal
import sys
import logging
from typing import Dict, Any

from .config.settings import Config
from .context import RunContext
from .errors import OperationCancelled, RegistryGCError
from .operations.garbage_collect import GarbageCollectOperation
from .utils.diagnostics import LoggingDiagnostics
from .utils.logger import setup_logging
from .utils.progress import ProgressDiagnostics


logger = logging.getLogger(__name__)


def print_json_output(data: Dict[str, Any]):
    """Print formatted JSON output."""
    print(json.dumps(data, indent=2))


def _install_cancel_handler(ctx: RunContext):
    """Cancel the run on SIGINT/SIGTERM instead of dying mid-deletion."""
    def _cancel(signum, frame):
        logger.warning(f"Received signal {signum}, cancelling garbage collection")
        ctx.cancel(f"cancelled by signal {signum}")

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.getsignal(signum)
        signal.signal(signum, _cancel)
    return previous


def handle_garbage_collect(args):
    """Handle garbage-collect command."""
    ctx = RunContext()
    previous_handlers = _install_cancel_handler(ctx)

    diagnostics = LoggingDiagnostics()
    if args.progress:
        diagnostics = ProgressDiagnostics(diagnostics)

    try:
        config = Config(args.config)
        gc_op = GarbageCollectOperation(config)

        result = gc_op.garbage_collect(
            dry_run=args.dry_run,
            remove_untagged=args.delete_untagged,
            ctx=ctx,
            diagnostics=diagnostics
        )

        print_json_output({
            "Operation": "Garbage Collect (Dry Run)" if args.dry_run else "Garbage Collect",
            "Driver": result['driver'],
            "Status": "Success",
            "Summary": result['summary'].to_dict()
        })

    except (RegistryGCError, OSError) as e:
        status = "Cancelled" if isinstance(e, OperationCancelled) else "Failed"
        logger.error(f"Garbage collection failed: {e}")
        print_json_output({
            "Operation": "Garbage Collect",
            "Status": status,
            "ErrorCategory": e.category.value if isinstance(e, RegistryGCError) else "storage",
            "Error": str(e)
        })
        sys.exit(1)
    finally:
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
        if isinstance(diagnostics, ProgressDiagnostics):
            diagnostics.close()


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='registrygc',
        description='Deletes blobs and manifests no longer referenced by any tag from registry storage.'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Set logging level (default: INFO)'
    )
    parser.add_argument(
        '--log-file',
        help='Log to file in addition to console'
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Suppress the per-manifest and per-blob trace'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    gc_parser = subparsers.add_parser(
        'garbage-collect',
        help='Run a mark and sweep over registry storage',
        description='Marks every manifest and blob reachable from a tag and deletes the rest. '
                    'Registry writes must be stopped while this runs.'
    )
    gc_parser.add_argument(
        'config',
        nargs='?',
        help='Registry configuration file (default: $REGISTRY_CONFIG)'
    )
    gc_parser.add_argument(
        '-d', '--dry-run',
        action='store_true',
        help='Do everything except remove the blobs and manifests'
    )
    gc_parser.add_argument(
        '-m', '--delete-untagged',
        action='store_true',
        help='Delete manifests that are not currently referenced via tag'
    )
    gc_parser.add_argument(
        '--progress',
        action='store_true',
        help='Show a progress bar while deleting'
    )
    gc_parser.set_defaults(func=handle_garbage_collect)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_file, trace=not args.quiet)

    args.func(args)


if __name__ == '__main__':
    main()
