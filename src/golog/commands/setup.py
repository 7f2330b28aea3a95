"""golog setup — run the project's setup script with logging.

    golog setup scripts/setup
    golog setup scripts/setup --quick

The script runs through 'golog run' semantics and is bracketed by START
and FINISH records. A missing or non-executable script is FATAL.
"""

import argparse

from golog import output
from golog.project import setup_project

# Options of this subcommand that take a separate value
VALUE_OPTIONS = {"--root"}


def register(subparsers, parents):
    """Register the 'setup' subcommand."""
    p = subparsers.add_parser(
        "setup",
        parents=parents,
        help="Run the project setup script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("script", metavar="SCRIPT",
                   help="Setup script, relative to --root")
    p.add_argument("script_args", nargs=argparse.REMAINDER, metavar="ARGS",
                   help="Arguments passed to the setup script")
    p.add_argument("--root", metavar="PATH", default=None,
                   help="Project root directory (default: current directory)")
    p.set_defaults(func=run)


def run(args):
    """Execute the 'setup' subcommand."""
    return setup_project(output.get_context(), args.script,
                         args=args.script_args, root=args.root)
