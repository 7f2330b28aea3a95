"""golog log — write a single record through the level registry.

    golog log INFO Deploying build 42
    golog log ERROR 3 Upload failed        # exits with status 3
    golog log FATAL Out of disk space      # exits 1 after a stack trace

For ERROR, QUIT and FATAL a leading integer is the exit status. golog
exits with the emit outcome: 0 for ordinary levels, the status for
ERROR, 1 for an unknown level (logged at WARN instead).
"""

import argparse

from golog import output


def register(subparsers, parents):
    """Register the 'log' subcommand."""
    p = subparsers.add_parser(
        "log",
        parents=parents,
        help="Write a log record",
        description=(
            "Write MESSAGE at LEVEL. For ERROR, QUIT and FATAL, an integer\n"
            "first word is used as the exit status."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("level", metavar="LEVEL", help="Log level name (case-insensitive)")
    p.add_argument("message", nargs=argparse.REMAINDER, metavar="MESSAGE",
                   help="[STATUS] message words")
    p.set_defaults(func=run)


def run(args):
    """Execute the 'log' subcommand."""
    return output.log(args.level, *args.message)
