"""golog run — run a command with logged output and failure handling.

The command line is logged at RUN, its combined stdout/stderr is relayed
line by line, and a nonzero exit is reported at ERROR. With --critical
the failure is escalated to the configured level (FATAL unless changed),
ending golog with the command's exit status. --critical-level picks QUIT
or FATAL explicitly and implies --critical.

    golog run make test
    golog run --critical ./scripts/deploy staging
    golog run --critical-level QUIT -- git pull --ff-only

Everything from the first non-option argument on belongs to the command,
so its own flags are never taken for golog's.

When the command is itself 'golog run ...', a failure already reported by
the inner golog is passed up silently instead of being reported again.
"""

import argparse

from golog import output

CRITICAL_LEVELS = ["QUIT", "FATAL"]

# Options of this subcommand that take a separate value
VALUE_OPTIONS = {"--critical-level"}


def register(subparsers, parents):
    """Register the 'run' subcommand."""
    p = subparsers.add_parser(
        "run",
        parents=parents,
        help="Run a command with logged output",
        description=(
            "Log a command line at RUN, relay its output, and report a\n"
            "nonzero exit status at ERROR (or FATAL/QUIT with --critical)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--critical", action="store_true",
        help="Run inside a critical section at the configured level",
    )
    p.add_argument(
        "--critical-level", type=str.upper, choices=CRITICAL_LEVELS,
        default=None, metavar="LEVEL",
        help="Run inside a critical section at LEVEL (QUIT or FATAL)",
    )
    p.add_argument(
        "command", nargs=argparse.REMAINDER,
        help="Command and arguments (an optional -- may precede them)",
    )
    p.set_defaults(func=run)


def run(args):
    """Execute the 'run' subcommand."""
    command = list(args.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        raise output.UsageError("golog run: no command given")

    if not args.critical and args.critical_level is None:
        return output.run(command)
    with output.critical_section(args.critical_level):
        return output.run(command)
