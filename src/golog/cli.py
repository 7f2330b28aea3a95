"""Main CLI entry point for golog.

Implements a Docker-style two-pass argument parser:
  1. First pass: extract global flags (--level-filter, --log-file, ...)
  2. Second pass: dispatch to subcommand with shared parent args

Global flags can appear before OR after the subcommand, but not inside
a wrapped command line. That starts at the first '--' or at the first
positional argument after 'run' or 'setup' and their own options.
  golog --level-filter WARN run make         # works
  golog run --level-filter WARN -- make      # also works
  golog run make --log-file x                # --log-file goes to make

Subcommands self-register via register(subparsers, parents) convention.
"""

import argparse
import shutil
import sys

from golog._version import VERSION


# ---------------------------------------------------------------------------
# Global flags (Docker-style: can precede the subcommand)
# ---------------------------------------------------------------------------
GLOBAL_FLAGS = {
    "--timestamp-format": {"metavar": "FMT", "default": None,
                           "help": "strftime format for record timestamps"},
    "--level-filter": {"metavar": "LEVEL", "default": None,
                       "help": "Lowest level written to any target (default: RUN)"},
    "--console-filter": {"metavar": "LEVEL", "default": None,
                         "help": "Lowest level written to stdout/stderr/terminals"},
    "--force-formatting": {"dest": "formatting", "action": "store_true",
                           "default": None,
                           "help": "Keep terminal formatting on pipes and files"},
    "--log-file": {"metavar": "PATH[:LEVELS]", "default": None,
                   "help": "Also append records to a file (optionally only LEVELS)"},
    "--config": {"metavar": "PATH", "default": None,
                 "help": "Path to config file (default: ~/.golog/config.json)"},
}


def _wrapping_commands(commands):
    """Map each wrapping subcommand to its value-taking options.

    A subcommand wraps a command line if its module defines VALUE_OPTIONS.
    """
    wrapping = {}
    for module in commands:
        options = getattr(module, "VALUE_OPTIONS", None)
        if options is not None:
            wrapping[module.__name__.rsplit(".", 1)[-1]] = set(options)
    return wrapping


def _wrapped_command_start(argv, wrapping):
    """Index of the first argument that belongs to a wrapped command.

    That is the first '--', or the first positional after a wrapping
    subcommand ('run', 'setup') and its own options. len(argv) if neither.
    """
    global_values = {flag for flag, kwargs in GLOBAL_FLAGS.items()
                     if kwargs.get("action") != "store_true"}
    command = None
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--":
            return i
        if command is not None and command not in wrapping:
            i += 1
            continue
        value_options = global_values | wrapping.get(command, set())
        if arg in value_options:
            i += 2
        elif arg.startswith("-"):
            i += 1
        elif command is None:
            command = arg
            i += 1
        else:
            return i
    return len(argv)


def _extract_global_flags(argv, commands=None):
    """Two-pass parse: pull global flags from before the wrapped command.

    Returns (global_namespace, remaining_argv).
    """
    if commands is None:
        commands = _discover_commands()
    split = _wrapped_command_start(argv, _wrapping_commands(commands))
    head, tail = argv[:split], argv[split:]

    global_parser = argparse.ArgumentParser(add_help=False)
    for flag, kwargs in GLOBAL_FLAGS.items():
        global_parser.add_argument(flag, **kwargs)

    global_args, remaining = global_parser.parse_known_args(head)
    return global_args, remaining + tail


# ---------------------------------------------------------------------------
# Shared parent parser (inherited by all subcommands via parents=[])
# ---------------------------------------------------------------------------
def _build_common_parser():
    """Build the shared argument parser for execution flags.

    These are inherited by every subcommand.
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--dry-run", action="store_true", default=None,
                        help="Log commands without running them")
    return common


# ---------------------------------------------------------------------------
# Subcommand discovery and registration
# ---------------------------------------------------------------------------
def _discover_commands():
    """Import and return all command modules.

    Each module in golog.commands must export:
      register(subparsers, parents) — add itself to the subparser
      run(args) — execute the command
    """
    from golog.commands import levels, log, run, setup
    return [run, log, levels, setup]


def _build_parser(commands, common_parser):
    """Build the main argparse parser with subcommand dispatch."""
    parser = argparse.ArgumentParser(
        prog="golog",
        description="golog — logged command execution",
        epilog=(
            "Run 'golog <command> --help' for details on a specific command.\n"
            "\n"
            "Global flags (--level-filter, --log-file, --config, ...) can\n"
            "appear before or after the subcommand."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"golog {VERSION}",
    )

    # Add global flags to main parser too (for --help display)
    for flag, kwargs in GLOBAL_FLAGS.items():
        parser.add_argument(flag, **kwargs)

    subparsers = parser.add_subparsers(
        dest="command_name",
        title="commands",
        metavar="<command>",
    )

    # Let each command register itself
    for cmd_module in commands:
        cmd_module.register(subparsers, parents=[common_parser])

    return parser


def _self_invocations():
    """argv prefixes that start golog again (for readable RUN lines)."""
    prefixes = [[sys.executable, "-m", "golog"],
                [sys.executable, "-m", "golog.cli"]]
    installed = shutil.which("golog")
    if installed:
        prefixes.append([installed])
    return prefixes


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def main(argv=None):
    """Main entry point for golog CLI.

    Args:
        argv: Command-line arguments. None means sys.argv[1:].

    Returns:
        Exit code (0 = success).
    """
    if argv is None:
        argv = sys.argv[1:]

    commands = _discover_commands()

    # Pass 1: extract global flags from before the wrapped command
    global_args, remaining = _extract_global_flags(argv, commands)

    # Pass 2: parse subcommand + shared/specific args
    common_parser = _build_common_parser()
    parser = _build_parser(commands, common_parser)

    # If no args at all, print help
    if not remaining:
        parser.print_help()
        return 0

    args = parser.parse_args(remaining)

    # If subcommand selected but no handler, print help
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    # Merge global args into the namespace for convenience
    for key, value in vars(global_args).items():
        if key not in vars(args) or getattr(args, key) is None:
            setattr(args, key, value)

    # Initialize the log manager (resolves env and config files too)
    from golog.config import resolve_settings
    from golog.lib.log_lib import UsageError, init_context
    try:
        ctx = init_context(resolve_settings(args),
                           self_invocations=_self_invocations())
    except (UsageError, ValueError, OSError) as e:
        print(f"golog: {e}", file=sys.stderr)
        return 2

    # Dispatch
    try:
        try:
            return args.func(args) or 0
        except UsageError as e:
            return ctx.emit("FATAL", str(e))
        finally:
            ctx.close()
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1


if __name__ == "__main__":
    sys.exit(main())
