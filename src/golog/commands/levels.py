"""golog levels — list the log level registry.

Shows every level from lowest to highest priority with its output
targets, plus the active level and console filters.
"""

from golog import output


def register(subparsers, parents):
    """Register the 'levels' subcommand."""
    p = subparsers.add_parser(
        "levels",
        parents=parents,
        help="List log levels and their output targets",
    )
    p.set_defaults(func=run)


def run(args):
    """Execute the 'levels' subcommand."""
    ctx = output.get_context()
    print(output.format_level_list(
        ctx.registry, ctx.targets,
        level_filter=ctx.settings.level_filter,
        console_filter=ctx.settings.console_filter or "",
    ))
    return 0
