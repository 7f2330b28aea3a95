"""
Exceptions raised by log_lib.

UsageError marks a programming mistake in a script built on top of the
engine (bad level definitions, mutating a frozen registry, an invalid
critical-section level). The dispatcher reports it as FATAL.
"""


class UsageError(Exception):
    """Invalid use of the registry, tracker, or command executor."""
