"""Version information for golog.

Bump the components below; __version__ is derived from them.
"""

MAJOR = 0
MINOR = 1
PATCH = 0
PHASE = "alpha"  # None, "alpha", "beta", "rc1", ...

__app_name__ = "golog"


def get_version():
    """Return the version string (MAJOR.MINOR.PATCH[-PHASE])."""
    version = f"{MAJOR}.{MINOR}.{PATCH}"
    if PHASE:
        version = f"{version}-{PHASE}"
    return version


__version__ = VERSION = get_version()
