"""Project setup for golog-based projects.

Runs a project's setup script through the command executor so its output
is relayed and logged like any other command:

    START   Project setup in /path/to/project
    RUN     scripts/setup --quick
    ...
    FINISH  Project setup successful
"""

import os
from pathlib import Path


def setup_project(ctx, script, args=(), root=None):
    """Run a project setup script under the log manager.

    Args:
        ctx: The LogManager
        script: Setup script path, relative to root unless absolute
        args: Extra arguments for the script
        root: Project root directory (default: current directory)

    Returns:
        0 on success, the script's exit status after logging an ERROR
        otherwise. A missing or non-executable script is FATAL.
    """
    root = Path(root or os.getcwd())
    path = Path(script)
    if not path.is_absolute():
        path = root / path

    if not path.is_file():
        ctx.emit("FATAL", f"Create {path} before running project setup.")
    if not os.access(path, os.X_OK):
        ctx.emit("FATAL", f"{path} is not executable.")

    ctx.emit("START", f"Project setup in {root}")
    status = ctx.run([str(path), *args], cwd=str(root))
    if status != 0:
        ctx.emit("ERROR", status, "Project setup failed")
        return status
    ctx.emit("FINISH", "Project setup successful")
    return 0
