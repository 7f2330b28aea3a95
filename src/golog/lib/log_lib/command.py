"""
Command executor: run a command, relay its output, report its failure.

    log.run(['make', 'all'])

1. Logs the command line at RUN (dry run stops here).
2. Spawns the command with stdout and stderr merged into one pipe and
   relays every line to the RUN targets as it arrives. A dedicated
   reader thread drains the pipe; the caller waits for the process and
   then for the reader, so the final line is known before the status is
   used.
3. A 'fatal' sentinel on the final line means the command (another
   process running this engine) already reported its failure. The
   executor passes the sentinel on to its own parent, if it has one, and
   exits with the same status without printing anything else.
4. Any other failure is logged at ERROR and returned, or at the critical
   section's level (which exits) while a critical section is open.

Child processes inherit the manager's settings, the executor depth and
any open critical section through the environment.
"""

import os
import shlex
import shutil
import subprocess
import threading
from typing import List, Mapping, Optional, Sequence, Tuple

from . import protocol
from .errors import UsageError
from .levels import ERROR, RUN
from .settings import ENV_VARS
from .targets import STDOUT

NOT_FOUND_STATUS = 127
NOT_EXECUTABLE_STATUS = 126


def _same_program(a: str, b: str) -> bool:
    a = shutil.which(a) or a
    b = shutil.which(b) or b
    return os.path.realpath(a) == os.path.realpath(b)


class OutputRelay:
    """Relays a command's combined output and spots a trailing sentinel.

    A line that looks like a sentinel is held back until the next line
    arrives. If one does, the held line was ordinary output and is
    relayed unchanged, so line order is preserved. If the held line turns
    out to be the last one, finish() decides whether it counts.
    """

    def __init__(self, manager, depth: int):
        self.manager = manager
        self.depth = depth
        self._pending: Optional[str] = None
        self._sentinel: Optional[protocol.Sentinel] = None
        # First exception raised while relaying; the executor re-raises it
        self.error: Optional[BaseException] = None

    def drain(self, pipe) -> None:
        """Read pipe to EOF, feeding each decoded line to the relay.

        The pipe is always read to the end so the command never blocks
        or dies on a closed pipe. If relaying fails, the remaining output
        is discarded and the exception is kept in self.error.
        """
        try:
            for raw in iter(pipe.readline, b''):
                if self.error is not None:
                    continue
                try:
                    self.feed(raw.decode('utf-8', errors='replace'))
                except Exception as e:
                    self.error = e
        finally:
            pipe.close()

    def feed(self, line: str) -> None:
        line = line.rstrip('\r\n')
        if self._pending is not None:
            self.relay(self._pending)
            self._pending = self._sentinel = None
        sentinel = protocol.decode(line)
        if sentinel is not None:
            self._pending, self._sentinel = line, sentinel
            return
        self.relay(line)

    def relay(self, line: str) -> None:
        """Write line to every RUN target not suppressed at this depth."""
        run = self.manager.registry.get(RUN)
        for target in (run.targets if run is not None else [STDOUT]):
            if self.manager.suppressed(target, self.depth):
                continue
            self.manager.write_line(target, line)

    def finish(self, returncode: int) -> Tuple[int, bool]:
        """Resolve the final status once output and process are done.

        Returns:
            (status, already_fatal)
        """
        pending, sentinel = self._pending, self._sentinel
        self._pending = self._sentinel = None
        if pending is not None:
            # A command that succeeded just printed something odd
            if returncode != 0:
                return sentinel.status or returncode, sentinel.fatal
            self.relay(pending)
        return returncode, False


class CommandExecutor:
    """Runs commands on behalf of a LogManager."""

    def __init__(self, manager):
        self.manager = manager

    def display(self, args: Sequence[str]) -> str:
        """Command line as logged at RUN.

        A leading invocation of this framework itself is shown as the
        manager's command name, e.g. 'golog run make' rather than
        '/usr/bin/python3 -m golog run make'.
        """
        args = list(args)
        for prefix in self.manager.self_invocations:
            n = len(prefix)
            if (n and len(args) >= n and args[1:n] == list(prefix[1:])
                    and _same_program(args[0], prefix[0])):
                args = [self.manager.command_name] + args[n:]
                break
        return shlex.join(args)

    def run(self, args, env: Optional[Mapping[str, str]] = None, cwd=None) -> int:
        """Run args, relaying output and handling failure.

        Args:
            args: Program and arguments (already resolved by the caller)
            env: Base environment for the child (default os.environ)
            cwd: Working directory for the child

        Returns:
            0 on success, or the exit status after logging an ERROR. Exits
            the process inside a critical section or when a nested
            process already reported a fatal failure.
        """
        if isinstance(args, str):
            args = [args]
        args = [str(arg) for arg in args]
        if not args:
            raise UsageError("No command given to run")

        manager = self.manager
        state = manager.state
        command = self.display(args)
        manager.emit(RUN, command)
        if manager.settings.dry_run:
            return 0

        outer_depth = state.nesting_depth
        state.nesting_depth += 1
        try:
            status, already_fatal = self._execute(args, outer_depth, env, cwd)
        finally:
            state.nesting_depth = outer_depth

        if status == 0:
            return 0
        if already_fatal:
            manager.exit(status, report=state.nesting_depth > state.baseline_depth)
        if manager.critical.active:
            return manager.emit(manager.critical.level, status, command)
        return manager.emit(ERROR, status, command)

    def _execute(self, args: List[str], outer_depth: int,
                 env: Optional[Mapping[str, str]], cwd) -> Tuple[int, bool]:
        relay = OutputRelay(self.manager, outer_depth)
        try:
            proc = subprocess.Popen(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=self._child_environ(outer_depth, env),
                cwd=cwd,
            )
        except FileNotFoundError as e:
            relay.relay(f"{args[0]}: {e.strerror or e}")
            return NOT_FOUND_STATUS, False
        except OSError as e:
            relay.relay(f"{args[0]}: {e.strerror or e}")
            return NOT_EXECUTABLE_STATUS, False

        reader = threading.Thread(target=relay.drain, args=(proc.stdout,),
                                  daemon=True)
        reader.start()
        returncode = proc.wait()
        reader.join()
        if relay.error is not None:
            raise relay.error
        if returncode < 0:
            # Killed by a signal: report it the way a shell would
            returncode = 128 - returncode
        return relay.finish(returncode)

    def _child_environ(self, outer_depth: int,
                       env: Optional[Mapping[str, str]]) -> dict:
        manager = self.manager
        child = dict(os.environ if env is None else env)
        updates = manager.settings.to_environ()
        updates.update(manager.state.child_environ(outer_depth))
        run = manager.registry.get(RUN)
        if run is not None and any(manager.formatting_for(t) for t in run.targets):
            updates[ENV_VARS['formatting']] = 'true'
        for name, value in updates.items():
            if value is None:
                child.pop(name, None)
            else:
                child[name] = value
        return child
