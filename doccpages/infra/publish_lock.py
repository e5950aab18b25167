"""
Publish lock for doccpages.

Guarantees at most one active publish per concurrency group. A newer run
preempts an older one: it signals the holder and takes the lock over, and
the older run notices via ``ensure_held()`` before its next publish step.

A free lock is claimed with an exclusive create, so two runs racing for
it cannot both win; taking over from a holder rewrites the JSON record
atomically (temp file, then rename).
"""

import json
import os
import signal
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional
import logging

from ..exit_codes import DeploymentError, PreemptedError

logger = logging.getLogger(__name__)


def _terminate(pid: int) -> None:
    os.kill(pid, signal.SIGTERM)


def pid_alive(pid: int) -> bool:
    """Check whether a process exists."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by someone else
        return True
    return True


class PublishLock:
    """
    File lock for one concurrency group.

    Example:
        with PublishLock("pages", Path("~/.doccpages/locks")).hold("run-42") as lock:
            lock.ensure_held()
            upload()
            lock.ensure_held()
            deploy()
    """

    def __init__(
        self,
        group: str,
        lock_dir: Path,
        cancel_in_progress: bool = True,
        terminate: Callable[[int], None] = _terminate
    ):
        self.group = group
        self.lock_dir = Path(lock_dir).expanduser()
        self.path = self.lock_dir / f"{group}.lock"
        self.cancel_in_progress = cancel_in_progress
        self._terminate = terminate
        self.run_id: Optional[str] = None
        self._depth = 0

    @classmethod
    def from_config(cls, concurrency: Dict[str, Any]) -> 'PublishLock':
        """Build the lock described by the ``concurrency`` config section."""
        return cls(
            group=concurrency.get('group', 'pages'),
            lock_dir=Path(concurrency.get('lock_dir', '~/.doccpages/locks')),
            cancel_in_progress=concurrency.get('cancel_in_progress', True),
        )

    def read(self) -> Optional[Dict[str, Any]]:
        """Current holder record, or None if unlocked."""
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable lock file {self.path}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def _record(self, run_id: str) -> Dict[str, Any]:
        return {
            'run_id': run_id,
            'pid': os.getpid(),
            'group': self.group,
            'started': time.time(),
        }

    def _create_exclusive(self, data: Dict[str, Any]) -> bool:
        """Create the lock file only if none exists; False if another run got there first."""
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, 'w') as f:
            json.dump(data, f)
        return True

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.lock_dir,
            prefix=f".{self.path.name}.",
            suffix=".tmp"
        )
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f)
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _take_over(self, holder: Dict[str, Any], run_id: str) -> None:
        if holder.get('run_id') == run_id:
            return
        pid = int(holder.get('pid', 0))
        if not pid_alive(pid):
            logger.debug(f"Taking over stale lock from pid {pid}")
            return
        if not self.cancel_in_progress:
            raise DeploymentError(
                f"Publish group '{self.group}' is busy with run {holder.get('run_id')}"
            )
        logger.warning(
            f"Cancelling in-progress run {holder.get('run_id')} (pid {pid}) "
            f"in group '{self.group}'"
        )
        if pid != os.getpid():
            try:
                self._terminate(pid)
            except ProcessLookupError:
                pass

    def acquire(self, run_id: str) -> None:
        """
        Take the lock for ``run_id``.

        Acquiring again with the run that already holds the lock nests:
        the lock file goes away only when the outermost hold releases.

        Raises:
            DeploymentError: If another live run holds the lock and
                cancel_in_progress is off
            PreemptedError: If this run held the lock and a newer run
                has taken it since
        """
        if self.run_id == run_id and self._depth:
            self.ensure_held()
            self._depth += 1
            return

        holder = self.read()
        if holder is None and self._create_exclusive(self._record(run_id)):
            self.run_id = run_id
            self._depth = 1
            return

        # Another run holds the lock, or created it between our read and create
        holder = self.read()
        if holder:
            self._take_over(holder, run_id)
        self._write_atomic(self._record(run_id))
        self.run_id = run_id
        self._depth = 1

    def is_held(self) -> bool:
        holder = self.read()
        return bool(self.run_id and holder and holder.get('run_id') == self.run_id)

    def ensure_held(self) -> None:
        """Raise PreemptedError if a newer run owns the lock now."""
        if self.is_held():
            return
        holder = self.read()
        other = holder.get('run_id') if holder else None
        raise PreemptedError(
            f"Run {self.run_id} was preempted in group '{self.group}'"
            + (f" by run {other}" if other else ""),
            holder=other,
        )

    def release(self) -> None:
        """Remove the lock file if this run still owns it and this is the outermost hold."""
        held = self.is_held()
        if held and self._depth > 1:
            self._depth -= 1
            return
        if held:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
        self.run_id = None
        self._depth = 0

    def hold(self, run_id: str) -> 'PublishLock':
        self.acquire(run_id)
        return self

    def __enter__(self) -> 'PublishLock':
        if self.run_id is None:
            raise RuntimeError("Use lock.hold(run_id) as the context manager")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
