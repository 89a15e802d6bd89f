"""Supervision of background port-forward processes.

Each forward is an external ``kubectl port-forward`` process. A daemon thread
drains the process's combined stdout/stderr into the task's output log so the
operator can inspect it later without stalling the process.
"""

from __future__ import annotations

import subprocess
import sys
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import IO, Any

import structlog

logger = structlog.get_logger()

TERMINATE_WAIT_SECONDS = 5.0

ProcessSpawner = Callable[[Sequence[str]], "subprocess.Popen[str]"]


class PortForwardError(Exception):
    """Raised when a forward cannot be started or its process cannot be killed."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ForwardOutput:
    """Append-only text log with a lock scoped to this one log.

    The reader thread is the only writer; any number of readers may take
    snapshots at any time.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._text = ""

    def append(self, text: str) -> None:
        with self._lock:
            self._text += text

    def text(self) -> str:
        with self._lock:
            return self._text

    def read_from(self, offset: int) -> tuple[str, int]:
        """Return the text after ``offset`` and the new end offset."""
        with self._lock:
            return self._text[offset:], len(self._text)

    def __len__(self) -> int:
        with self._lock:
            return len(self._text)


@dataclass
class PortForwardTask:
    """A running forward to one pod.

    Attributes:
        process: The forwarding process.
        pod: Target pod name.
        ports: ``local:remote`` port pairs, in the order given.
        output: Combined process output collected so far.
        read_offset: How much of ``output`` the operator has already seen.
    """

    process: Any
    pod: str
    ports: list[str]
    output: ForwardOutput = field(default_factory=ForwardOutput)
    read_offset: int = 0
    _reader: threading.Thread | None = field(default=None, repr=False)

    @property
    def pid(self) -> int | None:
        return getattr(self.process, "pid", None)

    def is_running(self) -> bool:
        return self.process.poll() is None

    def status(self) -> str:
        code = self.process.poll()
        if code is None:
            return "Running"
        return f"Exited ({code})"

    def new_output(self) -> str:
        """Output produced since the last call, advancing the read offset."""
        text, self.read_offset = self.output.read_from(self.read_offset)
        return text

    def start_reader(self) -> None:
        """Start the background thread that drains the process output."""
        stream = getattr(self.process, "stdout", None)
        if stream is None or self._reader is not None:
            return
        self._reader = threading.Thread(
            target=_drain,
            args=(stream, self.output),
            name=f"port-forward-{self.pod}",
            daemon=True,
        )
        self._reader.start()

    def join_reader(self, timeout: float | None = None) -> None:
        if self._reader is not None:
            self._reader.join(timeout)

    def terminate(self) -> None:
        """Kill the process.

        A process that already exited counts as terminated.

        Raises:
            PortForwardError: If the process could not be signalled.
        """
        try:
            self.process.kill()
        except ProcessLookupError:
            pass
        except OSError as e:
            raise PortForwardError(f"Failed to stop port forward to {self.pod}: {e}", e) from e

        try:
            self.process.wait(timeout=TERMINATE_WAIT_SECONDS)
        except subprocess.TimeoutExpired:
            logger.warning("port_forward_did_not_exit", pod=self.pod, pid=self.pid)


def _drain(stream: IO[str], output: ForwardOutput) -> None:
    try:
        for line in stream:
            output.append(line)
    except (OSError, ValueError):
        # Stream closed underneath us while the process was being killed
        pass
    finally:
        try:
            stream.close()
        except OSError:
            pass


def spawn_process(argv: Sequence[str]) -> subprocess.Popen[str]:
    """Start ``argv`` with stdout and stderr merged into one text pipe.

    On POSIX the child gets its own session so a Ctrl-C typed at the shell
    is not delivered to it.
    """
    kwargs: dict[str, Any] = {}
    if sys.platform != "win32":
        kwargs["start_new_session"] = True
    return subprocess.Popen(
        list(argv),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        bufsize=1,
        **kwargs,
    )


def start_port_forward(
    argv: Sequence[str],
    pod: str,
    ports: Sequence[str],
    spawner: ProcessSpawner = spawn_process,
) -> PortForwardTask:
    """Spawn a forwarding process and start collecting its output.

    Raises:
        PortForwardError: If the process cannot be started.
    """
    try:
        process = spawner(argv)
    except OSError as e:
        raise PortForwardError(f"Could not run {argv[0]}: {e}", e) from e

    task = PortForwardTask(process=process, pod=pod, ports=list(ports))
    task.start_reader()
    logger.info("port_forward_started", pod=pod, ports=list(ports), pid=task.pid)
    return task


class PortForwardSupervisor:
    """The set of active forwards, in registration order."""

    def __init__(self) -> None:
        self._tasks: list[PortForwardTask] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, task: PortForwardTask) -> None:
        """Track ``task``. Duplicate pods or ports are allowed."""
        self._tasks.append(task)

    def list(self) -> tuple[PortForwardTask, ...]:
        return tuple(self._tasks)

    def get(self, index: int) -> PortForwardTask | None:
        if 0 <= index < len(self._tasks):
            return self._tasks[index]
        return None

    def stop(self, index: int) -> None:
        """Stop and forget the task at ``index``.

        An index outside the active set does nothing.

        Raises:
            PortForwardError: If the process exists but could not be killed.
                The task is no longer tracked either way.
        """
        if not 0 <= index < len(self._tasks):
            return
        task = self._tasks.pop(index)
        logger.info("stopping_port_forward", pod=task.pod, ports=task.ports, pid=task.pid)
        task.terminate()

    def stop_all(self, strict: bool = False) -> None:
        """Stop every task and leave the active set empty.

        Args:
            strict: Raise the first termination error after all tasks were
                attempted. Otherwise errors are logged.

        Raises:
            PortForwardError: In strict mode, if any task failed to stop.
        """
        tasks, self._tasks = self._tasks, []
        first_error: PortForwardError | None = None
        for task in tasks:
            try:
                task.terminate()
            except PortForwardError as e:
                logger.warning("port_forward_stop_failed", pod=task.pod, error=e.message)
                if first_error is None:
                    first_error = e
        if tasks:
            logger.info("stopped_all_port_forwards", count=len(tasks))
        if strict and first_error is not None:
            raise first_error
