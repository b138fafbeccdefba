"""Process registry - concurrent external commands behind integer handles.

Every spawned command runs in its own process group with three background
tasks: a stdout reader, a stderr reader and a supervisor. The supervisor
races natural exit, the cancel signal and reader completion; whichever comes
first decides how the exit status is obtained. Background tasks only hold
the record's event queue, stdin queue and cancel event; the record map itself
is touched exclusively by the registry's synchronous methods, which never
await and are therefore atomic on the event loop.

Output keeps accumulating in the event queue whether or not anyone polls, so
a slow command can be inspected later by id. When a command ends, for any
reason, its whole process group is killed so background jobs do not outlive it.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Iterator
from dataclasses import dataclass, field

from taskpilot.errors import ProcessSpawnError
from taskpilot.types.events import CommandStatus

logger = logging.getLogger(__name__)

# Reported when a killed process never yields a real exit code.
UNKNOWN_EXIT_STATUS = 1
KILL_WAIT_SECONDS = 5.0
READER_DRAIN_SECONDS = 1.0
READ_CHUNK_SIZE = 65_536

# Environment variables to strip from child processes
SENSITIVE_ENV_VARS = frozenset({
    "AWS_SECRET_ACCESS_KEY",
    "AWS_SESSION_TOKEN",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "NPM_TOKEN",
    "PYPI_TOKEN",
    "OPENAI_API_KEY",
    "OPENROUTER_API_KEY",
    "ANTHROPIC_API_KEY",
})


@dataclass(frozen=True, slots=True)
class _Output:
    text: str


@dataclass(frozen=True, slots=True)
class _Exited:
    status: int


_ProcessEvent = _Output | _Exited


@dataclass
class ProcessRecord:
    """State of one spawned command."""

    id: int
    command: str
    output: str = ""
    exit_status: int | None = None
    events: asyncio.Queue[_ProcessEvent] = field(default_factory=asyncio.Queue, repr=False)
    stdin: asyncio.Queue[bytes] = field(default_factory=asyncio.Queue, repr=False)
    cancel_signal: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @property
    def is_active(self) -> bool:
        return self.exit_status is None

    def snapshot(self) -> CommandStatus:
        return CommandStatus(
            id=self.id,
            command=self.command,
            output=self.output,
            is_active=self.is_active,
        )


def _sanitize_env() -> dict[str, str]:
    """Create a sanitized environment for child processes."""
    env = dict(os.environ)
    env["TERM"] = "dumb"
    for var in SENSITIVE_ENV_VARS:
        env.pop(var, None)
    return env


async def _start_process(command: str, cwd: str) -> asyncio.subprocess.Process:
    pipes = {
        "stdin": asyncio.subprocess.PIPE,
        "stdout": asyncio.subprocess.PIPE,
        "stderr": asyncio.subprocess.PIPE,
    }
    if sys.platform == "win32":
        return await asyncio.create_subprocess_exec(
            "cmd", "/C", command,
            cwd=cwd,
            env=_sanitize_env(),
            creationflags=subprocess.CREATE_NEW_PROCESS_GROUP,
            **pipes,
        )
    return await asyncio.create_subprocess_exec(
        "bash", "-c", command,
        cwd=cwd,
        env=_sanitize_env(),
        start_new_session=True,
        **pipes,
    )


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    """Kill the command together with everything it started."""
    try:
        if sys.platform == "win32":
            proc.kill()
        else:
            # start_new_session makes the child its own group leader
            os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        pass


async def _read_output(stream: asyncio.StreamReader, events: asyncio.Queue[_ProcessEvent]) -> None:
    """Forward everything the stream yields until EOF, whatever the line length."""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        try:
            chunk = await stream.read(READ_CHUNK_SIZE)
        except OSError as exc:
            logger.debug("Stopped reading process output: %s", exc)
            chunk = b""
        text = decoder.decode(chunk, final=not chunk)
        if text:
            events.put_nowait(_Output(text))
        if not chunk:
            return


async def _write_stdin(stdin: asyncio.StreamWriter, queue: asyncio.Queue[bytes]) -> None:
    while True:
        data = await queue.get()
        try:
            stdin.write(data)
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            logger.debug("Stopped writing process input: %s", exc)
            return


async def _supervise(
    proc: asyncio.subprocess.Process,
    events: asyncio.Queue[_ProcessEvent],
    stdin: asyncio.Queue[bytes],
    cancel_signal: asyncio.Event,
) -> None:
    """Race exit, cancellation and reader completion, then report the status.

    The exit event is queued only after the readers had a chance to flush, so
    pollers always observe the full output before the status.
    """
    assert proc.stdout is not None and proc.stderr is not None and proc.stdin is not None
    readers = asyncio.gather(_read_output(proc.stdout, events), _read_output(proc.stderr, events))
    writer = asyncio.create_task(_write_stdin(proc.stdin, stdin))
    exit_wait = asyncio.create_task(proc.wait())
    cancel_wait = asyncio.create_task(cancel_signal.wait())

    status: int | None = None
    try:
        try:
            pending: set[asyncio.Future] = {exit_wait, cancel_wait, readers}
            while True:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                if exit_wait in done:
                    status = exit_wait.result()
                    break
                if cancel_wait in done:
                    logger.debug("Killing process group %s", proc.pid)
                    _kill_process_group(proc)
                    await asyncio.wait({exit_wait}, timeout=KILL_WAIT_SECONDS)
                    if exit_wait.done():
                        status = exit_wait.result()
                    break
                # Readers hit EOF first; keep racing exit against cancel.
        finally:
            # Background jobs left by the command die with it.
            _kill_process_group(proc)

        if not readers.done():
            await asyncio.wait({readers}, timeout=READER_DRAIN_SECONDS)
    finally:
        for task in (writer, exit_wait, cancel_wait, readers):
            if not task.done():
                task.cancel()

    events.put_nowait(_Exited(UNKNOWN_EXIT_STATUS if status is None else status))


class ProcessRegistry:
    """Owns every command spawned during a session.

    Records are never evicted: ``get`` answers for every id ever issued.
    Polling cadence is up to the caller; the registry has no timer.
    """

    def __init__(self) -> None:
        self._counter = 0
        self._records: dict[int, ProcessRecord] = {}
        self._supervisors: dict[int, asyncio.Task[None]] = {}

    async def spawn(self, command: str, cwd: str) -> int:
        """Start ``command`` in ``cwd`` and return its id without waiting for output."""
        self._counter += 1
        process_id = self._counter
        try:
            proc = await _start_process(command, cwd)
        except OSError as exc:
            raise ProcessSpawnError(command, str(exc)) from exc

        record = ProcessRecord(id=process_id, command=command)
        self._records[process_id] = record
        self._supervisors[process_id] = asyncio.create_task(
            _supervise(proc, record.events, record.stdin, record.cancel_signal),
            name=f"process-{process_id}",
        )
        logger.info("Spawned process %d (pid %s): %s", process_id, proc.pid, command)
        return process_id

    def poll(self) -> list[CommandStatus]:
        """Drain pending output/exit events into records.

        Returns one snapshot per record that changed since the last poll.
        """
        changed: list[CommandStatus] = []
        for record in self._records.values():
            if record.exit_status is not None:
                continue
            updated = False
            while True:
                try:
                    event = record.events.get_nowait()
                except asyncio.QueueEmpty:
                    break
                updated = True
                match event:
                    case _Output(text=text):
                        record.output += text
                    case _Exited(status=status):
                        record.exit_status = status
                        logger.info("Process %d exited with status %d", record.id, status)
            if updated:
                changed.append(record.snapshot())
        return changed

    def get(self, process_id: int) -> tuple[int | None, str] | None:
        """Point-in-time ``(exit_status, output)``; None for unknown ids."""
        record = self._records.get(process_id)
        if record is None:
            return None
        return record.exit_status, record.output

    def cancel(self, process_id: int) -> bool:
        """Fire the one-shot cancel signal. Returns True if it was fired now."""
        record = self._records.get(process_id)
        if record is None or record.exit_status is not None:
            return False
        if record.cancel_signal.is_set():
            return False
        record.cancel_signal.set()
        logger.info("Cancel requested for process %d", process_id)
        return True

    def stop_all(self) -> None:
        """Cancel every process that is still running."""
        logger.info("Stop all running terminal commands")
        for process_id in list(self._records):
            self.cancel(process_id)

    def send_data(self, process_id: int, data: bytes) -> bool:
        """Queue bytes for the stdin of a running process."""
        record = self._records.get(process_id)
        if record is None or record.exit_status is not None:
            logger.debug("Dropping input for inactive process %d", process_id)
            return False
        record.stdin.put_nowait(data)
        return True

    def processes(self) -> Iterator[tuple[int, int | None, str]]:
        """Iterate ``(id, exit_status, command)`` over every record."""
        for record in self._records.values():
            yield record.id, record.exit_status, record.command

    async def aclose(self) -> None:
        """Cancel everything and wait for the supervisors to finish."""
        self.stop_all()
        tasks = [task for task in self._supervisors.values() if not task.done()]
        if tasks:
            await asyncio.wait(tasks, timeout=KILL_WAIT_SECONDS + READER_DRAIN_SECONDS)
        self.poll()
