"""Async command execution utilities."""

import asyncio
import codecs
import logging
import sys
from collections import deque

QUERY_TIMEOUT = 30
STDERR_TAIL_LINES = 20
STDERR_TAIL_LINE_CHARS = 2000
READ_CHUNK_SIZE = 4096

_logging = logging.getLogger(__name__)


async def run_command_async(
    command: str, timeout: int = QUERY_TIMEOUT
) -> tuple[str, int]:
    """Run a query command with captured output and return (stdout, returncode).

    Used for presence checks and package-manager queries. Errors and
    timeouts are reported as a non-zero return code, never raised.
    """
    process = None
    try:
        _logging.debug(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
            output = stdout.decode(errors="replace").strip()
            if stderr:
                _logging.debug(f"stderr: {stderr.decode(errors='replace').strip()}")
            return output, process.returncode if process.returncode is not None else 1
        except asyncio.TimeoutError:
            process.kill()
            _ = await process.wait()
            _logging.warning(f"Command timed out after {timeout} seconds: {command}")
            return f"Command timed out after {timeout} seconds", 1
    except Exception as e:
        _logging.error(
            f"Command execution failed: {type(e).__name__}: {e} | Command: {command}"
        )
        return f"Error: {str(e)}", 1
    finally:
        if process:
            transport = getattr(process, "_transport", None)
            if transport:
                transport.close()


class StderrTail:
    """Last lines of a stream, bounded in count and in line length.

    Progress output may go a long way without a newline, so a pending
    line keeps only its last STDERR_TAIL_LINE_CHARS characters.
    """

    def __init__(self):
        self.lines: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self.partial = ""

    def feed(self, text: str) -> None:
        parts = text.split("\n")
        parts[0] = self.partial + parts[0]
        for line in parts[:-1]:
            self.lines.append(line[-STDERR_TAIL_LINE_CHARS:])
        self.partial = parts[-1][-STDERR_TAIL_LINE_CHARS:]

    def text(self) -> str:
        lines = list(self.lines)
        if self.partial:
            lines.append(self.partial)
        return "\n".join(lines[-STDERR_TAIL_LINES:]).strip()


async def _tee_stream(stream: asyncio.StreamReader, sink, tail: StderrTail) -> None:
    # Fixed-size reads: readline() fails on lines longer than the reader limit.
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        text = decoder.decode(chunk, final=not chunk)
        if text:
            tail.feed(text)
            sink.write(text)
            sink.flush()
        if not chunk:
            break


async def run_interactive_async(command: str) -> tuple[int, str]:
    """Run a step command attached to the user's terminal.

    stdin and stdout are inherited so password prompts and progress output
    stay visible; stderr is streamed through to the terminal and its tail
    captured. No timeout is applied. Returns (returncode, stderr tail).

    The child is always reaped, also when reading its stderr fails.
    """
    _logging.debug(f"Running interactive command: {command}")
    process = await asyncio.create_subprocess_shell(
        command,
        stdin=None,
        stdout=None,
        stderr=asyncio.subprocess.PIPE,
    )
    tail = StderrTail()
    try:
        assert process.stderr is not None
        await _tee_stream(process.stderr, sys.stderr, tail)
        returncode = await process.wait()
    finally:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            _ = await process.wait()
        transport = getattr(process, "_transport", None)
        if transport:
            transport.close()
    return returncode, tail.text()


__all__ = [
    "QUERY_TIMEOUT",
    "STDERR_TAIL_LINES",
    "StderrTail",
    "run_command_async",
    "run_interactive_async",
]
