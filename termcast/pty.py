"""Running a command in a pseudo-terminal while relaying its input and output."""

from __future__ import annotations

import errno
import fcntl
import os
import select
import signal
import struct
import termios
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Protocol

from .tty import TtySize

BUF_SIZE = 128 * 1024

_WATCHED_SIGNALS = (
    signal.SIGWINCH,
    signal.SIGINT,
    signal.SIGTERM,
    signal.SIGQUIT,
    signal.SIGHUP,
    signal.SIGALRM,
    signal.SIGCHLD,
)
_TERMINATING_SIGNALS = frozenset(
    {signal.SIGINT, signal.SIGTERM, signal.SIGQUIT, signal.SIGHUP}
)

TtySizeOverride = tuple[int | None, int | None]


class _Terminal(Protocol):
    def get_size(self) -> TtySize: ...

    def read(self, size: int) -> bytes: ...

    def write(self, data: bytes) -> int: ...

    def fileno(self) -> int: ...


class PtyRecorder(ABC):
    """Receives what passes through the pseudo-terminal."""

    @abstractmethod
    def start(self, size: TtySize) -> None:
        """Called once with the initial terminal size, before the command starts."""

    @abstractmethod
    def output(self, data: bytes) -> None:
        """Called with each chunk the command writes."""

    @abstractmethod
    def input(self, data: bytes) -> bool:
        """Called with each chunk typed; return whether to pass it to the command."""

    @abstractmethod
    def resize(self, size: TtySize) -> None:
        """Called when the terminal size changes."""


def set_non_blocking(fd: int) -> None:
    """Put a file descriptor into non-blocking mode."""
    flags = fcntl.fcntl(fd, fcntl.F_GETFL)
    fcntl.fcntl(fd, fcntl.F_SETFL, flags | os.O_NONBLOCK)


def get_winsize(tty: _Terminal, tty_size_override: TtySizeOverride | None) -> TtySize:
    """Return the terminal's size with any overridden dimension replaced."""
    cols, rows = tty.get_size()

    if tty_size_override is not None:
        override_cols, override_rows = tty_size_override

        if override_cols is not None:
            cols = override_cols

        if override_rows is not None:
            rows = override_rows

    return TtySize(cols, rows)


def _set_pty_size(fd: int, size: TtySize) -> None:
    fcntl.ioctl(fd, termios.TIOCSWINSZ, struct.pack("HHHH", size.rows, size.cols, 0, 0))


def _read_non_blocking(read: Callable[[int], bytes]) -> bytes | None:
    try:
        return read(BUF_SIZE)
    except BlockingIOError:
        return None
    except OSError as exc:
        if exc.errno == errno.EIO:
            return b""
        raise


def _write_non_blocking(write: Callable[[bytes], int], data: bytes) -> int | None:
    try:
        return write(data)
    except BlockingIOError:
        return None
    except OSError as exc:
        if exc.errno == errno.EIO:
            return 0
        raise


def _flush(write: Callable[[bytes], int], buf: bytearray) -> None:
    while buf:
        written = _write_non_blocking(write, bytes(buf))

        if not written:
            break

        del buf[:written]


def _signal_writer(fd: int) -> Callable[[int, object], None]:
    """Build a signal handler that writes the signal number to ``fd``."""

    def handler(signum: int, frame: object) -> None:
        try:
            os.write(fd, bytes([signum]))
        except OSError:
            pass

    return handler


@contextmanager
def _watch_signals() -> Iterator[int | None]:
    """Route the watched signals to a pipe; yields its read end.

    Signal handlers can only be installed from the main thread; elsewhere
    nothing is watched and ``None`` is yielded.
    """
    if threading.current_thread() is not threading.main_thread():
        yield None
        return

    rx, tx = os.pipe()
    os.set_blocking(rx, False)
    os.set_blocking(tx, False)
    handler = _signal_writer(tx)
    previous: dict[int, object] = {}

    try:
        for signum in _WATCHED_SIGNALS:
            previous[signum] = signal.signal(signum, handler)

        yield rx
    finally:
        for signum, old_handler in previous.items():
            signal.signal(signum, old_handler if old_handler is not None else signal.SIG_DFL)

        os.close(rx)
        os.close(tx)


def _drain_signals(fd: int) -> set[int]:
    received: set[int] = set()

    while True:
        try:
            chunk = os.read(fd, 256)
        except BlockingIOError:
            break

        if not chunk:
            break

        received.update(chunk)

    return received


def _exec_child(args: list[str], extra_env: Mapping[str, str], size: TtySize) -> None:
    try:
        try:
            for signum in _WATCHED_SIGNALS:
                signal.signal(signum, signal.SIG_DFL)
        except ValueError:
            pass

        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
        _set_pty_size(0, size)
        os.environ.update(extra_env)
        os.execvp(args[0], args)
    except BaseException:
        pass
    finally:
        os._exit(1)


def _copy(
    master_fd: int,
    child: int,
    tty: _Terminal,
    tty_size_override: TtySizeOverride | None,
    recorder: PtyRecorder,
    signal_fd: int | None,
) -> int | None:
    """Shuttle data until the session ends; return the child's wait status if reaped."""
    pending_input = bytearray()
    pending_output = bytearray()
    master_closed = False
    tty_fd = tty.fileno()

    def read_master(size: int) -> bytes:
        return os.read(master_fd, size)

    def write_master(data: bytes) -> int:
        return os.write(master_fd, data)

    try:
        set_non_blocking(master_fd)

        while True:
            wanted_read = [tty_fd]
            wanted_write: list[int] = []

            if signal_fd is not None:
                wanted_read.append(signal_fd)

            if not master_closed:
                wanted_read.append(master_fd)

                if pending_input:
                    wanted_write.append(master_fd)

            if pending_output:
                wanted_write.append(tty_fd)

            readable, writable, _ = select.select(wanted_read, wanted_write, [])

            if not master_closed and master_fd in readable:
                while (data := _read_non_blocking(read_master)) is not None:
                    if data:
                        recorder.output(data)
                        pending_output += data
                    elif not pending_output:
                        return None
                    else:
                        master_closed = True
                        break

            if master_fd in writable:
                _flush(write_master, pending_input)

            if tty_fd in writable:
                _flush(tty.write, pending_output)

                if not pending_output and master_closed:
                    return None

            if tty_fd in readable:
                while (data := _read_non_blocking(tty.read)) is not None:
                    if not data:
                        return None

                    if recorder.input(data):
                        pending_input += data

            if signal_fd is None or signal_fd not in readable:
                continue

            received = _drain_signals(signal_fd)

            if signal.SIGWINCH in received:
                size = get_winsize(tty, tty_size_override)
                _set_pty_size(master_fd, size)
                recorder.resize(size)

            if signal.SIGCHLD in received:
                try:
                    pid, status = os.waitpid(child, os.WNOHANG)
                except ChildProcessError:
                    pid, status = 0, 0

                if pid != 0:
                    return status

            if received & _TERMINATING_SIGNALS:
                os.kill(child, signal.SIGTERM)
                return None
    finally:
        os.close(master_fd)


def _exit_code(status: int) -> int:
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)

    if os.WIFSIGNALED(status):
        return 128 + os.WTERMSIG(status)

    return 1


def exec_command(
    command: Sequence[str],
    extra_env: Mapping[str, str],
    tty: _Terminal,
    tty_size_override: TtySizeOverride | None,
    recorder: PtyRecorder,
) -> int:
    """Run ``command`` in a new pseudo-terminal attached to ``tty``.

    Returns the command's exit code, or 128 plus the signal number if it
    was killed by a signal.
    """
    args = [str(arg) for arg in command]

    if not args:
        raise ValueError("empty command")

    if any("\0" in arg for arg in args):
        raise ValueError("command arguments must not contain NUL characters")

    size = get_winsize(tty, tty_size_override)
    recorder.start(size)

    with _watch_signals() as signal_fd:
        child, master_fd = os.forkpty()

        if child == 0:
            _exec_child(args, extra_env, size)

        try:
            status = _copy(master_fd, child, tty, tty_size_override, recorder, signal_fd)
        except BaseException:
            try:
                os.waitpid(child, 0)
            except ChildProcessError:
                pass
            raise

        if status is None:
            _, status = os.waitpid(child, 0)

    return _exit_code(status)