import os
import sys

import pytest

from termcast.pty import PtyRecorder, exec_command, get_winsize, set_non_blocking
from termcast.tty import NullTty, TtySize


class RecordingSink(PtyRecorder):
    def __init__(self):
        self.tty_size = None
        self.chunks = []
        self.resizes = []

    def start(self, size):
        self.tty_size = size

    def output(self, data):
        self.chunks.append(bytes(data))

    def input(self, data):
        return True

    def resize(self, size):
        self.resizes.append(size)

    def texts(self):
        return [chunk.decode("utf-8", errors="replace") for chunk in self.chunks]


def _run(command, env=None, override=None):
    recorder = RecordingSink()
    with NullTty.open() as tty:
        code = exec_command(command, env or {}, tty, override, recorder)
    return recorder, code


def test_exec_basic():
    code = (
        "import sys\n"
        "import time\n"
        "sys.stdout.write('foo')\n"
        "sys.stdout.flush()\n"
        "time.sleep(0.1)\n"
        "sys.stdout.write('bar')\n"
    )

    recorder, _ = _run([sys.executable, "-c", code])

    assert recorder.texts() == ["foo", "bar"]
    assert recorder.tty_size == TtySize(80, 24)


def test_exec_no_output():
    recorder, code = _run(["true"])

    assert recorder.texts() == []
    assert code == 0


def test_exec_quick():
    recorder, _ = _run(["printf", "hello world\n"])

    assert recorder.texts() != []
    assert "".join(recorder.texts()).startswith("hello world")


def test_exec_extra_env():
    recorder, _ = _run(
        ["sh", "-c", 'printf "%s" "$TERMCAST_TEST_FOO"'],
        env={"TERMCAST_TEST_FOO": "bar"},
    )

    assert recorder.texts() == ["bar"]


def test_exec_winsize_override():
    recorder, _ = _run(["true"], override=(100, 50))

    assert recorder.tty_size == TtySize(100, 50)


def test_exec_child_sees_overridden_size():
    recorder, _ = _run(["stty", "size"], override=(100, 50))

    assert b"".join(recorder.chunks).strip() == b"50 100"


def test_exec_returns_exit_code():
    _, code = _run(["sh", "-c", "exit 3"])

    assert code == 3


def test_exec_signaled_child_code():
    _, code = _run(["sh", "-c", "kill -TERM $$"])

    assert code == 128 + 15


def test_exec_missing_program_fails():
    _, code = _run(["termcast-no-such-program-here"])

    assert code == 1


def test_exec_empty_command():
    with pytest.raises(ValueError):
        _run([])


def test_exec_rejects_nul_in_arguments():
    with pytest.raises(ValueError):
        _run(["echo", "a\0b"])


@pytest.mark.parametrize(
    "override, expected",
    [
        (None, TtySize(80, 24)),
        ((None, None), TtySize(80, 24)),
        ((120, None), TtySize(120, 24)),
        ((None, 30), TtySize(80, 30)),
        ((100, 50), TtySize(100, 50)),
    ],
)
def test_get_winsize(override, expected):
    with NullTty.open() as tty:
        assert get_winsize(tty, override) == expected


def test_set_non_blocking():
    rx, tx = os.pipe()
    try:
        set_non_blocking(rx)
        assert os.get_blocking(rx) is False
        with pytest.raises(BlockingIOError):
            os.read(rx, 1)
    finally:
        os.close(rx)
        os.close(tx)