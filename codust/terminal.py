"""Raw keyboard input and screen handling for the interactive selector."""

import os
import signal
import sys
from collections import deque
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

from rich.console import Console

if os.name == "nt":  # pragma: no cover
    import msvcrt
else:
    import termios
    import tty


class Key(Enum):
    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    ESCAPE = "escape"
    QUIT = "quit"
    OTHER = "other"


_ESCAPE_SEQUENCES = {
    b"\x1b[A": Key.UP,
    b"\x1bOA": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1bOB": Key.DOWN,
}

_WINDOWS_ARROWS = {b"H": Key.UP, b"P": Key.DOWN}

_READ_SIZE = 64
_pending_keys: deque[Key] = deque()
_partial = b""


def decode_key(data: bytes) -> Key:
    """Map the bytes of a single key press to a ``Key``.

    Raises:
        KeyboardInterrupt: On Ctrl-C.
    """
    if data == b"\x03":
        raise KeyboardInterrupt
    if data in _ESCAPE_SEQUENCES:
        return _ESCAPE_SEQUENCES[data]
    if data == b"\x1b":
        return Key.ESCAPE
    if data in (b"\r", b"\n", b"\r\n"):
        return Key.ENTER
    if data == b"q":
        return Key.QUIT
    if len(data) == 2 and data[:1] in (b"\x00", b"\xe0"):
        return _WINDOWS_ARROWS.get(data[1:], Key.OTHER)
    return Key.OTHER


def split_key_sequences(data: bytes) -> tuple[list[bytes], bytes]:
    """Split one raw read into the bytes of each key press.

    A held arrow key can deliver several escape sequences in a single read.
    Returns the complete chunks and any unterminated escape sequence left at
    the end of ``data``.
    """
    chunks = []
    index = 0
    while index < len(data):
        if data[index:index + 1] == b"\x1b":
            if index + 1 == len(data):
                return chunks, data[index:]
            if data[index + 1:index + 2] in (b"[", b"O"):
                # CSI/SS3: parameter bytes up to a final byte in 0x40-0x7E.
                end = index + 2
                while end < len(data) and not 0x40 <= data[end] <= 0x7E:
                    end += 1
                if end == len(data):
                    return chunks, data[index:]
                chunks.append(data[index:end + 1])
                index = end + 1
                continue
        elif data[index:index + 2] == b"\r\n":
            chunks.append(b"\r\n")
            index += 2
            continue
        chunks.append(data[index:index + 1])
        index += 1
    return chunks, b""


def read_key() -> Key:
    """Block until one key press arrives on stdin.

    End of input counts as Escape.
    """
    global _partial
    if os.name == "nt":  # pragma: no cover
        data = msvcrt.getch()
        if data in (b"\x00", b"\xe0"):
            data += msvcrt.getch()
        return decode_key(data)
    fd = sys.stdin.fileno()
    while not _pending_keys:
        data = os.read(fd, _READ_SIZE)
        if not data and not _partial:
            return Key.ESCAPE
        chunks, rest = split_key_sequences(_partial + data)
        _partial = b""
        if rest and len(data) == _READ_SIZE:
            # A full read may have cut the last escape sequence in two.
            _partial = rest
        elif rest:
            chunks.append(rest)
        keys = [decode_key(chunk) for chunk in chunks]
        _pending_keys.extend(keys)
    return _pending_keys.popleft()


@contextmanager
def raw_mode(stream=None) -> Iterator[None]:
    """Put the terminal in unbuffered, no-echo mode until the block exits.

    The saved attributes are restored on every exit path, including
    exceptions and ``KeyboardInterrupt``.
    """
    if os.name == "nt":  # pragma: no cover
        yield
        return
    stream = stream or sys.stdin
    fd = stream.fileno()
    old_settings = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)


@contextmanager
def alternate_screen(console: Console) -> Iterator[None]:
    """Draw on the alternate screen with a hidden cursor."""
    console.set_alt_screen(True)
    console.show_cursor(False)
    try:
        yield
    finally:
        console.show_cursor(True)
        console.set_alt_screen(False)


def is_interactive(stream=None) -> bool:
    stream = stream or sys.stdin
    return hasattr(stream, "isatty") and stream.isatty()


@contextmanager
def on_resize(callback) -> Iterator[None]:
    """Call ``callback`` whenever the terminal is resized inside the block."""
    if not hasattr(signal, "SIGWINCH"):  # pragma: no cover
        yield
        return
    previous = signal.signal(signal.SIGWINCH, lambda signum, frame: callback())
    try:
        yield
    finally:
        signal.signal(signal.SIGWINCH, previous)
