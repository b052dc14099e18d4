#!/usr/bin/env python3
"""
Keystroke names and a raw terminal key reader.

The line editor consumes key names, not bytes: printable characters are
passed through as themselves and everything else is one of the Key
constants below.
"""

import codecs
import os
import sys
from typing import List, Optional


class Key:
    """Names of the non-printable keys the line editor understands."""
    ENTER = 'enter'
    TAB = 'tab'
    BACKSPACE = 'backspace'
    ESCAPE = 'escape'
    UP = 'up'
    DOWN = 'down'
    LEFT = 'left'
    RIGHT = 'right'
    CTRL_C = 'ctrl-c'
    CTRL_D = 'ctrl-d'
    CTRL_L = 'ctrl-l'
    CTRL_R = 'ctrl-r'

    ARROWS = (UP, DOWN, LEFT, RIGHT)


CONTROL_KEYS = {
    '\r': Key.ENTER,
    '\n': Key.ENTER,
    '\t': Key.TAB,
    '\x7f': Key.BACKSPACE,
    '\x08': Key.BACKSPACE,
    '\x03': Key.CTRL_C,
    '\x04': Key.CTRL_D,
    '\x0c': Key.CTRL_L,
    '\x12': Key.CTRL_R,
}

# Seconds to wait for the rest of an escape sequence.
ESCAPE_TIMEOUT = 0.05

ARROW_CODES = {
    'A': Key.UP,
    'B': Key.DOWN,
    'C': Key.RIGHT,
    'D': Key.LEFT,
}


def is_printable(key: str) -> bool:
    """Check whether a key name is a single printable character."""
    return len(key) == 1 and key.isprintable()


def decode_key(read_char, unread=None, more_input=None) -> Optional[str]:
    """Read one keystroke using read_char() and return its key name.

    After an escape character, more_input() says whether the rest of an
    escape sequence is waiting; a character that turns out not to belong
    to one is handed back through unread(). Returns None at end of input.
    """
    char = read_char()
    if not char:
        return None

    if char == '\x1b':
        if more_input is not None and not more_input():
            return Key.ESCAPE
        second = read_char()
        if second != '[':
            if second and unread is not None:
                unread(second)
            return Key.ESCAPE
        return ARROW_CODES.get(read_char(), Key.ESCAPE)

    return CONTROL_KEYS.get(char, char)


class KeyReader:
    """Reads single keystrokes from a terminal in raw mode."""

    def __init__(self, stream=None, escape_timeout: float = ESCAPE_TIMEOUT):
        self.stream = stream or sys.stdin
        self.escape_timeout = escape_timeout
        self._saved = None
        self._fd: Optional[int] = None
        self._decoder = None
        self._pending: List[str] = []

    def __enter__(self):
        if os.name != 'nt' and self.stream.isatty():
            import termios
            import tty

            self._fd = self.stream.fileno()
            self._saved = termios.tcgetattr(self._fd)
            self._decoder = codecs.getincrementaldecoder('utf-8')('replace')
            tty.setraw(self._fd)
        return self

    def __exit__(self, *args):
        if self._saved is not None:
            import termios

            termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
            self._saved = None
            self._fd = None

    @property
    def raw(self) -> bool:
        return self._saved is not None

    def _read_char(self) -> str:
        if self._pending:
            return self._pending.pop()
        if not self.raw:
            return self.stream.read(1)

        # select() only sees bytes still in the kernel buffer.
        while True:
            data = os.read(self._fd, 1)
            if not data:
                return ''
            char = self._decoder.decode(data)
            if char:
                return char

    def _unread(self, char: str):
        self._pending.append(char)

    def _more_input(self) -> bool:
        if self._pending or not self.raw:
            return True
        import select

        ready, _, _ = select.select([self._fd], [], [], self.escape_timeout)
        return bool(ready)

    def read_key(self) -> Optional[str]:
        """Block until a keystroke arrives and return its key name."""
        return decode_key(self._read_char, self._unread, self._more_input)
