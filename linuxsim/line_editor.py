#!/usr/bin/env python3
"""
Line editor for the simulated terminal.

The editor is a small state machine driven by key names (see keys.py):

- Normal: keys edit the input buffer, Up/Down walk the command log, Tab
  completes against a fixed command vocabulary, Enter submits.
- ReverseSearch: entered with Ctrl-R; typed characters build a query that is
  matched against the command log from the newest entry backwards.

The editor never executes anything. handle_key() returns a Submit or
Suggest action for the session to act on.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

from .history import SessionHistory
from .keys import Key, is_printable

logger = logging.getLogger(__name__)

COMMAND_VOCABULARY = (
    'ls', 'pwd', 'whoami', 'neofetch', 'apt update',
    'apt install', 'ping', 'help', 'clear', 'cd', 'cat', 'mkdir',
    'git status', 'git log', 'git clone', 'git push', 'git pull', 'git branch',
    'git commit', 'git diff', 'git fetch',
    'termux-fix-shebang',
)

SUGGESTION_SEPARATOR = '   '


class EditorMode(Enum):
    NORMAL = 'normal'
    REVERSE_SEARCH = 'reverse-search'


@dataclass
class Submit:
    """The user submitted a line."""
    line: str


@dataclass
class Suggest:
    """Tab completion found several candidates for the typed input."""
    line: str
    candidates: List[str]


EditorAction = Union[Submit, Suggest]


class LineEditor:
    """Input buffer, history navigation, reverse search and tab completion."""

    def __init__(self, history: SessionHistory,
                 vocabulary: Sequence[str] = COMMAND_VOCABULARY):
        self.history = history
        self.vocabulary = list(vocabulary)
        self.buffer = ''
        self.mode = EditorMode.NORMAL
        self.search_query = ''
        self.search_cursor = 0
        self._browse_index: Optional[int] = None

    @property
    def searching(self) -> bool:
        return self.mode == EditorMode.REVERSE_SEARCH

    def prompt_prefix(self) -> Optional[str]:
        """The search prompt while searching, otherwise None."""
        if self.searching:
            return f"(reverse-i-search)`{self.search_query}`: "
        return None

    def handle_key(self, key: str) -> Optional[EditorAction]:
        """Apply one keystroke and return an action for the session, if any."""
        if self.searching:
            return self._handle_search_key(key)
        return self._handle_normal_key(key)

    # Normal mode

    def _handle_normal_key(self, key: str) -> Optional[EditorAction]:
        if key == Key.CTRL_R:
            self.enter_search()
        elif key == Key.ENTER:
            return self.submit()
        elif key == Key.TAB:
            return self.complete()
        elif key == Key.BACKSPACE:
            self.buffer = self.buffer[:-1]
        elif key == Key.UP:
            self._previous()
        elif key == Key.DOWN:
            self._next()
        elif key == Key.CTRL_C:
            self.buffer = ''
            self._browse_index = None
        elif is_printable(key):
            self.buffer += key
        return None

    def submit(self) -> Submit:
        """Hand the current buffer to the session and clear it."""
        line = self.buffer
        self.buffer = ''
        self._browse_index = None
        return Submit(line)

    def _previous(self):
        log = self.history.command_log
        index = len(log) if self._browse_index is None else self._browse_index
        if index > 0:
            self._browse_index = index - 1
            self.buffer = log[self._browse_index]

    def _next(self):
        if self._browse_index is None:
            return
        log = self.history.command_log
        if self._browse_index < len(log) - 1:
            self._browse_index += 1
            self.buffer = log[self._browse_index]
        else:
            self._browse_index = None
            self.buffer = ''

    def complete(self) -> Optional[Suggest]:
        """Complete the buffer against the vocabulary.

        One match replaces the buffer; several are returned as a Suggest
        action with the buffer left as typed.
        """
        typed = self.buffer.strip()
        if not typed:
            return None

        matches = [command for command in self.vocabulary if command.startswith(typed)]
        if len(matches) == 1:
            self.buffer = matches[0] + ' '
        elif len(matches) > 1:
            return Suggest(self.buffer, matches)
        return None

    # Reverse search

    def enter_search(self):
        """Switch to reverse search, starting past the newest command."""
        self.mode = EditorMode.REVERSE_SEARCH
        self.search_query = ''
        self.search_cursor = len(self.history.command_log)
        self.buffer = ''

    def exit_search(self):
        """Leave reverse search, keeping the matched line as the buffer."""
        self.mode = EditorMode.NORMAL
        self.search_query = ''
        self._browse_index = None

    def search(self, start: int):
        """Find the newest command before start containing the query.

        A miss leaves the buffer on the previous match; an empty query
        clears it.
        """
        if not self.search_query:
            self.buffer = ''
            return

        log = self.history.command_log
        for i in range(min(start, len(log)) - 1, -1, -1):
            if self.search_query in log[i]:
                self.buffer = log[i]
                self.search_cursor = i
                return

    def _restart_search(self):
        self.search_cursor = len(self.history.command_log)
        self.search(self.search_cursor)

    def _handle_search_key(self, key: str) -> Optional[EditorAction]:
        if key == Key.CTRL_R:
            self.search(self.search_cursor)
        elif key == Key.BACKSPACE:
            self.search_query = self.search_query[:-1]
            self._restart_search()
        elif key == Key.ENTER:
            self.exit_search()
            return self.submit()
        elif key == Key.ESCAPE or key in Key.ARROWS or key == Key.CTRL_C:
            self.exit_search()
        elif is_printable(key):
            self.search_query += key
            self._restart_search()
        return None
