#!/usr/bin/env python3
"""
Session history for the simulated terminal.

The history is the single ordered record of everything shown on screen:
submitted command lines and their output. Streaming commands hold a
StreamHandle to the output entry they created and grow only that entry.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

COMMAND = 'command'
OUTPUT = 'output'


@dataclass
class HistoryItem:
    """A single history entry, tagged as a command line or output text."""
    kind: str
    text: str


class StreamHandle:
    """Write access to one output entry created by a streaming command."""

    def __init__(self, history: 'SessionHistory', index: int, generation: int):
        self._history = history
        self.index = index
        self._generation = generation

    @property
    def text(self) -> str:
        return self._history.items[self.index].text

    def append_line(self, line: str):
        """Append a line to the entry this handle was created for."""
        self._history._append_to_entry(self, line)


# Listener signature: (event, index) where event is 'append', 'update' or 'clear'.
Listener = Callable[[str, Optional[int]], None]


class SessionHistory:
    """Ordered, append-only command/output history."""

    def __init__(self, items: Optional[List[HistoryItem]] = None):
        self.items: List[HistoryItem] = list(items or [])
        self._generation = 0
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __getitem__(self, index: int) -> HistoryItem:
        return self.items[index]

    def subscribe(self, listener: Listener):
        """Register a callback fired after every change."""
        self._listeners.append(listener)

    def _notify(self, event: str, index: Optional[int] = None):
        for listener in self._listeners:
            listener(event, index)

    def add_command(self, text: str):
        """Add a submitted command line."""
        self.items.append(HistoryItem(COMMAND, text))
        self._notify('append', len(self.items) - 1)

    def add_output(self, text: str):
        """Add an output entry."""
        self.items.append(HistoryItem(OUTPUT, text))
        self._notify('append', len(self.items) - 1)

    def open_stream(self, text: str) -> StreamHandle:
        """Add an output entry and return a handle for growing it in place."""
        self.add_output(text)
        return StreamHandle(self, len(self.items) - 1, self._generation)

    def _append_to_entry(self, handle: StreamHandle, line: str):
        if handle._generation != self._generation:
            # The history was cleared since the stream opened.
            logger.warning("dropping stream output for cleared entry %d", handle.index)
            return
        item = self.items[handle.index]
        item.text = f"{item.text}\n{line}"
        self._notify('update', handle.index)

    def clear(self):
        """Remove every entry."""
        self.items.clear()
        self._generation += 1
        self._notify('clear')

    @property
    def command_log(self) -> List[str]:
        """Every submitted command line, oldest first."""
        return [item.text for item in self.items if item.kind == COMMAND]
