"""
linuxsim - An interactive Linux shell simulator with an in-memory filesystem

This package provides a virtual directory tree, a small set of built-in
commands, a scripted git sub-shell, and a line editor with history, reverse
search and tab completion. Commands it does not know are answered by a
pluggable responder.
"""

__version__ = "0.1.0"

from .filesystem import (
    FileSystem,
    FileNode,
    DirNode,
    Node,
    MkdirStatus,
    ShebangStatus,
    ShebangResult,
)

from .history import (
    SessionHistory,
    HistoryItem,
    StreamHandle,
)

from .interpreter import (
    CommandInterpreter,
    SessionState,
)

from .git_simulator import (
    GitSimulator,
)

from .line_editor import (
    LineEditor,
    EditorMode,
    Submit,
    Suggest,
    COMMAND_VOCABULARY,
)

from .responder import (
    Responder,
    OfflineResponder,
    GeminiResponder,
    ResponderError,
)

from .terminal import (
    TerminalSession,
    TerminalConfig,
)

__all__ = [
    # Filesystem
    "FileSystem",
    "FileNode",
    "DirNode",
    "Node",
    "MkdirStatus",
    "ShebangStatus",
    "ShebangResult",

    # History
    "SessionHistory",
    "HistoryItem",
    "StreamHandle",

    # Interpreter
    "CommandInterpreter",
    "SessionState",
    "GitSimulator",

    # Line editor
    "LineEditor",
    "EditorMode",
    "Submit",
    "Suggest",
    "COMMAND_VOCABULARY",

    # Responders
    "Responder",
    "OfflineResponder",
    "GeminiResponder",
    "ResponderError",

    # Terminal
    "TerminalSession",
    "TerminalConfig",

    # Version info
    "__version__",
]
