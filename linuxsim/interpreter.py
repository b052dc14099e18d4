#!/usr/bin/env python3
"""
Command interpreter for the simulated terminal.

This module maps a submitted command line onto the filesystem, the scripted
git sub-shell, or the external responder, and records the output in the
session history.

Dispatch order:
- clear                      Wipe the history
- git clone|commit|log|...   Scripted git sub-shell
- pwd, cd, ls, cat, ...      Filesystem built-ins
- anything else              External responder
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .filesystem import (
    FileSystem, DirNode, FileNode, MkdirStatus, ShebangStatus, HOME_DIR
)
from .git_simulator import GitSimulator, is_git_command
from .history import SessionHistory
from .responder import Responder

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Mutable state shared by every command of a session."""
    cwd: str = HOME_DIR
    user: str = 'kali'


class CommandInterpreter:
    """
    Executes command lines against the session's filesystem and history.

    Built-in handlers return the output text ('' for no output). Lines that
    match no built-in are forwarded to the responder; the interpreter never
    reports an unknown command itself.
    """

    def __init__(self, fs: FileSystem, history: SessionHistory,
                 responder: Responder, git: Optional[GitSimulator] = None,
                 state: Optional[SessionState] = None):
        self.fs = fs
        self.history = history
        self.responder = responder
        self.git = git or GitSimulator(fs, history)
        self.state = state or SessionState(cwd=fs.home_dir)

        self.builtins: Dict[str, Callable[[List[str]], str]] = {
            'pwd': self._pwd,
            'cd': self._cd,
            'ls': self._ls,
            'cat': self._cat,
            'mkdir': self._mkdir,
            'whoami': self._whoami,
            'termux-fix-shebang': self._fix_shebang,
        }

    @property
    def cwd(self) -> str:
        return self.state.cwd

    async def dispatch(self, command_line: str):
        """Run one trimmed, non-empty command line.

        The command itself is expected to be in the history already.
        """
        if command_line.lower() == 'clear':
            self.history.clear()
            return

        if is_git_command(command_line):
            await self.git.run(command_line, self.cwd)
            return

        output = self.run_builtin(command_line)
        if output is not None:
            if output:
                self.history.add_output(output)
            return

        await self.delegate(command_line)

    def run_builtin(self, command_line: str) -> Optional[str]:
        """Run a filesystem built-in, or return None if the verb is not one."""
        verb, *args = command_line.split()
        handler = self.builtins.get(verb.lower())
        if handler is None:
            return None
        return handler(args)

    async def delegate(self, command_line: str):
        """Forward a command line to the responder and record its answer."""
        try:
            output = await self.responder.respond(command_line, self.cwd)
        except Exception as e:
            logger.warning("responder failed for %r: %s", command_line, e)
            output = f"Error: {e}"
        self.history.add_output(output)

    # Built-ins

    def _pwd(self, args: List[str]) -> str:
        return self.cwd

    def _cd(self, args: List[str]) -> str:
        target = args[0] if args else self.fs.home_dir
        path = self.fs.resolve(self.cwd, target)

        if not self.fs.is_dir(path):
            return f"cd: no such file or directory: {target}"

        self.state.cwd = path
        return ''

    def _ls(self, args: List[str]) -> str:
        show_hidden = '-a' in args or '--all' in args
        entries = self.fs.listdir(self.cwd, show_hidden=show_hidden)

        if entries is None:
            return f"ls: cannot access '{self.cwd}': No such file or directory"

        return '\n'.join(f"{name}/" if is_dir else name for name, is_dir in entries)

    def _cat(self, args: List[str]) -> str:
        if not args:
            return 'cat: missing operand'

        node = self.fs.lookup(self.fs.resolve(self.cwd, args[0]))
        if isinstance(node, FileNode):
            return node.content
        elif isinstance(node, DirNode):
            return f"cat: {args[0]}: Is a directory"
        return f"cat: {args[0]}: No such file or directory"

    def _mkdir(self, args: List[str]) -> str:
        if not args:
            return 'mkdir: missing operand'

        target = args[0]
        status = self.fs.mkdir(self.cwd, target)

        if status == MkdirStatus.CREATED:
            return ''
        elif status == MkdirStatus.EXISTS:
            reason = 'File exists'
        elif status == MkdirStatus.INVALID_NAME:
            reason = 'Invalid argument'
        else:
            reason = 'No such file or directory'
        return f"mkdir: cannot create directory ‘{target}’: {reason}"

    def _whoami(self, args: List[str]) -> str:
        return self.state.user

    def _fix_shebang(self, args: List[str]) -> str:
        if not args:
            return 'usage: termux-fix-shebang <file>'

        name = args[0]
        result = self.fs.rewrite_shebang(self.fs.resolve(self.cwd, name))

        if result.status == ShebangStatus.REWRITTEN:
            return (f"shebang of {name} has been rewritten from "
                    f"'{result.old_line}' to '{result.new_line}'")
        elif result.status == ShebangStatus.NO_SHEBANG:
            return f"{name} does not have a shebang or is empty."
        elif result.status == ShebangStatus.NOT_A_FILE:
            return f"termux-fix-shebang: not a file: {name}"
        return f"termux-fix-shebang: file not found: {name}"
