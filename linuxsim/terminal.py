#!/usr/bin/env python3
"""
Terminal session for linuxsim.

This module ties the pieces together: it owns the filesystem, the session
history, the interpreter and the line editor, enforces that only one command
runs at a time, and provides the interactive key-driven REPL.

Design Principles:
- The history is the screen; rendering only observes it
- One command in flight at a time, tracked by the busy flag
- Long-running commands run as tasks that Ctrl-C can cancel
"""

import argparse
import asyncio
import logging
import os
import random
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .filesystem import FileSystem, HOME_DIR
from .git_simulator import GitSimulator, Sleep
from .history import SessionHistory, HistoryItem, COMMAND, OUTPUT
from .interpreter import CommandInterpreter, SessionState
from .keys import Key, KeyReader
from .line_editor import LineEditor, Submit, Suggest, COMMAND_VOCABULARY, SUGGESTION_SEPARATOR
from .responder import Responder, OfflineResponder, GeminiResponder, DEFAULT_MODEL

logger = logging.getLogger(__name__)

WELCOME_LINES = [
    'Welcome to Linux Command Simulator!',
    'Type `help` for a list of commands.',
    '',
]


@dataclass
class TerminalConfig:
    """Configuration for terminal session."""
    user: str = 'kali'
    hostname: str = 'kali'
    home_dir: str = HOME_DIR
    prompt_format: str = '%u@%h:%w$'
    enable_colors: bool = True
    seed_command: Optional[str] = 'neofetch'
    stream_delay: Tuple[float, float] = (0.05, 0.30)
    vocabulary: Sequence[str] = COMMAND_VOCABULARY
    api_key: Optional[str] = field(default_factory=lambda: os.environ.get('GEMINI_API_KEY'))
    model: str = field(default_factory=lambda: os.environ.get('LINUXSIM_MODEL', DEFAULT_MODEL))


class RawModeFormatter(logging.Formatter):
    """Wraps another formatter so multi-line records keep their carriage returns."""

    def __init__(self, inner: logging.Formatter):
        super().__init__()
        self.inner = inner

    def format(self, record: logging.LogRecord) -> str:
        return self.inner.format(record).replace('\n', '\r\n')


@contextmanager
def raw_mode_logging(target: Optional[logging.Logger] = None):
    """End log lines with CRLF while the terminal is in raw mode."""
    target = target or logging.getLogger()
    saved = []
    for handler in target.handlers:
        if isinstance(handler, logging.StreamHandler):
            saved.append((handler, handler.terminator, handler.formatter))
            handler.setFormatter(RawModeFormatter(handler.formatter or logging.Formatter()))
            handler.terminator = '\r\n'
    try:
        yield
    finally:
        for handler, terminator, formatter in saved:
            handler.terminator = terminator
            handler.setFormatter(formatter)


def make_responder(config: TerminalConfig) -> Responder:
    """Pick the Gemini responder when an API key is configured."""
    if config.api_key:
        return GeminiResponder(config.api_key, model=config.model)
    logger.info("no API key configured, using the offline responder")
    return OfflineResponder(config.user, config.hostname)


class TerminalSession:
    """
    Main terminal session manager.

    submit() is the only way commands enter the session. While a command is
    running the session is busy and further submissions are rejected.
    """

    def __init__(self, config: Optional[TerminalConfig] = None,
                 fs: Optional[FileSystem] = None,
                 responder: Optional[Responder] = None,
                 rng: Optional[random.Random] = None,
                 sleep: Sleep = asyncio.sleep):
        self.config = config or TerminalConfig()
        self.fs = fs or FileSystem(home_dir=self.config.home_dir)
        self.history = SessionHistory([HistoryItem(OUTPUT, line) for line in WELCOME_LINES])
        self.responder = responder or make_responder(self.config)
        self.git = GitSimulator(self.fs, self.history, rng=rng, sleep=sleep,
                                delay_range=self.config.stream_delay)
        self.state = SessionState(cwd=self.config.home_dir, user=self.config.user)
        self.interpreter = CommandInterpreter(self.fs, self.history, self.responder,
                                              git=self.git, state=self.state)
        self.editor = LineEditor(self.history, self.config.vocabulary)

        self.busy = False
        self.running = False
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    @property
    def cwd(self) -> str:
        return self.state.cwd

    async def start(self):
        """Run the seed command through the responder before taking input."""
        seed = self.config.seed_command
        if not seed:
            return
        self.busy = True
        self.history.add_command(seed)
        await self._run(self.interpreter.delegate(seed))

    async def submit(self, line: str) -> bool:
        """Execute a submitted line. Returns False if it was ignored."""
        command = line.strip()
        if not command:
            return False
        if self.busy:
            logger.debug("session busy, ignoring %r", command)
            return False

        self.busy = True
        self.history.add_command(command)
        await self._run(self.interpreter.dispatch(command))
        return True

    async def _run(self, coro):
        self.busy = True
        self._cancel_requested = False
        self._task = asyncio.ensure_future(coro)
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._cancel_requested:
                raise
            logger.info("command cancelled")
        finally:
            self._task = None
            self.busy = False

    def cancel(self) -> bool:
        """Cancel the command in flight, if any."""
        if self._task is None or self._task.done():
            return False
        self._cancel_requested = True
        self._task.cancel()
        return True

    def suggest(self, suggestion: Suggest):
        """Show tab-completion candidates without executing anything."""
        self.history.add_command(suggestion.line)
        self.history.add_output(SUGGESTION_SEPARATOR.join(suggestion.candidates))

    async def handle_key(self, key: str):
        """Feed one keystroke to the editor and act on the result."""
        if self.busy:
            if key == Key.CTRL_C:
                self.cancel()
            return

        action = self.editor.handle_key(key)
        if isinstance(action, Submit):
            await self.submit(action.line)
        elif isinstance(action, Suggest):
            self.suggest(action)

    def get_prompt(self) -> str:
        """Generate the command prompt."""
        search_prompt = self.editor.prompt_prefix()
        if search_prompt:
            return search_prompt

        cwd = self.cwd
        home = self.config.home_dir
        if cwd == home or cwd.startswith(home + '/'):
            display_cwd = '~' + cwd[len(home):]
        else:
            display_cwd = cwd

        if cwd == home:
            basename = '~'
        else:
            basename = cwd.rsplit('/', 1)[-1] or '/'

        prompt = (self.config.prompt_format
                  .replace('%u', self.config.user)
                  .replace('%h', self.config.hostname)
                  .replace('%w', display_cwd)
                  .replace('%W', basename)
                  .replace('%$', '$'))

        if self.config.enable_colors:
            prompt = f'\033[34m{prompt}\033[0m'

        return prompt + ' '

    # Non-interactive use

    async def run_script(self, script_lines: List[str]) -> List[str]:
        """
        Run a script (list of command lines) and return outputs.
        """
        outputs = []
        for line in script_lines:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            start = len(self.history)
            await self.submit(line)
            produced = [item.text for item in self.history.items[start:] if item.kind == OUTPUT]
            outputs.append('\n'.join(produced))

        return outputs

    def run_command(self, command_line: str) -> str:
        """
        Run a single command and return output.

        This method is useful for non-interactive use.
        """
        outputs = asyncio.run(self.run_script([command_line]))
        return outputs[0] if outputs else ''

    # Interactive use

    def run_interactive(self):
        """Run the interactive REPL loop."""
        with KeyReader() as reader, raw_mode_logging():
            renderer = ScreenRenderer(self, sys.stdout)
            self.history.subscribe(renderer.on_history_change)
            renderer.redraw_all()
            asyncio.run(self._interactive_loop(reader, renderer))
        print("Goodbye!")

    async def _interactive_loop(self, reader: KeyReader, renderer: 'ScreenRenderer'):
        loop = asyncio.get_running_loop()
        keys: asyncio.Queue = asyncio.Queue()

        def pump():
            while True:
                key = reader.read_key()
                try:
                    loop.call_soon_threadsafe(keys.put_nowait, key)
                except RuntimeError:
                    # The event loop closed while we were waiting for a key.
                    return
                if key is None:
                    return

        threading.Thread(target=pump, daemon=True).start()

        await self.start()
        renderer.draw_input()
        self.running = True
        pending: Optional[asyncio.Task] = None

        while self.running:
            key = await keys.get()
            if key is None or (key == Key.CTRL_D and not self.busy and not self.editor.buffer):
                break

            if self.busy:
                await self.handle_key(key)
                continue

            if key == Key.CTRL_L:
                renderer.clear_screen()
                renderer.draw_input()
                continue

            action = self.editor.handle_key(key)
            if isinstance(action, Submit):
                renderer.erase_input()
                if action.line.strip():
                    pending = asyncio.ensure_future(self.submit(action.line))
                    pending.add_done_callback(lambda task: self._after_command(task, renderer))
                    continue
            elif isinstance(action, Suggest):
                renderer.erase_input()
                self.suggest(action)
            renderer.draw_input()

        self.running = False
        if pending is not None and not pending.done():
            self.cancel()
            await asyncio.gather(pending, return_exceptions=True)
        renderer.newline()

    def _after_command(self, task: asyncio.Task, renderer: 'ScreenRenderer'):
        if not task.cancelled() and task.exception() is not None:
            error = task.exception()
            logger.error("command failed: %s", error)
            renderer.write_text(f"Error: {error}")
        renderer.draw_input()


class ScreenRenderer:
    """Writes history changes and the input line to a raw-mode terminal."""

    def __init__(self, session: TerminalSession, stream):
        self.session = session
        self.stream = stream
        self._printed_lines = {}

    def _write(self, text: str):
        self.stream.write(text.replace('\n', '\r\n'))
        self.stream.flush()

    def write_text(self, text: str):
        self._write(text + '\n')

    def newline(self):
        self._write('\n')

    def erase_input(self):
        self._write('\r\033[K')

    def draw_input(self):
        self._write('\r\033[K' + self.session.get_prompt() + self.session.editor.buffer)

    def clear_screen(self):
        self._write('\033[2J\033[H')

    def redraw_all(self):
        self.clear_screen()
        self._printed_lines.clear()
        for index in range(len(self.session.history)):
            self._print_item(index)

    def _print_item(self, index: int):
        item = self.session.history[index]
        if item.kind == COMMAND:
            self.write_text(self.session.get_prompt() + item.text)
        else:
            self.write_text(item.text)
        self._printed_lines[index] = item.text.count('\n') + 1

    def on_history_change(self, event: str, index: Optional[int]):
        if event == 'clear':
            self.clear_screen()
            self._printed_lines.clear()
        elif event == 'append':
            self._print_item(index)
        elif event == 'update':
            lines = self.session.history[index].text.split('\n')
            printed = self._printed_lines.get(index, 0)
            for line in lines[printed:]:
                self.write_text(line)
            self._printed_lines[index] = len(lines)


def main():
    """Main entry point for the terminal simulator."""
    from dotenv import load_dotenv

    load_dotenv()

    parser = argparse.ArgumentParser(description='Linux Command Simulator')
    parser.add_argument('-c', '--command', help='Execute command and exit')
    parser.add_argument('--api-key', help='Gemini API key (default: $GEMINI_API_KEY)')
    parser.add_argument('--model', help='Gemini model name (default: $LINUXSIM_MODEL)')
    parser.add_argument('--offline', action='store_true', help='Never call the text-generation backend')
    parser.add_argument('--no-seed', action='store_true', help='Skip the startup command')
    parser.add_argument('--no-color', action='store_true', help='Disable prompt colors')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args()

    log_level = 'DEBUG' if args.verbose else os.environ.get('LOG_LEVEL', 'WARNING').upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    config = TerminalConfig(enable_colors=not args.no_color)
    if args.api_key:
        config.api_key = args.api_key
    if args.model:
        config.model = args.model
    if args.offline:
        config.api_key = None
    if args.no_seed or args.command:
        config.seed_command = None

    session = TerminalSession(config=config)

    if args.command:
        output = session.run_command(args.command)
        if output:
            print(output)
    else:
        session.run_interactive()


if __name__ == '__main__':
    main()
