#!/usr/bin/env python3
"""
Scripted git sub-shell for the simulated terminal.

None of this is version control. Each verb prints output shaped like the
real tool's, with random hashes and counts, and clone/fetch stream their
progress lines into a single history entry with short random pauses.

Supported verbs:
- git clone URL         Stream clone progress, then create the repository
- git commit -m "MSG"   Print a commit summary
- git log               Print 3-5 commits
- git diff              Print a small unified diff
- git fetch             Stream fetch progress
"""

import asyncio
import logging
import random
import re
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Tuple

from .filesystem import FileSystem
from .history import SessionHistory, StreamHandle

logger = logging.getLogger(__name__)

GIT_VERBS = ('clone', 'commit', 'log', 'diff', 'fetch')

HEX_DIGITS = '0123456789abcdef'
SHORT_HASH_LENGTH = 7
FULL_HASH_LENGTH = 40

DEFAULT_REPO_NAME = 'repository'
BRANCH = 'main'
AUTHOR = 'Kali User <kali@example.com>'
FETCH_REMOTE = 'github.com:example/repository.git'

CLONE_PROGRESS = [
    'remote: Enumerating objects: 23, done.',
    'remote: Counting objects: 100% (23/23), done.',
    'remote: Compressing objects: 100% (13/13), done.',
    'remote: Total 23 (delta 5), reused 20 (delta 5), pack-reused 0',
    'Receiving objects: 100% (23/23), 4.68 KiB | 4.68 MiB/s, done.',
    'Resolving deltas: 100% (5/5), done.',
]

COMMIT_MESSAGES = [
    "feat: Implement user authentication",
    "fix: Correct rendering issue on Firefox",
    "docs: Update README with installation instructions",
    "refactor: Simplify component logic",
    "chore: Bump dependency versions",
]

# (file name, old content, new content)
DIFF_SCENARIOS = [
    ('src/main.js', 'console.log("Hello, World!");', 'console.log("Hello, Git!");\n+const version = "1.1";'),
    ('README.md', 'A repository cloned with the simulator.', 'A repository for the awesome simulator project.'),
]

COMMIT_MESSAGE_PATTERN = re.compile(r"""-m\s+"([^"]*)"|-m\s+'([^']*)'""")

Sleep = Callable[[float], Awaitable[None]]


def is_git_command(command_line: str) -> bool:
    """Check whether a command line names one of the scripted git verbs."""
    parts = command_line.split()
    return len(parts) >= 2 and parts[0].lower() == 'git' and parts[1].lower() in GIT_VERBS


def repo_name_from_url(url: str) -> str:
    """Derive the clone directory name from a repository URL."""
    name = url.rstrip().split('/')[-1].split(':')[-1]
    if name.endswith('.git'):
        name = name[:-len('.git')]
    if name in ('', '.', '..'):
        return DEFAULT_REPO_NAME
    return name


class GitSimulator:
    """Produces plausible git output against the shared filesystem and history."""

    def __init__(self, fs: FileSystem, history: SessionHistory,
                 rng: Optional[random.Random] = None,
                 sleep: Sleep = asyncio.sleep,
                 delay_range: Tuple[float, float] = (0.05, 0.30)):
        self.fs = fs
        self.history = history
        self.rng = rng or random.Random()
        self._sleep = sleep
        self.delay_range = delay_range

    def random_hash(self, length: int = SHORT_HASH_LENGTH) -> str:
        """Return a random lowercase hex string of exactly length characters."""
        return ''.join(self.rng.choice(HEX_DIGITS) for _ in range(length))

    async def run(self, command_line: str, cwd: str):
        """Execute a git command line, writing its output to the history."""
        parts = command_line.split()
        verb = parts[1].lower()
        logger.debug("git %s in %s", verb, cwd)

        if verb == 'clone':
            await self.clone(parts[2] if len(parts) > 2 else None, cwd)
        elif verb == 'commit':
            self.history.add_output(self.commit(command_line))
        elif verb == 'log':
            self.history.add_output(self.log())
        elif verb == 'diff':
            self.history.add_output(self.diff())
        elif verb == 'fetch':
            await self.fetch()

    async def _stream(self, handle: StreamHandle, lines: List[str]):
        """Append lines to one history entry, pausing before each."""
        low, high = self.delay_range
        try:
            for line in lines:
                await self._sleep(self.rng.uniform(low, high))
                handle.append_line(line)
        except asyncio.CancelledError:
            handle.append_line('^C')
            raise

    async def clone(self, url: Optional[str], cwd: str):
        """Stream clone progress, then materialize the repository under cwd."""
        if not url:
            self.history.add_output("fatal: You must specify a repository to clone.")
            return

        name = repo_name_from_url(url)
        if self.fs.exists(self.fs.resolve(cwd, name)):
            self.history.add_output(
                f"fatal: destination path '{name}' already exists and is not an empty directory."
            )
            return

        handle = self.history.open_stream(f"Cloning into '{name}'...")
        await self._stream(handle, CLONE_PROGRESS)

        if not self.fs.materialize_clone(cwd, name):
            logger.warning("clone of %s into %s could not be materialized", name, cwd)

    def commit(self, command_line: str) -> str:
        """Format a commit summary for a `git commit -m` command line."""
        match = COMMIT_MESSAGE_PATTERN.search(command_line)
        if not match:
            return 'fatal: You must specify a commit message with -m "<message>"'

        message = match.group(1) if match.group(1) is not None else match.group(2)
        if not message.strip():
            return "fatal: commit message is empty."

        files_changed = self.rng.randint(1, 3)
        insertions = self.rng.randint(1, 20)
        files_word = 'file' if files_changed == 1 else 'files'
        insertions_word = 'insertion' if insertions == 1 else 'insertions'

        return (f"[{BRANCH} {self.random_hash()}] {message}\n"
                f" {files_changed} {files_word} changed, {insertions} {insertions_word}(+)")

    def _past_date(self) -> str:
        seconds = self.rng.uniform(0, timedelta(days=365).total_seconds())
        when = datetime.now(timezone.utc) - timedelta(seconds=seconds)
        return when.strftime('%a %b %d %H:%M:%S %Y +0000')

    def log(self) -> str:
        """Return 3-5 synthesized commits, most recent first."""
        records = []
        for i in range(self.rng.randint(3, 5)):
            commit_line = f"commit {self.random_hash(FULL_HASH_LENGTH)}"
            if i == 0:
                commit_line += f" (HEAD -> {BRANCH}, origin/{BRANCH})"
            records.append('\n'.join([
                commit_line,
                f"Author: {AUTHOR}",
                f"Date:   {self._past_date()}",
                '',
                f"    {self.rng.choice(COMMIT_MESSAGES)}",
            ]))
        return '\n\n'.join(records)

    def diff(self) -> str:
        """Return a unified diff for one of the fictional file changes."""
        name, old, new = self.rng.choice(DIFF_SCENARIOS)
        old_count = len(old.split('\n'))
        new_count = len(new.split('\n'))

        return '\n'.join([
            f"diff --git a/{name} b/{name}",
            f"index {self.random_hash()}..{self.random_hash()} 100644",
            f"--- a/{name}",
            f"+++ b/{name}",
            f"@@ -1,{old_count} +1,{new_count} @@",
            f"-{old}",
            f"+{new}",
        ])

    def fetch_progress(self) -> List[str]:
        """Build the progress lines for one fetch from random object counts."""
        objects = self.rng.randint(5, 14)
        deltas = self.rng.randint(0, 4)
        total = objects - deltas
        compressed = objects // 2

        return [
            f"remote: Enumerating objects: {objects}, done.",
            f"remote: Counting objects: 100% ({objects}/{objects}), done.",
            f"remote: Compressing objects: 100% ({compressed}/{compressed}), done.",
            f"remote: Total {total} (delta {deltas}), reused {total} (delta {deltas}), pack-reused 0",
            f"Unpacking objects: 100% ({total}/{total}), done.",
            f"From {FETCH_REMOTE}",
            f"   {self.random_hash()}..{self.random_hash()}  {BRANCH}       -> origin/{BRANCH}",
        ]

    async def fetch(self):
        """Stream fetch progress for the origin remote."""
        handle = self.history.open_stream('Fetching origin')
        await self._stream(handle, self.fetch_progress())
