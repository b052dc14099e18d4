#!/usr/bin/env python3
"""
Tests for the command interpreter: dispatch order and the filesystem built-ins.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import random

import pytest

from linuxsim.filesystem import FileSystem, HOME_DIR, TERMUX_SHEBANG
from linuxsim.git_simulator import GitSimulator
from linuxsim.history import SessionHistory, COMMAND, OUTPUT
from linuxsim.interpreter import CommandInterpreter
from linuxsim.responder import Responder, ResponderError


class RecordingResponder(Responder):
    """Responder that remembers what it was asked."""

    def __init__(self, answer='answered'):
        self.answer = answer
        self.calls = []

    async def respond(self, command_line, cwd):
        self.calls.append((command_line, cwd))
        return self.answer


class FailingResponder(Responder):
    async def respond(self, command_line, cwd):
        raise ResponderError('quota exceeded')


async def no_sleep(delay):
    pass


@pytest.fixture
def responder():
    return RecordingResponder()


@pytest.fixture
def interpreter(responder):
    fs = FileSystem()
    history = SessionHistory()
    git = GitSimulator(fs, history, rng=random.Random(7), sleep=no_sleep)
    return CommandInterpreter(fs, history, responder, git=git)


def run(interpreter, line):
    """Run a built-in synchronously and return its output text."""
    return interpreter.run_builtin(line)


class TestNavigation:
    """pwd and cd."""

    def test_starts_at_home(self, interpreter):
        assert run(interpreter, 'pwd') == HOME_DIR

    def test_cd_and_pwd(self, interpreter):
        assert run(interpreter, 'cd documents') == ''
        assert run(interpreter, 'pwd') == '/home/kali/documents'

    def test_cd_without_argument_goes_home(self, interpreter):
        run(interpreter, 'cd /')
        run(interpreter, 'cd')
        assert interpreter.cwd == HOME_DIR

    def test_cd_tilde(self, interpreter):
        run(interpreter, 'cd /home')
        run(interpreter, 'cd ~')
        assert interpreter.cwd == HOME_DIR

    def test_cd_dotdot_past_root(self, interpreter):
        run(interpreter, 'cd ../../../../..')
        assert interpreter.cwd == '/'

    def test_cd_failure_is_idempotent(self, interpreter):
        first = run(interpreter, 'cd nowhere')
        second = run(interpreter, 'cd nowhere')
        assert first == 'cd: no such file or directory: nowhere'
        assert second == first
        assert interpreter.cwd == HOME_DIR

    def test_cd_into_file_fails(self, interpreter):
        assert run(interpreter, 'cd README.md') == 'cd: no such file or directory: README.md'
        assert interpreter.cwd == HOME_DIR

    def test_verbs_are_case_insensitive(self, interpreter):
        assert run(interpreter, 'PWD') == HOME_DIR


class TestLs:
    """Directory listing of the working directory."""

    def test_hides_dotfiles_and_marks_directories(self, interpreter):
        assert run(interpreter, 'ls').split('\n') == [
            'README.md', 'chroot.py', 'Cyberpunk_QWERTY_(US).xml', 'documents/', 'projects/',
        ]

    def test_all(self, interpreter):
        assert '.secret_file' in run(interpreter, 'ls -a').split('\n')

    def test_deterministic(self, interpreter):
        assert run(interpreter, 'ls -a') == run(interpreter, 'ls -a')

    def test_empty_directory(self, interpreter):
        run(interpreter, 'mkdir empty')
        run(interpreter, 'cd empty')
        assert run(interpreter, 'ls') == ''

    def test_unresolvable_cwd(self, interpreter):
        interpreter.state.cwd = '/gone'
        assert run(interpreter, 'ls') == "ls: cannot access '/gone': No such file or directory"


class TestCat:
    """File display."""

    def test_file(self, interpreter):
        assert run(interpreter, 'cat documents/project_plan.txt') == (
            'Phase 1: Initial setup.\nPhase 2: Core feature implementation.\nPhase 3: Launch.'
        )

    def test_missing_operand(self, interpreter):
        assert run(interpreter, 'cat') == 'cat: missing operand'

    def test_directory(self, interpreter):
        assert run(interpreter, 'cat documents') == 'cat: documents: Is a directory'

    def test_missing_file(self, interpreter):
        assert run(interpreter, 'cat nope.txt') == 'cat: nope.txt: No such file or directory'

    def test_hidden_file(self, interpreter):
        assert run(interpreter, 'cat .secret_file') == 'This is a hidden file. You found it!'


class TestMkdir:
    """Directory creation messages."""

    def test_create_then_exists(self, interpreter):
        assert run(interpreter, 'mkdir foo') == ''
        assert run(interpreter, 'mkdir foo') == "mkdir: cannot create directory ‘foo’: File exists"

    def test_round_trip(self, interpreter):
        run(interpreter, 'mkdir foo')
        run(interpreter, 'cd foo')
        assert run(interpreter, 'pwd') == '/home/kali/foo'

    def test_round_trip_at_root(self, interpreter):
        run(interpreter, 'cd /')
        run(interpreter, 'mkdir foo')
        run(interpreter, 'cd foo')
        assert run(interpreter, 'pwd') == '/foo'

    def test_missing_operand(self, interpreter):
        assert run(interpreter, 'mkdir') == 'mkdir: missing operand'

    def test_missing_parent_quotes_typed_argument(self, interpreter):
        assert run(interpreter, 'mkdir ./a/b') == (
            "mkdir: cannot create directory ‘./a/b’: No such file or directory"
        )

    def test_invalid_name(self, interpreter):
        assert run(interpreter, 'mkdir /') == "mkdir: cannot create directory ‘/’: Invalid argument"


class TestMisc:
    """whoami and termux-fix-shebang."""

    def test_whoami(self, interpreter):
        assert run(interpreter, 'whoami') == 'kali'

    def test_fix_shebang(self, interpreter):
        assert run(interpreter, 'termux-fix-shebang chroot.py') == (
            f"shebang of chroot.py has been rewritten from '#!/bin/python3' to '{TERMUX_SHEBANG}'"
        )
        assert run(interpreter, 'cat chroot.py').startswith(TERMUX_SHEBANG + '\n')

    def test_fix_shebang_usage(self, interpreter):
        assert run(interpreter, 'termux-fix-shebang') == 'usage: termux-fix-shebang <file>'

    def test_fix_shebang_no_shebang(self, interpreter):
        assert run(interpreter, 'termux-fix-shebang README.md') == (
            'README.md does not have a shebang or is empty.'
        )

    def test_fix_shebang_missing(self, interpreter):
        assert run(interpreter, 'termux-fix-shebang x.py') == 'termux-fix-shebang: file not found: x.py'

    def test_fix_shebang_directory(self, interpreter):
        assert run(interpreter, 'termux-fix-shebang documents') == (
            'termux-fix-shebang: not a file: documents'
        )

    def test_unknown_verb_is_not_a_builtin(self, interpreter):
        assert run(interpreter, 'neofetch') is None


class TestDispatch:
    """Routing between clear, git, built-ins and the responder."""

    @pytest.mark.asyncio
    async def test_builtin_output_is_recorded(self, interpreter):
        await interpreter.dispatch('pwd')
        assert interpreter.history[-1].kind == OUTPUT
        assert interpreter.history[-1].text == HOME_DIR

    @pytest.mark.asyncio
    async def test_empty_output_adds_nothing(self, interpreter):
        await interpreter.dispatch('cd documents')
        assert len(interpreter.history) == 0

    @pytest.mark.asyncio
    async def test_clear_wipes_history(self, interpreter):
        interpreter.history.add_command('ls')
        interpreter.history.add_output('README.md')
        await interpreter.dispatch('CLEAR')
        assert len(interpreter.history) == 0

    @pytest.mark.asyncio
    async def test_unknown_goes_to_responder_with_cwd(self, interpreter, responder):
        await interpreter.dispatch('cd /home')
        await interpreter.dispatch('apt update')
        assert responder.calls == [('apt update', '/home')]
        assert interpreter.history[-1].text == 'answered'

    @pytest.mark.asyncio
    async def test_git_is_checked_before_responder(self, interpreter, responder):
        await interpreter.dispatch('git log')
        assert responder.calls == []
        assert interpreter.history[-1].text.startswith('commit ')

    @pytest.mark.asyncio
    async def test_other_git_verbs_go_to_responder(self, interpreter, responder):
        await interpreter.dispatch('git status')
        assert responder.calls == [('git status', HOME_DIR)]

    @pytest.mark.asyncio
    async def test_responder_failure_becomes_error_line(self):
        fs = FileSystem()
        history = SessionHistory()
        interpreter = CommandInterpreter(fs, history, FailingResponder())

        await interpreter.dispatch('ping example.com')

        assert [(item.kind, item.text) for item in history] == [(OUTPUT, 'Error: quota exceeded')]
        assert COMMAND not in [item.kind for item in history]
