#!/usr/bin/env python3
"""
Tests for keystroke decoding.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io
import unittest

from linuxsim.history import SessionHistory
from linuxsim.keys import Key, KeyReader, decode_key, is_printable
from linuxsim.line_editor import LineEditor, EditorMode


def reader_for(text):
    chars = iter(text)
    return lambda: next(chars, '')


class TestDecodeKey(unittest.TestCase):
    """Test turning raw input into key names."""

    def test_printable(self):
        self.assertEqual(decode_key(reader_for('a')), 'a')

    def test_control_keys(self):
        self.assertEqual(decode_key(reader_for('\r')), Key.ENTER)
        self.assertEqual(decode_key(reader_for('\t')), Key.TAB)
        self.assertEqual(decode_key(reader_for('\x7f')), Key.BACKSPACE)
        self.assertEqual(decode_key(reader_for('\x12')), Key.CTRL_R)
        self.assertEqual(decode_key(reader_for('\x03')), Key.CTRL_C)

    def test_arrows(self):
        self.assertEqual(decode_key(reader_for('\x1b[A')), Key.UP)
        self.assertEqual(decode_key(reader_for('\x1b[D')), Key.LEFT)

    def test_bare_escape_keeps_next_character(self):
        pushed_back = []
        self.assertEqual(decode_key(reader_for('\x1bx'), pushed_back.append), Key.ESCAPE)
        self.assertEqual(pushed_back, ['x'])

    def test_lone_escape_does_not_wait_for_more_input(self):
        chars = iter('\x1bx')
        read = []

        def read_char():
            char = next(chars, '')
            read.append(char)
            return char

        self.assertEqual(decode_key(read_char, more_input=lambda: False), Key.ESCAPE)
        self.assertEqual(read, ['\x1b'])

    def test_end_of_input(self):
        self.assertIsNone(decode_key(reader_for('')))

    def test_is_printable(self):
        self.assertTrue(is_printable('~'))
        self.assertFalse(is_printable(Key.ENTER))
        self.assertFalse(is_printable('\x03'))

    def test_reader_without_tty(self):
        with KeyReader(io.StringIO('ls\r')) as reader:
            keys = [reader.read_key() for _ in range(4)]
        self.assertEqual(keys, ['l', 's', Key.ENTER, None])

    def test_reader_escape_then_key(self):
        with KeyReader(io.StringIO('\x1ba\x1b[B')) as reader:
            keys = [reader.read_key() for _ in range(4)]
        self.assertEqual(keys, [Key.ESCAPE, 'a', Key.DOWN, None])

    def test_escape_leaves_search_and_next_key_is_typed(self):
        history = SessionHistory()
        for command in ['ls', 'cat a.txt', 'ls -a']:
            history.add_command(command)
        editor = LineEditor(history)

        with KeyReader(io.StringIO('\x12l\x1bx')) as reader:
            while True:
                key = reader.read_key()
                if key is None:
                    break
                editor.handle_key(key)

        self.assertEqual(editor.mode, EditorMode.NORMAL)
        self.assertEqual(editor.buffer, 'ls -ax')


if __name__ == '__main__':
    unittest.main()
