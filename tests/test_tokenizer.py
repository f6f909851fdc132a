#!/usr/bin/env python3
"""Unit tests for command-line tokenizing in tokenizer.py."""

import sys
import unittest
from pathlib import Path

# Add parent directory to path to import cloudcache_admin
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cloudcache_admin.errors import InputError
from cloudcache_admin.tokenizer import ParsedCommand, parse, tokenize_command


class TestTokenizeCommand(unittest.TestCase):
    """Tests for flag/value classification."""

    def test_flag_followed_by_value(self):
        parsed = tokenize_command(['list', 'regions', '-id', 'region1'])
        self.assertEqual(parsed.command, 'list regions')
        self.assertEqual(parsed.parameters, {'-id': 'region1'})

    def test_flag_followed_by_flag_is_boolean(self):
        parsed = tokenize_command(['get', 'region', '-j', '-id', 'r1'])
        self.assertEqual(parsed.parameters, {'-j': 'true', '-id': 'r1'})

    def test_trailing_flag_is_boolean(self):
        parsed = tokenize_command(['list', 'members', '-j'])
        self.assertEqual(parsed.parameters, {'-j': 'true'})

    def test_inline_value(self):
        parsed = tokenize_command(['list', 'regions', '-g=groupA,groupB', '-j'])
        self.assertEqual(parsed.parameters, {'-g': 'groupA,groupB', '-j': 'true'})

    def test_inline_value_finalizes_pending_flag(self):
        parsed = tokenize_command(['list', '-j', '-g=a'])
        self.assertEqual(parsed.parameters, {'-j': 'true', '-g': 'a'})

    def test_words_after_first_flag_are_not_command(self):
        parsed = tokenize_command(['list', '-j', 'regions', 'extra'])
        self.assertEqual(parsed.command, 'list')
        self.assertEqual(parsed.parameters, {'-j': 'regions'})

    def test_unknown_flags_pass_through(self):
        parsed = tokenize_command(['list', '--whatever', 'x'])
        self.assertEqual(parsed.parameters, {'--whatever': 'x'})

    def test_command_is_trimmed(self):
        parsed = tokenize_command(['list', 'regions '])
        self.assertEqual(parsed.command, 'list regions')

    def test_retokenizing_reproduces_flags(self):
        inputs = [
            ['list', 'regions', '-id', 'r1', '-j'],
            ['create', 'region', '-d', '@region.json', '-type', 'PARTITION'],
            ['list', 'members', '-a', '-b', '-c', 'x'],
        ]
        for tokens in inputs:
            with self.subTest(tokens=tokens):
                parsed = tokenize_command(tokens)
                again = tokenize_command(parsed.to_tokens())
                self.assertEqual(again.command, parsed.command)
                self.assertEqual(again.parameters, parsed.parameters)


class TestParse(unittest.TestCase):
    """Tests for target resolution."""

    def test_first_argument_is_target_without_default(self):
        target, parsed = parse(['my-cache', 'list', 'regions'])
        self.assertEqual(target, 'my-cache')
        self.assertEqual(parsed.command, 'list regions')

    def test_default_target_repeated_explicitly(self):
        target, parsed = parse(['my-cache', 'list', 'regions'], default_target='my-cache')
        self.assertEqual(target, 'my-cache')
        self.assertEqual(parsed.command, 'list regions')

    def test_default_target_with_different_first_argument(self):
        # the first argument is read as the start of the command
        target, parsed = parse(['list', 'regions'], default_target='my-cache')
        self.assertEqual(target, 'my-cache')
        self.assertEqual(parsed.command, 'list regions')

    def test_no_arguments(self):
        with self.assertRaises(InputError):
            parse([])

    def test_target_without_command(self):
        with self.assertRaises(InputError) as ctx:
            parse(['my-cache', '-j'])
        self.assertIn('my-cache', str(ctx.exception))

    def test_parsed_command_defaults(self):
        parsed = ParsedCommand()
        self.assertEqual(parsed.command, '')
        self.assertEqual(parsed.parameters, {})
        self.assertFalse(parsed.has_flag('-j'))


if __name__ == '__main__':
    unittest.main()
