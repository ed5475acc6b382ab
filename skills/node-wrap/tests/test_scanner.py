import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from segmenter.scanner import StringScanner, find_closing_brace


class TestScanner(unittest.TestCase):
    def test_nested_braces_close_outermost(self) -> None:
        self.assertEqual(StringScanner().scan("{a{b}c}"), 6)

    def test_brace_inside_double_quotes_is_ignored(self) -> None:
        self.assertEqual(find_closing_brace('{ "}" }', 0), 6)

    def test_single_quote_and_backtick_strings(self) -> None:
        self.assertEqual(find_closing_brace("{ '{' }", 0), 6)
        self.assertEqual(find_closing_brace("{ `}` }", 0), 6)

    def test_escaped_delimiter_stays_in_string(self) -> None:
        text = '{ "\\"}" }'
        self.assertEqual(find_closing_brace(text, 0), len(text) - 1)

    def test_other_quote_does_not_end_string(self) -> None:
        self.assertEqual(find_closing_brace("{ \"'}\" }", 0), 7)

    def test_state_transitions(self) -> None:
        scanner = StringScanner()
        scanner.feed('"')
        self.assertTrue(scanner.state.in_string)
        self.assertEqual(scanner.state.string_delimiter, '"')
        scanner.feed("{")
        self.assertEqual(scanner.depth, 0)
        scanner.feed("\\")
        self.assertTrue(scanner.state.escape_active)
        scanner.feed('"')
        self.assertTrue(scanner.state.in_string)
        self.assertFalse(scanner.state.escape_active)
        scanner.feed('"')
        self.assertFalse(scanner.state.in_string)
        scanner.feed("{")
        self.assertEqual(scanner.depth, 1)

    def test_underflow(self) -> None:
        scanner = StringScanner()
        scanner.feed("}")
        self.assertTrue(scanner.underflow)
        self.assertIsNone(StringScanner().scan("a}b"))

    def test_unbalanced_returns_none(self) -> None:
        self.assertIsNone(find_closing_brace("{ { }", 0))
        self.assertIsNone(find_closing_brace("abc", 0))
        self.assertIsNone(find_closing_brace("{", 5))


if __name__ == "__main__":
    unittest.main()
