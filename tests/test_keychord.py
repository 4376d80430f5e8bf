import unittest
import sys
import os

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpgtui_app.errors import ParseError  # noqa: E402
from gpgtui_app.keychord import FunctionKey, KeyChord, KeyCode, Modifiers, parse_chord  # noqa: E402


class TestParseChord(unittest.TestCase):

    def test_single_character(self):
        self.assertEqual(parse_chord("q"), KeyChord("q"))
        self.assertEqual(parse_chord(" "), KeyChord(" "))

    def test_case_sensitive(self):
        self.assertNotEqual(parse_chord("q"), parse_chord("Q"))

    def test_function_key(self):
        self.assertEqual(parse_chord("f5"), KeyChord(FunctionKey(5)))
        self.assertEqual(parse_chord("F1"), KeyChord(FunctionKey(1)))

    def test_modifiers(self):
        chord = parse_chord("C-c")
        self.assertEqual(chord.modifiers, Modifiers.CONTROL)
        self.assertEqual(chord.code, "c")
        self.assertEqual(parse_chord("a-3"), KeyChord("3", Modifiers.ALT))
        self.assertEqual(parse_chord("s-x"), KeyChord("x", Modifiers.SHIFT))
        # the payload keeps its case
        self.assertNotEqual(parse_chord("C-c"), parse_chord("C-C"))

    def test_unknown_modifier(self):
        with self.assertRaises(ParseError):
            parse_chord("x-c")

    def test_named_keys(self):
        self.assertEqual(parse_chord("esc"), KeyChord(KeyCode.ESC))
        self.assertEqual(parse_chord("enter"), KeyChord(KeyCode.ENTER))
        self.assertEqual(parse_chord("Backspace"), KeyChord(KeyCode.BACKSPACE))
        self.assertEqual(parse_chord("pageDown"), KeyChord(KeyCode.PAGE_DOWN))
        self.assertEqual(parse_chord("space"), KeyChord(" "))

    def test_invalid_tokens(self):
        for token in ("", "nope", "f10x"):
            with self.subTest(token=token):
                with self.assertRaises(ParseError):
                    parse_chord(token)

    def test_str(self):
        self.assertEqual(str(KeyChord("c", Modifiers.CONTROL)), "C-c")
        self.assertEqual(str(KeyChord(KeyCode.PAGE_UP)), "pageup")
        self.assertEqual(str(KeyChord(FunctionKey(5))), "f5")
        self.assertEqual(str(KeyChord(" ")), "space")

    def test_char(self):
        self.assertEqual(KeyChord("x").char, "x")
        self.assertIsNone(KeyChord(KeyCode.ENTER).char)


if __name__ == '__main__':
    unittest.main()
