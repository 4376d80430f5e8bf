import unittest
import sys
import os

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpgtui_app.errors import ParseError  # noqa: E402
from gpgtui_app.widget.row import (  # noqa: E402
    RowItem,
    ScrollAmount,
    ScrollDirection,
    ScrollKind,
    height_overflow,
    layout,
)

LINES = ["line1", "line2", "line3", "line4", "line5"]


class TestLayout(unittest.TestCase):

    def test_fitting_content_is_unchanged(self):
        lines = ["abc", "defgh"]
        self.assertEqual(layout(lines, 5, 2, ScrollAmount()), lines)
        self.assertEqual(layout(lines, None, 10, ScrollAmount()), lines)

    def test_empty(self):
        self.assertEqual(layout([], 10, 3, ScrollAmount()), [])

    def test_height_overflow(self):
        self.assertEqual(height_overflow(5, 4), 2)
        self.assertEqual(height_overflow(3, 4), 1)
        self.assertEqual(height_overflow(3, 0), 4)

    def test_height_clamp(self):
        self.assertEqual(
            layout(LINES, None, 3, ScrollAmount()),
            ["line1", "line2", "..."],
        )

    def test_vertical_scroll(self):
        result = layout(LINES, None, 4, ScrollAmount(vertical=1))
        self.assertEqual(len(result), 4)
        self.assertEqual(result, ["...", "line3", "line4", "..."])

    def test_vertical_scroll_is_clamped(self):
        at_end = layout(LINES, None, 4, ScrollAmount(vertical=2))
        beyond = layout(LINES, None, 4, ScrollAmount(vertical=50))
        self.assertEqual(at_end, ["...", "line4", "line5"])
        self.assertEqual(beyond, at_end)

    def test_zero_height(self):
        self.assertEqual(layout(LINES, None, 0, ScrollAmount()), [])
        self.assertEqual(layout(["a"], 5, 0, ScrollAmount()), [])

    def test_width_clamp(self):
        self.assertEqual(layout(["abcdefgh", "ab"], 4, 5, ScrollAmount()), ["abcd..", "ab"])

    def test_horizontal_scroll(self):
        result = layout(["abcdefgh", "ab"], 4, 5, ScrollAmount(horizontal=1))
        self.assertEqual(result, [".cde..", ""])

    def test_horizontal_scroll_needs_overflow(self):
        self.assertEqual(layout(["abc"], 10, 5, ScrollAmount(horizontal=3)), ["abc"])

    def test_unicode_is_counted_in_characters(self):
        self.assertEqual(layout(["äöüßé"], 3, 1, ScrollAmount()), ["äöü.."])
        self.assertEqual(layout(["└─äöüß"], 4, 1, ScrollAmount(horizontal=1)), [".äöü.."])


class TestRowItem(unittest.TestCase):

    def test_row_item(self):
        row = RowItem(LINES, 3, 2, ScrollAmount())
        self.assertEqual(row.data, ["lin..", "..."])
        self.assertEqual(len(row), 2)
        self.assertEqual(list(row), row.data)
        self.assertEqual(row.height_overflow, 4)


class TestScroll(unittest.TestCase):

    def test_from_str(self):
        self.assertEqual(ScrollDirection.from_str("up 3"), ScrollDirection(ScrollKind.UP, 3))
        self.assertEqual(ScrollDirection.from_str("r"), ScrollDirection.right())
        self.assertEqual(ScrollDirection.from_str("d x"), ScrollDirection.down(1))
        with self.assertRaises(ParseError):
            ScrollDirection.from_str("around")

    def test_amount_saturates_at_zero(self):
        amount = ScrollAmount()
        amount.apply(ScrollDirection.up(3))
        amount.apply(ScrollDirection.left(2))
        self.assertEqual((amount.vertical, amount.horizontal), (0, 0))
        amount.apply(ScrollDirection.down(2))
        amount.apply(ScrollDirection.right(1))
        self.assertEqual((amount.vertical, amount.horizontal), (2, 1))
        amount.apply(ScrollDirection.top())
        self.assertEqual(amount.vertical, 0)
        amount.reset()
        self.assertEqual(amount.horizontal, 0)

    def test_amount_limit(self):
        amount = ScrollAmount()
        amount.apply(ScrollDirection.bottom())
        self.assertEqual(amount.vertical, 0)
        amount.apply(ScrollDirection.bottom(), limit=4)
        self.assertEqual(amount.vertical, 4)
        amount.apply(ScrollDirection.down(3), limit=4)
        self.assertEqual(amount.vertical, 4)
        amount.apply(ScrollDirection.up(1), limit=4)
        self.assertEqual(amount.vertical, 3)

    def test_str(self):
        self.assertEqual(str(ScrollDirection.up(2)), "up 2")
        self.assertEqual(str(ScrollDirection.bottom()), "bottom")


if __name__ == '__main__':
    unittest.main()
