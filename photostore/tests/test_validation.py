import unittest

from photostore.errors import InvalidInput
from photostore.validation import (
    normalize_author,
    parse_rating_value,
    require_comment_text,
    split_people,
)


class NormalizeAuthorTests(unittest.TestCase):
    def test_blank_author_defaults_to_anonymous(self):
        self.assertEqual(normalize_author(None), "anonymous")
        self.assertEqual(normalize_author(""), "anonymous")
        self.assertEqual(normalize_author(" \t\n "), "anonymous")

    def test_trims_and_collapses_whitespace(self):
        self.assertEqual(normalize_author("  Ada   \t Lovelace "), "Ada Lovelace")

    def test_caps_length(self):
        self.assertEqual(normalize_author("x" * 100), "x" * 40)
        self.assertEqual(normalize_author("abcdef", max_length=3), "abc")

    def test_case_is_preserved(self):
        self.assertEqual(normalize_author("alice "), "alice")
        self.assertNotEqual(normalize_author("Alice"), normalize_author("alice"))


class SplitPeopleTests(unittest.TestCase):
    def test_drops_empty_segments(self):
        self.assertEqual(
            split_people("Alice, Bob ,, Carol"), ["Alice", "Bob", "Carol"]
        )

    def test_empty_input_yields_empty_list(self):
        self.assertEqual(split_people(""), [])
        self.assertEqual(split_people(None), [])
        self.assertEqual(split_people(" , ,"), [])

    def test_duplicates_are_kept(self):
        self.assertEqual(split_people("Bob,Bob"), ["Bob", "Bob"])


class CommentTextTests(unittest.TestCase):
    def test_whitespace_only_text_is_rejected(self):
        with self.assertRaises(InvalidInput):
            require_comment_text("   ")
        with self.assertRaises(InvalidInput):
            require_comment_text(None)

    def test_text_is_trimmed(self):
        self.assertEqual(require_comment_text("  hello "), "hello")


class ParseRatingValueTests(unittest.TestCase):
    def test_accepts_integers_in_range(self):
        for value in (1, 2, 3, 4, 5):
            self.assertEqual(parse_rating_value(value), value)

    def test_accepts_integral_floats_and_strings(self):
        self.assertEqual(parse_rating_value(4.0), 4)
        self.assertEqual(parse_rating_value(" 3 "), 3)

    def test_rejects_invalid_values(self):
        for value in (0, 6, -1, 3.5, "4.5", "four", None, True, float("nan"), [3]):
            with self.subTest(value=value):
                with self.assertRaises(InvalidInput):
                    parse_rating_value(value)


if __name__ == "__main__":
    unittest.main()
