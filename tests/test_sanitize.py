import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.parsing.sanitize import MIN_TEXT_LENGTH, has_minimum_length, sanitize_text  # noqa: E402

SAMPLES = [
    "",
    "   ",
    "Plain ASCII resume text",
    "Tabs\tand\nnewlines\r\nmixed   together",
    "Zoë — naïve café résumé ✓ 🚀",
    "Null\x00byte and bell\x07 and escape\x1b[0m",
    "Lone surrogate \ud800 in the middle",
    " non breaking spaces ",
    "".join(chr(code) for code in range(0, 600)),
]


def _allowed(ch: str) -> bool:
    code = ord(ch)
    return 32 <= code <= 126 or 160 <= code <= 255


class SanitizeTextTests(unittest.TestCase):
    def test_collapses_whitespace_and_trims(self):
        self.assertEqual(sanitize_text("  Senior\t\tEngineer\n\nPython  "), "Senior Engineer Python")

    def test_keeps_latin1_letters(self):
        self.assertEqual(sanitize_text("Résumé für Zoë"), "Résumé für Zoë")

    def test_replaces_unsafe_code_points_with_single_space(self):
        self.assertEqual(sanitize_text("Python—AWS"), "Python AWS")
        self.assertEqual(sanitize_text("Go\x00\x00Rust"), "Go Rust")
        self.assertEqual(sanitize_text("a\ud800b"), "a b")

    def test_output_alphabet_is_restricted(self):
        for sample in SAMPLES:
            cleaned = sanitize_text(sample)
            self.assertTrue(all(_allowed(ch) for ch in cleaned), msg=repr(cleaned))
            self.assertNotIn("  ", cleaned)
            self.assertEqual(cleaned, cleaned.strip())

    def test_is_idempotent(self):
        for sample in SAMPLES:
            once = sanitize_text(sample)
            self.assertEqual(sanitize_text(once), once)

    def test_minimum_length_threshold(self):
        self.assertFalse(has_minimum_length("x" * (MIN_TEXT_LENGTH - 1)))
        self.assertTrue(has_minimum_length("x" * MIN_TEXT_LENGTH))


if __name__ == "__main__":
    unittest.main()
