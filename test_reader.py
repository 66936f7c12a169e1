import io
import tempfile
import unittest
from pathlib import Path

from rulebook_reader import read_rulebook, read_source, safe_input_path


class TestSafeInputPath(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name).resolve()

    def tearDown(self) -> None:
        self.tmp.cleanup()

    # ---------- helpers ----------
    def write(self, rel: str, content: str) -> Path:
        """
        Write `content` to a file relative to the temporary test directory.
        """
        p = self.root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        return p

    def test_existing_file_is_resolved(self):
        p = self.write("book.rulebook", "x")
        self.assertEqual(safe_input_path(str(p)), p)

    def test_empty_path(self):
        with self.assertRaises(ValueError):
            safe_input_path("   ")

    def test_nul_byte(self):
        with self.assertRaises(ValueError):
            safe_input_path("a\x00b")

    def test_traversal(self):
        with self.assertRaises(ValueError):
            safe_input_path(str(self.root / ".." / "x.rulebook"))

    def test_outside_root(self):
        p = self.write("outside/book.rulebook", "x")
        inner = self.root / "inner"
        inner.mkdir()
        with self.assertRaises(ValueError):
            safe_input_path(str(p), root=inner)

    def test_inside_root(self):
        p = self.write("inner/book.rulebook", "x")
        self.assertEqual(safe_input_path(str(p), root=self.root / "inner"), p)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            safe_input_path(str(self.root / "missing.rulebook"))

    def test_directory(self):
        with self.assertRaises(IsADirectoryError):
            safe_input_path(str(self.root))


class TestReading(unittest.TestCase):
    def test_read_rulebook(self):
        with tempfile.TemporaryDirectory() as tmp:
            p = Path(tmp) / "book.rulebook"
            p.write_text("#Intro\nHéllo\n", encoding="utf-8")
            self.assertEqual(read_rulebook(p), "#Intro\nHéllo\n")

    def test_read_source(self):
        self.assertEqual(read_source(io.StringIO("a\nb")), "a\nb")


if __name__ == "__main__":
    unittest.main(verbosity=2)
