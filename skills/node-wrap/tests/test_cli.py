import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from typing import List, Tuple

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from cli.main import main
from segmenter import WrapSettings, load_settings

DOC = "<?php\n# alpha begin\nfunction alpha() {\n    return 1;\n}\n# alpha end\n"

LIB = """<?php
function helper_fn($x) {
    return $x;
}
"""

MAIN = """<?php
function entry() {
    return helper_fn(1);
}
"""


def write_file(root: Path, rel_path: str, content: str) -> Path:
    full_path = root / rel_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(content, encoding="utf-8")
    return full_path


def run_cli(argv: List[str]) -> Tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        try:
            code = main(argv)
        except SystemExit as exc:
            code = exc.code
    return code, out.getvalue(), err.getvalue()


class TestCli(unittest.TestCase):
    def test_wrap_open_and_close(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_file(root, "node.php", DOC)
            code, out, _ = run_cli(["--root", temp_dir, "wrap", "open"])
            self.assertEqual((code, out), (0, "Wrapped 1 sections\n"))
            self.assertTrue((root / "node.alpha.php").exists())
            code, out, _ = run_cli(["--root", temp_dir, "wrap", "open"])
            self.assertEqual(out, "node.php is already wrapped\n")
            code, out, _ = run_cli(["--root", temp_dir, "wrap", "close"])
            self.assertEqual((code, out), (0, "Unwrapped 1 sections\n"))
            self.assertEqual((root / "node.php").read_text(encoding="utf-8"), DOC)

    def test_wrap_missing_document(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            code, out, err = run_cli(["--root", temp_dir, "wrap", "open"])
            self.assertEqual(code, 1)
            self.assertEqual(out, "")
            self.assertIn("E: node.php not found", err)

    def test_wrap_strict_close(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_file(root, "node.php", DOC)
            run_cli(["--root", temp_dir, "wrap", "open"])
            (root / "node.alpha.php").unlink()
            code, _, err = run_cli(["--root", temp_dir, "wrap", "close", "--strict"])
            self.assertEqual(code, 1)
            self.assertIn("E: artifact node.alpha.php", err)

    def test_document_from_config(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_file(root, "app.php", DOC)
            write_file(root, ".nodewrap.json", json.dumps({"document": "app.php"}))
            code, out, _ = run_cli(["--root", temp_dir, "wrap", "open"])
            self.assertEqual((code, out), (0, "Wrapped 1 sections\n"))
            self.assertTrue((root / "app.alpha.php").exists())

    def test_extract(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            write_file(Path(temp_dir), "lib.php", LIB)
            code, out, _ = run_cli(["--root", temp_dir, "extract", "lib.php", "helper_fn"])
            self.assertEqual(code, 0)
            self.assertTrue(out.startswith("# lib.php:6-"))
            self.assertIn("function helper_fn($x) {\n    return $x;\n}\n", out)
            code, _, err = run_cli(["--root", temp_dir, "extract", "lib.php", "nope"])
            self.assertEqual(code, 1)
            self.assertIn("E: nope not found", err)

    def test_rank(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_file(root, "lib.php", LIB)
            write_file(root, "main.php", MAIN)
            code, out, err = run_cli(["--root", temp_dir, "rank", "lib.php", "--format", "json"])
            self.assertEqual(code, 0)
            data = json.loads(out)
            self.assertEqual([item["name"] for item in data["functions"]], ["helper_fn"])
            self.assertEqual(data["functions"][0]["metrics"]["call"], 1.25 - 50)
            self.assertIn("[done]", err)

            code, out, _ = run_cli(["--root", temp_dir, "rank", "lib.php", "helper_fn"])
            self.assertTrue(out.startswith("Function: helper_fn()"))

            code, _, err = run_cli(["--root", temp_dir, "rank", "lib.php", "nope"])
            self.assertEqual(code, 1)
            self.assertIn("E: Function 'nope' not found in file", err)

    def test_ctx(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_file(root, "lib.php", LIB)
            write_file(root, "main.php", MAIN)
            code, out, _ = run_cli(["--root", temp_dir, "ctx", "entry"])
            self.assertEqual(code, 0)
            self.assertIn("# main.php", out)
            self.assertIn("function helper_fn($x)", out)
            code, _, err = run_cli(["--root", temp_dir, "ctx", "missing"])
            self.assertEqual(code, 1)
            self.assertIn("E: missing not found", err)

    def test_ctx_searches_configured_roots(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_file(root, "src/extra.php", "<?php\nfunction extra_fn() {\n    return 1;\n}\n")
            write_file(root, ".nodewrap.json", json.dumps({"roots": {"lib": "src"}}))
            code, out, _ = run_cli(["--root", temp_dir, "ctx", "extra_fn"])
            self.assertEqual(code, 0)
            self.assertTrue(out.startswith("# src/extra.php\n# lib\n\nfunction extra_fn()"))

    def test_no_command_prints_help(self) -> None:
        code, out, _ = run_cli([])
        self.assertEqual(code, 1)
        self.assertIn("usage:", out)


class TestSettings(unittest.TestCase):
    def test_defaults_without_config(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            warnings: List[str] = []
            settings, name = load_settings(Path(temp_dir), warnings)
            self.assertIsNone(name)
            self.assertEqual(settings, WrapSettings())
            self.assertEqual(warnings, [])

    def test_values_and_type_filtering(self) -> None:
        payload = {
            "document": "app.php",
            "lookback": 50,
            "strict_close": True,
            "roots": {"lib": "src", "bad": 3},
            "exclude_dirs": ["tmp", 4],
            "header": 7,
        }
        with tempfile.TemporaryDirectory() as temp_dir:
            write_file(Path(temp_dir), "nodewrap.json", json.dumps(payload))
            warnings: List[str] = []
            settings, name = load_settings(Path(temp_dir), warnings)
            self.assertEqual(name, "nodewrap.json")
            self.assertEqual(settings.document, "app.php")
            self.assertEqual(settings.lookback, 50)
            self.assertTrue(settings.strict_close)
            self.assertEqual(settings.roots, {"lib": "src"})
            self.assertEqual(settings.exclude_dirs, {"tmp"})
            self.assertEqual(settings.header, WrapSettings().header)

    def test_invalid_json_warns(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            write_file(Path(temp_dir), ".nodewrap.json", "{not json")
            warnings: List[str] = []
            settings, name = load_settings(Path(temp_dir), warnings)
            self.assertEqual(name, ".nodewrap.json")
            self.assertEqual(settings, WrapSettings())
            self.assertTrue(warnings[0].startswith("Failed to parse .nodewrap.json"))


if __name__ == "__main__":
    unittest.main()
