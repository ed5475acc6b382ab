import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from segmenter.dialect import WrapDialect
from segmenter.sections import find_stubs, parse_sections, replace_sections

DIALECT = WrapDialect()

NESTED = "\n".join(
    [
        "<?php",
        "# outer begin",
        "function outer() {",
        "    # inner begin",
        "    $x = 1;",
        "    # inner end",
        "    return $x;",
        "}",
        "",
        "# outer end",
    ]
)


class TestSections(unittest.TestCase):
    def test_top_level_section_with_nested_child(self) -> None:
        report = parse_sections(NESTED, DIALECT)
        self.assertEqual(len(report.sections), 1)
        outer = report.sections[0]
        self.assertEqual(outer.qualified_name, "outer")
        self.assertEqual((outer.start, outer.end), (1, 9))
        self.assertEqual(outer.line_count, 9)
        self.assertEqual([child.qualified_name for child in outer.children], ["outer.inner"])
        self.assertEqual(outer.children[0].indent, "    ")
        self.assertEqual(outer.children[0].content, "    $x = 1;")
        self.assertIn('    include_once "{$LOCAL_PATH}node.outer.inner.php";', outer.content)
        self.assertNotIn("$x = 1;", outer.content)
        self.assertTrue(outer.content.endswith("}"))
        self.assertEqual([s.qualified_name for s in report.walk()], ["outer", "outer.inner"])

    def test_unmatched_begin_is_skipped(self) -> None:
        text = "# lost begin\nx\n# kept begin\ny\n# kept end"
        report = parse_sections(text, DIALECT)
        self.assertEqual([s.name for s in report.sections], ["kept"])
        self.assertEqual(report.unmatched, ["lost"])

    def test_end_marker_tolerates_other_indent(self) -> None:
        report = parse_sections("  # a begin\nx\n# a end", DIALECT)
        self.assertEqual(len(report.sections), 1)
        self.assertEqual(report.sections[0].indent, "  ")

    def test_stub_sections_are_not_reparsed(self) -> None:
        report = parse_sections(NESTED, DIALECT)
        lines = replace_sections(NESTED.split("\n"), report.sections, DIALECT)
        self.assertEqual(len(lines), len(NESTED.split("\n")) - (9 - 3))
        self.assertEqual(parse_sections("\n".join(lines), DIALECT).sections, [])

    def test_find_stubs_requires_three_lines(self) -> None:
        stub = "\n".join(
            [
                "# a begin",
                'include_once "{$LOCAL_PATH}node.a.php";',
                "# a end",
                "# b begin",
                'include_once "{$LOCAL_PATH}node.b.php";',
                "extra();",
                "# b end",
            ]
        )
        stubs = find_stubs(stub, DIALECT)
        self.assertEqual([(s.qualified_name, s.start, s.end) for s in stubs], [("a", 0, 2)])

    def test_dialect_names(self) -> None:
        self.assertEqual(DIALECT.artifact_name("a.b"), "node.a.b.php")
        line = DIALECT.include_line("  ", "a")
        self.assertEqual(line, '  include_once "{$LOCAL_PATH}node.a.php";')
        self.assertEqual(DIALECT.referenced_name(line), "a")
        self.assertIsNone(DIALECT.referenced_name('include_once "other.a.php";'))
        rendered = DIALECT.render_artifact("x")
        self.assertEqual(rendered, "<?php declare(strict_types=1);\n\nx\n")
        self.assertEqual(DIALECT.strip_header(rendered), "x\n")


if __name__ == "__main__":
    unittest.main()
