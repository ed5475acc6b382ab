import os
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from metrics import (
    FILE_METRICS,
    METRIC_ORDER,
    compute_file_metrics,
    metric_builtin_usage,
    metric_docblock,
    metric_if_else_balance,
    metric_lines,
    metric_parameters,
)
from metrics.file_metrics import file_namespace, file_strict_types
from ranker import CallCache, format_function_report, format_rank_report, rank_source

SOURCE = """<?php declare(strict_types=1);
/**
 * @param int $x
 * @return int
 */
function double_it(int $x): int {
    return $x * 2;
}

function quad($x) {
    if ($x > 0) {
        return double_it(double_it($x));
    }
    return 0;
}
"""


class TestMetrics(unittest.TestCase):
    def test_docblock(self) -> None:
        self.assertEqual(metric_docblock("f", "function f() {}"), -15.0)
        self.assertEqual(metric_docblock("f", "/** @param x @return y */ function f() {}"), 3.0)

    def test_lines_and_parameters(self) -> None:
        body = "function f($a, $b) {\n    return 1;\n}"
        self.assertEqual(metric_lines("f", body), 19.5)
        self.assertEqual(metric_parameters("f", body), -1.0)
        self.assertEqual(metric_parameters("f", "function f() {}"), 0.0)

    def test_builtin_usage(self) -> None:
        body = "function f() { return count(helper(strlen($s))); }"
        self.assertEqual(metric_builtin_usage("f", body, {"helper"}), 5.0)

    def test_if_else_balance(self) -> None:
        body = "function f() { if ($a) { x(); } }"
        self.assertAlmostEqual(metric_if_else_balance("f", body), -0.15)

    def test_file_metrics(self) -> None:
        values = compute_file_metrics(SOURCE)
        self.assertEqual(set(values), set(FILE_METRICS))
        self.assertEqual(len(values), 31)
        self.assertEqual(file_strict_types(SOURCE), 9.0)
        self.assertEqual(file_strict_types("<?php"), -5.0)
        self.assertEqual(file_namespace(SOURCE), -3.0)


class TestRanker(unittest.TestCase):
    def test_call_counts_skip_declaration(self) -> None:
        cache = CallCache()
        self.assertEqual(cache.count("double_it", SOURCE), 2)
        self.assertEqual(cache.count("quad", SOURCE), 0)

    def test_call_counts_include_sibling_files(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            own = root / "own.php"
            own.write_text(SOURCE, encoding="utf-8")
            other = root / "other.php"
            other.write_text("<?php\nquad(1);\nquad(2);\nfunction helper() {}\n", encoding="utf-8")
            cache = CallCache([own, other], exclude=own)
            self.assertEqual(cache.files, [other])
            self.assertEqual(cache.count("quad", SOURCE), 2)
            self.assertEqual(cache.defined_names(), {"helper"})

    def test_rank_source_scores(self) -> None:
        result = rank_source(SOURCE, CallCache())
        self.assertEqual(list(result.functions), ["double_it", "quad"])
        for item in result.functions.values():
            self.assertEqual(list(item.metrics), METRIC_ORDER)
            self.assertAlmostEqual(item.score, item.raw + result.file_total)
            self.assertIsNotNone(item.span)
        self.assertEqual(result.functions["double_it"].metrics["call"], 2 * 1.25 - 50)
        self.assertEqual(result.functions["double_it"].metrics["docs"], 3.0)
        self.assertEqual(result.functions["quad"].metrics["docs"], -15.0)

    def test_test_functions_have_no_call_penalty(self) -> None:
        result = rank_source("<?php\nfunction test_it() { return 1; }\n", CallCache())
        self.assertEqual(result.functions["test_it"].metrics["call"], 0.0)

    def test_summary_report(self) -> None:
        report = format_rank_report(rank_source(SOURCE, CallCache()))
        self.assertTrue(report.startswith("File Score: "))
        self.assertIn("\nTop Functions:\n", report)
        self.assertIn("\nNeeds Improvement:\n", report)
        self.assertIn("* quad(); ", report)
        self.assertIn("\nFile Metrics:\n", report)
        self.assertIn("strict_types 9.0", report)

    def test_report_without_functions(self) -> None:
        report = format_rank_report(rank_source("<?php\n$x = 1;\n", CallCache()))
        self.assertEqual(report, "No functions found in file\n")

    def test_function_report(self) -> None:
        result = rank_source(SOURCE, CallCache(), names=["quad"])
        self.assertEqual(list(result.functions), ["quad"])
        report = format_function_report(result, "quad")
        self.assertTrue(report.startswith("Function: quad()\n"))
        self.assertIn("* docs: -15.0; // Add docblock", report)

    def test_json_shape(self) -> None:
        data = rank_source(SOURCE, CallCache()).to_dict()
        self.assertEqual(sorted(data), ["file_metrics", "file_score", "functions"])
        names = {item["name"] for item in data["functions"]}
        self.assertEqual(names, {"double_it", "quad"})


if __name__ == "__main__":
    unittest.main()
