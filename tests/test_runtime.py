import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

import scalc
from scalc.nodes import Stack
from scalc.runtime import (
    ParseError,
    RuntimeResult,
    ScalcRuntime,
    clear_tree_cache,
    evaluate,
    parse,
)
from scalc.tokenize import LexError


class TestRuntimeOutcomes(unittest.TestCase):

    def setUp(self):
        self.runtime = ScalcRuntime()

    def test_success(self):
        res = self.runtime.evaluate("3 4 +")
        self.assertIsInstance(res, RuntimeResult)
        self.assertTrue(res.ok)
        self.assertEqual(res.domain, "stack")
        self.assertEqual(res.formatted, ["7"])
        self.assertIsNone(res.code)
        self.assertIsNone(res.error)
        self.assertIsNone(res.raw_tree)

    def test_empty_stack_is_success(self):
        res = self.runtime.evaluate("1 2 clear")
        self.assertTrue(res.ok)
        self.assertEqual(res.value, [])

    def test_lex_error(self):
        res = self.runtime.evaluate("3 4 &")
        self.assertFalse(res.ok)
        self.assertEqual(res.domain, "error")
        self.assertEqual(res.code, "ERR_LEX")
        self.assertIsNone(res.value)
        self.assertEqual(res.formatted, [])

    def test_parse_errors(self):
        for source in ("3 +", ".5", "1 .5", "(1 2", ")", "?", "1 2 ?"):
            res = self.runtime.evaluate(source)
            self.assertEqual(res.code, "ERR_PARSE", source)
            self.assertIsNone(res.value, source)

    def test_depth_limit(self):
        res = ScalcRuntime(max_depth=3).evaluate("1 2 + 3 + 4 +")
        self.assertEqual(res.code, "ERR_RECURSION_LIMIT")

        source = "1 " + "1 + " * 120
        self.assertEqual(self.runtime.evaluate(source).code, "ERR_RECURSION_LIMIT")
        self.assertTrue(ScalcRuntime(max_depth=500).evaluate(source).ok)

    def test_parser_recursion_exhaustion(self):
        source = "(" * 5000 + "1" + ")" * 5000
        res = self.runtime.evaluate(source)
        self.assertEqual(res.code, "ERR_RECURSION_LIMIT")

        # The shared parser is still usable afterwards
        self.assertEqual(self.runtime.evaluate("3 4 +").formatted, ["7"])

    def test_strict_runtime(self):
        res = ScalcRuntime(strict_mode=True).evaluate("1.50 2.5 +")
        self.assertEqual(res.formatted, ["4.00"])

    def test_debug_keeps_tree(self):
        res = ScalcRuntime(debug=True).evaluate("3 4 +")
        self.assertIsInstance(res.raw_tree, Stack)
        self.assertEqual(len(res.raw_tree.items), 1)


class TestSourceCanonicalization(unittest.TestCase):

    def test_whitespace_variants_agree(self):
        runtime = ScalcRuntime()
        a = runtime.evaluate("1.50 2.5 +")
        b = runtime.evaluate("  1.50\t\t2.5 \n +  ")
        self.assertEqual(a.formatted, b.formatted)
        self.assertEqual(a.canonical_source, "1.50 2.5 +")
        self.assertEqual(b.canonical_source, "1.50 2.5 +")

    def test_error_keeps_canonical_source(self):
        res = ScalcRuntime().evaluate(" 3\t+ ")
        self.assertEqual(res.canonical_source, "3 +")


class TestModuleApi(unittest.TestCase):

    def test_parse_raises(self):
        with self.assertRaises(LexError):
            parse("3 4 &")
        with self.assertRaises(ParseError) as ctx:
            parse("3 +")
        self.assertIn("ERR_PARSE", str(ctx.exception))

    def test_evaluate_raises(self):
        with self.assertRaises(LexError):
            evaluate("1 sumx")
        with self.assertRaises(ParseError):
            evaluate("(1 2")

    def test_package_exports(self):
        self.assertEqual(scalc.format_stack(scalc.evaluate("1 2 3 sum")), ["6"])
        self.assertTrue(scalc.__version__)


class TestTreeCache(unittest.TestCase):

    def setUp(self):
        clear_tree_cache()

    def test_cached_trees_are_private_copies(self):
        first = parse("1 2 3 sum")
        first.items.clear()
        second = parse("1 2 3 sum")
        self.assertEqual(len(second.items), 1)
        self.assertIsNot(first, second)

    def test_runtime_results_unaffected_by_mutation(self):
        runtime = ScalcRuntime(debug=True)
        res = runtime.evaluate("5 (1 2) sum")
        res.raw_tree.items.pop()
        self.assertEqual(runtime.evaluate("5 (1 2) sum").formatted, ["5", "3"])


if __name__ == '__main__':
    unittest.main()
