import unittest
import threading
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from scalc.runtime import ScalcRuntime, clear_tree_cache


class TestRuntimeConcurrency(unittest.TestCase):
    """
    Verify thread safety of the shared parser and the canonical tree cache.
    """

    def test_concurrent_evaluation(self):
        clear_tree_cache()
        program = "1.5 2.25 + (1 2 3) sum *"

        exceptions = []
        results = []

        def runner():
            try:
                # Fresh runtime per thread; only the parser and cache are shared
                res = ScalcRuntime().evaluate(program)
                results.append(res)
            except Exception as e:
                exceptions.append(e)

        threads = []
        for _ in range(20):
            t = threading.Thread(target=runner)
            threads.append(t)
            t.start()

        for t in threads:
            t.join()

        self.assertEqual(len(exceptions), 0, f"Exceptions occurred: {exceptions}")
        self.assertEqual(len(results), 20)

        if results[0].domain == "error":
            self.fail(f"Runtime returned error: {results[0]}")

        for r in results:
            self.assertEqual(r.formatted, ["22.50"],
                             "Concurrent evaluation produced different stacks!")

    def test_concurrent_distinct_programs(self):
        programs = {f"{i} {i} +": [str(2 * i)] for i in range(30)}
        failures = []

        def runner(source, expected):
            res = ScalcRuntime().evaluate(source)
            if res.formatted != expected:
                failures.append((source, res))

        threads = [threading.Thread(target=runner, args=item) for item in programs.items()]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(failures, [])


if __name__ == "__main__":
    unittest.main()
