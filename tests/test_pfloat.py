import math
import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

from scalc.pfloat import (
    Pfloat,
    ZERO,
    ieee_div,
    ieee_mod,
    ieee_pow,
    max_precision,
)


class TestPfloatFormatting(unittest.TestCase):

    def test_formats_to_tracked_precision(self):
        self.assertEqual(str(Pfloat(3.5, 1)), "3.5")
        self.assertEqual(str(Pfloat(4.0, 2)), "4.00")
        self.assertEqual(str(Pfloat(7.0, 0)), "7")
        self.assertEqual(str(Pfloat(-0.25, 3)), "-0.250")

    def test_zero_value(self):
        self.assertEqual(ZERO, Pfloat(0.0, 0))
        self.assertEqual(str(ZERO), "0")

    def test_negative_precision_rejected(self):
        with self.assertRaises(ValueError):
            Pfloat(1.0, -1)


class TestPfloatLiterals(unittest.TestCase):

    def test_integer_literal(self):
        self.assertEqual(Pfloat.from_literal("42"), Pfloat(42.0, 0))
        self.assertEqual(Pfloat.from_literal("-12"), Pfloat(-12.0, 0))
        self.assertEqual(Pfloat.from_literal("+5"), Pfloat(5.0, 0))

    def test_decimal_literal_counts_written_digits(self):
        self.assertEqual(Pfloat.from_literal("1", ".50"), Pfloat(1.5, 2))
        self.assertEqual(Pfloat.from_literal("-0", ".5"), Pfloat(-0.5, 1))
        self.assertEqual(Pfloat.from_literal("3", ".14159").precision, 5)

    def test_malformed_literal(self):
        with self.assertRaises(ValueError):
            Pfloat.from_literal("x")
        with self.assertRaises(ValueError):
            Pfloat.from_literal("1", "5")
        with self.assertRaises(ValueError):
            Pfloat.parse("1.")

    def test_format_parse_round_trip(self):
        """Formatting a value and re-reading it gives back the same pair."""
        for p in range(10):
            fraction = "." + "7" * p if p else None
            original = Pfloat.from_literal("-12", fraction)
            self.assertEqual(Pfloat.parse(str(original)), original, f"precision {p}")

    def test_max_precision(self):
        self.assertEqual(max_precision(), 0)
        self.assertEqual(max_precision(Pfloat(1, 2), Pfloat(1, 5), Pfloat(1, 0)), 5)


class TestIeeeHelpers(unittest.TestCase):

    def test_division_by_zero(self):
        self.assertEqual(ieee_div(1.0, 0.0), math.inf)
        self.assertEqual(ieee_div(-1.0, 0.0), -math.inf)
        self.assertEqual(ieee_div(1.0, -0.0), -math.inf)
        self.assertTrue(math.isnan(ieee_div(0.0, 0.0)))
        self.assertEqual(ieee_div(6.0, 4.0), 1.5)

    def test_power_edge_cases(self):
        self.assertEqual(ieee_pow(2.0, 10.0), 1024.0)
        self.assertEqual(ieee_pow(0.0, -1.0), math.inf)
        self.assertEqual(ieee_pow(-0.0, -1.0), -math.inf)
        self.assertEqual(ieee_pow(0.0, -2.0), math.inf)
        self.assertEqual(ieee_pow(10.0, 400.0), math.inf)
        self.assertEqual(ieee_pow(-10.0, 401.0), -math.inf)
        self.assertTrue(math.isnan(ieee_pow(-8.0, 0.5)))

    def test_modulo(self):
        self.assertEqual(ieee_mod(7.0, 2.0), 1.0)
        self.assertEqual(ieee_mod(-7.0, 2.0), -1.0)
        self.assertTrue(math.isnan(ieee_mod(5.0, 0.0)))
        self.assertTrue(math.isnan(ieee_mod(math.inf, 2.0)))


if __name__ == '__main__':
    unittest.main()
