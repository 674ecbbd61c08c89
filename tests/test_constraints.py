import unittest
from lockbuilder.errors import InvalidConstraint
from lockbuilder.utils.constraints import comparator_to_specifier, satisfies, tokenize

class TestConstraints(unittest.TestCase):

    def test_left_fold_has_no_operator_precedence(self):
        """'a || b, c' is evaluated as (a or b) and c."""
        self.assertFalse(satisfies("1.5", "<2 || >=3, !=1.5"))

    def test_trailing_or_can_rescue_the_fold(self):
        # ((<2 and !=1.5) or >=3) for 3.5
        self.assertTrue(satisfies("3.5", "<2, !=1.5 || >=3"))

    def test_python_versions_range(self):
        self.assertTrue(satisfies("3.11.0", ">=3.8,<4.0"))
        self.assertFalse(satisfies("3.6.0", ">=3.8,<4.0"))

    def test_empty_and_wildcard_constraints_are_satisfied(self):
        self.assertTrue(satisfies("3.11", ""))
        self.assertTrue(satisfies("3.11", "*"))

    def test_excluded_prefixes(self):
        constraint = ">=2.7, !=3.0.*, !=3.1.*"
        self.assertTrue(satisfies("2.7.18", constraint))
        self.assertFalse(satisfies("3.0.1", constraint))
        self.assertTrue(satisfies("3.5.0", constraint))

    def test_caret_ranges(self):
        self.assertTrue(satisfies("3.11.2", "^3.8"))
        self.assertFalse(satisfies("4.0.0", "^3.8"))
        self.assertTrue(satisfies("0.2.5", "^0.2.3"))
        self.assertFalse(satisfies("0.3.0", "^0.2.3"))

    def test_tilde_ranges(self):
        self.assertTrue(satisfies("3.8.10", "~3.8"))
        self.assertFalse(satisfies("3.9.0", "~3.8"))
        self.assertTrue(satisfies("3.9.0", "~3"))

    def test_bare_versions(self):
        self.assertTrue(satisfies("3.8.0", "3.8"))
        self.assertFalse(satisfies("3.8.1", "3.8"))
        self.assertTrue(satisfies("3.8.10", "3.8.*"))

    def test_whitespace_inside_comparators(self):
        self.assertTrue(satisfies("3.7.0", ">= 3.6 ,< 4"))

    def test_prereleases_are_admitted(self):
        self.assertTrue(satisfies("3.12.0rc1", ">=3.8,<4.0"))

    def test_invalid_comparator(self):
        with self.assertRaises(InvalidConstraint):
            satisfies("3.11", ">=abc")
        with self.assertRaises(InvalidConstraint):
            comparator_to_specifier("^not-a-version")

    def test_invalid_version(self):
        with self.assertRaises(InvalidConstraint):
            satisfies("three", ">=3")

    def test_deterministic(self):
        results = {satisfies("1.5", "<2 || >=3, !=1.5") for _ in range(5)}
        self.assertEqual(results, {False})

    def test_tokenize_keeps_delimiters(self):
        self.assertEqual(tokenize(">=2.7, !=3.0.* || >=3.5"), [">=2.7", ",", "!=3.0.*", "||", ">=3.5"])

if __name__ == "__main__":
    unittest.main()
