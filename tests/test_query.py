import unittest

from nutriplan.tools.query import (
    best_pantry_match,
    describe_pantry,
    fuzzy_search_rows,
    pantry_frame,
    pantry_matches,
)

PANTRY = [
    {"food_name": "Brown rice", "quantity": 500, "unit": "g"},
    {"food_name": "Chicken breast", "quantity": 1, "unit": "kg"},
    {"food_name": "Eggs", "quantity": None, "unit": None},
    {"food_name": "Greek yogurt", "quantity": 2, "unit": "cups"},
]


class TestPantryMatching(unittest.TestCase):
    def setUp(self):
        self.df = pantry_frame(PANTRY)

    def test_token_set_match_ignores_extra_words(self):
        self.assertEqual(best_pantry_match("grilled chicken breast", self.df), "Chicken breast")
        self.assertEqual(best_pantry_match("rice brown", self.df), "Brown rice")

    def test_unrelated_food_does_not_match(self):
        self.assertIsNone(best_pantry_match("salmon fillet", self.df))

    def test_empty_pantry(self):
        df = pantry_frame([])
        self.assertTrue(df.empty)
        self.assertIsNone(best_pantry_match("eggs", df))
        self.assertTrue(fuzzy_search_rows("eggs", df).empty)

    def test_fuzzy_search_rows(self):
        rows = fuzzy_search_rows("yogurt", self.df)
        self.assertEqual(list(rows["food_name"]), ["Greek yogurt"])

    def test_pantry_matches_are_distinct(self):
        found = pantry_matches(["eggs", "2 eggs", "brown rice", "tofu"], self.df)
        self.assertEqual(found, ["Eggs", "Brown rice"])

    def test_describe_pantry(self):
        self.assertEqual(
            describe_pantry(PANTRY),
            "Brown rice (500 g), Chicken breast (1 kg), Eggs, Greek yogurt (2 cups)",
        )


if __name__ == "__main__":
    unittest.main()
