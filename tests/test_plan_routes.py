import json
import unittest
from datetime import date

from nutriplan.core.prompts import MEAL_SCHEDULE

from support import ApiTestCase, seed_profile


def generated_plan():
    meals = []
    for order, (name, time) in enumerate(MEAL_SCHEDULE, start=1):
        meals.append({
            "name": name,
            "time": time,
            "order": order,
            "foods": [
                {"name": f"{name} protein", "amount": "100g", "calories": 200, "protein": 20, "carbs": 10, "fats": 8},
                {"name": f"{name} carb", "amount": "80g", "calories": 150.5, "protein": 4, "carbs": 30, "fats": 1.5},
            ],
        })
    return {"meals": meals}


class TestMealPlanRoutes(ApiTestCase):
    def setUp(self):
        super().setUp()
        seed_profile(self.db, self.user_id)

    def generate(self):
        self.genai.reply_text("```json\n" + json.dumps(generated_plan()) + "\n```")
        return self.client.post("/plans/generate", json={"plan_date": date.today().isoformat()})

    def test_generate_persists_plan(self):
        resp = self.generate()

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["totals"], {"calories": 1752.5, "protein": 120.0, "carbs": 200.0, "fats": 47.5})
        self.assertEqual(len(self.db.rows("meals")), 5)
        self.assertEqual(len(self.db.rows("food_items")), 10)

        [plan] = self.db.rows("meal_plans")
        self.assertEqual(plan["id"], body["plan_id"])
        self.assertEqual(plan["total_calories"], 1752.5)
        self.assertEqual(plan["diet_type"], "weight_loss")
        self.assertIn("2477 kcal", self.genai.calls[0]["contents"])

    def test_generate_requires_profile(self):
        self.login_as("no-profile")
        resp = self.client.post("/plans/generate", json={})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.genai.calls, [])

    def test_generate_with_unusable_answer(self):
        self.genai.reply_text('{"plan": "eat well"}')
        resp = self.client.post("/plans/generate", json={})
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(self.db.rows("meal_plans"), [])

    def test_generate_with_malformed_food(self):
        plan = generated_plan()
        plan["meals"][2]["foods"].append("a handful of nuts")
        self.genai.reply_text(json.dumps(plan))

        resp = self.client.post("/plans/generate", json={})

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(self.db.rows("meal_plans"), [])

    def test_todays_plan_and_toggle(self):
        self.generate()

        plan = self.client.get("/plans/today").json()["plan"]
        self.assertEqual([m["meal_order"] for m in plan["meals"]], [1, 2, 3, 4, 5])
        self.assertEqual(len(plan["meals"][0]["food_items"]), 2)

        meal_id = plan["meals"][0]["id"]
        resp = self.client.patch(f"/plans/meals/{meal_id}/toggle")
        self.assertTrue(resp.json()["meal"]["completed"])
        resp = self.client.patch(f"/plans/meals/{meal_id}/toggle")
        self.assertFalse(resp.json()["meal"]["completed"])

    def test_no_plan_today(self):
        self.assertIsNone(self.client.get("/plans/today").json()["plan"])

    def test_add_food_with_lookup_and_remove(self):
        plan_id = self.generate().json()["plan_id"]
        meal_id = self.db.rows("meals")[0]["id"]

        self.genai.reply_call("provide_nutrition_info", {"calories": 89, "protein": 1.1, "carbs": 22.8, "fats": 0.3})
        resp = self.client.post(f"/plans/meals/{meal_id}/foods", json={"name": "Banana", "amount": "1 unit"})

        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["food_item"]["calories"], 89)
        self.assertEqual(body["plan"]["total_calories"], 1841.5)

        resp = self.client.delete(f"/plans/foods/{body['food_item']['id']}")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["plan"]["total_calories"], 1752.5)
        self.assertEqual(self.client.get(f"/plans/{plan_id}").json()["plan"]["total_calories"], 1752.5)

    def test_add_food_with_given_macros_skips_lookup(self):
        self.generate()
        meal_id = self.db.rows("meals")[0]["id"]

        resp = self.client.post(f"/plans/meals/{meal_id}/foods", json={
            "name": "Almonds", "amount": "10g", "calories": 58, "protein": 2, "carbs": 2, "fats": 5,
        })

        self.assertEqual(resp.status_code, 201)
        self.assertEqual(len(self.genai.calls), 1)

    def test_manual_plan(self):
        resp = self.client.post("/plans", json={
            "plan_name": "  Cut week 1 ", "diet_type": "weight_loss", "plan_date": "2024-05-01",
        })
        self.assertEqual(resp.status_code, 201)
        plan = resp.json()["plan"]
        self.assertEqual(plan["plan_name"], "Cut week 1")
        self.assertEqual(plan["total_calories"], 0)

        self.assertEqual(len(self.client.get("/plans").json()["plans"]), 1)

    def test_manual_plan_validation(self):
        base = {"plan_name": "Plan", "diet_type": "weight_loss", "plan_date": "2024-05-01"}
        for change in ({"plan_name": "   "}, {"diet_type": "keto"}, {"plan_date": None},
                       {"plan_name": "x" * 201}, {"plan_description": "y" * 1001}):
            resp = self.client.post("/plans", json={**base, **change})
            self.assertEqual(resp.status_code, 400, change)
        self.assertEqual(self.db.rows("meal_plans"), [])

    def test_ownership(self):
        other = self.db.seed("meal_plans", user_id="someone-else", plan_name="Theirs", plan_date="2024-05-01")
        meal = self.db.seed("meals", meal_plan_id=other["id"], name="Lunch", meal_order=1, completed=False)

        self.assertEqual(self.client.get(f"/plans/{other['id']}").status_code, 403)
        self.assertEqual(self.client.patch(f"/plans/meals/{meal['id']}/toggle").status_code, 403)
        self.assertEqual(self.client.get("/plans/missing").status_code, 404)
        self.assertEqual(self.client.delete("/plans/foods/missing").status_code, 404)


if __name__ == "__main__":
    unittest.main()
