import unittest

from fastapi.testclient import TestClient

from nutriplan.main import app
from nutriplan.services.supabase_client import get_supabase

from support import ApiTestCase, FakeSupabase, seed_profile

ONBOARDING = {
    "name": "Ana",
    "gender": "male",
    "weight": 80,
    "height": 180,
    "age": 30,
    "activity_level": "moderate",
    "goal": "lose",
    "restrictions": ["lactose"],
}


class TestPublicRoutes(ApiTestCase):
    def test_root(self):
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("message", resp.json())

    def test_calculate_targets(self):
        resp = self.client.post("/public/calculate-targets", json={
            "gender": "male", "weight": 80, "height": 180, "age": 30,
            "activity_level": "moderate", "goal": "lose",
        })
        self.assertEqual(resp.status_code, 200)
        data = resp.json()["data"]
        self.assertEqual(data["nutritional_targets"], {
            "calories": 2345, "protein_grams": 176, "carbs_grams": 235, "fat_grams": 78,
        })
        self.assertEqual(data["user_metrics"]["tdee"], 2759)

    def test_calculate_targets_invalid_input(self):
        resp = self.client.post("/public/calculate-targets", json={
            "gender": "robot", "weight": 80, "height": 180, "age": 30,
        })
        self.assertEqual(resp.status_code, 400)
        self.assertIn("gender", resp.json()["detail"])


class TestAuthRoutes(ApiTestCase):
    def test_signup_stores_metadata(self):
        resp = self.client.post("/signup", json={
            "email": "new@example.com",
            "password": "s3cret-pass",
            "name": "New",
            "questionnaire_data": {"goal": "gain"},
        })
        self.assertEqual(resp.status_code, 201)
        [signup] = self.db.auth.signups
        self.assertEqual(signup["options"]["data"], {"name": "New", "questionnaire": {"goal": "gain"}})
        self.assertTrue(signup["options"]["email_redirect_to"].endswith("/onboarding/account"))

    def test_token(self):
        resp = self.client.post("/token", data={"username": "a@example.com", "password": "pw"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"access_token": "token-for-a@example.com", "token_type": "bearer"})


class TestAuthRequired(unittest.TestCase):
    def setUp(self):
        app.dependency_overrides[get_supabase] = FakeSupabase
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.client.close()

    def test_missing_token_is_rejected(self):
        resp = self.client.get("/profile")
        self.assertEqual(resp.status_code, 401)


class TestProfileRoutes(ApiTestCase):
    def test_onboarding_computes_targets(self):
        resp = self.client.post("/profile", json=ONBOARDING)

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["targets"]["target_calories"], 2345)
        [profile] = self.db.rows("profiles")
        self.assertEqual(profile["user_id"], self.user_id)
        self.assertEqual(profile["tdee"], 2759)
        self.assertEqual(profile["target_protein"], 176)
        self.assertEqual(profile["restrictions"], ["lactose"])

    def test_onboarding_twice_overwrites(self):
        self.client.post("/profile", json=ONBOARDING)
        resp = self.client.post("/profile", json={**ONBOARDING, "goal": "maintain"})

        self.assertEqual(resp.status_code, 200)
        [profile] = self.db.rows("profiles")
        self.assertEqual(profile["target_calories"], 2759)

    def test_onboarding_rejects_bad_measurements(self):
        resp = self.client.post("/profile", json={**ONBOARDING, "weight": 0})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.db.rows("profiles"), [])

    def test_get_profile(self):
        resp = self.client.get("/profile")
        self.assertEqual(resp.status_code, 404)

        seed_profile(self.db, self.user_id)
        resp = self.client.get("/profile")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["profile"]["target_calories"], 2477)

    def test_update_recomputes_targets(self):
        self.client.post("/profile", json=ONBOARDING)

        resp = self.client.put("/profile", json={"goal": "maintain"})

        self.assertEqual(resp.status_code, 200)
        profile = resp.json()["profile"]
        self.assertEqual(profile["goal"], "maintain")
        self.assertEqual(profile["target_calories"], 2759)

    def test_update_name_keeps_targets(self):
        seed_profile(self.db, self.user_id)
        resp = self.client.put("/profile", json={"name": "Renamed"})
        self.assertEqual(resp.json()["profile"]["target_calories"], 2477)

    def test_update_ignores_null_fields(self):
        seed_profile(self.db, self.user_id)

        resp = self.client.put("/profile", json={"goal": None, "gender": None, "target_calories": None,
                                                 "name": "Renamed"})

        self.assertEqual(resp.status_code, 200)
        profile = self.db.rows("profiles")[0]
        self.assertEqual((profile["name"], profile["goal"], profile["gender"]), ("Renamed", "lose", "male"))
        self.assertEqual(profile["target_calories"], 2477)

    def test_manual_override(self):
        seed_profile(self.db, self.user_id)
        resp = self.client.put("/profile", json={"target_calories": 2100, "target_protein": 160})

        self.assertEqual(resp.status_code, 200)
        profile = self.db.rows("profiles")[0]
        self.assertEqual((profile["target_calories"], profile["target_protein"]), (2100, 160))

    def test_override_below_floor_rejected(self):
        seed_profile(self.db, self.user_id)
        resp = self.client.put("/profile", json={"target_calories": 900})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.db.rows("profiles")[0]["target_calories"], 2477)


if __name__ == "__main__":
    unittest.main()
