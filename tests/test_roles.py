import unittest

from nutriplan.models.roles import Role, highest_role


class TestRoles(unittest.TestCase):
    def test_total_order(self):
        self.assertLess(Role.USER, Role.NUTRITIONIST)
        self.assertLess(Role.NUTRITIONIST, Role.ADMIN)
        self.assertGreater(Role.ADMIN, Role.USER)
        self.assertEqual(sorted([Role.ADMIN, Role.USER, Role.NUTRITIONIST]),
                         [Role.USER, Role.NUTRITIONIST, Role.ADMIN])

    def test_at_least(self):
        self.assertTrue(Role.ADMIN.at_least(Role.NUTRITIONIST))
        self.assertTrue(Role.NUTRITIONIST.at_least(Role.NUTRITIONIST))
        self.assertFalse(Role.USER.at_least(Role.NUTRITIONIST))

    def test_highest_role(self):
        self.assertEqual(highest_role(["user", "admin", "nutritionist"]), Role.ADMIN)
        self.assertEqual(highest_role(["nutritionist", "user"]), Role.NUTRITIONIST)

    def test_no_roles_means_user(self):
        self.assertEqual(highest_role([]), Role.USER)

    def test_unknown_values_are_ignored(self):
        self.assertEqual(highest_role(["superuser", None, "nutritionist"]), Role.NUTRITIONIST)
        self.assertIsNone(Role.parse("owner"))
        self.assertEqual(Role.parse("ADMIN"), Role.ADMIN)


if __name__ == "__main__":
    unittest.main()
