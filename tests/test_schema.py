"""Tests for planning configurations against tracked state."""

import unittest

from terrakube_provider.diagnostics import ResourceState
from terrakube_provider.entities import COLLECTION, MODULE, TEAM
from terrakube_provider.schema import (
    ACTION_CREATE,
    ACTION_NOOP,
    ACTION_REPLACE,
    ACTION_UPDATE,
    plan_resource,
)


def tracked_team(**overrides):
    values = {
        "id": "team-1", "organization_id": "org1", "name": "platform",
        "manage_state": False, "manage_workspace": True, "manage_module": False,
        "manage_provider": False, "manage_vcs": False, "manage_template": False,
        "manage_job": False, "manage_collection": False,
    }
    values.update(overrides)
    return ResourceState(values)


class TestPlanCreate(unittest.TestCase):
    """Test planning a new instance."""

    def test_team_flags_default_to_false(self):
        change = plan_resource(TEAM, {"organization_id": "org1", "name": "infra-admins", "manage_job": True})

        self.assertEqual(change.action, ACTION_CREATE)
        plan = change.plan.get()
        self.assertIsNone(plan["id"])
        self.assertIs(plan["manage_job"], True)
        self.assertIs(plan["manage_state"], False)
        self.assertIs(plan["manage_collection"], False)

    def test_missing_required_attribute(self):
        change = plan_resource(MODULE, {"organization_id": "org1", "name": "vpc", "description": "d",
                                        "provider_name": "aws"})

        self.assertIsNone(change.action)
        self.assertEqual([d.attribute for d in change.diagnostics.errors()], ["source"])

    def test_missing_organization(self):
        change = plan_resource(COLLECTION, {"name": "a", "description": "b", "priority": 1})
        self.assertIsNone(change.action)
        self.assertTrue(change.plan.is_absent)

    def test_wrong_type(self):
        """Test a boolean is not accepted where a number is declared."""
        change = plan_resource(COLLECTION, {"organization_id": "org1", "name": "a", "description": "b",
                                            "priority": True})
        self.assertIsNone(change.action)
        self.assertIn("priority", change.diagnostics.errors()[0].detail)


class TestPlanExisting(unittest.TestCase):
    """Test planning against tracked state."""

    def test_noop(self):
        change = plan_resource(TEAM, {"organization_id": "org1", "name": "platform",
                                      "manage_workspace": True}, tracked_team())
        self.assertEqual(change.action, ACTION_NOOP)
        self.assertEqual(change.plan, tracked_team())

    def test_update_keeps_id(self):
        change = plan_resource(TEAM, {"organization_id": "org1", "name": "platform"}, tracked_team())

        self.assertEqual(change.action, ACTION_UPDATE)
        self.assertEqual(change.plan.get_attribute("id"), "team-1")
        self.assertIs(change.plan.get_attribute("manage_workspace"), False)

    def test_team_rename_forces_replacement(self):
        change = plan_resource(TEAM, {"organization_id": "org1", "name": "platform-admins",
                                      "manage_workspace": True}, tracked_team())

        self.assertEqual(change.action, ACTION_REPLACE)
        self.assertEqual(change.replace_reasons, ["name"])
        self.assertIsNone(change.plan.get_attribute("id"))

    def test_organization_change_forces_replacement(self):
        change = plan_resource(TEAM, {"organization_id": "org2", "name": "platform",
                                      "manage_workspace": True}, tracked_team())
        self.assertEqual(change.action, ACTION_REPLACE)
        self.assertEqual(change.replace_reasons, ["organization_id"])

    def test_module_rename_warns_and_keeps_name(self):
        prior = ResourceState({"id": "m1", "organization_id": "org1", "name": "vpc", "description": "d",
                               "provider_name": "aws", "source": "git"})

        change = plan_resource(MODULE, {"organization_id": "org1", "name": "network", "description": "d",
                                        "provider_name": "aws", "source": "git"}, prior)

        self.assertEqual(change.action, ACTION_NOOP)
        self.assertEqual(change.plan.get_attribute("name"), "vpc")
        self.assertEqual(len(change.diagnostics.warnings()), 1)
        self.assertFalse(change.diagnostics.has_error())

    def test_absent_prior_plans_create(self):
        change = plan_resource(COLLECTION, {"organization_id": "org1", "name": "a", "description": "b",
                                            "priority": 1}, ResourceState())
        self.assertEqual(change.action, ACTION_CREATE)


if __name__ == "__main__":
    unittest.main()
