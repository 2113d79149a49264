"""Tests for entity kinds and the state/entity mapping."""

import unittest

from terrakube_provider.entities import (
    COLLECTION,
    KINDS,
    MODULE,
    TEAM,
    Entity,
    get_kind,
)


class TestEntityKinds(unittest.TestCase):
    """Test the kind descriptors."""

    def test_registered_kinds(self):
        """Test that every kind is registered under its name."""
        self.assertEqual(set(KINDS), {"team", "module", "collection"})
        self.assertIs(get_kind("module"), MODULE)

    def test_unknown_kind(self):
        """Test looking up a kind that does not exist."""
        with self.assertRaises(KeyError):
            get_kind("workspace")

    def test_team_has_eight_permission_flags(self):
        """Test the team permission flags default to false."""
        flags = [a for a in TEAM.attributes if a.value_type is bool]
        self.assertEqual(len(flags), 8)
        for flag in flags:
            with self.subTest(flag=flag.name):
                self.assertFalse(flag.required)
                self.assertIs(flag.default, False)
                self.assertTrue(flag.wire_name.startswith("manage"))

    def test_state_names(self):
        """Test identifiers come first in the tracked names."""
        self.assertEqual(
            COLLECTION.state_names(),
            ["id", "organization_id", "name", "description", "priority"]
        )

    def test_immutable_fields(self):
        """Test which kinds hold the name immutable."""
        self.assertIn("name", TEAM.immutable)
        self.assertIn("name", MODULE.immutable)
        self.assertEqual(COLLECTION.immutable, frozenset())


class TestOutboundMapping(unittest.TestCase):
    """Test building entities from planned values."""

    def test_module_uses_wire_names(self):
        """Test provider_name is sent as 'provider'."""
        entity = MODULE.to_entity({
            "organization_id": "org1",
            "name": "vpc",
            "description": "VPC module",
            "provider_name": "aws",
            "source": "https://github.com/example/vpc.git",
        })
        self.assertIsNone(entity.id)
        self.assertEqual(entity.type_name, "module")
        self.assertEqual(entity.attributes, {
            "name": "vpc",
            "description": "VPC module",
            "provider": "aws",
            "source": "https://github.com/example/vpc.git",
        })

    def test_no_defaults_applied(self):
        """Test omitted values are passed through untouched."""
        entity = TEAM.to_entity({"name": "ops"})
        self.assertIsNone(entity.attributes["manageState"])

    def test_update_keeps_prior_name_and_id(self):
        """Test immutable fields and the id come from prior state."""
        prior = {"id": "m1", "organization_id": "org1", "name": "vpc",
                 "description": "old", "provider_name": "aws", "source": "git"}
        planned = dict(prior, name="renamed", description="new")

        entity = MODULE.to_entity(planned, prior)

        self.assertEqual(entity.id, "m1")
        self.assertEqual(entity.attributes["name"], "vpc")
        self.assertEqual(entity.attributes["description"], "new")

    def test_collection_rename_allowed(self):
        """Test a collection update carries the planned name."""
        prior = {"id": "c1", "name": "old", "description": "d", "priority": 1}
        entity = COLLECTION.to_entity(dict(prior, name="new"), prior)
        self.assertEqual(entity.attributes["name"], "new")


class TestInboundMapping(unittest.TestCase):
    """Test overwriting state with server values."""

    def test_entity_identifier_keyword(self):
        entity = Entity("team", entity_id="t1", attributes={"name": "infra"})
        self.assertEqual(entity.id, "t1")
        self.assertEqual(entity, Entity("team", "t1", {"name": "infra"}))

    def test_overwrites_every_field(self):
        """Test server values win over planned ones."""
        values = {"organization_id": "org1", "id": None, "name": "Infra", "manage_job": True}
        entity = Entity("team", "t1", {"name": "infra", "manageJob": False})

        result = TEAM.apply_entity(values, entity)

        self.assertEqual(result["id"], "t1")
        self.assertEqual(result["organization_id"], "org1")
        self.assertEqual(result["name"], "infra")
        self.assertFalse(result["manage_job"])
        self.assertIsNone(values["id"])

    def test_missing_attributes_become_zero_values(self):
        """Test attributes the server left out are reset."""
        result = COLLECTION.apply_entity(
            {"name": "x", "description": "y", "priority": 5},
            Entity("collection", "c1", {})
        )
        self.assertEqual(result["name"], "")
        self.assertEqual(result["description"], "")
        self.assertEqual(result["priority"], 0)
