"""Tests for JSON:API document framing."""

import json
import unittest

from terrakube_provider.entities import COLLECTION, TEAM, Entity
from terrakube_provider.errors import DecodingError, EncodingError
from terrakube_provider.jsonapi import error_messages, marshal_payload, unmarshal_payload


def team_attributes(**overrides):
    attributes = {a.wire_name: False for a in TEAM.attributes if a.value_type is bool}
    attributes["name"] = "infra-admins"
    attributes.update(overrides)
    return attributes


class TestMarshalPayload(unittest.TestCase):
    """Test request document encoding."""

    def test_omits_missing_id(self):
        """Test that a new entity has no id in the document."""
        body = marshal_payload(Entity("team", None, team_attributes()), TEAM)
        data = json.loads(body)["data"]
        self.assertEqual(data["type"], "team")
        self.assertNotIn("id", data)
        self.assertEqual(data["attributes"]["name"], "infra-admins")

    def test_includes_id(self):
        """Test that an existing entity carries its id."""
        body = marshal_payload(Entity("team", "t1", team_attributes()), TEAM)
        self.assertEqual(json.loads(body)["data"]["id"], "t1")

    def test_rejects_wrong_type(self):
        """Test that attribute types are enforced."""
        with self.assertRaises(EncodingError):
            marshal_payload(Entity("team", None, team_attributes(manageJob="yes")), TEAM)

    def test_rejects_missing_value(self):
        """Test that an unset attribute cannot be encoded."""
        with self.assertRaises(EncodingError):
            marshal_payload(Entity("team", None, team_attributes(name=None)), TEAM)

    def test_rejects_bool_as_number(self):
        """Test that a boolean is not accepted as collection priority."""
        entity = Entity("collection", None, {"name": "a", "description": "b", "priority": True})
        with self.assertRaises(EncodingError):
            marshal_payload(entity, COLLECTION)


class TestUnmarshalPayload(unittest.TestCase):
    """Test response document decoding."""

    def test_decodes_entity(self):
        """Test a well-formed team document."""
        body = json.dumps({"data": {"type": "team", "id": "t1", "attributes": team_attributes(manageJob=True)}})
        entity = unmarshal_payload(body.encode(), TEAM)
        self.assertEqual(entity.id, "t1")
        self.assertTrue(entity.attributes["manageJob"])

    def test_ignores_unknown_attributes(self):
        """Test attributes outside the kind schema are dropped."""
        body = json.dumps({"data": {"type": "collection", "id": "c1",
                                    "attributes": {"name": "a", "description": "b", "priority": 2, "extra": 1}}})
        entity = unmarshal_payload(body, COLLECTION)
        self.assertNotIn("extra", entity.attributes)

    def test_invalid_documents(self):
        """Test bodies that are not a JSON:API document for the kind."""
        invalid_bodies = [
            b"",
            b"<html>Not Found</html>",
            b"\xff\xfe",
            b"[]",
            b'{"errors": []}',
            b'{"data": []}',
            b'{"data": {"type": "module", "id": "m1"}}',
            b'{"data": {"type": "team"}}',
            b'{"data": {"type": "team", "id": 7}}',
            b'{"data": {"type": "team", "id": "t1", "attributes": []}}',
            b'{"data": {"type": "team", "id": "t1", "attributes": {"manageJob": "true"}}}',
        ]

        for body in invalid_bodies:
            with self.subTest(body=body):
                with self.assertRaises(DecodingError):
                    unmarshal_payload(body, TEAM)


class TestErrorMessages(unittest.TestCase):
    """Test extraction of JSON:API error documents."""

    def test_detail_preferred_over_title(self):
        body = b'{"errors": [{"title": "Forbidden", "detail": "team is not allowed"}, {"title": "Other"}]}'
        self.assertEqual(error_messages(body), ["team is not allowed", "Other"])

    def test_not_an_error_document(self):
        self.assertEqual(error_messages(b"oops"), [])
        self.assertEqual(error_messages(b'{"data": {}}'), [])
