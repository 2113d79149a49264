"""Tests for the HTTP client and the remote entity client."""

import json
import unittest
from unittest.mock import patch

import requests

from fakes import FakeResponse, FakeTerrakubeAPI, connection_error, document
from terrakube_provider.api import EntityClient, TerrakubeAPIClient
from terrakube_provider.entities import COLLECTION, MODULE, TEAM, Entity
from terrakube_provider.errors import DecodingError, EncodingError, RemoteNotFound, TransportError

ENDPOINT = "https://terrakube-api.example.com"


def collection_entity(**overrides):
    attributes = {"name": "shared", "description": "Shared variables", "priority": 10}
    attributes.update(overrides)
    return Entity("collection", None, attributes)


class TestTerrakubeAPIClient(unittest.TestCase):
    """Test session setup."""

    def test_session_headers(self):
        """Test bearer token and JSON:API content type are always sent."""
        client = TerrakubeAPIClient(ENDPOINT + "/", "secret-token-value")
        headers = client.session.headers
        self.assertEqual(headers["Authorization"], "Bearer secret-token-value")
        self.assertEqual(headers["Content-Type"], "application/vnd.api+json")
        self.assertEqual(client.endpoint, ENDPOINT)
        self.assertTrue(client.session.verify)

    def test_insecure_client_skips_verification(self):
        client = TerrakubeAPIClient(ENDPOINT, "secret-token-value", insecure_http_client=True)
        self.assertFalse(client.session.verify)

    def test_no_retries(self):
        """Test the mounted adapters never retry."""
        client = TerrakubeAPIClient(ENDPOINT, "secret-token-value")
        self.assertEqual(client.session.get_adapter(ENDPOINT).max_retries.total, 0)

    def test_transport_failures(self):
        """Test that requests exceptions become TransportError."""
        failures = [
            connection_error(),
            requests.exceptions.Timeout("read timed out"),
            requests.exceptions.SSLError("certificate verify failed"),
            requests.exceptions.InvalidURL("bad url"),
        ]
        client = TerrakubeAPIClient(ENDPOINT, "secret-token-value")

        for failure in failures:
            with self.subTest(failure=type(failure).__name__):
                with patch.object(client.session, "request", side_effect=failure):
                    with self.assertRaises(TransportError):
                        client.request("GET", "/organization/org1/team/t1")


class TestEntityClient(unittest.TestCase):
    """Test the lifecycle exchanges."""

    def setUp(self):
        self.api = TerrakubeAPIClient(ENDPOINT, "secret-token-value")
        self.server = FakeTerrakubeAPI()
        patcher = patch.object(self.api.session, "request", side_effect=self.server)
        self.request = patcher.start()
        self.addCleanup(patcher.stop)
        self.client = EntityClient(self.api, COLLECTION)

    def test_create_posts_without_id(self):
        """Test create hits the collection URL and returns the new id."""
        entity = collection_entity()
        entity.id = "ignored"

        created = self.client.create("org1", entity)

        method, url, body = self.server.calls[0]
        self.assertEqual(method, "POST")
        self.assertEqual(url, f"{ENDPOINT}/api/v1/organization/org1/collection")
        self.assertNotIn("id", body["data"])
        self.assertEqual(created.id, "collection-1")
        self.assertEqual(created.attributes["priority"], 10)

    def test_create_encoding_error_sends_nothing(self):
        """Test a bad attribute fails before any request."""
        with self.assertRaises(EncodingError):
            self.client.create("org1", collection_entity(priority="high"))
        self.request.assert_not_called()

    def test_create_decoding_error(self):
        """Test a non JSON:API answer to a create."""
        self.server.respond_with("POST", "/collection", FakeResponse(200, "<html></html>"))
        with self.assertRaises(DecodingError):
            self.client.create("org1", collection_entity())

    def test_read(self):
        entity_id = self.server.seed("org1", "collection", {"name": "a", "description": "b", "priority": 3})
        entity = self.client.read("org1", entity_id)
        self.assertEqual(self.server.calls[0][1], f"{ENDPOINT}/api/v1/organization/org1/collection/{entity_id}")
        self.assertEqual(entity.attributes, {"name": "a", "description": "b", "priority": 3})

    def test_read_not_found(self):
        with self.assertRaises(RemoteNotFound):
            self.client.read("org1", "missing")

    def test_server_error_carries_detail(self):
        """Test error statuses become TransportError with the API's message."""
        self.server.respond_with("GET", "/c1", FakeResponse(
            403, {"errors": [{"title": "Forbidden", "detail": "manageCollection required"}]}))

        with self.assertRaises(TransportError) as ctx:
            self.client.read("org1", "c1")

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("manageCollection required", str(ctx.exception))

    def test_update_refetches(self):
        """Test the returned entity comes from a GET after the PATCH."""
        entity_id = self.server.seed("org1", "collection", {"name": "a", "description": "b", "priority": 3})

        updated = self.client.update("org1", entity_id, collection_entity(priority=7))

        self.assertEqual(self.server.methods(), ["PATCH", "GET"])
        patch_body = self.server.calls[0][2]
        self.assertEqual(patch_body["data"]["id"], entity_id)
        self.assertEqual(updated.attributes["priority"], 7)
        self.assertEqual(updated.attributes["name"], "shared")

    def test_update_ignores_patch_body(self):
        """Test a misleading PATCH response body is not used."""
        entity_id = self.server.seed("org1", "collection", {"name": "a", "description": "b", "priority": 3})
        self.server.respond_with("PATCH", entity_id, FakeResponse(
            200, document("collection", entity_id, {"name": "bogus", "description": "", "priority": 99})))

        updated = self.client.update("org1", entity_id, collection_entity())

        self.assertEqual(updated.attributes["priority"], 3)
        self.assertEqual(updated.attributes["name"], "a")

    def test_update_tolerates_unreadable_patch_body(self):
        """Test a PATCH body read failure is only logged."""
        entity_id = self.server.seed("org1", "collection", {"name": "a", "description": "b", "priority": 3})
        self.server.respond_with("PATCH", entity_id, FakeResponse(
            200, content_error=requests.exceptions.ChunkedEncodingError("broken")))

        updated = self.client.update("org1", entity_id, collection_entity())

        self.assertEqual(updated.id, entity_id)

    def test_update_fails_on_unreadable_read_back(self):
        """Test a body read failure on the re-fetch is fatal."""
        entity_id = self.server.seed("org1", "collection", {"name": "a", "description": "b", "priority": 3})
        self.server.respond_with("GET", entity_id, FakeResponse(
            200, content_error=requests.exceptions.ChunkedEncodingError("broken")))

        with self.assertRaises(TransportError):
            self.client.update("org1", entity_id, collection_entity())

    def test_update_not_found(self):
        with self.assertRaises(RemoteNotFound):
            self.client.update("org1", "missing", collection_entity())
        self.assertEqual(self.server.methods(), ["PATCH"])

    def test_delete(self):
        entity_id = self.server.seed("org1", "collection", {"name": "a", "description": "b", "priority": 3})
        self.client.delete("org1", entity_id)
        self.assertEqual(self.server.calls[0][0], "DELETE")
        self.assertEqual(self.server.entities, {})

    def test_delete_missing_is_success(self):
        """Test deleting an entity that is already gone."""
        self.client.delete("org1", "missing")
        self.assertEqual(self.server.methods(), ["DELETE"])

    def test_delete_failure_not_retried(self):
        """Test a failed delete surfaces once."""
        self.server.respond_with("DELETE", "c1", FakeResponse(500, "boom", reason="Internal Server Error"))
        with self.assertRaises(TransportError):
            self.client.delete("org1", "c1")
        self.assertEqual(self.server.methods(), ["DELETE"])


class TestEntityPaths(unittest.TestCase):
    """Test endpoint paths per kind."""

    def test_paths(self):
        api = TerrakubeAPIClient(ENDPOINT, "secret-token-value")
        for kind in (TEAM, MODULE, COLLECTION):
            with self.subTest(kind=kind.name):
                client = EntityClient(api, kind)
                self.assertEqual(client.collection_path("org1"), f"/organization/org1/{kind.name}")
                self.assertEqual(api.url(client.entity_path("org1", "x")),
                                 f"{ENDPOINT}/api/v1/organization/org1/{kind.name}/x")


if __name__ == "__main__":
    unittest.main()
