"""JSON:API document framing for single-entity requests and responses."""

import json
from typing import Any, Dict, List, Union

from .entities import Entity, EntityKind
from .errors import DecodingError, EncodingError
from .validators import InputValidator

MEDIA_TYPE = "application/vnd.api+json"


def marshal_payload(entity: Entity, kind: EntityKind) -> bytes:
    """Serialize an entity as a JSON:API document.

    Raises:
        EncodingError: If an attribute has the wrong type or cannot be serialized.
    """
    for attribute in kind.attributes:
        value = entity.attributes.get(attribute.wire_name)
        if not InputValidator.is_value_of_type(value, attribute.value_type):
            raise EncodingError(
                f"Attribute '{attribute.name}' must be of type {attribute.value_type.__name__}, "
                f"got {type(value).__name__}"
            )

    data: Dict[str, Any] = {"type": entity.type_name}
    if entity.id:
        data["id"] = entity.id
    data["attributes"] = entity.attributes

    try:
        return json.dumps({"data": data}).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Unable to marshal payload: {e}")


def unmarshal_payload(body: Union[bytes, str], kind: EntityKind) -> Entity:
    """Parse a JSON:API document holding one entity of ``kind``.

    Raises:
        DecodingError: If the body is not a valid document for the kind.
    """
    try:
        document = json.loads(body)
    except (TypeError, ValueError) as e:
        raise DecodingError(f"Response body is not valid JSON: {e}")

    if not isinstance(document, dict) or not isinstance(document.get("data"), dict):
        raise DecodingError("Response is not a JSON:API document with a primary data object")

    data = document["data"]
    if data.get("type") != kind.type_name:
        raise DecodingError(f"Expected JSON:API type '{kind.type_name}', got {data.get('type')!r}")

    entity_id = data.get("id")
    if not isinstance(entity_id, str) or not entity_id:
        raise DecodingError("JSON:API primary data has no id")

    raw_attributes = data.get("attributes", {})
    if not isinstance(raw_attributes, dict):
        raise DecodingError("JSON:API attributes must be an object")

    attributes = {}
    for attribute in kind.attributes:
        if attribute.wire_name not in raw_attributes or raw_attributes[attribute.wire_name] is None:
            continue
        value = raw_attributes[attribute.wire_name]
        if not InputValidator.is_value_of_type(value, attribute.value_type):
            raise DecodingError(
                f"Attribute '{attribute.wire_name}' should be {attribute.value_type.__name__}, "
                f"got {type(value).__name__}"
            )
        attributes[attribute.wire_name] = value

    return Entity(kind.type_name, entity_id, attributes)


def error_messages(body: Union[bytes, str]) -> List[str]:
    """Extract the messages of a JSON:API ``errors`` document.

    Returns an empty list when the body is anything else.
    """
    try:
        document = json.loads(body)
    except (TypeError, ValueError):
        return []

    if not isinstance(document, dict) or not isinstance(document.get("errors"), list):
        return []

    messages = []
    for error in document["errors"]:
        if not isinstance(error, dict):
            continue
        text = error.get("detail") or error.get("title")
        if text:
            messages.append(str(text))
    return messages
