# Vault - Secret Record
#
# One named credential and its serialized form (UTF-8 JSON object).
# The encoded bytes are what gets sealed into each secret file.

import json
from dataclasses import dataclass, fields
from typing import Any, Dict

from .errors import MalformedRecord


@dataclass
class Secret:
    """A stored credential. All fields are opaque strings."""
    name: str
    username: str = ""
    password: str = ""
    url: str = ""
    email: str = ""
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "username": self.username,
            "password": self.password,
            "url": self.url,
            "email": self.email,
            "notes": self.notes,
        }


SECRET_FIELDS = tuple(f.name for f in fields(Secret))


def encode_secret(secret: Secret) -> bytes:
    """Serialize a secret to bytes, field for field."""
    return json.dumps(secret.to_dict()).encode("utf-8")


def decode_secret(blob: bytes) -> Secret:
    """Rebuild a secret from encode_secret() output.

    Raises:
        MalformedRecord: If the bytes are not a JSON object carrying all six
            string fields. Unknown keys are ignored.
    """
    try:
        data = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedRecord(f"Could not parse secret record: {e}") from e

    if not isinstance(data, dict):
        raise MalformedRecord("Secret record is not a JSON object")

    values = {}
    for field_name in SECRET_FIELDS:
        value = data.get(field_name)
        if not isinstance(value, str):
            raise MalformedRecord(f"Secret record field '{field_name}' missing or not a string")
        values[field_name] = value

    return Secret(**values)
