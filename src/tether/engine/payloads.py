"""Request payload models for the relation-list routes."""

from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, model_validator

from tether.core.entries import normalize_id
from tether.core.errors import BadRequest

# String ids name files under .tether/ and must be path-safe.
_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _record_id(value: Any) -> int | str:
    record_id = normalize_id(value)
    if isinstance(record_id, str) and not _SAFE_ID_RE.match(record_id):
        raise ValueError(f"Invalid record id: {record_id!r}")
    return record_id


RecordId = Annotated[int | str, BeforeValidator(_record_id)]


class RelatedEntry(BaseModel):
    """The reference stored in a relation list; extra submitted keys are kept."""

    model_config = ConfigDict(extra="allow")

    id: RecordId
    title: str = ""
    type: str | None = None


class ListAttachedPayload(BaseModel):
    primary_id: Annotated[RecordId, Field(description="Primary record owning the relation list")]


class AttachPayload(ListAttachedPayload):
    related: RelatedEntry

    @model_validator(mode="before")
    @classmethod
    def _gather_flat_fields(cls, data: Any) -> Any:
        # Form posts send related_id / related_title / related_type flat.
        if isinstance(data, dict) and "related" not in data and "related_id" in data:
            data = dict(data)
            data["related"] = {
                key[len("related_") :]: value
                for key, value in data.items()
                if key.startswith("related_") and key != "related_instance" and value not in (None, "")
            }
        return data


class DetachPayload(ListAttachedPayload):
    related_id: RecordId


def parse_payload(model: type[BaseModel], data: dict) -> Any:
    """Validate *data* against *model*.

    Raises:
        BadRequest: Naming the first offending field.
    """
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first.get("loc", ())) or "payload"
        raise BadRequest(f"Invalid {where}: {first.get('msg')}") from None
