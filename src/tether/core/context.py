"""Render-time context shared by the field and action resolvers."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from tether.core.registry import ConfigRegistry
from tether.core.relations import RelationDescriptor

DEFAULT_ENDPOINT = "/ajax"


@dataclass(frozen=True)
class RenderContext:
    """What a resolver needs besides the record: routes, labels, endpoint."""

    descriptor: RelationDescriptor
    registry: ConfigRegistry
    endpoint: str = DEFAULT_ENDPOINT

    def route_url(self, route: str, **params: object) -> str:
        query = urlencode({"action": route, **{k: v for k, v in params.items() if v is not None}})
        return f"{self.endpoint}?{query}"

    def edit_url(self, record: dict) -> str:
        """URL of the edit dialog for *record* (its own type, its own id)."""
        related_type = str(record.get("type") or "")
        return self.route_url(self.descriptor.edit_route(related_type), related_id=record.get("id"))

    def type_label(self, name: str) -> str:
        return self.registry.type_label(name)
