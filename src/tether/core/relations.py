"""Relation descriptors and the keys, routes and scopes derived from them.

Everything here is a pure function of the descriptor.  A relation is either
*single* (one related type, its own metadata slot) or *mixed* (one or more
related types sharing a ``<prefix>_mixed`` slot).  The mode is whatever the
caller declared, never inferred from the number of types.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

MIXED_SLOT = "mixed"

_NAME_RE = re.compile(r"^[a-z][a-z0-9_]*$")


def validate_type_name(name: str) -> bool:
    """Return ``True`` if *name* is usable as a prefix or record type."""
    return isinstance(name, str) and bool(_NAME_RE.match(name))


@dataclass(frozen=True)
class RelationDescriptor:
    """Immutable declaration of one primary ↔ related relation."""

    prefix: str
    primary: str
    related_types: tuple[str, ...]
    mixed: bool

    def __post_init__(self) -> None:
        if not self.related_types:
            raise ValueError("A relation needs at least one related type")
        for name in (self.prefix, self.primary, *self.related_types):
            if not validate_type_name(name):
                raise ValueError(
                    f"Invalid name: {name!r}. Use lowercase letters, digits and underscores."
                )
        if len(set(self.related_types)) != len(self.related_types):
            raise ValueError(f"Duplicate related types: {list(self.related_types)}")
        if not self.mixed and len(self.related_types) != 1:
            raise ValueError("A single relation has exactly one related type")

    @classmethod
    def single(cls, prefix: str, primary: str, related: str) -> RelationDescriptor:
        """Declare a relation to exactly one related type."""
        return cls(prefix=prefix, primary=primary, related_types=(related,), mixed=False)

    @classmethod
    def multi(cls, prefix: str, primary: str, related: list[str] | tuple[str, ...]) -> RelationDescriptor:
        """Declare a mixed relation; entries of every type share one list."""
        return cls(prefix=prefix, primary=primary, related_types=tuple(related), mixed=True)

    # -- derived keys --------------------------------------------------------

    @property
    def relation_key(self) -> str:
        if self.mixed:
            return "_".join(self.related_types)
        return self.related_types[0]

    @property
    def metadata_key(self) -> str:
        """Metadata slot holding the relation list on each primary record."""
        slot = MIXED_SLOT if self.mixed else self.relation_key
        return f"{self.prefix}_{slot}"

    @property
    def instance_id(self) -> str:
        """Identifier carried by client controls to find their relation."""
        if self.mixed:
            return f"tether_instance_mixed_{self.relation_key}"
        return f"tether_instance_{self.relation_key}"

    # -- routes --------------------------------------------------------------

    def browse_route(self, related_type: str) -> str:
        return f"{self.prefix}_list_{related_type}"

    def edit_route(self, related_type: str) -> str:
        return f"{self.prefix}_edit_{related_type}"

    @property
    def list_attached_route(self) -> str:
        return f"{self.prefix}_list_{self.primary}_{self.relation_key}"

    @property
    def attach_route(self) -> str:
        return f"{self.prefix}_add_{self.primary}_{self.relation_key}"

    @property
    def detach_route(self) -> str:
        return f"{self.prefix}_remove_{self.primary}_{self.relation_key}"

    # -- token scopes --------------------------------------------------------

    @property
    def list_scope(self) -> str:
        """Token scope for list/attach/detach requests on the primary record."""
        return f"{self.prefix}_{self.primary}_nonce"

    def edit_scope(self, related_type: str) -> str:
        return f"{self.prefix}_{related_type}_nonce"

    def route_names(self) -> list[str]:
        """All route names this relation answers, in registration order."""
        names = [self.edit_route(t) for t in self.related_types]
        names += [self.browse_route(t) for t in self.related_types]
        names += [self.list_attached_route, self.attach_route, self.detach_route]
        return names
