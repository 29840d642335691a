"""Request handlers for one configured relation.

A :class:`Relation` owns its descriptor, its per-type configuration and its
collaborators, and answers five kinds of request:

* browse candidates of a related type (HTML),
* present or process the edit/create form of a related type (HTML / JSON),
* list the records attached to a primary record (JSON carrying HTML),
* attach and detach a related record (JSON).

Every handler converts :class:`~tether.core.errors.TetherError` into the
JSON failure envelope; the relation list is written only after the
request's token has verified and its payload has parsed.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from functools import partial
from typing import Any

from markupsafe import Markup

from tether.core.config import DEFAULT_FULL_EDIT_URL
from tether.core.context import DEFAULT_ENDPOINT, RenderContext
from tether.core.entries import build_entry, entry_ids, normalize_id
from tether.core.errors import (
    BadRequest,
    FormValidationError,
    IntegrityError,
    StorageError,
    TetherError,
)
from tether.core.interfaces import DialogChrome, MetadataStore, PlainChrome, RecordStore, TokenVerifier
from tether.core.registry import (
    LIST_ACTIONS,
    LIST_FIELDS,
    POST_LIST_ACTIONS,
    POST_LIST_FIELDS,
    VALIDATION,
    ConfigRegistry,
)
from tether.core.relations import RelationDescriptor
from tether.core.render import no_records_notice, render_list
from tether.core.validation import ValidationContext, run_validation
from tether.engine.forms import CONTROL_KEYS, render_edit_form
from tether.engine.payloads import AttachPayload, DetachPayload, ListAttachedPayload, parse_payload
from tether.engine.routes import Request, Response, RouteTable
from tether.storage.relations import RelationStore

logger = logging.getLogger(__name__)

PUBLISHED = "publish"


def _guarded(handler: Callable[..., Response]) -> Callable[..., Response]:
    """Turn engine errors raised by *handler* into failure responses."""

    def wrapper(self: Relation, *args: Any) -> Response:
        try:
            return handler(self, *args)
        except StorageError as exc:
            logger.warning("%s: storage refused the record: %s", handler.__name__, "; ".join(exc.messages))
            return Response.error(exc)
        except TetherError as exc:
            level = logging.ERROR if exc.status_code >= 500 else logging.INFO
            logger.log(level, "%s rejected: %s (%s)", handler.__name__, exc.message, exc.code)
            return Response.error(exc)

    wrapper.__name__ = handler.__name__
    wrapper.__doc__ = handler.__doc__
    return wrapper


def _as_json(output: object) -> object:
    # Built-in formats produce Markup; custom formats may return any JSON value.
    if isinstance(output, str):
        return str(output)
    try:
        json.dumps(output)
    except (TypeError, ValueError) as exc:
        raise TetherError(f"List format returned a value that is not JSON: {exc}") from None
    return output


class Relation:
    """One primary ↔ related relation wired to its collaborators."""

    def __init__(
        self,
        descriptor: RelationDescriptor,
        registry: ConfigRegistry | None = None,
        *,
        records: RecordStore,
        metadata: MetadataStore,
        tokens: TokenVerifier,
        endpoint: str = DEFAULT_ENDPOINT,
        full_edit_url: str = DEFAULT_FULL_EDIT_URL,
        chrome: DialogChrome | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.registry = registry if registry is not None else ConfigRegistry()
        for related_type in descriptor.related_types:
            self.registry.register_type(related_type)
        self.records = records
        self.metadata = metadata
        self.tokens = tokens
        self.relations = RelationStore(metadata)
        self.full_edit_url = full_edit_url
        self.chrome = chrome if chrome is not None else PlainChrome()
        self.context = RenderContext(descriptor, self.registry, endpoint)

    def __repr__(self) -> str:
        d = self.descriptor
        return f"Relation({d.prefix!r}, {d.primary!r}, {list(d.related_types)!r}, mixed={d.mixed})"

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, table: RouteTable) -> RouteTable:
        """Add this relation's routes to *table*, in :meth:`route_names` order."""
        d = self.descriptor
        for related_type in d.related_types:
            table.add(d.edit_route(related_type), partial(self.edit, related_type))
        for related_type in d.related_types:
            table.add(d.browse_route(related_type), partial(self.browse, related_type))
        table.add(d.list_attached_route, self.list_attached)
        table.add(d.attach_route, self.attach)
        table.add(d.detach_route, self.detach)
        return table

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_type(self, related_type: str | None) -> str:
        if related_type not in self.descriptor.related_types:
            raise BadRequest(f"Type {related_type!r} is not part of this relation")
        return related_type

    def _verify(self, request: Request, scope: str) -> None:
        if not self.tokens.verify(request.get("token"), scope):
            raise IntegrityError()

    def _fields_for(self, component: str) -> Callable[[str], Any]:
        return lambda related_type: self.registry.get(component, related_type)

    # ------------------------------------------------------------------
    # Browse candidates
    # ------------------------------------------------------------------

    @_guarded
    def browse(self, related_type: str, request: Request) -> Response:
        """All records of *related_type* matching the configured list query."""
        self._check_type(related_type)
        criteria = {"limit": -1, **self.registry.list_query}
        found = self.records.query(related_type, criteria)
        if not found:
            body = no_records_notice(related_type)
        else:
            body = render_list(
                self.registry.list_format,
                found,
                self._fields_for(LIST_FIELDS),
                self._fields_for(LIST_ACTIONS),
                self.context,
            )
            # custom formats are used verbatim
            if not isinstance(body, Markup):
                body = Markup(body)
        wrapper = Markup('<div class="related-browse"{}>{}</div>').format(
            Markup(' data-related-instance="{}" data-token="{}"').format(
                self.descriptor.instance_id, self.tokens.issue(self.descriptor.list_scope)
            ),
            body,
        )
        return Response.html(self.chrome.wrap(wrapper))

    # ------------------------------------------------------------------
    # Edit / create
    # ------------------------------------------------------------------

    @_guarded
    def edit(self, related_type: str, request: Request) -> Response:
        """Present the form (no submission) or process a submitted one."""
        self._check_type(related_type)
        raw_id = request.get("related_id")
        try:
            record_id = normalize_id(raw_id) if raw_id not in (None, "") else None
        except ValueError as exc:
            raise BadRequest(str(exc)) from None

        if not request.has_submission:
            record = self.records.find(related_type, record_id) if record_id is not None else None
            token = self.tokens.issue(self.descriptor.edit_scope(related_type))
            form = render_edit_form(self, related_type, record, token)
            return Response.html(self.chrome.wrap(form))

        self._verify(request, self.descriptor.edit_scope(related_type))
        submission = dict(request.form or {})

        outcome = run_validation(
            self.registry.get(VALIDATION, related_type),
            ValidationContext(self, related_type, submission),
        )
        if not outcome.passed:
            raise FormValidationError(outcome.error_message)

        meta = submission.get("meta")
        if meta is not None and not isinstance(meta, dict):
            raise BadRequest("meta must be an object")
        payload = {k: v for k, v in submission.items() if k not in CONTROL_KEYS}
        payload["type"] = related_type
        payload["status"] = PUBLISHED

        if record_id is not None:
            record = self.records.update(record_id, payload)
        else:
            record = self.records.create(
                payload, allow_empty_title=not self.records.supports_title(related_type)
            )
        for key, value in (meta or {}).items():
            self.metadata.set(record["id"], key, value)
        logger.info("saved %s %s via %s", related_type, record["id"], self.descriptor.prefix)
        return Response.ok({"record": record, "created": record_id is None})

    # ------------------------------------------------------------------
    # Relation list
    # ------------------------------------------------------------------

    @_guarded
    def list_attached(self, request: Request) -> Response:
        """Render the records attached to a primary record, in attach order.

        Mixed relations read the one shared list for every related type and
        omit the table header, since rows of different types need not share
        columns.
        """
        d = self.descriptor
        self._verify(request, d.list_scope)
        payload = parse_payload(ListAttachedPayload, request.data)
        entries = self.relations.read(payload.primary_id, d.metadata_key)
        ids = entry_ids(entries, dedupe=d.mixed)
        if not ids:
            return Response.ok({"entries": [], "html": ""})

        found = self.records.query(list(d.related_types), {"ids": ids})
        output = render_list(
            self.registry.post_list_format,
            found,
            self._fields_for(POST_LIST_FIELDS),
            self._fields_for(POST_LIST_ACTIONS),
            self.context,
            show_header=not d.mixed,
        )
        return Response.ok({"entries": entries, "html": _as_json(output)})

    @_guarded
    def attach(self, request: Request) -> Response:
        """Upsert the submitted entry into the primary record's list."""
        d = self.descriptor
        self._verify(request, d.list_scope)
        payload = parse_payload(AttachPayload, request.data)
        entry = build_entry(payload.related.model_dump(exclude_none=True))
        if "type" not in entry:
            if d.mixed:
                raise BadRequest("related.type is required for a mixed relation")
            entry["type"] = d.related_types[0]
        self._check_type(entry["type"])
        entries = self.relations.attach(payload.primary_id, d.metadata_key, entry)
        return Response.ok({"entries": entries})

    @_guarded
    def detach(self, request: Request) -> Response:
        """Remove an entry; an id that is not attached is not an error."""
        d = self.descriptor
        self._verify(request, d.list_scope)
        payload = parse_payload(DetachPayload, request.data)
        entries = self.relations.detach(payload.primary_id, d.metadata_key, payload.related_id)
        return Response.ok({"entries": entries})
