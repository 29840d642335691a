"""Build relations and their route table from a project config."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from tether.core.config import DEFAULT_FULL_EDIT_URL, DEFAULT_TOKEN_MAX_AGE, load_config, validate_config
from tether.core.context import DEFAULT_ENDPOINT
from tether.core.errors import ConfigError, RouteNotFound
from tether.core.interfaces import DialogChrome
from tether.core.registry import COMPONENTS, ConfigRegistry
from tether.core.relations import RelationDescriptor
from tether.engine.handlers import Relation
from tether.engine.routes import Request, Response, RouteTable
from tether.storage.metadata import FileMetadataStore
from tether.storage.records import FileRecordStore
from tether.storage.tokens import HmacTokenVerifier

logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Every configured relation behind one route table."""

    routes: RouteTable
    tokens: HmacTokenVerifier
    records: FileRecordStore
    metadata: FileMetadataStore
    endpoint: str = DEFAULT_ENDPOINT
    relations: list[Relation] = field(default_factory=list)

    def handle(self, action: str | None, request: Request) -> Response:
        """Dispatch *request* to the route named *action*."""
        try:
            return self.routes.dispatch(action, request)
        except RouteNotFound as exc:
            logger.info("no route for action %r", action)
            return Response.error(exc)

    def find_relation(self, route_or_instance: str) -> Relation | None:
        """Relation answering a route name or carrying an instance id."""
        for relation in self.relations:
            d = relation.descriptor
            if route_or_instance == d.instance_id or route_or_instance in d.route_names():
                return relation
        return None


def descriptor_from_decl(decl: dict) -> RelationDescriptor:
    related = list(decl["related"])
    if decl.get("mixed"):
        return RelationDescriptor.multi(decl["prefix"], decl["primary"], related)
    return RelationDescriptor.single(decl["prefix"], decl["primary"], related[0])


def registry_from_decl(decl: dict, type_labels: dict[str, str] | None = None) -> ConfigRegistry:
    """A registry holding the relation's per-type components and list settings."""
    registry = ConfigRegistry(decl.get("related", ()))
    for name, label in (type_labels or {}).items():
        registry.set_type_label(name, label)
    for type_name, components in (decl.get("types") or {}).items():
        # list_fields also seeds post_list_fields; apply it first so an
        # explicit post_list_fields still wins.
        for component in COMPONENTS:
            if component in components:
                registry.set(component, type_name, components[component])
    if "list_format" in decl:
        registry.set_list_format(decl["list_format"])
    if "post_list_format" in decl:
        registry.set_post_list_format(decl["post_list_format"])
    if decl.get("list_query"):
        registry.set_list_query(decl["list_query"])
    return registry


def build_application(
    tether_dir: Path,
    config: dict,
    *,
    chrome: DialogChrome | None = None,
) -> Application:
    """Wire file-backed collaborators and every declared relation.

    Raises:
        ConfigError: If the config is invalid or has no token secret.
    """
    problems = validate_config(config)
    if problems:
        raise ConfigError("Invalid config: " + "; ".join(problems))
    secret = config.get("secret")
    if not secret:
        raise ConfigError("Config has no 'secret'. Run 'tether init' or add one.")

    endpoint = config.get("endpoint", DEFAULT_ENDPOINT)
    records = FileRecordStore(tether_dir, config.get("untitled_types", []))
    metadata = FileMetadataStore(tether_dir)
    tokens = HmacTokenVerifier(secret, config.get("token_max_age", DEFAULT_TOKEN_MAX_AGE))
    app = Application(
        routes=RouteTable(), tokens=tokens, records=records, metadata=metadata, endpoint=endpoint
    )

    for decl in config.get("relations", []):
        relation = Relation(
            descriptor_from_decl(decl),
            registry_from_decl(decl, config.get("type_labels")),
            records=records,
            metadata=metadata,
            tokens=tokens,
            endpoint=endpoint,
            full_edit_url=config.get("full_edit_url", DEFAULT_FULL_EDIT_URL),
            chrome=chrome,
        )
        try:
            relation.register(app.routes)
        except ValueError as exc:
            raise ConfigError(str(exc)) from None
        app.relations.append(relation)
        logger.debug("registered %r", relation)
    return app


def load_application(tether_dir: Path, *, chrome: DialogChrome | None = None) -> Application:
    """Read ``config.json`` from *tether_dir* and build the application."""
    try:
        config = load_config((tether_dir / "config.json").read_text())
    except FileNotFoundError:
        raise ConfigError(f"No config.json in {tether_dir}") from None
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config.json is not valid JSON: {exc}") from None
    return build_application(tether_dir, config, chrome=chrome)
