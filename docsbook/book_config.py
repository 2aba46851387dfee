#!/usr/bin/env python3
"""Load and validate the book configuration (YAML).

A config names the site, where its structural index lives, how page content
is extracted, how sections are ordered, and how cross-page links map into the
book. Every key is optional; defaults describe the nuejs.org docs book.

Example:
  title: Learning Nue
  structure:
    kind: navigation            # navigation | topics
    index_url: https://nuejs.org/docs/
  ordering:
    priority: [Essentials, Tools, Developing, Concepts]
    last_section: Reference
  links:
    external_base: https://nuejs.org/docs/
    map_file: link_map.yaml     # relative to this config file
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import jsonschema
import yaml

from docsbook.link_rewriter import (
    DEFAULT_EXTERNAL_BASE,
    DEFAULT_INTERNAL_PREFIX,
    load_link_map,
    validate_link_map,
)
from docsbook.section_order import SectionOrderPolicy


REPO_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = REPO_ROOT / "config" / "nuejs_book.yaml"

_STR_LIST = {"type": "array", "items": {"type": "string"}}

CONFIG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "structure": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "kind": {"enum": ["navigation", "topics"]},
                "index_url": {"type": "string"},
                "container": {"type": "string"},
                "heading_tag": {"type": "string"},
                "page_list": {"type": "string"},
            },
        },
        "content": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "selector": {"type": "string"},
                "strip_selectors": _STR_LIST,
                "page_url_template": {"type": "string"},
                "markdown_url_template": {"type": "string"},
            },
        },
        "ordering": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "priority": _STR_LIST,
                "last_section": {"type": ["string", "null"]},
                "exclude": _STR_LIST,
                "skip_empty": {"type": "boolean"},
                "capitalize": {"type": "boolean"},
            },
        },
        "links": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "external_base": {"type": "string"},
                "internal_prefix": {"type": "string"},
                "map": {"type": "object", "additionalProperties": {"type": ["string", "null"]}},
                "map_file": {"type": "string"},
            },
        },
    },
}


class ConfigError(ValueError):
    """The configuration file is unreadable or fails schema validation."""


@dataclass
class StructureConfig:
    kind: str = "navigation"
    index_url: str = "https://nuejs.org/docs/"
    container: str = ".topics"
    heading_tag: str = "h3"
    page_list: str = "nav.stack"


@dataclass
class ContentConfig:
    selector: str = "main"
    strip_selectors: list[str] = field(default_factory=lambda: [".learn-more"])
    page_url_template: str = "https://nuejs.org/docs/{slug}"
    markdown_url_template: str = (
        "https://raw.githubusercontent.com/nuejs/nue/refs/heads/master/packages/www/docs/{slug}.md"
    )


@dataclass
class LinksConfig:
    external_base: str = DEFAULT_EXTERNAL_BASE
    internal_prefix: str = DEFAULT_INTERNAL_PREFIX
    link_map: dict[str, Optional[str]] = field(default_factory=dict)


@dataclass
class BookConfig:
    title: str = "Learning Nue"
    structure: StructureConfig = field(default_factory=StructureConfig)
    content: ContentConfig = field(default_factory=ContentConfig)
    ordering: SectionOrderPolicy = field(default_factory=SectionOrderPolicy)
    links: LinksConfig = field(default_factory=LinksConfig)


def config_from_dict(data: dict, base_dir: Optional[Path] = None) -> BookConfig:
    """Build a BookConfig from parsed YAML. Raises ConfigError."""
    data = data or {}
    try:
        jsonschema.validate(data, CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "(root)"
        raise ConfigError(f"config {where}: {e.message}") from e

    cfg = BookConfig()
    if "title" in data:
        cfg.title = data["title"]
    cfg.structure = StructureConfig(**data.get("structure", {}))
    cfg.content = ContentConfig(**data.get("content", {}))

    ordering = data.get("ordering", {})
    cfg.ordering = SectionOrderPolicy(
        priority=tuple(ordering.get("priority", ())),
        last_section=ordering.get("last_section"),
        exclude=tuple(ordering.get("exclude", ())),
        skip_empty=ordering.get("skip_empty", False),
        capitalize=ordering.get("capitalize", False),
    )

    links = data.get("links", {})
    link_map: dict[str, Optional[str]] = {}
    if "map_file" in links:
        map_path = Path(links["map_file"])
        if not map_path.is_absolute() and base_dir is not None:
            map_path = base_dir / map_path
        try:
            link_map.update(load_link_map(str(map_path)))
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"link map {map_path}: {e}") from e
    # Inline entries override the map file
    link_map.update(validate_link_map(links.get("map")))
    cfg.links = LinksConfig(
        external_base=links.get("external_base", DEFAULT_EXTERNAL_BASE),
        internal_prefix=links.get("internal_prefix", DEFAULT_INTERNAL_PREFIX),
        link_map=link_map,
    )
    return cfg


def load_config(path) -> BookConfig:
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping, got {type(data).__name__}")
    return config_from_dict(data, base_dir=Path(os.path.dirname(os.path.abspath(path))))
