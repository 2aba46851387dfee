#!/usr/bin/env python3
"""Rewrite links between documentation pages so they work inside the book.

Three internal link forms are recognized:
  href="/docs/<slug>"              (site-relative, as rendered on the site)
  href="file:///<anything>/<slug>" (what a local HTML/pandoc build resolves them to)
  [text](/docs/<slug>)             (Markdown sources)

Each slug is looked up in a static link map (slug → section title):
  title         → in-book anchor '#<anchor_slug(title)>'
  null          → explicitly external: '<external_base><slug>'
  missing entry → same external fallback, counted as unmapped

Rewritten links match none of these forms, so rewriting is idempotent.

Usage:
  python -m docsbook.link_rewriter book.html --config config/nuejs_book.yaml
  python -m docsbook.link_rewriter book.html --link-map link_map.yaml
"""

from __future__ import annotations

import argparse
import re
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

import jsonschema
import yaml


DEFAULT_EXTERNAL_BASE = "https://nuejs.org/docs/"
DEFAULT_INTERNAL_PREFIX = "/docs/"

FILE_LINK_RE = re.compile(r'href="file:///[^"]*/([^/"]+)"')

LINK_MAP_SCHEMA = {
    "type": "object",
    "additionalProperties": {"type": ["string", "null"]},
}

LinkMap = Mapping[str, Optional[str]]


@dataclass
class LinkRewriteStats:
    anchors: int = 0       # rewritten to in-book anchors
    external: int = 0      # explicit null entries
    unmapped: int = 0      # slugs absent from the map

    @property
    def total(self) -> int:
        return self.anchors + self.external + self.unmapped

    def merge(self, other: "LinkRewriteStats") -> None:
        self.anchors += other.anchors
        self.external += other.external
        self.unmapped += other.unmapped


def anchor_slug(title: str) -> str:
    """Anchor id for a section title: 'Command line (CLI)' → 'command-line-cli'."""
    s = title.lower()
    s = re.sub(r"[^a-z0-9\s-]", "", s)
    s = re.sub(r"\s+", "-", s)
    s = re.sub(r"-+", "-", s)
    return s.strip("-")


def resolve_link(slug: str, link_map: LinkMap, external_base: str = DEFAULT_EXTERNAL_BASE) -> tuple[str, str]:
    """Return (href, outcome) for a slug; outcome is anchor | external | unmapped."""
    if slug not in link_map:
        return f"{external_base}{slug}", "unmapped"
    target = link_map[slug]
    if target is None:
        return f"{external_base}{slug}", "external"
    return f"#{anchor_slug(target)}", "anchor"


def external_link_map(link_map: LinkMap) -> dict[str, Optional[str]]:
    """The same slugs, every one pointed at the live site."""
    return {slug: None for slug in link_map}


def internal_link_re(internal_prefix: str) -> re.Pattern:
    return re.compile(r'href="' + re.escape(internal_prefix) + r'([^"]+)"')


def markdown_link_re(internal_prefix: str) -> re.Pattern:
    # inline links only; a link with a title ("...") is left alone
    return re.compile(r"\]\(" + re.escape(internal_prefix) + r"([^)\s]+)\)")


def rewrite_links(
    markup: str,
    link_map: LinkMap,
    external_base: str = DEFAULT_EXTERNAL_BASE,
    internal_prefix: str = DEFAULT_INTERNAL_PREFIX,
) -> tuple[str, LinkRewriteStats]:
    stats = LinkRewriteStats()

    def resolve(m: re.Match) -> str:
        href, outcome = resolve_link(m.group(1), link_map, external_base)
        if outcome == "anchor":
            stats.anchors += 1
        elif outcome == "external":
            stats.external += 1
        else:
            stats.unmapped += 1
        return href

    def replace_href(m: re.Match) -> str:
        return f'href="{resolve(m)}"'

    def replace_markdown(m: re.Match) -> str:
        return f"]({resolve(m)})"

    markup = internal_link_re(internal_prefix).sub(replace_href, markup)
    markup = FILE_LINK_RE.sub(replace_href, markup)
    markup = markdown_link_re(internal_prefix).sub(replace_markdown, markup)
    return markup, stats


def validate_link_map(data) -> dict[str, Optional[str]]:
    """Check a loaded link map against LINK_MAP_SCHEMA. Raises ValueError."""
    if data is None:
        return {}
    try:
        jsonschema.validate(data, LINK_MAP_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValueError(f"invalid link map: {e.message}") from e
    return dict(data)


def load_link_map(path: str) -> dict[str, Optional[str]]:
    """Load a YAML link map. A null value marks an explicitly external page."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return validate_link_map(data)


# ─── CLI ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    ap = argparse.ArgumentParser(description="Rewrite internal doc links in a built HTML book (in place).")
    ap.add_argument("html_file", nargs="?", default="learning-nue.html", help="HTML file to fix in place")
    src = ap.add_mutually_exclusive_group()
    src.add_argument("--link-map", help="YAML link map (slug: title | null)")
    src.add_argument("--config", help="Book config YAML (uses its links section)")
    args = ap.parse_args(argv)

    try:
        if args.link_map:
            link_map = load_link_map(args.link_map)
            external_base, internal_prefix = DEFAULT_EXTERNAL_BASE, DEFAULT_INTERNAL_PREFIX
        else:
            from docsbook.book_config import load_config, DEFAULT_CONFIG_PATH
            links = load_config(args.config or DEFAULT_CONFIG_PATH).links
            link_map = links.link_map
            external_base, internal_prefix = links.external_base, links.internal_prefix

        print(f"Fixing internal links in {args.html_file}...")
        with open(args.html_file, encoding="utf-8") as f:
            content = f.read()
        fixed, stats = rewrite_links(content, link_map, external_base, internal_prefix)
        with open(args.html_file, "w", encoding="utf-8") as f:
            f.write(fixed)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"ERROR: fixing links: {e}", file=sys.stderr)
        return 1

    print(f"✓ Processed {stats.total} internal links:")
    if stats.anchors:
        print(f"  - {stats.anchors} converted to internal anchors")
    if stats.external:
        print(f"  - {stats.external} converted to external links")
    if stats.unmapped:
        print(f"  ⚠ {stats.unmapped} links unmapped (external fallback)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
