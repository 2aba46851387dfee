#!/usr/bin/env python3
"""Discover a documentation site's section → page hierarchy.

Two index formats are understood:

  Rendered navigation tree (the docs landing page):
    <div class="topics">
      <h3 id="essentials">Essentials</h3>
      <nav class="stack"><a href="/docs/why-nue">Why Nue</a> ...</nav>
      ...
    </div>

  Declarative topics list (topics.yaml):
    essentials:
      - Why Nue
      - Getting started / First steps | getting-started

The output is an ordered mapping {section label: [PageDescriptor, ...]} in
discovery order. Nothing is fetched here; callers pass in the index text.

Usage:
  python -m docsbook.site_structure --html docs_index.html \\
    --base-url https://nuejs.org/docs/ --out structure.json
  python -m docsbook.site_structure --topics topics.yaml --out structure.json
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import dataclass, asdict
from urllib.parse import urljoin

from bs4 import BeautifulSoup


# ─── Data classes ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PageDescriptor:
    """One documentation page as listed in the structural index."""
    title: str
    locator: str          # absolute URL (navigation tree) or slug (topics list)
    desc: str = ""


class StructureError(Exception):
    """The structural index is unusable (no partial structure is returned)."""


Sections = dict[str, list[PageDescriptor]]


# ─── Slugs ───────────────────────────────────────────────────────────────────

def default_slug(title: str) -> str:
    """Slug used by the topics list when no explicit slug is given.

    Only lowercases and turns spaces into hyphens; punctuation is kept.
    Anchors in the composite use link_rewriter.anchor_slug instead.
    """
    return title.lower().replace(" ", "-")


# ─── Variant A: rendered navigation tree ─────────────────────────────────────

def _find_page_list(heading, heading_tag: str, page_list_selector: str):
    """Return the nearest following sibling matching the page-list selector.

    The scan stops at the next section heading so a section without its own
    page list never borrows the next section's pages.
    """
    for sib in heading.find_next_siblings():
        if sib.name == heading_tag:
            return None
        if sib.css.match(page_list_selector):
            return sib
    return None


def parse_navigation_html(
    html: str,
    base_url: str,
    container_selector: str = ".topics",
    heading_tag: str = "h3",
    page_list_selector: str = "nav.stack",
) -> tuple[Sections, list[str]]:
    """Extract sections from the rendered docs index page.

    Raises StructureError if the container is missing.
    Returns (sections, warnings).
    """
    soup = BeautifulSoup(html, "html.parser")
    container = soup.select_one(container_selector)
    if container is None:
        raise StructureError(f"Could not find {container_selector} container in index page")

    sections: Sections = {}
    warnings: list[str] = []

    for heading in container.find_all(heading_tag):
        section_id = heading.get("id")
        if not section_id:
            continue

        name = heading.get_text(strip=True) or section_id
        page_list = _find_page_list(heading, heading_tag, page_list_selector)
        if page_list is None:
            warnings.append(f"Section {name!r} has no {page_list_selector} page list, dropped")
            continue

        pages = [
            PageDescriptor(title=a.get_text(strip=True), locator=urljoin(base_url, a.get("href", "")))
            for a in page_list.find_all("a")
        ]
        if not pages:
            warnings.append(f"Section {name!r} page list has no links, dropped")
            continue
        sections[name] = pages

    return sections, warnings


# ─── Variant B: declarative topics list ──────────────────────────────────────

def parse_entry(entry: str) -> PageDescriptor:
    """Parse one topics entry: 'Title / description | explicit-slug'.

    The slug separator is split first, then the description separator.
    Raises ValueError when the title is empty.
    """
    content, _, explicit_slug = entry.partition(" | ")
    title, _, desc = content.partition(" / ")
    title = title.strip()
    if not title:
        raise ValueError(f"empty page title in entry {entry!r}")
    slug = explicit_slug.strip() or default_slug(title)
    return PageDescriptor(title=title, locator=slug, desc=desc.strip())


def parse_topics_yaml(text: str) -> tuple[Sections, list[str]]:
    """Line-oriented parse of the topics list.

    Only the subset of YAML the topics file uses is recognized: 'key:' lines
    open a section, '- entry' lines add a page. Anything else is skipped
    with a warning.
    """
    sections: Sections = {}
    warnings: list[str] = []
    current = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        if trimmed.endswith(":") and not trimmed.startswith("-"):
            current = trimmed[:-1].strip()
            sections[current] = []
        elif trimmed.startswith("- "):
            if current is None:
                warnings.append(f"line {lineno}: page entry before any section, skipped")
                continue
            try:
                sections[current].append(parse_entry(trimmed[2:]))
            except ValueError as e:
                warnings.append(f"line {lineno}: {e}, skipped")
        else:
            warnings.append(f"line {lineno}: unrecognized line {trimmed!r}, skipped")

    return sections, warnings


# ─── Serialization ───────────────────────────────────────────────────────────

def sections_to_json(sections: Sections) -> dict:
    return {name: [asdict(p) for p in pages] for name, pages in sections.items()}


# ─── CLI ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    ap = argparse.ArgumentParser(description="Discover the section/page structure of a docs site.")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--html", help="Saved rendered docs index page")
    src.add_argument("--topics", help="topics.yaml declarative list")
    ap.add_argument("--base-url", default="https://nuejs.org/docs/",
                    help="Base URL used to resolve page links (navigation tree only)")
    ap.add_argument("--container", default=".topics", help="CSS selector of the navigation container")
    ap.add_argument("--out", default=None, help="Output JSON path (stdout if omitted)")
    args = ap.parse_args(argv)

    path = args.html or args.topics
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        print(f"ERROR: cannot read {path}: {e}", file=sys.stderr)
        return 1

    try:
        if args.html:
            sections, warnings = parse_navigation_html(text, args.base_url, container_selector=args.container)
        else:
            sections, warnings = parse_topics_yaml(text)
    except StructureError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for w in warnings:
        print(f"WARNING: {w}", file=sys.stderr)

    payload = json.dumps(sections_to_json(sections), ensure_ascii=False, indent=2)
    if args.out:
        os.makedirs(os.path.dirname(os.path.abspath(args.out)) or ".", exist_ok=True)
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
        print(f"Found {len(sections)} sections, {sum(len(p) for p in sections.values())} pages")
        print(f"Wrote: {args.out}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
