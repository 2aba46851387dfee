#!/usr/bin/env python3
"""Normalize one documentation page into a fragment of the composite book.

HTML pages (rendered site):
  - keep only the content root (<main>)
  - remove the call-to-action block, images and scripts
  - renumber every id as id1, id2, ... from a counter threaded across pages
  - drop the href of in-page '#...' links (their targets were renumbered)
  - demote headings one level: h1 → h2, h2 → h3

Markdown pages (source files):
  - drop '# ' title lines (the book supplies its own page header)
  - demote '##'..'######' headings by one level

The id counter is passed in and returned; nothing here keeps global state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from bs4 import BeautifulSoup

from docsbook.site_structure import PageDescriptor


DEFAULT_CONTENT_SELECTOR = "main"
DEFAULT_STRIP_SELECTORS = (".learn-more",)

# Always removed, whatever the configured strip selectors are
NON_PORTABLE_TAGS = ("img", "script")

MD_TITLE_RE = re.compile(r"^# ")
MD_HEADING_RE = re.compile(r"^#{2,6} ")
MD_FENCE_RE = re.compile(r"^\s*(```|~~~)")


@dataclass
class NormalizedFragment:
    """Normalized content of one page.

    The fragment owns ids id{id_range_start + 1} .. id{id_range_end}; an
    empty range (start == end) means no element carried an id.
    """
    section_number: int
    page_index: int                # 1-based position within the section
    title: str
    body: str
    id_range_start: int
    id_range_end: int
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.body.strip()

    @property
    def ids_claimed(self) -> int:
        return self.id_range_end - self.id_range_start


def failed_fragment(
    page: PageDescriptor, section_number: int, page_index: int, id_counter: int, error: str
) -> NormalizedFragment:
    return NormalizedFragment(
        section_number=section_number,
        page_index=page_index,
        title=page.title,
        body="",
        id_range_start=id_counter,
        id_range_end=id_counter,
        error=error,
    )


def demote_headings(root) -> int:
    """Shift h1 → h2 and h2 → h3 under root in a single pass.

    Both heading lists are collected before any tag is renamed, so an h1
    turned into h2 is never picked up again as an h2. Attributes and
    children are kept. Returns the number of headings renamed.
    """
    h1s = root.find_all("h1")
    h2s = root.find_all("h2")
    for h in h1s:
        h.name = "h2"
    for h in h2s:
        h.name = "h3"
    return len(h1s) + len(h2s)


def normalize_page_html(
    raw_html: str,
    page: PageDescriptor,
    section_number: int,
    page_index: int,
    id_counter: int,
    content_selector: str = DEFAULT_CONTENT_SELECTOR,
    strip_selectors: Sequence[str] = DEFAULT_STRIP_SELECTORS,
) -> tuple[NormalizedFragment, int]:
    """Normalize a rendered page. Returns (fragment, updated id counter)."""
    soup = BeautifulSoup(raw_html or "", "html.parser")
    root = soup.select_one(content_selector)
    if root is None:
        fragment = failed_fragment(
            page, section_number, page_index, id_counter,
            f"no {content_selector} element in page",
        )
        return fragment, id_counter

    for selector in strip_selectors:
        for node in root.select(selector):
            node.decompose()
    for tag_name in NON_PORTABLE_TAGS:
        for node in root.find_all(tag_name):
            node.decompose()

    start = id_counter
    for element in root.find_all(id=True):
        id_counter += 1
        element["id"] = f"id{id_counter}"

    for link in root.select('a[href^="#"]'):
        del link["href"]

    demote_headings(root)

    fragment = NormalizedFragment(
        section_number=section_number,
        page_index=page_index,
        title=page.title,
        body=root.decode_contents(),
        id_range_start=start,
        id_range_end=id_counter,
    )
    return fragment, id_counter


def demote_markdown(text: str) -> str:
    """Drop '# ' lines and add one '#' to deeper headings, outside code fences."""
    out = []
    in_fence = False
    for line in text.split("\n"):
        if MD_FENCE_RE.match(line):
            in_fence = not in_fence
            out.append(line)
            continue
        if in_fence:
            out.append(line)
        elif MD_TITLE_RE.match(line):
            out.append("")
        elif MD_HEADING_RE.match(line):
            out.append("#" + line)
        else:
            out.append(line)
    return "\n".join(out)


def normalize_markdown_page(
    text: str,
    page: PageDescriptor,
    section_number: int,
    page_index: int,
    id_counter: int,
) -> tuple[NormalizedFragment, int]:
    """Normalize a Markdown source page. Markdown carries no ids, so the counter is unchanged."""
    fragment = NormalizedFragment(
        section_number=section_number,
        page_index=page_index,
        title=page.title,
        body=demote_markdown(text or ""),
        id_range_start=id_counter,
        id_range_end=id_counter,
    )
    if fragment.is_empty:
        fragment.error = "empty markdown source"
    return fragment, id_counter
