#!/usr/bin/env python3
"""Assemble normalized page fragments into book artifacts.

Output modes:
  html           one chapter file per section + 00-toc.html
  html-combined  a single HTML book (TOC followed by every section)
  markdown       one Markdown chapter per section (pandoc-ready)
  pdf-sections   one print document per section → pdfs/NN-Section.pdf
  pdf-pages      one print document per page    → pdfs/Section/NN-Title.pdf

Numbering:
  section  h1#section{n}      "{n}. {name}"
  page     h2#page{n}-{i}     "{n}.{i} {title}"

The table of contents is built from the section/page descriptors, so a page
whose content failed to load is still listed (as plain text, without a link).

Cross-page links rewritten to '#<anchor_slug(title)>' resolve to an empty
<a id> placed before the owning page heading (a {#id} heading attribute in
Markdown); in split chapter files they are prefixed with the chapter file.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Collection, Mapping, Optional, Sequence

from docsbook.link_rewriter import anchor_slug
from docsbook.normalize_page import NormalizedFragment
from docsbook.section_order import SectionDescriptor


OUTPUT_MODES = ("html", "html-combined", "markdown", "pdf-sections", "pdf-pages")
PRINT_MODES = ("pdf-sections", "pdf-pages")

BOOK_CSS = """<style>
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; line-height: 1.6; max-width: 800px; margin: 0 auto; padding: 20px; }
h1 { color: #2563eb; border-bottom: 2px solid #e5e7eb; padding-bottom: 10px; }
h2 { color: #1f2937; margin-top: 2em; }
h3 { color: #374151; }
code { background: #f3f4f6; padding: 2px 4px; border-radius: 3px; }
pre { background: #f3f4f6; padding: 1em; border-radius: 6px; overflow-x: auto; }
blockquote { border-left: 4px solid #e5e7eb; margin: 1em 0; padding-left: 1em; color: #6b7280; }
.section-break { page-break-before: always; margin-top: 3em; }
article { page-break-inside: avoid; }
section { break-inside: avoid-page; }
.toc { page-break-after: always; }
.toc ul { list-style: none; padding-left: 0; }
.toc ul ul { padding-left: 10px; }
.toc li { margin: 5px 0; }
.toc a { text-decoration: none; color: #374151; }
.toc a:hover { color: #2563eb; }
.toc li.missing { color: #9ca3af; }
</style>"""

PRINT_CSS = "<style>@media print { .page-break { page-break-after: always; } }</style>"

MARKDOWN_PAGE_BREAK = "\\newpage"

TOC_FILENAME = "00-toc.html"


@dataclass
class OutputArtifact:
    relpath: str
    content: str
    kind: str      # html | markdown | print-html (rendered to PDF by the writer)


@dataclass
class TocEntry:
    section_number: int
    page_number: int
    title: str

    @property
    def anchor(self) -> str:
        return page_anchor(self.section_number, self.page_number)

    @property
    def label(self) -> str:
        return f"{self.section_number}.{self.page_number} {self.title}"


FragmentsBySection = Mapping[int, Sequence[NormalizedFragment]]

# link target slug -> (section number, page index) of the page that carries it
LinkTargets = Mapping[str, tuple[int, int]]

# ids the assembler and normalizer already hand out
RESERVED_ID_RE = re.compile(r"id\d+|section\d+|page\d+-\d+")

HASH_LINK_RE = re.compile(r'href="#([^"]+)"')


# ─── Names and anchors ───────────────────────────────────────────────────────

def section_anchor(number: int) -> str:
    return f"section{number}"


def page_anchor(section_number: int, page_number: int) -> str:
    return f"page{section_number}-{page_number}"


def chapter_html_filename(section: SectionDescriptor) -> str:
    slug = re.sub(r"[^a-z0-9]", "-", section.name.lower())
    return f"chapter-{section.number:02d}-{slug}.html"


def chapter_markdown_filename(section: SectionDescriptor) -> str:
    return f"chapter-{section.number:02d}-{section.key}.md"


def sanitize_filename(text: str) -> str:
    """'Command line (CLI)' → 'Command-line-CLI'."""
    s = re.sub(r"[^a-zA-Z0-9]", "-", text)
    s = re.sub(r"-+", "-", s)
    return s.strip("-")


def section_pdf_path(section: SectionDescriptor) -> str:
    return f"pdfs/{section.number:02d}-{sanitize_filename(section.name)}.pdf"


def page_pdf_path(section: SectionDescriptor, page_number: int, title: str) -> str:
    return f"pdfs/{sanitize_filename(section.name)}/{page_number:02d}-{sanitize_filename(title)}.pdf"


# ─── Link targets ────────────────────────────────────────────────────────────

def link_targets(
    sections: Sequence[SectionDescriptor], fragments_by_section: FragmentsBySection
) -> dict[str, tuple[int, int]]:
    """Map anchor_slug(page title) to the page that carries that anchor.

    Rewritten cross-page links point at '#<anchor_slug(title)>'. The first
    non-empty page with a given slug claims it; later duplicates and slugs
    that collide with generated ids get no anchor.
    """
    targets: dict[str, tuple[int, int]] = {}
    for s in sections:
        for frag in fragments_by_section.get(s.number, ()):
            if frag.is_empty:
                continue
            slug = anchor_slug(frag.title)
            if not slug or slug in targets or RESERVED_ID_RE.fullmatch(slug):
                continue
            targets[slug] = (s.number, frag.page_index)
    return targets


def missing_pages(sections: Sequence[SectionDescriptor], fragments_by_section: FragmentsBySection) -> set[str]:
    """Page anchors with no content in the book."""
    present = {
        page_anchor(s.number, f.page_index)
        for s in sections
        for f in fragments_by_section.get(s.number, ())
        if not f.is_empty
    }
    return {e.anchor for e in build_toc(sections)} - present


def carried_anchor(targets: Optional[LinkTargets], section_number: int, frag: NormalizedFragment) -> str:
    """The link anchor this page carries, or '' if another page claimed it."""
    if not targets:
        return ""
    slug = anchor_slug(frag.title)
    return slug if targets.get(slug) == (section_number, frag.page_index) else ""


def point_links_at_chapters(body: str, section_number: int, targets: LinkTargets, chapter_files: Mapping[int, str]) -> str:
    """Prefix '#anchor' hrefs whose target lives in another chapter file with that file."""
    def replace(m: re.Match) -> str:
        owner = targets.get(m.group(1))
        if owner is None or owner[0] == section_number:
            return m.group(0)
        return f'href="{chapter_files[owner[0]]}#{m.group(1)}"'

    return HASH_LINK_RE.sub(replace, body)


# ─── Table of contents ───────────────────────────────────────────────────────

def build_toc(sections: Sequence[SectionDescriptor]) -> list[TocEntry]:
    return [
        TocEntry(section_number=s.number, page_number=i, title=p.title)
        for s in sections
        for i, p in enumerate(s.pages, start=1)
    ]


def render_toc_body(
    sections: Sequence[SectionDescriptor],
    chapter_files: Optional[Mapping[int, str]] = None,
    missing: Collection[str] = (),
) -> str:
    """TOC list. With chapter_files the links point into the separate chapter files.

    Pages whose anchor is in missing (content failed to load) are listed
    without a link.
    """
    lines = ['<div class="toc">', "<h1>Table of Contents</h1>", "<ul>"]
    for s in sections:
        base = chapter_files[s.number] if chapter_files else ""
        lines.append(f'  <li><a href="{base}#{section_anchor(s.number)}">{s.number}. {html.escape(s.name)}</a>')
        lines.append("    <ul>")
        for entry in build_toc([s]):
            if entry.anchor in missing:
                lines.append(f'      <li class="missing">{html.escape(entry.label)}</li>')
            else:
                lines.append(f'      <li><a href="{base}#{entry.anchor}">{html.escape(entry.label)}</a></li>')
        lines.append("    </ul>")
        lines.append("  </li>")
    lines += ["</ul>", "</div>"]
    return "\n".join(lines) + "\n"


def html_document(title: str, body: str, css: str = BOOK_CSS) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        f"{css}\n"
        "</head>\n"
        "<body>\n"
        f"{body}"
        "</body></html>\n"
    )


def render_toc_html(
    sections: Sequence[SectionDescriptor],
    chapter_files: Optional[Mapping[int, str]] = None,
    missing: Collection[str] = (),
) -> str:
    return html_document("Table of Contents", render_toc_body(sections, chapter_files, missing))


# ─── HTML chapters ───────────────────────────────────────────────────────────

def render_section_body(
    section: SectionDescriptor,
    fragments: Sequence[NormalizedFragment],
    targets: Optional[LinkTargets] = None,
    chapter_files: Optional[Mapping[int, str]] = None,
) -> str:
    """Section heading plus every non-empty fragment, in page order.

    A page that owns a link target gets an empty '<a id=...>' right before its
    heading. With chapter_files, links into other chapters name the file.
    """
    parts = [f'<h1 id="{section_anchor(section.number)}">{section.number}. {html.escape(section.name)}</h1>\n']
    for frag in fragments:
        if frag.is_empty:
            continue
        body = frag.body
        if targets and chapter_files:
            body = point_links_at_chapters(body, section.number, targets, chapter_files)
        anchor = carried_anchor(targets, section.number, frag)
        # Page break before every page except the first of the section
        css_class = ' class="section-break"' if frag.page_index > 1 else ""
        parts.append(
            f"<div{css_class}>\n"
            + (f'<a id="{anchor}"></a>\n' if anchor else "")
            + f'<h2 id="{page_anchor(section.number, frag.page_index)}">'
            f"{section.number}.{frag.page_index} {html.escape(frag.title)}</h2>\n"
            f"{body}\n"
            "</div>\n"
        )
    return "".join(parts)


def render_section_html(
    section: SectionDescriptor,
    fragments: Sequence[NormalizedFragment],
    targets: Optional[LinkTargets] = None,
    chapter_files: Optional[Mapping[int, str]] = None,
) -> str:
    return html_document(
        f"{section.number}. {section.name}", render_section_body(section, fragments, targets, chapter_files))


def render_combined_html(
    title: str, sections: Sequence[SectionDescriptor], fragments_by_section: FragmentsBySection
) -> str:
    targets = link_targets(sections, fragments_by_section)
    body = [render_toc_body(sections, missing=missing_pages(sections, fragments_by_section))]
    for s in sections:
        body.append("<section>\n")
        body.append(render_section_body(s, fragments_by_section.get(s.number, ()), targets))
        body.append("</section>\n")
    return html_document(title, "".join(body))


# ─── Markdown chapters ───────────────────────────────────────────────────────

def render_markdown_chapter(
    section: SectionDescriptor,
    fragments: Sequence[NormalizedFragment],
    targets: Optional[LinkTargets] = None,
) -> str:
    """Chapter text for pandoc. Pages owning a link target get a '{#anchor}' heading attribute."""
    parts = [f"# {section.number}. {section.name}\n\n"]
    rendered = 0
    for frag in fragments:
        if frag.is_empty:
            continue
        if rendered:
            parts.append(f"{MARKDOWN_PAGE_BREAK}\n\n")
        anchor = carried_anchor(targets, section.number, frag)
        attr = f" {{#{anchor}}}" if anchor else ""
        parts.append(f"## {section.number}.{frag.page_index} {frag.title}{attr}\n\n")
        parts.append(frag.body.strip("\n") + "\n\n")
        rendered += 1
    return "".join(parts)


# ─── Print documents (PDF) ───────────────────────────────────────────────────

def render_section_print_html(section: SectionDescriptor, fragments: Sequence[NormalizedFragment]) -> str:
    bodies = [f.body for f in fragments if not f.is_empty]
    parts = []
    for i, body in enumerate(bodies):
        parts.append(f"<div>{body}</div>")
        if i < len(bodies) - 1:
            parts.append('<div class="page-break"></div>')
    return f"<html><head>{PRINT_CSS}</head><body>{''.join(parts)}</body></html>"


def render_page_print_html(fragment: NormalizedFragment) -> str:
    return f"<html><head>{PRINT_CSS}</head><body><main>{fragment.body}</main></body></html>"


# ─── Dispatch ────────────────────────────────────────────────────────────────

def assemble(
    mode: str,
    sections: Sequence[SectionDescriptor],
    fragments_by_section: FragmentsBySection,
    title: str = "Book",
) -> list[OutputArtifact]:
    """Build every artifact for one output mode. Raises ValueError for an unknown mode."""
    if mode not in OUTPUT_MODES:
        raise ValueError(f"unknown output mode {mode!r} (expected one of {', '.join(OUTPUT_MODES)})")

    artifacts: list[OutputArtifact] = []

    if mode == "html":
        targets = link_targets(sections, fragments_by_section)
        chapter_files = {s.number: chapter_html_filename(s) for s in sections}
        for s in sections:
            artifacts.append(OutputArtifact(
                chapter_files[s.number],
                render_section_html(s, fragments_by_section.get(s.number, ()), targets, chapter_files),
                "html",
            ))
        missing = missing_pages(sections, fragments_by_section)
        artifacts.append(OutputArtifact(TOC_FILENAME, render_toc_html(sections, chapter_files, missing), "html"))

    elif mode == "html-combined":
        name = sanitize_filename(title).lower() or "book"
        artifacts.append(OutputArtifact(
            f"{name}.html", render_combined_html(title, sections, fragments_by_section), "html"))

    elif mode == "markdown":
        targets = link_targets(sections, fragments_by_section)
        for s in sections:
            artifacts.append(OutputArtifact(
                chapter_markdown_filename(s),
                render_markdown_chapter(s, fragments_by_section.get(s.number, ()), targets),
                "markdown",
            ))

    elif mode == "pdf-sections":
        for s in sections:
            frags = fragments_by_section.get(s.number, ())
            if all(f.is_empty for f in frags):
                continue
            artifacts.append(OutputArtifact(section_pdf_path(s), render_section_print_html(s, frags), "print-html"))

    elif mode == "pdf-pages":
        for s in sections:
            for frag in fragments_by_section.get(s.number, ()):
                if frag.is_empty:
                    continue
                artifacts.append(OutputArtifact(
                    page_pdf_path(s, frag.page_index, frag.title), render_page_print_html(frag), "print-html"))

    return artifacts
