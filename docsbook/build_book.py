#!/usr/bin/env python3
"""Build a print-ready book from a documentation site.

Pipeline:
  1. Structure   read the structural index (rendered nav page or topics.yaml)
  2. Order       number sections (priority list, discovery order, last section)
  3. Fetch       load every page, strictly in book order
  4. Normalize   strip non-portable nodes, renumber ids, demote headings
  5. Links       rewrite cross-page links to in-book anchors or the live site
  6. Assemble    write chapters / combined book / Markdown / PDFs

A page that fails to load is reported and left empty; the run continues and
the table of contents still lists it. Structural, configuration and
write failures abort the run with exit status 1.

Usage:
  python -m docsbook.build_book --config config/nuejs_book.yaml --mode html --outdir html
  python -m docsbook.build_book --config config/nuejs_book.yaml --mode pdf-sections --outdir .
  python -m docsbook.build_book --config config/nuejs_manuscript.yaml --mode markdown --outdir markdown
  python -m docsbook.build_book --config config/nuejs_book.yaml --mode html \\
    --index-file saved_docs_index.html   # skip fetching the index
"""

from __future__ import annotations

import argparse
import sys
from contextlib import ExitStack
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Collection, Mapping, Optional, Sequence
from urllib.parse import urlparse

from docsbook.assemble_book import OUTPUT_MODES, PRINT_MODES, OutputArtifact, assemble, link_targets
from docsbook.book_config import DEFAULT_CONFIG_PATH, BookConfig, ConfigError, load_config
from docsbook.link_rewriter import (
    LinkMap,
    LinkRewriteStats,
    anchor_slug,
    external_link_map,
    rewrite_links,
)
from docsbook.normalize_page import (
    NormalizedFragment,
    failed_fragment,
    normalize_markdown_page,
    normalize_page_html,
)
from docsbook.page_sources import BrowserSource, HttpSource, PageFetchError
from docsbook.section_order import SectionDescriptor
from docsbook.site_structure import (
    PageDescriptor,
    Sections,
    StructureError,
    parse_navigation_html,
    parse_topics_yaml,
)


# ─── Utility ────────────────────────────────────────────────────────────────

def abort(msg):
    """Print error and exit."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


def warn(msg):
    """Print warning to stderr."""
    print(f"WARNING: {msg}", file=sys.stderr)


def info(msg):
    """Print info to stdout."""
    print(msg)


class ArtifactWriteError(Exception):
    """A required output artifact could not be written."""


# ─── Run report ─────────────────────────────────────────────────────────────

@dataclass
class RunReport:
    sections: int = 0
    pages_processed: int = 0
    pages_failed: int = 0
    failed_pages: list[str] = field(default_factory=list)
    links: LinkRewriteStats = field(default_factory=LinkRewriteStats)
    artifacts_written: int = 0


def format_summary(report: RunReport) -> str:
    lines = [
        f"Sections: {report.sections}",
        f"Pages processed: {report.pages_processed}",
        f"Pages failed: {report.pages_failed}",
        f"Links rewritten: {report.links.anchors} to anchors, "
        f"{report.links.external} external, {report.links.unmapped} unmapped",
        f"Artifacts written: {report.artifacts_written}",
    ]
    for p in report.failed_pages:
        lines.append(f"  ✗ {p}")
    return "\n".join(lines)


# ─── Structure ──────────────────────────────────────────────────────────────

def discover_sections(config: BookConfig, index_text: str) -> list[SectionDescriptor]:
    """Parse the structural index and order its sections. Raises StructureError."""
    st = config.structure
    if st.kind == "navigation":
        discovered, warnings = parse_navigation_html(
            index_text,
            st.index_url,
            container_selector=st.container,
            heading_tag=st.heading_tag,
            page_list_selector=st.page_list,
        )
    else:
        discovered, warnings = parse_topics_yaml(index_text)

    for w in warnings:
        warn(w)
    if not discovered:
        raise StructureError(f"No sections found in structural index {st.index_url}")

    info(f"[Structure] Found sections: {', '.join(discovered)}")
    sections = config.ordering.apply(discovered)
    info(f"[Order] {', '.join(f'{s.number}. {s.name}' for s in sections)}")
    return sections


def page_slug(page: PageDescriptor, internal_prefix: str = "/docs/") -> str:
    """Slug of a page: the locator itself, or the URL path below the docs prefix."""
    parsed = urlparse(page.locator)
    if not parsed.scheme:
        return page.locator
    path = parsed.path
    if path.startswith(internal_prefix):
        path = path[len(internal_prefix):]
    return path.strip("/")


def page_url(page: PageDescriptor, config: BookConfig) -> str:
    if urlparse(page.locator).scheme:
        return page.locator
    return config.content.page_url_template.format(slug=page.locator)


# ─── Fetch + normalize ──────────────────────────────────────────────────────

PageLoader = Callable[[PageDescriptor], str]
Normalizer = Callable[..., tuple[NormalizedFragment, int]]
Rewriter = Callable[[str], tuple[str, LinkRewriteStats]]


def collect_fragments(
    sections: Sequence[SectionDescriptor],
    load_page: PageLoader,
    normalize: Normalizer,
    verbose: bool = False,
) -> tuple[dict[int, list[NormalizedFragment]], RunReport]:
    """Fetch and normalize every page in book order.

    The id counter starts at 0 and is threaded through every normalize call,
    so fragments claim consecutive, non-overlapping id ranges.
    """
    report = RunReport(sections=len(sections))
    fragments_by_section: dict[int, list[NormalizedFragment]] = {}
    id_counter = 0

    for section in sections:
        info(f"\n[Section {section.number}] {section.name}")
        fragments = fragments_by_section.setdefault(section.number, [])

        for page_index, page in enumerate(section.pages, start=1):
            label = f"{section.number}.{page_index} {page.title}"
            if verbose:
                info(f"  [Fetch] {label} ({page.locator})")
            try:
                raw = load_page(page)
            except PageFetchError as e:
                fragment = failed_fragment(page, section.number, page_index, id_counter, str(e))
            else:
                fragment, id_counter = normalize(raw, page, section.number, page_index, id_counter)

            if fragment.is_empty:
                reason = fragment.error or "empty content"
                warn(f"  ✗ {label} ({page.locator}): {reason}")
                report.pages_failed += 1
                report.failed_pages.append(f"{label} ({page.locator}): {reason}")
            else:
                report.pages_processed += 1
                info(f"  ✓ {label}")
            fragments.append(fragment)

    return fragments_by_section, report


# ─── Links ──────────────────────────────────────────────────────────────────

def book_link_map(link_map: LinkMap, targets: Collection[str]) -> dict[str, Optional[str]]:
    """Keep only entries whose title is an anchor present in the book.

    A title with no carried anchor (no such page, or the page failed to load)
    is turned into an explicit external entry so no link dangles.
    """
    return {
        slug: title if title is not None and anchor_slug(title) in targets else None
        for slug, title in link_map.items()
    }


def rewrite_fragment_links(fragments_by_section: Mapping[int, Sequence[NormalizedFragment]], rewrite: Rewriter) -> LinkRewriteStats:
    """Rewrite links in every non-empty fragment body, in place."""
    total = LinkRewriteStats()
    for fragments in fragments_by_section.values():
        for fragment in fragments:
            if fragment.is_empty:
                continue
            fragment.body, stats = rewrite(fragment.body)
            total.merge(stats)
    return total


# ─── Write ──────────────────────────────────────────────────────────────────

def write_artifacts(
    artifacts: Sequence[OutputArtifact],
    outdir: Path,
    print_pdf: Optional[Callable[[str, Path], None]] = None,
) -> int:
    """Write artifacts under outdir. Raises ArtifactWriteError on any failure."""
    outdir = Path(outdir)
    for art in artifacts:
        path = outdir / art.relpath
        try:
            if art.kind == "print-html":
                if print_pdf is None:
                    raise ArtifactWriteError(f"No PDF renderer available for {path}")
                print_pdf(art.content, path)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(art.content, encoding="utf-8")
        except OSError as e:
            raise ArtifactWriteError(f"Cannot write {path}: {e}") from e
        info(f"[Write] {path}")
    return len(artifacts)


# ─── Pipeline ───────────────────────────────────────────────────────────────

def run_pipeline(
    config: BookConfig,
    mode: str,
    outdir: Path,
    index_text: Optional[str] = None,
    browser=None,
    http=None,
    link_rewrite: bool = True,
    verbose: bool = False,
) -> RunReport:
    """Run the whole pipeline.

    browser needs fetch_html(url) and print_pdf(html, path); http needs
    fetch_text(url). Missing collaborators are opened here (and closed at the
    end) only when the mode needs them.
    """
    if mode not in OUTPUT_MODES:
        raise ValueError(f"unknown output mode {mode!r}")

    with ExitStack() as stack:
        def get_browser():
            nonlocal browser
            if browser is None:
                browser = stack.enter_context(BrowserSource())
            return browser

        def get_http():
            nonlocal http
            if http is None:
                http = stack.enter_context(HttpSource())
            return http

        # 1–2. Structure and order
        if index_text is None:
            index_url = config.structure.index_url
            try:
                if config.structure.kind == "navigation":
                    index_text = get_browser().fetch_html(index_url)
                else:
                    index_text = get_http().fetch_text(index_url)
            except PageFetchError as e:
                raise StructureError(f"Cannot load structural index: {e}") from e
        sections = discover_sections(config, index_text)

        # 3–4. Fetch and normalize
        if mode == "markdown":
            template = config.content.markdown_url_template

            def load_page(page):
                slug = page_slug(page, config.links.internal_prefix)
                return get_http().fetch_text(template.format(slug=slug))

            normalize = normalize_markdown_page
        else:
            def load_page(page):
                return get_browser().fetch_html(page_url(page, config))

            normalize = partial(
                normalize_page_html,
                content_selector=config.content.selector,
                strip_selectors=tuple(config.content.strip_selectors),
            )

        fragments_by_section, report = collect_fragments(sections, load_page, normalize, verbose=verbose)

        # 5. Links
        if link_rewrite:
            if mode in PRINT_MODES:
                # separate PDF files cannot link into each other
                link_map = external_link_map(config.links.link_map)
                info("\n[Links] PDF output: cross-page links point at the live site")
            else:
                link_map = book_link_map(config.links.link_map, link_targets(sections, fragments_by_section))
            rewrite = partial(
                rewrite_links,
                link_map=link_map,
                external_base=config.links.external_base,
                internal_prefix=config.links.internal_prefix,
            )
            report.links = rewrite_fragment_links(fragments_by_section, rewrite)
        else:
            info("\n[Links] Link rewriting disabled")

        # 6. Assemble and write
        artifacts = assemble(mode, sections, fragments_by_section, title=config.title)
        print_pdf = None
        if any(a.kind == "print-html" for a in artifacts):
            print_pdf = get_browser().print_pdf
        report.artifacts_written = write_artifacts(artifacts, outdir, print_pdf=print_pdf)

    return report


# ─── CLI ─────────────────────────────────────────────────────────────────────

def main(argv=None):
    ap = argparse.ArgumentParser(description="Build a print-ready book from a documentation site.")
    ap.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Book config YAML")
    ap.add_argument("--mode", choices=OUTPUT_MODES, default="html", help="Output mode")
    ap.add_argument("--outdir", default=None,
                    help="Output directory (default: html/, markdown/ or . for PDF modes)")
    ap.add_argument("--index-file", default=None,
                    help="Read the structural index from this file instead of fetching it")
    ap.add_argument("--no-link-rewrite", action="store_true", help="Leave cross-page links untouched")
    ap.add_argument("--verbose", action="store_true", help="Per-page detail")
    args = ap.parse_args(argv)

    default_outdirs = {"html": "html", "html-combined": ".", "markdown": "markdown"}
    outdir = Path(args.outdir or default_outdirs.get(args.mode, "."))

    try:
        config = load_config(args.config)
    except ConfigError as e:
        abort(str(e))

    index_text = None
    if args.index_file:
        try:
            with open(args.index_file, encoding="utf-8") as f:
                index_text = f.read()
        except OSError as e:
            abort(f"cannot read index file {args.index_file}: {e}")

    info(f"Config: {args.config}")
    info(f"Mode: {args.mode}")
    info(f"Output: {outdir}")

    try:
        report = run_pipeline(
            config,
            args.mode,
            outdir,
            index_text=index_text,
            link_rewrite=not args.no_link_rewrite,
            verbose=args.verbose,
        )
    except (StructureError, ArtifactWriteError) as e:
        abort(str(e))

    info("\n" + format_summary(report))
    info(f"\n✓ Book generation complete ({args.mode})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
