#!/usr/bin/env python3
"""Thin wrappers around the network and the headless browser.

HttpSource fetches raw text (topics.yaml, Markdown sources).
BrowserSource loads rendered pages and prints HTML to PDF.

Both raise PageFetchError for anything that goes wrong with one request so
the pipeline can record the failure and move on to the next page.
"""

from __future__ import annotations

from pathlib import Path

import httpx
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright


DEFAULT_HEADERS = {"User-Agent": "docsbook/0.1"}

# Letter with 20mm margins on every side
PDF_FORMAT = "Letter"
PDF_MARGIN = {"top": "20mm", "right": "20mm", "bottom": "20mm", "left": "20mm"}


class PageFetchError(Exception):
    """A single page could not be fetched or rendered."""


class HttpSource:
    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout
        self._client = None

    def __enter__(self) -> "HttpSource":
        self._client = httpx.Client(headers=DEFAULT_HEADERS, timeout=self.timeout, follow_redirects=True)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def fetch_text(self, url: str) -> str:
        if self._client is None:
            raise RuntimeError("HttpSource used outside of its context manager")
        try:
            resp = self._client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise PageFetchError(f"{url}: {e}") from e
        return resp.text


class BrowserSource:
    """Headless Chromium via Playwright (sync API)."""

    def __init__(self, timeout_ms: int = 30000):
        self.timeout_ms = timeout_ms
        self._playwright = None
        self._browser = None

    def __enter__(self) -> "BrowserSource":
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=True)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

    def _new_page(self):
        if self._browser is None:
            raise RuntimeError("BrowserSource used outside of its context manager")
        return self._browser.new_page()

    def fetch_html(self, url: str) -> str:
        """Load url, wait for the network to settle, return the rendered markup."""
        page = self._new_page()
        try:
            page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
            return page.content()
        except PlaywrightError as e:
            raise PageFetchError(f"{url}: {e}") from e
        finally:
            page.close()

    def print_pdf(self, html: str, path: Path) -> None:
        """Render an HTML document to a PDF file.

        Raises OSError if the PDF cannot be produced; a missing artifact is
        fatal for the run, unlike a failed page fetch.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        page = self._new_page()
        try:
            page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)
            page.pdf(path=str(path), format=PDF_FORMAT, print_background=True, margin=PDF_MARGIN)
        except PlaywrightError as e:
            raise OSError(f"PDF rendering failed for {path}: {e}") from e
        finally:
            page.close()
