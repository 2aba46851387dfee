#!/usr/bin/env python3
"""docsbook environment sanity-check.

Checks:
- Python version (>= 3.10)
- Required dependencies importable, with their installed versions
- Playwright's Chromium present (only needed for HTML/PDF modes)
"""

from __future__ import annotations

import argparse
import importlib
import platform
import sys
from importlib import metadata


MIN_PY = (3, 10)

# (import name, distribution name)
REQUIRED = [
    ("bs4", "beautifulsoup4"),
    ("httpx", "httpx"),
    ("jsonschema", "jsonschema"),
    ("playwright", "playwright"),
    ("yaml", "PyYAML"),
]


def get_installed_version(dist_name: str) -> str | None:
    try:
        return metadata.version(dist_name)
    except metadata.PackageNotFoundError:
        return None


def check_python_version(version_info=None) -> list[str]:
    vi = version_info or sys.version_info
    issues: list[str] = []
    if tuple(vi[:2]) < MIN_PY:
        issues.append(
            f"Python >= {MIN_PY[0]}.{MIN_PY[1]} required; found {vi[0]}.{vi[1]}."
        )
    return issues


def check_import(module: str, pip_name: str) -> tuple[bool, str | None]:
    try:
        importlib.import_module(module)
        return True, None
    except ImportError as e:
        return False, f"Missing module '{module}'. Install '{pip_name}' (pip install -e .). ({e})"


def check_chromium() -> str | None:
    """Return a warning if Playwright cannot find its Chromium build."""
    try:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright
    except ImportError:
        return None  # already reported as a missing module
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            browser.close()
    except PlaywrightError as e:
        return f"Chromium not available for Playwright ({str(e).splitlines()[0]}). Run: playwright install chromium"
    return None


def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="Check the docsbook runtime environment.")
    ap.add_argument("--skip-browser", action="store_true", help="Do not try to launch Chromium")
    args = ap.parse_args(argv)

    print("docsbook environment check")
    print("-" * 72)
    print(f"Python: {sys.executable}")
    print(f"Python version: {sys.version.splitlines()[0]}")
    print(f"OS: {platform.system()} {platform.release()} ({platform.platform()})")

    issues: list[str] = []
    warnings: list[str] = []
    issues.extend(check_python_version())

    print("\nDependencies:")
    for mod, pip_name in REQUIRED:
        ok, msg = check_import(mod, pip_name)
        if not ok and msg:
            issues.append(msg)
            print(f"  - {pip_name}: NOT INSTALLED")
        else:
            print(f"  - {pip_name}: {get_installed_version(pip_name) or 'unknown version'}")

    if not args.skip_browser:
        msg = check_chromium()
        if msg:
            warnings.append(msg)

    print("\nResult:")
    if issues:
        print("ENV CHECK: FAIL")
        for i in issues:
            print(f"- {i}")
        print("\nFix:")
        print("  python -m pip install -e .[test]")
        print("  playwright install chromium")
        raise SystemExit(2)
    if warnings:
        print("ENV CHECK: PASS (WARNINGS)")
        for w in warnings:
            print(f"- {w}")
    else:
        print("ENV CHECK: PASS")


if __name__ == "__main__":
    main()
