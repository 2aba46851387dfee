#!/usr/bin/env python3
"""Order discovered sections and assign their book numbers.

Ordering rules:
  1. Priority sections, in priority order (only those present).
  2. Every other section, in discovery order, except the designated last one.
  3. The designated last section (e.g. "Reference"), if present.

Numbers are final positions, 1-based, so they are always contiguous 1..N even
when priority sections are missing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence

from docsbook.site_structure import PageDescriptor, Sections


@dataclass
class SectionDescriptor:
    """A numbered section of the composite book."""
    name: str                          # display label
    pages: list[PageDescriptor]
    number: int
    key: str = ""                      # raw discovery label

    def __post_init__(self):
        if not self.key:
            self.key = self.name


def capitalize_key(key: str) -> str:
    """'essentials' -> 'Essentials' (first letter only)."""
    return key[:1].upper() + key[1:]


def order_sections(
    discovered: Sections,
    priority: Sequence[str],
    last_section: Optional[str] = None,
    exclude: Iterable[str] = (),
    display_name: Optional[Callable[[str], str]] = None,
    skip_empty: bool = False,
) -> list[SectionDescriptor]:
    excluded = set(exclude)
    placed: list[str] = []

    for key in priority:
        if key in discovered and key not in excluded and key not in placed:
            placed.append(key)

    for key in discovered:
        if key in placed or key in excluded or key == last_section:
            continue
        placed.append(key)

    if last_section is not None and last_section in discovered and last_section not in excluded:
        placed.append(last_section)

    if skip_empty:
        placed = [key for key in placed if discovered[key]]

    rename = display_name or (lambda k: k)
    return [
        SectionDescriptor(name=rename(key), pages=list(discovered[key]), number=i, key=key)
        for i, key in enumerate(placed, start=1)
    ]


@dataclass(frozen=True)
class SectionOrderPolicy:
    """Ordering strategy built from configuration."""
    priority: tuple[str, ...] = ()
    last_section: Optional[str] = None
    exclude: tuple[str, ...] = field(default_factory=tuple)
    skip_empty: bool = False
    capitalize: bool = False

    def apply(self, discovered: Sections) -> list[SectionDescriptor]:
        return order_sections(
            discovered,
            self.priority,
            last_section=self.last_section,
            exclude=self.exclude,
            display_name=capitalize_key if self.capitalize else None,
            skip_empty=self.skip_empty,
        )
