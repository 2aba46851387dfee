#!/usr/bin/env python3
"""
Tests for section ordering and numbering (docsbook/section_order.py)

Run: pytest tests/test_section_order.py -v
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from docsbook.section_order import (
    SectionDescriptor,
    SectionOrderPolicy,
    capitalize_key,
    order_sections,
)
from docsbook.site_structure import PageDescriptor


PRIORITY = ["Essentials", "Tools", "Developing", "Concepts"]


def pages(*titles: str) -> list[PageDescriptor]:
    return [PageDescriptor(title=t, locator=t.lower().replace(" ", "-")) for t in titles]


def discovered(*names: str, empty: tuple = ()) -> dict:
    return {n: ([] if n in empty else pages(f"{n} page")) for n in names}


# ═══════════════════════════════════════════════════════════════════════════
# order_sections
# ═══════════════════════════════════════════════════════════════════════════

class TestOrderSections:
    def test_priority_scenario(self):
        found = {"Essentials": pages("Why Nue", "Getting started"), "Tools": pages("Nuekit")}
        out = order_sections(found, ["Essentials", "Tools"])
        assert [(s.number, s.name) for s in out] == [(1, "Essentials"), (2, "Tools")]
        assert [p.title for p in out[0].pages] == ["Why Nue", "Getting started"]

    def test_priority_before_others_before_last(self):
        found = discovered("Reference", "Extras", "Tools", "Essentials", "Misc")
        out = order_sections(found, PRIORITY, last_section="Reference")
        assert [s.name for s in out] == ["Essentials", "Tools", "Extras", "Misc", "Reference"]

    def test_numbers_contiguous_when_priority_missing(self):
        # Developing is absent; numbers must not skip it
        found = discovered("Concepts", "Essentials", "Reference")
        out = order_sections(found, PRIORITY, last_section="Reference")
        assert [s.number for s in out] == [1, 2, 3]
        assert [s.name for s in out] == ["Essentials", "Concepts", "Reference"]

    def test_residual_sections_keep_discovery_order(self):
        found = discovered("Zeta", "Alpha", "Mid")
        out = order_sections(found, PRIORITY)
        assert [s.name for s in out] == ["Zeta", "Alpha", "Mid"]

    def test_absent_last_section_is_not_an_error(self):
        out = order_sections(discovered("Tools"), PRIORITY, last_section="Reference")
        assert [s.name for s in out] == ["Tools"]

    def test_empty_input(self):
        assert order_sections({}, PRIORITY, last_section="Reference") == []

    def test_exclude(self):
        found = discovered("topics", "essentials", "reference")
        out = order_sections(found, ["essentials"], last_section="reference", exclude=["topics"])
        assert [s.key for s in out] == ["essentials", "reference"]

    def test_skip_empty_renumbers(self):
        found = discovered("essentials", "tools", "concepts", empty=("tools",))
        out = order_sections(found, ["essentials", "tools", "concepts"], skip_empty=True)
        assert [(s.number, s.key) for s in out] == [(1, "essentials"), (2, "concepts")]

    def test_display_name_keeps_key(self):
        out = order_sections(discovered("essentials"), ["essentials"], display_name=capitalize_key)
        assert out[0].name == "Essentials"
        assert out[0].key == "essentials"

    def test_duplicate_priority_entries_placed_once(self):
        out = order_sections(discovered("Tools"), ["Tools", "Tools"])
        assert [s.number for s in out] == [1]

    def test_section_numbers_are_permutation(self):
        names = [f"S{i}" for i in range(12)]
        out = order_sections(discovered(*names), ["S7", "S3"], last_section="S0")
        assert sorted(s.number for s in out) == list(range(1, 13))
        assert out[0].name == "S7" and out[1].name == "S3" and out[-1].name == "S0"


# ═══════════════════════════════════════════════════════════════════════════
# SectionOrderPolicy
# ═══════════════════════════════════════════════════════════════════════════

class TestSectionOrderPolicy:
    def test_markdown_manuscript_policy(self):
        policy = SectionOrderPolicy(
            priority=("essentials", "tools"),
            last_section="reference",
            exclude=("topics",),
            skip_empty=True,
            capitalize=True,
        )
        found = discovered("topics", "reference", "tools", "essentials", "extras", empty=("extras",))
        out = policy.apply(found)
        assert [(s.number, s.name) for s in out] == [(1, "Essentials"), (2, "Tools"), (3, "Reference")]

    def test_default_policy_keeps_discovery_order(self):
        out = SectionOrderPolicy().apply(discovered("B", "A"))
        assert [s.name for s in out] == ["B", "A"]


class TestSectionDescriptor:
    def test_key_defaults_to_name(self):
        assert SectionDescriptor(name="Tools", pages=[], number=1).key == "Tools"

    def test_capitalize_key(self):
        assert capitalize_key("essentials") == "Essentials"
        assert capitalize_key("") == ""
