from __future__ import annotations

from dataclasses import dataclass

PROJECT_STEP = "project"
SIGNOFF_STEP = "signoff"


@dataclass(frozen=True, slots=True)
class ChecklistItem:
    item_id: str
    label: str


@dataclass(frozen=True, slots=True)
class Section:
    section_id: str
    title: str
    tab_label: str
    items: tuple[ChecklistItem, ...]


@dataclass(frozen=True, slots=True)
class Step:
    step_id: str
    label: str


class ChecklistCatalog:
    """Ordered, immutable set of checklist sections.

    Section order is the navigation order. Item ids must be unique across the
    whole catalog, not only within their section.
    """

    __slots__ = ("_sections", "_by_id", "_section_of_item")

    def __init__(self, sections: list[Section] | tuple[Section, ...]) -> None:
        by_id: dict[str, Section] = {}
        section_of_item: dict[str, str] = {}
        for section in sections:
            if section.section_id in by_id or section.section_id in (PROJECT_STEP, SIGNOFF_STEP):
                raise ValueError(f"Duplicate or reserved section id '{section.section_id}'")
            by_id[section.section_id] = section
            for item in section.items:
                if item.item_id in section_of_item:
                    raise ValueError(
                        f"Item id '{item.item_id}' appears in both "
                        f"'{section_of_item[item.item_id]}' and '{section.section_id}'"
                    )
                section_of_item[item.item_id] = section.section_id

        self._sections = tuple(sections)
        self._by_id = by_id
        self._section_of_item = section_of_item

    def sections(self) -> tuple[Section, ...]:
        return self._sections

    def section(self, section_id: str) -> Section | None:
        return self._by_id.get(section_id)

    def items_of(self, section_id: str) -> tuple[ChecklistItem, ...]:
        section = self._by_id.get(section_id)
        return section.items if section is not None else ()

    def section_ids(self) -> list[str]:
        return [section.section_id for section in self._sections]

    def section_of_item(self, item_id: str) -> str | None:
        return self._section_of_item.get(item_id)

    def has_item(self, item_id: str) -> bool:
        return item_id in self._section_of_item

    def total_item_count(self) -> int:
        return sum(len(section.items) for section in self._sections)

    def steps(self) -> tuple[Step, ...]:
        """Navigation order: project info, every section, then sign-off."""
        return (
            Step(PROJECT_STEP, "Project Info"),
            *(Step(section.section_id, section.tab_label) for section in self._sections),
            Step(SIGNOFF_STEP, "Sign-off"),
        )


def _items(prefix: str, labels: list[str]) -> tuple[ChecklistItem, ...]:
    return tuple(
        ChecklistItem(item_id=f"{prefix}_{index}", label=label)
        for index, label in enumerate(labels, start=1)
    )


_SWMS_SECTION = Section(
    section_id="swms",
    title="SWMS & Documentation",
    tab_label="SWMS & Docs",
    items=_items(
        "swms",
        [
            "SWMS reviewed and signed by all workers on site",
            "JSA/Take 5 completed for all tasks",
            "Permits obtained (working at heights, confined space, hot works)",
            "Site induction completed and documented",
            "Emergency procedures understood and documented",
            "First aid kit available and stocked",
            "Fire extinguisher available and current",
            "PPE requirements documented and being followed",
            "Toolbox talks conducted and documented",
            "Hazard register maintained and current",
            "Incident reporting procedures in place",
            "Site diary being maintained",
            "Quality checklists completed",
            "As-built drawings updated",
            "Test results documented",
            "Photos taken and logged",
            "Material delivery dockets filed",
        ],
    ),
)

_DONOR_SECTION = Section(
    section_id="donor",
    title="Donor Installation",
    tab_label="Donor",
    items=_items(
        "donor",
        [
            "Donor antenna installed at correct location",
            "Donor antenna oriented correctly",
            "Mounting hardware secure and weather sealed",
            "Cable runs neat and secured",
            "Weatherproofing applied to all connections",
            "Cable labels applied",
            "Grounding/earthing completed",
            "Signal strength verified and documented",
            "No interference with existing equipment",
        ],
    ),
)

_CABINET_SECTION = Section(
    section_id="cabinet",
    title="Cabinet & Equipment",
    tab_label="Cabinet",
    items=_items(
        "cabinet",
        [
            "Cabinet installed at correct location",
            "Cabinet securely mounted",
            "Cabinet level and plumb",
            "Ventilation adequate",
            "Power supply installed and tested",
            "UPS installed and configured (if required)",
            "Equipment mounted per design",
            "Cable management neat and organized",
            "All connections secure",
            "Equipment labels applied",
            "Cabinet locked and secure",
        ],
    ),
)

_DAS_SECTION = Section(
    section_id="das",
    title="DAS Installation",
    tab_label="DAS",
    items=_items(
        "das",
        [
            "Antennas installed at correct locations per design",
            "Antenna mounting secure",
            "Cable runs per design specifications",
            "Cables properly supported and secured",
            "All connections tight and weatherproofed",
            "Splitters/couplers installed correctly",
            "Cable labels applied at both ends",
            "PIM testing completed and passed",
            "Coverage testing completed and documented",
        ],
    ),
)

_COMMISSIONING_SECTION = Section(
    section_id="commissioning",
    title="Commissioning & Testing",
    tab_label="Commissioning",
    items=_items(
        "comm",
        [
            "System powered on and operational",
            "All bands/frequencies tested",
            "Signal levels within specification",
            "No interference detected",
            "Alarms configured and tested",
            "Remote monitoring configured",
            "Commissioning report completed",
        ],
    ),
)

_CONTRACTOR_SECTION = Section(
    section_id="contractor",
    title="Contractor Compliance",
    tab_label="Contractor",
    items=_items(
        "contr",
        [
            "All workers have valid certifications/licenses",
            "Insurance certificates current",
            "Site left clean and tidy",
            "All waste disposed of properly",
        ],
    ),
)

DEFAULT_CATALOG = ChecklistCatalog(
    [
        _SWMS_SECTION,
        _DONOR_SECTION,
        _CABINET_SECTION,
        _DAS_SECTION,
        _COMMISSIONING_SECTION,
        _CONTRACTOR_SECTION,
    ]
)
