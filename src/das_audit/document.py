"""Rendering of a finished audit.

``render_audit_pdf`` produces the archived document: project information,
every checklist item with its status and notes in catalog order, the list of
non-compliant items, and the sign-off block with the signature image.
``render_audit_markdown`` gives the same content as plain text.
"""

from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Image,
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from das_audit.catalog import DEFAULT_CATALOG, ChecklistCatalog
from das_audit.models import AuditRecord
from das_audit.progress import PROJECT_INFO_LABELS, non_compliant_items, overall_progress

_LOGGER = logging.getLogger(__name__)

COMPANY_NAME = "Powertec Telecommunications"
DOCUMENT_TITLE = "Projects Audit Form"

PRIMARY = colors.Color(0 / 255, 82 / 255, 147 / 255)
DARK_TEXT = colors.Color(31 / 255, 41 / 255, 55 / 255)
GRAY_TEXT = colors.Color(107 / 255, 114 / 255, 128 / 255)
LIGHT_BG = colors.Color(249 / 255, 250 / 255, 251 / 255)
BORDER = colors.Color(229 / 255, 231 / 255, 235 / 255)
GREEN = colors.Color(34 / 255, 197 / 255, 94 / 255)
RED = colors.Color(239 / 255, 68 / 255, 68 / 255)
RED_BG = colors.Color(254 / 255, 242 / 255, 242 / 255)
GREEN_BG = colors.Color(240 / 255, 253 / 255, 244 / 255)

_STATUS_TEXT = {"yes": "YES", "no": "NO", "na": "N/A", "unset": ""}
_STATUS_COLOR = {"yes": GREEN, "no": RED, "na": GRAY_TEXT, "unset": GRAY_TEXT}

_SIGNATURE_SIZE = (40 * mm, 16 * mm)


def _get_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "AuditTitle",
            parent=base["Heading1"],
            fontSize=18,
            textColor=PRIMARY,
            spaceAfter=4,
        ),
        "subtitle": ParagraphStyle(
            "AuditSubtitle",
            parent=base["Normal"],
            fontSize=9,
            textColor=GRAY_TEXT,
            spaceAfter=10,
        ),
        "section": ParagraphStyle(
            "AuditSection",
            parent=base["Heading2"],
            fontSize=12,
            textColor=PRIMARY,
            spaceBefore=12,
            spaceAfter=6,
        ),
        "cell": ParagraphStyle(
            "AuditCell",
            parent=base["Normal"],
            fontSize=9,
            textColor=DARK_TEXT,
            leading=11,
        ),
        "cell_bold": ParagraphStyle(
            "AuditCellBold",
            parent=base["Normal"],
            fontName="Helvetica-Bold",
            fontSize=9,
            textColor=DARK_TEXT,
            leading=11,
        ),
        "banner": ParagraphStyle(
            "AuditBanner",
            parent=base["Normal"],
            fontName="Helvetica-Bold",
            fontSize=11,
            textColor=colors.white,
            leading=14,
        ),
        "note": ParagraphStyle(
            "AuditNote",
            parent=base["Normal"],
            fontName="Helvetica-Oblique",
            fontSize=8,
            textColor=GRAY_TEXT,
            leading=10,
        ),
        "note_red": ParagraphStyle(
            "AuditNoteRed",
            parent=base["Normal"],
            fontName="Helvetica-Oblique",
            fontSize=8,
            textColor=RED,
            leading=10,
        ),
    }


def _text(value: str, placeholder: str = "\u2014") -> str:
    return escape(value) if value else placeholder


def _build_project_info(record: AuditRecord, styles: dict[str, ParagraphStyle]) -> list[Any]:
    info = record.project_info
    rows = [
        [Paragraph(label, styles["cell_bold"]), Paragraph(_text(getattr(info, name)), styles["cell"])]
        for name, label in PROJECT_INFO_LABELS.items()
    ]
    table = Table(rows, colWidths=[45 * mm, 125 * mm])
    table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.2, BORDER),
                ("ROWBACKGROUNDS", (0, 0), (-1, -1), [LIGHT_BG, colors.white]),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    return [Paragraph("Project Information", styles["section"]), table]


def _build_section(
    record: AuditRecord,
    section_id: str,
    catalog: ChecklistCatalog,
    styles: dict[str, ParagraphStyle],
) -> list[Any]:
    section = catalog.section(section_id)
    if section is None or not section.items:
        return []

    rows: list[list[Any]] = []
    style_commands: list[tuple[Any, ...]] = [
        ("GRID", (0, 0), (-1, -1), 0.15, BORDER),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("ALIGN", (2, 0), (2, -1), "RIGHT"),
    ]
    for index, item in enumerate(section.items):
        answer = record.answer_for(item.item_id)
        non_compliant = answer.status == "no"
        label = Paragraph(
            escape(item.label),
            styles["cell_bold"] if non_compliant else styles["cell"],
        )
        if answer.notes:
            label = [label, Paragraph(escape(answer.notes), styles["note_red" if non_compliant else "note"])]
        rows.append([f"{index + 1}.", label, _STATUS_TEXT[answer.status]])

        if non_compliant:
            style_commands += [
                ("BACKGROUND", (0, index), (-1, index), RED_BG),
                ("BOX", (0, index), (-1, index), 0.5, RED),
                ("TEXTCOLOR", (0, index), (0, index), RED),
            ]
        elif answer.status == "yes" and answer.notes:
            style_commands.append(("BACKGROUND", (0, index), (-1, index), GREEN_BG))
        elif index % 2:
            style_commands.append(("BACKGROUND", (0, index), (-1, index), LIGHT_BG))
        style_commands += [
            ("TEXTCOLOR", (2, index), (2, index), _STATUS_COLOR[answer.status]),
            ("FONTNAME", (2, index), (2, index), "Helvetica-Bold"),
        ]

    table = Table(rows, colWidths=[10 * mm, 140 * mm, 20 * mm])
    table.setStyle(TableStyle(style_commands))
    return [Paragraph(escape(section.title), styles["section"]), table]


def _signature_flowable(signature: bytes) -> Any:
    if not signature:
        return ""
    try:
        reader = ImageReader(BytesIO(signature))
        reader.getSize()
    except Exception as exc:  # noqa: BLE001
        _LOGGER.warning("Could not add signature image: %s", exc)
        return ""
    width, height = _SIGNATURE_SIZE
    return Image(BytesIO(signature), width=width, height=height, kind="proportional")


def _build_signoff(
    record: AuditRecord,
    catalog: ChecklistCatalog,
    styles: dict[str, ParagraphStyle],
) -> list[Any]:
    signoff = record.signoff
    elements: list[Any] = [Paragraph("Sign-off", styles["section"])]

    flagged = non_compliant_items(record, catalog=catalog)
    if flagged:
        elements.append(Paragraph(f"Non-Compliant Items ({len(flagged)})", styles["cell_bold"]))
        for item in flagged:
            line = f"<b>{escape(item.section_title)}:</b> {escape(item.item_label)}"
            if item.notes:
                line += f"<br/>Notes: {escape(item.notes)}"
            elements.append(Paragraph(line, styles["cell"]))
        elements.append(Spacer(1, 6))

    if signoff.comments:
        elements.append(
            Paragraph(f"<b>Comments:</b> {escape(signoff.comments)}", styles["cell"])
        )
        elements.append(Spacer(1, 6))

    approval = Table(
        [
            [Paragraph("Project Manager Approval", styles["banner"]), "", ""],
            [
                Paragraph(f"<b>Name:</b> {_text(signoff.project_manager_name)}", styles["cell"]),
                Paragraph(f"<b>Date:</b> {_text(signoff.project_manager_date)}", styles["cell"]),
                "",
            ],
            [
                Paragraph("<b>Signature:</b>", styles["cell"]),
                _signature_flowable(signoff.project_manager_signature),
                "",
            ],
        ],
        colWidths=[60 * mm, 60 * mm, 50 * mm],
    )
    approval.setStyle(
        TableStyle(
            [
                ("SPAN", (0, 0), (-1, 0)),
                ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
                ("BOX", (0, 0), (-1, -1), 1, PRIMARY),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    elements.append(KeepTogether([approval]))
    return elements


def _draw_footer(canvas: Any, doc: Any) -> None:
    canvas.saveState()
    canvas.setStrokeColor(BORDER)
    canvas.setLineWidth(0.3)
    width = doc.pagesize[0]
    canvas.line(doc.leftMargin, 15 * mm, width - doc.rightMargin, 15 * mm)
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(GRAY_TEXT)
    canvas.drawString(doc.leftMargin, 9 * mm, COMPANY_NAME)
    canvas.drawRightString(width - doc.rightMargin, 9 * mm, f"Page {canvas.getPageNumber()}")
    canvas.restoreState()


def render_audit_pdf(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
    generated_at: datetime | None = None,
) -> bytes:
    """Render ``record`` as a PDF and return the file contents.

    The record is rendered as given; callers validate it beforehand.
    """
    stamp = (generated_at or datetime.now()).strftime("%d/%m/%Y %H:%M")
    styles = _get_styles()

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=25 * mm,
        title=f"{DOCUMENT_TITLE} - {record.project_info.project_code or 'Audit'}",
        author=COMPANY_NAME,
    )

    elements: list[Any] = [
        Paragraph(DOCUMENT_TITLE, styles["title"]),
        Paragraph(f"Generated {stamp}", styles["subtitle"]),
    ]
    elements.extend(_build_project_info(record, styles))
    for section in catalog.sections():
        elements.extend(_build_section(record, section.section_id, catalog, styles))
    elements.extend(_build_signoff(record, catalog, styles))

    doc.build(elements, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return buffer.getvalue()


def render_audit_markdown(
    record: AuditRecord,
    *,
    catalog: ChecklistCatalog = DEFAULT_CATALOG,
) -> str:
    info = record.project_info
    progress = overall_progress(record, catalog=catalog)

    lines = [
        f"# {DOCUMENT_TITLE}: {info.project_code or '<none>'}",
        "",
    ]
    for name, label in PROJECT_INFO_LABELS.items():
        lines.append(f"- {label}: `{getattr(info, name) or '<none>'}`")
    lines += [
        "",
        "## Progress",
        "",
        f"- Answered: `{progress.completed}/{progress.total}` (`{progress.percentage}%`)",
        "",
    ]

    for section in catalog.sections():
        lines += [
            f"## {section.title}",
            "",
            "| ID | Item | Status | Notes |",
            "|---|---|---|---|",
        ]
        for item in section.items:
            answer = record.answer_for(item.item_id)
            notes = answer.notes.replace("|", "\\|").replace("\n", " ")
            status = _STATUS_TEXT[answer.status] or "-"
            lines.append(f"| {item.item_id} | {item.label} | {status} | {notes} |")
        lines.append("")

    flagged = non_compliant_items(record, catalog=catalog)
    lines += ["## Non-Compliant Items", ""]
    if flagged:
        for item in flagged:
            suffix = f": {item.notes}" if item.notes else " (notes missing)"
            lines.append(f"- {item.section_title} / {item.item_label}{suffix}")
    else:
        lines.append("- none")

    signoff = record.signoff
    lines += [
        "",
        "## Sign-off",
        "",
        f"- Project Manager: `{signoff.project_manager_name or '<none>'}`",
        f"- Date: `{signoff.project_manager_date or '<none>'}`",
        f"- Signature captured: `{bool(signoff.project_manager_signature)}`",
    ]
    if signoff.comments:
        lines.append(f"- Comments: {signoff.comments}")

    return "\n".join(lines) + "\n"
