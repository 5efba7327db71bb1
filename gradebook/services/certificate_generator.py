"""
Certificate Generator: one right-to-left grade notice per student as DOCX.

Uses python-docx.  Each student gets a page with the school header, the
student's rank, a subject table and signature lines.  Missing settings
(school name, academic year, principal, logo) fall back to blank
placeholders rather than failing.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from datetime import date
from typing import Sequence

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT, WD_TABLE_DIRECTION
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_BREAK
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor
from docx.table import _Cell

from gradebook.schemas.gradebook import RankedStudent, SchoolClass, SchoolSettings
from gradebook.services.export_formatter import format_number
from gradebook.services.grade_calculator import get_grade_label, subject_percentage

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TITLE_COLOR = RGBColor(0x1F, 0x29, 0x37)
FAIL_COLOR = RGBColor(0xDC, 0x26, 0x26)
LABEL_COLOR = RGBColor(0x59, 0x56, 0x59)

CERTIFICATE_TITLE = "إشعار درجات"
SCHOOL_PLACEHOLDER = "اسم المدرسة"
YEAR_PLACEHOLDER = ".... / ...."
SIGNATURE_PLACEHOLDER = "....................."
TABLE_HEADERS = ["المادة", "الدرجة العظمى", "درجة الطالب", "التقدير"]
TOTAL_LABEL = "المجموع الكلي"
GUARDIAN_LABEL = "ولي الأمر"
PRINCIPAL_LABEL = "مدير المدرسة"
CERTIFICATES_SUFFIX = "شهادات"


def certificates_filename(school_class: SchoolClass) -> str:
    """Download name, e.g. ``5A_شهادات.docx``."""
    return f"{school_class.name}_{CERTIFICATES_SUFFIX}.docx"


def _set_rtl(paragraph) -> None:
    """Mark a paragraph as right-to-left (``w:bidi``)."""
    p_pr = paragraph._p.get_or_add_pPr()
    bidi = OxmlElement("w:bidi")
    bidi.set(qn("w:val"), "1")
    p_pr.append(bidi)


def _add_rtl_paragraph(
    container,
    text: str,
    size: int = 11,
    bold: bool = False,
    align=WD_ALIGN_PARAGRAPH.RIGHT,
    color: RGBColor | None = None,
):
    if isinstance(container, _Cell) and len(container.paragraphs) == 1 and not container.text:
        para = container.paragraphs[0]
    else:
        para = container.add_paragraph()
    _set_rtl(para)
    para.alignment = align
    run = para.add_run(text)
    run.bold = bold
    run.font.size = Pt(size)
    run.font.rtl = True
    if color is not None:
        run.font.color.rgb = color
    return para


def _decode_logo(logo_url: str | None) -> bytes | None:
    """Return image bytes from a ``data:image/...;base64,`` URL, or ``None``."""
    if not logo_url:
        return None
    _, _, encoded = logo_url.partition("base64,")
    if not encoded:
        logger.warning("School logo is not a base64 data URL; skipping")
        return None
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.warning("School logo could not be decoded: %s", exc)
        return None


class CertificateGenerator:
    """Generates a multi-page DOCX of grade certificates for a ranked class."""

    def generate(
        self,
        ranked: Sequence[RankedStudent],
        school_class: SchoolClass,
        settings: SchoolSettings | None = None,
        issued_on: date | None = None,
    ) -> bytes:
        """Build the certificate document.

        Args:
            ranked: Students in print order (normally ranking order).
            school_class: Class supplying the subject rows.
            settings: School identity; blank placeholders when omitted.
            issued_on: Date printed in the footer; defaults to today.

        Returns:
            Bytes of the DOCX file.
        """
        settings = settings or SchoolSettings()
        issued_on = issued_on or date.today()
        logo = _decode_logo(settings.logo_url)

        try:
            doc = Document()
            self._set_document_defaults(doc)
            for index, student in enumerate(ranked):
                if index > 0:
                    doc.add_paragraph().add_run().add_break(WD_BREAK.PAGE)
                self._add_header(doc, school_class, settings, logo)
                self._add_student_info(doc, student)
                self._add_grades_table(doc, student, school_class)
                self._add_signatures(doc, settings, issued_on)

            buffer = io.BytesIO()
            doc.save(buffer)
            return buffer.getvalue()
        except Exception as exc:
            logger.error("Certificate generation failed for class %s: %s", school_class.id, exc)
            raise RuntimeError(f"Certificate generation failed: {exc}") from exc

    def _set_document_defaults(self, doc) -> None:
        style = doc.styles["Normal"]
        style.font.name = "Arial"
        style.font.size = Pt(11)
        # Complex-script font so Arabic text renders in Arial too.
        style.element.rPr.rFonts.set(qn("w:cs"), "Arial")

    def _add_header(self, doc, school_class: SchoolClass, settings: SchoolSettings, logo: bytes | None) -> None:
        _add_rtl_paragraph(
            doc, settings.school_name or SCHOOL_PLACEHOLDER, size=14, bold=True,
            align=WD_ALIGN_PARAGRAPH.CENTER,
        )
        _add_rtl_paragraph(
            doc, f"العام الدراسي: {settings.academic_year or YEAR_PLACEHOLDER}",
            size=10, align=WD_ALIGN_PARAGRAPH.CENTER, color=LABEL_COLOR,
        )
        if logo:
            try:
                doc.add_picture(io.BytesIO(logo), height=Inches(1.0))
                doc.paragraphs[-1].alignment = WD_ALIGN_PARAGRAPH.CENTER
            except Exception as exc:  # noqa: BLE001
                logger.warning("School logo is not a supported image: %s", exc)
        _add_rtl_paragraph(
            doc, CERTIFICATE_TITLE, size=20, bold=True,
            align=WD_ALIGN_PARAGRAPH.CENTER, color=TITLE_COLOR,
        )
        _add_rtl_paragraph(doc, school_class.name, size=12, bold=True, align=WD_ALIGN_PARAGRAPH.CENTER)

    def _add_student_info(self, doc, student: RankedStudent) -> None:
        _add_rtl_paragraph(doc, f"اسم الطالب: {student.name}", size=14, bold=True)
        _add_rtl_paragraph(doc, f"الترتيب: {student.rank_label}", size=12, bold=True)

    def _add_grades_table(self, doc, student: RankedStudent, school_class: SchoolClass) -> None:
        table = doc.add_table(rows=1, cols=len(TABLE_HEADERS))
        table.style = "Table Grid"
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        table.table_direction = WD_TABLE_DIRECTION.RTL

        for cell, header in zip(table.rows[0].cells, TABLE_HEADERS):
            _add_rtl_paragraph(cell, header, bold=True, align=WD_ALIGN_PARAGRAPH.CENTER)

        for subject in school_class.subjects:
            score = student.scores.get(subject.id, 0)
            percentage = subject_percentage(score, subject)
            row = table.add_row().cells
            _add_rtl_paragraph(row[0], subject.name, bold=True)
            _add_rtl_paragraph(row[1], format_number(subject.max_score), align=WD_ALIGN_PARAGRAPH.CENTER)
            _add_rtl_paragraph(
                row[2], format_number(score), size=12, bold=True,
                align=WD_ALIGN_PARAGRAPH.CENTER,
                color=FAIL_COLOR if percentage < 50 else None,
            )
            _add_rtl_paragraph(row[3], get_grade_label(percentage), size=10, align=WD_ALIGN_PARAGRAPH.CENTER)

        total_max = sum(subject.max_score for subject in school_class.subjects)
        row = table.add_row().cells
        _add_rtl_paragraph(row[0], TOTAL_LABEL, bold=True)
        _add_rtl_paragraph(row[1], format_number(total_max), bold=True, align=WD_ALIGN_PARAGRAPH.CENTER)
        _add_rtl_paragraph(row[2], format_number(student.total_score), bold=True, align=WD_ALIGN_PARAGRAPH.CENTER)
        _add_rtl_paragraph(
            row[3], f"{student.grade_label} ({format_number(student.percentage)}%)",
            bold=True, align=WD_ALIGN_PARAGRAPH.CENTER,
        )

    def _add_signatures(self, doc, settings: SchoolSettings, issued_on: date) -> None:
        doc.add_paragraph("")
        _add_rtl_paragraph(doc, f"{GUARDIAN_LABEL}: .....................", bold=True)
        _add_rtl_paragraph(
            doc, f"{PRINCIPAL_LABEL}: {settings.principal_name or SIGNATURE_PLACEHOLDER}", bold=True,
        )
        _add_rtl_paragraph(
            doc, f"تم إصدار النتيجة بتاريخ: {issued_on.isoformat()} | نظام رصد الدرجات",
            size=8, align=WD_ALIGN_PARAGRAPH.CENTER, color=LABEL_COLOR,
        )
