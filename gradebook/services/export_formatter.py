"""
Tabular Export Formatter: spreadsheet-HTML and CSV renderings of a ranked class.

Two independent serializers share one column order:

    rank label, name, "<subject> (<maxScore>)" per subject, total, percentage, grade

* ``generate_excel_html``: an HTML table with Office worksheet metadata
  (right-to-left) that spreadsheet applications open as an ``.xls`` file.
* ``generate_csv`` / ``parse_csv``: plain-text interchange.  Fields are
  joined with bare commas and never quoted, so a comma inside a student name
  corrupts that row; import maps score columns by POSITION onto the class's
  current subject order, not by header name.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import Sequence

from gradebook.exceptions import CSVImportError
from gradebook.schemas.gradebook import RankedStudent, SchoolClass
from gradebook.services.grade_calculator import GRADE_BANDS
from gradebook.services.scores import to_number

logger = logging.getLogger(__name__)

EXCEL_MEDIA_TYPE = "application/vnd.ms-excel"
CSV_MEDIA_TYPE = "text/csv"
UTF8_BOM = "\ufeff"

RANK_HEADER = "الترتيب"
NAME_HEADER = "الاسم"
TOTAL_HEADER = "المجموع"
PERCENTAGE_HEADER = "النسبة %"
GRADE_HEADER = "التقدير"
SHEET_TITLE = "كشف درجات"
RESULTS_SUFFIX = "نتائج"

_LEADING_COLUMNS = 2  # rank label, name
_TRAILING_COLUMNS = 3  # total, percentage, grade

# Shading per band; "Good" and "Acceptable" stay unshaded.
_EXCELLENT_THRESHOLD = GRADE_BANDS[0][0]
_VERY_GOOD_THRESHOLD = GRADE_BANDS[1][0]
_PASS_THRESHOLD = GRADE_BANDS[3][0]
EXCELLENT_COLOR = "#d1fae5"
VERY_GOOD_COLOR = "#dbeafe"
FAILING_COLOR = "#fee2e2"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def format_number(value: float) -> str:
    """Render a number the way the score sheet shows it: ``130``, ``86.67``."""
    number = to_number(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def export_headers(school_class: SchoolClass) -> list[str]:
    """Return the column headers shared by the HTML and CSV serializers."""
    subject_headers = [
        f"{subject.name} ({format_number(subject.max_score)})"
        for subject in school_class.subjects
    ]
    return [RANK_HEADER, NAME_HEADER, *subject_headers, TOTAL_HEADER, PERCENTAGE_HEADER, GRADE_HEADER]


def export_row(student: RankedStudent, school_class: SchoolClass) -> list[str]:
    """Return one student's cells in header order."""
    subject_cells = [
        format_number(student.scores.get(subject.id, 0)) for subject in school_class.subjects
    ]
    return [
        student.rank_label,
        student.name,
        *subject_cells,
        format_number(student.total_score),
        f"{format_number(student.percentage)}%",
        student.grade_label,
    ]


def grade_shading(percentage: float) -> str | None:
    """Background colour for the grade cell, or ``None`` for no shading."""
    if percentage >= _EXCELLENT_THRESHOLD:
        return EXCELLENT_COLOR
    if percentage >= _VERY_GOOD_THRESHOLD:
        return VERY_GOOD_COLOR
    if percentage < _PASS_THRESHOLD:
        return FAILING_COLOR
    return None


def excel_filename(school_class: SchoolClass) -> str:
    """Download name for the spreadsheet export, e.g. ``5A_نتائج.xls``."""
    return f"{school_class.name}_{RESULTS_SUFFIX}.xls"


def csv_filename(school_class: SchoolClass) -> str:
    """Download name for the CSV export, e.g. ``5A_نتائج.csv``."""
    return f"{school_class.name}_{RESULTS_SUFFIX}.csv"


# ---------------------------------------------------------------------------
# Spreadsheet HTML
# ---------------------------------------------------------------------------

_EXCEL_TEMPLATE = """<html xmlns:o="urn:schemas-microsoft-com:office:office" \
xmlns:x="urn:schemas-microsoft-com:office:excel" xmlns="http://www.w3.org/TR/REC-html40">
<head>
<meta charset="UTF-8">
<!--[if gte mso 9]>
<xml>
<x:ExcelWorkbook>
<x:ExcelWorksheets>
<x:ExcelWorksheet>
<x:Name>{sheet_name}</x:Name>
<x:WorksheetOptions>
<x:DisplayRightToLeft/>
</x:WorksheetOptions>
</x:ExcelWorksheet>
</x:ExcelWorksheets>
</x:ExcelWorkbook>
</xml>
<![endif]-->
<style>
body {{ font-family: 'Arial', sans-serif; direction: rtl; }}
table {{ border-collapse: collapse; width: 100%; }}
th, td {{ border: 1px solid #000000; padding: 8px; font-size: 12pt; }}
th {{ background-color: #f3f4f6; font-weight: bold; text-align: center; }}
</style>
</head>
<body dir="rtl">
<h2 style="text-align: center; margin-bottom: 20px;">{title}</h2>
<table>
<thead>
<tr>{header_cells}</tr>
</thead>
<tbody>
{body_rows}
</tbody>
</table>
</body>
</html>
"""


def _html_row(student: RankedStudent, school_class: SchoolClass) -> str:
    cells = [html.escape(cell) for cell in export_row(student, school_class)]
    rank_cell, name_cell = cells[0], cells[1]
    subject_cells = cells[_LEADING_COLUMNS:-_TRAILING_COLUMNS]
    total_cell, percentage_cell, grade_cell = cells[-_TRAILING_COLUMNS:]

    shading = grade_shading(student.percentage)
    grade_style = "text-align:center;"
    if shading:
        grade_style += f" background-color:{shading};"

    parts = [
        f'<td style="text-align:center; font-weight:bold;">{rank_cell}</td>',
        f'<td style="text-align:right;">{name_cell}</td>',
        *(f'<td style="text-align:center;">{cell}</td>' for cell in subject_cells),
        f'<td style="text-align:center; font-weight:bold;">{total_cell}</td>',
        f'<td style="text-align:center;">{percentage_cell}</td>',
        f'<td style="{grade_style}">{grade_cell}</td>',
    ]
    return "<tr>" + "".join(parts) + "</tr>"


def generate_excel_html(ranked: Sequence[RankedStudent], school_class: SchoolClass) -> str:
    """Render a ranked class as a right-to-left spreadsheet-HTML document.

    Args:
        ranked: Students in display order (normally the ranking order).
        school_class: The class supplying the subject columns and sheet name.

    Returns:
        The complete UTF-8 HTML document.
    """
    header_cells = "".join(f"<th>{html.escape(h)}</th>" for h in export_headers(school_class))
    body_rows = "\n".join(_html_row(student, school_class) for student in ranked)
    class_name = html.escape(school_class.name)
    return _EXCEL_TEMPLATE.format(
        sheet_name=class_name,
        title=f"{SHEET_TITLE}: {class_name}",
        header_cells=header_cells,
        body_rows=body_rows,
    )


# ---------------------------------------------------------------------------
# CSV encode / decode
# ---------------------------------------------------------------------------


def generate_csv(ranked: Sequence[RankedStudent], school_class: SchoolClass) -> str:
    """Render a ranked class as BOM-prefixed CSV, one line per student.

    No quoting is applied.
    """
    lines = [UTF8_BOM + ",".join(export_headers(school_class))]
    lines.extend(",".join(export_row(student, school_class)) for student in ranked)
    return "\n".join(lines)


@dataclass
class ImportedStudent:
    """A partial student decoded from CSV; ids and stats are assigned later."""

    name: str
    class_id: str
    scores: dict[str, float]


@dataclass
class CSVImportResult:
    """Decoded rows plus every column-count problem noticed along the way."""

    students: list[ImportedStudent] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    skipped_rows: int = 0


def parse_csv(csv_text: str, school_class: SchoolClass, strict: bool = False) -> CSVImportResult:
    """Decode score rows for *school_class* from CSV text.

    The first non-blank line is the header and is skipped.  In each data row
    column 0 (rank label) is ignored, column 1 is the name and the following
    columns are read positionally as scores for the class's subjects in
    their current order.  Missing or unparseable cells count as 0.

    Args:
        csv_text: Raw file content (a leading BOM is tolerated).
        school_class: Class whose subject order defines the score columns.
        strict: Raise instead of warning when the column counts do not fit.

    Returns:
        :class:`CSVImportResult` with the decoded students and warnings.

    Raises:
        CSVImportError: Only when *strict* is set and a mismatch was found.
    """
    result = CSVImportResult()
    # Numbered before blank lines are dropped so warnings cite file lines.
    lines = [
        (number, line)
        for number, line in enumerate(csv_text.splitlines(), start=1)
        if line.strip()
    ]
    if not lines:
        return result

    subjects = school_class.subjects
    expected_cells = _LEADING_COLUMNS + len(subjects)

    header = lines[0][1].lstrip(UTF8_BOM).split(",")
    if len(header) not in (expected_cells, expected_cells + _TRAILING_COLUMNS):
        header_subjects = max(len(header) - _LEADING_COLUMNS - _TRAILING_COLUMNS, 0)
        result.warnings.append(
            f"Header has {len(header)} columns (about {header_subjects} subject columns) "
            f"but class '{school_class.name}' has {len(subjects)} subjects; "
            "scores are mapped by position"
        )

    for line_number, line in lines[1:]:
        cols = line.split(",")
        if len(cols) < _LEADING_COLUMNS:
            result.skipped_rows += 1
            continue

        name = cols[1].strip()
        if len(cols) < expected_cells:
            result.warnings.append(
                f"Line {line_number} ('{name}') has {len(cols) - _LEADING_COLUMNS} score "
                f"cells for {len(subjects)} subjects; missing scores set to 0"
            )

        scores: dict[str, float] = {}
        for idx, subject in enumerate(subjects):
            cell_index = _LEADING_COLUMNS + idx
            scores[subject.id] = to_number(cols[cell_index]) if cell_index < len(cols) else 0.0

        result.students.append(ImportedStudent(name=name, class_id=school_class.id, scores=scores))

    for warning in result.warnings:
        logger.warning("CSV import into class %s: %s", school_class.id, warning)

    if strict and result.warnings:
        raise CSVImportError(
            f"CSV does not match the {len(subjects)} subjects of class '{school_class.name}'",
            problems=result.warnings,
        )
    return result
