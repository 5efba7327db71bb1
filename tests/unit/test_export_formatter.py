"""Unit tests for the spreadsheet-HTML and CSV serializers
(gradebook/services/export_formatter.py).
"""

from __future__ import annotations

import pytest

from gradebook.exceptions import CSVImportError
from gradebook.schemas.gradebook import SchoolClass, Student
from gradebook.services.export_formatter import (
    EXCELLENT_COLOR,
    FAILING_COLOR,
    UTF8_BOM,
    VERY_GOOD_COLOR,
    csv_filename,
    excel_filename,
    export_headers,
    export_row,
    format_number,
    generate_csv,
    generate_excel_html,
    grade_shading,
    parse_csv,
)
from gradebook.services.ranking import rank_students

_HEADER = "الترتيب,الاسم,Math (100),Science (50),المجموع,النسبة %,التقدير"


@pytest.fixture
def ranked(sample_gradebook, sample_class):
    return rank_students(sample_gradebook.students, sample_class)


# ---------------------------------------------------------------------------
# Shared column layout
# ---------------------------------------------------------------------------


def test_headers_follow_subject_order(sample_class):
    assert export_headers(sample_class) == [
        "الترتيب",
        "الاسم",
        "Math (100)",
        "Science (50)",
        "المجموع",
        "النسبة %",
        "التقدير",
    ]


def test_headers_without_subjects_have_five_columns():
    headers = export_headers(SchoolClass(id="e", name="Empty"))
    assert len(headers) == 5, f"expected 2 + 0 + 3 columns, got {headers}"


def test_export_row_cells(ranked, sample_class):
    ali = next(s for s in ranked if s.name == "Ali")
    assert export_row(ali, sample_class) == ["2", "Ali", "90", "40", "130", "86.67%", "Very Good"]


@pytest.mark.parametrize(
    "value, expected", [(130.0, "130"), (86.67, "86.67"), (12.5, "12.5"), ("junk", "0")]
)
def test_format_number(value, expected):
    assert format_number(value) == expected


@pytest.mark.parametrize(
    "percentage, colour",
    [
        (95, EXCELLENT_COLOR),
        (90, EXCELLENT_COLOR),
        (80, VERY_GOOD_COLOR),
        (65, None),
        (50, None),
        (49.99, FAILING_COLOR),
    ],
)
def test_grade_shading(percentage, colour):
    assert grade_shading(percentage) == colour


def test_filenames(sample_class):
    assert excel_filename(sample_class) == "5A_نتائج.xls"
    assert csv_filename(sample_class) == "5A_نتائج.csv"


# ---------------------------------------------------------------------------
# Spreadsheet HTML
# ---------------------------------------------------------------------------


def test_excel_html_is_right_to_left_with_shading(ranked, sample_class):
    document = generate_excel_html(ranked, sample_class)

    assert "<x:DisplayRightToLeft/>" in document
    assert 'dir="rtl"' in document
    assert "<x:Name>5A</x:Name>" in document
    assert document.count("<tr>") == 1 + len(ranked), "one header row plus one row per student"
    assert f"background-color:{EXCELLENT_COLOR}" in document, "Sara (93.33%) must be shaded"
    assert f"background-color:{FAILING_COLOR}" in document, "Omar (40%) must be shaded"


def test_excel_html_escapes_markup(sample_class):
    tricky = [Student(id="x", name="<b>Ali & Co</b>", class_id="c1", scores={})]
    document = generate_excel_html(rank_students(tricky, sample_class), sample_class)

    assert "&lt;b&gt;Ali &amp; Co&lt;/b&gt;" in document
    assert "<b>Ali" not in document


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def test_csv_has_bom_header_and_one_line_per_student(ranked, sample_class):
    text = generate_csv(ranked, sample_class)
    lines = text.split("\n")

    assert text.startswith(UTF8_BOM)
    assert lines[0] == UTF8_BOM + _HEADER
    assert lines[1] == "1,Sara,95,45,140,93.33%,Excellent"
    assert len(lines) == 4
    assert not text.endswith("\n")


def test_exported_csv_imports_back(ranked, sample_class):
    result = parse_csv(generate_csv(ranked, sample_class), sample_class)

    assert result.warnings == []
    assert [(s.name, s.scores) for s in result.students] == [
        ("Sara", {"math": 95.0, "sci": 45.0}),
        ("Ali", {"math": 90.0, "sci": 40.0}),
        ("Omar", {"math": 40.0, "sci": 20.0}),
    ]
    assert all(s.class_id == "c1" for s in result.students)


def test_short_rows_default_missing_scores_to_zero(sample_class):
    text = _HEADER + "\n1,Ali,90\n"

    result = parse_csv(text, sample_class)

    assert result.students[0].scores == {"math": 90.0, "sci": 0.0}
    assert len(result.warnings) == 1 and "Ali" in result.warnings[0]


def test_strict_mode_rejects_column_mismatch(sample_class):
    text = _HEADER + "\n1,Ali,90\n"

    with pytest.raises(CSVImportError) as exc_info:
        parse_csv(text, sample_class, strict=True)

    assert exc_info.value.problems, "the problems list must explain the mismatch"


def test_header_mismatch_is_warned_and_scores_map_by_position(sample_class):
    text = "rank,name,A,B,C,total,pct,grade\n1,Ali,10,20,30,60,40%,Weak\n"

    result = parse_csv(text, sample_class)

    assert result.students[0].scores == {"math": 10.0, "sci": 20.0}
    assert any("Header" in warning for warning in result.warnings)


def test_blank_lines_rows_without_name_and_junk_cells(sample_class):
    text = "\n".join([_HEADER, "", "solo", "2,Mona,abc,", "   "])

    result = parse_csv(text, sample_class)

    assert result.skipped_rows == 1
    assert [s.name for s in result.students] == ["Mona"]
    assert result.students[0].scores == {"math": 0.0, "sci": 0.0}


def test_empty_input_yields_nothing(sample_class):
    result = parse_csv("", sample_class)
    assert result.students == [] and result.warnings == [] and result.skipped_rows == 0


# ---------------------------------------------------------------------------
# Classes without subjects
# ---------------------------------------------------------------------------


@pytest.fixture
def empty_class_ranked():
    empty = SchoolClass(id="e", name="Empty")
    lone = Student(id="x", name="Lone", class_id="e", scores={"gone": 70})
    return empty, rank_students([lone], empty)


def test_csv_row_without_subjects(empty_class_ranked):
    empty, ranked = empty_class_ranked

    lines = generate_csv(ranked, empty).split("\n")

    assert lines[1] == "1,Lone,0,0%,Weak"


def test_excel_row_without_subjects(empty_class_ranked):
    empty, ranked = empty_class_ranked

    document = generate_excel_html(ranked, empty)

    row = next(line for line in document.splitlines() if "Lone" in line)
    assert row.count("<td") == 5
    assert ">0</td>" in row
    assert ">0%</td>" in row
    assert f"background-color:{FAILING_COLOR};\">Weak</td>" in row


# ---------------------------------------------------------------------------
# Import warnings cite file line numbers
# ---------------------------------------------------------------------------


def test_warning_line_numbers_count_blank_lines(sample_class):
    text = _HEADER + "\n\n1,Ali,90,40\n\n2,Yusuf,50\n"

    result = parse_csv(text, sample_class)

    assert [s.name for s in result.students] == ["Ali", "Yusuf"]
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("Line 5 ('Yusuf')")
