"""Integration tests for results, exports, CSV import, certificates and dashboards.

Endpoints tested
----------------
GET  /results/{class_id}                     ranked roster, ``q`` search
GET  /results/{class_id}/export.xls          spreadsheet-HTML download
GET  /results/{class_id}/export.csv          CSV download
POST /results/{class_id}/import              CSV upload
GET  /results/{class_id}/certificates.docx   certificates
GET  /dashboard, /dashboard/classes/{id}     statistics
"""

from __future__ import annotations

import io
from urllib.parse import quote

from docx import Document

_HEADER = "الترتيب,الاسم,Math (100),Science (50),المجموع,النسبة %,التقدير"


# ---------------------------------------------------------------------------
# Ranked results
# ---------------------------------------------------------------------------


def test_results_are_ranked_by_total(test_client, seeded_store):
    response = test_client.get("/results/c1")

    assert response.status_code == 200
    body = response.json()
    assert body["class"]["name"] == "5A"
    assert body["total"] == 3
    assert [(s["name"], s["rank"], s["rankLabel"]) for s in body["students"]] == [
        ("Sara", 1, "1"),
        ("Ali", 2, "2"),
        ("Omar", 3, "3"),
    ]
    assert body["students"][1]["percentage"] == 86.67


def test_search_keeps_class_wide_rank(test_client, seeded_store):
    body = test_client.get("/results/c1", params={"q": "ali"}).json()

    assert [(s["name"], s["rank"]) for s in body["students"]] == [("Ali", 2)]
    assert body["total"] == 1


def test_results_for_unknown_class(test_client):
    assert test_client.get("/results/nope").status_code == 404


def test_results_only_rank_the_requested_class(test_client, multi_class_store):
    body = test_client.get("/results/c1").json()

    assert [s["name"] for s in body["students"]] == ["Sara", "Ali", "Omar"]
    assert {s["classId"] for s in body["students"]} == {"c1"}
    assert body["total"] == 3

    other = test_client.get("/results/c2").json()
    assert [(s["name"], s["rankLabel"], s["percentage"]) for s in other["students"]] == [
        ("Zed", "1", 100.0)
    ]


# ---------------------------------------------------------------------------
# Downloads
# ---------------------------------------------------------------------------


def test_excel_export_download(test_client, seeded_store):
    response = test_client.get("/results/c1/export.xls")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/vnd.ms-excel")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert f"filename*=UTF-8''{quote('5A_نتائج.xls')}" in disposition
    assert "<x:DisplayRightToLeft/>" in response.text
    assert "Sara" in response.text


def test_csv_export_download(test_client, seeded_store):
    response = test_client.get("/results/c1/export.csv")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.content.startswith(b"\xef\xbb\xbf"), "CSV must carry a UTF-8 BOM"
    lines = response.content.decode("utf-8-sig").split("\n")
    assert lines[0] == _HEADER
    assert lines[3] == "3,Omar,40,20,60,40%,Weak"


def test_certificates_download(test_client, seeded_store):
    response = test_client.get("/results/c1/certificates.docx")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert quote("5A_شهادات.docx") in response.headers["content-disposition"]
    assert len(Document(io.BytesIO(response.content)).tables) == 3


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------


def _upload(client, text: str, **params):
    return client.post(
        "/results/c1/import",
        params=params,
        files={"file": ("scores.csv", text.encode("utf-8"), "text/csv")},
    )


def test_import_appends_students(test_client, seeded_store):
    csv_text = "\ufeff" + _HEADER + "\n1,Mona,70,35,105,70%,Good\n2,Yusuf,50\n"

    response = _upload(test_client, csv_text)

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["imported"] == 2
    assert len(body["warnings"]) == 1, "Yusuf's row is short"
    assert [s["name"] for s in body["students"]] == ["Mona", "Yusuf"]
    assert body["students"][1]["scores"] == {"math": 50.0, "sci": 0.0}

    ranked = test_client.get("/results/c1").json()
    assert ranked["total"] == 5


def test_strict_import_rejects_mismatch(test_client, seeded_store):
    response = _upload(test_client, _HEADER + "\n1,Yusuf,50\n", strict="true")

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "csv_import_failed"
    assert body["problems"]
    assert test_client.get("/results/c1").json()["total"] == 3, "nothing may be imported"


def test_import_rejects_non_utf8(test_client, seeded_store):
    response = test_client.post(
        "/results/c1/import",
        files={"file": ("scores.csv", b"\xff\xfe\x00bad", "text/csv")},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_input"


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def test_dashboard(test_client, seeded_store):
    body = test_client.get("/dashboard").json()

    assert body["overview"] == {
        "totalClasses": 1,
        "totalStudents": 3,
        "orphanedStudents": 0,
        "schoolAverage": 73.33,
    }
    panel = body["classes"][0]
    assert panel["studentCount"] == 3
    assert panel["hardestSubject"]["subjectId"] == "sci"
    assert [s["name"] for s in panel["topStudents"]] == ["Sara", "Ali", "Omar"]


def test_class_dashboard(test_client, seeded_store):
    body = test_client.get("/dashboard/classes/c1").json()

    assert body["gradeDistribution"]["Weak"] == 1
    assert body["averagePercentage"] == 73.33
    assert test_client.get("/dashboard/classes/nope").status_code == 404


# ---------------------------------------------------------------------------
# Downloads with several classes in the tenant
# ---------------------------------------------------------------------------


def test_downloads_leave_out_other_classes(test_client, multi_class_store):
    csv_lines = test_client.get("/results/c1/export.csv").content.decode("utf-8-sig").split("\n")
    assert [line.split(",")[1] for line in csv_lines[1:]] == ["Sara", "Ali", "Omar"]

    sheet = test_client.get("/results/c1/export.xls").text
    assert "Zed" not in sheet
    assert "Nur" not in sheet

    certificates = test_client.get("/results/c1/certificates.docx")
    assert len(Document(io.BytesIO(certificates.content)).tables) == 3

    art_csv = test_client.get("/results/c2/export.csv").content.decode("utf-8-sig").split("\n")
    assert art_csv[1:] == ["1,Zed,20,20,100%,Excellent"]


def test_dashboard_with_several_classes(test_client, multi_class_store):
    body = test_client.get("/dashboard").json()

    assert body["overview"]["totalStudents"] == 5
    assert body["overview"]["orphanedStudents"] == 1
    assert body["overview"]["schoolAverage"] == 80.0
    assert [panel["studentCount"] for panel in body["classes"]] == [3, 1]
