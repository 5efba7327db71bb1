"""Integration tests for school settings, backup, restore and reset.

Endpoints tested
----------------
GET/PUT /settings
GET     /backup
POST    /backup/restore
DELETE  /data
"""

from __future__ import annotations

_BACKUP = {
    "timestamp": "2025-05-01T10:00:00Z",
    "settings": {"schoolName": "Restored School", "principalName": "Ms. Amal"},
    "classes": [
        {"id": "r1", "name": "Restored", "subjects": [{"id": "m", "name": "Math", "maxScore": 20}]}
    ],
    "students": [
        {"id": "x1", "name": "Rania", "classId": "r1", "scores": {"m": 18}, "totalScore": 18}
    ],
}


def test_settings_round_trip(test_client):
    assert test_client.get("/settings").json()["schoolName"] == ""

    response = test_client.put(
        "/settings",
        json={"schoolName": "Al Noor", "principalName": "Mr. Hassan", "academicYear": "2025/2026"},
    )

    assert response.status_code == 200
    assert test_client.get("/settings").json() == {
        "schoolName": "Al Noor",
        "principalName": "Mr. Hassan",
        "academicYear": "2025/2026",
        "logoUrl": None,
    }


def test_backup_download(test_client, seeded_store):
    response = test_client.get("/backup")

    assert response.status_code == 200
    assert 'filename="backup_school_' in response.headers["content-disposition"]
    document = response.json()
    assert set(document) == {"timestamp", "settings", "classes", "students"}
    assert document["students"][0]["classId"] == "c1"
    assert "totalScore" not in document["students"][0]


def test_restore_requires_confirmation(test_client, seeded_store):
    response = test_client.post("/backup/restore", json=_BACKUP)

    assert response.status_code == 409
    assert response.json()["error"] == "confirmation_required"
    assert len(test_client.get("/students").json()) == 3, "data must be untouched"


def test_restore_rejects_incomplete_backup(test_client, seeded_store):
    response = test_client.post(
        "/backup/restore", params={"confirm": "true"}, json={"classes": []}
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "backup_invalid"
    assert "students" in body["message"]


def test_restore_replaces_everything(test_client, seeded_store):
    response = test_client.post("/backup/restore", params={"confirm": "true"}, json=_BACKUP)

    assert response.status_code == 200, response.text
    assert response.json() == {"classes": 1, "students": 1, "settingsRestored": True}
    assert [c["id"] for c in test_client.get("/classes").json()] == ["r1"]
    rania = test_client.get("/students/x1").json()
    assert rania["percentage"] == 90
    assert test_client.get("/settings").json()["schoolName"] == "Restored School"


def test_backup_then_restore_is_lossless(test_client, seeded_store):
    backup = test_client.get("/backup").json()
    test_client.delete("/data", params={"confirm": "true"})

    test_client.post("/backup/restore", params={"confirm": "true"}, json=backup)

    assert test_client.get("/results/c1").json()["total"] == 3


def test_clear_data(test_client, seeded_store):
    test_client.put("/settings", json={"schoolName": "Keep Me"})

    assert test_client.delete("/data").status_code == 409

    response = test_client.delete("/data", params={"confirm": "true"})

    assert response.json() == {"deletedClasses": 1, "deletedStudents": 3}
    assert test_client.get("/classes").json() == []
    assert test_client.get("/settings").json()["schoolName"] == "Keep Me"
