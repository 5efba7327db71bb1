"""
Results routes: ranked class rosters and their file renderings.

Provides:
    GET  /results/{class_id}                     Ranked roster (optional ``q`` search).
    GET  /results/{class_id}/export.xls          Spreadsheet-HTML download.
    GET  /results/{class_id}/export.csv          CSV download.
    POST /results/{class_id}/import              CSV upload into the class.
    GET  /results/{class_id}/certificates.docx   One certificate page per student.

Ranking is recomputed on every request from the stored scores.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.responses import Response

from gradebook.api.dependencies import CurrentUserDep, SettingsDep, StoreDep
from gradebook.exceptions import InvalidInputError
from gradebook.schemas.reports import ClassResults, ImportSummary
from gradebook.services import roster
from gradebook.services.certificate_generator import (
    DOCX_MEDIA_TYPE,
    CertificateGenerator,
    certificates_filename,
)
from gradebook.services.export_formatter import (
    CSV_MEDIA_TYPE,
    EXCEL_MEDIA_TYPE,
    csv_filename,
    excel_filename,
    generate_csv,
    generate_excel_html,
    parse_csv,
)
from gradebook.services.ranking import rank_students, search_ranked, students_in_class
from gradebook.services.snapshot_store import load_gradebook, save_gradebook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["results"])

_certificate_generator = CertificateGenerator()


def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and the RFC 5987 UTF-8 name."""
    fallback = "".join(
        c if c.isascii() and (c.isalnum() or c in "-_.") else "_" for c in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


async def _ranked_class(store, tenant_id: str, class_id: str):
    gradebook = await load_gradebook(store, tenant_id)
    school_class = roster.find_class(gradebook, class_id)
    members = students_in_class(gradebook.students, school_class.id)
    return gradebook, school_class, rank_students(members, school_class)


@router.get("/{class_id}", response_model=ClassResults, summary="Ranked class results")
async def class_results(
    class_id: str,
    user: CurrentUserDep,
    store: StoreDep,
    q: str | None = Query(default=None, description="Case-insensitive name filter"),
) -> ClassResults:
    """Return the class ranked by total score.

    Filtering by ``q`` happens after ranking, so ranks stay class-wide.
    """
    _, school_class, ranked = await _ranked_class(store, user.username, class_id)
    if q:
        ranked = search_ranked(ranked, q)
    return ClassResults(school_class=school_class, students=ranked, total=len(ranked))


@router.get("/{class_id}/export.xls", summary="Download results as a spreadsheet")
async def export_excel(class_id: str, user: CurrentUserDep, store: StoreDep) -> Response:
    _, school_class, ranked = await _ranked_class(store, user.username, class_id)
    return Response(
        content=generate_excel_html(ranked, school_class),
        media_type=EXCEL_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(excel_filename(school_class))},
    )


@router.get("/{class_id}/export.csv", summary="Download results as CSV")
async def export_csv(class_id: str, user: CurrentUserDep, store: StoreDep) -> Response:
    _, school_class, ranked = await _ranked_class(store, user.username, class_id)
    return Response(
        content=generate_csv(ranked, school_class),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(csv_filename(school_class))},
    )


@router.post(
    "/{class_id}/import",
    response_model=ImportSummary,
    summary="Import students from CSV",
    responses={
        403: {"description": "Import would exceed the per-class quota"},
        422: {"description": "Unreadable file, or column mismatch in strict mode"},
    },
)
async def import_csv(
    class_id: str,
    user: CurrentUserDep,
    store: StoreDep,
    settings: SettingsDep,
    file: UploadFile = File(..., description="CSV in the export layout"),
    strict: bool | None = Query(
        default=None,
        description="Reject column-count mismatches; defaults to the server setting",
    ),
) -> ImportSummary:
    """Append the file's rows to the class as new students.

    Score columns are matched to subjects by position.
    """
    raw = await file.read()
    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InvalidInputError("CSV file must be UTF-8 encoded", field="file") from exc

    gradebook = await load_gradebook(store, user.username)
    school_class = roster.find_class(gradebook, class_id)
    use_strict = settings.strict_csv_import if strict is None else strict
    parsed = parse_csv(text, school_class, strict=use_strict)

    created = roster.import_students(gradebook, school_class, parsed.students, user.limits)
    await save_gradebook(store, user.username, gradebook)
    logger.info(
        "Tenant %s imported %d rows into class %s (%d warnings)",
        user.username, len(created), class_id, len(parsed.warnings),
    )
    return ImportSummary(
        imported=len(created),
        skipped_rows=parsed.skipped_rows,
        warnings=parsed.warnings,
        students=created,
    )


@router.get("/{class_id}/certificates.docx", summary="Download grade certificates")
async def certificates(class_id: str, user: CurrentUserDep, store: StoreDep) -> Response:
    gradebook, school_class, ranked = await _ranked_class(store, user.username, class_id)
    content = _certificate_generator.generate(ranked, school_class, gradebook.settings)
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(certificates_filename(school_class))},
    )
