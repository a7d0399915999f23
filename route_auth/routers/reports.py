from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from route_auth.schemas import ExportOut, ReportOut

# No decorators here: security comes from config/security_config.yaml.
router = APIRouter(prefix="/reports", tags=["reports"])

_REPORTS: dict[int, ReportOut] = {
    1: ReportOut(id=1, title="Monthly usage"),
    2: ReportOut(id=2, title="Quarterly revenue"),
}


@router.get("", response_model=list[ReportOut])
def list_reports() -> list[ReportOut]:
    return list(_REPORTS.values())


@router.get("/{report_id}", response_model=ReportOut)
def get_report(report_id: int) -> ReportOut:
    report = _REPORTS.get(report_id)
    if report is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return report


@router.post("/{report_id}/export", response_model=ExportOut, status_code=status.HTTP_202_ACCEPTED)
def export_report(report_id: int) -> ExportOut:
    if report_id not in _REPORTS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
    return ExportOut(report_id=report_id, status="queued")
