from __future__ import annotations

from pydantic import BaseModel


class AccountIn(BaseModel):
    name: str
    email: str


class AccountOut(BaseModel):
    id: int
    name: str
    email: str


class ReportOut(BaseModel):
    id: int
    title: str


class ExportOut(BaseModel):
    report_id: int
    status: str
