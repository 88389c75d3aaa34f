"""Upstream payload and export schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DomainRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    domain: str = Field(..., min_length=1)
    id: Optional[str] = None
    is_active: bool = Field(True, alias="isActive")
    is_private: bool = Field(False, alias="isPrivate")


class AccountRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    address: Optional[str] = None


class ReportEntrySummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int = Field(..., ge=1)
    identity: str
    outcome: str
    attempts: int = Field(..., ge=1)
    success: bool
    account_id: Optional[str] = None
    detail: str


class ReportSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    generated_at: str
    requested: int = Field(..., ge=0)
    total_created: int = Field(..., ge=0)
    total_failed: int = Field(..., ge=0)
    cancelled: bool = False
    entries: List[ReportEntrySummary] = Field(default_factory=list)
