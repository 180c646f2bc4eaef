from __future__ import annotations

import math
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def _number_or_none(value: Any) -> Optional[float]:
    """Finite float, or None for blank, non-numeric, inf or nan input."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        f = float(value)
    else:
        try:
            s = str(value).strip()
            f = float(s) if s else math.nan
        except ValueError:
            return None
    return f if math.isfinite(f) else None


class Biomarkers(BaseModel):
    """
    Optional readings entered on the plan form.

    sleep_eff: sleep efficiency (%)
    hrv: heart-rate variability (ms)
    sbp / dbp: systolic / diastolic blood pressure (mmHg)
    cgm_tir: CGM time in range (%)
    hscrp: hsCRP (mg/L)

    Blank or non-numeric input is treated as "not provided".
    """
    sleep_eff: Optional[float] = None
    hrv: Optional[float] = None
    sbp: Optional[float] = None
    dbp: Optional[float] = None
    cgm_tir: Optional[float] = None
    hscrp: Optional[float] = None

    @field_validator("*", mode="before")
    @classmethod
    def _coerce(cls, v: Any) -> Optional[float]:
        return _number_or_none(v)

    def provided(self) -> dict[str, float]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class ProgressEntry(BaseModel):
    """
    One user-entered training session.

    Several entries per day are allowed; the log is append-only.
    """
    date: str = Field(default_factory=lambda: date.today().isoformat())
    type: str = ""
    duration: float = Field(default=0, ge=0, allow_inf_nan=False)
    rpe: float = Field(default=0, ge=0, le=10)
    hrv: Optional[float] = None

    @field_validator("date", mode="before")
    @classmethod
    def _iso_date(cls, v: Any) -> str:
        if v is None or (isinstance(v, str) and not v.strip()):
            return date.today().isoformat()
        if isinstance(v, date):
            return v.isoformat()
        return date.fromisoformat(str(v).strip()).isoformat()

    @field_validator("hrv", mode="before")
    @classmethod
    def _optional_hrv(cls, v: Any) -> Optional[float]:
        return _number_or_none(v)
