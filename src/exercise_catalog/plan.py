from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .catalog import Catalog, Row
from .config import FilterPolicy, ModalityChoice
from .filtering import filter_by_modality
from .models import Biomarkers

NO_GATES_NOTE = "No gates triggered: progress if recent sessions were completed at target RPE and no symptoms."

_CAUTION_RE = re.compile(r"avoid|prefer|deload", re.IGNORECASE)


def gates_advice(biomarkers: Biomarkers) -> list[str]:
    """
    Safety gates for the plan header.

    Each threshold that is crossed adds one note; with no readings (or none
    crossed) a single "progress" note is returned.
    """
    b = biomarkers
    notes: list[str] = []
    if b.sbp is not None and b.sbp >= 160:
        notes.append("SBP >=160: avoid HIIT/plyo; choose low-intensity aerobic, breathing, mobility; recheck BP.")
    if b.dbp is not None and b.dbp >= 100:
        notes.append("DBP >=100: avoid vigorous work; emphasize technique and low-load options; monitor symptoms.")
    if b.cgm_tir is not None and b.cgm_tir < 70:
        notes.append("CGM TIR <70%: prioritize resistance then Zone 2; add post-meal walks.")
    if b.hscrp is not None and b.hscrp >= 3:
        notes.append("hsCRP >=3 mg/L: prefer low-impact options; avoid excessive eccentric load; extend warm-up.")
    if not notes:
        notes.append(NO_GATES_NOTE)
    return notes


def gates_are_cautionary(notes: list[str]) -> bool:
    return any(_CAUTION_RE.search(n) for n in notes)


@dataclass(frozen=True)
class Plan:
    choice: ModalityChoice
    gate_notes: list[str]
    cautionary: bool
    picks: list[Row]

    @property
    def empty(self) -> bool:
        return not self.picks


def choose_plan_protocols(
    catalog: Catalog,
    choice: ModalityChoice = ModalityChoice.BOTH,
    policy: Optional[FilterPolicy] = None,
    limit: int = 3,
) -> list[Row]:
    """
    First `limit` rows of the modality choice, in catalog order.

    Rows with protocol-start text are preferred; if none have it, any
    matching row is used.
    """
    candidates = filter_by_modality(catalog, choice, policy=policy)
    preferred = [r for r in candidates if catalog.value(r, "protocol_start").strip()]
    return (preferred or candidates)[: max(0, limit)]


def build_plan(
    catalog: Catalog,
    choice: ModalityChoice = ModalityChoice.BOTH,
    biomarkers: Optional[Biomarkers] = None,
    policy: Optional[FilterPolicy] = None,
    limit: int = 3,
) -> Plan:
    notes = gates_advice(biomarkers or Biomarkers())
    return Plan(
        choice=choice,
        gate_notes=notes,
        cautionary=gates_are_cautionary(notes),
        picks=choose_plan_protocols(catalog, choice, policy=policy, limit=limit),
    )
