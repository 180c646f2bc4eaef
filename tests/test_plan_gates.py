from __future__ import annotations

from pathlib import Path

from exercise_catalog.catalog import catalog_from_text, load_catalog
from exercise_catalog.config import FilterPolicy, ModalityChoice
from exercise_catalog.models import Biomarkers
from exercise_catalog.plan import NO_GATES_NOTE, build_plan, choose_plan_protocols, gates_advice, gates_are_cautionary

FIXTURE = Path(__file__).parent / "fixtures" / "master_small.csv"


def test_no_readings_gives_single_progress_note() -> None:
    notes = gates_advice(Biomarkers())
    assert notes == [NO_GATES_NOTE]
    assert gates_are_cautionary(notes) is False


def test_each_threshold_adds_a_note() -> None:
    notes = gates_advice(Biomarkers(sbp=165, dbp=101, cgm_tir=60, hscrp=3))
    assert len(notes) == 4
    assert notes[0].startswith("SBP")
    assert notes[3].startswith("hsCRP")
    assert gates_are_cautionary(notes) is True


def test_values_just_inside_thresholds_do_not_trigger() -> None:
    assert gates_advice(Biomarkers(sbp=159, dbp=99, cgm_tir=70, hscrp=2.9)) == [NO_GATES_NOTE]


def test_blank_and_non_numeric_readings_are_ignored() -> None:
    b = Biomarkers(sbp="", dbp="abc", cgm_tir=" 65 ", hscrp=None)
    assert b.sbp is None and b.dbp is None and b.cgm_tir == 65.0
    assert b.provided() == {"cgm_tir": 65.0}


def test_non_finite_readings_are_ignored() -> None:
    b = Biomarkers(sbp="inf", dbp=float("nan"), hscrp="-Infinity", cgm_tir="NaN")
    assert b.provided() == {}
    assert gates_advice(Biomarkers(sbp="inf")) == [NO_GATES_NOTE]


def test_plan_prefers_rows_with_protocol_start() -> None:
    catalog = load_catalog(FIXTURE)
    picks = choose_plan_protocols(catalog, ModalityChoice.FIRST, FilterPolicy(include_none=False))
    # Interval Cycling has no protocol_start text
    assert [catalog.title_of(r) for r in picks] == ["Zone 2 Walking"]


def test_plan_falls_back_to_any_matching_row() -> None:
    catalog = catalog_from_text("title,exercise_type,protocol_start\nA,aerobic,\nB,aerobic,\n")
    picks = choose_plan_protocols(catalog, ModalityChoice.FIRST)
    assert [catalog.title_of(r) for r in picks] == ["A", "B"]


def test_plan_respects_limit_and_order() -> None:
    rows = "\n".join(f"P{i},aerobic,start" for i in range(6))
    catalog = catalog_from_text("title,exercise_type,protocol_start\n" + rows + "\n")
    plan = build_plan(catalog, ModalityChoice.BOTH, limit=3)
    assert [catalog.title_of(r) for r in plan.picks] == ["P0", "P1", "P2"]
    assert plan.gate_notes == [NO_GATES_NOTE]


def test_empty_plan_is_explicit() -> None:
    catalog = catalog_from_text("title,exercise_type,protocol_start\nA,yoga,x\n")
    plan = build_plan(catalog, ModalityChoice.BOTH, Biomarkers(sbp=170))
    assert plan.empty is True
    assert plan.cautionary is True
