from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from .catalog import Catalog
from .models import Biomarkers
from .schema import Schema

SYSTEM_PROMPT = " ".join(
    [
        "You are a physician-informed brain-health exercise coach for older adults.",
        "Be specific, practical, and safety-forward. Use concise bullets and short paragraphs.",
        "Do not diagnose; give prudent training guidance with clear intensity cues and safety notes.",
    ]
)

UNAVAILABLE_TEXT = "Rules-based guidance is unavailable for this item."

MAX_QUESTION_CHARS = 3000
MAX_CONTEXT_ROWS = 10

MODES = ("plan", "library", "ask")


class CoachUnavailable(RuntimeError):
    """Raised by a backend when it cannot produce coaching text."""


class CoachBackend(Protocol):
    """Capability: generate coaching text for a prompt, or raise CoachUnavailable."""

    name: str

    def generate(self, system: str, prompt: str) -> str:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class CoachReply:
    text: str
    generated_by: str  # backend name (e.g. "openai") or "fallback"
    error: Optional[str] = None


# ---- OpenAI backend ----------------------------------------------------------


def get_openai_api_key() -> Optional[str]:
    """OPENAI_API_KEY first, then the AI_INTEGRATIONS_ fallback variable."""
    return os.getenv("OPENAI_API_KEY") or os.getenv("AI_INTEGRATIONS_OPENAI_API_KEY")


def get_openai_base_url() -> Optional[str]:
    return os.getenv("OPENAI_BASE_URL") or os.getenv("AI_INTEGRATIONS_OPENAI_BASE_URL")


class OpenAIChatBackend:
    name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.4,
    ) -> None:
        self.api_key = api_key
        self.model = model or "gpt-4o-mini"
        self.base_url = base_url
        self.temperature = temperature

    @classmethod
    def from_env(cls) -> "OpenAIChatBackend":
        return cls(
            api_key=get_openai_api_key(),
            model=os.getenv("EXERCISE_CATALOG_LLM_MODEL", "gpt-4o-mini"),
            base_url=get_openai_base_url(),
        )

    def generate(self, system: str, prompt: str) -> str:
        if not self.api_key:
            raise CoachUnavailable("OPENAI_API_KEY is not configured.")
        try:
            from openai import OpenAI  # type: ignore

            client = OpenAI(api_key=self.api_key, base_url=self.base_url) if self.base_url else OpenAI(api_key=self.api_key)
            resp = client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
            )
            text = (resp.choices[0].message.content or "").strip()
        except Exception as e:
            raise CoachUnavailable(f"OpenAI request failed: {e}") from e
        if not text:
            raise CoachUnavailable("OpenAI returned no content.")
        return text


# ---- Prompt construction -----------------------------------------------------


def _row_value(row: Mapping[str, str], schema: Optional[Schema], role: str) -> str:
    if schema is None:
        return (row.get(role) or "").strip()
    return schema.value(row, role).strip()


def _row_title(row: Mapping[str, str], schema: Optional[Schema]) -> str:
    return _row_value(row, schema, "title") or _row_value(row, schema, "category") or "Unnamed"


def build_coach_prompt(
    mode: str,
    *,
    row: Optional[Mapping[str, str]] = None,
    schema: Optional[Schema] = None,
    question: str = "",
    biomarkers: Optional[Biomarkers] = None,
    context_rows: Sequence[Mapping[str, str]] = (),
) -> str:
    """
    Build the user prompt for one coaching request.

    plan / library: one protocol row (plus biomarkers for plan).
    ask (or any mode without a row): the question and up to
    MAX_CONTEXT_ROWS representative protocols.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown coaching mode '{mode}'. Expected one of: {', '.join(MODES)}.")

    lines: list[str] = []
    if mode in ("plan", "library") and row is not None:
        lines.append(f"### Mode: {mode.upper()} - AI coaching addendum")
        lines.append(f"Protocol: {_row_title(row, schema)}")
        coach_prompt = _row_value(row, schema, "coach_prompt")
        if coach_prompt:
            lines.append(f"Coach Prompt (from CSV): {coach_prompt}")
        lines.append("Non-API details:")
        lines.append(f"- Start: {_row_value(row, schema, 'protocol_start') or '-'}")
        lines.append(f"- Progression: {_row_value(row, schema, 'progression_rule') or '-'}")
        lines.append(f"- Contraindications: {_row_value(row, schema, 'contraindications') or '-'}")
        if mode == "plan" and biomarkers is not None and biomarkers.provided():
            readings = ", ".join(f"{k}={v:g}" for k, v in sorted(biomarkers.provided().items()))
            lines.append(f"Biomarkers: {readings}")
    else:
        lines.append("### Mode: ASK - general Q&A")
        q = (question or "").strip()[:MAX_QUESTION_CHARS]
        if q:
            lines.append(f"Question: {q}")
        ctx = list(context_rows)[:MAX_CONTEXT_ROWS]
        if ctx:
            lines.append("Representative protocols from CSV:")
            for r in ctx:
                lines.append(
                    f"- {_row_title(r, schema)}: start={_row_value(r, schema, 'protocol_start')}; "
                    f"progression={_row_value(r, schema, 'progression_rule')}; "
                    f"contraindications={_row_value(r, schema, 'contraindications')}"
                )
    return "\n".join(lines)


# ---- Deterministic fallback --------------------------------------------------


def fallback_coaching(row: Mapping[str, str], schema: Optional[Schema] = None) -> str:
    """Rules-based coaching assembled from the row's own text fields."""
    script = _row_value(row, schema, "coach_script")
    proto = _row_value(row, schema, "protocol_start")
    prog = _row_value(row, schema, "progression_rule")
    parts = [script, f"Protocol: {proto}" if proto else "", f"Progression: {prog}" if prog else ""]
    return " - ".join(p for p in parts if p) or UNAVAILABLE_TEXT


def _tokenize(text: str) -> set[str]:
    t = text.lower().replace("_", " ")
    t = re.sub(r"[^a-z0-9]+", " ", t)
    return {x for x in t.split() if len(x) >= 3}


def related_rows(question: str, catalog: Catalog, k: int = 3) -> list[Mapping[str, str]]:
    """Rows whose title/category/protocol text shares words with the question, best first."""
    q = _tokenize(question)
    if not q:
        return []
    scored: list[tuple[int, int, Mapping[str, str]]] = []
    for idx, r in enumerate(catalog.rows):
        text = " ".join(
            catalog.value(r, role) for role in ("title", "category", "protocol_start", "goal_label")
        )
        overlap = len(q & _tokenize(text))
        if overlap:
            scored.append((-overlap, idx, r))
    return [r for _, _, r in sorted(scored, key=lambda x: (x[0], x[1]))[:k]]


def fallback_answer(question: str, catalog: Optional[Catalog] = None) -> str:
    matches = related_rows(question, catalog) if catalog is not None else []
    if not matches:
        return "AI coaching is unavailable right now. Browse the Library for protocol details."
    return "AI coaching is unavailable right now. Related protocols: " + "; ".join(
        f"{catalog.title_of(r)} ({fallback_coaching(r, catalog.schema)})" for r in matches
    )


# ---- Entry points (never raise) ---------------------------------------------


def _generate(backend: Optional[CoachBackend], prompt: str) -> tuple[Optional[str], Optional[str], str]:
    """(text, error, backend name); a backend failure of any kind becomes an error string."""
    be = backend if backend is not None else OpenAIChatBackend.from_env()
    name = getattr(be, "name", "") or type(be).__name__
    try:
        return be.generate(SYSTEM_PROMPT, prompt), None, name
    except CoachUnavailable as e:
        return None, str(e), name
    except Exception as e:
        return None, f"{type(e).__name__}: {e}", name


def coach_row(
    row: Mapping[str, str],
    schema: Optional[Schema] = None,
    *,
    mode: str = "library",
    biomarkers: Optional[Biomarkers] = None,
    backend: Optional[CoachBackend] = None,
) -> CoachReply:
    """
    Coaching text for one protocol row.

    Uses the backend when it answers; otherwise returns the rules-based
    fallback with the backend's failure in `error`.
    """
    prompt = build_coach_prompt(mode, row=row, schema=schema, biomarkers=biomarkers)
    text, error, generated_by = _generate(backend, prompt)
    if text:
        return CoachReply(text=text, generated_by=generated_by)
    return CoachReply(text=fallback_coaching(row, schema), generated_by="fallback", error=error)


def ask_coach(
    question: str,
    catalog: Optional[Catalog] = None,
    *,
    backend: Optional[CoachBackend] = None,
) -> CoachReply:
    q = (question or "").strip()
    if not q:
        return CoachReply(text="Please enter a question.", generated_by="fallback", error="empty question")
    context: Iterable[Mapping[str, str]] = catalog.rows[:MAX_CONTEXT_ROWS] if catalog is not None else ()
    prompt = build_coach_prompt(
        "ask",
        question=q,
        schema=catalog.schema if catalog is not None else None,
        context_rows=list(context),
    )
    text, error, generated_by = _generate(backend, prompt)
    if text:
        return CoachReply(text=text, generated_by=generated_by)
    return CoachReply(text=fallback_answer(q, catalog), generated_by="fallback", error=error)
