"""Incremental run-log parser — lifecycle lines in, unit table out.

dbt's console log is free-form text; most of it is noise.  ``classify``
turns one line into a tagged ``LineKind`` (start, completion or ignored)
using the token set of a ``LineGrammar``, and ``RunProgressModel`` applies
those transitions to a ``RunExecution``'s unit table.

Rules
-----
- A start line inserts a running ``UnitRun`` unless one with the same name
  already exists (first start wins; duplicate starts are ignored).
- A completion line updates the matching ``UnitRun``, creating it first if
  no start was seen (completion-before-start is not dropped).
- Lines that do not yield a unit name are ignored.  Nothing here raises on
  malformed input.
"""

from __future__ import annotations

import logging
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from dbtpulse.models.grammar import DEFAULT_GRAMMAR, LineGrammar
from dbtpulse.models.run import RunExecution, UnitRun, UnitRunStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Line kinds
# ---------------------------------------------------------------------------


class StartLine(BaseModel):
    """A unit started executing."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["start"] = "start"
    name: str
    unit_type: str
    step: str | None = None


class CompletionLine(BaseModel):
    """A unit finished with an outcome."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["completion"] = "completion"
    name: str
    unit_type: str
    step: str | None = None
    status: UnitRunStatus
    result_info: str | None = None
    duration: float | None = None


class IgnoredLine(BaseModel):
    """Anything that is not a recognizable lifecycle line."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ignored"] = "ignored"


LineKind = Union[StartLine, CompletionLine, IgnoredLine]

IGNORED = IgnoredLine()


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(line: str, grammar: LineGrammar = DEFAULT_GRAMMAR) -> LineKind:
    """Classify a single (ANSI-stripped) output line."""
    if grammar.kind_marker not in line:
        return IGNORED

    if grammar.start_token in line:
        name = extract_name(line, grammar)
        if name is None:
            return IGNORED
        return StartLine(
            name=name,
            unit_type=extract_unit_type(line, grammar),
            step=extract_step(line, grammar),
        )

    outcome = _find_outcome(line, grammar)
    if outcome is None:
        return IGNORED
    token, status = outcome

    name = extract_name(line, grammar)
    if name is None:
        return IGNORED

    result_info, duration = _extract_result(line, token, name, grammar)
    return CompletionLine(
        name=name,
        unit_type=extract_unit_type(line, grammar),
        step=extract_step(line, grammar),
        status=status,
        result_info=result_info,
        duration=duration,
    )


def _find_outcome(
    line: str, grammar: LineGrammar
) -> tuple[str, UnitRunStatus] | None:
    for token, status in grammar.outcome_tokens.items():
        if token in line:
            return token, status
    return None


def _name_span(line: str, grammar: LineGrammar) -> tuple[int, int] | None:
    """Return (start, end) offsets of the raw name region after the kind marker."""
    marker_pos = line.find(grammar.kind_marker)
    if marker_pos < 0:
        return None
    start = marker_pos + len(grammar.kind_marker)
    end = len(line)
    for terminator in grammar.name_terminators:
        pos = line.find(terminator, start)
        if pos >= 0:
            end = pos
            break
    return start, end


def extract_name(line: str, grammar: LineGrammar = DEFAULT_GRAMMAR) -> str | None:
    """Text between the kind marker and the first terminator, trimmed."""
    span = _name_span(line, grammar)
    if span is None:
        return None
    name = line[span[0]:span[1]].strip()
    return name or None


def extract_unit_type(line: str, grammar: LineGrammar = DEFAULT_GRAMMAR) -> str:
    for token, unit_type in grammar.type_tokens:
        if token in line:
            return unit_type
    return grammar.default_type


def extract_step(line: str, grammar: LineGrammar = DEFAULT_GRAMMAR) -> str | None:
    """Find an ``N of M`` counter, e.g. ``"2 of 5"``."""
    parts = line.split()
    for i in range(len(parts) - 2):
        if parts[i + 1] != grammar.step_separator:
            continue
        if parts[i].isdecimal() and parts[i + 2].isdecimal():
            return f"{parts[i]} {grammar.step_separator} {parts[i + 2]}"
    return None


def parse_duration(text: str) -> float | None:
    """Parse ``"0.42s"`` / ``"0.42"`` into seconds; ``None`` if unparseable."""
    text = text.strip()
    if text.endswith("s"):
        text = text[:-1]
    try:
        return float(text)
    except ValueError:
        return None


def _extract_result(
    line: str, outcome_token: str, name: str, grammar: LineGrammar
) -> tuple[str | None, float | None]:
    """Split the trailing ``[... in 0.42s]`` bracket into (annotation, duration)."""
    open_pos = line.rfind("[")
    close_pos = line.rfind("]")
    if open_pos < 0 or close_pos <= open_pos:
        return None, None

    content = line[open_pos + 1:close_pos]
    sep_pos = content.rfind(grammar.duration_separator)
    if sep_pos < 0:
        return content, None

    annotation = content[:sep_pos]
    duration = parse_duration(content[sep_pos + len(grammar.duration_separator):])

    # Some formats echo the unit inside the bracket; the outcome phrase
    # before the name terminator is the more useful annotation then.
    if name in annotation:
        phrase = _outcome_phrase(line, outcome_token, grammar)
        if phrase:
            annotation = phrase
    return annotation, duration


def _outcome_phrase(line: str, outcome_token: str, grammar: LineGrammar) -> str:
    token_pos = line.find(outcome_token)
    span = _name_span(line, grammar)
    if token_pos < 0 or span is None:
        return ""
    return line[token_pos + len(outcome_token):span[1]].strip()


# ---------------------------------------------------------------------------
# Unit table
# ---------------------------------------------------------------------------


class RunProgressModel:
    """Applies classified lines to a ``RunExecution``'s unit table.

    Parameters
    ----------
    grammar:
        Token set for the classifier.  Defaults to dbt's current format.
    """

    def __init__(self, grammar: LineGrammar | None = None) -> None:
        self.grammar = grammar or DEFAULT_GRAMMAR

    def parse_line(self, execution: RunExecution, line: str) -> bool:
        """Apply one line; returns True if the unit table changed."""
        kind = classify(line, self.grammar)

        if isinstance(kind, StartLine):
            if execution.find_unit(kind.name) is not None:
                return False
            execution.unit_runs.append(
                UnitRun(name=kind.name, unit_type=kind.unit_type, step=kind.step)
            )
            logger.debug("Unit started: %s (%s)", kind.name, kind.unit_type)
            return True

        if isinstance(kind, CompletionLine):
            unit = execution.find_unit(kind.name)
            if unit is None:
                unit = UnitRun(
                    name=kind.name, unit_type=kind.unit_type, step=kind.step
                )
                execution.unit_runs.append(unit)
            unit.status = kind.status
            if kind.duration is not None:
                unit.duration = kind.duration
            if kind.result_info is not None:
                unit.result_info = kind.result_info
            logger.debug("Unit finished: %s -> %s", kind.name, kind.status.value)
            return True

        return False

    def replay(self, execution: RunExecution, text: str) -> int:
        """Feed a full output buffer line by line; returns lines that changed state."""
        changed = 0
        for line in text.splitlines():
            if self.parse_line(execution, line):
                changed += 1
        return changed
