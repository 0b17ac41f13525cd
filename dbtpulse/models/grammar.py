"""Token set used to recognize lifecycle lines in dbt's console log.

The recognizer works on plain substring matches against an uncontrolled
external format.  Keeping the tokens here, as data, means a change in the
tool's log format only touches this model (or the ``DBTPULSE_GRAMMAR``
setting).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from dbtpulse.models.run import UnitRunStatus


class LineGrammar(BaseModel):
    """Substring tokens for start/completion detection and field extraction.

    Tokens carry their surrounding spaces so that ``" OK "`` does not match
    inside ``"BOOKS"``.
    """

    model_config = ConfigDict(frozen=True)

    start_token: str = " START "
    kind_marker: str = " model "
    outcome_tokens: dict[str, UnitRunStatus] = {
        " OK ": UnitRunStatus.SUCCEEDED,
        " ERROR ": UnitRunStatus.FAILED,
        " SKIP ": UnitRunStatus.SKIPPED,
    }
    name_terminators: tuple[str, ...] = (" ...", " [")
    # Checked in order; the first token found wins.
    type_tokens: tuple[tuple[str, str], ...] = (
        (" view ", "view"),
        (" table ", "table"),
        (" incremental ", "incremental"),
        (" seed ", "seed"),
        (" test ", "test"),
    )
    default_type: str = "model"
    duration_separator: str = " in "
    step_separator: str = "of"


DEFAULT_GRAMMAR = LineGrammar()
