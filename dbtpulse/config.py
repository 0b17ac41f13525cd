"""Dashboard configuration — env-driven via pydantic-settings.

Reads from a ``.env`` file and ``DBTPULSE_*`` environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from dbtpulse.models.grammar import LineGrammar


class DashConfig(BaseSettings):
    """Dashboard settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export DBTPULSE_PROJECT_DIR=~/work/analytics
        export DBTPULSE_DBT_BINARY=/opt/venvs/dbt/bin/dbt
        export DBTPULSE_LOG_LEVEL=DEBUG

    The line grammar is nested JSON::

        export DBTPULSE_GRAMMAR='{"kind_marker": " model "}'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DBTPULSE_",
        env_file_encoding="utf-8",
    )

    log_level: str = "INFO"
    debug: bool = False

    # dbt project
    project_dir: Path = Path(".")
    dbt_binary: str = "dbt"
    manifest_relpath: Path = Path("target/manifest.json")

    # History
    history_path: Path = Path.home() / ".dbtpulse" / "history.db"
    history_limit: int = 100

    # UI loop
    tick_interval: float = 0.1
    show_limit: int = 100

    grammar: LineGrammar = LineGrammar()

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / self.manifest_relpath


# Module-level singleton: import as `from dbtpulse.config import config`
config = DashConfig()
