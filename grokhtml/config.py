from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

DEFAULT_USER_AGENT = "grokhtml/0.1"


@dataclass(frozen=True)
class Settings:
    """Parser and fetch settings shared by documents and the pipeline."""

    parser: str = "html.parser"
    timeout: int = 15
    user_agent: str = DEFAULT_USER_AGENT
    ignore_case: bool = False


@dataclass
class ExtractionJob:
    """A single expression/template pair applied to one document URI."""

    name: str
    uri: str
    expression: str
    template: str = "\\0"
    encoding: str | None = None


@dataclass
class AppConfig:
    """Top-level configuration for batch extraction."""

    jobs: List[ExtractionJob] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)


SETTING_KEYS = ("parser", "timeout", "user_agent", "ignore_case")


def _load_yaml(path: Path) -> dict:
    with path.open("r", encoding="utf8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping, got {type(data)!r}")
    return data


def load_config(path: Path | str) -> AppConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)

    raw = _load_yaml(path)
    jobs_data = raw.get("jobs") or []
    if not isinstance(jobs_data, list):
        raise ValueError("'jobs' must be a list")

    try:
        jobs = [ExtractionJob(**job) for job in jobs_data]
    except TypeError as exc:
        raise ValueError(f"Invalid job entry: {exc}") from exc

    settings = Settings(**{key: raw[key] for key in SETTING_KEYS if key in raw})
    return AppConfig(jobs=jobs, settings=settings)


def dump_config(config: AppConfig) -> str:
    data: dict = {key: getattr(config.settings, key) for key in SETTING_KEYS}
    data["jobs"] = [
        {k: v for k, v in vars(job).items() if v is not None}
        for job in config.jobs
    ]
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


def save_config(config: AppConfig, path: Path | str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_config(config), encoding="utf8")
