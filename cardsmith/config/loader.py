"""YAML loader for the list of question sources.

``config/sources.yaml`` holds the documents a sync run processes::

    sources:
      - id: javascript-interview
        name: JavaScript Interview Questions
        url: https://raw.githubusercontent.com/sudheerj/javascript-interview-questions/master/README.md
        kind: github

Each entry is validated into a :class:`QuestionSource`.  Duplicate ids are
rejected so ``--source <id>`` always selects exactly one document.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from cardsmith.models.question import QuestionSource
from cardsmith.utils.errors import ConfigurationError


def load_sources(path: str | Path = "config/sources.yaml") -> list[QuestionSource]:
    """Load and validate the configured question sources.

    A missing file yields an empty list; the sync service decides whether
    that is an error.

    Raises
    ------
    ConfigurationError
        If the YAML is malformed, an entry fails validation, or two
        entries share an id.
    """
    config_path = Path(path)
    if not config_path.exists():
        return []

    try:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(message=f"Invalid YAML in {config_path}: {exc}") from exc

    entries = raw.get("sources", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ConfigurationError(message=f"'sources' in {config_path} must be a list")

    sources: list[QuestionSource] = []
    seen: set[str] = set()
    for position, entry in enumerate(entries):
        try:
            source = QuestionSource.model_validate(entry)
        except ValidationError as exc:
            raise ConfigurationError(
                message=f"Invalid source #{position + 1} in {config_path}: {exc}"
            ) from exc
        if source.id in seen:
            raise ConfigurationError(message=f"Duplicate source id {source.id!r} in {config_path}")
        seen.add(source.id)
        sources.append(source)
    return sources
