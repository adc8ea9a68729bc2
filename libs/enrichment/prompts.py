from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from libs.core.exceptions import DomainError

DEFAULT_PROMPTS_PATH = Path(__file__).resolve().with_name("prompts.yaml")


class PromptsError(DomainError):
    """Raised when the prompts file is missing or incomplete."""


class PromptBook:
    """System/user prompt pairs loaded from a YAML file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else DEFAULT_PROMPTS_PATH
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                self.prompts: Dict[str, Dict[str, str]] = yaml.safe_load(fh) or {}
        except FileNotFoundError as exc:
            raise PromptsError(f"Prompts file not found: {self.path}") from exc
        except yaml.YAMLError as exc:
            raise PromptsError("Failed to parse prompts file") from exc
        logging.getLogger(__name__).debug("Prompts loaded from: %s", self.path)

    def get(self, section: str, key: str) -> str:
        try:
            return self.prompts[section][key]
        except (KeyError, TypeError) as exc:
            raise PromptsError(
                f"Prompt '{section}.{key}' not found in {self.path}"
            ) from exc

    def system(self, section: str) -> str:
        return self.get(section, "system")

    def user(self, section: str, **values: Any) -> str:
        return self.get(section, "user").format(**values)


__all__ = ["PromptBook", "PromptsError", "DEFAULT_PROMPTS_PATH"]
