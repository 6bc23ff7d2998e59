# src/translate_relay/prompts/prompts_library.py

import logging
from pathlib import Path

import yaml

from .prompt import Prompt

logger = logging.getLogger(__name__)

# Prompts shipped with the package.
DEFAULT_PROMPTS_DIR = Path(__file__).parent / "templates"


class PromptsLibrary:
    """Versioned prompts loaded once from a directory of YAML files.

    Each file holds one prompt. A prompt whose template references a
    placeholder it does not declare (or declares one it never uses) is
    rejected at load time rather than at first render.
    """

    def __init__(self, directory: str | Path = DEFAULT_PROMPTS_DIR) -> None:
        self._prompts: dict[tuple[str, str], Prompt] = {}
        directory = Path(directory)
        logger.info("Loading prompts from %s", directory)
        for file_path in sorted(directory.glob("*.yaml")):
            self._add(self._read(file_path), file_path)
        logger.info("Loaded %d prompts", len(self._prompts))

    def get(self, name: str, version: str) -> Prompt:
        try:
            return self._prompts[(name, version)]
        except KeyError:
            logger.error("Prompt not found: name=%s, version=%s", name, version)
            raise KeyError(f"Prompt '{name}' version '{version}' not found")

    def list(self) -> list[tuple[str, str]]:
        return sorted(self._prompts)

    def _add(self, prompt: Prompt, source: Path) -> None:
        key = (prompt.name, prompt.version)
        if key in self._prompts:
            raise ValueError(
                f"Duplicate prompt '{prompt.name}' version '{prompt.version}' in {source}"
            )

        declared = set(prompt.inputs)
        used = prompt.placeholders
        if declared != used:
            raise ValueError(
                f"Prompt '{prompt.name}' in {source} declares inputs "
                f"{sorted(declared)} but its template uses {sorted(used)}"
            )

        self._prompts[key] = prompt
        logger.debug("Loaded prompt %s v%s from %s", prompt.name, prompt.version, source)

    @staticmethod
    def _read(file_path: Path) -> Prompt:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return Prompt(**data)
