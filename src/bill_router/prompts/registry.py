"""Prompt template registry with variable injection and versioning."""
from __future__ import annotations
from pathlib import Path
import hashlib

TEMPLATES_DIR = Path(__file__).parent / "templates"


class PromptRegistry:
    """Loads markdown prompt templates and fills ``{placeholders}``."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self._templates_dir = templates_dir
        self._cache: dict[str, str] = {}

    def load_template(self, name: str) -> str:
        """Load a prompt template by name (e.g., 'parse_bill')."""
        if name not in self._cache:
            path = self._templates_dir / f"{name}.md"
            if not path.exists():
                raise FileNotFoundError(f"Prompt template not found: {path}")
            self._cache[name] = path.read_text(encoding="utf-8")
        return self._cache[name]

    def render(self, template_name: str, variables: dict | None = None) -> str:
        """Render a template, replacing each ``{key}`` with its value.

        Placeholders without a value are left untouched so literal braces in
        the prompt (JSON examples) survive.
        """
        template = self.load_template(template_name)
        for key, value in (variables or {}).items():
            template = template.replace(f"{{{key}}}", str(value))
        return template

    def get_version(self, template_name: str) -> str:
        """Short content hash identifying the template revision."""
        return hashlib.sha256(self.load_template(template_name).encode()).hexdigest()[:12]
