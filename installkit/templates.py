"""installkit - Seed template catalog.

Templates are *.sql files anywhere below the templates root, named by their
POSIX path relative to that root.
"""

from __future__ import annotations

from pathlib import Path

from installkit.errors import TemplateNotFoundError
from installkit.utils.paths import resolve_template_path

TEMPLATE_SUFFIX = ".sql"


class TemplateCatalog:
    """Lists and reads seed templates below a fixed root."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def list_templates(self) -> list[str]:
        """Return all template names, sorted ascending.

        Re-scans the directory on every call. A missing root yields [].
        """
        if not self.root.is_dir():
            return []
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob(f"*{TEMPLATE_SUFFIX}")
            if path.is_file()
        )

    def read_template(self, name: str) -> list[str]:
        """Return the raw lines of a template, line endings included.

        Raises:
            TemplateNotFoundError: If the template does not exist or the name
                points outside the templates root.
        """
        path = resolve_template_path(self.root, name)
        if path is None or not path.is_file():
            raise TemplateNotFoundError(name)
        with open(path, encoding="utf-8") as f:
            return f.readlines()
