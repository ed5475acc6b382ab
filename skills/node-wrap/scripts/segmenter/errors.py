from __future__ import annotations

from pathlib import Path


class WrapError(Exception):
    """Base class for wrap/unwrap failures."""


class DocumentNotFoundError(WrapError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"{path.name} not found")
        self.path = path


class MissingArtifactError(WrapError):
    def __init__(self, path: Path, qualified_name: str) -> None:
        super().__init__(f"artifact {path.name} for section '{qualified_name}' is missing")
        self.path = path
        self.qualified_name = qualified_name
