"""
Configuration data models for wipman.

These models define the structure of `<root>/.wipman.json` and
`~/.config/wipman/config.json`, with validation via Pydantic.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wipman.core.files.common import VIEWS_DIR_NAME


class WipmanConfig(BaseModel):
    """
    Settings of one wipman directory.

    Example:
        >>> config = WipmanConfig(root=Path("~/wip"))
        >>> config.views_dir
        PosixPath('/home/me/wip/views')
    """

    root: Path = Field(..., description="The wipman directory holding task and view files")
    debug: bool = Field(
        default=False,
        description="Write a snapshot of the in-memory indices after every reconciled save",
    )
    ignored_extensions: list[str] = Field(
        default_factory=lambda: [".json"],
        description="Files with these extensions are never treated as tasks or views",
    )
    view_extension: str = Field(default=".md", description="Extension of new view files")
    journal_enabled: bool = Field(
        default=True,
        description="Record file changes in the journal used for remote sync",
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("root")
    @classmethod
    def expand_root(cls, v: Path) -> Path:
        """Expand ~ and make the root absolute."""
        return v.expanduser().resolve()

    @field_validator("ignored_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Accept extensions with or without the leading dot."""
        return [ext if ext.startswith(".") else f".{ext}" for ext in v]

    @field_validator("view_extension")
    @classmethod
    def normalize_view_extension(cls, v: str) -> str:
        return v if v.startswith(".") or v == "" else f".{v}"

    @property
    def views_dir(self) -> Path:
        return self.root / VIEWS_DIR_NAME
