"""Window descriptor schema."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_Z_INDEX = 100


class Position(BaseModel):
    """Top-left corner of a window in viewport pixels."""

    x: float = Field(default=100, strict=True)
    y: float = Field(default=80, strict=True)


class Size(BaseModel):
    """Outer window size in pixels."""

    width: float = Field(default=900, strict=True)
    height: float = Field(default=600, strict=True)


class WindowDescriptor(BaseModel):
    """Serializable record of one window.

    ``content`` is the live UI instance built by the content factory. It is
    kept on the descriptor in memory only and never dumped.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    id: str
    app_type: str
    title: str = Field(default="", strict=True)
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    is_minimized: bool = Field(default=False, strict=True)
    is_maximized: bool = Field(default=False, strict=True)
    z_index: int = Field(default=DEFAULT_Z_INDEX, strict=True)
    payload: Any = None
    owner: str
    content: Any = Field(default=None, exclude=True)

    @property
    def is_visible(self) -> bool:
        return not self.is_minimized

    def snapshot(self) -> dict[str, Any]:
        """Persisted form: every field except ``content``."""
        return self.model_dump(mode="json")
