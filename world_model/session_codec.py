"""Encode window sessions for storage and rebuild them on restore."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidatorFunctionWrapHandler,
    ValidationInfo,
    field_validator,
)

from world_model.app_registry import ContentFactory
from world_model.window_state import DEFAULT_Z_INDEX, Position, Size, WindowDescriptor

logger = logging.getLogger("aurora.session_codec")

_FIELD_DEFAULTS: dict[str, Any] = {
    "title": lambda: "",
    "position": Position,
    "size": Size,
    "is_minimized": lambda: False,
    "is_maximized": lambda: False,
    "z_index": lambda: DEFAULT_Z_INDEX,
}


class StoredWindow(BaseModel):
    """Lenient view of one persisted descriptor.

    ``id`` and ``app_type`` are required; any other field that is missing or
    has the wrong type falls back to its default instead of failing the entry.
    """

    model_config = ConfigDict(extra="ignore")

    id: StrictStr = Field(min_length=1)
    app_type: StrictStr = Field(min_length=1)
    title: StrictStr = ""
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    is_minimized: StrictBool = False
    is_maximized: StrictBool = False
    z_index: StrictInt = DEFAULT_Z_INDEX
    payload: Any = None
    owner: StrictStr | None = None

    @field_validator("title", "position", "size", "is_minimized", "is_maximized", "z_index", mode="wrap")
    @classmethod
    def _default_on_error(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            logger.debug("Replacing invalid %s=%r with default", info.field_name, value)
            return _FIELD_DEFAULTS[info.field_name]()

    @field_validator("owner", mode="wrap")
    @classmethod
    def _blank_owner(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> str | None:
        try:
            owner = handler(value)
        except ValidationError:
            return None
        return owner or None


def encode_session(windows: Iterable[WindowDescriptor]) -> str:
    """Serialize descriptors in order, without their content."""
    return json.dumps([window.snapshot() for window in windows])


def decode_session(raw: str | None, owner: str) -> list[StoredWindow]:
    """Parse a stored session, repairing or dropping bad entries.

    A missing, unparsable or non-list snapshot yields an empty session. When
    two entries share an id the later one wins and takes the later slot.
    """
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Discarding unparsable session for %s: %s", owner, exc)
        return []
    if not isinstance(data, list):
        logger.warning("Discarding session for %s: expected a list, got %s", owner, type(data).__name__)
        return []

    by_id: dict[str, StoredWindow] = {}
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning("Dropping session entry %d for %s: not an object", index, owner)
            continue
        try:
            stored = StoredWindow.model_validate(entry)
        except ValidationError as exc:
            logger.warning("Dropping session entry %d for %s: %s", index, owner, exc.errors()[0]["msg"])
            continue
        if stored.owner is None:
            stored.owner = owner
        if stored.id in by_id:
            logger.warning("Duplicate window id %s in session for %s; keeping the last", stored.id, owner)
            del by_id[stored.id]
        by_id[stored.id] = stored
    return list(by_id.values())


def rehydrate(stored: list[StoredWindow], factory: ContentFactory) -> list[WindowDescriptor]:
    """Attach freshly built content to each restored descriptor."""
    windows: list[WindowDescriptor] = []
    for item in stored:
        owner = item.owner or ""
        built = factory(item.app_type, item.payload, owner)
        windows.append(
            WindowDescriptor(
                id=item.id,
                app_type=item.app_type,
                title=built.title,
                position=item.position,
                size=item.size,
                is_minimized=item.is_minimized,
                is_maximized=item.is_maximized,
                z_index=item.z_index,
                payload=item.payload,
                owner=owner,
                content=built.content,
            )
        )
    return windows
