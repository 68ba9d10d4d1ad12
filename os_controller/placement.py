"""Default window placement and size clamping."""

from __future__ import annotations

from dataclasses import dataclass

from world_model.window_state import Position, Size

DEFAULT_WIDTH = 900
DEFAULT_HEIGHT = 600
# Space kept free around a window: horizontal, vertical.
VIEWPORT_MARGIN_X = 100
VIEWPORT_MARGIN_Y = 150

CASCADE_STEP = 30
CASCADE_START_X = 100
CASCADE_START_Y = 80
CASCADE_RIGHT_PADDING = 80
CASCADE_BOTTOM_PADDING = 80
CASCADE_MIN_STEPS = 3


@dataclass(frozen=True)
class Viewport:
    """Visible desktop area in pixels."""

    width: int = 1024
    height: int = 768


def clamp_size(size: Size, viewport: Viewport) -> Size:
    """Shrink ``size`` so the window fits the viewport minus margins."""
    max_width = max(1, viewport.width - VIEWPORT_MARGIN_X)
    max_height = max(1, viewport.height - VIEWPORT_MARGIN_Y)
    return Size(
        width=max(1, min(size.width, max_width)),
        height=max(1, min(size.height, max_height)),
    )


def cascade_steps(viewport: Viewport, size: Size) -> int:
    """Number of diagonal offsets that fit before the window leaves the screen."""
    steps_x = (viewport.width - size.width - CASCADE_START_X - CASCADE_RIGHT_PADDING) // CASCADE_STEP
    steps_y = (viewport.height - size.height - CASCADE_START_Y - CASCADE_BOTTOM_PADDING) // CASCADE_STEP
    return max(CASCADE_MIN_STEPS, int(min(steps_x, steps_y)))


def cascade_geometry(window_count: int, viewport: Viewport) -> tuple[Position, Size]:
    """Geometry for a newly created window given how many are already open."""
    size = clamp_size(Size(width=DEFAULT_WIDTH, height=DEFAULT_HEIGHT), viewport)
    index = window_count % cascade_steps(viewport, size)
    offset = index * CASCADE_STEP
    return Position(x=CASCADE_START_X + offset, y=CASCADE_START_Y + offset), size
