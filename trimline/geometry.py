from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .model import Element


PIXELS_PER_SECOND = 50.0
ELEMENT_MIN_WIDTH_PX = 80.0


@dataclass
class TimelineGeometry:
    """Pointer/time conversion owned by the rendering layer."""

    pixels_per_second: float = PIXELS_PER_SECOND
    zoom_level: float = 1.0
    element_min_width_px: float = ELEMENT_MIN_WIDTH_PX

    @property
    def scale(self) -> float:
        return max(1e-6, float(self.pixels_per_second) * float(self.zoom_level))

    def px_to_sec(self, px: float) -> float:
        return float(px) / self.scale

    def sec_to_px(self, sec: float) -> float:
        return float(sec) * self.scale

    def element_left(self, element: Element, start_time: Optional[float] = None) -> float:
        t = element.start_time if start_time is None else float(start_time)
        return self.sec_to_px(t)

    def element_width(self, element: Element) -> float:
        return max(float(self.element_min_width_px), self.sec_to_px(element.effective_duration))

    def click_time(self, element: Element, click_x_in_element: float) -> float:
        """Timeline seconds for a click `click_x_in_element` px right of the element's left edge."""
        return element.start_time + self.px_to_sec(click_x_in_element)
