"""
Basketball Court Geometry
Fixed court, floor and hoop dimensions read by the physics core and renderers.
"""

import math
import numpy as np
from dataclasses import dataclass

# ──────────────────────────────────────────────
# Constants (metres)
# ──────────────────────────────────────────────
COURT_LENGTH: float = 30.0  # X-axis span  (-15 → +15)
COURT_WIDTH: float = 15.0   # Z-axis span  (-7.5 → +7.5)
FLOOR_THICKNESS: float = 0.2
FLOOR_HEIGHT: float = FLOOR_THICKNESS / 2  # top of the floor slab (slab centred on y = 0)

# Hoops
HOOP_OFFSET: float = 1.2       # backboard plane inset from baseline
RIM_HEIGHT: float = 3.05
RIM_RADIUS: float = 0.23
RIM_FORWARD: float = 0.30      # rim centre in front of the backboard
BACKBOARD_WIDTH: float = 1.8
BACKBOARD_HEIGHT: float = 1.0

# Markings
LINE_HEIGHT: float = 0.11      # 0.01 m above floor top
CENTER_CIRCLE_RADIUS: float = 1.8
THREE_POINT_RADIUS: float = 6.75
THREE_POINT_INSET: float = 0.15  # arc centre in front of the backboard
_ARC_OVERSHOOT: float = 0.14     # arc runs slightly past ±90°
_LINE_SEGMENTS: int = 64


@dataclass(frozen=True)
class CourtBounds:
    """Playable volume the ball is confined to."""
    half_length: float
    half_width: float
    floor_height: float

    @classmethod
    def from_dimensions(cls, length: float, width: float,
                        floor_height: float = FLOOR_HEIGHT) -> "CourtBounds":
        return cls(length / 2, width / 2, floor_height)

    def max_x(self, radius: float) -> float:
        return self.half_length - radius

    def max_z(self, radius: float) -> float:
        return self.half_width - radius

    def clamp(self, position: np.ndarray, radius: float) -> tuple:
        """Clamp x/z of ``position`` in place.

        Returns (x_clamped, z_clamped) so callers can react per axis.
        """
        max_x = self.max_x(radius)
        max_z = self.max_z(radius)
        x, z = position[0], position[2]
        position[0] = max(-max_x, min(max_x, x))
        position[2] = max(-max_z, min(max_z, z))
        return bool(position[0] != x), bool(position[2] != z)


DEFAULT_BOUNDS = CourtBounds.from_dimensions(COURT_LENGTH, COURT_WIDTH, FLOOR_HEIGHT)


# ──────────────────────────────────────────────
# Hoops
# ──────────────────────────────────────────────

def hoop_positions() -> dict:
    """Backboard plane x-position per side."""
    x = COURT_LENGTH / 2 - HOOP_OFFSET
    return {"left": -x, "right": x}


def rim_centers() -> dict:
    """Rim centre per side; the rim sits RIM_FORWARD toward centre court."""
    centers = {}
    for side, x in hoop_positions().items():
        toward_centre = 1.0 if side == "left" else -1.0
        centers[side] = np.array([x + toward_centre * RIM_FORWARD, RIM_HEIGHT, 0.0])
    return centers


def target_side(x: float) -> str:
    """Hoop a shot from x is aimed at: balls left of centre shoot right."""
    return "right" if x < 0 else "left"


# ──────────────────────────────────────────────
# Court markings
# ──────────────────────────────────────────────

def _circle(radius: float, segments: int = _LINE_SEGMENTS) -> list:
    pts = []
    for i in range(segments + 1):
        t = (i / segments) * math.pi * 2
        pts.append((math.cos(t) * radius, LINE_HEIGHT, math.sin(t) * radius))
    return pts


def _arc(x_centre: float, radius: float, facing: float,
         segments: int = _LINE_SEGMENTS) -> list:
    # facing = +1 opens toward +x (left goal), -1 toward -x (right goal)
    start = math.pi / 2 + _ARC_OVERSHOOT
    end = -math.pi / 2 - _ARC_OVERSHOOT
    pts = []
    for i in range(segments + 1):
        t = start + (i / segments) * (end - start)
        pts.append((x_centre + facing * math.cos(t) * radius,
                    LINE_HEIGHT,
                    math.sin(t) * radius))
    return pts


def court_lines() -> dict:
    """Polylines for the court markings as lists of (x, y, z) points."""
    hoops = hoop_positions()
    return {
        "center_line": [(0.0, LINE_HEIGHT, -COURT_WIDTH / 2),
                        (0.0, LINE_HEIGHT, COURT_WIDTH / 2)],
        "center_circle": _circle(CENTER_CIRCLE_RADIUS),
        "three_point_left": _arc(hoops["left"] + THREE_POINT_INSET,
                                 THREE_POINT_RADIUS, 1.0),
        "three_point_right": _arc(hoops["right"] - THREE_POINT_INSET,
                                  THREE_POINT_RADIUS, -1.0),
    }
