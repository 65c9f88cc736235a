"""
Basketball Free-Flight Physics Engine
Gravity, damped floor/wall bounces and per-frame drag for a single ball.
"""

import enum
import math
import numpy as np
from dataclasses import dataclass, field

from court import CourtBounds, DEFAULT_BOUNDS, FLOOR_HEIGHT

# ──────────────────────────────────────────────
# Constants (SI units)
# ──────────────────────────────────────────────
BALL_RADIUS: float = 0.24  # m
SPAWN_POSITION: tuple = (0.0, FLOOR_HEIGHT + BALL_RADIUS, 0.0)

# Integrator safety ceiling: longer frames are skipped to avoid tunnelling
MAX_DT: float = 0.1  # s

# ── Runtime-editable behavior constants ───────────────────────────────────────
# These are read by name every call, so hosts can mutate them live via:
#   import physics as _phys;  _phys.AIR_DRAG = 0.98
GRAVITY: float = 9.81               # m/s^2, applied downward
BOUNCE_DAMPING: float = 0.7         # fraction of speed kept after a reflection
AIR_DRAG: float = 0.99              # per-frame velocity scale (not dt-normalised)
MIN_BOUNCE_SPEED: float = 0.5       # floor rebounds slower than this are killed
REST_SPEED: float = 0.1             # below this (after a killed bounce) the ball rests
MIN_LAUNCH_VY: float = 2.0          # every shot leaves the floor at least this fast


class BallMode(enum.Enum):
    IDLE = 0      # position driven by player input
    MOVING = 1    # position driven by the integrator


@dataclass
class Ball:
    """Basketball with position, velocity and the mode gating who moves it."""
    position: np.ndarray = field(default_factory=lambda: np.array(SPAWN_POSITION))
    velocity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0]))
    radius: float = BALL_RADIUS
    mode: BallMode = BallMode.IDLE

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def is_moving(self) -> bool:
        return self.mode == BallMode.MOVING

    def reset(self, spawn=SPAWN_POSITION) -> None:
        """Reinitialise in place at the spawn point, at rest."""
        self.position[:] = spawn
        self.velocity[:] = 0.0
        self.mode = BallMode.IDLE


class PhysicsEngine:
    """Single-ball free-flight integrator bounded by the court."""

    def __init__(self, bounds: CourtBounds = DEFAULT_BOUNDS):
        self.bounds = bounds
        self.events: list = []

    @staticmethod
    def valid_dt(dt) -> bool:
        """True for finite frame times in (0, MAX_DT]."""
        try:
            dt = float(dt)
        except (TypeError, ValueError):
            return False
        return math.isfinite(dt) and 0.0 < dt <= MAX_DT

    # ──────────────────────────────────────────
    # Launch
    # ──────────────────────────────────────────
    @staticmethod
    def launch(ball: Ball, direction, power: float) -> Ball:
        """
        Put the ball into free flight.

        Args:
            ball: The ball being shot.
            direction: Aim vector; only its direction matters.
            power: Launch speed before the vertical floor is applied.

        The vertical component is raised to MIN_LAUNCH_VY when lower, so every
        shot leaves the floor. Zero-length aims and non-positive power are
        ignored.
        """
        direction = np.array(direction, dtype=float)
        norm = np.linalg.norm(direction)
        if norm < 1e-9 or not power > 0:
            return ball
        ball.velocity = direction / norm * power
        ball.velocity[1] = max(ball.velocity[1], MIN_LAUNCH_VY)
        ball.mode = BallMode.MOVING
        return ball

    # ──────────────────────────────────────────
    # Collisions
    # ──────────────────────────────────────────
    def _resolve_floor(self, ball: Ball) -> None:
        """Clamp to the floor and reflect downward motion with damping."""
        min_y = self.bounds.floor_height + ball.radius
        if ball.position[1] > min_y:
            return
        ball.position[1] = min_y
        if ball.velocity[1] >= 0:
            return

        impact_speed = -ball.velocity[1]
        ball.velocity[1] *= -BOUNCE_DAMPING
        if abs(ball.velocity[1]) < MIN_BOUNCE_SPEED:
            ball.velocity[1] = 0.0
            if ball.speed < REST_SPEED:
                ball.velocity[:] = 0.0
                ball.mode = BallMode.IDLE
        self.events.append({"type": "floor", "speed": float(impact_speed)})
        if ball.mode == BallMode.IDLE:
            self.events.append({"type": "rest"})

    def _resolve_walls(self, ball: Ball) -> None:
        """Clamp x/z to the court and reflect each clamped axis independently."""
        clamped = self.bounds.clamp(ball.position, ball.radius)
        for axis, name, hit in ((0, "x", clamped[0]), (2, "z", clamped[1])):
            if not hit:
                continue
            impact_speed = abs(ball.velocity[axis])
            ball.velocity[axis] *= -BOUNCE_DAMPING
            self.events.append({"type": "wall", "axis": name, "speed": float(impact_speed)})

    # ──────────────────────────────────────────
    # Main Update Loop
    # ──────────────────────────────────────────
    def advance(self, ball: Ball, dt: float) -> Ball:
        """Advance a ball in free flight by dt seconds (in place).

        No-op while the ball is idle or when dt is outside (0, MAX_DT].
        """
        self.events.clear()
        if not ball.is_moving() or not self.valid_dt(dt):
            return ball

        # Gravity first, then move with the updated velocity
        ball.velocity[1] -= GRAVITY * dt
        ball.position = ball.position + ball.velocity * dt

        self._resolve_floor(ball)
        self._resolve_walls(ball)

        ball.velocity *= AIR_DRAG
        return ball

    def simulate(self, ball: Ball, dt: float = 1 / 60,
                 max_time: float = 30.0) -> float:
        """
        Run simulation until the ball rests or max_time is reached.

        Returns:
            Elapsed time in seconds.
        """
        t = 0.0
        if not self.valid_dt(dt):
            return t
        while t < max_time and ball.is_moving():
            self.advance(ball, dt)
            t += dt
        return t
