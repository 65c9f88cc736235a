"""
BasketballController — Layer 2 (Game Logic)

Owns the ball, the control state and the physics engine.
Communicates with Layer 3 (server.py / main.py renderers) via two queues:
  - pending_events  : UI commands (shot, ball_rest, reset, orbit, update_power_meter)
  - physics_events  : collision events for sound playback

Layer 3 calls:
  ctrl.key_down(key) / ctrl.key_up(key)  — discrete input events
  ctrl.tick(dt)                          — translate/charge or integrate, once per frame
  ctrl.ball.position                     — render sync
  ctrl.power_percent                     — power meter readout
"""

import math
import numpy as np
from dataclasses import dataclass, field

from court import CourtBounds, DEFAULT_BOUNDS, target_side
from physics import PhysicsEngine, Ball, SPAWN_POSITION


# ── Logical key names ─────────────────────────────────────────────────────────
KEY_LEFT  = "left"
KEY_RIGHT = "right"
KEY_UP    = "up"
KEY_DOWN  = "down"
KEY_SHOOT = "space"
KEY_RESET = "r"
KEY_ORBIT = "o"

LOGICAL_KEYS = frozenset({KEY_LEFT, KEY_RIGHT, KEY_UP, KEY_DOWN,
                          KEY_SHOOT, KEY_RESET, KEY_ORBIT})

# Browser (KeyboardEvent.key) and Ursina names → logical names
_KEY_ALIASES = {
    "arrowleft":   KEY_LEFT,
    "left arrow":  KEY_LEFT,
    "arrowright":  KEY_RIGHT,
    "right arrow": KEY_RIGHT,
    "arrowup":     KEY_UP,
    "up arrow":    KEY_UP,
    "arrowdown":   KEY_DOWN,
    "down arrow":  KEY_DOWN,
    " ":           KEY_SHOOT,
    "spacebar":    KEY_SHOOT,
}

# ── Default info-bar message ───────────────────────────────────────────────────
DEFAULT_INFO_MSG = (
    "[Arrows] Move ball  [Space] Hold for power, release to shoot  "
    "[R] Reset  [O] Orbit camera"
)


def normalize_key(key) -> str:
    """Map a host key name to a logical key name ("" for non-strings)."""
    if not isinstance(key, str):
        return ""
    k = key.lower()
    return _KEY_ALIASES.get(k, k)


@dataclass
class ControlState:
    """Player input state: held keys, shot charge and camera toggle."""
    shot_power: float = 0.0
    power_increasing: bool = True
    keys_held: set = field(default_factory=set)
    orbit_enabled: bool = True


class BasketballController:
    """Layer 2: input state machine + physics orchestration."""

    # ── Class-level constants ─────────────────────────────────────────────────
    MOVE_STEP         = 0.1    # per frame, not dt-scaled
    POWER_STEP        = 0.3    # per frame
    MAX_SHOT_POWER    = 15.0
    AIM_DIRECTION     = (1.0, 0.5, 0.0)   # mirrored in x for the left hoop
    POWER_HOT_PERCENT = 80
    MAX_SUBSTEPS      = 8

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self, bounds: CourtBounds = DEFAULT_BOUNDS, fixed_dt: float = None):
        if fixed_dt is not None and not PhysicsEngine.valid_dt(fixed_dt):
            raise ValueError(f"fixed_dt must be in (0, MAX_DT], got {fixed_dt!r}")

        # Physics
        self.bounds  = bounds
        self.engine  = PhysicsEngine(bounds)
        self.ball    = Ball()
        self.fixed_dt = fixed_dt
        self._accumulator = 0.0

        # Input
        self.control = ControlState()

        # Status / info messages (L3 reads these to update text entities)
        self.status_msg = "Ready. Hold Space to charge a shot."
        self.info_msg   = DEFAULT_INFO_MSG

        # Event queues
        self.pending_events: list[dict] = []   # L3 UI commands
        self.physics_events: list[dict] = []   # bounce sounds

    # ──────────────────────────────────────────────────────────────────────────
    # Read-only views
    # ──────────────────────────────────────────────────────────────────────────

    @property
    def is_moving(self) -> bool:
        return self.ball.is_moving()

    @property
    def mode(self) -> str:
        """ "moving" | "charging" | "idle" """
        if self.ball.is_moving():
            return "moving"
        if KEY_SHOOT in self.control.keys_held:
            return "charging"
        return "idle"

    @property
    def orbit_enabled(self) -> bool:
        return self.control.orbit_enabled

    @property
    def power_percent(self) -> int:
        return int(round(self.control.shot_power / self.MAX_SHOT_POWER * 100))

    @property
    def power_hot(self) -> bool:
        return self.power_percent > self.POWER_HOT_PERCENT

    def get_state(self) -> dict:
        """Plain-data snapshot of ball and control state."""
        return {
            "position": [float(v) for v in self.ball.position],
            "velocity": [float(v) for v in self.ball.velocity],
            "mode": self.mode,
            "moving": self.ball.is_moving(),
            "shot_power": float(self.control.shot_power),
            "power_percent": self.power_percent,
            "power_increasing": self.control.power_increasing,
            "keys_held": sorted(self.control.keys_held),
            "orbit_enabled": self.control.orbit_enabled,
        }

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def tick(self, dt: float) -> None:
        """Advance one frame. Called every frame by L3.

        Exactly one position writer runs: held-key translation while idle,
        the integrator while moving.
        """
        self.physics_events.clear()
        if self.ball.is_moving():
            self._step_physics(dt)
        else:
            self.update_controls()

    def _step_physics(self, dt: float) -> None:
        if self.fixed_dt is None:
            self._advance(dt)
            return

        try:
            dt = float(dt)
        except (TypeError, ValueError):
            return
        if not math.isfinite(dt) or dt <= 0:
            return

        self._accumulator += dt
        steps = 0
        while (self._accumulator >= self.fixed_dt and steps < self.MAX_SUBSTEPS
               and self.ball.is_moving()):
            self._advance(self.fixed_dt)
            self._accumulator -= self.fixed_dt
            steps += 1

        # Drop the backlog after a hitch or once the ball has settled
        if not self.ball.is_moving() or self._accumulator >= self.fixed_dt:
            self._accumulator = 0.0

    def _advance(self, dt: float) -> None:
        self.engine.advance(self.ball, dt)
        self.physics_events.extend(self.engine.events)
        if not self.ball.is_moving():
            self._on_ball_rest()

    def _on_ball_rest(self) -> None:
        pos = [round(float(v), 3) for v in self.ball.position]
        print(f"[REST] ball settled at {pos}")
        self.pending_events.append({"type": "ball_rest", "position": pos})
        self.status_msg = "Ball at rest. Move with arrows, hold Space to shoot."

    # ──────────────────────────────────────────────────────────────────────────
    # Idle controls: translation + power charging
    # ──────────────────────────────────────────────────────────────────────────

    def update_controls(self) -> None:
        """Apply held movement keys and the shot-power charge for this frame."""
        if self.ball.is_moving():
            return

        keys = self.control.keys_held
        pos = self.ball.position
        if KEY_LEFT in keys:
            pos[0] -= self.MOVE_STEP
        if KEY_RIGHT in keys:
            pos[0] += self.MOVE_STEP
        if KEY_UP in keys:
            pos[2] -= self.MOVE_STEP
        if KEY_DOWN in keys:
            pos[2] += self.MOVE_STEP
        self.bounds.clamp(pos, self.ball.radius)

        if KEY_SHOOT in keys:
            self._charge_power()

    def _charge_power(self) -> None:
        # Triangle wave between 0 and MAX_SHOT_POWER while Space is held
        c = self.control
        if c.power_increasing:
            c.shot_power += self.POWER_STEP
            if c.shot_power >= self.MAX_SHOT_POWER:
                c.shot_power = self.MAX_SHOT_POWER
                c.power_increasing = False
        else:
            c.shot_power -= self.POWER_STEP
            if c.shot_power <= 0:
                c.shot_power = 0.0
                c.power_increasing = True
        self.pending_events.append({"type": "update_power_meter"})

    # ──────────────────────────────────────────────────────────────────────────
    # Input events
    # ──────────────────────────────────────────────────────────────────────────

    def key_down(self, key) -> None:
        """Handle a key press. Unknown keys and repeats of a held key are ignored."""
        key = normalize_key(key)
        if key not in LOGICAL_KEYS or key in self.control.keys_held:
            return
        self.control.keys_held.add(key)

        if key == KEY_ORBIT:
            self.control.orbit_enabled = not self.control.orbit_enabled
            self.pending_events.append({"type": "orbit", "enabled": self.control.orbit_enabled})
        elif key == KEY_RESET:
            self.reset()
        elif key == KEY_SHOOT and not self.ball.is_moving():
            self.control.shot_power = 0.0
            self.control.power_increasing = True
            self.status_msg = "Charging... release Space to shoot."

    def key_up(self, key) -> None:
        """Handle a key release; releasing Space fires the charged shot."""
        key = normalize_key(key)
        self.control.keys_held.discard(key)
        if key == KEY_SHOOT:
            self.shoot()

    def release_keys(self) -> None:
        """Forget every held key without firing (e.g. client disconnect)."""
        self.control.keys_held.clear()

    # ──────────────────────────────────────────────────────────────────────────
    # Shooting
    # ──────────────────────────────────────────────────────────────────────────

    def aim_direction(self) -> np.ndarray:
        """Fixed aim vector toward the hoop picked by the ball's x side."""
        x, y, z = self.AIM_DIRECTION
        sign = 1.0 if target_side(self.ball.position[0]) == "right" else -1.0
        return np.array([sign * x, y, z])

    def shoot(self) -> bool:
        """Launch with the captured power. Returns False when ignored."""
        c = self.control
        if self.ball.is_moving() or c.shot_power <= 0:
            return False

        power = c.shot_power
        self.engine.launch(self.ball, self.aim_direction(), power)
        c.shot_power = 0.0
        c.power_increasing = True

        vel = [round(float(v), 3) for v in self.ball.velocity]
        print(f"[SHOT] power={power:.1f}  velocity={vel}  "
              f"target={target_side(self.ball.position[0])}")
        self.pending_events.append({"type": "shot", "power": float(power), "velocity": vel})
        self.pending_events.append({"type": "update_power_meter"})
        self.status_msg = "Shot!"
        return True

    # ──────────────────────────────────────────────────────────────────────────
    # Reset
    # ──────────────────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Return the ball to the spawn point at rest with no charge."""
        self.ball.reset(SPAWN_POSITION)
        self.control.shot_power = 0.0
        self.control.power_increasing = True
        self._accumulator = 0.0
        self.physics_events.clear()

        print("[RESET] ball back at centre court")
        self.pending_events.append({"type": "reset"})
        self.pending_events.append({"type": "update_power_meter"})
        self.status_msg = "Ball reset to centre court."
