"""
Constant-velocity Kalman filter for a track's image-plane centroid.

State vector: [cx, cy, vx, vy]
Measurement:  [cx, cy]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class MotionNoise:
    """Variances used to configure every new track's filter."""

    initial_location_var: float = 2.0
    initial_velocity_var: float = 1.0
    motion_location_var: float = 5.0
    motion_velocity_var: float = 5.0
    measurement_var: float = 100.0

    @classmethod
    def from_dict(cls, cfg: dict) -> "MotionNoise":
        defaults = cls()
        return cls(
            initial_location_var=float(cfg.get("initial_location_var", defaults.initial_location_var)),
            initial_velocity_var=float(cfg.get("initial_velocity_var", defaults.initial_velocity_var)),
            motion_location_var=float(cfg.get("motion_location_var", defaults.motion_location_var)),
            motion_velocity_var=float(cfg.get("motion_velocity_var", defaults.motion_velocity_var)),
            measurement_var=float(cfg.get("measurement_var", defaults.measurement_var)),
        )


class ConstantVelocityKalman:
    def __init__(self, centroid: Tuple[float, float], noise: MotionNoise | None = None):
        noise = noise or MotionNoise()
        self.dim_x = 4
        self.dim_z = 2

        # x += vx, y += vy per frame
        self.F = np.eye(self.dim_x)
        self.F[0, 2] = 1.0
        self.F[1, 3] = 1.0

        self.H = np.zeros((self.dim_z, self.dim_x))
        self.H[0, 0] = 1.0
        self.H[1, 1] = 1.0

        self.Q = np.diag(
            [noise.motion_location_var, noise.motion_location_var, noise.motion_velocity_var, noise.motion_velocity_var]
        )
        self.R = np.eye(self.dim_z) * noise.measurement_var
        self.P = np.diag(
            [noise.initial_location_var, noise.initial_location_var, noise.initial_velocity_var, noise.initial_velocity_var]
        )

        self.x: NDArray[np.float64] = np.array([float(centroid[0]), float(centroid[1]), 0.0, 0.0])

    def predict(self) -> Tuple[float, float]:
        """Advance one frame and return the predicted centroid."""
        self.x = self.F @ self.x
        self.P = self.F @ self.P @ self.F.T + self.Q
        return float(self.x[0]), float(self.x[1])

    def correct(self, centroid: Tuple[float, float]) -> Tuple[float, float]:
        """Fuse an observed centroid; returns the corrected centroid."""
        z = np.asarray(centroid, dtype=np.float64)
        y = z - self.H @ self.x
        S = self.H @ self.P @ self.H.T + self.R
        K = self.P @ self.H.T @ np.linalg.inv(S)
        self.x = self.x + K @ y
        I = np.eye(self.dim_x)
        self.P = (I - K @ self.H) @ self.P
        return float(self.x[0]), float(self.x[1])

    @property
    def velocity(self) -> Tuple[float, float]:
        return float(self.x[2]), float(self.x[3])
