# =============================================================================
# Field Radar - Singer Kalman Filter
# =============================================================================
# Kalman filter with the Singer (exponentially correlated acceleration)
# motion model for 3D robot tracking.
# =============================================================================

import numpy as np
from typing import Sequence

from .config import (
    TRACK_OBSERVATION_NOISE,
    TRACK_MAX_ACCELERATION,
    TRACK_ACCELERATION_CORRELATION_TIME,
    TRACK_INITIAL_VELOCITY_STD
)


def singer_transition(dt: float, alpha: float) -> np.ndarray:
    """
    Single-axis Singer transition matrix.

    Args:
        dt: Elapsed time (s)
        alpha: Inverse acceleration correlation time (1/s)

    Returns:
        3x3 matrix over [position, velocity, acceleration]
    """
    at = alpha * dt
    e = np.exp(-at)
    return np.array([
        [1.0, dt, (at - 1.0 + e) / alpha**2],
        [0.0, 1.0, (1.0 - e) / alpha],
        [0.0, 0.0, e]
    ])


def singer_process_noise(dt: float, alpha: float, sigma_a: float) -> np.ndarray:
    """
    Single-axis Singer process noise covariance.

    Args:
        dt: Elapsed time (s)
        alpha: Inverse acceleration correlation time (1/s)
        sigma_a: Acceleration standard deviation (m/s^2)

    Returns:
        3x3 covariance over [position, velocity, acceleration]
    """
    a = alpha
    at = a * dt
    e1 = np.exp(-at)
    e2 = np.exp(-2.0 * at)

    q11 = (1.0 - e2 + 2.0 * at + 2.0 * at**3 / 3.0 - 2.0 * at**2 - 4.0 * at * e1) / (2.0 * a**5)
    q12 = (e2 + 1.0 - 2.0 * e1 + 2.0 * at * e1 - 2.0 * at + at**2) / (2.0 * a**4)
    q13 = (1.0 - e2 - 2.0 * at * e1) / (2.0 * a**3)
    q22 = (4.0 * e1 - 3.0 - e2 + 2.0 * at) / (2.0 * a**3)
    q23 = (e2 + 1.0 - 2.0 * e1) / (2.0 * a**2)
    q33 = (1.0 - e2) / (2.0 * a)

    return 2.0 * a * sigma_a**2 * np.array([
        [q11, q12, q13],
        [q12, q22, q23],
        [q13, q23, q33]
    ])


class SingerKalmanFilter:
    """
    Kalman filter with the Singer acceleration model.

    State: [x, y, z, vx, vy, vz, ax, ay, az]
    Observation: [x, y, z]

    Acceleration is modeled as a zero-mean process decaying with time
    constant tau; its variance follows from the maximum acceleration.
    """

    def __init__(self, position: np.ndarray,
                 observation_noise: Sequence[float] = TRACK_OBSERVATION_NOISE,
                 max_acceleration: float = TRACK_MAX_ACCELERATION,
                 tau: float = TRACK_ACCELERATION_CORRELATION_TIME,
                 initial_velocity_std: float = TRACK_INITIAL_VELOCITY_STD):
        """
        Initialize the filter at a measured position.

        Args:
            position: First measured position [x, y, z]
            observation_noise: Measurement std per axis (m)
            max_acceleration: Maximum target acceleration (m/s^2)
            tau: Acceleration correlation time (s)
            initial_velocity_std: Initial velocity std (m/s)
        """
        self.alpha = 1.0 / tau
        # Variance of a uniform acceleration in [-a_max, a_max]
        self.sigma_a = max_acceleration / np.sqrt(3.0)

        # Observation matrix (we only observe position)
        self.H = np.hstack([np.eye(3), np.zeros((3, 6))])

        # Measurement noise covariance
        noise = np.asarray(observation_noise, dtype=np.float64)
        self.R = np.diag(noise**2)

        # State vector and covariance
        self.x = np.zeros(9)
        self.x[0:3] = np.asarray(position, dtype=np.float64)
        self.P = np.diag(np.concatenate([
            noise**2,
            np.full(3, initial_velocity_std**2),
            np.full(3, self.sigma_a**2)
        ]))

    def predict(self, dt: float):
        """
        Prediction step: propagate state by dt seconds.

        Args:
            dt: Elapsed time (s), negative values are treated as zero
        """
        dt = max(dt, 0.0)
        if dt == 0.0:
            return
        F = np.kron(singer_transition(dt, self.alpha), np.eye(3))
        Q = np.kron(singer_process_noise(dt, self.alpha, self.sigma_a), np.eye(3))
        self.x = F @ self.x
        self.P = F @ self.P @ F.T + Q

    def update(self, z: np.ndarray) -> np.ndarray:
        """
        Update step: incorporate a position measurement.

        Args:
            z: Measurement [x, y, z]

        Returns:
            Updated state vector
        """
        z = np.asarray(z, dtype=np.float64).reshape(3)

        # Innovation (measurement residual)
        y = z - self.H @ self.x
        S = self.H @ self.P @ self.H.T + self.R

        # Kalman Gain
        K = self.P @ self.H.T @ np.linalg.inv(S)
        self.x = self.x + K @ y

        # Joseph form keeps P symmetric positive definite
        I_KH = np.eye(9) - K @ self.H
        self.P = I_KH @ self.P @ I_KH.T + K @ self.R @ K.T

        return self.x.copy()

    def get_position(self) -> np.ndarray:
        """Returns estimated position [x, y, z]."""
        return self.x[0:3].copy()

    def get_velocity(self) -> np.ndarray:
        """Returns estimated velocity [vx, vy, vz]."""
        return self.x[3:6].copy()
