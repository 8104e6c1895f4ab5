# =============================================================================
# Field Radar - Coordinate Transforms
# =============================================================================
# Mappings between the sensor (range sensor), camera (zoomed image) and world
# coordinate frames.
# =============================================================================

import numpy as np
from typing import Tuple


def to_homogeneous(points: np.ndarray) -> np.ndarray:
    """
    Appends a column of ones to an (N, 3) array.

    Args:
        points: Points [[x, y, z], ...]

    Returns:
        (N, 4) homogeneous points
    """
    return np.hstack([points, np.ones((points.shape[0], 1))])


def invert_rigid_transform(transform: np.ndarray) -> np.ndarray:
    """
    Inverts a 4x4 rigid transform [R | t].

    Args:
        transform: 4x4 homogeneous rigid transform

    Returns:
        4x4 inverse transform [R^T | -R^T t]
    """
    R = transform[:3, :3]
    t = transform[:3, 3]
    inverse = np.eye(4)
    inverse[:3, :3] = R.T
    inverse[:3, 3] = -R.T @ t
    return inverse


class CoordinateTransformer:
    """
    Stateless conversions between sensor, camera and world frames.

    Camera coordinates are (u, v, depth) where (u, v) are pixel coordinates
    in the zoomed image and depth is the z coordinate in the camera frame.
    All methods accept a single point (3,) or a batch (N, 3) and return the
    same shape.
    """

    def __init__(self, intrinsic: np.ndarray, sensor_to_camera: np.ndarray,
                 world_to_camera: np.ndarray, zoom_factor: float):
        """
        Args:
            intrinsic: 3x3 pinhole camera matrix (original resolution)
            sensor_to_camera: 4x4 rigid transform sensor -> camera
            world_to_camera: 4x4 rigid transform world -> camera
            zoom_factor: Scale from original to zoomed pixel coordinates
        """
        self.intrinsic = np.asarray(intrinsic, dtype=np.float64)
        self.intrinsic_inv = np.linalg.inv(self.intrinsic)
        self.sensor_to_camera_transform = np.asarray(sensor_to_camera, dtype=np.float64)
        self.camera_to_sensor_transform = invert_rigid_transform(self.sensor_to_camera_transform)
        self.camera_to_world_transform = invert_rigid_transform(
            np.asarray(world_to_camera, dtype=np.float64))
        self.sensor_to_world_transform = self.camera_to_world_transform @ self.sensor_to_camera_transform
        self.zoom_factor = zoom_factor

    def sensor_to_world(self, points: np.ndarray) -> np.ndarray:
        """
        Transforms points from sensor frame to world frame.

        Args:
            points: Point(s) in sensor frame

        Returns:
            Point(s) in world frame
        """
        points = np.asarray(points, dtype=np.float64)
        batch = np.atleast_2d(points)
        world = (self.sensor_to_world_transform @ to_homogeneous(batch).T).T[:, :3]
        return world.reshape(points.shape)

    def sensor_to_camera(self, points: np.ndarray) -> np.ndarray:
        """
        Projects points from sensor frame onto the zoomed image.

        Points with depth <= 0 yield non-finite pixel coordinates; callers
        filter them by depth.

        Args:
            points: Point(s) in sensor frame

        Returns:
            (u, v, depth) per point
        """
        points = np.asarray(points, dtype=np.float64)
        batch = np.atleast_2d(points)
        camera = (self.sensor_to_camera_transform @ to_homogeneous(batch).T).T[:, :3]
        pixels = (self.intrinsic @ camera.T).T
        depth = pixels[:, 2]
        with np.errstate(divide='ignore', invalid='ignore'):
            u = pixels[:, 0] * self.zoom_factor / depth
            v = pixels[:, 1] * self.zoom_factor / depth
        return np.column_stack([u, v, depth]).reshape(points.shape)

    def camera_to_sensor(self, uvd: np.ndarray) -> np.ndarray:
        """
        Back-projects zoomed pixel coordinates with depth into sensor frame.

        Args:
            uvd: (u, v, depth) per point

        Returns:
            Point(s) in sensor frame
        """
        uvd = np.asarray(uvd, dtype=np.float64)
        batch = np.atleast_2d(uvd)
        depth = batch[:, 2:3]
        rays = np.column_stack([batch[:, 0] / self.zoom_factor,
                                batch[:, 1] / self.zoom_factor,
                                np.ones(batch.shape[0])])
        camera = (self.intrinsic_inv @ rays.T).T * depth
        sensor = (self.camera_to_sensor_transform @ to_homogeneous(camera).T).T[:, :3]
        return sensor.reshape(uvd.shape)

    def zoom_rect(self, rect: Tuple[float, float, float, float],
                  width: int, height: int) -> Tuple[int, int, int, int]:
        """
        Maps a box from original to zoomed image coordinates.

        The box is scaled about its own center and clipped to the image.

        Args:
            rect: Box (x, y, w, h) in original image coordinates
            width: Zoomed image width
            height: Zoomed image height

        Returns:
            Integer box (x, y, w, h); width or height is 0 if nothing remains
        """
        x, y, w, h = rect
        center_x = x * self.zoom_factor + w * self.zoom_factor * 0.5
        center_y = y * self.zoom_factor + h * self.zoom_factor * 0.5
        zoomed_w = int(w * self.zoom_factor)
        zoomed_h = int(h * self.zoom_factor)
        zoomed_x = int(center_x - zoomed_w * 0.5)
        zoomed_y = int(center_y - zoomed_h * 0.5)

        x0 = max(zoomed_x, 0)
        y0 = max(zoomed_y, 0)
        x1 = min(zoomed_x + zoomed_w, width)
        y1 = min(zoomed_y + zoomed_h, height)
        return x0, y0, max(x1 - x0, 0), max(y1 - y0, 0)
