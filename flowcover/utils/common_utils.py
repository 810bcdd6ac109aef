# encoding:utf-8
"""
@time   :    2026/10/12 11:02
@project:    FlowCover
"""
import math
import os
import random

import numpy as np

FREE_VALUE = 255


def set_seed(seed=7):
    os.environ['PYTHONHASHSEED'] = str(seed)

    random.seed(seed)

    np.random.seed(seed)


def free_mask(room_map):
    """Boolean mask of the free pixels, accepts 0/255 occupancy grids or boolean maps."""
    room_map = np.asarray(room_map)
    if room_map.dtype == bool:
        return room_map
    return room_map == FREE_VALUE


def is_free(mask, x, y):
    # out of the map counts as occupied
    return 0 <= y < mask.shape[0] and 0 <= x < mask.shape[1] and bool(mask[y, x])


def concat_polylines(polylines):
    """Join consecutive polylines, dropping the duplicated junction point."""
    path = []
    for polyline in polylines:
        for pt in polyline:
            pt = tuple(pt)
            if path and path[-1] == pt:
                continue
            path.append(pt)
    return path


def pixel_to_world(point, map_resolution, map_origin):
    return (point[0] * map_resolution + map_origin[0],
            point[1] * map_resolution + map_origin[1])


def path_to_poses(pixel_path, map_resolution, map_origin):
    """
    Convert a pixel path to world poses (x, y, theta).

    Each pose faces the next point of the path, the last pose keeps the previous heading.
    """
    points = [pixel_to_world(pt, map_resolution, map_origin) for pt in pixel_path]
    poses = []
    theta = 0.0
    for idx, (x, y) in enumerate(points):
        if idx + 1 < len(points):
            nx_, ny_ = points[idx + 1]
            theta = math.atan2(ny_ - y, nx_ - x)
        poses.append((x, y, theta))
    return poses


def map_fov_path_to_robot_path(fov_poses, robot_to_fov_vector):
    """
    The planned path moves the field of view centre, shift every pose back by the
    robot -> fov offset rotated into the pose heading.
    """
    vx, vy = robot_to_fov_vector
    robot_poses = []
    for x, y, theta in fov_poses:
        cos_t, sin_t = math.cos(theta), math.sin(theta)
        robot_poses.append((x - (cos_t * vx - sin_t * vy),
                            y - (sin_t * vx + cos_t * vy),
                            theta))
    return robot_poses
