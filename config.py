import os

import numpy as np

from flowcover.DataHolder import ExploratorParams


class Config:
    def __init__(self, config=None, base_dir=None):
        self.config = config
        self.paths = config['paths'] if config else {}
        self.base_dir = base_dir
        self.map_name = os.path.splitext(os.path.basename(self.paths.get('map_path', '')))[0] if config else ''

    def _full_path(self, *paths):
        # join several path parts, relative ones are resolved against base_dir
        path = os.path.join(*paths)
        if os.path.isabs(path) or self.base_dir is None:
            return path
        return os.path.join(self.base_dir, path)

    def load_from_yaml(self):
        self.load_map_data(self._full_path(self.paths['map_path']))
        self.load_params()

    def load_from_args(self, args):
        self.load_map_data(args.map_path)
        self.load_params()
        # command line values win over the yaml ones
        if getattr(args, 'store_path', None):
            self.store_path = args.store_path
        if getattr(args, 'starting_position', None):
            self.starting_position = tuple(args.starting_position)

    def load_map_data(self, map_path):
        self.map_path = map_path
        if map_path.endswith('.npy'):
            room_map = np.load(map_path)
        else:
            room_map = np.loadtxt(map_path)
        self.room_map = room_map.astype(np.uint8)

    def load_params(self):
        params = self.config['params']
        self.map_resolution = float(params['map_resolution'])
        self.map_origin = tuple(params.get('map_origin', (0.0, 0.0)))
        self.starting_position = tuple(params['starting_position'])
        self.room_min_max_coordinates = params.get('room_min_max_coordinates')
        self.cell_size = int(params['cell_size'])
        self.coverage_radius = float(params['coverage_radius'])
        self.robot_to_fov_vector = tuple(params.get('robot_to_fov_vector', (0.0, 0.0)))
        self.plan_for_footprint = bool(params.get('plan_for_footprint', False))
        self.robot_radius = float(params.get('robot_radius', 0.0))
        self.sparsity_check_range = int(params.get('sparsity_check_range', 20))
        self.store_path = self._full_path(self.paths.get('store_path', './outputs/'))
        self.store_history = bool(params.get('store_history', True))

        self.explorator_params = ExploratorParams(
            solver_backend=params.get('solver_backend', 'scipy'),
            pulp_solver=params.get('pulp_solver', 'cbc'),
            vertical_sweep=bool(params.get('vertical_sweep', False)),
            max_iterations=int(params.get('max_iterations', 50)),
            stage_divisor=int(params.get('stage_divisor', 4)),
        )

    def coverage_radius_pixels(self):
        return round(self.coverage_radius / self.map_resolution, 6)

    def robot_radius_pixels(self):
        return round(self.robot_radius / self.map_resolution, 6)

    def starting_position_pixels(self):
        x = (self.starting_position[0] - self.map_origin[0]) / self.map_resolution
        y = (self.starting_position[1] - self.map_origin[1]) / self.map_resolution
        return int(round(x)), int(round(y))

    def room_bounds_pixels(self):
        if self.room_min_max_coordinates is not None:
            (min_x, min_y), (max_x, max_y) = self.room_min_max_coordinates
            return (int(min_x), int(min_y)), (int(max_x), int(max_y))
        # bounding box of the free pixels
        ys, xs = np.nonzero(self.room_map == 255)
        if len(xs) == 0:
            return (0, 0), (-1, -1)
        return (int(xs.min()), int(ys.min())), (int(xs.max()), int(ys.max()))
