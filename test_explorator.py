# encoding:utf-8
"""
@time   :    2026/10/14 14:30
@project:    FlowCover
"""
import argparse
import math
import os
import tempfile
from unittest import TestCase

import numpy as np
import yaml

from config import Config
from explore_gate import single_explore_from_args
from flowcover.Explorator import FlowNetworkExplorator
from flowcover.solver.SolverStatus import StartNodeError, ExplorationError
from flowcover.utils.common_utils import path_to_poses, map_fov_path_to_robot_path
from logger_config import logger

current_dir = os.path.dirname(os.path.abspath(__file__))
config_path = os.path.join(current_dir, "config.yaml")


def explore(room_map, room_min_max_coordinates, starting_position=(5, 5), cell_size=2, coverage_radius=3):
    explorator = FlowNetworkExplorator()
    return explorator.get_exploration_path(room_map=room_map,
                                           map_resolution=0.05,
                                           starting_position=starting_position,
                                           map_origin=(0.0, 0.0),
                                           cell_size=cell_size,
                                           room_min_max_coordinates=room_min_max_coordinates,
                                           robot_to_fov_vector=(0.0, 0.0),
                                           coverage_radius=coverage_radius,
                                           plan_for_footprint=False,
                                           sparsity_check_range=20)


class TestExplorator(TestCase):

    def test_free_room(self):
        room_map = np.zeros((12, 12), dtype=np.uint8)
        room_map[1:11, 1:11] = 255
        result = explore(room_map, ((1, 1), (10, 10)))

        self.assertEqual(result.statuses['multi_stage'], 'OPTIMAL')
        self.assertTrue(all(status == 'OPTIMAL' for status in result.statuses['three_stage']))
        self.assertTrue(1 <= len(result.history) <= 50)

        self.assertEqual(result.start_node, (7, 3))
        self.assertEqual(result.pixel_path[0], (5, 5))
        self.assertEqual(result.path_arcs[0].start, (7, 3))
        for prev, arc in zip(result.path_arcs, result.path_arcs[1:]):
            self.assertEqual(prev.end, arc.start)
        self.assertEqual(len(result.path_arcs), result.stages)

        self.assertEqual(result.excluded_cells, [])
        self.assert_all_cells_covered(result)

        self.assertEqual(len(result.poses), len(result.pixel_path))
        self.assertAlmostEqual(result.poses[0][0], 0.25)
        self.assertAlmostEqual(result.poses[0][1], 0.25)

    def test_free_grid_without_obstacles(self):
        # no wall pixel at all, the rectangle border bounds the room
        room_map = np.full((10, 10), 255, dtype=np.uint8)
        result = explore(room_map, ((0, 0), (9, 9)))

        self.assertEqual(result.statuses['multi_stage'], 'OPTIMAL')
        self.assertEqual(len(result.cell_centers), 25)
        self.assertEqual(result.excluded_cells, [])
        self.assertEqual(result.start_node, (6, 7))
        self.assertEqual(result.pixel_path[0], (5, 5))
        for prev, arc in zip(result.path_arcs, result.path_arcs[1:]):
            self.assertEqual(prev.end, arc.start)
        self.assert_all_cells_covered(result)

    def assert_all_cells_covered(self, result):
        path = np.asarray(result.pixel_path, dtype=float)
        for cell in result.cell_centers:
            distances = np.hypot(path[:, 0] - cell[0], path[:, 1] - cell[1])
            self.assertLessEqual(distances.min(), 3 * 1.1 + 1e-9, f"cell {cell} not covered")

    def test_blocked_map(self):
        room_map = np.zeros((10, 10), dtype=np.uint8)
        room_map[5, 5] = 255

        with self.assertLogs(logger, 'WARNING') as logs:
            with self.assertRaises(StartNodeError):
                explore(room_map, ((0, 0), (9, 9)), cell_size=1)
        self.assertTrue(any("not coverable" in line for line in logs.output))

    def test_errors_are_runtime_errors(self):
        self.assertTrue(issubclass(StartNodeError, ExplorationError))
        self.assertTrue(issubclass(ExplorationError, RuntimeError))


class TestPoses(TestCase):

    def test_heading_towards_next_point(self):
        poses = path_to_poses([(0, 0), (1, 0), (1, 1)], map_resolution=0.5, map_origin=(1.0, 2.0))
        self.assertEqual(len(poses), 3)
        self.assertAlmostEqual(poses[0][0], 1.0)
        self.assertAlmostEqual(poses[0][1], 2.0)
        self.assertAlmostEqual(poses[0][2], 0.0)
        self.assertAlmostEqual(poses[1][2], math.pi / 2)
        # last pose keeps the heading
        self.assertAlmostEqual(poses[2][2], math.pi / 2)
        self.assertAlmostEqual(poses[2][0], 1.5)
        self.assertAlmostEqual(poses[2][1], 2.5)

    def test_fov_offset(self):
        robot_poses = map_fov_path_to_robot_path([(2.0, 2.0, math.pi / 2)], (1.0, 0.0))
        x, y, theta = robot_poses[0]
        self.assertAlmostEqual(x, 2.0)
        self.assertAlmostEqual(y, 1.0)
        self.assertAlmostEqual(theta, math.pi / 2)


class TestConfig(TestCase):

    def setUp(self):
        with open(config_path, 'r', encoding='utf-8') as f:
            self.yaml_config = yaml.safe_load(f)

    def test_load_from_yaml(self):
        config = Config(self.yaml_config, base_dir=current_dir)
        config.load_from_yaml()

        self.assertEqual(config.map_name, "room_demo")
        self.assertEqual(config.room_map.shape, (24, 30))
        self.assertEqual(config.room_bounds_pixels(), ((1, 1), (28, 22)))
        self.assertAlmostEqual(config.coverage_radius_pixels(), 5.0)
        self.assertEqual(config.starting_position_pixels(), (10, 10))
        self.assertEqual(config.explorator_params.solver_backend, 'scipy')
        self.assertEqual(config.explorator_params.max_iterations, 50)

    def test_bounds_from_free_space(self):
        self.yaml_config['params'].pop('room_min_max_coordinates')
        config = Config(self.yaml_config, base_dir=current_dir)
        config.load_from_yaml()
        self.assertEqual(config.room_bounds_pixels(), ((1, 1), (28, 22)))

    def test_gate_reports_failure(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            map_path = os.path.join(tmp_dir, "blocked.npy")
            np.save(map_path, np.zeros((10, 10), dtype=np.uint8))
            args = argparse.Namespace(config=config_path, map_path=map_path,
                                      store_path=tmp_dir, starting_position=None)
            result = single_explore_from_args(args)

        self.assertIsNone(result["poses"])
        self.assertIsNotNone(result["error"])
