# encoding:utf-8
"""
@time   :    2026/10/14 09:30
@project:    FlowCover
"""

import argparse
import os
import time
import traceback

import pandas as pd
import yaml

from config import Config
from flowcover.AlgoTimer import AlgoTimer
from flowcover.Explorator import FlowNetworkExplorator
from flowcover.solver.SolverStatus import ExplorationError
from flowcover.utils.common_utils import set_seed
from logger_config import logger

current_dir = os.path.dirname(os.path.abspath(__file__))
config_path = os.path.join(current_dir, "config.yaml")
base_dir = os.path.abspath(current_dir)


def run_explorator(config: Config, timer):
    explorator = FlowNetworkExplorator(config.explorator_params)
    try:
        result = explorator.get_exploration_path(
            room_map=config.room_map,
            map_resolution=config.map_resolution,
            starting_position=config.starting_position_pixels(),
            map_origin=config.map_origin,
            cell_size=config.cell_size,
            room_min_max_coordinates=config.room_bounds_pixels(),
            robot_to_fov_vector=config.robot_to_fov_vector,
            coverage_radius=config.coverage_radius_pixels(),
            plan_for_footprint=config.plan_for_footprint,
            sparsity_check_range=config.sparsity_check_range,
            robot_radius=config.robot_radius_pixels(),
        )
    except ExplorationError as e:
        logger.error(f"exploration error: {traceback.format_exc(limit=99999)}")
        return {"poses": None, "error": str(e)}

    timer.time_to_start("explore", config.map_name)
    store_result(config, explorator, result)
    return {"poses": result.poses, "excluded_cells": result.excluded_cells,
            "history": result.history, "error": None}


def store_result(config: Config, explorator, result):
    os.makedirs(config.store_path, exist_ok=True)
    poses_df = pd.DataFrame(result.poses, columns=["x", "y", "theta"])
    poses_file = os.path.join(config.store_path, f"{config.map_name}_poses.csv")
    poses_df.to_csv(poses_file, index=False)
    logger.info(f"{len(poses_df)} poses written to {poses_file}")

    if config.store_history:
        history_file = os.path.join(config.store_path, f"{config.map_name}_history.csv")
        explorator.reweight_solver.history_df().to_csv(history_file, index=False)


def single_explore(config_file=None):
    timer = AlgoTimer(time.time())
    set_seed()

    with open(config_file or config_path, 'r', encoding='utf-8') as f:
        yaml_config = yaml.safe_load(f)

    config = Config(yaml_config, base_dir=base_dir)
    config.load_from_yaml()
    return run_explorator(config, timer)


def single_explore_from_args(args):
    timer = AlgoTimer(time.time())
    set_seed()

    with open(args.config or config_path, 'r', encoding='utf-8') as f:
        yaml_config = yaml.safe_load(f)

    config = Config(yaml_config, base_dir=base_dir)
    config.load_from_args(args)
    return run_explorator(config, timer)


def main():
    parser = argparse.ArgumentParser(description="coverage path planning with a flow network")
    parser.add_argument("--config", default=None, help="yaml config, defaults to config.yaml next to this file")
    parser.add_argument("--map_path", default=None, help="occupancy grid, overrides the config")
    parser.add_argument("--store_path", default=None)
    parser.add_argument("--starting_position", type=float, nargs=2, default=None, help="x y in metres")
    args = parser.parse_args()

    if args.map_path is None:
        result = single_explore(args.config)
    else:
        result = single_explore_from_args(args)
    if result["error"] is not None:
        raise SystemExit(1)


if __name__ == '__main__':
    main()
