# encoding:utf-8
"""
@time   :    2026/10/13 16:20
@project:    FlowCover
"""
import time

from logger_config import logger
from flowcover.AlgoTimer import AlgoTimer
from flowcover.DataHolder import ExploratorParams, ExplorationResult
from flowcover.calc.ArcBuilder import ArcBuilder
from flowcover.calc.CoverageMatrix import CoverageMatrix
from flowcover.calc.metrics import path_length
from flowcover.calc.router import GridRouter
from flowcover.calc.sampling import sample_cell_centers, sweep_boundary_nodes
from flowcover.solver.NetworkReducer import NetworkReducer
from flowcover.solver.ReweightSolver import ReweightSolver
from flowcover.solver.SolverStatus import StartNodeError
from flowcover.solver.ThreeStageSolver import ThreeStageSolver
from flowcover.utils.common_utils import path_to_poses, map_fov_path_to_robot_path


class FlowNetworkExplorator:
    """
    Coverage path planning over a flow network.

    I.   discretize the room: cell centres to cover, boundary sweep nodes, arcs between nodes
    II.  coverage matrix between cells and arcs
    III. sparsify a relaxed three stage flow model by reweighting, then solve the multi stage
         integer model on the surviving arcs and read the walk out of it
    """

    def __init__(self, params: ExploratorParams = None):
        self.params = params if params is not None else ExploratorParams()
        self.timer = None
        self.network = None
        self.coverage_matrix = None
        self.reweight_solver = None
        self.reducer = None

    def find_start_node(self, network, starting_position):
        start_node = network.closest_node(starting_position)
        if start_node is None:
            raise StartNodeError("no candidate node in the room, nothing to start from")
        if not network.flows_out[start_node]:
            raise StartNodeError(f"start node {network.nodes[start_node]} has no outgoing arc")
        logger.info(f"start node: {network.nodes[start_node]} for starting position {tuple(starting_position)}")
        return start_node

    def get_exploration_path(self, room_map, map_resolution, starting_position, map_origin, cell_size,
                             room_min_max_coordinates, robot_to_fov_vector, coverage_radius,
                             plan_for_footprint=False, sparsity_check_range=20,
                             robot_radius=0.0) -> ExplorationResult:
        """
        Plan a coverage path for the room.

        Args:
            room_map: occupancy grid, 255 is free space
            map_resolution: metres per pixel
            starting_position: (x, y) in pixels
            map_origin: world position of pixel (0, 0)
            cell_size: cell edge length in pixels
            room_min_max_coordinates: ((min_x, min_y), (max_x, max_y)) in pixels
            robot_to_fov_vector: offset of the field of view centre from the robot, in metres
            coverage_radius: visibility radius in pixels
            plan_for_footprint: plan for the robot body instead of the field of view
            sparsity_check_range: window of iterations the sparsity has to stall over
            robot_radius: pixels, only used when planning for the footprint

        Returns:
            ExplorationResult, raises an ExplorationError instead of returning a partial path
        """
        self.timer = AlgoTimer(time.time())
        result = ExplorationResult()
        (min_x, min_y), (max_x, max_y) = room_min_max_coordinates

        # ========== I. discretization ==========
        result.cell_centers = sample_cell_centers(room_map, room_min_max_coordinates, cell_size)
        nodes = sweep_boundary_nodes(room_map, room_min_max_coordinates, coverage_radius,
                                     vertical_sweep=self.params.vertical_sweep)
        self.timer.check_point("sampling", len(result.cell_centers), "cells", len(nodes), "nodes")

        router = GridRouter(room_map, robot_radius if plan_for_footprint else 0.0)
        max_distance = max(max_x - min_x, max_y - min_y)
        self.network = ArcBuilder(router, max_distance, self.params.straightness_factor).build(nodes)
        self.timer.check_point("arc network", self.network)

        # ========== II. coverage ==========
        self.coverage_matrix = CoverageMatrix(result.cell_centers, self.network, coverage_radius,
                                              self.params.coverage_factor)
        result.excluded_cells = self.coverage_matrix.check_rows()
        self.timer.check_point("coverage matrix", self.coverage_matrix.shape)

        start_node = self.find_start_node(self.network, starting_position)
        result.start_node = self.network.nodes[start_node]

        # ========== III. optimization ==========
        three_stage_solver = ThreeStageSolver(self.network, self.coverage_matrix, start_node, self.params)
        self.reweight_solver = ReweightSolver(three_stage_solver, sparsity_check_range, self.params)
        solution = self.reweight_solver.solve()
        result.history = self.reweight_solver.history
        result.statuses['three_stage'] = [item['status'] for item in result.history]
        self.timer.check_point("reweighting", self.reweight_solver.iteration, "iterations")

        self.reducer = NetworkReducer(self.network, three_stage_solver, self.params)
        self.reducer.reduce(solution, start_node)
        final_result = self.reducer.solve_final(result.cell_centers, coverage_radius)
        result.statuses['multi_stage'] = final_result.status.name
        result.stages = self.reducer.stages
        self.timer.check_point("multi stage solve", result.stages, "stages")

        result.path_arcs, polyline, uncovered = self.reducer.extract_path()
        for cell in uncovered:
            if cell not in result.excluded_cells:
                result.excluded_cells.append(cell)

        # ========== IV. poses ==========
        start_pixel = tuple(int(round(v)) for v in starting_position)
        transit = router.plan_path(start_pixel, result.start_node)
        if transit is not None:
            result.pixel_path = list(transit[0][:-1]) + polyline
        else:
            logger.info(f"no transit from {tuple(starting_position)} to the start node, path starts at the node")
            result.pixel_path = polyline

        fov_poses = path_to_poses(result.pixel_path, map_resolution, map_origin)
        if plan_for_footprint:
            result.poses = fov_poses
        else:
            result.poses = map_fov_path_to_robot_path(fov_poses, robot_to_fov_vector)

        logger.info(f"path: {len(result.path_arcs)} arcs, length {path_length(result.path_arcs):.2f} px, "
                    f"{len(result.poses)} poses, {len(result.excluded_cells)} cells left out")
        self.timer.time_to_start("exploration path")
        return result
