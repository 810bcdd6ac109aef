# encoding:utf-8
"""
@time   :    2026/10/13 15:00
@project:    FlowCover
"""
from logger_config import logger
from flowcover.DataHolder import ExploratorParams
from flowcover.calc.CoverageMatrix import CoverageMatrix
from flowcover.calc.metrics import uncovered_cells
from flowcover.solver.MultiStageSolver import MultiStageSolver
from flowcover.solver.SolverStatus import ReducedNetworkError, SolverFailedError, SolverStatus
from flowcover.utils.common_utils import concat_polylines


class NetworkReducer:
    """
    Shrinks the full network to the arcs the sparsified three stage solution uses, solves the
    multi stage integer model over the result and reads the walk out of it.
    """

    def __init__(self, network, model_solver, params: ExploratorParams = None):
        self.network = network
        self.model_solver = model_solver
        self.params = params if params is not None else ExploratorParams()

        self.reduced_network = None
        self.reduced_start = None
        self.coverage_matrix = None
        self.multi_stage_solver = None
        self.stages = 0
        self.path_arc_ids = []

    def twin_arc_ids(self, arc_ids):
        """Add the opposite direction of every arc, taken from the full network."""
        arc_index = {(arc.start, arc.end): idx for idx, arc in enumerate(self.network.arcs)}
        result = set(arc_ids)
        for arc_id in arc_ids:
            arc = self.network.arcs[arc_id]
            twin = arc_index.get((arc.end, arc.start))
            if twin is not None:
                result.add(twin)
        return sorted(result)

    def reduce(self, solution, start_node):
        arc_ids = self.model_solver.used_arc_ids(solution, self.params.zero_tolerance)
        if not arc_ids:
            raise ReducedNetworkError("no arc survived the sparsification")
        if self.params.reduced_twins:
            arc_ids = self.twin_arc_ids(arc_ids)

        self.reduced_network = self.network.next_generation([self.network.arcs[idx] for idx in arc_ids])
        logger.info(f"reduced network: {self.reduced_network}, from {self.network}")

        self.reduced_start = self.reduced_network.node_id(self.network.nodes[start_node])
        if self.reduced_start is None or not self.reduced_network.flows_out[self.reduced_start]:
            raise ReducedNetworkError(f"start node {self.network.nodes[start_node]} "
                                      f"has no outgoing arc in the reduced network")

        unreachable = self.reduced_network.unreachable_nodes(self.reduced_start)
        if unreachable:
            raise ReducedNetworkError(f"{len(unreachable)} nodes of the reduced network "
                                      f"can not be reached from the start node")
        return self.reduced_network, self.reduced_start

    def initial_stages(self):
        return max(self.params.min_stages, len(self.network.nodes) // self.params.stage_divisor)

    def solve_final(self, cell_centers, coverage_radius):
        if self.reduced_network is None:
            raise ReducedNetworkError("reduce() has to run before the final solve")

        self.coverage_matrix = CoverageMatrix(cell_centers, self.reduced_network, coverage_radius,
                                              self.params.coverage_factor)
        self.coverage_matrix.check_columns()

        self.stages = self.initial_stages()
        max_stages = max(self.stages, 2 * len(self.reduced_network.arcs) + 1)
        while True:
            self.multi_stage_solver = MultiStageSolver(self.reduced_network, self.coverage_matrix,
                                                       self.reduced_start, self.stages, self.params)
            self.multi_stage_solver.init_model()
            try:
                self.multi_stage_solver.solve_model(integer=True)
                break
            except SolverFailedError as e:
                if e.status != SolverStatus.INFEASIBLE or self.stages >= max_stages:
                    raise
                logger.info(f"multi stage model infeasible with {self.stages} stages, trying {self.stages + 1}")
                self.stages += 1

        logger.info(f"multi stage model solved with {self.stages} stages, "
                    f"objective: {self.multi_stage_solver.result.objective}")
        return self.multi_stage_solver.result

    def extract_path(self):
        """Arcs of the walk in stage order, their joined polyline and the cells it leaves uncovered."""
        self.path_arc_ids = self.multi_stage_solver.stage_arc_ids()
        path_arcs = [self.reduced_network.arcs[idx] for idx in self.path_arc_ids]
        polyline = concat_polylines([arc.polyline for arc in path_arcs])

        missed = uncovered_cells(self.coverage_matrix, self.path_arc_ids)
        for row in missed:
            logger.warning(f"cell {self.coverage_matrix.cell_centers[row]} not covered by the extracted path")
        uncovered = [self.coverage_matrix.cell_centers[row] for row in self.coverage_matrix.empty_rows()]
        uncovered += [self.coverage_matrix.cell_centers[row] for row in missed]
        return path_arcs, polyline, uncovered
