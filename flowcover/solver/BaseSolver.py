# encoding:utf-8
"""
@time   :    2026/10/13 10:30
@project:    FlowCover
"""
import numpy as np

from logger_config import logger
from flowcover.DataHolder import ExploratorParams
from flowcover.solver.LinearProgram import LinearProgram
from flowcover.solver.SolverStatus import SolverFailedError


class BaseSolver:
    """
    Common part of the flow formulations: every model variable stands for one arc of the network
    (var_arcs[v] is its arc id), costs are arc weights, and each coverable cell needs one
    variable of a covering arc.
    """
    stage_name = "base"

    def __init__(self, network, coverage_matrix, start_node, params: ExploratorParams = None):
        if coverage_matrix.generation != network.generation:
            raise ValueError(f"coverage matrix of generation {coverage_matrix.generation} "
                             f"does not belong to network generation {network.generation}")
        self.network = network
        self.coverage_matrix = coverage_matrix
        self.start_node = start_node
        self.params = params if params is not None else ExploratorParams()

        self.weights = network.weights
        self.start_arcs = list(network.flows_out[start_node])
        self.var_arcs = np.zeros(0, dtype=int)
        self.model = None
        self.result = None

    def layout_variables(self):
        raise NotImplementedError

    def add_flow_rows(self):
        raise NotImplementedError

    def variable_count(self):
        return len(self.layout_variables())

    def init_model(self, relaxation_weights=None):
        self.var_arcs = np.asarray(self.layout_variables(), dtype=int)
        # ========== 1. costs ==========
        costs = self.weights[self.var_arcs] if len(self.var_arcs) else np.zeros(0)
        if relaxation_weights is not None:
            relaxation_weights = np.asarray(relaxation_weights, dtype=float)
            if relaxation_weights.shape != costs.shape:
                raise ValueError(f"got {relaxation_weights.shape[0]} relaxation weights "
                                 f"for {costs.shape[0]} variables")
            costs = costs * relaxation_weights

        self.model = LinearProgram(name=f"{self.stage_name}FlowNetwork")
        for cost in costs:
            self.model.add_column(cost, 0.0, 1.0)

        # ========== 2. coverage ==========
        self.add_coverage_rows()
        # ========== 3. flow ==========
        self.add_flow_rows()
        return self.model

    def add_coverage_rows(self):
        if not len(self.var_arcs):
            return
        # cells x variables, a variable covers what its arc covers
        covering = self.coverage_matrix.matrix[:, self.var_arcs]
        for row in range(covering.shape[0]):
            var_ids = np.flatnonzero(covering[row])
            if len(var_ids):
                self.model.add_row(var_ids, np.ones(len(var_ids)), 'G', 1)

    def add_cardinality_row(self, var_ids):
        var_ids = list(var_ids)
        self.model.add_row(var_ids, np.ones(len(var_ids)), 'E', 1)

    def solve_model(self, integer=False):
        if self.model is None:
            self.init_model()
        if integer:
            self.model.set_integer()

        self.result = self.model.solve(backend=self.params.solver_backend,
                                       pulp_solver=self.params.pulp_solver)
        if not self.result.success:
            logger.error(f"{self.stage_name} model not solved: {self.result.status.name}, {self.result.message}")
            raise SolverFailedError(self.stage_name, self.result.status, self.result.message)
        return self.result

    @property
    def solution(self):
        return None if self.result is None else self.result.x

    def used_arc_ids(self, solution=None, tolerance=None):
        """Arc ids with at least one variable above the tolerance, in ascending order."""
        solution = self.solution if solution is None else np.asarray(solution)
        tolerance = self.params.zero_tolerance if tolerance is None else tolerance
        return sorted(set(self.var_arcs[solution > tolerance].tolist()))
