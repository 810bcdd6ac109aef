# encoding:utf-8
"""
@time   :    2026/10/13 14:10
@project:    FlowCover
"""
import numpy as np
import pandas as pd

from logger_config import logger
from flowcover.DataHolder import ExploratorParams
from flowcover.calc.metrics import sparsity_measure, sparsity_converged


class ReweightSolver:
    """
    Iteratively reweighted l1 minimization over a relaxed flow model.

    Every iteration solves the model with the current relaxation weights and lowers the weight of
    variables that came out large, so later solves push the small ones to zero. The loop stops
    when the sparsity measure stops improving over sparsity_check_range iterations, or at the
    iteration cap.

    model_solver needs variable_count(), init_model(relaxation_weights) and solve_model().
    """

    def __init__(self, model_solver, sparsity_check_range, params: ExploratorParams = None):
        self.model_solver = model_solver
        self.sparsity_check_range = sparsity_check_range
        self.params = params if params is not None else ExploratorParams()

        self.iteration = 0
        self.solution = None
        self.relaxation_weights = None
        self.sparsity_measures = []
        self.history = []
        self.converged = False

    def epsilon(self, iteration):
        return self.params.epsilon_base ** (1 + self.params.epsilon_decay * (iteration - 1))

    def solve(self):
        self.relaxation_weights = np.ones(self.model_solver.variable_count())

        while True:
            self.iteration += 1
            self.model_solver.init_model(self.relaxation_weights)
            result = self.model_solver.solve_model()

            self.solution = np.clip(np.asarray(result.x, dtype=float), 0.0, None)
            eps = self.epsilon(self.iteration)
            self.relaxation_weights = eps / (eps + self.solution)

            measure = sparsity_measure(self.solution, self.params.sparsity_threshold)
            self.sparsity_measures.append(measure)
            self.history.append({"iteration": self.iteration,
                                 "epsilon": eps,
                                 "sparsity": measure,
                                 "objective": result.objective,
                                 "status": result.status.name})
            logger.info(f"Iteration: {self.iteration}, sparsity: {measure}, objective: {result.objective}")

            if sparsity_converged(self.sparsity_measures, self.sparsity_check_range):
                self.converged = True
                break
            if self.iteration >= self.params.max_iterations:
                logger.info(f"reweighting stopped at the iteration cap {self.params.max_iterations}")
                break

        logger.info(f"reweighting done after {self.iteration} iterations, converged: {self.converged}")
        return self.solution

    def history_df(self):
        return pd.DataFrame(self.history, columns=["iteration", "epsilon", "sparsity", "objective", "status"])
