# encoding:utf-8
"""
@time   :    2026/10/14 11:05
@project:    FlowCover
"""
import math
from unittest import TestCase

import numpy as np

from flowcover.DataHolder import ExploratorParams
from flowcover.calc.ArcBuilder import ArcBuilder
from flowcover.calc.CoverageMatrix import CoverageMatrix
from flowcover.calc.router import GridRouter
from flowcover.calc.sampling import sample_cell_centers, sweep_boundary_nodes
from flowcover.solver.LinearProgram import LinearProgram, SolveResult
from flowcover.solver.MultiStageSolver import MultiStageSolver
from flowcover.solver.NetworkReducer import NetworkReducer
from flowcover.solver.ReweightSolver import ReweightSolver
from flowcover.solver.SolverStatus import SolverStatus, SolverFailedError, ReducedNetworkError
from flowcover.solver.ThreeStageSolver import ThreeStageSolver

ROOM_BOUNDS = ((1, 1), (10, 10))
TOL = 1e-6


def room_problem():
    room_map = np.zeros((12, 12), dtype=np.uint8)
    room_map[1:11, 1:11] = 255
    nodes = sweep_boundary_nodes(room_map, ROOM_BOUNDS, 3)
    network = ArcBuilder(GridRouter(room_map), max_distance=9).build(nodes)
    cells = sample_cell_centers(room_map, ROOM_BOUNDS, 2)
    coverage = CoverageMatrix(cells, network, coverage_radius=3)
    start_node = network.closest_node((5, 5))
    return network, cells, coverage, start_node


class SparsifyingSolver:
    """Every solve has exactly one more zero than the one before, the sparsity never stalls."""

    def __init__(self, n):
        self.n = n
        self.calls = 0
        self.relaxation_weights = None

    def variable_count(self):
        return self.n

    def init_model(self, relaxation_weights=None):
        self.relaxation_weights = relaxation_weights

    def solve_model(self):
        self.calls += 1
        x = np.ones(self.n)
        x[:self.calls] = 0.0
        return SolveResult(SolverStatus.OPTIMAL, x=x, objective=float(x.sum()))


class ConstantSolver(SparsifyingSolver):

    def solve_model(self):
        self.calls += 1
        x = np.full(self.n, 0.5)
        return SolveResult(SolverStatus.OPTIMAL, x=x, objective=float(x.sum()))


class TestLinearProgram(TestCase):

    def small_model(self):
        model = LinearProgram("small")
        model.add_column(1.0)
        model.add_column(2.0)
        model.add_row([0, 1], [1, 1], 'G', 1)
        return model

    def test_scipy_lp(self):
        result = self.small_model().solve(backend='scipy')
        self.assertEqual(result.status, SolverStatus.OPTIMAL)
        self.assertAlmostEqual(result.objective, 1.0)
        self.assertTrue(np.allclose(result.x, [1.0, 0.0]))

    def test_scipy_integer_model(self):
        model = LinearProgram("integer")
        for cost in (3.0, 2.0, 2.0):
            model.add_column(cost)
        model.add_row([0, 1], [1, 1], 'G', 1)
        model.add_row([0, 2], [1, 1], 'G', 1)
        model.set_integer()
        result = model.solve(backend='scipy')
        self.assertEqual(result.status, SolverStatus.OPTIMAL)
        self.assertAlmostEqual(result.objective, 3.0)
        self.assertTrue(np.allclose(result.x, np.round(result.x)))

    def test_infeasible_model(self):
        model = self.small_model()
        model.add_row([0, 1], [1, 1], 'E', 3)
        result = model.solve(backend='scipy')
        self.assertEqual(result.status, SolverStatus.INFEASIBLE)
        self.assertIsNone(result.x)

    def test_pulp_backend(self):
        result = self.small_model().solve(backend='pulp', pulp_solver='cbc')
        self.assertEqual(result.status, SolverStatus.OPTIMAL)
        self.assertAlmostEqual(result.objective, 1.0)

    def test_unknown_sense(self):
        with self.assertRaises(ValueError):
            LinearProgram().add_row([0], [1], 'L', 1)


class TestThreeStageSolver(TestCase):

    def setUp(self):
        self.network, self.cells, self.coverage, self.start_node = room_problem()
        self.solver = ThreeStageSolver(self.network, self.coverage, self.start_node)
        self.solver.init_model()
        self.solver.solve_model()
        self.x = self.solver.solution

    def test_variable_layout(self):
        n_start = len(self.network.flows_out[self.start_node])
        self.assertEqual(self.solver.variable_count(), n_start + 2 * len(self.network.arcs))
        self.assertEqual(self.solver.final_offset - self.solver.coverage_offset, len(self.network.arcs))

    def test_cardinality(self):
        self.assertAlmostEqual(self.solver.start_values().sum(), 1.0, places=6)
        self.assertAlmostEqual(self.solver.final_values().sum(), 1.0, places=6)

    def test_flow_conservation(self):
        start = dict(zip(self.solver.start_arcs, self.solver.start_values()))
        coverage = self.solver.coverage_values()
        final = dict(zip(self.solver.var_arcs[self.solver.final_offset:].tolist(), self.solver.final_values()))
        for node in range(len(self.network.nodes)):
            inflow = sum(start.get(arc, 0.0) + coverage[arc] for arc in self.network.flows_in[node])
            outflow = sum(coverage[arc] + final[arc] for arc in self.network.flows_out[node])
            self.assertAlmostEqual(inflow, outflow, places=6)

    def test_coverage(self):
        for row in self.coverage.coverable_rows():
            covering = self.coverage.matrix[row, self.solver.var_arcs]
            self.assertGreaterEqual(self.x[covering].sum(), 1.0 - TOL)

    def test_relaxation_weights_length_checked(self):
        with self.assertRaises(ValueError):
            self.solver.init_model(np.ones(3))

    def test_coverage_generation_checked(self):
        reduced = self.network.next_generation(self.network.arcs)
        with self.assertRaises(ValueError):
            ThreeStageSolver(reduced, self.coverage, self.start_node)


class TestMultiStageSolver(TestCase):

    def setUp(self):
        self.network, self.cells, self.coverage, self.start_node = room_problem()

    def test_walk_properties(self):
        solver = MultiStageSolver(self.network, self.coverage, self.start_node, stages=3)
        solver.init_model()
        solver.solve_model(integer=True)
        x = solver.solution

        for stage in range(solver.stages):
            self.assertAlmostEqual(x[list(solver.stage_vars(stage))].sum(), 1.0, places=6)

        arcs = [self.network.arcs[idx] for idx in solver.stage_arc_ids()]
        self.assertEqual(len(arcs), 3)
        self.assertEqual(arcs[0].start, self.network.nodes[self.start_node])
        for prev, arc in zip(arcs, arcs[1:]):
            self.assertEqual(prev.end, arc.start)

        for row in self.coverage.coverable_rows():
            self.assertGreaterEqual(x[self.coverage.matrix[row, solver.var_arcs]].sum(), 1.0 - TOL)

    def test_too_few_stages_infeasible(self):
        solver = MultiStageSolver(self.network, self.coverage, self.start_node, stages=2)
        solver.init_model()
        with self.assertRaises(SolverFailedError) as ctx:
            solver.solve_model(integer=True)
        self.assertEqual(ctx.exception.stage, "multi_stage")
        self.assertEqual(ctx.exception.status, SolverStatus.INFEASIBLE)


class TestReweightSolver(TestCase):

    def test_stops_at_iteration_cap(self):
        model_solver = SparsifyingSolver(100)
        solver = ReweightSolver(model_solver, sparsity_check_range=20)
        solver.solve()
        self.assertEqual(solver.iteration, 50)
        self.assertEqual(model_solver.calls, 50)
        self.assertFalse(solver.converged)
        self.assertEqual(len(solver.history_df()), 50)

    def test_converges_when_sparsity_stalls(self):
        solver = ReweightSolver(ConstantSolver(10), sparsity_check_range=5)
        solver.solve()
        self.assertTrue(solver.converged)
        self.assertEqual(solver.iteration, 5)

    def test_epsilon_and_weights(self):
        model_solver = ConstantSolver(4)
        solver = ReweightSolver(model_solver, sparsity_check_range=2)
        base = 1.0 / (math.e - 1.0)
        self.assertAlmostEqual(solver.epsilon(1), base)
        self.assertAlmostEqual(solver.epsilon(11), base ** 2)

        solver.solve()
        eps = solver.epsilon(2)
        self.assertTrue(np.allclose(solver.relaxation_weights, eps / (eps + 0.5)))
        # first solve sees unit weights
        self.assertEqual(solver.history[0]["iteration"], 1)

    def test_iteration_cap_is_a_parameter(self):
        solver = ReweightSolver(SparsifyingSolver(100), 20, ExploratorParams(max_iterations=7))
        solver.solve()
        self.assertEqual(solver.iteration, 7)


class TestNetworkReducer(TestCase):

    def setUp(self):
        self.network, self.cells, self.coverage, self.start_node = room_problem()
        self.solver = ThreeStageSolver(self.network, self.coverage, self.start_node)
        self.solver.init_model()

    def test_empty_solution(self):
        reducer = NetworkReducer(self.network, self.solver)
        with self.assertRaises(ReducedNetworkError):
            reducer.reduce(np.zeros(self.solver.variable_count()), self.start_node)

    def test_twins(self):
        reducer = NetworkReducer(self.network, self.solver)
        self.assertEqual(reducer.twin_arc_ids([0]), [0, 1])
        self.assertEqual(reducer.twin_arc_ids([3, 5]), [2, 3, 4, 5])

    def test_reduce_solve_extract(self):
        solution = ReweightSolver(self.solver, sparsity_check_range=20).solve()
        # too few stages on purpose, the count has to grow
        reducer = NetworkReducer(self.network, self.solver, ExploratorParams(stage_divisor=100))
        reduced, reduced_start = reducer.reduce(solution, self.start_node)
        self.assertEqual(reduced.generation, 1)
        self.assertEqual(reduced.nodes[reduced_start], self.network.nodes[self.start_node])

        result = reducer.solve_final(self.cells, coverage_radius=3)
        self.assertEqual(result.status, SolverStatus.OPTIMAL)
        self.assertGreaterEqual(reducer.stages, 3)

        path_arcs, polyline, uncovered = reducer.extract_path()
        self.assertEqual(len(path_arcs), reducer.stages)
        self.assertEqual(polyline[0], self.network.nodes[self.start_node])
        self.assertEqual(uncovered, [])
