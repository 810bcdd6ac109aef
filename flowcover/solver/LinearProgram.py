# encoding:utf-8
"""
@time   :    2026/10/13 09:45
@project:    FlowCover
"""
import numpy as np
import pulp
from scipy.optimize import linprog
from scipy.sparse import dok_matrix

from logger_config import logger
from flowcover.solver.SolverStatus import SolverStatus

SCIPY_STATUS = {0: SolverStatus.OPTIMAL, 2: SolverStatus.INFEASIBLE, 3: SolverStatus.UNBOUNDED}
PULP_STATUS = {1: SolverStatus.OPTIMAL, -1: SolverStatus.INFEASIBLE, -2: SolverStatus.UNBOUNDED}


class SolveResult:

    def __init__(self, status, x=None, objective=None, message=''):
        self.status = status
        self.x = x
        self.objective = objective
        self.message = message

    @property
    def success(self):
        return self.status == SolverStatus.OPTIMAL


class LinearProgram:
    """
    Minimization model built column by column and row by row.

    Rows are sparse (indices, coefficients), sense 'G' (>=) or 'E' (==). The same model can be
    switched to an integer program with set_integer() before solving.
    """

    def __init__(self, name="flowNetworkExploration"):
        self.name = name
        self.costs = []
        self.bounds = []
        self.rows_ge = []
        self.rows_eq = []
        self.integer = False

    @property
    def num_variables(self):
        return len(self.costs)

    @property
    def num_rows(self):
        return len(self.rows_ge) + len(self.rows_eq)

    def add_column(self, cost, lb=0.0, ub=1.0):
        self.costs.append(float(cost))
        self.bounds.append((lb, ub))
        return len(self.costs) - 1

    def add_row(self, indices, coefficients, sense, rhs):
        row = (list(indices), list(coefficients), float(rhs))
        if sense == 'G':
            self.rows_ge.append(row)
        elif sense == 'E':
            self.rows_eq.append(row)
        else:
            raise ValueError(f"unknown row sense {sense}")

    def set_integer(self, integer=True):
        self.integer = integer

    def _bounded(self):
        return all(lb is not None and ub is not None for lb, ub in self.bounds)

    def _to_matrix(self, rows):
        if not rows:
            return None, None
        matrix = dok_matrix((len(rows), self.num_variables))
        rhs = np.zeros(len(rows))
        for r, (indices, coefficients, value) in enumerate(rows):
            for idx, coef in zip(indices, coefficients):
                matrix[r, idx] += coef
            rhs[r] = value
        return matrix.tocsr(), rhs

    def solve(self, backend='scipy', pulp_solver='cbc', time_limit=None, gap=0):
        logger.info(f"{self.name}: {self.num_variables} variables, {self.num_rows} rows, "
                    f"integer: {self.integer}, backend: {backend}")
        if self.num_variables == 0:
            return SolveResult(SolverStatus.OTHER, message="model has no variables")
        if backend == 'scipy':
            return self._solve_scipy(time_limit, gap)
        if backend == 'pulp':
            return self._solve_pulp(pulp_solver, time_limit, gap)
        raise ValueError(f"unknown solver backend {backend}")

    def _solve_scipy(self, time_limit, gap):
        A_ge, b_ge = self._to_matrix(self.rows_ge)
        A_eq, b_eq = self._to_matrix(self.rows_eq)
        opt = {'disp': False}
        if time_limit is not None:
            opt['time_limit'] = time_limit
        if self.integer:
            opt['mip_rel_gap'] = gap

        # linprog only knows <= rows, flip the >= ones
        result = linprog(
            c=np.asarray(self.costs),
            A_ub=-A_ge if A_ge is not None else None,
            b_ub=-b_ge if b_ge is not None else None,
            A_eq=A_eq,
            b_eq=b_eq,
            bounds=self.bounds,
            method='highs',
            integrality=np.ones(self.num_variables) if self.integer else None,
            options=opt
        )
        status = SCIPY_STATUS.get(result.status, SolverStatus.OTHER)
        if status == SolverStatus.OTHER and self._bounded() and "infeasible" in str(result.message).lower():
            # presolve may only tell "unbounded or infeasible", with finite bounds it is the latter
            status = SolverStatus.INFEASIBLE
        if status != SolverStatus.OPTIMAL:
            return SolveResult(status, message=result.message)
        return SolveResult(status, x=np.asarray(result.x, dtype=float), objective=float(result.fun),
                           message=result.message)

    def _solve_pulp(self, pulp_solver, time_limit, gap):
        model = pulp.LpProblem(self.name, pulp.LpMinimize)
        cat = pulp.LpInteger if self.integer else pulp.LpContinuous
        x = [pulp.LpVariable(f"x_{idx}", lowBound=lb, upBound=ub, cat=cat)
             for idx, (lb, ub) in enumerate(self.bounds)]

        model += pulp.lpSum(cost * x[idx] for idx, cost in enumerate(self.costs)), "obj"
        for r, (indices, coefficients, rhs) in enumerate(self.rows_ge):
            model += pulp.lpSum(coef * x[idx] for idx, coef in zip(indices, coefficients)) >= rhs, f"ge_{r}"
        for r, (indices, coefficients, rhs) in enumerate(self.rows_eq):
            model += pulp.lpSum(coef * x[idx] for idx, coef in zip(indices, coefficients)) == rhs, f"eq_{r}"

        if pulp_solver == 'highs':
            solver = pulp.HiGHS_CMD(msg=False, gapRel=gap, timeLimit=time_limit)
        else:
            solver = pulp.PULP_CBC_CMD(msg=False, gapRel=gap, timeLimit=time_limit)
        model.solve(solver)

        status = PULP_STATUS.get(model.status, SolverStatus.OTHER)
        if status != SolverStatus.OPTIMAL:
            return SolveResult(status, message=pulp.LpStatus[model.status])
        values = np.array([var.varValue if var.varValue is not None else 0.0 for var in x])
        return SolveResult(status, x=values, objective=float(pulp.value(model.objective)),
                           message=pulp.LpStatus[model.status])
