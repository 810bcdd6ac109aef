# encoding:utf-8
"""
@time   :    2026/10/13 09:20
@project:    FlowCover
"""
from enum import Enum


class SolverStatus(Enum):
    OPTIMAL = 0
    INFEASIBLE = 1
    UNBOUNDED = 2
    OTHER = 3


class ExplorationError(RuntimeError):
    """Path synthesis failed, there is no partial result."""


class SolverFailedError(ExplorationError):

    def __init__(self, stage, status, message=''):
        self.stage = stage
        self.status = status
        super().__init__(f"{stage} solve failed with status {status.name}: {message}")


class StartNodeError(ExplorationError):
    pass


class ReducedNetworkError(ExplorationError):
    pass
