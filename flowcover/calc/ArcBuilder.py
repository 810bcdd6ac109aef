# encoding:utf-8
"""
@time   :    2026/10/12 14:02
@project:    FlowCover
"""
import math

import numpy as np

from logger_config import logger
from flowcover.DataHolder import Arc, FlowNetwork
from flowcover.calc.router import construct_distance_matrix


class ArcBuilder:
    """
    Builds the full (generation 0) flow network from the candidate nodes.

    A node pair becomes two directed arcs when its path is short enough and close to the
    straight line between the nodes. Only the forward path is planned, the backward arc reuses
    the reversed polyline.
    """

    def __init__(self, router, max_distance, straightness_factor=1.1):
        self.router = router
        self.max_distance = max_distance
        self.straightness_factor = straightness_factor
        self.planner_calls = 0

    def is_admissible(self, length, start, end):
        straight = math.hypot(start[0] - end[0], start[1] - end[1])
        return length <= self.max_distance and length <= self.straightness_factor * straight

    def build(self, nodes, distance_matrix=None):
        nodes = [tuple(pt) for pt in nodes]
        if distance_matrix is None:
            distance_matrix = construct_distance_matrix(self.router, nodes, cutoff=self.max_distance)
        distance_matrix = np.asarray(distance_matrix, dtype=float)

        arcs = []
        rejected = 0
        for start in range(len(nodes)):
            for end in range(start + 1, len(nodes)):
                if not self.is_admissible(distance_matrix[start, end], nodes[start], nodes[end]):
                    rejected += 1
                    continue

                self.planner_calls += 1
                planned = self.router.plan_path(nodes[start], nodes[end])
                if planned is None:
                    # no path counts as an inadmissible pair
                    logger.debug(f"no path between {nodes[start]} and {nodes[end]}, pair skipped")
                    rejected += 1
                    continue

                polyline, _ = planned
                forward_arc = Arc(start=nodes[start],
                                  end=nodes[end],
                                  weight=float(distance_matrix[start, end]),
                                  polyline=tuple(tuple(pt) for pt in polyline))
                arcs.append(forward_arc)
                arcs.append(forward_arc.reversed(weight=float(distance_matrix[end, start])))

        logger.info(f"arcs: {len(arcs)}, rejected pairs: {rejected}, planner calls: {self.planner_calls}")
        return FlowNetwork(nodes, arcs, generation=0)
