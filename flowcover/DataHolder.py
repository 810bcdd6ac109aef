# encoding:utf-8
"""
@time   :    2026/10/12 10:40
@project:    FlowCover
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import networkx as nx
import numpy as np

Point = Tuple[int, int]


@dataclass
class ExploratorParams:
    """Tunables of the flow network explorator, defaults are the empirical constants of the method."""
    straightness_factor: float = 1.1
    coverage_factor: float = 1.1
    epsilon_base: float = 1.0 / (math.e - 1.0)
    epsilon_decay: float = 0.1
    sparsity_threshold: float = 0.01
    max_iterations: int = 50
    zero_tolerance: float = 1e-6
    stage_divisor: int = 4
    min_stages: int = 2
    reduced_twins: bool = True
    vertical_sweep: bool = False
    solver_backend: str = 'scipy'
    pulp_solver: str = 'cbc'


@dataclass(frozen=True)
class Arc:
    start: Point
    end: Point
    weight: float
    polyline: Tuple[Point, ...] = field(repr=False)

    def reversed(self, weight=None):
        """Backward arc over the same realized path, no new planner query needed."""
        return Arc(start=self.end,
                   end=self.start,
                   weight=self.weight if weight is None else weight,
                   polyline=tuple(reversed(self.polyline)))


class FlowNetwork:
    """
    Nodes and directed arcs of one network generation.

    Indices into nodes / arcs only mean something inside the same generation, every
    structure built on top of them (flows, coverage matrix, model variables) keeps the
    generation it was made for.
    """

    def __init__(self, nodes, arcs, generation=0):
        self.generation = generation
        self.nodes: List[Point] = list(nodes)
        self.arcs: List[Arc] = list(arcs)
        self.point_id_map = {pt: idx for idx, pt in enumerate(self.nodes)}
        self.flows_out, self.flows_in = self.build_flow_adjacency()

    def build_flow_adjacency(self):
        # outflow: arcs leaving the node, inflow: arcs entering it
        flows_out = [[] for _ in self.nodes]
        flows_in = [[] for _ in self.nodes]
        for idx, arc in enumerate(self.arcs):
            flows_out[self.point_id_map[arc.start]].append(idx)
            flows_in[self.point_id_map[arc.end]].append(idx)
        return flows_out, flows_in

    @property
    def weights(self):
        return np.array([arc.weight for arc in self.arcs], dtype=float)

    def node_id(self, point):
        return self.point_id_map.get(tuple(point))

    def arc_node_ids(self, arc_id):
        arc = self.arcs[arc_id]
        return self.point_id_map[arc.start], self.point_id_map[arc.end]

    def closest_node(self, point):
        if not self.nodes:
            return None
        diff = np.asarray(self.nodes, dtype=float) - np.asarray(point, dtype=float)
        return int(np.argmin(np.hypot(diff[:, 0], diff[:, 1])))

    def next_generation(self, arcs):
        """Network over the given arcs, nodes are their endpoints in order of appearance."""
        nodes = []
        seen = set()
        for arc in arcs:
            for pt in (arc.start, arc.end):
                if pt not in seen:
                    seen.add(pt)
                    nodes.append(pt)
        return FlowNetwork(nodes, arcs, generation=self.generation + 1)

    def to_graph(self):
        graph = nx.DiGraph()
        graph.add_nodes_from(range(len(self.nodes)))
        for idx, arc in enumerate(self.arcs):
            i, j = self.arc_node_ids(idx)
            graph.add_edge(i, j, weight=arc.weight, arc_id=idx)
        return graph

    def unreachable_nodes(self, source):
        graph = self.to_graph()
        reached = nx.descendants(graph, source) | {source}
        return [node for node in graph.nodes if node not in reached]

    def __repr__(self):
        return f"FlowNetwork(generation={self.generation}, nodes={len(self.nodes)}, arcs={len(self.arcs)})"


class ExplorationResult:

    def __init__(self):
        self.poses: List[Tuple[float, float, float]] = []
        self.pixel_path: List[Point] = []
        self.path_arcs: List[Arc] = []
        self.excluded_cells: List[Point] = []
        self.cell_centers: List[Point] = []
        self.start_node: Optional[Point] = None
        self.stages: int = 0
        self.history: List[dict] = []
        self.statuses = dict()
