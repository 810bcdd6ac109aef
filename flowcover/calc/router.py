# encoding:utf-8
"""
@time   :    2026/10/12 11:30
@project:    FlowCover
"""
import math
from itertools import repeat

import networkx as nx
import numpy as np
from scipy import ndimage
from tqdm import tqdm

from flowcover.utils.common_utils import free_mask


class GridRouter:
    """
    Point to point planner on the free pixels of an occupancy grid.

    Pixels are graph nodes (x, y), 8-connected, diagonal moves cost sqrt(2) and may not cut
    obstacle corners.
    """
    movements = [(1, 0, 1.0), (0, 1, 1.0), (1, 1, math.sqrt(2.0)), (1, -1, math.sqrt(2.0))]

    def __init__(self, room_map, robot_radius=0.0):
        mask = free_mask(room_map)
        if robot_radius > 0:
            mask = self.inflate_obstacles(mask, robot_radius)
        self.free = mask
        self.graph = self.create_grid_graph(mask)

    @staticmethod
    def inflate_obstacles(mask, robot_radius):
        r = int(math.ceil(robot_radius))
        yy, xx = np.mgrid[-r:r + 1, -r:r + 1]
        disk = xx ** 2 + yy ** 2 <= robot_radius ** 2
        return ndimage.binary_erosion(mask, structure=disk, border_value=0)

    def create_grid_graph(self, mask):
        graph = nx.Graph()
        h, w = mask.shape
        ys, xs = np.nonzero(mask)
        graph.add_nodes_from(zip(xs.tolist(), ys.tolist()))

        for dx, dy, weight in self.movements:
            nxs, nys = xs + dx, ys + dy
            inside = (nxs >= 0) & (nxs < w) & (nys >= 0) & (nys < h)
            sx, sy, tx, ty = xs[inside], ys[inside], nxs[inside], nys[inside]
            ok = mask[ty, tx]
            if dx and dy:
                ok &= mask[sy, tx] & mask[ty, sx]
            sources = zip(sx[ok].tolist(), sy[ok].tolist())
            targets = zip(tx[ok].tolist(), ty[ok].tolist())
            graph.add_weighted_edges_from(zip(sources, targets, repeat(weight)))
        return graph

    @staticmethod
    def _heuristic(a, b):
        return math.hypot(a[0] - b[0], a[1] - b[1])

    def plan_path(self, start, goal):
        """
        A* between two pixels.

        Returns:
            (polyline, length) or None when one end is blocked or no path exists
        """
        start, goal = tuple(start), tuple(goal)
        if start not in self.graph or goal not in self.graph:
            return None
        try:
            path = nx.astar_path(self.graph, start, goal, heuristic=self._heuristic, weight='weight')
        except nx.NetworkXNoPath:
            return None
        return path, nx.path_weight(self.graph, path, weight='weight')

    def shortest_paths_from(self, source, cutoff=None):
        """Path lengths from source to every pixel reachable within cutoff."""
        source = tuple(source)
        if source not in self.graph:
            return dict()
        return nx.single_source_dijkstra_path_length(self.graph, source, cutoff=cutoff, weight='weight')


def construct_distance_matrix(router, nodes, cutoff=None):
    """
    Pairwise path lengths between nodes, inf where no path exists or the path is longer than cutoff.
    """
    n = len(nodes)
    distance_matrix = np.full((n, n), np.inf)
    for i in tqdm(range(n), desc="distance matrix", leave=False, disable=n == 0):
        lengths = router.shortest_paths_from(nodes[i], cutoff=cutoff)
        for j, node in enumerate(nodes):
            distance_matrix[i, j] = lengths.get(tuple(node), np.inf)
    return distance_matrix
