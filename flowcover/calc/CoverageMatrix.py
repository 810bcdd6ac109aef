# encoding:utf-8
"""
@time   :    2026/10/12 14:40
@project:    FlowCover
"""
import numpy as np
from scipy.spatial import cKDTree

from logger_config import logger


class CoverageMatrix:
    """
    Visibility relation between cells (rows) and arcs (columns) of one network generation.

    A cell is covered by an arc when one point of the arc polyline lies within
    coverage_factor * coverage_radius of the cell centre.
    """
    distance_eps = 1e-9

    def __init__(self, cell_centers, network, coverage_radius, coverage_factor=1.1):
        self.generation = network.generation
        self.cell_centers = [tuple(pt) for pt in cell_centers]
        self.coverage_distance = coverage_factor * coverage_radius
        self.matrix = self.build(network)

    def build(self, network):
        matrix = np.zeros((len(self.cell_centers), len(network.arcs)), dtype=bool)
        if matrix.size == 0:
            return matrix

        tree = cKDTree(np.asarray(self.cell_centers, dtype=float))
        for col, arc in enumerate(network.arcs):
            hits = tree.query_ball_point(np.asarray(arc.polyline, dtype=float),
                                         r=self.coverage_distance + self.distance_eps)
            rows = set()
            for hit in hits:
                rows.update(hit)
            matrix[sorted(rows), col] = True
        return matrix

    @property
    def shape(self):
        return self.matrix.shape

    def coverable_rows(self):
        return np.flatnonzero(self.matrix.any(axis=1))

    def empty_rows(self):
        return np.flatnonzero(~self.matrix.any(axis=1))

    def empty_columns(self):
        return np.flatnonzero(~self.matrix.any(axis=0))

    def check_rows(self):
        """Report cells no arc can cover, the optimization goes on without them."""
        empty_rows = self.empty_rows()
        for row in empty_rows:
            logger.warning(f"cell {row} at {self.cell_centers[row]} not coverable by the current arcs")
        if len(empty_rows):
            logger.warning(f"not all cells can be covered ({len(empty_rows)} of {self.shape[0]}), "
                           f"change the parameters or accept partial coverage")
        return [self.cell_centers[row] for row in empty_rows]

    def check_columns(self):
        empty_columns = self.empty_columns()
        if len(empty_columns):
            logger.warning(f"{len(empty_columns)} arcs of generation {self.generation} cover no cell")
        return empty_columns
