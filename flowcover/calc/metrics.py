# encoding:utf-8
"""
@time   :    2026/10/12 15:10
@project:    FlowCover
"""
import numpy as np


def sparsity_measure(solution, threshold=0.01):
    """l0_eps measure: number of entries not above the threshold."""
    return int(np.count_nonzero(np.asarray(solution) <= threshold))


def sparsity_converged(sparsity_measures, check_range):
    """
    Converged when the last check_range measures are all at least as large as the latest one,
    i.e. the sparsity did not improve over that window.
    """
    if check_range <= 0 or len(sparsity_measures) < check_range:
        return False
    latest = sparsity_measures[-1]
    return all(measure >= latest for measure in sparsity_measures[-check_range:])


def uncovered_cells(coverage_matrix, arc_ids):
    """Rows that are coverable by some arc of the matrix but by none of arc_ids."""
    matrix = coverage_matrix.matrix
    coverable = matrix.any(axis=1)
    if len(arc_ids):
        covered = matrix[:, list(arc_ids)].any(axis=1)
    else:
        covered = np.zeros(matrix.shape[0], dtype=bool)
    return np.flatnonzero(coverable & ~covered)


def path_length(arcs):
    return float(sum(arc.weight for arc in arcs))
