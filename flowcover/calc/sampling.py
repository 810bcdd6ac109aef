# encoding:utf-8
"""
@time   :    2026/10/12 13:15
@project:    FlowCover
"""
import math

from logger_config import logger
from flowcover.utils.common_utils import free_mask, is_free


def sample_cell_centers(room_map, room_min_max_coordinates, cell_size):
    """
    Regular grid of cell centres inside the bounding rectangle whose pixel is free.

    Args:
        room_map: occupancy grid, 255 free / 0 occupied (or boolean)
        room_min_max_coordinates: ((min_x, min_y), (max_x, max_y)) in pixels
        cell_size: sampling step in pixels
    """
    mask = free_mask(room_map)
    (min_x, min_y), (max_x, max_y) = room_min_max_coordinates
    offset = int(0.5 * cell_size)
    cell_centers = []
    for y in range(int(min_y) + offset, int(max_y) + 1, cell_size):
        for x in range(int(min_x) + offset, int(max_x) + 1, cell_size):
            if is_free(mask, x, y):
                cell_centers.append((x, y))
    return cell_centers


def _sweep_rows(mask, room_min_max_coordinates, radius):
    """
    Walk every row of the room rectangle enlarged by one pixel. Pixels outside the map or the
    rectangle count as occupied, so the rectangle border acts as a wall. An occupied pixel with a
    free pixel right above or below is an outer boundary pixel, the node goes radius pixels away
    from it on the first free side.

    Along a boundary edge nodes follow every 2 * radius pixels, and the end of the edge gets one
    too when it lies at least radius pixels past the previous one.
    """
    (min_x, min_y), (max_x, max_y) = room_min_max_coordinates

    def free(x, y):
        return min_x <= x <= max_x and min_y <= y <= max_y and is_free(mask, x, y)

    def transition(x, y):
        return not free(x, y) and (free(x, y - 1) or free(x, y + 1))

    found = []

    def place(x, y):
        for cx, cy in ((x, y - radius), (x, y + radius)):
            if free(cx, cy):
                found.append((cx, cy))
                return

    for y in range(min_y - 1, max_y + 2):
        x = min_x - 1
        while x <= max_x + 1:
            if not transition(x, y):
                x += 1
                continue

            edge_end = x
            while edge_end + 1 <= max_x + 1 and transition(edge_end + 1, y):
                edge_end += 1

            last = x
            for node_x in range(x, edge_end + 1, 2 * radius):
                place(node_x, y)
                last = node_x
            if edge_end - last >= radius:
                place(edge_end, y)
            x = edge_end + 1
    return found


def sweep_boundary_nodes(room_map, room_min_max_coordinates, coverage_radius, vertical_sweep=False):
    """
    Candidate nodes of the flow network, spaced by the coverage radius along obstacle boundaries.

    The vertical sweep runs the same row walk on the transposed map.
    """
    mask = free_mask(room_map)
    radius = int(math.floor(coverage_radius))
    if radius < 1:
        logger.warning(f"coverage radius {coverage_radius} is below one pixel, no nodes generated")
        return []

    (min_x, min_y), (max_x, max_y) = room_min_max_coordinates
    bounds = ((int(min_x), int(min_y)), (int(max_x), int(max_y)))
    candidates = _sweep_rows(mask, bounds, radius)
    if vertical_sweep:
        transposed = ((bounds[0][1], bounds[0][0]), (bounds[1][1], bounds[1][0]))
        candidates += [(x, y) for y, x in _sweep_rows(mask.T, transposed, radius)]

    nodes = []
    seen = set()
    for pt in candidates:
        if pt not in seen:
            seen.add(pt)
            nodes.append(pt)
    logger.info(f"boundary sweep found {len(nodes)} nodes, radius: {radius}")
    return nodes
