# encoding:utf-8
"""
@time   :    2026/10/13 11:40
@project:    FlowCover
"""
import numpy as np

from flowcover.solver.BaseSolver import BaseSolver


class MultiStageSolver(BaseSolver):
    """
    Stage expanded flow model on the reduced network, solved as an integer program.

    Stage 0 holds the outgoing arcs of the start node, every later stage holds all arcs. Each
    stage takes exactly one arc and the arc of stage r leaves the node the arc of stage r-1
    entered, so the chosen arcs read stage by stage form a connected walk.
    """
    stage_name = "multi_stage"

    def __init__(self, network, coverage_matrix, start_node, stages, params=None):
        super().__init__(network, coverage_matrix, start_node, params)
        if stages < 1:
            raise ValueError(f"at least one stage needed, got {stages}")
        self.stages = stages

    def layout_variables(self):
        n_arcs = len(self.network.arcs)
        self.stage_offsets = [0] + [len(self.start_arcs) + n_arcs * (r - 1) for r in range(1, self.stages)]
        return list(self.start_arcs) + list(range(n_arcs)) * (self.stages - 1)

    def stage_vars(self, stage):
        start = self.stage_offsets[stage]
        end = self.stage_offsets[stage + 1] if stage + 1 < self.stages else len(self.var_arcs)
        return range(start, end)

    def add_flow_rows(self):
        start_var = {arc: v for v, arc in enumerate(self.start_arcs)}

        for stage in range(self.stages):
            self.add_cardinality_row(self.stage_vars(stage))

        for stage in range(1, self.stages):
            prev_offset = self.stage_offsets[stage - 1]
            offset = self.stage_offsets[stage]
            for node in range(len(self.network.nodes)):
                var_ids, coefficients = [], []
                for arc in self.network.flows_in[node]:
                    if stage - 1 == 0:
                        if arc in start_var:
                            var_ids.append(start_var[arc])
                            coefficients.append(1)
                    else:
                        var_ids.append(prev_offset + arc)
                        coefficients.append(1)
                for arc in self.network.flows_out[node]:
                    var_ids.append(offset + arc)
                    coefficients.append(-1)
                if var_ids:
                    self.model.add_row(var_ids, coefficients, 'E', 0)

    def stage_arc_ids(self, solution=None, threshold=0.5):
        """Arc id chosen in each stage, in stage order."""
        solution = self.solution if solution is None else np.asarray(solution)
        arc_ids = []
        for stage in range(self.stages):
            for var in self.stage_vars(stage):
                if solution[var] > threshold:
                    arc_ids.append(int(self.var_arcs[var]))
                    break
        return arc_ids
