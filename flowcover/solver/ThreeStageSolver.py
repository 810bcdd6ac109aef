# encoding:utf-8
"""
@time   :    2026/10/13 11:05
@project:    FlowCover
"""
from flowcover.solver.BaseSolver import BaseSolver


class ThreeStageSolver(BaseSolver):
    """
    Relaxed three stage flow model used during sparsification.

    variables: [start group | coverage group | final group]
        start group    - one per outgoing arc of the start node, exactly one is taken
        coverage group - one per arc of the network
        final group    - per node, one per outgoing arc, exactly one over all of them is taken
    flow: for every node, start inflow + coverage inflow = coverage outflow + final outflow
    """
    stage_name = "three_stage"

    def layout_variables(self):
        var_arcs = list(self.start_arcs)
        self.coverage_offset = len(var_arcs)
        var_arcs += list(range(len(self.network.arcs)))
        self.final_offset = len(var_arcs)
        for node in range(len(self.network.nodes)):
            var_arcs += self.network.flows_out[node]
        return var_arcs

    def add_flow_rows(self):
        # ========== start / final cardinality ==========
        self.add_cardinality_row(range(self.coverage_offset))
        self.add_cardinality_row(range(self.final_offset, len(self.var_arcs)))

        start_var = {arc: v for v, arc in enumerate(self.start_arcs)}
        final_var = {int(arc): self.final_offset + k
                     for k, arc in enumerate(self.var_arcs[self.final_offset:])}

        # ========== conservation ==========
        for node in range(len(self.network.nodes)):
            var_ids, coefficients = [], []
            for arc in self.network.flows_in[node]:
                if arc in start_var:
                    var_ids.append(start_var[arc])
                    coefficients.append(1)
                var_ids.append(self.coverage_offset + arc)
                coefficients.append(1)
            for arc in self.network.flows_out[node]:
                var_ids.append(self.coverage_offset + arc)
                coefficients.append(-1)
                var_ids.append(final_var[arc])
                coefficients.append(-1)
            if var_ids:
                self.model.add_row(var_ids, coefficients, 'E', 0)

    def start_values(self, solution=None):
        solution = self.solution if solution is None else solution
        return solution[:self.coverage_offset]

    def coverage_values(self, solution=None):
        solution = self.solution if solution is None else solution
        return solution[self.coverage_offset:self.final_offset]

    def final_values(self, solution=None):
        solution = self.solution if solution is None else solution
        return solution[self.final_offset:]
