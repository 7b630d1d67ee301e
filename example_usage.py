"""
Example usage of the temporal memory compute core.

This demonstrates:
1. Building the network structure
2. Running compute cycles over a repeating sequence
3. A minimal learning stage consuming the ComputeCycle
4. Reading predictions for the next timestep
"""

import logging

import numpy as np

from temporal_memory import ComputeCycle, Connections, TemporalMemory


def grow_learning_segments(c: Connections, cycle: ComputeCycle, prev_winner_cells: set) -> None:
    """Connect every learning segment to the previous winner cells."""
    for segment in cycle.learning_segments:
        if segment is None:
            continue
        sources = {syn.source_cell for syn in c.get_synapses(segment)}
        for cell in sorted(prev_winner_cells - sources):
            c.create_synapse(segment, cell, c.parameters.initial_permanence + 0.4)


def example_sequence():
    """Example: learn a repeating sequence of column patterns."""
    print("=" * 60)
    print("Example: Sequence learning")
    print("=" * 60)

    c = Connections(
        column_dimensions=(256,),
        cells_per_column=8,
        activation_threshold=8,
        min_threshold=6,
    )
    tm = TemporalMemory()
    tm.init(c)

    rng = np.random.default_rng(1)
    patterns = {
        letter: set(map(int, rng.choice(256, size=10, replace=False)))
        for letter in "ABCD"
    }

    for epoch in range(3):
        for letter in "ABCD":
            prev_winner_cells = set(c.winner_cells)
            cycle = tm.compute(c, patterns[letter])
            grow_learning_segments(c, cycle, prev_winner_cells)

            bursting = len(patterns[letter]) - len(cycle.successfully_predicted_columns)
            predicted = tm.get_predictive_columns(c)
            print(f"  Epoch {epoch} '{letter}': {len(cycle.active_cells)} active cells, "
                  f"{bursting} bursting columns, {len(predicted)} columns predicted next")
        tm.reset(c)

    print()
    c.print_stats()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    example_sequence()
