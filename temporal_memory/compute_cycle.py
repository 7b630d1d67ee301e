from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Set

from .building_blocks import Cell, Column, Segment


class SegmentSearch(NamedTuple):
    """Best matching segment on one cell and its active synapse count."""
    best_segment: Optional[Segment]
    num_active_synapses: int


class CellSearch(NamedTuple):
    """Best cell of a column and its best matching segment (if any)."""
    best_cell: Cell
    best_segment: Optional[Segment]


@dataclass
class ComputeCycle:
    """Values produced by a single timestep.

    Created fresh for every cycle and handed to the caller once complete.
    ``learning_segments`` holds exactly one entry per bursting column, with
    ``None`` standing in for columns that had nothing to learn from.
    """

    active_cells: Set[Cell] = field(default_factory=set)
    winner_cells: Set[Cell] = field(default_factory=set)
    successfully_predicted_columns: Set[Column] = field(default_factory=set)
    predicted_inactive_cells: Set[Cell] = field(default_factory=set)
    learning_segments: List[Optional[Segment]] = field(default_factory=list)

    # Filled by compute_predictive_cells for the next cycle
    predictive_cells: Set[Cell] = field(default_factory=set)
    matching_cells: Set[Cell] = field(default_factory=set)
    active_segments: Set[Segment] = field(default_factory=set)
    matching_segments: Set[Segment] = field(default_factory=set)

    def is_learning(self, segment: Segment) -> bool:
        return segment in self.learning_segments
