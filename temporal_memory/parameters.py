from dataclasses import dataclass
from math import prod
from typing import Tuple, Union

# Constants (Temporal Memory)
COLUMN_DIMENSIONS = (2048,)
CELLS_PER_COLUMN = 32
ACTIVATION_THRESHOLD = 13  # Connected active synapses required for a segment to be active (prediction)
MIN_THRESHOLD = 10         # Active synapses (permanence > 0) required for a segment to match
CONNECTED_PERM = 0.5       # Permanence threshold for a distal synapse to be considered connected
INITIAL_PERMANENCE = 0.21  # Initial permanence for new synapses
PERMANENCE_INC = 0.10      # Amount by which synapses are incremented during learning
PERMANENCE_DEC = 0.10      # Amount by which synapses are decremented during learning
MAX_NEW_SYNAPSE_COUNT = 20
PREDICTED_SEGMENT_DECREMENT = 0.0  # Punishment for matching segments in inactive columns; 0 disables it
SEED = 42


@dataclass
class TemporalMemoryParameters:

    column_dimensions: Union[int, Tuple[int, ...]] = COLUMN_DIMENSIONS
    """
    * Dimensions of the column space. The number of columns is the product of
    * the dimensions.
    """
    cells_per_column: int = CELLS_PER_COLUMN
    activation_threshold: int = ACTIVATION_THRESHOLD
    """
    * If the number of connected active synapses on a segment is at least this
    * threshold, the segment is active and its cell becomes predictive.
    """
    min_threshold: int = MIN_THRESHOLD
    """
    * If the number of active synapses (any permanence above zero) on a segment
    * is at least this threshold, the segment is matching. Used when selecting
    * the best matching segment of a bursting column.
    """
    connected_permanence: float = CONNECTED_PERM
    initial_permanence: float = INITIAL_PERMANENCE
    permanence_increment: float = PERMANENCE_INC
    permanence_decrement: float = PERMANENCE_DEC
    max_new_synapse_count: int = MAX_NEW_SYNAPSE_COUNT
    predicted_segment_decrement: float = PREDICTED_SEGMENT_DECREMENT
    """
    * Amount by which matching segments of cells in inactive columns are
    * punished. When zero, predicted-but-inactive cells are not collected.
    """
    seed: int = SEED
    """
    * Seed of the random stream shared by the whole network. Two networks built
    * with the same seed make identical tie-break choices.
    """

    def __post_init__(self) -> None:
        if isinstance(self.column_dimensions, int):
            self.column_dimensions = (self.column_dimensions,)
        self.column_dimensions = tuple(int(dim) for dim in self.column_dimensions)
        if not self.column_dimensions or any(dim <= 0 for dim in self.column_dimensions):
            raise ValueError(f"Column dimensions must be positive, got {self.column_dimensions}.")
        if self.cells_per_column <= 0:
            raise ValueError(f"cells_per_column must be positive, got {self.cells_per_column}.")
        for name in ("activation_threshold", "min_threshold", "max_new_synapse_count"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative, got {getattr(self, name)}.")
        for name in ("connected_permanence", "initial_permanence",
                     "permanence_increment", "permanence_decrement"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must lie in [0, 1], got {value}.")
        if self.predicted_segment_decrement < 0:
            raise ValueError(
                f"predicted_segment_decrement must not be negative, got {self.predicted_segment_decrement}."
            )

    @property
    def num_columns(self) -> int:
        return prod(self.column_dimensions)
