"""Network structure shared by the temporal memory and its companions.

Holds the sparse column store, the flat cell registry, the segment and synapse
arenas, the network parameters, the shared random stream and the state carried
from one compute cycle to the next.
"""

import logging
import random
from math import prod
from statistics import fmean, pstdev
from typing import (
    Dict,
    Generic,
    List,
    Optional,
    Set,
    Tuple,
    TypeVar,
)

from .building_blocks import Cell, Column, Segment, Synapse
from .parameters import TemporalMemoryParameters

log = logging.getLogger(__name__)

T = TypeVar("T")


class SparseObjectMatrix(Generic[T]):
    """Sparse store of objects addressed by flat index over fixed dimensions.

    Entries that were never set read back as ``None``.
    """

    def __init__(self, dimensions: Tuple[int, ...]) -> None:
        self.dimensions: Tuple[int, ...] = tuple(dimensions)
        self._objects: Dict[int, T] = {}

    @property
    def max_index(self) -> int:
        return prod(self.dimensions) - 1

    def _check_index(self, index: int) -> int:
        if index < 0 or index > self.max_index:
            raise IndexError(f"Index {index} out of bounds for dimensions {self.dimensions}.")
        return index

    def get(self, index: int) -> Optional[T]:
        return self._objects.get(self._check_index(index))

    def set(self, index: int, obj: T) -> None:
        self._objects[self._check_index(index)] = obj

    def __contains__(self, index: int) -> bool:
        return index in self._objects

    def __len__(self) -> int:
        return len(self._objects)


class Connections:
    """State of a temporal memory network.

    The structure (columns, cells, segments, synapses) is only mutated by
    ``TemporalMemory.init``, by segment creation while bursting, and by the
    external learning stage through ``create_synapse``. Callers serialize
    access; nothing here is thread-safe.
    """

    def __init__(self, parameters: Optional[TemporalMemoryParameters] = None, **overrides) -> None:
        if parameters is None:
            parameters = TemporalMemoryParameters(**overrides)
        elif overrides:
            raise TypeError("Pass either a parameters object or keyword overrides, not both.")
        self.parameters: TemporalMemoryParameters = parameters
        self.random: random.Random = random.Random(parameters.seed)

        self.memory: Optional[SparseObjectMatrix[Column]] = None
        self.cells: List[Cell] = []

        self._segments: List[Segment] = []
        self._synapses: List[Synapse] = []
        self._cell_segments: Dict[int, List[Segment]] = {}
        self._segment_synapses: Dict[int, List[Synapse]] = {}
        self._receptor_synapses: Dict[int, List[Synapse]] = {}

        # State of the previous compute cycle (t-1)
        self.active_cells: Set[Cell] = set()
        self.winner_cells: Set[Cell] = set()
        self.predictive_cells: Set[Cell] = set()
        self.matching_cells: Set[Cell] = set()
        self.active_segments: Set[Segment] = set()
        self.matching_segments: Set[Segment] = set()

    # ----- Parameters -----

    @property
    def column_dimensions(self) -> Tuple[int, ...]:
        return self.parameters.column_dimensions

    @property
    def num_columns(self) -> int:
        return self.parameters.num_columns

    @property
    def cells_per_column(self) -> int:
        return self.parameters.cells_per_column

    @property
    def activation_threshold(self) -> int:
        return self.parameters.activation_threshold

    @property
    def min_threshold(self) -> int:
        return self.parameters.min_threshold

    @property
    def connected_permanence(self) -> float:
        return self.parameters.connected_permanence

    @property
    def predicted_segment_decrement(self) -> float:
        return self.parameters.predicted_segment_decrement

    # ----- Structure lookups -----

    @property
    def initialized(self) -> bool:
        return self.memory is not None and self.memory.get(0) is not None

    def get_column(self, index: int) -> Column:
        """Return the column at ``index``; raises if the store has not been populated."""
        if self.memory is None:
            raise RuntimeError("Connections has no column store; call TemporalMemory.init() first.")
        column = self.memory.get(index)
        if column is None:
            raise ValueError(f"Column {index} has not been created.")
        return column

    def get_cell(self, index: int) -> Cell:
        return self.cells[index]

    def column_of(self, cell: Cell) -> Column:
        return self.get_column(cell.column_index)

    def cell_of(self, segment: Segment) -> Cell:
        return self.cells[segment.cell_index]

    def segment_of(self, synapse: Synapse) -> Segment:
        return self._segments[synapse.segment_index]

    def get_segments(self, cell: Cell) -> List[Segment]:
        """Return the segments of ``cell`` in creation order."""
        return self._cell_segments.get(cell.index, [])

    def get_synapses(self, segment: Segment) -> List[Synapse]:
        """Return the synapses of ``segment`` in creation order."""
        return self._segment_synapses.get(segment.index, [])

    def get_receptor_synapses(self, cell: Cell) -> List[Synapse]:
        """Return every synapse whose source is ``cell``."""
        return self._receptor_synapses.get(cell.index, [])

    @property
    def segment_count(self) -> int:
        return len(self._segments)

    @property
    def synapse_count(self) -> int:
        return len(self._synapses)

    # ----- Structure growth -----

    def create_segment(self, cell: Cell) -> Segment:
        """Append a new, empty segment to ``cell``."""
        segment = Segment(len(self._segments), cell.index)
        self._segments.append(segment)
        self._cell_segments.setdefault(cell.index, []).append(segment)
        log.debug("Created %r on %r", segment, cell)
        return segment

    def create_synapse(self, segment: Segment, source_cell: Cell, permanence: float) -> Synapse:
        """Append a synapse from ``source_cell`` to ``segment``."""
        synapse = Synapse(len(self._synapses), segment.index, source_cell, permanence)
        self._synapses.append(synapse)
        self._segment_synapses.setdefault(segment.index, []).append(synapse)
        self._receptor_synapses.setdefault(source_cell.index, []).append(synapse)
        return synapse

    # ----- Reporting -----

    def print_stats(self) -> None:
        """Print segment, synapse and permanence statistics for the network."""
        segments_per_cell = [len(self.get_segments(cell)) for cell in self.cells]
        synapses_per_segment = [len(self.get_synapses(segment)) for segment in self._segments]
        permanences = [syn.permanence for syn in self._synapses]
        connected = sum(1 for p in permanences if p >= self.connected_permanence)
        unused_cells = sum(1 for n in segments_per_cell if n == 0)

        num_columns = len(self.memory) if self.memory is not None else 0
        print("Connections statistics:")
        print(
            f"  Columns: {num_columns} | Cells: {len(self.cells)} | "
            f"Segments: {self.segment_count} | Synapses: {self.synapse_count}"
        )
        for label, values, precision in (
            ("Segments per cell", segments_per_cell, ".2f"),
            ("Synapses per segment", synapses_per_segment, ".2f"),
            ("Permanence", permanences, ".3f"),
        ):
            if values:
                spread = pstdev(values) if len(values) > 1 else 0.0
                print(
                    f"  {label:<22} mean {fmean(values):{precision}} ± {spread:{precision}}"
                    f"  [{min(values):{precision}}, {max(values):{precision}}]"
                )
            else:
                print(f"  {label:<22} n/a")
        print(f"  Cells without segments: {unused_cells}/{len(self.cells)}")
        ratio = connected / len(permanences) if permanences else 0.0
        print(
            f"  Connected synapses (>= {self.connected_permanence}): {connected}"
            f" ({ratio:.1%} of all synapses)"
        )
