"""Temporal Memory compute core.

A network of columns, each containing several cells, learns to predict its own
future activation through distal segments that recognize patterns of
previously active cells. One call to ``TemporalMemory.compute`` runs a full
timestep:

1. Activate the correctly predicted cells (Phase 1).
2. Burst the active columns nobody predicted, choosing one winner cell and one
   learning segment per bursting column (Phase 2).
3. Compute the predictive and matching cells for the next timestep (Phase 3).

Permanence adaptation and synapse growth on the learning segments are left to
the caller, which receives the complete ``ComputeCycle``.
"""

import logging
from collections import defaultdict
from typing import (
    Any,
    Dict,
    Iterable,
    List,
    Sequence,
    Set,
    Union,
)

import numpy as np

from .building_blocks import Cell, Column, Segment
from .compute_cycle import CellSearch, ComputeCycle, SegmentSearch
from .connections import Connections, SparseObjectMatrix

log = logging.getLogger(__name__)

ActiveColumnInput = Union[Set[int], Sequence[int], Iterable[Column], np.ndarray]


class TemporalMemory:
    """Stateless algorithm object; all state lives in ``Connections``."""

    def init(self, c: Connections) -> None:
        """Build the column and cell structure needed by the temporal memory.

        The column store may already have been populated by a companion
        algorithm (e.g. a spatial pooler sharing the same ``Connections``).
        Column 0 is the sentinel: if it exists the columns are reused as is,
        otherwise every column is created. The flat cell registry is always
        rebuilt from the columns.
        """
        matrix = c.memory if c.memory is not None else SparseObjectMatrix(c.column_dimensions)
        c.memory = matrix

        num_columns = matrix.max_index + 1
        cells_per_column = c.cells_per_column
        cells: List[Cell] = []

        col_zero = matrix.get(0)
        for i in range(num_columns):
            column = Column(cells_per_column, i) if col_zero is None else matrix.get(i)
            if column is None:
                raise ValueError(f"Column {i} missing from a previously initialized column store.")
            for j in range(cells_per_column):
                cells.append(column.get_cell(j))
            if col_zero is None:
                matrix.set(i, column)

        c.cells = cells
        log.debug(
            "Initialized %d columns x %d cells (%s)",
            num_columns, cells_per_column, "created" if col_zero is None else "reused",
        )

    # ===== Core functions =====

    def compute(self, c: Connections, active_columns: ActiveColumnInput, learn: bool = True) -> ComputeCycle:
        """Run one timestep for ``active_columns`` and return its ``ComputeCycle``.

        The previous cycle's active, winner, predictive and matching cells are
        read from ``c`` and replaced by this cycle's values afterwards.
        """
        if not c.initialized:
            raise RuntimeError("TemporalMemory.compute() requires TemporalMemory.init() first.")

        columns = self.get_active_columns(c, active_columns)
        cycle = ComputeCycle()

        self.activate_correctly_predictive_cells(
            c, cycle, c.predictive_cells, c.matching_cells, columns)

        self.burst_columns(
            c, cycle, set(columns), cycle.successfully_predicted_columns,
            c.active_cells, c.winner_cells, learn=learn)

        self.compute_predictive_cells(c, cycle, cycle.active_cells)

        c.active_cells = set(cycle.active_cells)
        c.winner_cells = set(cycle.winner_cells)
        c.predictive_cells = set(cycle.predictive_cells)
        c.matching_cells = set(cycle.matching_cells)
        c.active_segments = set(cycle.active_segments)
        c.matching_segments = set(cycle.matching_segments)

        log.debug(
            "Cycle: %d active columns, %d predicted, %d active cells, %d winners, %d predictive",
            len(columns), len(cycle.successfully_predicted_columns), len(cycle.active_cells),
            len(cycle.winner_cells), len(cycle.predictive_cells),
        )
        return cycle

    def reset(self, c: Connections) -> None:
        """Forget the previous timestep, e.g. at a sequence boundary."""
        c.active_cells = set()
        c.winner_cells = set()
        c.predictive_cells = set()
        c.matching_cells = set()
        c.active_segments = set()
        c.matching_segments = set()

    def activate_correctly_predictive_cells(
        self,
        c: Connections,
        cycle: ComputeCycle,
        prev_predictive_cells: Set[Cell],
        prev_matching_cells: Set[Cell],
        active_columns: Set[Column],
    ) -> None:
        """Phase 1: activate the cells that were correctly predicted.

        - for each previous predictive cell in an active column, mark it
          active and winner, and mark its column as predicted
        - if ``predicted_segment_decrement`` is positive, every previous
          matching cell in an inactive column is predicted-but-inactive
        """
        for cell in prev_predictive_cells:
            column = c.column_of(cell)
            if column in active_columns:
                cycle.active_cells.add(cell)
                cycle.winner_cells.add(cell)
                cycle.successfully_predicted_columns.add(column)

        if c.predicted_segment_decrement > 0:
            for cell in prev_matching_cells:
                column = c.column_of(cell)
                if column not in active_columns:
                    cycle.predicted_inactive_cells.add(cell)

    def burst_columns(
        self,
        c: Connections,
        cycle: ComputeCycle,
        active_columns: Set[Column],
        predicted_columns: Set[Column],
        prev_active_cells: Set[Cell],
        prev_winner_cells: Set[Cell],
        learn: bool = True,
    ) -> None:
        """Phase 2: burst the active columns that were not predicted.

        ``active_columns`` is consumed: predicted columns are removed from it
        in place. For each remaining column every cell becomes active, the
        best matching cell becomes the winner, and its best matching segment
        (created when missing and there were previous winners) is appended to
        ``cycle.learning_segments``.
        """
        active_columns -= predicted_columns
        # Sorted so that random tie-breaks are drawn in a reproducible order
        for column in sorted(active_columns, key=lambda col: col.index):
            cells = column.cells
            cycle.active_cells.update(cells)

            cell_search = self.get_best_matching_cell(c, cells, prev_active_cells)

            cycle.winner_cells.add(cell_search.best_cell)

            best_segment = cell_search.best_segment
            if best_segment is None and prev_winner_cells and learn:
                best_segment = c.create_segment(cell_search.best_cell)

            cycle.learning_segments.append(best_segment)

    def compute_predictive_cells(self, c: Connections, cycle: ComputeCycle, active_cells: Set[Cell]) -> None:
        """Phase 3: compute the active and matching segments for the next timestep.

        A segment is active when at least ``activation_threshold`` of its
        connected synapses read from active cells, and matching when at least
        ``min_threshold`` of its synapses with any permanence do.
        """
        num_active_connected: Dict[Segment, int] = defaultdict(int)
        num_active: Dict[Segment, int] = defaultdict(int)

        for cell in active_cells:
            for synapse in c.get_receptor_synapses(cell):
                segment = c.segment_of(synapse)
                if synapse.permanence >= c.connected_permanence:
                    num_active_connected[segment] += 1
                if synapse.potentially_connected:
                    num_active[segment] += 1

        for segment, count in num_active_connected.items():
            if count >= c.activation_threshold:
                cycle.active_segments.add(segment)
                cycle.predictive_cells.add(c.cell_of(segment))

        for segment, count in num_active.items():
            if count >= c.min_threshold:
                cycle.matching_segments.add(segment)
                cycle.matching_cells.add(c.cell_of(segment))

    # ===== Matching helpers =====

    def get_best_matching_cell(self, c: Connections, column_cells: List[Cell], active_cells: Set[Cell]) -> CellSearch:
        """Return the cell whose best matching segment has the most active synapses.

        Ties keep the first cell seen. If no cell has a matching segment, the
        least used cell is returned with no segment.
        """
        max_synapses = 0
        best_cell = None
        best_segment = None

        for cell in column_cells:
            best_match = self.get_best_matching_segment(c, cell, active_cells)

            if best_match.best_segment is not None and best_match.num_active_synapses > max_synapses:
                max_synapses = best_match.num_active_synapses
                best_cell = cell
                best_segment = best_match.best_segment

        if best_cell is None:
            best_cell = self.get_least_used_cell(c, column_cells)

        return CellSearch(best_cell, best_segment)

    def get_best_matching_segment(self, c: Connections, column_cell: Cell, active_cells: Set[Cell]) -> SegmentSearch:
        """Return the segment of ``column_cell`` with the most active synapses.

        Synapses count when their source is in ``active_cells`` and their
        permanence is above zero. Only segments reaching ``min_threshold``
        qualify; ties go to the last segment seen.
        """
        max_synapses = c.min_threshold
        best_segment = None
        best_num_active_synapses = 0

        for segment in c.get_segments(column_cell):
            num_active_synapses = sum(
                1 for synapse in c.get_synapses(segment)
                if synapse.source_cell in active_cells and synapse.potentially_connected
            )

            if num_active_synapses >= max_synapses:
                max_synapses = num_active_synapses
                best_segment = segment
                best_num_active_synapses = num_active_synapses

        return SegmentSearch(best_segment, best_num_active_synapses)

    def get_least_used_cell(self, c: Connections, column_cells: List[Cell]) -> Cell:
        """Return the cell with the fewest segments, breaking ties randomly.

        Candidates are sorted by cell index before the draw so that the same
        seed always picks the same cell.
        """
        least_used_cells: List[Cell] = []
        min_num_segments = None

        for cell in column_cells:
            num_segments = len(c.get_segments(cell))

            if min_num_segments is None or num_segments < min_num_segments:
                min_num_segments = num_segments
                least_used_cells = []

            if num_segments == min_num_segments:
                least_used_cells.append(cell)

        random_idx = c.random.randrange(len(least_used_cells))
        return sorted(least_used_cells)[random_idx]

    # ===== Input handling =====

    def _validate_column_index(self, c: Connections, idx: Any) -> int:
        value = int(idx)
        if value < 0 or value >= c.num_columns:
            raise ValueError(f"Column index {value} out of bounds for {c.num_columns} columns.")
        return value

    def _mask_to_columns(self, c: Connections, mask: Sequence[bool]) -> Set[Column]:
        if len(mask) != c.num_columns:
            raise ValueError(f"Binary mask of length {len(mask)} != {c.num_columns} columns.")
        return {c.get_column(idx) for idx, value in enumerate(mask) if value}

    def get_active_columns(self, c: Connections, active_columns: ActiveColumnInput) -> Set[Column]:
        """Convert column indices, Column objects or a boolean mask into a fresh set of columns.

        Only boolean values are read as a mask; integers are always column indices.
        """
        if isinstance(active_columns, (str, bytes)):
            raise TypeError("Active column sequence must not be a string/bytes.")

        if isinstance(active_columns, np.ndarray):
            vector = np.asarray(active_columns).ravel()
            if vector.dtype == bool:
                return self._mask_to_columns(c, vector.tolist())
            return {c.get_column(self._validate_column_index(c, val)) for val in vector.tolist()}

        if isinstance(active_columns, Sequence) and active_columns:
            if all(isinstance(value, (bool, np.bool_)) for value in active_columns):
                return self._mask_to_columns(c, active_columns)

        if isinstance(active_columns, Iterable):
            columns: Set[Column] = set()
            for value in active_columns:
                if isinstance(value, Column):
                    columns.add(c.get_column(value.index))
                else:
                    columns.add(c.get_column(self._validate_column_index(c, value)))
            return columns

        raise TypeError("Unsupported type for active_columns; provide indices, columns or a boolean mask.")

    def get_predictive_columns(self, c: Connections) -> Set[int]:
        """Return the indices of the columns predicted for the next timestep."""
        return {cell.column_index for cell in c.predictive_cells}
