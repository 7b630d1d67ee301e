from typing import List

# ===== Basic Building Blocks =====
#
# Every object carries a stable integer index into the arena that holds it.
# References back up the hierarchy (cell -> column, segment -> cell,
# synapse -> segment) are plain indices resolved through Connections.


class Cell:
    """Single cell within a column.

    Identity is fixed at creation: ``index`` is the global cell index and
    ``column_index`` the index of the parent column.
    """

    index: int
    column_index: int

    def __init__(self, index: int, column_index: int) -> None:
        self.index = index
        self.column_index = column_index

    def __lt__(self, other: 'Cell') -> bool:
        return self.index < other.index

    def __repr__(self) -> str:
        return f"Cell(index={self.index}, column={self.column_index})"


class Column:
    """Column owning a fixed-size group of cells."""

    index: int
    cells: List[Cell]

    def __init__(self, cells_per_column: int, index: int) -> None:
        self.index = index
        self.cells = [
            Cell(index * cells_per_column + j, index)
            for j in range(cells_per_column)
        ]

    def get_cell(self, offset: int) -> Cell:
        """Return the cell at ``offset`` within this column."""
        return self.cells[offset]

    def __repr__(self) -> str:
        return f"Column(index={self.index})"


class Segment:
    """Distal segment belonging to one cell."""

    index: int
    cell_index: int

    def __init__(self, index: int, cell_index: int) -> None:
        self.index = index
        self.cell_index = cell_index

    def __lt__(self, other: 'Segment') -> bool:
        return self.index < other.index

    def __repr__(self) -> str:
        return f"Segment(index={self.index}, cell={self.cell_index})"


class Synapse:
    """Distal synapse reading from a source cell anywhere in the network."""

    index: int
    segment_index: int
    source_cell: Cell
    permanence: float

    def __init__(self, index: int, segment_index: int, source_cell: Cell, permanence: float) -> None:
        self.index = index
        self.segment_index = segment_index
        self.source_cell = source_cell
        self.permanence = permanence

    @property
    def potentially_connected(self) -> bool:
        """Return whether the synapse counts towards matching (any permanence above zero)."""
        return self.permanence > 0.0

    def __repr__(self) -> str:
        return (
            f"Synapse(index={self.index}, segment={self.segment_index}, "
            f"source={self.source_cell.index}, permanence={self.permanence:.3f})"
        )
