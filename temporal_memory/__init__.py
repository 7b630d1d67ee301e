"""Temporal Memory compute core: cell activation, bursting and winner selection."""

from .building_blocks import Cell, Column, Segment, Synapse
from .compute_cycle import CellSearch, ComputeCycle, SegmentSearch
from .connections import Connections, SparseObjectMatrix
from .parameters import TemporalMemoryParameters
from .temporal_memory import TemporalMemory

__all__ = [
    "Cell",
    "CellSearch",
    "Column",
    "ComputeCycle",
    "Connections",
    "Segment",
    "SegmentSearch",
    "SparseObjectMatrix",
    "Synapse",
    "TemporalMemory",
    "TemporalMemoryParameters",
]
