from __future__ import annotations

from dataclasses import dataclass, replace as dc_replace
from typing import Dict, Iterable, List, Optional, Set, Tuple

Coord = Tuple[int, int]
PlayerId = int

# Up, down, left, right. Destination order of every explosion follows this.
DIRECTIONS: Tuple[Coord, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


@dataclass(frozen=True)
class Cell:
    """A single board square: orb count, owning player and fixed critical mass."""
    count: int
    owner: Optional[PlayerId]
    threshold: int

    def is_critical(self) -> bool:
        return self.count >= self.threshold


def critical_mass(row: int, col: int, rows: int, cols: int) -> int:
    """Orb count at which the cell at (row, col) explodes: corner 2, edge 3, interior 4."""
    on_row_edge = row == 0 or row == rows - 1
    on_col_edge = col == 0 or col == cols - 1
    if on_row_edge and on_col_edge:
        return 2
    if on_row_edge or on_col_edge:
        return 3
    return 4


@dataclass(frozen=True)
class Board:
    """Represents the grid of cells. Immutable; every update returns a new Board."""
    rows: int
    cols: int
    cells: Tuple[Cell, ...]  # row-major, length == rows * cols

    def index(self, r: int, c: int) -> int:
        """Calculates the 1D index for a given row and column."""
        return r * self.cols + c

    def in_bounds(self, r: int, c: int) -> bool:
        return 0 <= r < self.rows and 0 <= c < self.cols

    def at(self, r: int, c: int) -> Cell:
        """Gets the cell at a given row and column."""
        if not self.in_bounds(r, c):
            raise IndexError(f"Cell ({r}, {c}) outside {self.rows}x{self.cols} board")
        return self.cells[self.index(r, c)]

    def coords(self) -> Iterable[Coord]:
        """Iterates over all coordinates on the board in row-major order."""
        for r in range(self.rows):
            for c in range(self.cols):
                yield (r, c)

    def replace(self, r: int, c: int, cell: Cell) -> 'Board':
        cells = list(self.cells)
        cells[self.index(r, c)] = cell
        return Board(self.rows, self.cols, tuple(cells))

    def with_cell(self, r: int, c: int, count: int, owner: Optional[PlayerId]) -> 'Board':
        return self.replace(r, c, dc_replace(self.at(r, c), count=count, owner=owner))

    def total_orbs(self) -> int:
        return sum(cell.count for cell in self.cells)

    def orbs_by_owner(self) -> Dict[PlayerId, int]:
        totals: Dict[PlayerId, int] = {}
        for cell in self.cells:
            if cell.count > 0 and cell.owner is not None:
                totals[cell.owner] = totals.get(cell.owner, 0) + cell.count
        return totals

    def owners_alive(self) -> Set[PlayerId]:
        """Players that own at least one cell with a positive orb count."""
        return set(self.orbs_by_owner())

    def critical_cells(self) -> List[Coord]:
        """Cells at or above their threshold, in row-major scan order."""
        return [(r, c) for (r, c) in self.coords() if self.at(r, c).is_critical()]

    def is_stable(self) -> bool:
        return all(not cell.is_critical() for cell in self.cells)

    def pretty(self) -> str:
        """Generates a human-readable grid: '.' for empty cells, otherwise count followed by owner."""
        lines: List[str] = []
        for r in range(self.rows):
            row: List[str] = []
            for c in range(self.cols):
                cell = self.at(r, c)
                if cell.count == 0:
                    row.append(" . ")
                else:
                    owner = "?" if cell.owner is None else str(cell.owner)
                    row.append(f"{cell.count}p{owner}")
            lines.append(" ".join(row))
        return "\n".join(lines)


def create_board(rows: int, cols: int) -> Board:
    """Creates an empty board; each cell's threshold is fixed from its position."""
    cells = tuple(
        Cell(count=0, owner=None, threshold=critical_mass(r, c, rows, cols))
        for r in range(rows)
        for c in range(cols)
    )
    return Board(rows=rows, cols=cols, cells=cells)


def neighbors(board: Board, coord: Coord) -> List[Coord]:
    """Gets the in-bounds orthogonal neighbors of a coordinate (no wrap-around)."""
    r, c = coord
    out: List[Coord] = []
    for dr, dc in DIRECTIONS:
        nr, nc = r + dr, c + dc
        if board.in_bounds(nr, nc):
            out.append((nr, nc))
    return out
