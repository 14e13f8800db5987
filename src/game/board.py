"""
The Board engine: pure functions over the 9 cells of a tic-tac-toe board.

Cells are indexed row by row:

    0 | 1 | 2
    3 | 4 | 5
    6 | 7 | 8

Nothing in here validates whose turn it is or whether a game is running. That is the Game's job.
"""

from enum import IntEnum
from typing import Iterable, Optional

BOARD_SIZE = 9

Line = tuple[int, int, int]

# Order matters for highlighting only: rows, then columns, then diagonals
WINNING_LINES: tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class Cell(IntEnum):
    EMPTY = 0
    X = 1
    O = 2


CELL_SYMBOLS: dict[Cell, str] = {Cell.EMPTY: ".", Cell.X: "X", Cell.O: "O"}

Board = tuple[Cell, ...]


def empty_board() -> Board:
    return (Cell.EMPTY,) * BOARD_SIZE


def from_cells(cells: Iterable[int]) -> Board:
    """Build a board from raw cell values (as stored in the database)."""
    board = tuple(Cell(value) for value in cells)
    if len(board) != BOARD_SIZE:
        raise ValueError(f"A board has {BOARD_SIZE} cells, got {len(board)}.")
    return board


def is_within_bounds(position: int) -> bool:
    return 0 <= position < BOARD_SIZE


def apply_mark(board: Board, position: int, mark: Cell) -> Board:
    """Return a new board with `mark` placed on `position`.

    The caller is responsible for checking the move first. A bad position or an occupied cell is a bug, not a game rule.
    """
    if not is_within_bounds(position):
        raise ValueError(f"Position {position} is not on the board.")
    if board[position] != Cell.EMPTY:
        raise ValueError(f"Cell {position} is already marked.")
    if mark == Cell.EMPTY:
        raise ValueError("Cannot place an empty mark.")
    return board[:position] + (mark,) + board[position + 1 :]


def winning_line(board: Board, mark: Cell) -> Optional[Line]:
    """First line fully occupied by `mark`, or None."""
    for line in WINNING_LINES:
        if all(board[index] == mark for index in line):
            return line
    return None


def has_winner(board: Board, mark: Cell) -> bool:
    return winning_line(board, mark) is not None


def is_full(board: Board) -> bool:
    return all(cell != Cell.EMPTY for cell in board)


def filled_count(board: Board) -> int:
    return sum(1 for cell in board if cell != Cell.EMPTY)


def to_text(board: Board) -> str:
    """Three rows of symbols, used in debug logging."""
    rows = [board[start : start + 3] for start in range(0, BOARD_SIZE, 3)]
    return "\n".join("|".join(CELL_SYMBOLS[cell] for cell in row) for row in rows)
