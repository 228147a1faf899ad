"""Pure 2048 board mechanics.

Boards are plain lists of 4 rows of 4 ints. Every function returns a new
board and never mutates its input. The only randomized step is tile
spawning, which draws from an injected ``rng`` (anything exposing
``choice()`` and ``random()``, such as ``random.Random``).
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

SIZE = 4
WIN_TILE = 2048
SPAWN_TWO_PROBABILITY = 0.9

UP = 'up'
DOWN = 'down'
LEFT = 'left'
RIGHT = 'right'
DIRECTIONS: Tuple[str, ...] = (UP, DOWN, LEFT, RIGHT)

Board = List[List[int]]
Row = List[int]
Spawn = Tuple[int, int, int]


def empty_board() -> Board:
    return [[0] * SIZE for _ in range(SIZE)]


def copy_board(board: Sequence[Sequence[int]]) -> Board:
    return [list(row) for row in board]


def _reverse_rows(board: Board) -> Board:
    return [list(reversed(row)) for row in board]


def _transpose(board: Board) -> Board:
    return [list(row) for row in zip(*board)]


def _down_to_left(board: Board) -> Board:
    return _reverse_rows(_transpose(_reverse_rows(board)))


# direction -> (prepare, finish); each transformation is its own inverse
_TRANSFORMATIONS: Dict[str, Tuple[Callable[[Board], Board], Callable[[Board], Board]]] = {
    LEFT: (copy_board, copy_board),
    RIGHT: (_reverse_rows, _reverse_rows),
    UP: (_transpose, _transpose),
    DOWN: (_down_to_left, _down_to_left),
}


def _transformations(direction: str):
    try:
        return _TRANSFORMATIONS[direction]
    except KeyError:
        raise ValueError(f"Unknown direction: {direction}") from None


def rotate_to_left(board: Board, direction: str) -> Board:
    """Rotate ``board`` so that moving ``direction`` becomes moving left."""
    prepare, _ = _transformations(direction)
    return prepare(board)


def rotate_from_left(board: Board, direction: str) -> Board:
    """Undo :func:`rotate_to_left` for the same direction."""
    _, finish = _transformations(direction)
    return finish(board)


def slide_and_merge(row: Sequence[int]) -> Row:
    """Slide one row to the left, merging equal neighbours once.

    [2, 2, 2, 2] -> [4, 4, 0, 0]; [4, 0, 4, 8] -> [8, 8, 0, 0]
    """
    tiles = [value for value in row if value != 0]
    i = 0
    while i < len(tiles) - 1:
        if tiles[i] == tiles[i + 1]:
            tiles[i] *= 2
            tiles[i + 1] = 0
            i += 2
        else:
            i += 1
    tiles = [value for value in tiles if value != 0]
    return tiles + [0] * (len(row) - len(tiles))


def apply_move(board: Board, direction: str) -> Board:
    rotated = rotate_to_left(board, direction)
    moved = [slide_and_merge(row) for row in rotated]
    return rotate_from_left(moved, direction)


def has_changed(before: Board, after: Board) -> bool:
    return [list(row) for row in before] != [list(row) for row in after]


def empty_cells(board: Board) -> List[Tuple[int, int]]:
    return [
        (r, c)
        for r in range(SIZE)
        for c in range(SIZE)
        if board[r][c] == 0
    ]


def spawn_tile(board: Board, rng) -> Tuple[Board, Optional[Spawn]]:
    """Place a 2 (90%) or a 4 (10%) on a uniformly chosen empty cell.

    Returns the new board and ``(row, col, value)``, or an unchanged copy and
    ``None`` when the board is full.
    """
    new_board = copy_board(board)
    cells = empty_cells(new_board)
    if not cells:
        return new_board, None

    r, c = rng.choice(cells)
    value = 2 if rng.random() < SPAWN_TWO_PROBABILITY else 4
    new_board[r][c] = value
    return new_board, (r, c, value)


def new_board(rng) -> Board:
    """Starting position: an empty board with two spawned tiles."""
    board, _ = spawn_tile(empty_board(), rng)
    board, _ = spawn_tile(board, rng)
    return board


def is_win(board: Board, target: int = WIN_TILE) -> bool:
    return any(value == target for row in board for value in row)


def is_terminal(board: Board) -> bool:
    """True when no cell is empty and no two adjacent cells are equal."""
    if empty_cells(board):
        return False

    for r in range(SIZE):
        for c in range(SIZE):
            current = board[r][c]
            if c < SIZE - 1 and board[r][c + 1] == current:
                return False
            if r < SIZE - 1 and board[r + 1][c] == current:
                return False

    return True


def max_tile(board: Board) -> int:
    return max(max(row) for row in board)


def is_tile_value(value) -> bool:
    """0 or a power of two >= 2 (bools are rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value == 0 or (value >= 2 and value & (value - 1) == 0)


def has_board_shape(board) -> bool:
    if not isinstance(board, (list, tuple)) or len(board) != SIZE:
        return False
    return all(isinstance(row, (list, tuple)) and len(row) == SIZE for row in board)


def is_valid_board(board) -> bool:
    return has_board_shape(board) and all(is_tile_value(v) for row in board for v in row)
