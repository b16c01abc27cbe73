"""Sliding-window board model for one room.

Each side keeps at most ``MAX_MARKS`` marks on the board. Placing one more
evicts that side's oldest mark, strictly first-in first-out.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

BOARD_SIZE = 9
MAX_MARKS = 3

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class InvalidMove(Exception):
    pass


@dataclass
class MoveResult:
    mark: str
    index: int
    evicted: Optional[int] = None


@dataclass
class GameState:
    board: List[Optional[str]] = field(default_factory=lambda: [None] * BOARD_SIZE)
    x_moves: List[int] = field(default_factory=list)
    o_moves: List[int] = field(default_factory=list)
    is_x_next: bool = True

    @classmethod
    def fresh(cls) -> 'GameState':
        return cls()

    @property
    def next_mark(self) -> str:
        return 'X' if self.is_x_next else 'O'

    def apply_move(self, index: Any) -> MoveResult:
        """Place the next mark at ``index`` and hand the turn over.

        - Rejects indices outside the board and occupied cells with
          InvalidMove, leaving the state untouched
        - Does not check whose turn it is or whether a line is already
          complete; clients own those rules
        - Reports the index that fell off the board, if any
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidMove(f"index must be an integer, got {index!r}")
        if not 0 <= index < BOARD_SIZE:
            raise InvalidMove(f"index {index} is off the board")
        if self.board[index] is not None:
            raise InvalidMove(f"cell {index} is already taken")

        mark = self.next_mark
        moves = self.x_moves if self.is_x_next else self.o_moves
        moves.append(index)
        self.board[index] = mark

        evicted = None
        if len(moves) > MAX_MARKS:
            evicted = moves.pop(0)
            self.board[evicted] = None

        self.is_x_next = not self.is_x_next
        return MoveResult(mark=mark, index=index, evicted=evicted)

    def winning_line(self) -> Optional[Tuple[int, int, int]]:
        for a, b, c in WINNING_LINES:
            if self.board[a] is not None and self.board[a] == self.board[b] == self.board[c]:
                return (a, b, c)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'board': list(self.board),
            'xMoves': list(self.x_moves),
            'oMoves': list(self.o_moves),
            'isXNext': self.is_x_next,
        }
