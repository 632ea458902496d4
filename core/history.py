"""
撤销 / 重做历史

每次成功移动前压入牌局深拷贝；撤销时弹出并恢复。
重做栈只由撤销填充，任何新的成功移动都会清空它。
"""
from typing import Dict, List

from .board import Board
from .errors import NoHistory


class History:
    """牌局快照栈"""

    def __init__(self):
        self._undo: List[Board] = []
        self._redo: List[Board] = []

    def __len__(self) -> int:
        return len(self._undo)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def push(self, board: Board) -> None:
        """移动前记录快照，并使重做失效"""
        self._undo.append(board.snapshot())
        self._redo.clear()

    def undo(self, board: Board) -> Board:
        """
        恢复上一个快照

        Args:
            board: 当前牌局 (原地恢复)

        Raises:
            NoHistory: 没有可撤销的移动
        """
        if not self._undo:
            raise NoHistory("Nothing to undo")
        self._redo.append(board.snapshot())
        board.restore(self._undo.pop())
        return board

    def redo(self, board: Board) -> Board:
        """
        重新应用最近一次撤销的移动

        Raises:
            NoHistory: 没有可重做的移动
        """
        if not self._redo:
            raise NoHistory("Nothing to redo")
        self._undo.append(board.snapshot())
        board.restore(self._redo.pop())
        return board

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def to_dict(self) -> Dict:
        return {
            "undo": [b.to_dict() for b in self._undo],
            "redo": [b.to_dict() for b in self._redo],
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'History':
        history = cls()
        history._undo = [Board.from_dict(b) for b in d.get("undo", [])]
        history._redo = [Board.from_dict(b) for b in d.get("redo", [])]
        return history
