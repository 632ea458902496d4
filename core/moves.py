"""
移动类型定义与合法移动生成器

Klondike 共有 7 种移动 (闭合枚举，合法性规则有限可列举)
"""
from enum import Enum, IntEnum
from dataclasses import dataclass
from typing import Dict, List, Optional, TYPE_CHECKING

from .errors import InvalidMove

if TYPE_CHECKING:
    from .board import Board
    from .config import GameConfig


class PileType(Enum):
    """牌堆类型"""
    STOCK = "stock"
    WASTE = "waste"
    FOUNDATION = "foundation"
    TABLEAU = "tableau"


class MoveKind(IntEnum):
    """移动类型"""
    DRAW = 0                   # 牌库 -> 废牌堆
    RECYCLE = 1                # 废牌堆 -> 牌库 (牌库为空时)
    WASTE_TO_TABLEAU = 2       # 废牌堆 -> 牌列
    WASTE_TO_FOUNDATION = 3    # 废牌堆 -> 基础堆
    TABLEAU_TO_TABLEAU = 4     # 牌列 -> 牌列 (整段移动)
    TABLEAU_TO_FOUNDATION = 5  # 牌列顶牌 -> 基础堆
    FOUNDATION_TO_TABLEAU = 6  # 基础堆顶牌 -> 牌列


# 每种移动的 (源, 目标) 牌堆
MOVE_PILES: Dict[MoveKind, tuple] = {
    MoveKind.DRAW: (PileType.STOCK, PileType.WASTE),
    MoveKind.RECYCLE: (PileType.WASTE, PileType.STOCK),
    MoveKind.WASTE_TO_TABLEAU: (PileType.WASTE, PileType.TABLEAU),
    MoveKind.WASTE_TO_FOUNDATION: (PileType.WASTE, PileType.FOUNDATION),
    MoveKind.TABLEAU_TO_TABLEAU: (PileType.TABLEAU, PileType.TABLEAU),
    MoveKind.TABLEAU_TO_FOUNDATION: (PileType.TABLEAU, PileType.FOUNDATION),
    MoveKind.FOUNDATION_TO_TABLEAU: (PileType.FOUNDATION, PileType.TABLEAU),
}

# 需要指定牌的移动
CARD_MOVES = frozenset(MOVE_PILES) - {MoveKind.DRAW, MoveKind.RECYCLE}


def _parse_index(value, name: str) -> Optional[int]:
    """JSON 中的索引: None 或整数，整数字符串 (如 "3") 也接受"""
    if value is None:
        return None
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidMove(f"{name} must be an int, got {value!r}")
    return value


@dataclass(frozen=True, slots=True)
class Move:
    """
    不可变移动表示

    Attributes:
        kind: 移动类型
        card_id: 移动的牌 (整段移动时为段首牌)，DRAW/RECYCLE 可省略
        source_index: 源牌列 / 基础堆索引
        target_index: 目标牌列 / 基础堆索引
    """
    kind: MoveKind
    card_id: Optional[str] = None
    source_index: Optional[int] = None
    target_index: Optional[int] = None

    @classmethod
    def draw(cls) -> 'Move':
        return cls(kind=MoveKind.DRAW)

    @classmethod
    def recycle(cls) -> 'Move':
        return cls(kind=MoveKind.RECYCLE)

    @property
    def source_pile(self) -> PileType:
        return MOVE_PILES[self.kind][0]

    @property
    def target_pile(self) -> PileType:
        return MOVE_PILES[self.kind][1]

    @property
    def is_stock_action(self) -> bool:
        return self.kind in (MoveKind.DRAW, MoveKind.RECYCLE)

    @property
    def to_foundation(self) -> bool:
        return self.target_pile == PileType.FOUNDATION

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind.name,
            "card_id": self.card_id,
            "source_index": self.source_index,
            "target_index": self.target_index,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'Move':
        """
        从字典还原移动 (kind 可为名称或整数)

        Raises:
            InvalidMove: kind 未知或索引不是整数
        """
        kind = d.get("kind")
        try:
            kind = MoveKind[kind] if isinstance(kind, str) else MoveKind(kind)
        except (KeyError, ValueError):
            raise InvalidMove(f"Unknown move kind: {kind!r}") from None
        return cls(
            kind=kind,
            card_id=d.get("card_id"),
            source_index=_parse_index(d.get("source_index"), "source_index"),
            target_index=_parse_index(d.get("target_index"), "target_index"),
        )

    def __str__(self) -> str:
        if self.kind == MoveKind.DRAW:
            return "draw"
        if self.kind == MoveKind.RECYCLE:
            return "recycle"
        src = self.source_pile.value
        if self.source_index is not None:
            src += f"[{self.source_index}]"
        dst = self.target_pile.value
        if self.target_index is not None:
            dst += f"[{self.target_index}]"
        return f"{self.card_id}: {src} -> {dst}"


class MoveGenerator:
    """
    合法移动生成器

    只读地枚举当前牌局的所有合法移动，顺序固定:
    牌列->基础堆, 废牌->基础堆, 废牌->牌列, 牌列->牌列, 基础堆->牌列, 牌库操作
    """

    def __init__(self, board: 'Board', config: Optional['GameConfig'] = None):
        self.board = board
        self.config = config

    def generate_all(self) -> List[Move]:
        """生成所有合法移动"""
        from .rules import RuleEngine

        if not RuleEngine.accepts_moves(self.board):
            return []

        moves: List[Move] = []
        moves.extend(self._tableau_to_foundation())
        moves.extend(self._waste_moves())
        moves.extend(self._tableau_to_tableau())
        if RuleEngine.reverse_moves_allowed(self.config):
            moves.extend(self._foundation_to_tableau())
        stock_move = self._stock_move()
        if stock_move is not None:
            moves.append(stock_move)
        return moves

    def _tableau_to_foundation(self) -> List[Move]:
        from .rules import RuleEngine

        moves = []
        for col, column in enumerate(self.board.tableau):
            if not column or not column[-1].face_up:
                continue
            top = column[-1]
            target = top.suit.index
            if RuleEngine.can_place_on_foundation(top, self.board.foundations[target], target):
                moves.append(Move(MoveKind.TABLEAU_TO_FOUNDATION, top.id, col, target))
        return moves

    def _waste_moves(self) -> List[Move]:
        from .rules import RuleEngine

        if not self.board.waste:
            return []
        card = self.board.waste[-1]
        moves = []
        target = card.suit.index
        if RuleEngine.can_place_on_foundation(card, self.board.foundations[target], target):
            moves.append(Move(MoveKind.WASTE_TO_FOUNDATION, card.id, None, target))
        for col, column in enumerate(self.board.tableau):
            if RuleEngine.can_place_on_tableau(card, column):
                moves.append(Move(MoveKind.WASTE_TO_TABLEAU, card.id, None, col))
        return moves

    def _tableau_to_tableau(self) -> List[Move]:
        from .rules import RuleEngine

        moves = []
        for src, column in enumerate(self.board.tableau):
            for start in RuleEngine.movable_run_starts(column):
                card = column[start]
                for dst, target in enumerate(self.board.tableau):
                    if dst == src:
                        continue
                    if RuleEngine.can_place_on_tableau(card, target):
                        moves.append(Move(MoveKind.TABLEAU_TO_TABLEAU, card.id, src, dst))
        return moves

    def _foundation_to_tableau(self) -> List[Move]:
        from .rules import RuleEngine

        moves = []
        for f_idx, pile in enumerate(self.board.foundations):
            if not pile:
                continue
            card = pile[-1]
            for col, column in enumerate(self.board.tableau):
                if RuleEngine.can_place_on_tableau(card, column):
                    moves.append(Move(MoveKind.FOUNDATION_TO_TABLEAU, card.id, f_idx, col))
        return moves

    def _stock_move(self) -> Optional[Move]:
        if self.board.stock:
            return Move(MoveKind.DRAW, self.board.stock[-1].id)
        if self.board.waste:
            return Move.recycle()
        return None

    def has_progress_move(self) -> bool:
        """除牌库操作外是否还有可走的移动"""
        return any(not m.is_stock_action for m in self.generate_all())
