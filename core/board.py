"""
牌局状态定义

一局 Klondike 由五类牌堆组成:
- 牌库 (stock): 背面朝上，列表末尾为顶牌
- 废牌堆 (waste): 顶牌正面朝上，可以打出
- 基础堆 (foundations): 每种花色一个，从 A 升序到 K
- 牌列 (tableau): 7 列，暗牌在下、明牌在上，明牌部分为降序交替颜色的牌段

牌局在原地被移动修改，撤销时由历史快照整体恢复。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple
import copy

from .cards import Card, DECK_SIZE, NUM_PER_SUIT, SUITS
from .errors import CardNotFound, DeckIntegrityError
from .moves import PileType

NUM_COLUMNS = 7
NUM_FOUNDATIONS = len(SUITS)


class Phase(Enum):
    """牌局阶段"""
    DEALING = "dealing"    # 发牌中
    PLAYING = "playing"    # 进行中
    WON = "won"            # 已获胜 (终态)


def _empty_foundations() -> List[List[Card]]:
    return [[] for _ in range(NUM_FOUNDATIONS)]


def _empty_tableau() -> List[List[Card]]:
    return [[] for _ in range(NUM_COLUMNS)]


@dataclass
class Board:
    """
    可变牌局

    Attributes:
        stock: 牌库
        waste: 废牌堆
        foundations: 4 个基础堆，索引顺序 ♠ ♥ ♦ ♣
        tableau: 7 个牌列
        moves: 已执行的移动数
        score: 当前得分
        draw_mode: 每次翻牌张数 (1 或 3)
        phase: 牌局阶段
    """
    stock: List[Card] = field(default_factory=list)
    waste: List[Card] = field(default_factory=list)
    foundations: List[List[Card]] = field(default_factory=_empty_foundations)
    tableau: List[List[Card]] = field(default_factory=_empty_tableau)
    moves: int = 0
    score: int = 0
    draw_mode: int = 1
    phase: Phase = Phase.DEALING

    @property
    def won(self) -> bool:
        return self.phase == Phase.WON

    def all_cards(self) -> List[Card]:
        """按 牌库, 废牌堆, 基础堆, 牌列 的顺序返回全部牌"""
        cards = list(self.stock) + list(self.waste)
        for pile in self.foundations:
            cards.extend(pile)
        for column in self.tableau:
            cards.extend(column)
        return cards

    def find_card(self, card_id: str) -> Tuple[PileType, Optional[int], int]:
        """
        定位一张牌

        Returns:
            (牌堆类型, 牌堆索引, 在牌堆中的位置)；牌库和废牌堆的牌堆索引为 None

        Raises:
            CardNotFound: 牌不在牌局中
        """
        for pos, card in enumerate(self.stock):
            if card.id == card_id:
                return PileType.STOCK, None, pos
        for pos, card in enumerate(self.waste):
            if card.id == card_id:
                return PileType.WASTE, None, pos
        for idx, pile in enumerate(self.foundations):
            for pos, card in enumerate(pile):
                if card.id == card_id:
                    return PileType.FOUNDATION, idx, pos
        for idx, column in enumerate(self.tableau):
            for pos, card in enumerate(column):
                if card.id == card_id:
                    return PileType.TABLEAU, idx, pos
        raise CardNotFound(f"Card {card_id} is not on the board")

    def hidden_count(self) -> int:
        """牌列中暗牌数量"""
        return sum(1 for column in self.tableau for card in column if not card.face_up)

    def foundation_count(self) -> int:
        return sum(len(pile) for pile in self.foundations)

    def snapshot(self) -> 'Board':
        """深拷贝快照"""
        return copy.deepcopy(self)

    def restore(self, snapshot: 'Board') -> None:
        """用快照原地覆盖当前牌局 (保持对象身份不变)"""
        restored = copy.deepcopy(snapshot)
        self.stock = restored.stock
        self.waste = restored.waste
        self.foundations = restored.foundations
        self.tableau = restored.tableau
        self.moves = restored.moves
        self.score = restored.score
        self.draw_mode = restored.draw_mode
        self.phase = restored.phase

    def verify(self) -> None:
        """
        检查牌局不变式

        - 52 张牌各出现一次
        - 基础堆同花色，从 A 严格递增
        - 牌列明牌部分为降序交替颜色的牌段，且暗牌不在明牌之上

        Raises:
            DeckIntegrityError: 任一不变式被破坏
        """
        ids = [card.id for card in self.all_cards()]
        if len(ids) != DECK_SIZE or len(set(ids)) != DECK_SIZE:
            raise DeckIntegrityError(
                f"Board holds {len(ids)} cards ({len(set(ids))} unique), expected {DECK_SIZE}"
            )

        for idx, pile in enumerate(self.foundations):
            for pos, card in enumerate(pile):
                if card.suit != SUITS[idx] or card.value != pos + 1:
                    raise DeckIntegrityError(f"Foundation {idx} out of order at {card.id}")

        for idx, column in enumerate(self.tableau):
            seen_face_up = False
            for pos, card in enumerate(column):
                if card.face_up:
                    if seen_face_up:
                        below = column[pos - 1]
                        if below.value != card.value + 1 or below.is_red == card.is_red:
                            raise DeckIntegrityError(f"Tableau {idx} run broken at {card.id}")
                    seen_face_up = True
                elif seen_face_up:
                    raise DeckIntegrityError(f"Tableau {idx} has a face-down card above a face-up one")

    def to_dict(self) -> Dict:
        """转换为可 JSON 序列化的字典"""
        return {
            "stock": [c.to_dict() for c in self.stock],
            "waste": [c.to_dict() for c in self.waste],
            "foundations": [[c.to_dict() for c in pile] for pile in self.foundations],
            "tableau": [[c.to_dict() for c in column] for column in self.tableau],
            "moves": self.moves,
            "score": self.score,
            "draw_mode": self.draw_mode,
            "phase": self.phase.value,
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'Board':
        """从字典还原并校验"""
        board = cls(
            stock=[Card.from_dict(c) for c in d["stock"]],
            waste=[Card.from_dict(c) for c in d["waste"]],
            foundations=[[Card.from_dict(c) for c in pile] for pile in d["foundations"]],
            tableau=[[Card.from_dict(c) for c in column] for column in d["tableau"]],
            moves=int(d.get("moves", 0)),
            score=int(d.get("score", 0)),
            draw_mode=int(d.get("draw_mode", 1)),
            phase=Phase(d.get("phase", Phase.PLAYING.value)),
        )
        if len(board.foundations) != NUM_FOUNDATIONS or len(board.tableau) != NUM_COLUMNS:
            raise DeckIntegrityError("Board layout must have 4 foundations and 7 columns")
        board.verify()
        return board

    def pretty(self) -> str:
        """文本渲染"""
        lines = []
        stock = f"[{len(self.stock):2d}]" if self.stock else "[  ]"
        waste = str(self.waste[-1]) if self.waste else "--"
        foundations = "  ".join(
            str(pile[-1]) if pile else f"--{suit.value}"
            for pile, suit in zip(self.foundations, SUITS)
        )
        lines.append(f"Stock {stock}  Waste {waste:>5}    {foundations}")
        lines.append("-" * 50)
        lines.append("  ".join(f"{i:^5}" for i in range(NUM_COLUMNS)))
        height = max((len(c) for c in self.tableau), default=0)
        for row in range(height):
            cells = []
            for column in self.tableau:
                if row >= len(column):
                    cells.append(" " * 5)
                elif column[row].face_up:
                    cells.append(f"{column[row].id:^5}")
                else:
                    cells.append(f"{'##':^5}")
            lines.append("  ".join(cells))
        lines.append("-" * 50)
        lines.append(
            f"Moves: {self.moves}  Score: {self.score}  "
            f"Foundations: {self.foundation_count()}/{NUM_PER_SUIT * NUM_FOUNDATIONS}"
        )
        return "\n".join(lines)
