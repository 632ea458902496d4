"""
牌的定义与编码

Klondike 使用一副 52 张的标准扑克牌 (无王):
- 四种花色 ♠ ♥ ♦ ♣
- 每种花色 A, 2-10, J, Q, K 各 1 张
"""
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Iterable, List, Tuple
import numpy as np


class Suit(Enum):
    """花色 (顺序即基础堆的索引顺序)"""
    SPADES = "♠"
    HEARTS = "♥"
    DIAMONDS = "♦"
    CLUBS = "♣"

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)

    @property
    def color(self) -> str:
        return "red" if self.is_red else "black"

    @property
    def index(self) -> int:
        return SUITS.index(self)


class Rank(IntEnum):
    """牌面值 (A=1 ... K=13)"""
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    @property
    def label(self) -> str:
        return RANK_TO_STR[self.value]


# 基础堆顺序
SUITS: Tuple[Suit, ...] = (Suit.SPADES, Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS)

RANKS: Tuple[Rank, ...] = tuple(Rank)

NUM_PER_SUIT = 13
DECK_SIZE = 52

# 牌面值到显示字符的映射
RANK_TO_STR: Dict[int, str] = {
    1: 'A', 2: '2', 3: '3', 4: '4', 5: '5', 6: '6', 7: '7',
    8: '8', 9: '9', 10: '10', 11: 'J', 12: 'Q', 13: 'K',
}

# 显示字符到牌面值的映射
STR_TO_RANK: Dict[str, int] = {v: k for k, v in RANK_TO_STR.items()}

# ASCII 花色字母 (终端输入用)
LETTER_TO_SUIT: Dict[str, Suit] = {
    's': Suit.SPADES,
    'h': Suit.HEARTS,
    'd': Suit.DIAMONDS,
    'c': Suit.CLUBS,
}


@dataclass
class Card:
    """
    一张牌

    花色与点数不可变，只有 face_up 会在翻牌 / 回收 / 撤销时改变

    Attributes:
        suit: 花色
        rank: 点数
        face_up: 是否正面朝上
    """
    suit: Suit
    rank: Rank
    face_up: bool = False

    @property
    def id(self) -> str:
        """唯一标识，如 "10♥" """
        return f"{self.rank.label}{self.suit.value}"

    @property
    def value(self) -> int:
        return int(self.rank)

    @property
    def is_red(self) -> bool:
        return self.suit.is_red

    @property
    def index(self) -> int:
        """0-51 的编码索引 (花色优先)"""
        return self.suit.index * NUM_PER_SUIT + (self.value - 1)

    def is_opposite_color(self, other: 'Card') -> bool:
        return self.is_red != other.is_red

    def to_dict(self) -> Dict:
        return {"id": self.id, "face_up": self.face_up}

    @classmethod
    def from_dict(cls, d: Dict) -> 'Card':
        card = str_to_card(d["id"])
        card.face_up = bool(d.get("face_up", False))
        return card

    def __str__(self) -> str:
        return self.id if self.face_up else "[" + self.id + "]"


def new_deck() -> List[Card]:
    """创建一副按花色、点数排序的新牌 (全部背面朝上)"""
    return [Card(suit, rank) for suit in SUITS for rank in RANKS]


def card_from_index(index: int) -> Card:
    """由 0-51 索引还原牌"""
    if not 0 <= index < DECK_SIZE:
        raise ValueError(f"Card index out of range: {index}")
    return Card(SUITS[index // NUM_PER_SUIT], Rank(index % NUM_PER_SUIT + 1))


def str_to_card(s: str) -> Card:
    """
    将字符串解析为牌

    Args:
        s: 如 "10♥", "A♠", "Qs" (支持 s/h/d/c 字母花色)

    Returns:
        背面朝上的 Card
    """
    s = s.strip()
    if len(s) < 2:
        raise ValueError(f"Invalid card string: {s!r}")
    rank_part, suit_part = s[:-1].upper(), s[-1]
    if rank_part not in STR_TO_RANK:
        raise ValueError(f"Invalid rank in card string: {s!r}")
    suit = LETTER_TO_SUIT.get(suit_part.lower())
    if suit is None:
        try:
            suit = Suit(suit_part)
        except ValueError:
            raise ValueError(f"Invalid suit in card string: {s!r}") from None
    return Card(suit, Rank(STR_TO_RANK[rank_part]))


def cards_to_str(cards: Iterable[Card]) -> str:
    """将牌列表转换为可读字符串，背面牌显示为 [id]"""
    return ' '.join(str(c) for c in cards)


def cards_to_array(cards: Iterable[Card]) -> np.ndarray:
    """
    将牌列表转换为 52 维 one-hot 向量

    编码方式: index = 花色索引 * 13 + (点数 - 1)

    Args:
        cards: 牌列表

    Returns:
        52 维 numpy 数组
    """
    arr = np.zeros(DECK_SIZE, dtype=np.float32)
    for card in cards:
        arr[card.index] = 1
    return arr


def array_to_cards(array: np.ndarray) -> List[Card]:
    """
    将 52 维数组转换回牌列表 (按编码索引排序)

    Args:
        array: 52 维 numpy 数组

    Returns:
        牌列表
    """
    return [card_from_index(int(i)) for i in np.flatnonzero(array[:DECK_SIZE] > 0)]
