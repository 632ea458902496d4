"""
观察空间编码

将牌局转换为数值特征，并在 Move 与离散动作索引之间转换
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import numpy as np

from core.board import Board, NUM_COLUMNS, NUM_FOUNDATIONS
from core.cards import DECK_SIZE, NUM_PER_SUIT, cards_to_array
from core.errors import CardNotFound
from core.moves import Move, MoveKind, MoveGenerator
from core.config import GameConfig


# 牌库初始张数，用于归一化
STOCK_SIZE = DECK_SIZE - NUM_COLUMNS * (NUM_COLUMNS + 1) // 2

# 单列最多暗牌数
MAX_HIDDEN = NUM_COLUMNS - 1


@dataclass
class Observation:
    """
    结构化观测 (只包含玩家可见的信息)

    Attributes:
        tableau: 各牌列的明牌 (7, 52)
        hidden: 各牌列暗牌数，归一化 (7,)
        foundations: 各基础堆完成度 (4,)
        waste_top: 废牌堆顶牌 (52,)
        piles: 牌库、废牌堆张数，归一化 (2,)
        legal_moves: 合法移动列表
    """
    tableau: np.ndarray
    hidden: np.ndarray
    foundations: np.ndarray
    waste_top: np.ndarray
    piles: np.ndarray
    legal_moves: List[Move]

    def to_dict(self) -> Dict[str, np.ndarray]:
        """转换为字典格式"""
        return {
            "tableau": self.tableau,
            "hidden": self.hidden,
            "foundations": self.foundations,
            "waste_top": self.waste_top,
            "piles": self.piles,
        }

    def to_flat_array(self) -> np.ndarray:
        """
        展平为单一向量

        特征维度:
        - tableau: 7 * 52 = 364
        - hidden: 7
        - foundations: 4
        - waste_top: 52
        - piles: 2
        """
        return np.concatenate([
            self.tableau.flatten(),
            self.hidden,
            self.foundations,
            self.waste_top,
            self.piles,
        ])


class ObservationBuilder:
    """
    观测构建器

    负责将 Board 转换为 Observation；暗牌和牌库内容不编码
    """

    FLAT_DIM = NUM_COLUMNS * DECK_SIZE + NUM_COLUMNS + NUM_FOUNDATIONS + DECK_SIZE + 2

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config

    def build(self, board: Board) -> Observation:
        return Observation(
            tableau=self._encode_tableau(board),
            hidden=self._encode_hidden(board),
            foundations=self._encode_foundations(board),
            waste_top=self._encode_waste_top(board),
            piles=self._encode_piles(board),
            legal_moves=MoveGenerator(board, self.config).generate_all(),
        )

    def _encode_tableau(self, board: Board) -> np.ndarray:
        result = np.zeros((NUM_COLUMNS, DECK_SIZE), dtype=np.float32)
        for i, column in enumerate(board.tableau):
            result[i] = cards_to_array(c for c in column if c.face_up)
        return result

    def _encode_hidden(self, board: Board) -> np.ndarray:
        hidden = [sum(1 for c in column if not c.face_up) for column in board.tableau]
        return np.array(hidden, dtype=np.float32) / MAX_HIDDEN

    def _encode_foundations(self, board: Board) -> np.ndarray:
        return np.array(
            [len(pile) for pile in board.foundations], dtype=np.float32
        ) / NUM_PER_SUIT

    def _encode_waste_top(self, board: Board) -> np.ndarray:
        if not board.waste:
            return np.zeros(DECK_SIZE, dtype=np.float32)
        return cards_to_array([board.waste[-1]])

    def _encode_piles(self, board: Board) -> np.ndarray:
        return np.array(
            [len(board.stock), len(board.waste)], dtype=np.float32
        ) / STOCK_SIZE


# 动作键: (移动类型, 源索引, 牌段长度, 目标索引)
ActionKey = Tuple[MoveKind, Optional[int], Optional[int], Optional[int]]


class MoveEncoder:
    """
    动作编码器

    将 Move 与固定大小的离散动作索引相互转换。
    牌列之间的移动按 (源列, 牌段长度, 目标列) 编码，不依赖具体的牌，
    因此解码时需要当前牌局来还原 card_id。
    """

    def __init__(self):
        self._key_to_idx: Dict[ActionKey, int] = {}
        self._idx_to_key: Dict[int, ActionKey] = {}
        self._build_action_space()

    def _add(self, key: ActionKey):
        idx = len(self._key_to_idx)
        self._key_to_idx[key] = idx
        self._idx_to_key[idx] = key

    def _build_action_space(self):
        """
        构建完整动作空间

        - 翻牌: 1
        - 回收: 1
        - 废牌 -> 牌列: 7
        - 废牌 -> 基础堆: 1
        - 牌列 -> 基础堆: 7
        - 基础堆 -> 牌列: 4 * 7
        - 牌列 -> 牌列: 7 * 13 * 6
        """
        self._add((MoveKind.DRAW, None, None, None))
        self._add((MoveKind.RECYCLE, None, None, None))
        for col in range(NUM_COLUMNS):
            self._add((MoveKind.WASTE_TO_TABLEAU, None, 1, col))
        self._add((MoveKind.WASTE_TO_FOUNDATION, None, 1, None))
        for col in range(NUM_COLUMNS):
            self._add((MoveKind.TABLEAU_TO_FOUNDATION, col, 1, None))
        for f_idx in range(NUM_FOUNDATIONS):
            for col in range(NUM_COLUMNS):
                self._add((MoveKind.FOUNDATION_TO_TABLEAU, f_idx, 1, col))
        for src in range(NUM_COLUMNS):
            for length in range(1, NUM_PER_SUIT + 1):
                for dst in range(NUM_COLUMNS):
                    if dst != src:
                        self._add((MoveKind.TABLEAU_TO_TABLEAU, src, length, dst))

    @property
    def num_actions(self) -> int:
        """动作空间大小"""
        return len(self._key_to_idx)

    def _key(self, move: Move, board: Board) -> Optional[ActionKey]:
        kind = move.kind
        if kind in (MoveKind.DRAW, MoveKind.RECYCLE):
            return (kind, None, None, None)
        if kind == MoveKind.WASTE_TO_TABLEAU:
            return (kind, None, 1, move.target_index)
        if kind == MoveKind.WASTE_TO_FOUNDATION:
            return (kind, None, 1, None)

        try:
            _, source, pos = board.find_card(move.card_id)
        except CardNotFound:
            return None
        if move.source_index is not None:
            source = move.source_index

        if kind == MoveKind.TABLEAU_TO_FOUNDATION:
            return (kind, source, 1, None)
        if kind == MoveKind.FOUNDATION_TO_TABLEAU:
            return (kind, source, 1, move.target_index)
        if source is None or not 0 <= source < NUM_COLUMNS:
            return None
        length = len(board.tableau[source]) - pos
        return (kind, source, length, move.target_index)

    def encode(self, move: Move, board: Board) -> int:
        """
        将 Move 编码为索引

        Args:
            move: 移动
            board: 当前牌局 (用于确定牌段长度)

        Returns:
            动作索引，未找到返回 -1
        """
        key = self._key(move, board)
        if key is None:
            return -1
        return self._key_to_idx.get(key, -1)

    def decode(self, idx: int, board: Board) -> Optional[Move]:
        """
        将索引解码为当前牌局上的 Move

        Args:
            idx: 动作索引
            board: 当前牌局

        Returns:
            Move；索引无效或引用的牌不存在时返回 None
        """
        if idx not in self._idx_to_key:
            return None

        kind, source, length, target = self._idx_to_key[idx]
        if kind == MoveKind.DRAW:
            return Move(kind, board.stock[-1].id if board.stock else None)
        if kind == MoveKind.RECYCLE:
            return Move.recycle()
        if kind in (MoveKind.WASTE_TO_TABLEAU, MoveKind.WASTE_TO_FOUNDATION):
            if not board.waste:
                return None
            return Move(kind, board.waste[-1].id, None, target)
        if kind == MoveKind.FOUNDATION_TO_TABLEAU:
            pile = board.foundations[source]
            if not pile:
                return None
            return Move(kind, pile[-1].id, source, target)

        column = board.tableau[source]
        if length > len(column):
            return None
        return Move(kind, column[len(column) - length].id, source, target)

    def get_legal_action_indices(self, legal_moves: List[Move], board: Board) -> List[int]:
        indices = []
        for move in legal_moves:
            idx = self.encode(move, board)
            if idx >= 0:
                indices.append(idx)
        return indices

    def build_legal_mask(self, legal_moves: List[Move], board: Board) -> np.ndarray:
        """
        构建合法动作掩码

        Returns:
            (num_actions,) 数组，合法位置为 1
        """
        mask = np.zeros(self.num_actions, dtype=np.float32)
        for idx in self.get_legal_action_indices(legal_moves, board):
            mask[idx] = 1
        return mask


# 全局单例
_move_encoder: Optional[MoveEncoder] = None


def get_move_encoder() -> MoveEncoder:
    """获取全局动作编码器"""
    global _move_encoder
    if _move_encoder is None:
        _move_encoder = MoveEncoder()
    return _move_encoder
