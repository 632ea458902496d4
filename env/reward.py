"""
奖励函数

支持两种奖励设计:
- 终局奖励 (sparse): 只有获胜时给奖励
- 过程奖励 (shaped): 按牌局得分变化塑形，外加获胜奖励
"""
from dataclasses import dataclass
from typing import Optional
from enum import Enum

from core.board import Board
from core.scoring import is_won


class RewardType(Enum):
    """奖励类型"""
    SPARSE = "sparse"      # 仅终局奖励
    SHAPED = "shaped"      # 过程奖励


@dataclass
class RewardConfig:
    """奖励配置"""
    reward_type: RewardType = RewardType.SHAPED
    win_reward: float = 1.0
    score_scale: float = 0.01      # 得分变化到奖励的缩放
    step_penalty: float = 0.0      # 每步惩罚，鼓励尽快完成
    illegal_penalty: float = -1.0  # 非法动作惩罚

    @classmethod
    def from_dict(cls, d: dict) -> 'RewardConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        if isinstance(filtered.get("reward_type"), str):
            filtered["reward_type"] = RewardType(filtered["reward_type"])
        return cls(**filtered)


class RewardCalculator:
    """
    奖励计算器

    根据配置计算不同类型的奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def compute(self, board: Board, prev_score: Optional[int] = None) -> float:
        """
        计算奖励

        Args:
            board: 移动后的牌局
            prev_score: 移动前的得分 (用于 shaped 奖励)

        Returns:
            奖励值
        """
        if self.config.reward_type == RewardType.SPARSE:
            return self._sparse_reward(board)
        elif self.config.reward_type == RewardType.SHAPED:
            return self._shaped_reward(board, prev_score)
        else:
            return 0.0

    def _sparse_reward(self, board: Board) -> float:
        return self.config.win_reward if is_won(board) else 0.0

    def _shaped_reward(self, board: Board, prev_score: Optional[int]) -> float:
        """
        过程奖励

        奖励组成:
        1. 终局奖励
        2. 得分变化 * score_scale
        3. 每步惩罚
        """
        reward = self._sparse_reward(board) + self.config.step_penalty
        if prev_score is not None:
            reward += (board.score - prev_score) * self.config.score_scale
        return reward

    @property
    def illegal_penalty(self) -> float:
        return self.config.illegal_penalty


def create_reward_calculator(reward_type: str = "shaped", **kwargs) -> RewardCalculator:
    """
    工厂函数：创建奖励计算器

    Args:
        reward_type: 奖励类型 ("sparse", "shaped")
        **kwargs: 其他配置参数
    """
    config = RewardConfig(reward_type=RewardType(reward_type), **kwargs)
    return RewardCalculator(config)
