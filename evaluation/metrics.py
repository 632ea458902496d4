"""
评估指标

单局记录、累计战绩 (局数、胜率、连胜、最高分) 和在线统计
"""
from typing import Dict, List, Optional
from dataclasses import dataclass, field, asdict
import numpy as np


@dataclass
class GameRecord:
    """单局结果"""
    won: bool
    score: int
    moves: int
    foundation_cards: int = 0
    seed: Optional[int] = None


class RunningStats:
    """
    运行时统计

    在线计算均值和方差
    """

    def __init__(self):
        self.n = 0
        self.mean = 0.0
        self.M2 = 0.0
        self.min_val = float('inf')
        self.max_val = float('-inf')

    def update(self, x: float):
        """更新统计"""
        self.n += 1
        delta = x - self.mean
        self.mean += delta / self.n
        delta2 = x - self.mean
        self.M2 += delta * delta2
        self.min_val = min(self.min_val, x)
        self.max_val = max(self.max_val, x)

    @property
    def variance(self) -> float:
        """方差"""
        if self.n < 2:
            return 0.0
        return self.M2 / (self.n - 1)

    @property
    def std(self) -> float:
        """标准差"""
        return float(np.sqrt(self.variance))

    def to_dict(self) -> Dict[str, float]:
        """转换为字典"""
        return {
            "count": self.n,
            "mean": self.mean,
            "std": self.std,
            "min": self.min_val if self.n > 0 else 0.0,
            "max": self.max_val if self.n > 0 else 0.0,
        }


@dataclass
class GameStatistics:
    """
    累计战绩

    Attributes:
        games_played: 总局数
        games_won: 获胜局数
        current_streak: 当前连胜
        best_streak: 最长连胜
        best_score: 最高分
        best_moves: 获胜局的最少移动数 (尚未获胜为 None)
    """
    games_played: int = 0
    games_won: int = 0
    current_streak: int = 0
    best_streak: int = 0
    best_score: int = 0
    best_moves: Optional[int] = None
    history: List[GameRecord] = field(default_factory=list)

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.games_won / self.games_played

    def record_game(
        self,
        won: bool,
        score: int,
        moves: int,
        foundation_cards: int = 0,
        seed: Optional[int] = None,
    ) -> GameRecord:
        """记录一局结果，失败会中断连胜"""
        record = GameRecord(won, score, moves, foundation_cards, seed)
        self.history.append(record)

        self.games_played += 1
        if won:
            self.games_won += 1
            self.current_streak += 1
            self.best_streak = max(self.best_streak, self.current_streak)
            if self.best_moves is None or moves < self.best_moves:
                self.best_moves = moves
        else:
            self.current_streak = 0
        self.best_score = max(self.best_score, score)
        return record

    def score_stats(self) -> RunningStats:
        stats = RunningStats()
        for record in self.history:
            stats.update(record.score)
        return stats

    def reset(self):
        """重置"""
        self.games_played = 0
        self.games_won = 0
        self.current_streak = 0
        self.best_streak = 0
        self.best_score = 0
        self.best_moves = None
        self.history.clear()

    def to_dict(self) -> Dict:
        d = asdict(self)
        d["win_rate"] = self.win_rate
        return d

    @classmethod
    def from_dict(cls, d: Dict) -> 'GameStatistics':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        filtered["history"] = [GameRecord(**r) for r in filtered.get("history", [])]
        return cls(**filtered)
