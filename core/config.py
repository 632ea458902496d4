"""
牌局配置
"""
from dataclasses import dataclass, field, asdict

from .scoring import ScoringConfig

DRAW_MODES = (1, 3)


@dataclass
class GameConfig:
    """
    牌局配置

    渲染、音效等外观设置由界面层自行持有，引擎不读取

    Attributes:
        draw_mode: 每次从牌库翻几张 (1 或 3)
        allow_foundation_to_tableau: 是否允许从基础堆取回牌列
        scoring: 计分表
    """
    draw_mode: int = 1
    allow_foundation_to_tableau: bool = True
    scoring: ScoringConfig = field(default_factory=ScoringConfig)

    def __post_init__(self):
        if self.draw_mode not in DRAW_MODES:
            raise ValueError(f"draw_mode must be one of {DRAW_MODES}, got {self.draw_mode}")

    @classmethod
    def from_dict(cls, d: dict) -> 'GameConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        if isinstance(filtered.get("scoring"), dict):
            filtered["scoring"] = ScoringConfig.from_dict(filtered["scoring"])
        return cls(**filtered)

    def to_dict(self) -> dict:
        return asdict(self)
