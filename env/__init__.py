"""
Environment Layer - Gymnasium 兼容环境

Modules:
    klondike_env: 主环境类
    observation: 观测空间构建与动作编码
    reward: 奖励函数
    wrappers: 环境包装器
"""
from .klondike_env import (
    KlondikeEnv,
    make_env,
)

from .observation import (
    Observation,
    ObservationBuilder,
    MoveEncoder,
    get_move_encoder,
)

from .reward import (
    RewardType,
    RewardConfig,
    RewardCalculator,
    create_reward_calculator,
)

from .wrappers import (
    FlattenObservationWrapper,
    LegalActionMaskWrapper,
    RewardScaleWrapper,
    TimeLimit,
    RecordEpisodeStatistics,
    wrap_env,
)

__all__ = [
    # env
    "KlondikeEnv",
    "make_env",
    # observation
    "Observation",
    "ObservationBuilder",
    "MoveEncoder",
    "get_move_encoder",
    # reward
    "RewardType",
    "RewardConfig",
    "RewardCalculator",
    "create_reward_calculator",
    # wrappers
    "FlattenObservationWrapper",
    "LegalActionMaskWrapper",
    "RewardScaleWrapper",
    "TimeLimit",
    "RecordEpisodeStatistics",
    "wrap_env",
]
