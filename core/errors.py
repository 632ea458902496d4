"""
引擎错误类型

所有 MoveError / UndoError 都是可恢复错误: 引擎在抛出前不会修改牌局。
DeckIntegrityError 表示发牌或反序列化得到的牌组不完整，属于程序缺陷。
"""
from typing import Optional


class KlondikeError(Exception):
    """引擎错误基类"""


class MoveError(KlondikeError):
    """移动被拒绝"""

    def __init__(self, message: str, move: Optional[object] = None):
        super().__init__(message)
        self.move = move


class InvalidMove(MoveError):
    """移动格式错误 (缺少字段、索引越界、牌与位置不符)"""


class EmptySource(MoveError):
    """源牌堆为空"""


class RuleViolation(MoveError):
    """违反花色 / 颜色 / 点数规则"""


class GameFinished(RuleViolation):
    """牌局已获胜，不再接受移动"""


class CardNotFound(MoveError):
    """牌局中找不到引用的牌 (调用方缺陷)"""


class UndoError(KlondikeError):
    """撤销 / 重做失败"""


class NoHistory(UndoError):
    """历史栈为空"""


class DeckIntegrityError(KlondikeError):
    """牌组不满足 52 张且不重复"""
