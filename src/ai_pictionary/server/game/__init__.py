"""
游戏逻辑模块

服务器端的单连接会话状态机（目标分配、赢局标记、判定分发、计分触发）
以及目标词库与选词策略。
"""

from .catalog import OBJECTS, RandomTargetSelector, generate_prompt, target_from_prompt
from .session import GameSession, SessionState

__all__ = [
    "OBJECTS",
    "RandomTargetSelector",
    "generate_prompt",
    "target_from_prompt",
    "GameSession",
    "SessionState",
]
