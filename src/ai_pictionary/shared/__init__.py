"""
共享模块

存放客户端和服务器共用的代码，如常量、协议定义、AI 判定结果解析。

组件说明：
- constants: 网络端口、回合计时、消息前缀、窗口与画笔配置
- protocols: 按行分隔的前缀消息（PROMPT:/RESULT:/DRAWING: 等）编解码
- verdict: 容错的 AI 判定结果解析器（Verdict）

提示：
- 协议层约定每条消息一行（"\\n" 结尾），网络层直接透传 encode() 的结果
"""

from . import constants, protocols, verdict

__all__ = ["constants", "protocols", "verdict"]
