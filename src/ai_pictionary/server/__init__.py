"""
服务器端模块

负责接受绘画方连接、分配目标、调用视觉模型判定并记录战绩。

模块组成：
- game: 单连接会话状态机与目标词库
- judge: 判定线程池（视觉模型调用 + 结果解析）
- vision: Gemini 视觉模型 HTTP 客户端
- stats: SQLite 战绩存储
- network: TCP 接入与每连接读循环

使用方式：
- 入口参见 ai_pictionary/server/main.py，启动 NetworkServer
"""

from . import config, game, judge, network, stats, vision

__all__ = ["config", "game", "judge", "network", "stats", "vision"]
