"""
客户端模块

绘画方：连接服务器、在画布上作画、按回合提交并接收 AI 判定。

模块组成：
- game: 回合/计时/提交闸门状态机（无 UI 依赖）
- network: TCP 连接、用户名握手、接收线程与事件队列
- ui: Pygame 组件（画布、按钮、输入框）

入口提示：
- 运行 ai_pictionary/client/main.py 启动 Pygame 客户端
- 与服务器通信基于按行分隔的前缀消息（Message.encode() + "\\n"）
"""

from . import game, network

__all__ = ["game", "network"]
