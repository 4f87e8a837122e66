"""
AI Pictionary - AI 你画我猜

A two-party drawing game: the client draws, the server asks a vision model
to guess the drawing and keeps score.
"""

__version__ = "0.1.0"
__author__ = "AI Pictionary Team"
__license__ = "MIT"

# 导出主要组件
from . import client, server, shared

__all__ = ["client", "server", "shared", "__version__"]
