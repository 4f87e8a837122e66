"""
常量定义

定义游戏中使用的各种常量。
"""

# 网络配置
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8888
BUFFER_SIZE = 4096
MAX_LINE_BYTES = 16 * 1024 * 1024  # 单行消息上限（base64 图片）
CONNECT_TIMEOUT = 5.0

# 游戏配置
ROUNDS_PER_GAME = 5
LAST_ROUND_INDEX = ROUNDS_PER_GAME - 1
FIRST_ROUND_TIME = 60  # 秒
NEXT_ROUND_TIME = 15  # 秒
TICK_INTERVAL = 1.0  # 秒
MAX_NAME_LEN = 32
UNKNOWN_USER = "Unknown"

# 窗口配置
WINDOW_WIDTH = 1100
WINDOW_HEIGHT = 850
WINDOW_TITLE = "AI-Pictionary - Draw & Guess Game"
FPS = 60
CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600

# 颜色定义 (RGB)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
GRAY = (128, 128, 128)
LIGHT_GRAY = (200, 200, 200)
BACKGROUND = (245, 245, 250)
ACCENT = (100, 149, 237)

# 画笔配置
BRUSH_SIZES = [2, 5, 10, 15, 20]
DEFAULT_BRUSH_SIZE = 5
BRUSH_COLORS = [BLACK, RED, BLUE]

# 消息前缀
MSG_STATS = "STATS:"
MSG_PROMPT = "PROMPT:"
MSG_DRAWING = "DRAWING:"
MSG_RESULT = "RESULT:"
MSG_NEWGAME = "NEWGAME"
MSG_GAMEEND = "GAMEEND:"
WON_SEPARATOR = "|WON:"
