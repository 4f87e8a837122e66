"""
服务器主程序入口

启动判定服务器，监听绘画方连接。
"""

import argparse
import logging
import time
from typing import List, Optional

from ai_pictionary.server.config import ServerSettings
from ai_pictionary.server.game import RandomTargetSelector
from ai_pictionary.server.judge import JudgementDispatcher
from ai_pictionary.server.network import NetworkServer
from ai_pictionary.server.stats import StatsStore
from ai_pictionary.server.vision import GeminiVisionClient

logger = logging.getLogger(__name__)


def configure_logging(log_file: Optional[str]) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def parse_args(argv: Optional[List[str]] = None, settings: Optional[ServerSettings] = None) -> ServerSettings:
    """命令行参数覆盖环境变量。"""
    settings = settings or ServerSettings.from_env()
    ap = argparse.ArgumentParser(description="AI-Pictionary judging server")
    ap.add_argument("--host", default=settings.host)
    ap.add_argument("--port", type=int, default=settings.port)
    ap.add_argument("--db", dest="db_path", default=settings.db_path)
    ap.add_argument("--workers", dest="judge_workers", type=int, default=settings.judge_workers)
    args = ap.parse_args(argv)
    settings.host = args.host
    settings.port = args.port
    settings.db_path = args.db_path
    settings.judge_workers = args.judge_workers
    return settings


def build_server(settings: ServerSettings) -> NetworkServer:
    vision = GeminiVisionClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
    )
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; every drawing will be judged as unknown")
    return NetworkServer(
        settings.host,
        settings.port,
        stats=StatsStore(settings.db_path),
        dispatcher=JudgementDispatcher(vision, max_workers=settings.judge_workers),
        selector=RandomTargetSelector(),
    )


def main(argv: Optional[List[str]] = None) -> None:
    """启动服务器主函数"""
    settings = parse_args(argv)
    configure_logging(settings.log_file)
    logger.info("=" * 50)
    logger.info("AI-Pictionary 判定服务器启动中...")
    logger.info(f"监听地址: {settings.host}:{settings.port}")
    logger.info("=" * 50)

    server = None
    try:
        server = build_server(settings)
        server.start()
        logger.info("服务器运行中，按 Ctrl+C 停止")

        # 保持服务器运行
        while True:
            time.sleep(1)

    except KeyboardInterrupt:
        logger.info("服务器正在关闭...")
    except Exception as e:
        logger.error(f"服务器错误: {e}", exc_info=True)
    finally:
        if server is not None:
            server.stop()
            server.dispatcher.shutdown()
        logger.info("服务器已停止")


if __name__ == "__main__":
    main()
