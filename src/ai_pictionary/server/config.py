"""
服务器配置

全部来自环境变量，缺省值适合本机调试；整数解析失败时回退到缺省值。
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ai_pictionary.server.judge import DEFAULT_WORKERS
from ai_pictionary.server.stats import DEFAULT_DB_PATH
from ai_pictionary.server.vision import DEFAULT_BASE_URL, DEFAULT_MODEL
from ai_pictionary.shared.constants import DEFAULT_PORT

DEFAULT_BIND_HOST = "0.0.0.0"
DEFAULT_LOG_FILE = "server.log"


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    try:
        return int(env.get(key, default))
    except (TypeError, ValueError):
        return default


@dataclass
class ServerSettings:
    host: str = DEFAULT_BIND_HOST
    port: int = DEFAULT_PORT
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_MODEL
    gemini_base_url: str = DEFAULT_BASE_URL
    db_path: str = DEFAULT_DB_PATH
    judge_workers: int = DEFAULT_WORKERS
    log_file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if env is None else env
        return cls(
            host=env.get("HOST", DEFAULT_BIND_HOST),
            port=_get_int(env, "PORT", DEFAULT_PORT),
            gemini_api_key=(env.get("GEMINI_API_KEY") or "").strip() or None,
            gemini_model=env.get("GEMINI_MODEL", DEFAULT_MODEL),
            gemini_base_url=env.get("GEMINI_BASE_URL", DEFAULT_BASE_URL),
            db_path=env.get("STATS_DB_PATH", DEFAULT_DB_PATH),
            judge_workers=_get_int(env, "JUDGE_WORKERS", DEFAULT_WORKERS),
            log_file=env.get("LOG_FILE", DEFAULT_LOG_FILE),
        )
