"""
玩家战绩存储（SQLite）

表结构：users(username, total_games, total_score)。
每局结束只写一次：total_games += 1，total_score += 1（赢）或 0（输）。
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "game_database.db"


class StatsStore:
    """按用户名记录总局数与总得分。

    每次操作单独打开连接，可在多个会话线程间共享同一个实例。
    数据库错误只记录日志，不影响游戏会话。
    """

    def __init__(self, db_path: Union[str, Path] = DEFAULT_DB_PATH) -> None:
        self.db_path = Path(db_path)
        self.init_db()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    username TEXT PRIMARY KEY,
                    total_games INTEGER DEFAULT 0,
                    total_score INTEGER DEFAULT 0
                )
                """
            )
            conn.commit()
            logger.info(f"Stats database ready: {self.db_path}")
        finally:
            conn.close()

    def record_game(self, username: str, won: bool) -> None:
        """记录一局结果；首次出现的用户自动建档。"""
        try:
            conn = self._get_conn()
            try:
                # 单条 upsert，同名用户并发结算也不会丢失更新
                conn.execute(
                    """
                    INSERT INTO users (username, total_games, total_score) VALUES (?, 1, ?)
                    ON CONFLICT(username) DO UPDATE SET
                        total_games = total_games + 1,
                        total_score = total_score + excluded.total_score
                    """,
                    (username, 1 if won else 0),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to update user score for {username}: {e}")

    def get_stats(self, username: str) -> Tuple[int, int]:
        """返回 (total_games, total_score)；未知用户为 (0, 0)。"""
        try:
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT total_games, total_score FROM users WHERE username = ?",
                    (username,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to get user stats for {username}: {e}")
            return 0, 0
        if row is None:
            return 0, 0
        return int(row["total_games"]), int(row["total_score"])


__all__ = ["StatsStore", "DEFAULT_DB_PATH"]
