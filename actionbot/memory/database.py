"""
Memory Database
SQLite 기반 구조화 데이터 저장소
Key-value cache + execution records (dedup gate for timeline actions)
"""
import os
import sqlite3
import json
import time
import uuid
import logging
from datetime import datetime
from typing import Optional, List, Any
from dataclasses import dataclass
from contextlib import contextmanager

from config.settings import settings

logger = logging.getLogger("agent")


@dataclass
class ExecutionRecord:
    """타임라인 액션 실행 기록 / What the agent did with one post"""
    id: str
    agent_id: str
    candidate_id: str
    user_id: Optional[str]
    text: str
    url: str
    source: str
    actions: str  # 'like,retweet' (쉼표 구분, 비어있을 수 있음)
    created_at: datetime

    @property
    def action_list(self) -> List[str]:
        return [a for a in self.actions.split(',') if a]


class MemoryDatabase:
    def __init__(self, db_path: str = None):
        self.db_path = db_path or settings.MEMORY_DB_PATH
        self._ensure_data_dir()
        self._init_db()

    def _ensure_data_dir(self):
        """데이터 디렉토리 생성 / Ensure data directory exists"""
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self):
        with self._get_connection() as conn:
            cursor = conn.cursor()

            # Key-value cache
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS cache (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)

            # Execution records
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS execution_records (
                    id TEXT PRIMARY KEY,
                    agent_id TEXT NOT NULL,
                    candidate_id TEXT NOT NULL,
                    user_id TEXT,
                    platform TEXT DEFAULT 'twitter',
                    text TEXT,
                    url TEXT,
                    actions TEXT DEFAULT '',
                    created_at DATETIME NOT NULL,
                    recorded_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_execution_records_agent
                ON execution_records (agent_id, candidate_id)
            """)

    # ==================== Cache Methods ====================

    def get(self, key: str) -> Optional[Any]:
        """캐시 조회 (만료된 값은 None)"""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value, expires_at FROM cache WHERE key = ?", (key,))
            row = cursor.fetchone()
            if not row:
                return None
            if row['expires_at'] is not None and row['expires_at'] <= time.time():
                cursor.execute("DELETE FROM cache WHERE key = ?", (key,))
                return None
            return json.loads(row['value'])

    def set(self, key: str, value: Any, expires: Optional[float] = None):
        """
        캐시 저장

        Args:
            expires: 만료 시각 (epoch seconds). None이면 만료 없음
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO cache (key, value, expires_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    expires_at = excluded.expires_at,
                    updated_at = excluded.updated_at
            """, (
                key,
                json.dumps(value, ensure_ascii=False, default=str),
                expires,
                datetime.now().isoformat()
            ))

    def delete(self, key: str):
        with self._get_connection() as conn:
            conn.execute("DELETE FROM cache WHERE key = ?", (key,))

    def purge_expired(self) -> int:
        """만료된 캐시 행 삭제, 삭제 개수 반환"""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM cache WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (time.time(),)
            )
            return cursor.rowcount

    # ==================== Execution Record Methods ====================

    def get_execution_record(self, record_id: str) -> Optional[ExecutionRecord]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM execution_records WHERE id = ?", (record_id,))
            row = cursor.fetchone()
            return self._row_to_execution_record(row) if row else None

    def has_execution_record(self, record_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM execution_records WHERE id = ?", (record_id,))
            return cursor.fetchone() is not None

    def create_execution_record(self, record: ExecutionRecord) -> bool:
        """
        실행 기록 저장 (id 중복이면 무시)

        Returns:
            새로 저장되었으면 True
        """
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT OR IGNORE INTO execution_records
                (id, agent_id, candidate_id, user_id, platform, text, url, actions, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                record.id,
                record.agent_id,
                record.candidate_id,
                record.user_id,
                record.source,
                record.text,
                record.url,
                record.actions,
                record.created_at.isoformat()
            ))
            return cursor.rowcount > 0

    def get_recent_execution_records(self, agent_id: str, limit: int = 20) -> List[ExecutionRecord]:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                SELECT * FROM execution_records WHERE agent_id = ?
                ORDER BY recorded_at DESC LIMIT ?
            """, (agent_id, limit))
            return [self._row_to_execution_record(row) for row in cursor.fetchall()]

    def _row_to_execution_record(self, row) -> ExecutionRecord:
        return ExecutionRecord(
            id=row['id'],
            agent_id=row['agent_id'],
            candidate_id=row['candidate_id'],
            user_id=row['user_id'],
            text=row['text'] or "",
            url=row['url'] or "",
            source=row['platform'],
            actions=row['actions'] or "",
            created_at=datetime.fromisoformat(row['created_at'])
        )


def generate_record_id(candidate_id: str, agent_id: str) -> str:
    """(post id, agent id) → 결정적 UUID"""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{candidate_id}-{agent_id}"))
