#!/usr/bin/env python3
"""
Run tracking for the daily question generation job
Records each run, its counters and any errors in a metrics database
"""
from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta
from typing import Dict, List, Optional


RUN_COUNTERS = (
    'requested',
    'attempts',
    'accepted',
    'duplicates',
    'no_candidate',
    'validation_failures',
    'saved',
    'save_failures',
)


class GenerationMonitor:
    """
    Collects metrics about question generation runs
    """

    def __init__(self, db_path: str = "trivia_metrics.db"):
        self.db_path = db_path
        self._init_metrics_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_metrics_db(self):
        """Initialize the metrics database"""
        counter_columns = ",\n".join(f"{name} INTEGER DEFAULT 0" for name in RUN_COUNTERS)
        conn = self._connect()

        conn.execute(f"""
            CREATE TABLE IF NOT EXISTS generation_runs (
                run_id INTEGER PRIMARY KEY AUTOINCREMENT,
                start_time TEXT NOT NULL,
                end_time TEXT,
                duration_seconds REAL,
                status TEXT,
                error_message TEXT,
                {counter_columns}
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS generation_errors (
                error_id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id INTEGER,
                timestamp TEXT NOT NULL,
                error_type TEXT,
                error_message TEXT,
                traceback TEXT,
                FOREIGN KEY (run_id) REFERENCES generation_runs(run_id)
            )
        """)

        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_generation_runs_start_time
            ON generation_runs(start_time)
        """)

        conn.commit()
        conn.close()

    def start_run(self) -> int:
        """Record the start of a generation run"""
        conn = self._connect()
        cursor = conn.execute(
            "INSERT INTO generation_runs (start_time, status) VALUES (?, ?)",
            (datetime.now().isoformat(), 'running')
        )
        run_id = cursor.lastrowid
        conn.commit()
        conn.close()
        return run_id

    def end_run(self, run_id: int, stats: Dict, status: str = 'success',
                error_message: Optional[str] = None):
        """Record the completion of a generation run"""
        conn = self._connect()

        row = conn.execute(
            "SELECT start_time FROM generation_runs WHERE run_id = ?",
            (run_id,)
        ).fetchone()

        end_time = datetime.now()
        duration = (end_time - datetime.fromisoformat(row[0])).total_seconds() if row else None

        assignments = ", ".join(f"{name} = ?" for name in RUN_COUNTERS)
        conn.execute(
            f"""
            UPDATE generation_runs SET
                end_time = ?,
                duration_seconds = ?,
                status = ?,
                error_message = ?,
                {assignments}
            WHERE run_id = ?
            """,
            (
                end_time.isoformat(),
                duration,
                status,
                error_message,
                *[int(stats.get(name, 0)) for name in RUN_COUNTERS],
                run_id,
            ),
        )

        conn.commit()
        conn.close()

    def log_error(self, run_id: int, error_type: str, error_message: str,
                  traceback: Optional[str] = None):
        """Log an error that occurred during a run"""
        conn = self._connect()
        conn.execute("""
            INSERT INTO generation_errors (run_id, timestamp, error_type, error_message, traceback)
            VALUES (?, ?, ?, ?, ?)
        """, (run_id, datetime.now().isoformat(), error_type, error_message, traceback))
        conn.commit()
        conn.close()

    def get_recent_runs(self, limit: int = 10) -> List[Dict]:
        conn = self._connect()
        rows = conn.execute("""
            SELECT * FROM generation_runs
            ORDER BY run_id DESC
            LIMIT ?
        """, (limit,)).fetchall()
        conn.close()
        return [dict(row) for row in rows]

    def get_statistics(self, days: int = 7) -> Dict:
        """Get aggregate statistics for recent runs"""
        cutoff = (datetime.now() - timedelta(days=days)).isoformat()
        conn = self._connect()

        row = conn.execute("""
            SELECT
                COUNT(*) as total_runs,
                SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) as successful_runs,
                SUM(CASE WHEN status = 'partial' THEN 1 ELSE 0 END) as partial_runs,
                SUM(CASE WHEN status = 'failed' THEN 1 ELSE 0 END) as failed_runs,
                AVG(duration_seconds) as avg_duration,
                SUM(requested) as total_requested,
                SUM(accepted) as total_generated,
                SUM(saved) as total_saved,
                SUM(validation_failures) as total_validation_failures
            FROM generation_runs
            WHERE start_time >= ?
        """, (cutoff,)).fetchone()

        conn.close()
        return dict(row) if row else {}

    def get_error_summary(self, days: int = 7) -> List[Dict]:
        cutoff = (datetime.now() - timedelta(days=days)).isoformat()
        conn = self._connect()
        rows = conn.execute("""
            SELECT
                error_type,
                COUNT(*) as count,
                MAX(timestamp) as last_occurrence
            FROM generation_errors
            WHERE timestamp >= ?
            GROUP BY error_type
            ORDER BY count DESC
        """, (cutoff,)).fetchall()
        conn.close()
        return [dict(row) for row in rows]

    def export_metrics(self, output_file: str = "trivia_metrics.json") -> str:
        """Export metrics to JSON file"""
        metrics = {
            'recent_runs': self.get_recent_runs(20),
            'statistics_7d': self.get_statistics(7),
            'statistics_30d': self.get_statistics(30),
            'error_summary': self.get_error_summary(7),
            'exported_at': datetime.now().isoformat()
        }

        with open(output_file, 'w') as f:
            json.dump(metrics, f, indent=2)

        return output_file
