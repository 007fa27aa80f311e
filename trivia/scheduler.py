#!/usr/bin/env python3
"""
Daily Trivia Question Scheduler using APScheduler
Generates new questions for moderation on a configurable schedule
"""
from __future__ import annotations

import logging
import os
import time
import traceback
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

import yaml
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from dotenv import load_dotenv

from .facts import CHARACTER_ROLES, DEFAULT_FACTS, DEFAULT_TEMPLATES, load_facts
from .monitoring import GenerationMonitor
from .question_generator import GeneratedQuestion, QuestionGenerator
from .store import QuestionStore


JOB_ID = 'trivia_question_job'
DEFAULT_TIMEZONE = 'America/New_York'

CONFIG_SECTIONS = ('schedule', 'generation', 'database', 'logging', 'monitoring')


def resolve_path(path: str, base_dir: Optional[str] = None) -> str:
    """Make a relative config path absolute against the config file's directory"""
    if os.path.isabs(path):
        return path
    return str(Path(base_dir or os.getcwd()) / path)


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file"""
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Configuration file {config_path} must be a mapping")

    # An empty section ("generation:") loads as None
    for section in CONFIG_SECTIONS:
        config[section] = config.get(section) or {}
        if not isinstance(config[section], dict):
            raise ValueError(f"'{section}' section must be a mapping")

    count = config['generation'].get('questions_per_run', 10)
    if not isinstance(count, int) or count < 1:
        raise ValueError(f"generation.questions_per_run must be a positive integer, got {count!r}")

    return config


def build_generator(config: dict, rng=None, base_dir: Optional[str] = None) -> QuestionGenerator:
    """Create a QuestionGenerator from the 'generation' config section"""
    gen_config = config.get('generation') or {}

    facts, templates = list(DEFAULT_FACTS), list(DEFAULT_TEMPLATES)
    if gen_config.get('facts_file'):
        facts, templates = load_facts(resolve_path(gen_config['facts_file'], base_dir))

    allowed_types = gen_config.get('question_types')
    if allowed_types:
        templates = [t for t in templates if t.question_type in allowed_types]

    return QuestionGenerator(
        facts=facts,
        templates=templates,
        rng=rng,
        per_movie_cap=gen_config.get('per_movie_cap', 3),
        attempt_factor=gen_config.get('attempt_factor', 10),
        year_spread=gen_config.get('year_spread', 20),
        min_year=gen_config.get('min_year', 1900),
        character_roles=gen_config.get('character_roles', CHARACTER_ROLES),
        extra_pools=None if gen_config.get('use_extra_distractors', True) else {},
    )


class TriviaScheduler:
    """
    Manages scheduled generation of trivia questions
    """

    def __init__(self, config_path: str = "trivia_config.yaml"):
        load_dotenv()

        self.config = load_config(config_path)
        self.base_dir = str(Path(config_path).resolve().parent)
        self.scheduler = BackgroundScheduler(
            timezone=self.config.get('schedule', {}).get('timezone', DEFAULT_TIMEZONE)
        )
        self.last_run_time: Optional[datetime] = None
        self.last_run_status: str = "Never run"
        self.run_count: int = 0
        self.is_running: bool = False

        self._setup_logging()

        db_path = os.getenv("DATABASE_PATH") or self.config.get('database', {}).get('path', 'trivia.db')
        self.db_path = resolve_path(db_path, self.base_dir)
        self.store = QuestionStore(self.db_path)
        self.store.init_db()
        self.generator = build_generator(self.config, base_dir=self.base_dir)

        self.monitor: Optional[GenerationMonitor] = None
        monitoring = self.config.get('monitoring', {})
        if monitoring.get('enable_metrics', True):
            self.monitor = GenerationMonitor(
                resolve_path(monitoring.get('db_path', 'trivia_metrics.db'), self.base_dir)
            )

        self.logger.info(f"Trivia Scheduler initialized (database: {self.db_path})")

    def _setup_logging(self):
        """Configure logging for the scheduler and the modules it drives"""
        log_config = self.config.get('logging', {})
        log_level = getattr(logging, log_config.get('level', 'INFO'))
        log_file = resolve_path(log_config.get('file', 'trivia_scheduler.log'), self.base_dir)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=log_config.get('max_bytes', 10485760),
            backupCount=log_config.get('backup_count', 5)
        )
        console_handler = logging.StreamHandler()

        self.logger = logging.getLogger('TriviaScheduler')
        for name in ('TriviaScheduler', 'QuestionGenerator', 'QuestionStore'):
            logger = logging.getLogger(name)
            logger.setLevel(log_level)
            # Re-instantiation must not stack duplicate handlers
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
            for handler in (file_handler, console_handler):
                handler.setLevel(log_level)
                handler.setFormatter(formatter)
                logger.addHandler(handler)

    @property
    def questions_per_run(self) -> int:
        return self.config.get('generation', {}).get('questions_per_run', 10)

    def generate_preview(self, count: Optional[int] = None) -> List[GeneratedQuestion]:
        """Generate questions against the current database without saving them"""
        existing = self.store.get_approved_question_texts()
        return self.generator.generate(count if count is not None else self.questions_per_run, existing)

    def run_generation_job(self, count: Optional[int] = None):
        """Fetch approved questions, generate new ones and save them"""
        if self.is_running:
            self.logger.info("Question generation already running, skipping...")
            return

        self.is_running = True
        self.run_count += 1
        requested = count if count is not None else self.questions_per_run
        run_id = f"RUN-{self.run_count}-{datetime.now().strftime('%Y%m%d-%H%M%S')}"

        self.logger.info("=" * 80)
        self.logger.info(f"Starting question generation job: {run_id}")
        self.logger.info("=" * 80)

        start_time = time.time()
        monitor_run_id = self.monitor.start_run() if self.monitor else None
        stats = {'requested': requested}

        try:
            existing = self.store.get_approved_question_texts()
            self.logger.info(f"Fetched {len(existing)} approved questions for duplicate checks")

            questions = self.generator.generate(requested, existing)
            stats.update(self.generator.stats)

            saved, failed = self.store.save_questions(questions)
            stats.update(saved=saved, save_failures=failed)

            status = 'success' if saved == requested else 'partial'
            execution_time = time.time() - start_time
            self.logger.info(
                f"Job {run_id} finished in {execution_time:.2f} seconds: "
                f"{saved} of {requested} questions saved ({status})"
            )
            for question in questions:
                self.logger.info(f"  {question.question}")

            self.last_run_status = status.capitalize()
            if self.monitor and monitor_run_id:
                self.monitor.end_run(monitor_run_id, stats, status=status)

        except Exception as e:
            execution_time = time.time() - start_time
            self.logger.error(f"Job {run_id} failed after {execution_time:.2f} seconds")
            self.logger.error(f"Error: {str(e)}", exc_info=True)

            self.last_run_status = f"Failed: {str(e)}"
            if self.monitor and monitor_run_id:
                self.monitor.end_run(monitor_run_id, stats, status='failed', error_message=str(e))
                self.monitor.log_error(monitor_run_id, type(e).__name__, str(e), traceback.format_exc())

        finally:
            self.last_run_time = datetime.now()
            self.is_running = False
            self.logger.info(f"Question generation job {run_id} complete\n")

    def start(self):
        """Start the scheduler"""
        schedule_config = self.config.get('schedule', {})
        timezone = schedule_config.get('timezone', DEFAULT_TIMEZONE)

        if 'cron' in schedule_config:
            cron_config = schedule_config['cron']
            trigger = CronTrigger(
                hour=cron_config.get('hour', 8),
                minute=cron_config.get('minute', 0),
                day_of_week=cron_config.get('day_of_week', '*'),
                timezone=timezone
            )
            self.logger.info(f"Scheduled question generation with cron: {cron_config}")
        else:
            interval_hours = schedule_config.get('interval_hours', 24)
            trigger = IntervalTrigger(hours=interval_hours, timezone=timezone)
            self.logger.info(f"Scheduled question generation every {interval_hours} hours")

        self.scheduler.add_job(
            self.run_generation_job,
            trigger=trigger,
            id=JOB_ID,
            name='Daily Trivia Question Generation',
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        self.scheduler.start()
        self.logger.info("Trivia Scheduler started successfully")

        if schedule_config.get('run_on_startup', False):
            self.logger.info("Running initial generation on startup...")
            self.run_generation_job()

    def stop(self):
        """Stop the scheduler gracefully"""
        self.logger.info("Stopping Trivia Scheduler...")
        if self.scheduler.running:
            self.scheduler.shutdown()
        self.logger.info("Trivia Scheduler stopped")

    def get_status(self) -> dict:
        jobs = self.scheduler.get_jobs()
        # Jobs added before start() have no next_run_time yet
        next_run = getattr(jobs[0], 'next_run_time', None) if jobs else None
        return {
            'running': self.scheduler.running,
            'is_generating': self.is_running,
            'last_run_time': self.last_run_time.isoformat() if self.last_run_time else None,
            'last_run_status': self.last_run_status,
            'total_runs': self.run_count,
            'next_run_time': next_run.isoformat() if next_run else None,
            'approved_questions': self.store.count_questions(approved=True),
            'pending_questions': self.store.count_questions(approved=False),
        }
