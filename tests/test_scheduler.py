"""
Tests for the scheduled generation job and its command line runner
"""
from datetime import timedelta

import pytest
import yaml
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

import run_trivia_scheduler
from trivia.monitoring import GenerationMonitor
from trivia.scheduler import JOB_ID, TriviaScheduler, build_generator, load_config
from trivia.store import QuestionStore


def write_config(tmp_path, schedule=None, **generation):
    config = {
        'schedule': schedule or {'timezone': 'UTC', 'cron': {'hour': 8, 'minute': 0}},
        'generation': {'questions_per_run': 10, **generation},
        'database': {'path': str(tmp_path / 'trivia.db')},
        'logging': {'level': 'INFO', 'file': str(tmp_path / 'trivia.log')},
        'monitoring': {'enable_metrics': True, 'db_path': str(tmp_path / 'metrics.db')},
    }
    path = tmp_path / 'trivia_config.yaml'
    path.write_text(yaml.safe_dump(config))
    return str(path)


@pytest.fixture(autouse=True)
def no_database_override(monkeypatch):
    monkeypatch.delenv("DATABASE_PATH", raising=False)


def test_run_once_saves_questions(tmp_path):
    scheduler = TriviaScheduler(write_config(tmp_path))
    scheduler.run_generation_job()

    store = QuestionStore(str(tmp_path / 'trivia.db'))
    assert store.count_questions(approved=False) == 10
    assert scheduler.last_run_status == 'Success'

    (run,) = GenerationMonitor(str(tmp_path / 'metrics.db')).get_recent_runs()
    assert run['status'] == 'success'
    assert run['requested'] == 10
    assert run['saved'] == 10


def test_partial_run_is_not_a_failure(tmp_path):
    facts_file = tmp_path / 'facts.yaml'
    facts_file.write_text(
        "facts:\n"
        "  - {title: Halloween, year: 1978, director: John Carpenter, location: 'Haddonfield, Illinois'}\n"
    )
    config_path = write_config(tmp_path, facts_file=str(facts_file), question_types=['year'])
    scheduler = TriviaScheduler(config_path)
    scheduler.run_generation_job(count=3)

    assert scheduler.store.count_questions() == 1
    assert scheduler.last_run_status == 'Partial'
    (run,) = scheduler.monitor.get_recent_runs()
    assert run['status'] == 'partial'
    assert run['accepted'] == 1
    assert run['duplicates'] == 29


def test_failed_job_is_recorded(tmp_path, monkeypatch):
    scheduler = TriviaScheduler(write_config(tmp_path))

    def broken():
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(scheduler.store, 'get_approved_question_texts', broken)
    scheduler.run_generation_job()

    assert scheduler.last_run_status.startswith("Failed")
    assert scheduler.is_running is False
    (run,) = scheduler.monitor.get_recent_runs()
    assert run['status'] == 'failed'
    assert run['error_message'] == 'database unavailable'
    assert scheduler.monitor.get_error_summary()[0]['error_type'] == 'RuntimeError'


def test_approved_questions_are_not_repeated(tmp_path):
    scheduler = TriviaScheduler(write_config(tmp_path, per_movie_cap=100))
    approved = [q.question for q in scheduler.generate_preview(20)]

    questions = scheduler.generator.generate(20, approved)
    assert not {q.question.lower() for q in questions} & {t.lower() for t in approved}


def test_status_before_start(tmp_path):
    scheduler = TriviaScheduler(write_config(tmp_path))
    status = scheduler.get_status()

    assert status['running'] is False
    assert status['last_run_status'] == 'Never run'
    assert status['next_run_time'] is None
    assert status['pending_questions'] == 0


def test_build_generator_respects_config():
    generator = build_generator({'generation': {'question_types': ['director'], 'per_movie_cap': 1,
                                                'use_extra_distractors': False}})
    assert [t.question_type for t in generator.templates] == ['director']
    assert generator.per_movie_cap == 1
    assert generator.extra_pools == {}


def test_load_config_validation(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / 'missing.yaml'))

    path = tmp_path / 'bad.yaml'
    path.write_text("generation:\n  questions_per_run: 0\n")
    with pytest.raises(ValueError):
        load_config(str(path))


def test_cli_dry_run(tmp_path, capsys):
    config_path = write_config(tmp_path)
    assert run_trivia_scheduler.main(['--config', config_path, '--dry-run', '--count', '3']) == 0

    out = capsys.readouterr().out
    assert "Generated 3 of 3 questions (not saved)" in out
    assert QuestionStore(str(tmp_path / 'trivia.db')).count_questions() == 0


def test_cli_validate_config(tmp_path, capsys):
    config_path = write_config(tmp_path)
    assert run_trivia_scheduler.main(['--config', config_path, '--validate-config']) == 0
    assert "is valid" in capsys.readouterr().out


def test_start_registers_cron_job(tmp_path):
    schedule = {'cron': {'hour': 8, 'minute': 0}}
    scheduler = TriviaScheduler(write_config(tmp_path, schedule=schedule))
    scheduler.start()
    try:
        job = scheduler.scheduler.get_job(JOB_ID)
        assert isinstance(job.trigger, CronTrigger)
        fields = {field.name: str(field) for field in job.trigger.fields}
        assert fields['hour'] == '8'
        assert fields['minute'] == '0'
        assert str(job.trigger.timezone) == 'America/New_York'
        assert job.max_instances == 1

        status = scheduler.get_status()
        assert status['running'] is True
        assert status['next_run_time'] is not None
    finally:
        scheduler.stop()
    assert scheduler.scheduler.running is False


def test_start_registers_interval_job(tmp_path):
    schedule = {'timezone': 'UTC', 'interval_hours': 6}
    scheduler = TriviaScheduler(write_config(tmp_path, schedule=schedule))
    scheduler.start()
    try:
        job = scheduler.scheduler.get_job(JOB_ID)
        assert isinstance(job.trigger, IntervalTrigger)
        assert job.trigger.interval == timedelta(hours=6)
    finally:
        scheduler.stop()


def test_relative_paths_follow_config_file(tmp_path, monkeypatch):
    config_dir = tmp_path / 'site'
    config_dir.mkdir()
    (config_dir / 'facts.yaml').write_text(
        "facts:\n"
        "  - {title: Halloween, year: 1978, director: John Carpenter, location: 'Haddonfield, Illinois'}\n"
    )
    config_path = config_dir / 'trivia_config.yaml'
    config_path.write_text(yaml.safe_dump({
        'generation': {'questions_per_run': 1, 'facts_file': 'facts.yaml', 'question_types': ['year']},
        'database': {'path': 'trivia.db'},
        'logging': {'file': 'trivia.log'},
        'monitoring': {'db_path': 'metrics.db'},
    }))
    elsewhere = tmp_path / 'elsewhere'
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)

    scheduler = TriviaScheduler(str(config_path))
    scheduler.run_generation_job()

    assert scheduler.db_path == str(config_dir.resolve() / 'trivia.db')
    assert [f.title for f in scheduler.generator.facts] == ['Halloween']
    for name in ('trivia.db', 'trivia.log', 'metrics.db'):
        assert (config_dir / name).exists()
    assert list(elsewhere.iterdir()) == []


def test_empty_sections_use_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / 'trivia_config.yaml'
    path.write_text("schedule:\ngeneration:\ndatabase:\nlogging:\nmonitoring:\n")

    config = load_config(str(path))
    assert config['generation'] == {}

    scheduler = TriviaScheduler(str(path))
    assert scheduler.questions_per_run == 10
    assert scheduler.db_path == str(tmp_path.resolve() / 'trivia.db')


def test_explicit_zero_count_fails_the_run(tmp_path):
    scheduler = TriviaScheduler(write_config(tmp_path))
    scheduler.run_generation_job(count=0)

    assert scheduler.last_run_status.startswith("Failed")
    assert scheduler.store.count_questions() == 0
    (run,) = scheduler.monitor.get_recent_runs()
    assert run['status'] == 'failed'
