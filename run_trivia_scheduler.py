#!/usr/bin/env python3
"""
Standalone runner for the daily trivia question scheduler
Can be used to run the scheduler as a daemon or as a one-off job
"""
from __future__ import annotations

import argparse
import signal
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from trivia.scheduler import TriviaScheduler, load_config


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully"""
    print("\n\nReceived shutdown signal. Stopping scheduler...")
    sys.exit(0)


def print_preview(questions, requested: int):
    print(f"\nGenerated {len(questions)} of {requested} questions (not saved):\n")
    for i, q in enumerate(questions, 1):
        print(f"{i:>2}. [{q.question_type}, difficulty {q.difficulty}] {q.question}")
        for option in q.options:
            marker = "*" if option == q.correct_answer else " "
            print(f"      {marker} {option}")
        print(f"      {q.explanation}")


def main(argv=None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description="Daily Trivia Question Scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run scheduler continuously with default config
  python run_trivia_scheduler.py

  # Generate once, save and exit
  python run_trivia_scheduler.py --run-once

  # Print five questions without saving them
  python run_trivia_scheduler.py --dry-run --count 5
        """
    )
    parser.add_argument('--config', default='trivia_config.yaml',
                        help='Path to configuration file (default: trivia_config.yaml)')
    parser.add_argument('--run-once', action='store_true',
                        help='Generate and save questions once, then exit')
    parser.add_argument('--dry-run', action='store_true',
                        help='Generate and print questions without saving them')
    parser.add_argument('--count', type=int, default=None,
                        help='Number of questions to generate (overrides config)')
    parser.add_argument('--status', action='store_true',
                        help='Show scheduler and question counts')
    parser.add_argument('--validate-config', action='store_true',
                        help='Validate configuration file and exit')
    args = parser.parse_args(argv)

    if args.count is not None and args.count < 1:
        parser.error("--count must be a positive integer")

    if args.validate_config:
        try:
            config = load_config(args.config)
            generation = config.get('generation', {})
            schedule = config.get('schedule', {})
            print(f"[OK] Configuration file '{args.config}' is valid")
            print("\nConfiguration summary:")
            if 'cron' in schedule:
                print(f"  Schedule: cron {schedule['cron']}")
            else:
                print(f"  Schedule: every {schedule.get('interval_hours', 24)} hours")
            print(f"  Questions per run: {generation.get('questions_per_run', 10)}")
            print(f"  Per-movie cap: {generation.get('per_movie_cap', 3)}")
            print(f"  Database: {config.get('database', {}).get('path', 'N/A')}")
            return 0
        except Exception as e:
            print(f"[ERROR] Configuration validation failed: {e}")
            return 1

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found")
        print("Please create a configuration file or specify a different path with --config")
        return 1

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler = None
    try:
        scheduler = TriviaScheduler(config_path=args.config)

        if args.status:
            status = scheduler.get_status()
            print("\nTrivia Scheduler Status:")
            print(f"  Approved questions: {status['approved_questions']}")
            print(f"  Pending questions: {status['pending_questions']}")
            print(f"  Database: {scheduler.db_path}")
            return 0

        if args.dry_run:
            requested = args.count if args.count is not None else scheduler.questions_per_run
            print_preview(scheduler.generate_preview(requested), requested)
            return 0

        if args.run_once:
            print("Running question generation once (no continuous scheduling)...\n")
            scheduler.run_generation_job(count=args.count)
            print(f"\nJob complete: {scheduler.last_run_status}")
            return 0 if not scheduler.last_run_status.startswith("Failed") else 1

        scheduler.start()

        print("\n" + "=" * 80)
        print("Trivia Scheduler is now running")
        print("=" * 80)
        print(f"\nConfiguration: {args.config}")
        next_run = scheduler.get_status()['next_run_time']
        if next_run:
            print(f"Next scheduled run: {next_run}")
        print("\nPress Ctrl+C to stop the scheduler")
        print("=" * 80 + "\n")

        while True:
            time.sleep(60)

    except KeyboardInterrupt:
        print("\n\nShutdown requested by user")
        if scheduler:
            scheduler.stop()
        return 0

    except Exception as e:
        print(f"\nFatal error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
