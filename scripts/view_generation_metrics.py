#!/usr/bin/env python3
"""
Quick script to view question generation metrics from the command line
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from trivia.monitoring import GenerationMonitor
from trivia.scheduler import resolve_path


def main():
    """Display generation metrics"""
    db_path = sys.argv[1] if len(sys.argv) > 1 else resolve_path("trivia_metrics.db")
    monitor = GenerationMonitor(db_path)

    print("\n" + "=" * 80)
    print("Trivia Question Generation Metrics")
    print("=" * 80 + "\n")

    print("Recent Runs (Last 10)")
    print("-" * 80)
    recent = monitor.get_recent_runs(10)

    if not recent:
        print("No runs recorded yet.\n")
    else:
        for run in recent:
            print(f"Run #{run['run_id']} [{(run['status'] or '').upper()}]")
            print(f"   Started: {run['start_time'][:19]}")
            if run['duration_seconds'] is not None:
                print(f"   Duration: {run['duration_seconds']:.1f}s")
            print(f"   Questions: {run['accepted']} generated of {run['requested']} requested, "
                  f"{run['saved']} saved")
            print(f"   Attempts: {run['attempts']} "
                  f"({run['duplicates']} duplicates, {run['no_candidate']} no candidate, "
                  f"{run['validation_failures']} failed validation)")
            if run['error_message']:
                print(f"   Error: {run['error_message']}")
            print()

    print("7-Day Statistics")
    print("-" * 80)
    stats = monitor.get_statistics(7)

    if stats.get('total_runs'):
        print(f"Total Runs: {stats['total_runs']} "
              f"({stats['successful_runs']} complete, {stats['partial_runs']} partial, "
              f"{stats['failed_runs']} failed)")
        print(f"Avg Duration: {stats['avg_duration'] or 0:.1f}s")
        print(f"Questions Saved: {stats['total_saved']} of {stats['total_requested']} requested")
    else:
        print("No runs in the last 7 days.")

    print()
    print("Error Summary (Last 7 Days)")
    print("-" * 80)
    errors = monitor.get_error_summary(7)
    if not errors:
        print("No errors recorded.\n")
    for error in errors:
        print(f"{error['error_type']}: {error['count']} (last {error['last_occurrence'][:19]})")

    print("=" * 80 + "\n")


if __name__ == "__main__":
    main()
