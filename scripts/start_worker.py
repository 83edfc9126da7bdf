#!/usr/bin/env python3
# =============================================================================
# scripts/start_worker.py - Celery Worker Entry Point
# =============================================================================
# Starts a Celery worker for background question review. With --beat the
# worker also runs the scheduler that fires the daily practice reminders.
#
# Usage:
#   # Start worker (development)
#   python scripts/start_worker.py
#
#   # Worker plus embedded beat scheduler (single-instance deployments)
#   python scripts/start_worker.py --beat
#
#   # Or use Celery CLI directly
#   celery -A workers.celery_app worker --loglevel=info
#   celery -A workers.celery_app beat --loglevel=info
#
# Prerequisites:
#   - Redis must be running
#   - Environment variables must be set (.env file)
# =============================================================================

import sys
import os

from dotenv import load_dotenv

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

load_dotenv()

from workers.celery_app import celery_app
from workers.config import AI_QUEUE, DEFAULT_QUEUE


def main():
    """Start the Celery worker."""
    embed_beat = "--beat" in sys.argv[1:]

    print("=" * 60)
    print("ExamPrep Celery Worker")
    print("=" * 60)
    print()
    print("Starting worker" + (" with beat scheduler..." if embed_beat else "..."))
    print("Press Ctrl+C to stop")
    print()

    argv = [
        "worker",
        "--loglevel=info",
        "--concurrency=2",  # 2 worker processes
        f"--queues={DEFAULT_QUEUE},{AI_QUEUE}",
    ]
    if embed_beat:
        argv.append("--beat")

    celery_app.worker_main(argv)


if __name__ == "__main__":
    main()
