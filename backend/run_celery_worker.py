#!/usr/bin/env python3
# backend/run_celery_worker.py
"""
Local Celery worker for Trim.

Consumes the notification and booking queues. Pass --beat (or set
CELERY_EMBED_BEAT=1) to run the hold sweep scheduler in the same process.
"""
import os
from pathlib import Path
import subprocess
import sys

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

DEFAULT_QUEUES = "notifications,bookings,celery"

if __name__ == "__main__":
    queues = os.getenv("CELERY_QUEUES") or DEFAULT_QUEUES
    embed_beat = "--beat" in sys.argv[1:] or os.getenv("CELERY_EMBED_BEAT") == "1"
    print(f"Starting Celery worker on queues: {queues}" + (" (with beat)" if embed_beat else ""))

    cmd = [
        sys.executable,
        "-m",
        "celery",
        "-A",
        "app.tasks.celery_app",
        "worker",
        "--loglevel=info",
        "--concurrency=2",
        "-Q",
        queues,
    ]
    if embed_beat:
        cmd.append("-B")

    subprocess.run(cmd)
