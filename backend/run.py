#!/usr/bin/env python3
# backend/run.py
"""
Local API server for Trim.

Defaults to a SQLite file next to this script so a fresh checkout can take
bookings without PostgreSQL. Set DATABASE_URL to point elsewhere.
"""
import os
from pathlib import Path
import sys

backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("DATABASE_URL", f"sqlite:///{backend_dir / 'trim_dev.db'}")

import uvicorn

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    print(f"Starting Trim API on http://localhost:{port} ({os.environ['DATABASE_URL']})")
    print("Apply migrations first: alembic upgrade head")

    uvicorn.run("app.main:app", host="0.0.0.0", port=port, reload=True, log_level="info")
