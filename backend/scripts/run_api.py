#!/usr/bin/env python3
"""Run the sync service with the status API enabled."""
import asyncio
import os
import sys
from pathlib import Path

backend = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend / "src"))
os.chdir(backend)
os.environ["API_ENABLED"] = "true"

from main import main

if __name__ == "__main__":
    asyncio.run(main())
