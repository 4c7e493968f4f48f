#!/usr/bin/env python3
"""
Script to manually trigger a single sync cycle and print the results.

This will:
1. Fetch each tracked team's schedule
2. Select the relevant game and refresh its live data
3. Print the selected game and the delay until the next cycle

Usage:
    python3 scripts/refresh_data.py
    DEBUG_MODE=mixed python3 scripts/refresh_data.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv(Path(__file__).parent.parent / ".env")

# Add src directory to path
backend_dir = Path(__file__).parent.parent
src_dir = backend_dir / "src"
sys.path.insert(0, str(src_dir))

from config import Config
from refresh.orchestrator import SyncOrchestrator
from utils.logger import setup_logging


async def refresh_data():
    """Run a single sync cycle."""
    config = Config()
    setup_logging(config)

    orchestrator = SyncOrchestrator(config)

    print("🔄 Initializing sync orchestrator...\n")

    try:
        await orchestrator.initialize()

        print(f"✅ Orchestrator initialized ({', '.join(orchestrator.sources) or 'no sources'})")
        print("🔄 Running sync cycle...\n")

        await orchestrator.tick()

        for result in orchestrator.latest_results:
            data = result.to_dict(config.time_zone)
            if result.error:
                print(f"❌ {result.source_key}: update failed")
            elif result.event is None:
                when = data["next_known_date"] or "unknown"
                label = "offseason" if result.is_offseason else "no game"
                print(f"💤 {result.source_key}: {label} (next known game: {when})")
            else:
                display = data["display"]
                print(f"🏟️  {result.source_key}: {result.event.away.abbreviation} @ {result.event.home.abbreviation}"
                      f"  [{display['top_label']} | {display['bottom_label']}]  ({result.event.status.value})")

        delay = orchestrator.scheduler.last_delay
        if delay is not None:
            print(f"\n⏱️  Next cycle in {delay:.0f}s")
        print("\n✅ Sync cycle completed successfully!")

    except Exception as e:
        print(f"\n❌ Error during sync cycle: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)

    finally:
        await orchestrator.shutdown()


if __name__ == "__main__":
    asyncio.run(refresh_data())
