#!/usr/bin/env python3
"""Seed a demo storyboard project.

Creates a small project that can be used to click through the editor
without any vendor keys configured.

Usage:
    python scripts/seed_demo.py

This script:
1. Initializes the demo database
2. Seeds a main timeline with a branch, tiles, segments and audio
3. Fills the image tiles through the placeholder provider (no network)
"""

from __future__ import annotations

import sys
from pathlib import Path

import httpx

# Add src to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from reelboard.db import repo  # noqa: E402
from reelboard.db.session import get_session, init_db  # noqa: E402
from reelboard.generation.fallback import GenerationOrchestrator, generate_for_tile  # noqa: E402
from reelboard.providers.catalog import PLACEHOLDER_PROVIDER  # noqa: E402
from reelboard.providers.registry import ProviderRegistry  # noqa: E402

# Constants
DEMO_DB_PATH = PROJECT_ROOT / "data" / "demo.db"

DEMO_SHOTS = [
    "Wide shot of a lighthouse at dawn, fog rolling over the rocks",
    "Close-up of the keeper's hands lighting an oil lamp",
    "The beam sweeping across a stormy sea at night",
]
BRANCH_SHOTS = [
    "Alternate ending: the lighthouse abandoned, overgrown with ivy",
]


def seed_database() -> list[str]:
    """Seed timelines, tiles, segments and audio.

    Returns:
        IDs of image tiles to fill with placeholder media.
    """
    session = get_session(DEMO_DB_PATH)

    try:
        if repo.list_timelines(session):
            print("Demo project already exists")
            return []

        print("Creating timelines...")
        main = repo.create_timeline(session, {"name": "Main Timeline", "order": 0})
        branch = repo.create_timeline(
            session, {"name": "Alternate Ending", "parent_id": main.id, "order": 1}
        )

        print("Creating tiles...")
        image_tile_ids: list[str] = []
        for timeline_id, shots in ((main.id, DEMO_SHOTS), (branch.id, BRANCH_SHOTS)):
            for position, prompt in enumerate(shots):
                image = repo.create_tile(
                    session,
                    {
                        "type": "image",
                        "timeline_id": timeline_id,
                        "position": position,
                        "prompt": prompt,
                    },
                )
                repo.create_tile(
                    session,
                    {
                        "type": "video",
                        "timeline_id": timeline_id,
                        "position": position,
                        "prompt": prompt,
                        "duration": 5.0,
                    },
                )
                image_tile_ids.append(image.id)

        print("Linking segments...")
        for position in range(len(DEMO_SHOTS)):
            repo.create_linked_segment(session, main.id, position)

        print("Creating audio...")
        track = repo.create_audio_track(
            session, {"name": "Score", "type": "music", "duration": 15.0, "volume": 0.8}
        )
        repo.create_audio_clip(
            session,
            {
                "track_id": track.id,
                "name": "Opening theme",
                "start_time": 0.0,
                "duration": 15.0,
                "prompt": "Slow ambient strings with distant waves",
            },
        )

        print("Registering free provider...")
        repo.create_api_setting(session, provider="pollinations")

        repo.commit(session)
        print("Database seeded successfully!")
        return image_tile_ids

    finally:
        session.close()


def fill_tiles(tile_ids: list[str]) -> None:
    """Generate placeholder media for the given tiles."""
    session = get_session(DEMO_DB_PATH)

    try:
        with httpx.Client() as client:
            orchestrator = GenerationOrchestrator(session, ProviderRegistry(client))
            for tile_id in tile_ids:
                tile = repo.get_tile(session, tile_id)
                result = generate_for_tile(
                    orchestrator,
                    "image",
                    tile.prompt if tile else "",
                    tile_id,
                    requested=PLACEHOLDER_PROVIDER,
                )
                print(f"  {tile_id[:8]}...: {result.media_url or result.error}")
    finally:
        session.close()


def main() -> int:
    """Main entry point."""
    print("=" * 60)
    print("Reelboard Demo Seeding Script")
    print("=" * 60)

    # Step 1: Initialize database
    print("\n[1/3] Initializing database...")
    init_db(DEMO_DB_PATH)

    # Step 2: Seed database
    print("\n[2/3] Seeding database...")
    tile_ids = seed_database()

    # Step 3: Fill tiles
    print("\n[3/3] Filling image tiles...")
    fill_tiles(tile_ids)

    print("\n" + "=" * 60)
    print("Demo seeding complete!")
    print(f"Database: {DEMO_DB_PATH}")
    print(f"Serve with REELBOARD_DB_PATH={DEMO_DB_PATH}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    sys.exit(main())
