#!/usr/bin/env python3
"""Seed the track denylist from a text file.

One entry per line: ``<track id, URI or URL>[,<reason>]``. Blank lines and
lines starting with ``#`` are skipped.

Usage:
    python scripts/seed_banned_tracks.py banned.txt
"""

import asyncio
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from spotiqueue.admission.denylist import DenylistService
from spotiqueue.common.config import get_settings
from spotiqueue.common.database import DatabaseManager
from spotiqueue.common.exceptions import InvalidReferenceError
from spotiqueue.configstore.service import ConfigService
from spotiqueue.playback.references import parse_track_reference


def read_entries(path: Path) -> list[tuple[str, str | None]]:
    entries = []
    for lineno, line in enumerate(path.read_text().splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        ref, _, reason = line.partition(",")
        try:
            entries.append((parse_track_reference(ref), reason.strip() or None))
        except InvalidReferenceError:
            print(f"  [skip] line {lineno}: not a track reference: {ref!r}")
    return entries


async def seed_banned_tracks(path: Path) -> None:
    settings = get_settings()
    db = DatabaseManager(settings)
    await db.init()
    await db.create_all()

    denylist = DenylistService()
    entries = read_entries(path)

    async with db.get_session() as session:
        await ConfigService(settings).seed_defaults(session)
        for track_id, reason in entries:
            if await denylist.is_banned(session, track_id):
                print(f"  [skip] {track_id} already banned")
                continue
            await denylist.ban(session, track_id, reason=reason)
            print(f"  [banned] {track_id}")

    await db.close()
    print(f"\nDone. {len(entries)} entries processed.")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    asyncio.run(seed_banned_tracks(Path(sys.argv[1])))
