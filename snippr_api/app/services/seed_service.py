"""
Load public seed snippets into the snippet store at startup.

The seed file is a JSON array of ``{"id", "language", "code"}``
objects.  Every body is encrypted before it reaches the store, and the
store's next identifier continues after the highest seeded id.  A
missing or malformed file is logged and leaves the store empty; it
does not stop the application.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from ..core.crypto import EncryptionEnvelope
from ..core.store import SnippetRecord, SnippetStore


logger = logging.getLogger(__name__)


def read_seed_file(path: str) -> List[dict]:
    with Path(path).open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError("Seed data must be a JSON array")
    return data


def load_seed_data(store: SnippetStore, envelope: EncryptionEnvelope, path: Optional[str]) -> int:
    """Replace the store contents with the encrypted seed snippets.

    Returns the number of snippets loaded.
    """
    if not path:
        store.seed([])
        logger.info("Seeding disabled; snippet store starts empty.")
        return 0
    try:
        records = [
            SnippetRecord(
                id=int(entry["id"]),
                language=str(entry["language"]),
                code=envelope.encode(str(entry["code"])),
            )
            for entry in read_seed_file(path)
        ]
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.error("Could not load seed data from %s: %s", path, exc)
        store.seed([])
        return 0
    store.seed(records)
    logger.info(
        "Loaded and encrypted %d snippets from seed data. Next snippet ID will be %d.",
        len(records),
        max((record.id for record in records), default=0) + 1,
    )
    return len(records)
