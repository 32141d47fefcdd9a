# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Hash-based edit deduplication.

Cherry-picks, reverts of reverts and long-lived branches make the same
edit show up several times in one repository's history. Counting each copy
would inflate a cluster's support, so inside one repository we keep only
the first occurrence. The same edit in two different repositories is
exactly the signal we're mining for, so the repository is part of the key.

Only SHA256 digests are kept in memory, not the edits themselves.
"""

import json

from revisar.mining.extract.edit import ConcreteEdit
from revisar.utils.hashing import compute_sha256_text


class EditDeduplicator:
    """
    Tracks (repository, edit) digests and flags repeats.

    Stateful across calls; create a fresh instance per extraction run.
    """

    def __init__(self) -> None:
        self._seen_hashes: set[str] = set()

    def is_duplicate(self, edit: ConcreteEdit) -> bool:
        """First sighting returns False and remembers the edit; later ones return True."""
        payload = json.dumps(edit.template().to_json(), sort_keys=True)
        key = compute_sha256_text(f"{edit.source}\x00{payload}")
        if key in self._seen_hashes:
            return True
        self._seen_hashes.add(key)
        return False

    @property
    def unique_count(self) -> int:
        return len(self._seen_hashes)

    def reset(self) -> None:
        self._seen_hashes.clear()
