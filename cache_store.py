"""
Search result caching.

One JSON file per cache key under the cache directory. Entries never change
once written; a regenerated search overwrites the file, last writer wins.
"""

import hashlib
import json
import os
import re
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

NO_TRACK = "only"

# Keeps "{key}.json" well under the 255-byte file name limit
MAX_KEY_LENGTH = 200

# Field name -> required type of a stored result record
RECORD_FIELDS = {
    'title': str,
    'subtitle': str,
    'tags': str,
    'search_q': str,
    'random_limit': int,
    'images': list,
}


def make_cache_key(artist, track=None):
    """Lowercased "artist-track" with everything outside [a-z0-9] turned into '-'."""
    raw = f"{artist}-{track if track else NO_TRACK}".lower()
    key = re.sub(r"[^a-z0-9]", "-", raw)
    if len(key) <= MAX_KEY_LENGTH:
        return key
    # Long names: readable prefix plus a digest of the full name
    digest = hashlib.md5(raw.encode("utf-8"), usedforsecurity=False).hexdigest()[:12]
    return f"{key[:MAX_KEY_LENGTH - len(digest) - 1]}-{digest}"


def validate_record(record):
    """Return a list of problems with a result record, empty when it is well formed."""
    if not isinstance(record, dict):
        return ["not a JSON object"]
    problems = []
    for field, kind in RECORD_FIELDS.items():
        value = record.get(field)
        # bool is an int subclass, never a valid limit
        if not isinstance(value, kind) or isinstance(value, bool):
            problems.append(f"{field} missing or not {kind.__name__}")
    images = record.get('images')
    if isinstance(images, list) and not all(isinstance(url, str) for url in images):
        problems.append("images must be a list of strings")
    return problems


class CacheStore:
    """File-per-key store for assembled search results."""

    def __init__(self, cache_dir, ttl_days=0):
        self.cache_dir = Path(cache_dir)
        self.ttl_days = ttl_days

    def path_for(self, key):
        return self.cache_dir / f"{key}.json"

    def exists(self, key):
        """True if a usable entry is stored for key; expired entries count as absent."""
        path = self.path_for(key)
        try:
            if not path.is_file():
                return False
            mtime = path.stat().st_mtime
        except OSError as e:
            print(f"Unable to check cache entry {key}: {e}")
            return False
        if self.ttl_days > 0:
            written = datetime.fromtimestamp(mtime)
            if datetime.now() - written >= timedelta(days=self.ttl_days):
                print(f"Cache entry {key} is older than {self.ttl_days} days, refreshing")
                return False
        return True

    def read(self, key):
        """Load the record for key, or None if it is missing or corrupt."""
        path = self.path_for(key)
        try:
            with open(path, "r", encoding="utf-8") as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except OSError as e:
            print(f"Unable to read cache entry {path.name}: {e}")
            return None
        except ValueError as e:
            print(f"Corrupt cache entry {path.name}: {e}")
            return None

        problems = validate_record(record)
        if problems:
            print(f"Corrupt cache entry {path.name}: {'; '.join(problems)}")
            return None
        return record

    def write(self, key, record):
        """Persist record under key. Failures are printed and never raised."""
        path = self.path_for(key)
        tmp_name = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile("w", encoding="utf-8", delete=False,
                                             dir=self.cache_dir, suffix=".tmp") as tmp:
                tmp_name = tmp.name
                json.dump(record, tmp, ensure_ascii=False)
            os.replace(tmp_name, path)
            return True
        except Exception as e:
            print(f"Error writing cache entry {path.name}: {e}")
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.remove(tmp_name)
                except OSError:
                    pass
            return False


# Lock per cache key so concurrent misses for the same search hit the APIs once.
# Entries are [lock, users] and are dropped when the last user leaves.
_key_locks = {}
_key_locks_lock = threading.Lock()


@contextmanager
def key_lock(key):
    """Hold the lock for a specific cache key."""
    with _key_locks_lock:
        entry = _key_locks.setdefault(key, [threading.Lock(), 0])
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _key_locks_lock:
            entry[1] -= 1
            if entry[1] == 0:
                del _key_locks[key]
