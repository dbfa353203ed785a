"""
Content-addressed cache for synthesized audio and its timing.

Each entry is two files in the cache directory: `<key>.mp3` holds the
audio and `<key>.json` holds the timing plus the audio's sha256 and size.
Both are written to temp files and published with os.replace, audio
first, so a metadata file only ever points at complete audio. An entry
whose audio does not match its metadata is treated as a miss.
"""

import hashlib
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError
from rich.console import Console

from ..models import TimingExtractionResult

console = Console()

CACHE_FORMAT_VERSION = 1


def cache_key(text: str, length: int = 16) -> str:
    """Content address of a script's full text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:length]


class TimingCache:
    """Key-value store mapping cache keys to (timing, audio) pairs.

    Read and write failures are printed as warnings and reported as a
    miss or a failed put; they are never raised.
    """

    # key -> (lock, number of writers holding or waiting on it)
    _locks: dict[str, tuple[threading.Lock, int]] = {}
    _locks_guard = threading.Lock()

    def __init__(self, cache_dir: Path | str, audio_extension: str = "mp3", verbose: bool = True):
        self.cache_dir = Path(cache_dir)
        self.audio_extension = audio_extension
        self.verbose = verbose

    def metadata_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def audio_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.{self.audio_extension}"

    @classmethod
    @contextmanager
    def _locked(cls, key: str) -> Iterator[None]:
        """Serialize writers of one key; the lock is dropped once unused."""
        with cls._locks_guard:
            lock, users = cls._locks.get(key, (threading.Lock(), 0))
            cls._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with cls._locks_guard:
                lock, users = cls._locks[key]
                if users == 1:
                    del cls._locks[key]
                else:
                    cls._locks[key] = (lock, users - 1)

    def _warn(self, message: str) -> None:
        if self.verbose:
            console.print(f"[yellow]Cache warning: {message}[/yellow]")

    def get(self, key: str) -> tuple[TimingExtractionResult, bytes] | None:
        """Return the cached timing and audio, or None on miss or damage."""
        metadata_path = self.metadata_path(key)
        if not metadata_path.exists():
            return None

        try:
            with open(metadata_path) as f:
                metadata = json.load(f)
            audio = self.audio_path(key).read_bytes()

            if len(audio) != metadata["audioSize"]:
                self._warn(f"audio size mismatch for {key}, recomputing")
                return None
            if hashlib.sha256(audio).hexdigest() != metadata["audioSha256"]:
                self._warn(f"audio checksum mismatch for {key}, recomputing")
                return None

            result = TimingExtractionResult.model_validate(metadata["result"])
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            self._warn(f"could not read entry {key}: {e}")
            return None

        return result.model_copy(update={"cache_key": key, "cache_hit": True}), audio

    def put(self, key: str, result: TimingExtractionResult, audio: bytes) -> bool:
        """Store an entry atomically. Returns False if the write failed."""
        stored = result.model_copy(update={"cache_key": key, "cache_hit": False})
        metadata = {
            "version": CACHE_FORMAT_VERSION,
            "audioSha256": hashlib.sha256(audio).hexdigest(),
            "audioSize": len(audio),
            "result": stored.to_dict(),
        }

        with self._locked(key):
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
                self._publish(self.audio_path(key), audio)
                self._publish(
                    self.metadata_path(key),
                    json.dumps(metadata, indent=2).encode("utf-8"),
                )
            except OSError as e:
                self._warn(f"could not write entry {key}: {e}")
                return False
        return True

    def _publish(self, target: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
