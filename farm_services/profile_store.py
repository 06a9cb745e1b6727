"""
profile_store.py
================
Farm profiles collected by the onboarding form, persisted as a JSON file.

One row per user:
  user_id, first_name, last_name, city, state, country,
  latitude, longitude, plot_size, onboarding_complete, videos
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class ProfileStoreError(RuntimeError):
    """Base class for profile store errors."""


class ProfileNotFoundError(ProfileStoreError):
    pass


class ProfileExistsError(ProfileStoreError):
    pass


class VideoNotFoundError(ProfileStoreError):
    pass


def _clean_env(name: str, default: str = "") -> str:
    value = os.getenv(name, default)
    return value.strip().strip('"').strip("'")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------

@dataclass
class FarmProfile:
    user_id: str
    first_name: str
    last_name: str
    city: str
    state: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    plot_size: Optional[float] = None      # acres
    onboarding_complete: bool = False
    videos: List[str] = field(default_factory=list)   # storage object names, upload order

    def farm_context(self) -> Dict[str, Any]:
        """Attributes the chat prompt interpolates."""
        return {
            "first_name": self.first_name,
            "last_name":  self.last_name,
            "city":       self.city,
            "state":      self.state,
            "country":    self.country,
            "latitude":   self.latitude,
            "longitude":  self.longitude,
            "plot_size":  self.plot_size,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "FarmProfile":
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        data["videos"] = list(data.get("videos") or [])
        return cls(**data)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class ProfileStore:
    def __init__(self, file_path: Optional[str] = None):
        self._file_path = file_path or _clean_env("PROFILE_STORE_PATH", "./data/user_profiles.json")
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._lock = Lock()
        self._load()

    def _load(self) -> None:
        if not os.path.exists(self._file_path):
            self._rows = {}
            return
        try:
            with open(self._file_path, "r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, ValueError) as exc:
            raise ProfileStoreError(f"profile store {self._file_path} is unreadable: {exc}") from exc
        rows = payload.get("profiles", []) if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise ProfileStoreError(f"profile store {self._file_path} has no 'profiles' list")
        self._rows = {
            str(row["user_id"]): row
            for row in rows
            if isinstance(row, dict) and row.get("user_id")
        }
        logger.info("Loaded %d farm profiles from %s", len(self._rows), self._file_path)

    def _save(self) -> None:
        Path(self._file_path).parent.mkdir(parents=True, exist_ok=True)
        tmp_path = f"{self._file_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            json.dump({"profiles": list(self._rows.values())}, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self._file_path)

    def get(self, user_id: str) -> Optional[FarmProfile]:
        row = self._rows.get(user_id)
        return FarmProfile.from_row(row) if row else None

    def create(self, profile: FarmProfile) -> FarmProfile:
        """Store a completed onboarding form; a second completion is rejected."""
        with self._lock:
            existing = self._rows.get(profile.user_id)
            if existing and existing.get("onboarding_complete"):
                raise ProfileExistsError(f"user {profile.user_id} already completed onboarding")
            if existing:
                profile.videos = list(existing.get("videos") or [])
            profile.onboarding_complete = True
            self._rows[profile.user_id] = asdict(profile)
            self._save()
        logger.info("Onboarding complete for user %s", profile.user_id)
        return profile

    def add_video(self, user_id: str, name: str) -> List[str]:
        with self._lock:
            row = self._rows.get(user_id)
            if row is None:
                raise ProfileNotFoundError(f"no profile for user {user_id}")
            videos = list(row.get("videos") or [])
            videos.append(name)
            row["videos"] = videos
            self._save()
        logger.info("Video %s added for user %s (%d total)", name, user_id, len(videos))
        return videos

    def remove_video(self, user_id: str, name: str) -> List[str]:
        with self._lock:
            row = self._rows.get(user_id)
            if row is None:
                raise ProfileNotFoundError(f"no profile for user {user_id}")
            videos = list(row.get("videos") or [])
            if name not in videos:
                raise VideoNotFoundError(f"video {name} not found for user {user_id}")
            videos.remove(name)
            row["videos"] = videos
            self._save()
        logger.info("Video %s removed for user %s", name, user_id)
        return videos
