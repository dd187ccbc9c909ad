"""Video status transitions and schedule slot assignment."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import BinaryIO, Callable, Dict, FrozenSet, List, Optional, Protocol, Sequence

from contentdeck.billing.usage import UsageAccountant
from contentdeck.core.errors import ConflictError, NotFoundError, ValidationError
from contentdeck.core.logger import get_logger
from contentdeck.core.metrics import record_schedule_conflict, record_video_scheduled, record_video_uploaded
from contentdeck.storage.entities import (
    VIDEO_STATUS_FAILED,
    VIDEO_STATUS_PENDING,
    VIDEO_STATUS_PROCESSING,
    VIDEO_STATUS_PUBLISHED,
    VIDEO_STATUS_SCHEDULED,
    VIDEO_STATUSES,
    Video,
)
from contentdeck.storage.files import StoredFile
from contentdeck.storage.locks import UserLockManager
from contentdeck.storage.ownership import require_owned
from contentdeck.storage.repository import EntityStore
from contentdeck.videos.windows import next_free_slot, normalize_slot, parse_daily_slots_utc


DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024

# Moves available to the publishing collaborator through mark_status.
# Entering "scheduled" always goes through schedule(); leaving it for
# "pending" goes through unschedule().
STATUS_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    VIDEO_STATUS_PENDING: frozenset({VIDEO_STATUS_PROCESSING, VIDEO_STATUS_FAILED}),
    VIDEO_STATUS_PROCESSING: frozenset({VIDEO_STATUS_PENDING, VIDEO_STATUS_PUBLISHED, VIDEO_STATUS_FAILED}),
    VIDEO_STATUS_SCHEDULED: frozenset({VIDEO_STATUS_PROCESSING, VIDEO_STATUS_PUBLISHED, VIDEO_STATUS_FAILED}),
    VIDEO_STATUS_PUBLISHED: frozenset(),
    VIDEO_STATUS_FAILED: frozenset({VIDEO_STATUS_PENDING}),
}

logger = get_logger("contentdeck.videos")


class FileTransport(Protocol):
    def save_upload(self, stream: BinaryIO, *, original_name: str, content_type: str) -> StoredFile:
        ...

    def delete_file(self, filename: str) -> bool:
        ...


@dataclass(frozen=True)
class ScheduledSlot:
    video_id: int
    title: str
    scheduled_for: datetime


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class VideoLifecycle:
    """Owns uploads, scheduling and deletion of a user's videos."""

    def __init__(
        self,
        store: EntityStore,
        accountant: UsageAccountant,
        locks: UserLockManager,
        *,
        files: Optional[FileTransport] = None,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        daily_slots_utc: Optional[Sequence[time]] = None,
        clock: Callable[[], datetime] = _now_utc,
    ) -> None:
        self._store = store
        self._accountant = accountant
        self._locks = locks
        self._files = files
        self._max_upload_bytes = max_upload_bytes
        self._daily_slots_utc = tuple(daily_slots_utc or parse_daily_slots_utc(None))
        self._clock = clock

    def list_videos(self, user_id: int) -> List[Video]:
        return self._store.videos.list_by_user(user_id)

    def get_video(self, user_id: int, video_id: int) -> Video:
        return require_owned(self._store.videos, video_id, user_id, label="Video")

    def upload(self, user_id: int, title: str, filename: str, filesize_bytes: int) -> Video:
        """Record an already stored file as a pending video and charge its bytes."""

        clean_title = (title or "").strip()
        if not clean_title:
            raise ValidationError("Title is required")
        if not filename:
            raise ValidationError("Filename is required")
        if filesize_bytes <= 0:
            raise ValidationError("Video file is empty", detail={"filesize": filesize_bytes})
        if filesize_bytes > self._max_upload_bytes:
            raise ValidationError(
                "Video exceeds the maximum upload size",
                detail={"filesize": filesize_bytes, "max_bytes": self._max_upload_bytes},
            )

        self._accountant.reserve_storage(user_id, filesize_bytes)
        try:
            video = self._store.videos.create(
                Video(
                    user_id=user_id,
                    title=clean_title,
                    filename=filename,
                    filesize=filesize_bytes,
                    created_at=self._clock(),
                )
            )
        except Exception:
            self._accountant.adjust_storage(user_id, -filesize_bytes)
            raise

        record_video_uploaded(user_id=user_id)
        logger.info("video_uploaded", user_id=user_id, video_id=video.id, filesize=filesize_bytes)
        return video

    def upload_stream(
        self,
        user_id: int,
        title: str,
        stream: BinaryIO,
        *,
        original_name: str,
        content_type: str,
    ) -> Video:
        """Store the file through the transport, then record it; the file is removed if recording fails."""

        if self._files is None:
            raise RuntimeError("No file transport configured")
        if not (title or "").strip():
            raise ValidationError("Title is required")
        stored = self._files.save_upload(stream, original_name=original_name, content_type=content_type)
        try:
            return self.upload(user_id, title, stored.filename, stored.filesize_bytes)
        except Exception:
            self._files.delete_file(stored.filename)
            raise

    def _update_or_missing(self, video_id: int, **changes) -> Video:
        updated = self._store.videos.update(video_id, **changes)
        if updated is None:
            raise NotFoundError("Video not found", detail={"id": video_id})
        return updated

    def _assign_slot(self, video: Video, when: datetime) -> Video:
        if video.status == VIDEO_STATUS_PUBLISHED:
            raise ValidationError("Published videos cannot be scheduled", detail={"video_id": video.id})

        for other in self._store.videos.list_by_user(video.user_id):
            if other.id == video.id or other.scheduled_for is None:
                continue
            if normalize_slot(other.scheduled_for) == when:
                record_schedule_conflict(user_id=video.user_id)
                logger.info(
                    "schedule_conflict",
                    user_id=video.user_id,
                    video_id=video.id,
                    conflicting_video_id=other.id,
                    scheduled_for=when.isoformat(),
                )
                raise ConflictError(
                    "Another video is already scheduled for this time",
                    detail={
                        "video_id": video.id,
                        "conflicting_video_id": other.id,
                        "scheduled_for": when.isoformat(),
                    },
                )

        updated = self._update_or_missing(video.id, status=VIDEO_STATUS_SCHEDULED, scheduled_for=when)
        record_video_scheduled(user_id=video.user_id)
        logger.info("video_scheduled", user_id=video.user_id, video_id=video.id, scheduled_for=when.isoformat())
        return updated

    def schedule(self, user_id: int, video_id: int, when_utc: datetime) -> Video:
        slot = normalize_slot(when_utc)
        with self._locks.hold(user_id):
            video = require_owned(self._store.videos, video_id, user_id, label="Video")
            return self._assign_slot(video, slot)

    def schedule_next_free(self, user_id: int, video_id: int, now_utc: Optional[datetime] = None) -> Video:
        now = now_utc or self._clock()
        with self._locks.hold(user_id):
            video = require_owned(self._store.videos, video_id, user_id, label="Video")
            taken = [
                other.scheduled_for
                for other in self._store.videos.list_by_user(user_id)
                if other.id != video.id and other.scheduled_for is not None
            ]
            slot = next_free_slot(now, taken, slots_utc=self._daily_slots_utc)
            return self._assign_slot(video, slot.scheduled_for)

    def unschedule(self, user_id: int, video_id: int) -> Video:
        with self._locks.hold(user_id):
            video = require_owned(self._store.videos, video_id, user_id, label="Video")
            updated = self._update_or_missing(video.id, status=VIDEO_STATUS_PENDING, scheduled_for=None)
        logger.info("video_unscheduled", user_id=user_id, video_id=video_id, previous_status=video.status)
        return updated

    def delete(self, user_id: int, video_id: int) -> bool:
        """Remove the video, its file and its storage charge. Unknown ids return False."""

        with self._locks.hold(user_id):
            if self._store.videos.get(video_id) is None:
                return False
            video = require_owned(self._store.videos, video_id, user_id, label="Video")
            if not self._store.videos.delete(video_id):
                return False
            self._accountant.adjust_storage_held(user_id, -video.filesize)

        if self._files is not None and not self._files.delete_file(video.filename):
            logger.warning("video_file_missing", user_id=user_id, video_id=video_id, filename=video.filename)
        logger.info("video_deleted", user_id=user_id, video_id=video_id, filesize=video.filesize)
        return True

    def list_scheduled(self, user_id: int) -> List[ScheduledSlot]:
        slots = [
            ScheduledSlot(video_id=video.id, title=video.title, scheduled_for=video.scheduled_for)
            for video in self._store.videos.list_by_user(user_id)
            if video.scheduled_for is not None
        ]
        return sorted(slots, key=lambda slot: (normalize_slot(slot.scheduled_for), slot.video_id))

    def mark_status(self, video_id: int, status: str) -> Video:
        """Apply a publishing-side status change; only "scheduled" keeps a slot."""

        if status not in VIDEO_STATUSES:
            raise ValidationError(f"Unknown video status: {status}", detail={"status": status})
        video = self._store.videos.get(video_id)
        if video is None:
            raise NotFoundError("Video not found", detail={"id": video_id})

        with self._locks.hold(video.user_id):
            current = self._store.videos.get(video_id)
            if current is None:
                raise NotFoundError("Video not found", detail={"id": video_id})
            if status not in STATUS_TRANSITIONS[current.status]:
                raise ValidationError(
                    f"Cannot move video from {current.status} to {status}",
                    detail={"video_id": video_id, "from": current.status, "to": status},
                )
            updated = self._update_or_missing(video_id, status=status, scheduled_for=None)
        logger.info("video_status_changed", user_id=video.user_id, video_id=video_id, status=status)
        return updated
