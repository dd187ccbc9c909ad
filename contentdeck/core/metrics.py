"""In-process metrics collector with Prometheus text exposition."""

from __future__ import annotations

from collections import defaultdict
from threading import Lock
import time
from typing import Dict, Tuple


_lock = Lock()
_started_at = time.time()

_http_requests_total: Dict[Tuple[str, str, str], int] = defaultdict(int)
_http_request_duration_sum: Dict[Tuple[str, str], float] = defaultdict(float)
_http_request_duration_count: Dict[Tuple[str, str], int] = defaultdict(int)
_videos_uploaded_total: Dict[str, int] = defaultdict(int)
_videos_scheduled_total: Dict[str, int] = defaultdict(int)
_schedule_conflicts_total: Dict[str, int] = defaultdict(int)
_captions_generated_total: Dict[str, int] = defaultdict(int)
_caption_generation_failures_total: Dict[Tuple[str, str], int] = defaultdict(int)
_quota_blocks_total: Dict[str, int] = defaultdict(int)


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _normalize_label(value: str, *, fallback: str = "unknown") -> str:
    normalized = (value or "").strip()
    return normalized or fallback


def record_http_request(*, method: str, path: str, status_code: int, duration_seconds: float) -> None:
    status = str(status_code)
    method_label = method.upper()
    path_label = path or "unknown"
    duration = max(duration_seconds, 0.0)

    with _lock:
        _http_requests_total[(method_label, path_label, status)] += 1
        _http_request_duration_sum[(method_label, path_label)] += duration
        _http_request_duration_count[(method_label, path_label)] += 1


def record_video_uploaded(*, user_id: int, count: int = 1) -> None:
    if count <= 0:
        return
    with _lock:
        _videos_uploaded_total[_normalize_label(str(user_id))] += int(count)


def record_video_scheduled(*, user_id: int, count: int = 1) -> None:
    if count <= 0:
        return
    with _lock:
        _videos_scheduled_total[_normalize_label(str(user_id))] += int(count)


def record_schedule_conflict(*, user_id: int) -> None:
    with _lock:
        _schedule_conflicts_total[_normalize_label(str(user_id))] += 1


def record_caption_generated(*, provider: str) -> None:
    with _lock:
        _captions_generated_total[_normalize_label(provider)] += 1


def record_caption_generation_failure(*, provider: str, reason: str) -> None:
    with _lock:
        key = (_normalize_label(provider), _normalize_label(reason))
        _caption_generation_failures_total[key] += 1


def record_quota_block(*, resource: str) -> None:
    with _lock:
        _quota_blocks_total[_normalize_label(resource)] += 1


def _render_single_label(
    lines: list[str],
    *,
    name: str,
    help_text: str,
    label: str,
    values: Dict[str, int],
) -> None:
    lines.extend([f"# HELP {name} {help_text}", f"# TYPE {name} counter"])
    for key, value in sorted(values.items()):
        lines.append(f'{name}{{{label}="{_escape_label(key)}"}} {value}')


def render_prometheus_metrics(*, app_name: str, app_version: str, env: str) -> str:
    uptime = max(time.time() - _started_at, 0.0)

    with _lock:
        http_total = dict(_http_requests_total)
        duration_sum = dict(_http_request_duration_sum)
        duration_count = dict(_http_request_duration_count)
        videos_uploaded_total = dict(_videos_uploaded_total)
        videos_scheduled_total = dict(_videos_scheduled_total)
        schedule_conflicts_total = dict(_schedule_conflicts_total)
        captions_generated_total = dict(_captions_generated_total)
        generation_failures_total = dict(_caption_generation_failures_total)
        quota_blocks_total = dict(_quota_blocks_total)

    lines = [
        "# HELP contentdeck_build_info Build metadata.",
        "# TYPE contentdeck_build_info gauge",
        (
            f'contentdeck_build_info{{app_name="{_escape_label(app_name)}",'
            f'version="{_escape_label(app_version)}",env="{_escape_label(env)}"}} 1'
        ),
        "# HELP contentdeck_process_uptime_seconds Process uptime in seconds.",
        "# TYPE contentdeck_process_uptime_seconds gauge",
        f"contentdeck_process_uptime_seconds {uptime:.6f}",
        "# HELP contentdeck_http_requests_total Total HTTP requests.",
        "# TYPE contentdeck_http_requests_total counter",
    ]

    for (method, path, status), value in sorted(http_total.items()):
        lines.append(
            (
                f'contentdeck_http_requests_total{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}",status="{_escape_label(status)}"}} {value}'
            )
        )

    lines.extend(
        [
            "# HELP contentdeck_http_request_duration_seconds Request duration summary.",
            "# TYPE contentdeck_http_request_duration_seconds summary",
        ]
    )
    for (method, path), value in sorted(duration_sum.items()):
        lines.append(
            (
                f'contentdeck_http_request_duration_seconds_sum{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}"}} {value:.6f}'
            )
        )
    for (method, path), value in sorted(duration_count.items()):
        lines.append(
            (
                f'contentdeck_http_request_duration_seconds_count{{method="{_escape_label(method)}",'
                f'path="{_escape_label(path)}"}} {value}'
            )
        )

    _render_single_label(
        lines,
        name="contentdeck_videos_uploaded_total",
        help_text="Total uploaded videos.",
        label="user_id",
        values=videos_uploaded_total,
    )
    _render_single_label(
        lines,
        name="contentdeck_videos_scheduled_total",
        help_text="Total successful schedule operations.",
        label="user_id",
        values=videos_scheduled_total,
    )
    _render_single_label(
        lines,
        name="contentdeck_schedule_conflicts_total",
        help_text="Schedule requests rejected by slot collisions.",
        label="user_id",
        values=schedule_conflicts_total,
    )
    _render_single_label(
        lines,
        name="contentdeck_captions_generated_total",
        help_text="Total AI captions generated.",
        label="provider",
        values=captions_generated_total,
    )

    lines.extend(
        [
            "# HELP contentdeck_caption_generation_failures_total Failed caption generations by reason.",
            "# TYPE contentdeck_caption_generation_failures_total counter",
        ]
    )
    for (provider, reason), value in sorted(generation_failures_total.items()):
        lines.append(
            (
                f'contentdeck_caption_generation_failures_total{{provider="{_escape_label(provider)}",'
                f'reason="{_escape_label(reason)}"}} {value}'
            )
        )

    _render_single_label(
        lines,
        name="contentdeck_quota_blocks_total",
        help_text="Operations blocked by subscription quota.",
        label="resource",
        values=quota_blocks_total,
    )

    lines.append("")
    return "\n".join(lines)


def reset_metrics_for_tests() -> None:
    global _started_at
    with _lock:
        _http_requests_total.clear()
        _http_request_duration_sum.clear()
        _http_request_duration_count.clear()
        _videos_uploaded_total.clear()
        _videos_scheduled_total.clear()
        _schedule_conflicts_total.clear()
        _captions_generated_total.clear()
        _caption_generation_failures_total.clear()
        _quota_blocks_total.clear()
    _started_at = time.time()
