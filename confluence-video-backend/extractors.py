"""
Ordered field lookups for vendor responses whose shape is not stable.

Each candidate location is an Accessor; `first_match` tries them in order
and returns the first value the caller accepts, tagged with where it came from.
"""

from collections import namedtuple
from typing import Any, Callable, Iterable, Optional, Tuple

Accessor = namedtuple("Accessor", ["label", "get"])


def path(*keys) -> Accessor:
    """Accessor that walks nested dict keys (and list indexes) from the top of a payload."""

    def get(payload):
        current = payload
        for key in keys:
            if isinstance(key, int):
                if not isinstance(current, list) or len(current) <= key:
                    return None
            elif not isinstance(current, dict):
                return None
            current = current[key] if isinstance(key, int) else current.get(key)
            if current is None:
                return None
        return current

    return Accessor(".".join(str(k) for k in keys), get)


def first_match(
    payload: Any,
    accessors: Iterable[Accessor],
    accept: Callable[[Any], bool],
) -> Tuple[Optional[str], Optional[Any]]:
    """Return (label, value) for the first accessor whose value passes `accept`."""
    for accessor in accessors:
        value = accessor.get(payload)
        if value is not None and accept(value):
            return accessor.label, value
    return None, None


def is_job_id(value) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool) and str(value).strip() != ""


def is_video_url(value) -> bool:
    return isinstance(value, str) and ("http" in value or ".mp4" in value)


def is_text(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


JOB_ID_ACCESSORS = [
    path("job_id"),
    path("jobId"),
    path("id"),
    path("data", "job_id"),
    path("data", "jobId"),
    path("data", "id"),
]

STATUS_ACCESSORS = [
    path("status"),
    path("state"),
    path("data", "status"),
    path("data", "state"),
    path("result", "status"),
]

VIDEO_URL_ACCESSORS = [
    path("video_url"),
    path("videoUrl"),
    path("url"),
    path("download_url"),
    path("downloadUrl"),
    path("output_url"),
    path("outputUrl"),
    path("file_url"),
    path("data", "video_url"),
    path("data", "videoUrl"),
    path("data", "url"),
    path("data", "download_url"),
    path("data", "downloadUrl"),
    path("result", "video_url"),
    path("result", "videoUrl"),
    path("result", "url"),
    path("result", "download_url"),
    path("result", "downloadUrl"),
]

SCRIPT_TEXT_ACCESSORS = [
    path("candidates", 0, "content", "parts", 0, "text"),
    path("script"),
    path("text"),
]
