"""Capture client surfaces (browser extension, automation script)."""

from bookmark_queue.capture.client import (
    AUTOMATION_SCRIPT,
    BROWSER_EXTENSION,
    CaptureClient,
    CaptureDraft,
    CaptureOutcome,
    ClientProfile,
    resolve_shared_url,
)

__all__ = [
    "AUTOMATION_SCRIPT",
    "BROWSER_EXTENSION",
    "CaptureClient",
    "CaptureDraft",
    "CaptureOutcome",
    "ClientProfile",
    "resolve_shared_url",
]
