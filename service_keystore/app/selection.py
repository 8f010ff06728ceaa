"""
Rollover-aware certificate version selection.

Signing lags key creation by at least the rollover window so that every
validator has had a chance to pick up a new version before tokens signed with
it appear. Validation always sees every enabled version.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from .models import CertificateVersion

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(versions: Iterable[CertificateVersion]) -> List[CertificateVersion]:
    # Undated versions go last; sorted() is stable so ties keep input order.
    return sorted(
        (version for version in versions if version.enabled),
        key=lambda version: (version.created_on is not None, version.created_on or _OLDEST),
        reverse=True,
    )


def select_validation_versions(versions: Iterable[CertificateVersion]) -> List[CertificateVersion]:
    """Return every enabled version, most recent first."""
    return _newest_first(versions)


def select_signing_version(
    versions: Iterable[CertificateVersion],
    rollover_window: timedelta,
    now: datetime,
) -> Optional[CertificateVersion]:
    """Pick the version that should currently be used for signing.

    Returns the most recent enabled version created strictly before
    ``now - rollover_window``. When no version is that old, the most recent
    enabled version is returned instead. Returns ``None`` when nothing is
    enabled.
    """
    candidates = _newest_first(versions)
    if not candidates:
        return None

    cutoff = now - rollover_window
    for version in candidates:
        if version.created_on is not None and version.created_on < cutoff:
            return version

    return candidates[0]


class CertificateVersionSelector:
    """Applies a fixed rollover window to version selection."""

    def __init__(self, rollover_window: timedelta):
        if rollover_window < timedelta(0):
            raise ValueError("rollover_window must not be negative")
        self.rollover_window = rollover_window

    def select_signing_version(
        self, versions: Iterable[CertificateVersion], now: datetime
    ) -> Optional[CertificateVersion]:
        return select_signing_version(versions, self.rollover_window, now)

    def is_past_rollover(self, version: CertificateVersion, now: datetime) -> bool:
        return version.created_on is not None and version.created_on < now - self.rollover_window

    def select_validation_versions(self, versions: Iterable[CertificateVersion]) -> List[CertificateVersion]:
        return select_validation_versions(versions)
