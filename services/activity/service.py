"""Activity log: append-only feed of what users did to their languages.

Writing an entry is a side effect of other operations and never fails the
operation it accompanies; reads for the dashboard surface errors normally.
"""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Mapping, Optional

from packages.common.errors import RemoteError
from packages.schemas.activity import Activity, HeatmapDay

log = logging.getLogger(__name__)

TABLE = "activity"
PAGE_SIZE = 1000
SPEC_LABELS = (
    ("alphabetScript", "alphabet"),
    ("writingDirection", "writing direction"),
    ("wordOrder", "word order"),
    ("depthLevel", "depth level"),
)


def describe_specs_change(old: Mapping[str, Any], new: Mapping[str, Any]) -> tuple[str, list[str]]:
    """Return a human-readable summary and the individual "from X to Y" changes."""
    changes = []
    for key, label in SPEC_LABELS:
        before, after = old.get(key), new.get(key)
        if before != after:
            changes.append(f"{label} from {before or 'unset'} to {after or 'unset'}")
    if changes:
        return "Updated language specs: " + "; ".join(changes), changes
    return "Updated language specs", changes


class ActivityService:
    """Writes and reads the `activity` table through a BaaS client."""

    def __init__(self, client: Any) -> None:
        self.client = client

    async def log_activity(
        self,
        user_id: str,
        type: str,
        language_id: Optional[str],
        description: str,
        metadata: Optional[Mapping[str, Any]] = None,
        visibility: str = "private",
    ) -> bool:
        """Append an entry; returns False (and logs) instead of raising on failure."""
        row = {
            "user_id": user_id,
            "type": type,
            "language_id": language_id,
            "description": description,
            "metadata": dict(metadata or {}),
            "visibility": visibility,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        try:
            res = await self.client.insert(TABLE, row, single=False)
        except Exception:
            log.exception("activity logging raised", extra={"operation": "log_activity", "entity_id": language_id})
            return False
        if res.error is not None:
            log.warning("activity logging failed: %s", res.error.message,
                        extra={"operation": "log_activity", "entity_id": language_id, "code": res.error.code})
            return False
        log.info("[%s] %s", type, description, extra={"operation": "log_activity", "entity_id": language_id})
        return True

    async def log_specs_change(
        self,
        user_id: str,
        language_id: str,
        old_specs: Mapping[str, Any],
        new_specs: Mapping[str, Any],
    ) -> bool:
        """Log a `specs_changed` entry describing which settings moved."""
        description, changes = describe_specs_change(old_specs, new_specs)
        return await self.log_activity(
            user_id, "specs_changed", language_id, description,
            {"changes": changes, "oldSpecs": dict(old_specs), "newSpecs": dict(new_specs)},
        )

    async def recent(self, user_id: str, limit: int = 20) -> list[Activity]:
        """Most recent entries of `user_id`, newest first."""
        res = await self.client.select(TABLE, eq={"user_id": user_id}, order="timestamp",
                                       range_=(0, max(1, limit) - 1))
        if res.error is not None:
            raise RemoteError("list_activity", res.error.message, entity_id=user_id, code=res.error.code)
        return [Activity.model_validate(r) for r in res.data or []]

    async def heatmap(self, user_id: str, days: int = 84, today: Optional[date] = None) -> list[HeatmapDay]:
        """Per-day activity counts for the last `days` days, oldest first."""
        today = today or datetime.now(timezone.utc).date()
        start = today - timedelta(days=days - 1)
        since = datetime.combine(start, time.min, tzinfo=timezone.utc).isoformat()
        rows: list[dict] = []
        offset = 0
        while True:
            res = await self.client.select(TABLE, "timestamp", eq={"user_id": user_id}, gte={"timestamp": since},
                                           order="timestamp", ascending=True,
                                           range_=(offset, offset + PAGE_SIZE - 1))
            if res.error is not None:
                raise RemoteError("activity_heatmap", res.error.message, entity_id=user_id, code=res.error.code)
            batch = res.data or []
            rows.extend(batch)
            if len(batch) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        counts: Counter[str] = Counter()
        for r in rows:
            ts = r.get("timestamp")
            if not ts:
                continue
            day = datetime.fromisoformat(str(ts).replace("Z", "+00:00")).date()
            if start <= day <= today:
                counts[day.isoformat()] += 1
        return [
            HeatmapDay(date=(start + timedelta(days=i)).isoformat(), count=counts[(start + timedelta(days=i)).isoformat()])
            for i in range(days)
        ]
