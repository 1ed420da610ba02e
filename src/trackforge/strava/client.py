"""
Async wrapper around the Strava REST API (requests).

requests is synchronous; calls run in the default thread pool executor so
they don't block the asyncio event loop.

Only what the TCX workflow needs: list running activities and download
their TCX exports. The access token is supplied by the caller
(STRAVA_ACCESS_TOKEN); obtaining or refreshing it is out of scope.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

STRAVA_API_URL = "https://www.strava.com/api/v3"
STRAVA_ACTIVITIES_URL = f"{STRAVA_API_URL}/athlete/activities"
STRAVA_EXPORT_TCX_URL_TMPL = f"{STRAVA_API_URL}/activities/{{id}}/export_tcx"


class StravaError(Exception):
    """Raised when Strava returns an unexpected status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class DownloadSummary:
    succeeded: int = 0
    failed: int = 0


def tcx_filename(activity: Dict[str, Any]) -> str:
    """<id>_<start date>_<name with non-alphanumerics as '_'>.tcx"""
    date = (activity.get("start_date") or "").split("T")[0]
    name = re.sub(r"[^a-zA-Z0-9]", "_", activity.get("name") or "") or "run"
    return f"{activity['id']}_{date}_{name}.tcx"


def is_activity_type(activity: Dict[str, Any], activity_type: str) -> bool:
    return activity.get("type") == activity_type or activity.get("sport_type") == activity_type


class StravaClient:
    """
    Thin async client over the Strava v3 API.

    Args:
        access_token: OAuth bearer token with activity:read_all scope
        session: requests.Session to use (tests pass a mock)
        timeout: per-request timeout in seconds
        request_delay: pause between requests, for Strava's rate limits
    """

    def __init__(
        self,
        access_token: str,
        session: Optional[requests.Session] = None,
        timeout: int = 60,
        request_delay: float = 0.2,
    ):
        self._session = session or requests.Session()
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._timeout = timeout
        self._request_delay = request_delay

    async def _run(self, fn, *args, **kwargs):
        """Run a blocking requests call in the thread pool."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, lambda: fn(*args, **kwargs))

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        return await self._run(
            self._session.get, url, headers=self._headers, params=params, timeout=self._timeout
        )

    async def get_activity_page(self, page: int = 1, per_page: int = 100) -> List[Dict[str, Any]]:
        """One unfiltered page of the athlete's activities."""
        response = await self._get(STRAVA_ACTIVITIES_URL, params={"page": page, "per_page": per_page})
        if response.status_code != 200:
            raise StravaError(f"Failed to fetch activities: {response.status_code}", response.status_code)
        return response.json()

    async def get_activities(
        self,
        page: int = 1,
        per_page: int = 100,
        activity_type: str = "Run",
    ) -> List[Dict[str, Any]]:
        """
        Activities on one page, filtered client-side by type/sport_type.

        Returns:
            Matching activity dicts; may be empty even when the page wasn't.
        """
        activities = await self.get_activity_page(page, per_page)
        return [a for a in activities if is_activity_type(a, activity_type)]

    async def get_all_activities(self, activity_type: str = "Run", per_page: int = 100) -> List[Dict[str, Any]]:
        """Walk pages until Strava returns an empty one."""
        matching: List[Dict[str, Any]] = []
        page = 1
        while True:
            activities = await self.get_activity_page(page, per_page)
            if not activities:
                break
            selected = [a for a in activities if is_activity_type(a, activity_type)]
            matching.extend(selected)
            logger.info(
                "Page %d: %d %s activities (%d total)",
                page, len(selected), activity_type, len(activities),
            )
            page += 1
            await asyncio.sleep(self._request_delay)

        logger.info("Found %d %s activities", len(matching), activity_type)
        return matching

    async def get_activity_tcx(self, activity_id) -> Optional[str]:
        """
        Download one activity's TCX export.

        Returns:
            TCX text, or None if Strava has no TCX for it (404).

        Raises:
            StravaError: any other non-200 status
        """
        response = await self._get(STRAVA_EXPORT_TCX_URL_TMPL.format(id=activity_id))
        if response.status_code == 404:
            logger.warning("TCX not available for activity %s", activity_id)
            return None
        if response.status_code != 200:
            raise StravaError(
                f"Failed to download TCX for activity {activity_id}: {response.status_code}",
                response.status_code,
            )
        return response.text

    async def download_all_tcx(self, output_dir: Path, activity_type: str = "Run") -> DownloadSummary:
        """
        Save every matching activity's TCX into output_dir.

        A failed or unavailable download is logged and counted; the rest
        carry on.
        """
        activities = await self.get_all_activities(activity_type)
        summary = DownloadSummary()
        if not activities:
            logger.warning("No %s activities found", activity_type)
            return summary

        output_dir.mkdir(parents=True, exist_ok=True)
        for activity in activities:
            try:
                tcx = await self.get_activity_tcx(activity["id"])
            except (StravaError, requests.RequestException) as exc:
                logger.error("Error downloading activity %s: %s", activity.get("id"), exc)
                summary.failed += 1
                continue

            if tcx is None:
                summary.failed += 1
            else:
                filename = tcx_filename(activity)
                (output_dir / filename).write_text(tcx, encoding="utf-8")
                logger.info("Saved %s", filename)
                summary.succeeded += 1
            await asyncio.sleep(self._request_delay)

        logger.info(
            "Download summary: %d succeeded, %d failed, saved to %s",
            summary.succeeded, summary.failed, output_dir,
        )
        return summary
