"""Sightengine moderation client.

Sends a video (as bytes or as a URL) to the synchronous video check
endpoint and turns the per-category scores into an approve/reject verdict.
"""

import logging
from typing import Any

import httpx

from tgclips.api.middleware.prometheus import record_moderation_check
from tgclips.core.constants import MODERATION_MODELS, MODERATION_SCORE_KEYS
from tgclips.core.exceptions import ModerationServiceError
from tgclips.core.schemas import ModerationVerdict

logger = logging.getLogger(__name__)


def _score_of(value: Any, key: str) -> float | None:
    """Read one category score from a summary or frame entry."""
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, dict):
        return None
    for candidate in (key, "prob", "raw"):
        if isinstance(value.get(candidate), (int, float)):
            return float(value[candidate])
    if isinstance(value.get("none"), (int, float)):
        return 1.0 - float(value["none"])
    return None


def extract_scores(result: dict[str, Any]) -> dict[str, float]:
    """Collect the score of every moderated category.

    Uses the ``summary`` block when the response has one, otherwise the
    highest score seen across ``data.frames``.

    Args:
        result: Decoded vendor response

    Returns:
        Mapping of category name to probability
    """
    scores: dict[str, float] = {}

    summary = result.get("summary")
    if isinstance(summary, dict):
        for category, key in MODERATION_SCORE_KEYS.items():
            score = _score_of(summary.get(category), key)
            if score is not None:
                scores[category] = score
        if scores:
            return scores

    frames = (result.get("data") or {}).get("frames") or []
    for frame in frames:
        for category, key in MODERATION_SCORE_KEYS.items():
            score = _score_of(frame.get(category), key)
            if score is not None:
                scores[category] = max(score, scores.get(category, 0.0))
    return scores


def evaluate(result: dict[str, Any], threshold: float) -> ModerationVerdict:
    """Build a verdict: any category above ``threshold`` rejects."""
    scores = extract_scores(result)
    flagged = sorted(category for category, score in scores.items() if score > threshold)
    return ModerationVerdict(
        approved=not flagged,
        threshold=threshold,
        scores=scores,
        flagged=flagged,
        raw=result,
    )


class ModerationClient:
    """Client for the moderation vendor.

    Usage:
        moderator = ModerationClient(client, api_user, api_secret)
        verdict = await moderator.check_bytes(data, "clip.mp4", "video/mp4")
        if not verdict.approved:
            ...
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_user: str,
        api_secret: str,
        endpoint: str = "https://api.sightengine.com/1.0/video/check-sync.json",
        threshold: float = 0.5,
        timeout: float = 120.0,
    ) -> None:
        self.client = client
        self.endpoint = endpoint
        self.threshold = threshold
        self.timeout = timeout
        self._credentials = {"api_user": api_user, "api_secret": api_secret}

    async def check_bytes(self, data: bytes, filename: str, content_type: str) -> ModerationVerdict:
        """Moderate an in-memory video.

        Args:
            data: Video content
            filename: Original file name
            content_type: MIME type of the video

        Returns:
            ModerationVerdict

        Raises:
            ModerationServiceError: If the vendor call fails
        """
        return await self._check(
            "POST",
            data={"models": MODERATION_MODELS, **self._credentials},
            files={"media": (filename, data, content_type)},
        )

    async def check_url(self, url: str) -> ModerationVerdict:
        """Moderate a video the vendor can fetch itself."""
        return await self._check(
            "GET",
            params={"url": url, "models": MODERATION_MODELS, **self._credentials},
        )

    async def _check(self, method: str, **kwargs: Any) -> ModerationVerdict:
        try:
            response = await self.client.request(
                method, self.endpoint, timeout=self.timeout, **kwargs
            )
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            record_moderation_check("error")
            raise ModerationServiceError(
                "Moderation request failed",
                details={"upstream": e.response.text, "status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            record_moderation_check("error")
            raise ModerationServiceError(
                "Moderation request failed",
                details={"upstream": str(e) or type(e).__name__},
            ) from e

        if not isinstance(result, dict):
            record_moderation_check("error")
            raise ModerationServiceError(
                "Moderation vendor returned an unexpected response",
                details={"upstream": f"expected a JSON object, got {type(result).__name__}"},
            )

        if result.get("status") != "success":
            record_moderation_check("error")
            error = result.get("error") or {}
            raise ModerationServiceError(
                "Moderation vendor reported a failure",
                details={"upstream": error.get("message") if isinstance(error, dict) else str(error)},
            )

        verdict = evaluate(result, self.threshold)
        record_moderation_check("approved" if verdict.approved else "rejected")
        logger.info(
            "Moderation verdict: %s",
            "approved" if verdict.approved else f"rejected ({', '.join(verdict.flagged)})",
            extra={"scores": verdict.scores},
        )
        return verdict
