"""
Submission API Adapter

Implements SubmissionGateway port using httpx against the remote
investment API:

    GET  /api/investment/period/?year=&time_period=
    POST /api/investment/period/      bulk draft upsert
    POST /api/investment/submit/      by period
    POST /api/investment/unsubmit/    by period or by id
    GET  /api/period-deadline/?year_gte=&deadline_gte=
    PUT  /api/period-deadline/       deadline upsert

HTTP failures are mapped onto the core error kinds here; nothing above
this module sees an httpx exception.
"""
import logging
from typing import Any, Optional

import httpx

from ..core.errors import InvalidPeriod, NotFound, PermissionViolation, StorageFailure
from ..core.ports import SubmissionGateway

logger = logging.getLogger(__name__)

PERIOD_PATH = "/api/investment/period/"
SUBMIT_PATH = "/api/investment/submit/"
UNSUBMIT_PATH = "/api/investment/unsubmit/"
DEADLINE_PATH = "/api/period-deadline/"


class HttpSubmissionGateway(SubmissionGateway):
    """Remote submission API over httpx"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10.0,
        retries: int = 2,
        transport: Optional[httpx.BaseTransport] = None
    ):
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport or httpx.HTTPTransport(retries=retries),
        )

    def close(self) -> None:
        self.client.close()

    def list_by_period(self, year: int, time_period: str) -> list[dict[str, Any]]:
        response = self._request("GET", PERIOD_PATH, params={"year": year, "time_period": time_period})
        if response.status_code == 404:
            logger.info(f"No investments on the API for {time_period} {year}")
            return []
        self._raise_for_status(response, "list investments")
        return _as_list(response.json())

    def save_draft(self, investments: list[dict[str, Any]]) -> list[dict[str, Any]]:
        response = self._request("POST", PERIOD_PATH, json=investments)
        self._raise_for_status(response, "save investments draft")
        return _as_list(response.json())

    def submit_period(self, year: int, time_period: str) -> dict[str, Any]:
        response = self._request("POST", SUBMIT_PATH, json={"year": year, "time_period": time_period})
        self._raise_for_status(response, "submit investments", not_found=True)
        return response.json()

    def unsubmit_period(self, year: int, time_period: str) -> dict[str, Any]:
        response = self._request("POST", UNSUBMIT_PATH, json={"year": year, "time_period": time_period})
        self._raise_for_status(response, "unsubmit investments", not_found=True)
        return response.json()

    def unsubmit_by_id(self, investment_id: int) -> dict[str, Any]:
        response = self._request("POST", UNSUBMIT_PATH, json={"id": investment_id})
        self._raise_for_status(response, f"unsubmit investment {investment_id}", not_found=True)
        return response.json()

    def list_deadlines(
        self,
        year_gte: Optional[int] = None,
        deadline_gte: Optional[str] = None
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if year_gte is not None:
            params["year_gte"] = year_gte
        if deadline_gte:
            params["deadline_gte"] = deadline_gte
        response = self._request("GET", DEADLINE_PATH, params=params)
        self._raise_for_status(response, "list period deadlines")
        return _as_list(response.json())

    def upsert_deadline(self, deadline: dict[str, Any]) -> dict[str, Any]:
        response = self._request("PUT", DEADLINE_PATH, json=deadline)
        self._raise_for_status(
            response,
            f"save deadline for {deadline.get('time_period')} {deadline.get('year')}",
            invalid_period=True
        )
        return response.json()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        logger.info(f"{method} {path}")
        try:
            return self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise StorageFailure(f"Network error calling submission API: {e}") from e

    @staticmethod
    def _raise_for_status(
        response: httpx.Response,
        action: str,
        not_found: bool = False,
        invalid_period: bool = False
    ) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = _detail(response)
        details = {"status_code": status, "detail": detail}
        message = f"Failed to {action}: HTTP {status}" + (f" ({detail})" if detail else "")
        logger.warning(message)

        if status in (401, 403):
            raise PermissionViolation(message, details=details)
        if status == 404 and not_found:
            raise NotFound(message, details=details)
        if status == 400 and (invalid_period or any(word in detail.lower() for word in ("deadline", "period"))):
            raise InvalidPeriod(message, details=details)
        raise StorageFailure(message, details=details)


def _detail(response: httpx.Response) -> str:
    """Server-provided error text, if any"""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if body.get(key):
                return str(body[key])
        # Validation errors come back as {"field": ["message", ...]}
        messages = [f"{key}: {', '.join(map(str, value))}" for key, value in body.items() if isinstance(value, list)]
        if messages:
            return "; ".join(messages)
    return str(body) if body else ""


def _as_list(body: Any) -> list[dict[str, Any]]:
    # Some deployments wrap list responses as {"results": [...]}
    if isinstance(body, dict):
        body = body.get("results", body.get("data", []))
    if not isinstance(body, list):
        raise StorageFailure(f"Unexpected submission API response: {type(body).__name__}")
    return body
