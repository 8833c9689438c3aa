"""
HTTP client for the plan persistence API.

Implements the PlanRepository and ExerciseCatalogRepository ports:

- POST /clients/{client_id}/plan   create a client's first plan
- PUT  /plans/{plan_id}            update with an expected revision (409 = conflict)
- GET  /clients/{client_id}/plan   fetch the authoritative plan (404 = none)
- GET  /exercises                  the exercise catalog

Connection errors, timeouts and 5xx responses raise PlanTransportError.
Other unsuccessful responses are reported through the port result objects.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from application.exceptions import PlanTransportError
from application.ports import CreatePlanResult, FetchPlanResult, UpdatePlanResult
from domain.models import CatalogExercise, WorkoutPlan

logger = logging.getLogger(__name__)


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return str(data.get("error") or data.get("detail") or response.text)
    return response.text


class HttpPlanRepository:
    """
    HTTP adapter for plan persistence and the exercise catalog.

    A new AsyncClient is opened per request; the timeout applies to each
    request as a whole.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        auth_token: Optional[str] = None,
    ):
        """
        Initialize the plan API client.

        Args:
            base_url: Base URL of the plan API (e.g., "http://plans-api:8000")
            timeout: Request timeout in seconds
            auth_token: Optional bearer token
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._auth_token = auth_token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                if payload is None:
                    response = await client.request(method, url, headers=self._headers())
                else:
                    response = await client.request(
                        method, url, json=payload, headers=self._headers()
                    )
        except httpx.ConnectError as e:
            logger.error(f"Plan API unavailable: {e}")
            raise PlanTransportError(f"Plan API is not available at {self._base_url}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Plan API timeout: {e}")
            raise PlanTransportError("Plan API request timed out") from e

        if response.status_code >= 500:
            logger.error(f"Plan API error: {response.status_code} - {response.text}")
            raise PlanTransportError(
                f"Plan API error: {_error_text(response)}", response.status_code
            )
        return response

    # -------------------------------------------------------------------------
    # PlanRepository
    # -------------------------------------------------------------------------

    async def create_plan(self, client_id: str, plan: WorkoutPlan) -> CreatePlanResult:
        response = await self._request("POST", f"/clients/{client_id}/plan", plan.to_payload())

        if response.status_code in (200, 201):
            data = response.json()
            return CreatePlanResult(
                success=True,
                plan_id=data["plan_id"],
                updated_at=data["updated_at"],
            )

        logger.error(f"Plan create rejected: {response.status_code} - {response.text}")
        return CreatePlanResult(success=False, error=_error_text(response))

    async def update_plan(
        self,
        plan_id: str,
        expected_updated_at: Optional[str],
        plan: WorkoutPlan,
    ) -> UpdatePlanResult:
        payload = {"expected_updated_at": expected_updated_at, **plan.to_payload()}
        response = await self._request("PUT", f"/plans/{plan_id}", payload)

        if response.status_code == 200:
            return UpdatePlanResult(success=True, updated_at=response.json()["updated_at"])

        if response.status_code == 409:
            data = response.json()
            return UpdatePlanResult(
                success=False,
                conflict=True,
                error=data.get("error"),
                server_updated_at=data.get("server_updated_at"),
            )

        logger.error(f"Plan update rejected: {response.status_code} - {response.text}")
        return UpdatePlanResult(success=False, error=_error_text(response))

    async def fetch_plan(self, client_id: str) -> Optional[FetchPlanResult]:
        response = await self._request("GET", f"/clients/{client_id}/plan")

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise PlanTransportError(
                f"Failed to fetch plan: {_error_text(response)}", response.status_code
            )

        data = response.json()
        return FetchPlanResult(
            plan_id=data["plan_id"],
            updated_at=data["updated_at"],
            plan=WorkoutPlan.model_validate({"phases": data.get("phases", [])}),
        )

    # -------------------------------------------------------------------------
    # ExerciseCatalogRepository
    # -------------------------------------------------------------------------

    async def fetch_exercise_catalog(self) -> List[CatalogExercise]:
        response = await self._request("GET", "/exercises")
        if response.status_code != 200:
            raise PlanTransportError(
                f"Failed to fetch exercise catalog: {_error_text(response)}",
                response.status_code,
            )

        data = response.json()
        items = data.get("exercises", []) if isinstance(data, dict) else data
        return [CatalogExercise.model_validate(item) for item in items]
