"""HTTP client fetching workflow run records from the GitHub Actions API."""

from __future__ import annotations
import logging
from typing import Any
import httpx
from pydantic import ValidationError
from runtrace import __version__
from runtrace.errors import RetrievalError
from runtrace.models import Job, RunRecord, WorkflowRun


logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
_API_VERSION = "2022-11-28"
_PAGE_SIZE = 100


class GitHubClient:
    """Small wrapper around :class:`httpx.Client` for the Actions endpoints."""

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create a client bound to the provided API endpoint."""
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": f"runtrace/{__version__}",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def _get_json(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        description: str,
    ) -> dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"GitHub API returned status {status} while fetching {description}"
            raise RetrievalError(msg, status_code=status) from exc
        except httpx.HTTPError as exc:
            msg = f"Unable to reach the GitHub API while fetching {description}"
            raise RetrievalError(msg) from exc

        try:
            data = response.json()
        except ValueError as exc:
            msg = f"GitHub API returned invalid JSON for {description}"
            raise RetrievalError(msg, status_code=response.status_code) from exc
        if not isinstance(data, dict):
            msg = f"GitHub API returned an unexpected payload for {description}"
            raise RetrievalError(msg, status_code=response.status_code)
        return data

    def get_workflow_run(self, owner: str, repo: str, run_id: int) -> WorkflowRun:
        """Return the metadata of a single workflow run."""
        description = f"workflow run {run_id}"
        payload = self._get_json(
            f"/repos/{owner}/{repo}/actions/runs/{run_id}", description=description
        )
        try:
            return WorkflowRun.model_validate(payload)
        except ValidationError as exc:
            msg = f"Malformed {description} payload: {exc}"
            raise RetrievalError(msg) from exc

    def list_workflow_jobs(
        self,
        owner: str,
        repo: str,
        run_id: int,
        *,
        attempt: int | None = None,
    ) -> list[Job]:
        """Return every job of a workflow run, following pagination."""
        path = f"/repos/{owner}/{repo}/actions/runs/{run_id}"
        if attempt is not None:
            path = f"{path}/attempts/{attempt}"
        path = f"{path}/jobs"
        description = f"jobs of workflow run {run_id}"

        jobs: list[Job] = []
        page = 1
        while True:
            payload = self._get_json(
                path,
                params={"per_page": _PAGE_SIZE, "page": page},
                description=description,
            )
            raw_jobs = payload.get("jobs") or []
            try:
                jobs.extend(Job.model_validate(item) for item in raw_jobs)
            except ValidationError as exc:
                msg = f"Malformed {description} payload: {exc}"
                raise RetrievalError(msg) from exc

            total = payload.get("total_count")
            if not raw_jobs or not isinstance(total, int) or len(jobs) >= total:
                break
            page += 1

        logger.debug("Fetched %d jobs for workflow run %s.", len(jobs), run_id)
        return jobs

    def fetch_run_record(
        self,
        owner: str,
        repo: str,
        run_id: int,
        *,
        attempt: int | None = None,
    ) -> RunRecord:
        """Fetch a workflow run and its jobs as one record."""
        run = self.get_workflow_run(owner, repo, run_id)
        jobs = self.list_workflow_jobs(owner, repo, run_id, attempt=attempt)
        logger.info(
            "Fetched workflow run %s (%s) with %d jobs.", run_id, run.name, len(jobs)
        )
        return RunRecord(run=run, jobs=jobs)


__all__ = ["DEFAULT_API_URL", "GitHubClient"]
