"""Azure DevOps pull request threads client.

Covers the slice of the Git REST API (api-version 5.1) the task needs:
list threads, list comments of a thread, delete a comment, and create a
file-scoped thread with a single comment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

import requests

from azreview_core import pipelines

logger = logging.getLogger(__name__)

API_VERSION = "5.1"

# Thread/comment enums as defined by the Azure DevOps REST API.
COMMENT_TYPE_TEXT = 1
THREAD_STATUS_ACTIVE = 1


class AzureDevOpsError(Exception):
    """Azure DevOps REST API errors"""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class PullRequestContext:
    collection_uri: str
    project_id: str
    project: str
    repository: str
    pull_request_id: str
    access_token: str

    @classmethod
    def from_pipeline(cls, environ: Mapping[str, str] | None = None) -> PullRequestContext:
        return cls(
            collection_uri=pipelines.get_variable("System.TeamFoundationCollectionUri", environ) or "",
            project_id=pipelines.get_variable("System.TeamProjectId", environ) or "",
            project=pipelines.get_variable("System.TeamProject", environ) or "",
            repository=pipelines.get_variable("Build.Repository.Name", environ) or "",
            pull_request_id=pipelines.get_variable("System.PullRequest.PullRequestId", environ) or "",
            access_token=pipelines.get_variable("System.AccessToken", environ) or "",
        )

    @property
    def threads_url(self) -> str:
        return (
            f"{self.collection_uri}{self.project_id}/_apis/git/repositories/{self.repository}"
            f"/pullRequests/{self.pull_request_id}/threads"
        )


def get_collection_name(collection_uri: str) -> str:
    """Return the organisation/collection name embedded in a collection URI.

    ``https://org.visualstudio.com/...`` yields the host prefix before
    ``.visualstudio.``; any other URI yields its first path segment, e.g.
    ``https://dev.azure.com/ExampleOrg/`` yields ``ExampleOrg``.
    """
    without_scheme = collection_uri.replace("https://", "").replace("http://", "")
    if ".visualstudio." in without_scheme:
        return without_scheme.split(".visualstudio.")[0]
    parts = without_scheme.split("/")
    return parts[1] if len(parts) > 1 else ""


def build_service_name(project: str, collection_uri: str) -> str:
    """Display name Azure DevOps gives comments posted with System.AccessToken."""
    return f"{project} Build Service ({get_collection_name(collection_uri)})"


def create_session(support_self_signed_certificate: bool = False) -> requests.Session:
    """Shared HTTP session for every outbound call of a run."""
    session = requests.Session()
    session.verify = not support_self_signed_certificate
    return session


class AzureDevOpsClient:
    def __init__(self, context: PullRequestContext, session: requests.Session | None = None):
        self.context = context
        self.session = session or create_session()

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.context.access_token}"}
        headers.update(kwargs.pop("headers", {}))
        params = {"api-version": API_VERSION}

        try:
            response = self.session.request(method, url, headers=headers, params=params, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise AzureDevOpsError(f"Azure DevOps request failed: {e}") from e

        if not response.ok:
            logger.error("%s %s returned %d", method, url, response.status_code)
            logger.error(response.text)
            raise AzureDevOpsError(
                f"Azure DevOps API error: {response.status_code} {response.reason}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def list_threads(self) -> list[dict]:
        return self._request("GET", self.context.threads_url).json().get("value", [])

    def list_comments(self, thread_id) -> list[dict]:
        url = f"{self.context.threads_url}/{thread_id}/comments"
        return self._request("GET", url).json().get("value", [])

    def delete_comment(self, thread_id, comment_id) -> None:
        url = f"{self.context.threads_url}/{thread_id}/comments/{comment_id}"
        self._request("DELETE", url)

    def add_comment(self, file_path: str, comment: str) -> None:
        """Open a new active thread on ``file_path`` holding a single comment."""
        body = {
            "comments": [
                {
                    "parentCommentId": 0,
                    "content": comment,
                    "commentType": COMMENT_TYPE_TEXT,
                }
            ],
            "status": THREAD_STATUS_ACTIVE,
            "threadContext": {"filePath": file_path},
        }
        self._request("POST", self.context.threads_url, json=body)
        logger.info("New comment added to %s.", file_path)

    def delete_existing_comments(self) -> int:
        """Delete every file-scoped comment previously posted by the build service.

        Threads without a file context (general discussion) are never touched.
        Comments by other authors in the same thread are left in place.
        Returns the number of comments deleted.
        """
        logger.info("Start deleting existing comments added by the previous job ...")

        service_name = build_service_name(self.context.project, self.context.collection_uri)
        threads = [t for t in self.list_threads() if t.get("threadContext") is not None]

        deleted = 0
        for thread in threads:
            for comment in self.list_comments(thread["id"]):
                author = (comment.get("author") or {}).get("displayName")
                if author != service_name:
                    continue
                self.delete_comment(thread["id"], comment["id"])
                deleted += 1

        logger.info("Existing comments deleted (%d).", deleted)
        return deleted
