import logging
import threading
from typing import Any

import requests

from .. import __version__
from ..config import Config
from ..validators import validate_body, validate_title
from . import queries

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when the GraphQL endpoint rejects a request.

    Attributes:
        status_code: HTTP status, or ``None`` for GraphQL-level errors.
        error_types: GraphQL error ``type`` values (e.g. ``NOT_FOUND``).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_types: list[str] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_types = error_types or []

    @property
    def is_not_found(self) -> bool:
        return "NOT_FOUND" in self.error_types or self.status_code == 404


class GitHubClient:
    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()

    def update_config(self, config: Config) -> None:
        """Swap in *config*; sessions are rebuilt on next use."""
        self.config = config
        self._thread_local = threading.local()

    @property
    def session(self) -> requests.Session:
        """Return the current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.token}",
                "User-Agent": f"gh-discussions-sync/{__version__}",
                "Accept": "application/json",
            }
        )
        return session

    def _graphql_request(
        self, document: str, variables: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """
        Execute a GraphQL document and return its ``data`` object.
        """
        payload: dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        response = self._get_session().post(
            self.config.api_url,
            json=payload,
            timeout=(10, 60),
        )
        if response.status_code != 200:
            raise GitHubAPIError(
                f"GitHub API request failed: HTTP {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )

        body = response.json()
        errors = body.get("errors")
        if errors:
            messages = ", ".join(
                err.get("message", "Unknown error") for err in errors
            )
            types = [err["type"] for err in errors if "type" in err]
            logger.debug("GraphQL errors: %s", errors)
            raise GitHubAPIError(
                f"GitHub API request failed: {messages}",
                error_types=types,
            )

        return body.get("data") or {}

    def _repo_vars(self) -> dict[str, Any]:
        return {
            "owner": self.config.owner,
            "name": self.config.repository,
        }

    def validate_connection(self) -> str:
        """
        Validate the token by asking for the viewer login.
        """
        data = self._graphql_request(queries.GET_VIEWER)
        return data.get("viewer", {}).get("login", "")

    def get_repository(self) -> dict[str, Any]:
        """
        Get repository id, name, owner, and discussion categories.
        """
        data = self._graphql_request(
            queries.GET_REPOSITORY, self._repo_vars()
        )
        repository = data.get("repository")
        if repository is None:
            raise GitHubAPIError(
                f"Repository {self.config.owner}/{self.config.repository} not found",
                error_types=["NOT_FOUND"],
            )
        return repository

    def get_discussions(
        self, first: int = 20, after: str | None = None
    ) -> dict[str, Any]:
        """
        Get one page of discussions (a GraphQL connection object).
        """
        variables = {**self._repo_vars(), "first": first, "after": after}
        data = self._graphql_request(queries.GET_DISCUSSIONS, variables)
        repository = data.get("repository")
        if repository is None:
            raise GitHubAPIError(
                f"Repository {self.config.owner}/{self.config.repository} not found",
                error_types=["NOT_FOUND"],
            )
        return repository["discussions"]

    def get_discussion(self, number: int) -> dict[str, Any] | None:
        """
        Get a discussion by number, or ``None`` if it does not exist.
        """
        variables = {**self._repo_vars(), "number": number}
        try:
            data = self._graphql_request(queries.GET_DISCUSSION, variables)
        except GitHubAPIError as e:
            if e.is_not_found:
                return None
            raise
        return (data.get("repository") or {}).get("discussion")

    def update_discussion(
        self,
        discussion_id: str,
        title: str | None = None,
        body: str | None = None,
    ) -> dict[str, Any]:
        """
        Update a discussion's title and/or body.

        Args:
            discussion_id: Opaque GraphQL node id (never the number)
            title: New title, or None to leave unchanged
            body: New body, or None to leave unchanged

        Returns:
            The updated discussion object.

        Raises:
            ValueError: If id is empty or title/body are invalid
            GitHubAPIError: If the server rejects the mutation
        """
        if not discussion_id:
            raise ValueError("Discussion id is required for updates")

        mutation_input: dict[str, Any] = {"discussionId": discussion_id}
        if title is not None:
            is_valid, message = validate_title(title)
            if not is_valid:
                raise ValueError(message)
            mutation_input["title"] = title
        if body is not None:
            mutation_input["body"] = body

        data = self._graphql_request(
            queries.UPDATE_DISCUSSION, {"input": mutation_input}
        )
        return data["updateDiscussion"]["discussion"]

    def create_discussion(
        self,
        repository_id: str,
        category_id: str,
        title: str,
        body: str,
    ) -> dict[str, Any]:
        """
        Create a new discussion in the given category.

        Raises:
            ValueError: If title or body are invalid
            GitHubAPIError: If the server rejects the mutation
        """
        for is_valid, message in (validate_title(title), validate_body(body)):
            if not is_valid:
                raise ValueError(message)

        mutation_input = {
            "repositoryId": repository_id,
            "categoryId": category_id,
            "title": title,
            "body": body,
        }
        data = self._graphql_request(
            queries.CREATE_DISCUSSION, {"input": mutation_input}
        )
        return data["createDiscussion"]["discussion"]

    def add_discussion_comment(
        self,
        discussion_id: str,
        body: str,
        reply_to_id: str | None = None,
    ) -> dict[str, Any]:
        """
        Add a comment (or a reply to an existing comment) to a discussion.
        """
        is_valid, message = validate_body(body)
        if not is_valid:
            raise ValueError(message)

        mutation_input: dict[str, Any] = {
            "discussionId": discussion_id,
            "body": body,
        }
        if reply_to_id:
            mutation_input["replyToId"] = reply_to_id

        data = self._graphql_request(
            queries.ADD_DISCUSSION_COMMENT, {"input": mutation_input}
        )
        return data["addDiscussionComment"]["comment"]
