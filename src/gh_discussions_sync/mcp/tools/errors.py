"""Error response builders for MCP tool handlers.

Structured error responses carry a corrective action so AI agents can
recover from errors without human intervention.
"""

import mcp.types as types

from ...core.client import GitHubAPIError


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, permission_denied,
            rate_limited, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


_ACTIONS = {
    "not_found": "Use discussion_list to verify the discussion number exists.",
    "not_found_numbered": "Use discussion_list to check whether discussion #{number} exists.",
    "permission": "Check that GITHUB_TOKEN has access to the repository and its discussions.",
    "rate_limited": "Wait for the GitHub rate limit window to reset, then retry.",
    "server": "Retry later; check https://www.githubstatus.com if the problem persists.",
}


def translate_api_error(
    error: GitHubAPIError, number: int | None = None
) -> types.CallToolResult:
    """Translate a ``GitHubAPIError`` to a structured error response.

    Args:
        error: The transport error.
        number: Discussion number the call concerned, if any.

    Returns:
        CallToolResult with isError=True and corrective action
    """
    message = str(error)
    lowered = message.lower()
    types_ = set(error.error_types)

    match error.status_code:
        case _ if error.is_not_found:
            action = (
                _ACTIONS["not_found_numbered"].format(number=number)
                if number is not None
                else _ACTIONS["not_found"]
            )
            return build_error_response("not_found", message, action)

        case 429:
            return build_error_response(
                "rate_limited", message, _ACTIONS["rate_limited"]
            )

        case _ if "RATE_LIMITED" in types_ or "rate limit" in lowered:
            return build_error_response(
                "rate_limited", message, _ACTIONS["rate_limited"]
            )

        case 401 | 403:
            return build_error_response(
                "permission_denied", message, _ACTIONS["permission"]
            )

        case _ if "FORBIDDEN" in types_ or "INSUFFICIENT_SCOPES" in types_:
            return build_error_response(
                "permission_denied", message, _ACTIONS["permission"]
            )

        case _:
            return build_error_response(
                "server_error", message, _ACTIONS["server"]
            )
