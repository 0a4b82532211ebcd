"""Runtime configuration for the discussion sync tools.

Reads GitHub connection and sync settings from CLI args, environment
variables, .env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GITHUB_TOKEN: Personal access token with discussion scope (required)
    GITHUB_OWNER: Repository owner login (required)
    GITHUB_REPOSITORY: Repository name (required)
    DISCUSSIONS_FOLDER: Folder holding discussion-{number}.md files
        (optional, default: Discussions)
    DISCUSSIONS_API_URL: GraphQL endpoint (optional)
    DISCUSSIONS_PAGE_SIZE: Discussions per listing page (optional, default: 20)
    DISCUSSIONS_CONFLICT_POLICY: interactive, always-proceed or
        never-proceed (optional, default: never-proceed)
    DISCUSSIONS_MAX_PARALLEL_REQUESTS: Max concurrent API calls (optional, default: 4)
    DISCUSSIONS_DEBUG: Enable debug logging (optional, default: false)
    DISCUSSIONS_DECISION_TIMEOUT: Seconds to wait for a conflict decision
        (optional, default: wait forever)
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com/graphql"
DEFAULT_FOLDER = "Discussions"

CONFLICT_POLICIES = ("interactive", "always-proceed", "never-proceed")


@dataclass
class Config:
    token: str
    owner: str
    repository: str
    discussions_folder: str = DEFAULT_FOLDER
    api_url: str = DEFAULT_API_URL
    page_size: int = 20
    conflict_policy: str = "never-proceed"
    max_parallel_requests: int = 4
    debug: bool = False
    decision_timeout: float | None = None


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the endpoint is malformed, a required value is empty,
            or a numeric/enum field is out of range.
    """
    config.api_url = config.api_url.strip()

    if not config.api_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid API URL '{config.api_url}': must start with http:// or https://"
        )

    parsed = urlparse(config.api_url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid API URL '{config.api_url}': URL must include a hostname"
        )

    if not config.token.strip():
        raise ValueError(
            "GitHub token cannot be empty. Set GITHUB_TOKEN environment variable."
        )

    if not config.owner.strip():
        raise ValueError(
            "Repository owner cannot be empty. Set GITHUB_OWNER environment variable."
        )

    if not config.repository.strip():
        raise ValueError(
            "Repository name cannot be empty. Set GITHUB_REPOSITORY environment variable."
        )

    if not config.discussions_folder.strip():
        raise ValueError("Discussions folder cannot be empty.")

    if not (1 <= config.page_size <= 100):
        raise ValueError(
            f"Invalid page size {config.page_size}: must be between 1 and 100"
        )

    if not (1 <= config.max_parallel_requests <= 32):
        raise ValueError(
            f"Invalid max_parallel_requests {config.max_parallel_requests}: "
            "must be between 1 and 32"
        )

    if config.conflict_policy not in CONFLICT_POLICIES:
        raise ValueError(
            f"Unknown conflict policy '{config.conflict_policy}'. "
            f"Valid policies: {list(CONFLICT_POLICIES)}"
        )

    if config.decision_timeout is not None and config.decision_timeout <= 0:
        raise ValueError(
            f"Invalid decision timeout {config.decision_timeout}: must be positive"
        )


def _timeout_setting(fallbacks: dict) -> float | None:
    """Resolve the decision timeout: env > YAML > None (wait forever)."""
    raw = os.getenv("DISCUSSIONS_DECISION_TIMEOUT")
    if raw is None or not raw.strip():
        value = fallbacks.get("decision_timeout")
        return float(value) if value is not None else None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(
            f"Invalid DISCUSSIONS_DECISION_TIMEOUT '{raw}': must be a number of seconds"
        ) from None


def _int_setting(
    env_key: str,
    fallbacks: dict,
    fb_key: str,
    default: int,
    low: int,
    high: int,
) -> int:
    """Resolve a numeric setting: env > YAML > default, range-checked."""
    raw = os.getenv(env_key)
    if raw is None:
        return int(fallbacks.get(fb_key, default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {low} and {high}"
        ) from None
    if not (low <= value <= high):
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {low} and {high}"
        )
    return value


def load_config(
    token: str | None = None,
    owner: str | None = None,
    repository: str | None = None,
    discussions_folder: str | None = None,
    conflict_policy: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        token: Override GitHub token.
        owner: Override repository owner.
        repository: Override repository name.
        discussions_folder: Override the local discussions folder.
        conflict_policy: Override the conflict policy.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Flattened values from the YAML config file
            (``github`` and ``sync`` sections). Used as fallback when CLI
            arg and env var are both unset.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If required config (token, owner, repository) is
            missing after checking all sources, or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    final_token = token or os.getenv("GITHUB_TOKEN") or fb.get("token")
    if not final_token:
        raise ValueError(
            "GitHub token not found. Set GITHUB_TOKEN environment variable, "
            "pass --token CLI argument, or add 'token' to config.yml."
        )

    final_owner = owner or os.getenv("GITHUB_OWNER") or fb.get("owner")
    if not final_owner:
        raise ValueError(
            "Repository owner not found. Set GITHUB_OWNER environment variable, "
            "pass --owner CLI argument, or add 'owner' to config.yml."
        )

    final_repo = (
        repository
        or os.getenv("GITHUB_REPOSITORY")
        or fb.get("repository")
    )
    if not final_repo:
        raise ValueError(
            "Repository name not found. Set GITHUB_REPOSITORY environment variable, "
            "pass --repository CLI argument, or add 'repository' to config.yml."
        )

    final_folder = (
        discussions_folder
        or os.getenv("DISCUSSIONS_FOLDER")
        or fb.get("discussions_folder")
        or DEFAULT_FOLDER
    )
    final_api_url = (
        os.getenv("DISCUSSIONS_API_URL")
        or fb.get("api_url")
        or DEFAULT_API_URL
    )
    final_policy = (
        conflict_policy
        or os.getenv("DISCUSSIONS_CONFLICT_POLICY")
        or fb.get("conflict_policy")
        or "never-proceed"
    )

    if debug:
        final_debug = True
    else:
        env_debug = os.getenv("DISCUSSIONS_DEBUG")
        if env_debug is not None:
            final_debug = env_debug.lower() in ("true", "1", "yes", "on")
        else:
            final_debug = bool(fb.get("debug", False))

    config = Config(
        token=final_token.strip(),
        owner=final_owner.strip(),
        repository=final_repo.strip(),
        discussions_folder=final_folder,
        api_url=final_api_url,
        page_size=_int_setting(
            "DISCUSSIONS_PAGE_SIZE", fb, "page_size", 20, 1, 100
        ),
        conflict_policy=final_policy.strip(),
        max_parallel_requests=_int_setting(
            "DISCUSSIONS_MAX_PARALLEL_REQUESTS",
            fb,
            "max_parallel_requests",
            4,
            1,
            32,
        ),
        debug=final_debug,
        decision_timeout=_timeout_setting(fb),
    )

    validate_config(config)

    return config
