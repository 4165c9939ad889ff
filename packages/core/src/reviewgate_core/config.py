from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from reviewgate_core.checker import DEFAULT_DISMISS_MESSAGE
from reviewgate_core.errors import ConfigurationError
from reviewgate_core.gh.base import BasePullRequestClient, BaseTeamDirectory
from reviewgate_core.gh.pull_request import (
    DEFAULT_API_URL,
    GithubPullRequestClient,
    GithubTeamDirectory,
    get_client,
)
from reviewgate_core.policy import ReviewerPolicy

DEFAULT_CONFIG: dict = {
    "reviewers": None,  # JSON string or mapping of author -> [reviewers]
    "default_reviewers": [],  # required reviewers for authors missing from `reviewers`
    "team_slug": None,
    "org": None,
    "event_path": None,
    "dismiss_message": DEFAULT_DISMISS_MESSAGE,
    "api_url": DEFAULT_API_URL,
    "api_timeout": 15,
}

# Environment variables read by load_config, keyed by config key.
ENV_VARS = {
    "reviewers": "REVIEWGATE_REVIEWERS",
    "default_reviewers": "REVIEWGATE_DEFAULT_REVIEWERS",
    "team_slug": "REVIEWGATE_TEAM_SLUG",
    "org": "REVIEWGATE_ORG",
    "event_path": "GITHUB_EVENT_PATH",
    "api_url": "GITHUB_API_URL",
}


def split_logins(value: Any) -> list[str]:
    """Normalise a comma-separated string or a list of logins into a clean list."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        raise ConfigurationError(f"expected a list of logins, got {value!r}")
    return [str(item).strip() for item in items if str(item).strip()]


def load_config(config_path: str = ".reviewgate.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewgate.yml in the current directory
      3. Environment variables (see ENV_VARS)
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "default_reviewers": list(DEFAULT_CONFIG["default_reviewers"])}

    path = Path(config_path)
    if path.exists():
        try:
            with open(path) as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{config_path} is not valid YAML: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    for key, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    config["default_reviewers"] = split_logins(config.get("default_reviewers"))
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


@dataclass(frozen=True)
class BotConfig:
    """Validated, read-only view of the configuration one invocation runs with."""

    token: str
    policy: ReviewerPolicy
    event_path: str
    client: BasePullRequestClient
    team_directory: Optional[BaseTeamDirectory] = None
    org: Optional[str] = None
    team_slug: Optional[str] = None
    dismiss_message: str = DEFAULT_DISMISS_MESSAGE

    @classmethod
    def from_dict(
        cls,
        config: dict,
        client: Optional[BasePullRequestClient] = None,
        team_directory: Optional[BaseTeamDirectory] = None,
    ) -> BotConfig:
        """Validate ``config`` and freeze it.

        ``client`` and ``team_directory`` default to the PyGithub
        implementations authenticated with the configured token.
        """
        token = config.get("github_token")
        if not token:
            raise ConfigurationError("missing GitHub token; set GITHUB_TOKEN, pass --token or run `gh auth login`")
        if not config.get("event_path"):
            raise ConfigurationError("missing event path; set GITHUB_EVENT_PATH or pass --event-path")

        raw_timeout = config.get("api_timeout") or DEFAULT_CONFIG["api_timeout"]
        try:
            timeout = int(raw_timeout)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"api_timeout must be a whole number of seconds, got {raw_timeout!r}") from e
        if timeout <= 0:
            raise ConfigurationError(f"api_timeout must be positive, got {timeout}")

        reviewers = config.get("reviewers")
        default_reviewers = split_logins(config.get("default_reviewers"))
        if isinstance(reviewers, str) or reviewers is None:
            policy = ReviewerPolicy.from_json(reviewers, default_reviewers)
        else:
            policy = ReviewerPolicy.from_mapping(reviewers, default_reviewers)

        if client is None or team_directory is None:
            gh = get_client(
                token,
                base_url=config.get("api_url") or DEFAULT_API_URL,
                timeout=timeout,
            )
            client = client or GithubPullRequestClient(gh)
            team_directory = team_directory or GithubTeamDirectory(gh)

        return cls(
            token=token,
            policy=policy,
            event_path=str(config["event_path"]),
            client=client,
            team_directory=team_directory,
            org=config.get("org") or None,
            team_slug=config.get("team_slug") or None,
            dismiss_message=config.get("dismiss_message") or DEFAULT_DISMISS_MESSAGE,
        )
