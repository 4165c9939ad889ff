"""Reviewer policy: who must approve a given author's pull requests."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from reviewgate_core.errors import ConfigurationError


@dataclass(frozen=True)
class ReviewerPolicy:
    """Immutable author → required-reviewers mapping with a default fallback.

    Authors without an entry (external contributors, new hires not yet added
    to the mapping) fall back to ``default_reviewers``. An empty default set is
    allowed and means "no gate" for unlisted authors.
    """

    required_reviewers: Mapping[str, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    default_reviewers: frozenset[str] = frozenset()

    @classmethod
    def from_json(cls, raw: str | None, default_reviewers: Iterable[str] = ()) -> ReviewerPolicy:
        """Build a policy from a JSON object string such as ``{"alice": ["bob", "carol"]}``."""
        if not raw or not raw.strip():
            raise ConfigurationError("reviewer mapping is empty; set REVIEWGATE_REVIEWERS or --reviewers")
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"reviewer mapping is not valid JSON: {e}") from e
        return cls.from_mapping(decoded, default_reviewers)

    @classmethod
    def from_mapping(cls, mapping: Any, default_reviewers: Iterable[str] = ()) -> ReviewerPolicy:
        """Build a policy from an already-decoded mapping (e.g. the ``reviewers`` section of the YAML config)."""
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(
                f"reviewer mapping must be an object of author → list of reviewers, got {type(mapping).__name__}"
            )
        if not mapping:
            raise ConfigurationError("reviewer mapping is empty; set REVIEWGATE_REVIEWERS or --reviewers")

        required: dict[str, frozenset[str]] = {}
        for author, reviewers in mapping.items():
            if not isinstance(author, str) or not author:
                raise ConfigurationError(f"reviewer mapping has an invalid author key: {author!r}")
            if not isinstance(reviewers, list) or not all(isinstance(r, str) and r for r in reviewers):
                raise ConfigurationError(f"reviewers for {author!r} must be a list of logins, got {reviewers!r}")
            required[author] = frozenset(reviewers)

        defaults = frozenset(default_reviewers)
        if not all(isinstance(r, str) and r for r in defaults):
            raise ConfigurationError(f"default reviewers must be logins, got {sorted(map(str, defaults))!r}")

        return cls(required_reviewers=MappingProxyType(required), default_reviewers=defaults)

    def required_reviewers_for(self, author: str) -> frozenset[str]:
        return self.required_reviewers.get(author, self.default_reviewers)

    def has_explicit_entry(self, author: str) -> bool:
        return author in self.required_reviewers
