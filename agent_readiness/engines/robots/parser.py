"""
robots.txt directive parser.

Groups Allow/Disallow rules under the user-agent they follow. Only the three
directives the permission evaluator needs are recognized; everything else
(comments, Sitemap, Crawl-delay, lines without a colon) is skipped.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

WILDCARD_AGENT = "*"


class RuleKind(str, Enum):
    ALLOW = "allow"
    DISALLOW = "disallow"


class RobotsRule(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    kind: RuleKind
    path_prefix: str


class RobotsRuleSet:
    """Immutable mapping of user-agent token -> ordered rules."""

    __slots__ = ("_groups",)

    def __init__(self, groups: Mapping[str, list[RobotsRule]] | None = None):
        frozen = {agent: tuple(rules) for agent, rules in (groups or {}).items()}
        self._groups: Mapping[str, tuple[RobotsRule, ...]] = MappingProxyType(frozen)

    @property
    def agents(self) -> tuple[str, ...]:
        return tuple(self._groups)

    def rules_for(self, agent: str) -> tuple[RobotsRule, ...] | None:
        """Rules declared for exactly this token (case-sensitive), or None."""
        return self._groups.get(agent)

    def __contains__(self, agent: object) -> bool:
        return agent in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RobotsRuleSet):
            return NotImplemented
        return dict(self._groups) == dict(other._groups)

    def __repr__(self) -> str:
        return f"RobotsRuleSet({dict(self._groups)!r})"


_DIRECTIVES = {
    "disallow": RuleKind.DISALLOW,
    "allow": RuleKind.ALLOW,
}


def parse_robots(text: str | None) -> RobotsRuleSet:
    """
    Parse raw robots.txt text into a RobotsRuleSet.

    The current user-agent starts as ``*``. Repeated groups for the same agent
    accumulate rather than reset. Never raises on malformed input.
    """
    groups: dict[str, list[RobotsRule]] = {}
    current_agent = WILDCARD_AGENT

    for raw_line in (text or "").splitlines():
        line = raw_line.strip()
        if ":" not in line:
            continue

        directive, _, value = line.partition(":")
        directive = directive.lower()
        value = value.strip()

        if directive == "user-agent":
            current_agent = value
        elif directive in _DIRECTIVES:
            groups.setdefault(current_agent, []).append(
                RobotsRule(kind=_DIRECTIVES[directive], path_prefix=value)
            )

    return RobotsRuleSet(groups)
