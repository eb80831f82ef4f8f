"""Keyword heuristic that labels learning resources by skill level."""

from __future__ import annotations

from typing import Iterable, Optional

BEGINNER_KEYWORDS = ("beginner", "basics", "introduction", "fundamental", "start", "basic")
ADVANCED_KEYWORDS = ("advanced", "expert", "complex", "professional", "deep dive")


def classify_skill_level(
    tags: Optional[Iterable[str]] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    """Return Beginner, Advanced or Intermediate; beginner keywords win ties."""
    parts = [str(tag) for tag in (tags or [])]
    parts.append(title or "")
    parts.append(description or "")
    content = " ".join(parts).lower()

    if any(keyword in content for keyword in BEGINNER_KEYWORDS):
        return "Beginner"
    if any(keyword in content for keyword in ADVANCED_KEYWORDS):
        return "Advanced"
    return "Intermediate"
