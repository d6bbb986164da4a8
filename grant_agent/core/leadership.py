"""
Leadership narrative parsing and merging.

The leadership field is one flat string such as
``"Jane Doe (Executive Director, Founder), Sam Lee (Board Chair)"``. It is
parsed into entries only to merge a new mention; the stored text stays the
source of truth, and sentences no rule understands are dropped from the
re-serialized result.

Each sentence is tried against LEADERSHIP_RULES in order:

1. formal       ``Name (Role1, Role2)`` (several per sentence, comma separated)
2. natural      ``Name is / serves as / acts as / works as Role``
3. role-first   ``Role is Name`` / ``Role: Name`` when Role names a leadership post
"""

import re
from dataclasses import dataclass, field
from typing import Callable

ROLE_KEYWORDS = ("director", "chair", "founder", "executive")
FALLBACK_ROLE = "team member"

SENTENCE_SPLIT = re.compile(r"[.!;]")
FORMAL_ENTRY = re.compile(r"([^(),]+?)\s*\(([^)]+)\)")
FORMAL_LEFTOVER = re.compile(r"[,\s]|\band\b", re.IGNORECASE)
NATURAL_PATTERN = re.compile(r"^(.+?)\s+(?:is|serves as|acts as|works as)\s+(.+)$", re.IGNORECASE)
ROLE_FIRST_PATTERN = re.compile(r"^(.+?)(?:\s*:\s*|\s+is\s+)(.+)$", re.IGNORECASE)
LEADING_ARTICLE = re.compile(r"^(?:the|our|an|a)\s+", re.IGNORECASE)
TRUNCATION_MARKER = "..."
ENTRY_BOUNDARY = re.compile(r"[).!;]")


@dataclass
class LeadershipEntry:
    """One person and their roles, in insertion order."""

    name: str
    roles: list[str] = field(default_factory=list)


def _has_role_keyword(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in ROLE_KEYWORDS)


def _formal_rule(sentence: str) -> list[LeadershipEntry] | None:
    matches = list(FORMAL_ENTRY.finditer(sentence))
    if not matches:
        return None
    if FORMAL_LEFTOVER.sub("", FORMAL_ENTRY.sub("", sentence)):
        return None

    entries = []
    for match in matches:
        name = re.sub(r"^and\s+", "", match.group(1).strip(), flags=re.IGNORECASE)
        roles = [role.strip() for role in match.group(2).split(",")]
        if name:
            entries.append(LeadershipEntry(name, union_roles([], roles)))
    return entries or None


def _natural_rule(sentence: str) -> list[LeadershipEntry] | None:
    match = NATURAL_PATTERN.match(sentence)
    if not match:
        return None
    name, role = match.group(1).strip(), LEADING_ARTICLE.sub("", match.group(2).strip())
    # "Executive Director is Jane" belongs to the role-first rule
    if _has_role_keyword(name):
        return None
    return [LeadershipEntry(name, [role])]


def _role_first_rule(sentence: str) -> list[LeadershipEntry] | None:
    match = ROLE_FIRST_PATTERN.match(sentence)
    if not match:
        return None
    role, name = LEADING_ARTICLE.sub("", match.group(1).strip()), match.group(2).strip()
    if re.search(r"\bwho\b", role, re.IGNORECASE) or not _has_role_keyword(role):
        return None
    return [LeadershipEntry(name, [role])]


LEADERSHIP_RULES: tuple[Callable[[str], list[LeadershipEntry] | None], ...] = (
    _formal_rule,
    _natural_rule,
    _role_first_rule,
)


def _drop_truncated_tail(text: str) -> str:
    """Cut a ``...``-truncated value back to the end of its last complete entry."""
    body = text.rstrip()[: -len(TRUNCATION_MARKER)]
    boundaries = [m.end() for m in ENTRY_BOUNDARY.finditer(body)]
    return body[: boundaries[-1]] if boundaries else body


def parse_leadership(text: str) -> list[LeadershipEntry]:
    """
    Parse leadership text into entries; unrecognized sentences are dropped.

    A value ending in ``...`` (a truncated commit) loses its partial last
    entry instead of the whole sentence it sits in.
    """
    if not text or not text.strip():
        return []
    if text.rstrip().endswith(TRUNCATION_MARKER):
        text = _drop_truncated_tail(text)

    entries: list[LeadershipEntry] = []
    for sentence in SENTENCE_SPLIT.split(text):
        sentence = sentence.strip()
        if not sentence:
            continue
        for rule in LEADERSHIP_RULES:
            parsed = rule(sentence)
            if parsed:
                entries.extend(parsed)
                break
    return entries


def parse_leadership_mention(text: str) -> list[LeadershipEntry]:
    """
    Parse a newly extracted leadership mention.

    Falls back to treating the whole text as one person with the generic
    ``team member`` role when no rule matches.
    """
    entries = parse_leadership(text)
    if entries:
        return entries
    name = text.strip()
    return [LeadershipEntry(name, [FALLBACK_ROLE])] if name else []


def union_roles(existing: list[str], new: list[str]) -> list[str]:
    """Append new roles not already present (case-insensitive), keeping existing casing."""
    merged = []
    seen = set()
    for role in [*existing, *new]:
        role = role.strip()
        if role and role.lower() not in seen:
            seen.add(role.lower())
            merged.append(role)
    return merged


def _names_match(a: str, b: str) -> bool:
    a_lower, b_lower = a.lower(), b.lower()
    return a_lower in b_lower or b_lower in a_lower


def format_leadership(entries: list[LeadershipEntry]) -> str:
    """Serialize entries as ``Name (RoleA, RoleB), Name2 (RoleC)``."""
    parts = []
    for entry in entries:
        if entry.roles:
            parts.append(f"{entry.name} ({', '.join(entry.roles)})")
        else:
            parts.append(entry.name)
    return ", ".join(parts)


def merge_leadership(existing_text: str, new_name: str, new_roles: list[str]) -> str:
    """
    Merge one person into the leadership text.

    The first existing entry whose name contains, or is contained in, the new
    name (case-insensitive) takes the union of roles and the new spelling of
    the name, keeping its position. Otherwise the person is appended.
    """
    new_name = new_name.strip()
    if not new_name:
        return existing_text

    entries = parse_leadership(existing_text)
    for index, entry in enumerate(entries):
        if _names_match(entry.name, new_name):
            entries[index] = LeadershipEntry(new_name, union_roles(entry.roles, new_roles))
            break
    else:
        entries.append(LeadershipEntry(new_name, union_roles([], new_roles)))

    return format_leadership(entries)


def truncate_leadership(text: str, max_chars: int) -> str:
    """
    Shorten leadership text to whole entries that fit in ``max_chars``, then ``...``.

    Text with no parseable entry, or whose first entry is already too long,
    is cut at ``max_chars``.
    """
    entries = parse_leadership(text)
    kept = ""
    for count in range(1, len(entries) + 1):
        candidate = format_leadership(entries[:count])
        if len(candidate) > max_chars:
            break
        kept = candidate
    if not kept:
        kept = text[:max_chars]
    return kept + TRUNCATION_MARKER
