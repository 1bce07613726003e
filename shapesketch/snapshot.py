"""JSON snapshots of column profiles.

A snapshot is everything a profile needs to keep merging: a shard worker
dumps its profile, a coordinator loads the snapshots and merges them.

    text = snapshot.dumps(profile)
    restored = snapshot.loads(text)
    restored == profile                     # True

Domains are stored by name and resolved on load through a registry. Pass your
own mapping to ``loads``/``load`` to support custom domains.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from shapesketch.profile import ColumnProfile
from shapesketch.sketching.domains import DOMAINS, ValueDomain

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def dumps(profile: ColumnProfile, indent: int | None = None) -> str:
    """Serialize a profile to JSON text."""
    return json.dumps(
        {"version": FORMAT_VERSION, "profile": profile.to_dict()},
        indent=indent,
        ensure_ascii=False,
    )


def loads(text: str, domains: Mapping[str, ValueDomain] = DOMAINS) -> ColumnProfile:
    """Rebuild a profile from ``dumps`` output.

    Raises:
        ValueError: If the text is not a snapshot of a supported version or
            names a domain missing from ``domains``.
    """
    data = json.loads(text)
    if not isinstance(data, dict) or "profile" not in data:
        raise ValueError("Not a shapesketch snapshot")
    version = data.get("version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported snapshot version {version!r}, expected {FORMAT_VERSION}")
    return ColumnProfile.from_dict(data["profile"], domains)


def save(profile: ColumnProfile, path: str | Path) -> Path:
    """Write a snapshot file, creating parent directories. Returns the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps(profile), encoding="utf-8")
    logger.debug("Saved snapshot of %r to %s", profile.name, path)
    return path


def load(path: str | Path, domains: Mapping[str, ValueDomain] = DOMAINS) -> ColumnProfile:
    """Read a snapshot file written by :func:`save`."""
    return loads(Path(path).read_text(encoding="utf-8"), domains)
