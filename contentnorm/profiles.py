"""YAML-based cleaner profiles.

A profile file holds a ``default`` section plus per-domain overrides; the
longest matching domain wins::

    default:
      safelist: content
    domains:
      example.com:
        with_images: true
        extra_tags: [img]
        extra_attributes:
          img: [src, alt]
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml

from contentnorm.extractors import safelist as safelists
from contentnorm.extractors.sanitizer import DefaultContentCleaner

logger = logging.getLogger(__name__)


def load_profile(path: str | Path, url: str) -> dict[str, Any]:
    """Load YAML profile and return merged settings for the given URL."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    default = data.get("default", {}) if isinstance(data, dict) else {}
    domains = data.get("domains", {}) if isinstance(data, dict) else {}

    netloc = (urlparse(url).hostname or "").lower()
    best_key = ""
    best_cfg: dict[str, Any] = {}
    if isinstance(domains, dict):
        for key, cfg in domains.items():
            if not isinstance(key, str) or not isinstance(cfg, dict):
                continue
            key_lower = key.lower()
            if (netloc == key_lower or netloc.endswith("." + key_lower)) and (
                len(key_lower) > len(best_key)
            ):
                best_key = key_lower
                best_cfg = cfg

    merged: dict[str, Any] = {}
    if isinstance(default, dict):
        merged.update(default)
    merged.update(best_cfg or {})
    return merged


def safelist_from_profile(profile: dict[str, Any]) -> safelists.Safelist:
    """Build the safelist named by *profile*, extended with its extra tags/attributes."""
    with_images = bool(profile.get("with_images", False))
    default_name = "content_with_images" if with_images else "content"
    allowed = safelists.preset(str(profile.get("safelist") or default_name))

    extra_tags = profile.get("extra_tags") or []
    if extra_tags:
        allowed = allowed.add_tags(*[str(t) for t in extra_tags])

    extra_attributes = profile.get("extra_attributes") or {}
    if isinstance(extra_attributes, dict):
        for tag, names in extra_attributes.items():
            if isinstance(names, str):
                names = [names]
            allowed = allowed.add_attributes(str(tag), *[str(n) for n in names or []])
    return allowed


def cleaner_from_profile(path: str | Path, url: str) -> DefaultContentCleaner:
    """Content cleaner configured by the profile section matching *url*."""
    profile = load_profile(path, url)
    logger.debug("Cleaner profile for %s: %s", url, profile)
    return DefaultContentCleaner(
        allowed=safelist_from_profile(profile),
        with_images=bool(profile.get("with_images", False)),
        base_uri=url,
    )
