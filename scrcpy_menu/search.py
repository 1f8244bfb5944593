"""Preset search and ranking."""

from typing import List, Optional, Sequence

from .models import Preset

NAME_WEIGHT = 100
DESCRIPTION_WEIGHT = 50
TAGS_WEIGHT = 40
OPTIONS_WEIGHT = 10
FAVORITE_BONUS = 5


def _options_text(preset: Preset) -> str:
    parts = [
        preset.other_options,
        preset.video_codec,
        preset.audio_codec,
        preset.resolution,
        preset.video_bitrate,
        preset.audio_bitrate,
    ]
    return " ".join(p for p in parts if p)


def score_preset(query: str, preset: Preset) -> int:
    """Score how well a preset matches a (non-empty) query. 0 means no match."""
    if preset.is_category:
        return 0
    needle = query.strip().lower()
    if not needle:
        return 0

    score = 0
    if needle in preset.name.lower():
        score += NAME_WEIGHT
    if needle in preset.description.lower():
        score += DESCRIPTION_WEIGHT
    if needle in preset.tags.lower():
        score += TAGS_WEIGHT
    if score == 0 and needle in _options_text(preset).lower():
        score += OPTIONS_WEIGHT

    if score and preset.favorite:
        score += FAVORITE_BONUS
    return score


def search_presets(query: str, presets: Sequence[Preset]) -> List[Preset]:
    """Return the presets matching query, best match first.

    An empty query returns every non-category preset in its original order.
    Ties keep their original relative order.
    """
    if not query or not query.strip():
        return [p for p in presets if not p.is_category]

    scored = [(score_preset(query, p), p) for p in presets]
    scored = [item for item in scored if item[0] > 0]
    scored.sort(key=lambda item: item[0], reverse=True)
    return [p for _, p in scored]


def best_match(query: str, presets: Sequence[Preset]) -> Optional[Preset]:
    """Return the top search hit for query, if any."""
    if not query or not query.strip():
        return None
    results = search_presets(query, presets)
    return results[0] if results else None
