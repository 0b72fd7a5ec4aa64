from typing import Optional

from favicon_api.models import SourceTag

BASE_SCORE = 50

# Fixed scores for icon sources that carry no size or format declarations
MANIFEST_ICON_SCORE = 40
APPLE_TOUCH_FALLBACK_SCORE = 20
FAVICON_ICO_FALLBACK_SCORE = 10
EXTERNAL_FALLBACK_SCORE = 1

ICON_SIZE_BONUSES = [(512, 90), (256, 80), (192, 70), (128, 60), (64, 50), (32, 40)]
ICON_FORMAT_BONUSES = [("png", 20), ("webp", 15), ("gif", 10), ("ico", 5)]

SOCIAL_SOURCE_BONUSES = {
    SourceTag.OG_META: 100,
    SourceTag.TWITTER_META: 80,
    SourceTag.STRUCTURED_DATA: 60,
}
SOCIAL_AREA_BONUSES = [
    (1200 * 630, 90),
    (800 * 600, 80),
    (600 * 400, 70),
    (400 * 300, 60),
    (300 * 200, 50),
]
SOCIAL_DIMENSION_BONUSES = [(1200, 70), (800, 60), (600, 50)]


def _threshold_bonus(value: int, thresholds) -> int:
    for minimum, bonus in thresholds:
        if value >= minimum:
            return bonus
    return 0


def score_icon(size: Optional[int], format_hint: Optional[str], rel: str = "") -> int:
    score = BASE_SCORE
    hint = (format_hint or "").lower()
    rel = rel.lower()

    if "svg" in hint:
        score += 100
    if size:
        score += _threshold_bonus(size, ICON_SIZE_BONUSES)
    for fmt, bonus in ICON_FORMAT_BONUSES:
        if fmt in hint:
            score += bonus
            break
    if "apple-touch-icon" in rel:
        score += 10
    if "mask-icon" in rel:
        score -= 10
    return score


def score_social_image(
    width: Optional[int],
    height: Optional[int],
    source: SourceTag,
    format_hint: Optional[str] = None,
) -> int:
    score = BASE_SCORE + SOCIAL_SOURCE_BONUSES.get(source, 0)
    hint = (format_hint or "").lower()

    if width and height:
        score += _threshold_bonus(width * height, SOCIAL_AREA_BONUSES)
    elif width or height:
        score += _threshold_bonus(width or height, SOCIAL_DIMENSION_BONUSES)

    if "png" in hint:
        score += 20
    elif "jpeg" in hint or "jpg" in hint:
        score += 15
    elif "webp" in hint:
        score += 25
    return score
