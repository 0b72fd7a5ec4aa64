from favicon_api.models import SourceTag
from favicon_api.services.scoring import score_icon, score_social_image


def test_icon_score_increases_with_size():
    assert score_icon(512, "image/png", "icon") > score_icon(256, "image/png", "icon")
    assert score_icon(64, None, "icon") > score_icon(32, None, "icon")
    assert score_icon(32, None, "icon") > score_icon(16, None, "icon")


def test_icon_score_values():
    assert score_icon(None, None, "icon") == 50
    assert score_icon(32, "image/png", "icon") == 110
    assert score_icon(None, "image/svg+xml", "icon") == 150
    assert score_icon(None, "ico", "shortcut icon") == 55
    assert score_icon(180, "png", "apple-touch-icon") == 140
    assert score_icon(None, "svg", "mask-icon") == 140


def test_social_score_source_preference():
    og = score_social_image(None, None, SourceTag.OG_META)
    twitter = score_social_image(None, None, SourceTag.TWITTER_META)
    schema = score_social_image(None, None, SourceTag.STRUCTURED_DATA)
    assert og == 150
    assert twitter == 130
    assert schema == 110


def test_social_score_dimensions():
    assert score_social_image(1200, 630, SourceTag.OG_META) == 240
    assert score_social_image(800, 600, SourceTag.OG_META) == 230
    assert score_social_image(300, 200, SourceTag.OG_META) == 200
    assert score_social_image(100, 100, SourceTag.OG_META) == 150
    # Only one dimension known
    assert score_social_image(1200, None, SourceTag.OG_META) == 220
    assert score_social_image(None, 800, SourceTag.OG_META) == 210


def test_social_score_formats():
    assert score_social_image(None, None, SourceTag.OG_META, "image/png") == 170
    assert score_social_image(None, None, SourceTag.OG_META, "image/jpeg") == 165
    assert score_social_image(None, None, SourceTag.OG_META, "image/webp") == 175
