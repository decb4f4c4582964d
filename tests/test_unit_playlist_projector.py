from datetime import datetime, timezone
from app.models.db.enums import MediaType
from app.services.playlist_projector import infer_media_type, project_campaign, suggested_duration


def test_image_extensions_case_insensitive():
    for url in ("a.png", "b.JPG", "c.jpeg", "d.gif", "e.webp", "f.bmp", "g.SVG"):
        assert infer_media_type(url) == MediaType.IMAGE, url


def test_everything_else_is_video():
    for url in ("clip.mp4", "clip.mov", "noext", "", None, "https://cdn.example.com/ads.v2/clip"):
        assert infer_media_type(url) == MediaType.VIDEO, url


def test_query_string_ignored():
    assert infer_media_type("https://cdn.example.com/a/poster.png?sig=abc.mp4") == MediaType.IMAGE
    assert infer_media_type("https://cdn.example.com/a/clip.mp4?format=.png") == MediaType.VIDEO


def test_malformed_url_still_classified():
    assert infer_media_type("http://[cdn.example.com/ads/bad.png") == MediaType.IMAGE
    assert infer_media_type("http://[cdn.example.com/ads/bad.mp4?x=.png#y.jpg") == MediaType.VIDEO


def test_suggested_duration():
    assert suggested_duration(MediaType.IMAGE) == 10
    assert suggested_duration(MediaType.VIDEO) is None


def test_project_campaign_maps_fields(campaign_row):
    naive_start = datetime(2026, 10, 1, 9, 0)
    row = campaign_row(7, title="Autumn", file_url="https://cdn.example.com/7.mp4", scheduled_from=naive_start)
    item = project_campaign(row)
    assert item.id == 7
    assert item.title == "Autumn"
    assert item.url == "https://cdn.example.com/7.mp4"
    assert item.type == MediaType.VIDEO
    assert item.duration is None
    # Naive store values come back as UTC
    assert item.scheduled_from == naive_start.replace(tzinfo=timezone.utc)
    assert item.scheduled_to is None


def test_project_image_has_duration(campaign_row):
    item = project_campaign(campaign_row(3))
    assert item.type == MediaType.IMAGE
    assert item.duration == 10
