import pytest
from media_handler.services.media_transform import (
    VIDEO_PLACEHOLDER,
    is_video,
    public_url,
    s3_to_media_item,
    transform_image_url,
)
from media_handler.services.s3_service import find_error_message, StorageError


THUMBNAIL = "w_125,h_125,c_fill,q_auto"


def test_transform_image_url_splices_token():
    """Test the token lands right after the upload marker."""
    url = "https://res.cloudinary.com/demo/image/upload/v1/cat.png"

    assert transform_image_url(url, THUMBNAIL) == (
        "https://res.cloudinary.com/demo/image/upload/w_125,h_125,c_fill,q_auto/v1/cat.png"
    )


@pytest.mark.parametrize("url", [
    "https://cdn.example.com/assets/cat.png",
    "https://cdn.example.com/image/upload/a/image/upload/cat.png",
])
def test_transform_image_url_noop(url):
    """Test URLs without exactly one marker are returned unchanged."""
    assert transform_image_url(url, THUMBNAIL) == url


def test_public_url_encodes_key():
    """Test keys are percent-encoded but keep their slashes."""
    assert public_url("cdn.example.com", "my photos/cat #1.png") == (
        "https://cdn.example.com/my%20photos/cat%20%231.png"
    )


@pytest.mark.parametrize("filename, expected", [
    ("swim.mp4", True),
    ("SWIM.MOV", True),
    ("cat.png", False),
    ("mp4", False),
])
def test_is_video(filename, expected):
    assert is_video(filename) == expected


def test_media_item_nested_key(media_config):
    """Test directory and filename are derived from the key."""
    item = s3_to_media_item({"Key": "assets/photos/cat.png"}, media_config)

    assert item.id == "assets/photos/cat.png"
    assert item.filename == "cat.png"
    assert item.directory == "/assets/photos"
    assert item.src == "https://cdn.example.com/assets/photos/cat.png"
    assert item.type == "file"


def test_media_item_root_key(media_config):
    """Test a key at the bucket root has an empty directory."""
    item = s3_to_media_item({"Key": "cat.png"}, media_config)

    assert item.directory == ""
    assert item.filename == "cat.png"


def test_media_item_video_placeholder(media_config):
    """Test videos get the inline placeholder instead of a thumbnail."""
    item = s3_to_media_item({"Key": "videos/swim.mp4"}, media_config)

    assert item.previewSrc == VIDEO_PLACEHOLDER
    assert VIDEO_PLACEHOLDER.startswith("data:image/png;base64,")


def test_media_item_thumbnail(media_config):
    """Test images behind an image CDN get a thumbnail URL."""
    config = media_config.model_copy(update={"cdn_base_url": "res.cloudinary.com/demo"})

    item = s3_to_media_item({"Key": "image/upload/cat.png"}, config)

    assert item.src == "https://res.cloudinary.com/demo/image/upload/cat.png"
    assert item.previewSrc == (
        "https://res.cloudinary.com/demo/image/upload/w_125,h_125,c_fill,q_auto/cat.png"
    )


def test_media_item_is_pure(media_config):
    """Test projecting the same object twice gives the same item."""
    obj = {"Key": "assets/cat.png", "Size": 10}

    assert s3_to_media_item(obj, media_config) == s3_to_media_item(obj, media_config)
    assert obj == {"Key": "assets/cat.png", "Size": 10}


class _Nested:
    def __init__(self, message):
        self.error = type("Inner", (), {"message": message})()


@pytest.mark.parametrize("error, expected", [
    ("boom", "boom"),
    ({"message": "x"}, "x"),
    ({"error": {"message": "y"}}, "y"),
    ({}, "an error occurred"),
    ({"message": "", "error": {"message": "y"}}, "y"),
    ({"error": "not a dict"}, "an error occurred"),
    (StorageError("The bucket does not exist"), "The bucket does not exist"),
    (_Nested("nested attribute"), "nested attribute"),
    (None, "an error occurred"),
    (ValueError("plain"), "an error occurred"),
    ({"message": 123}, "an error occurred"),
    ({"message": {"code": 7}, "error": {"message": "y"}}, "y"),
    ({"error": {"message": ["nested", "list"]}}, "an error occurred"),
])
def test_find_error_message(error, expected):
    assert find_error_message(error) == expected
