"""Tests for key and bucket name validation."""

import pytest

from s3lite.errors import ValidationError
from s3lite.validation import (
    is_vhost_compatible,
    key_valid,
    validate_bucket_name,
    validate_key,
)


class TestKeys:
    """Tests for key_valid() and validate_key()."""

    @pytest.mark.parametrize(
        "key",
        [
            "Lena.png",
            "Lena Söderberg.png",
            "/images/pictures/test images/Lena not full.png",
            "a/b/c",
        ],
    )
    def test_valid(self, key):
        assert key_valid(key)
        assert validate_key(key) == key

    @pytest.mark.parametrize("key", ["", None, "//", "images//Lena.png"])
    def test_invalid(self, key):
        assert not key_valid(key)
        with pytest.raises(ValidationError, match="Invalid key name"):
            validate_key(key)


class TestBucketNames:
    """Tests for validate_bucket_name()."""

    @pytest.mark.parametrize("name", ["images", "images_new", "my.bucket-1", "ABC"])
    def test_valid(self, name):
        assert validate_bucket_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", None, "ab", "-images", ".images", "a" * 256, "192.168.1.1", "has space"]
    )
    def test_invalid(self, name):
        with pytest.raises(ValidationError, match="Invalid bucket name"):
            validate_bucket_name(name)


class TestVhostCompatible:
    """Tests for is_vhost_compatible()."""

    @pytest.mark.parametrize("name", ["images", "images.example.com", "my-bucket"])
    def test_compatible(self, name):
        assert is_vhost_compatible(name, "s3.amazonaws.com")

    @pytest.mark.parametrize(
        "name", ["images_new", "Images", "images-", "a..b", "192.168.1.1", "a" * 64]
    )
    def test_incompatible(self, name):
        assert not is_vhost_compatible(name, "s3.amazonaws.com")

    def test_hostname_length_limit(self):
        name = ".".join(["a" * 60] * 4)
        assert not is_vhost_compatible(name, "s3.amazonaws.com")
