"""Tests for image decoding and the image backends."""

import cloudinary
import cloudinary.uploader
import pytest

from food_hero_api.app.core.config import Settings
from food_hero_api.app.core.errors import ValidationError
from food_hero_api.app.services.image_store import (
    CloudinaryImageStore,
    LocalImageStore,
    build_image_store,
    decode_data_uri,
)
from tests.conftest import PNG_DATA_URI


class TestDecodeDataUri:
    def test_decodes_png(self) -> None:
        data, mime = decode_data_uri(PNG_DATA_URI)
        assert mime == "image/png"
        assert data.startswith(b"\x89PNG")

    @pytest.mark.parametrize(
        "value",
        [
            "iVBORw0KGgo=",
            "data:text/plain;base64,aGVsbG8=",
            "data:image/png;base64,@@@",
        ],
    )
    def test_rejects_bad_input(self, value: str) -> None:
        with pytest.raises(ValidationError):
            decode_data_uri(value)


class TestLocalImageStore:
    def test_save_and_delete(self, tmp_path) -> None:
        store = LocalImageStore(str(tmp_path / "images"), "/uploads/")
        url = store.save(b"\x89PNG", "image/png")

        assert url.startswith("/uploads/")
        assert url.endswith(".png")
        stored = tmp_path / "images" / url.rsplit("/", 1)[-1]
        assert stored.read_bytes() == b"\x89PNG"

        store.delete(url)
        assert not stored.exists()

    def test_delete_missing_raises(self, tmp_path) -> None:
        store = LocalImageStore(str(tmp_path))
        with pytest.raises(FileNotFoundError):
            store.delete("/uploads/missing.png")


class FakeUploader:
    def __init__(self, result: dict) -> None:
        self.result = result
        self.calls = []

    def upload(self, file, **options):
        self.calls.append(("upload", file, options))
        return self.result

    def destroy(self, public_id, **options):
        self.calls.append(("destroy", public_id, options))
        return self.result


class TestCloudinaryImageStore:
    def make_store(self, monkeypatch, result: dict):
        uploader = FakeUploader(result)
        monkeypatch.setattr(cloudinary.uploader, "upload", uploader.upload)
        monkeypatch.setattr(cloudinary.uploader, "destroy", uploader.destroy)
        store = CloudinaryImageStore(
            cloud_name="demo",
            api_key="key",
            api_secret="secret",
            folder="phuket_food_hero_waste_images",
        )
        return store, uploader

    def test_configures_sdk(self, monkeypatch) -> None:
        self.make_store(monkeypatch, {})
        config = cloudinary.config()
        assert config.cloud_name == "demo"
        assert config.api_key == "key"

    def test_upload_into_folder(self, monkeypatch) -> None:
        url = "https://res.cloudinary.com/demo/image/upload/v1/phuket_food_hero_waste_images/abc123.png"
        store, uploader = self.make_store(monkeypatch, {"secure_url": url})

        assert store.save(b"\x89PNG", "image/png") == url

        action, file, options = uploader.calls[0]
        assert action == "upload"
        assert file.startswith("data:image/png;base64,")
        assert options["folder"] == "phuket_food_hero_waste_images"

    def test_delete_uses_public_id(self, monkeypatch) -> None:
        store, uploader = self.make_store(monkeypatch, {"result": "ok"})
        store.delete("https://res.cloudinary.com/demo/image/upload/v1/phuket_food_hero_waste_images/abc123.png")

        assert uploader.calls == [("destroy", "phuket_food_hero_waste_images/abc123", {"timeout": 15.0})]

    def test_requires_credentials(self) -> None:
        with pytest.raises(ValueError):
            CloudinaryImageStore(cloud_name="", api_key="", api_secret="", folder="x")


def test_build_image_store_selects_backend(tmp_path) -> None:
    local = build_image_store(Settings(image_backend="local", image_dir=str(tmp_path)))
    assert isinstance(local, LocalImageStore)
    cloud = build_image_store(
        Settings(
            image_backend="cloudinary",
            cloudinary_cloud_name="demo",
            cloudinary_api_key="key",
            cloudinary_api_secret="secret",
        )
    )
    assert isinstance(cloud, CloudinaryImageStore)
    with pytest.raises(ValueError):
        build_image_store(Settings(image_backend="ftp"))
