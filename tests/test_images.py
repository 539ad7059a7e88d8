import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError

from conftest import FakePage, png_bytes
from edition_archiver.errors import ImageArchiveError
from edition_archiver.images import ImageArchiver, decode_data_url, local_image_name


def test_local_image_name_is_stable_for_the_same_url() -> None:
    url = "https://cdn.example.com/content/20240106_LDP001.jpg"

    assert local_image_name(url) == local_image_name(url) == "20240106_LDP001.png"


def test_local_image_name_ignores_query_and_keeps_other_extensions() -> None:
    assert local_image_name("https://cdn.example.com/a/chart.png?width=640") == "chart.png"
    assert local_image_name("https://cdn.example.com/a/photo.JPG") == "photo.png"
    assert local_image_name("https://cdn.example.com/a/photo.webp") == "photo.webp"


def test_local_image_name_uses_target_and_falls_back() -> None:
    assert local_image_name("https://cdn.example.com/x.png", "cover.jpg") == "cover.png"
    assert local_image_name("https://cdn.example.com/") == "image.png"


def test_decode_data_url_rejects_non_data_urls() -> None:
    with pytest.raises(ImageArchiveError):
        decode_data_url("not a data url")


def test_archive_writes_into_images_dir(config) -> None:
    url = "https://cdn.example.com/img/map.jpg"
    page = FakePage(images={url: png_bytes("map")})

    asset = asyncio.run(ImageArchiver(page, config).archive(url))

    assert asset.filename == "map.png"
    assert asset.relative_path == "images/map.png"
    assert (config.output_root / "images" / "map.png").read_bytes() == png_bytes("map")


def test_archive_with_target_name_writes_to_output_root(config) -> None:
    url = "https://cdn.example.com/img/cover-art.jpg"
    page = FakePage(images={url: png_bytes()})

    asset = asyncio.run(ImageArchiver(page, config).archive(url, "cover.png"))

    assert asset.relative_path == "cover.png"
    assert (config.output_root / "cover.png").exists()


def test_same_basename_from_different_urls_is_last_write_wins(config) -> None:
    first = "https://cdn.example.com/2024/01/chart.png"
    second = "https://cdn.example.com/2023/12/chart.png"
    page = FakePage(images={first: png_bytes("first"), second: png_bytes("second")})
    archiver = ImageArchiver(page, config)

    async def run():
        await archiver.archive(first)
        await archiver.archive(second)

    asyncio.run(run())

    files = list((config.output_root / "images").iterdir())
    assert [f.name for f in files] == ["chart.png"]
    assert files[0].read_bytes() == png_bytes("second")


def test_repeated_references_are_refetched(config) -> None:
    url = "https://cdn.example.com/img/logo.png"
    page = FakePage(images={url: png_bytes()})
    archiver = ImageArchiver(page, config)

    async def run():
        await archiver.archive(url)
        await archiver.archive(url)

    asyncio.run(run())

    assert page.evaluated == [url, url]


def test_archive_wraps_browser_errors(config) -> None:
    url = "https://cdn.example.com/img/broken.png"
    page = FakePage(images={url: PlaywrightError("Could not load image")})

    with pytest.raises(ImageArchiveError):
        asyncio.run(ImageArchiver(page, config).archive(url))


def test_archive_rejects_non_image_payload(config) -> None:
    url = "https://cdn.example.com/img/fake.png"
    page = FakePage(images={url: b"<html>not an image</html>"})

    with pytest.raises(ImageArchiveError):
        asyncio.run(ImageArchiver(page, config).archive(url))
    assert not (config.output_root / "images" / "fake.png").exists()


def test_archive_many_waits_for_all_and_skips_failures(config) -> None:
    slow = "https://cdn.example.com/slow.png"
    fast = "https://cdn.example.com/fast.png"
    missing = "https://cdn.example.com/missing.png"
    page = FakePage(
        images={slow: png_bytes("slow"), fast: png_bytes("fast")},
        image_delays={slow: 0.05},
    )

    assets = asyncio.run(ImageArchiver(page, config).archive_many([slow, missing, fast]))

    assert [asset.filename for asset in assets] == ["slow.png", "fast.png"]
    assert (config.output_root / "images" / "slow.png").exists()
