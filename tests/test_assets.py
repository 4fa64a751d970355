from __future__ import annotations

import asyncio
import re

from aiohttp.test_utils import make_mocked_request


def _publisher(tmp_path):  # noqa: ANN001
    from mcp_servers.browser_hub.assets import AssetPublisher

    return AssetPublisher(tmp_path / "public", port=4011)


def test_make_file_name_shape() -> None:
    from mcp_servers.browser_hub.assets import make_file_name

    assert re.fullmatch(r"shot_\d+_[0-9a-f]{8}\.png", make_file_name("png"))
    assert make_file_name("JPEG").endswith(".jpeg")
    assert make_file_name("").endswith(".png")
    assert make_file_name("png") != make_file_name("png")


def test_content_type_for() -> None:
    from mcp_servers.browser_hub.assets import content_type_for

    assert content_type_for("a.png") == "image/png"
    assert content_type_for("a.jpeg") == "image/jpeg"
    assert content_type_for("a.JPG") == "image/jpeg"


def test_url_for_uses_public_host(tmp_path) -> None:  # noqa: ANN001
    publisher = _publisher(tmp_path)

    assert publisher.url_for("shot_1_ab.png") == "http://localhost:4011/screenshots/shot_1_ab.png"
    assert publisher.running is False


def test_serves_published_file(tmp_path, fakes) -> None:  # noqa: ANN001
    publisher = _publisher(tmp_path)
    publisher.ensure_dirs()
    (publisher.screenshot_dir / "shot_1_abcd.png").write_bytes(fakes.PNG_1X1)

    request = make_mocked_request("GET", "/screenshots/shot_1_abcd.png", match_info={"name": "shot_1_abcd.png"})
    response = asyncio.run(publisher.handle_screenshot(request))

    assert response.status == 200
    assert response.body == fakes.PNG_1X1
    assert response.content_type == "image/png"


def test_missing_file_is_404(tmp_path) -> None:  # noqa: ANN001
    publisher = _publisher(tmp_path)
    publisher.ensure_dirs()

    request = make_mocked_request("GET", "/screenshots/shot_0_0000.png", match_info={"name": "shot_0_0000.png"})
    response = asyncio.run(publisher.handle_screenshot(request))

    assert response.status == 404
    assert response.text == "Not found"


def test_traversal_names_are_404(tmp_path) -> None:  # noqa: ANN001
    publisher = _publisher(tmp_path)
    publisher.ensure_dirs()
    (tmp_path / "public" / "secret.png").write_bytes(b"x")

    for name in ("../secret.png", ".hidden.png", "a/b.png", "noext"):
        request = make_mocked_request("GET", "/screenshots/x", match_info={"name": name})
        response = asyncio.run(publisher.handle_screenshot(request))
        assert response.status == 404, name


def test_index_banner(tmp_path) -> None:  # noqa: ANN001
    from mcp_servers.browser_hub.assets import BANNER

    publisher = _publisher(tmp_path)
    response = asyncio.run(publisher.handle_index(make_mocked_request("GET", "/")))

    assert response.status == 200
    assert response.text == BANNER


def test_app_routes(tmp_path) -> None:  # noqa: ANN001
    app = _publisher(tmp_path).build_app()

    paths = {resource.canonical for resource in app.router.resources()}
    assert paths == {"/", "/screenshots/{name}"}


def test_publish_starts_server_once_and_serves(tmp_path, fakes) -> None:  # noqa: ANN001
    from mcp_servers.browser_hub.assets import AssetPublisher

    publisher = AssetPublisher(tmp_path / "public", port=0)

    async def run():
        try:
            first = await publisher.publish(fakes.PNG_1X1, "png")
            runner = publisher._runner
            second = await publisher.publish(fakes.PNG_1X1, "png")
            return first, second, runner is publisher._runner, publisher.port
        finally:
            await publisher.close()

    first, second, same_runner, port = asyncio.run(run())
    assert same_runner
    assert port != 0
    assert first.url.startswith(f"http://localhost:{port}/screenshots/")
    assert first.bytes == len(fakes.PNG_1X1)
    assert first.name != second.name
    assert publisher.running is False
