from __future__ import annotations

import asyncio
import json


def _payload(result):  # noqa: ANN001
    return json.loads(result.content[0].text)


def test_page_lifecycle_scenario(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        return [
            await server.call_tool("new_page", {}),
            await server.call_tool("goto", {"url": "http://x"}),
            await server.call_tool("close_page", {}),
            await server.call_tool("close_page", {}),
        ]

    created, navigated, closed, nothing = asyncio.run(run())
    assert not any(r.is_error for r in (created, navigated, closed, nothing))
    assert _payload(created) == {"message": "New page created", "index": 0, "totalPages": 1}
    assert _payload(navigated)["pageIndex"] == 0
    assert _payload(navigated)["url"] == "http://x"
    assert _payload(closed) == {"message": "Page closed", "closedIndex": 0, "remaining": 0, "activeIndex": 0}
    assert _payload(nothing)["message"] == "No active page to close"
    assert _payload(nothing)["remaining"] == 0
    assert handles["default"].pages() == []


def test_goto_on_empty_session_creates_exactly_one_page(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    result = asyncio.run(server.call_tool("goto", {"url": "  `https://example.com/a`  "}))

    assert _payload(result) == {"message": "Navigated", "url": "https://example.com/a", "pageIndex": 0}
    pages = handles["default"].pages()
    assert len(pages) == 1
    assert pages[0].url == "https://example.com/a"


def test_new_page_with_url_navigates_and_becomes_active(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        second = await server.call_tool("new_page", {"url": "https://example.org"})
        listing = await server.call_tool("list_pages", {})
        return second, listing

    second, listing = asyncio.run(run())
    assert _payload(second)["index"] == 1
    assert _payload(second)["totalPages"] == 2
    assert handles["default"].pages()[1].url == "https://example.org"
    assert _payload(listing) == {"total": 2, "indices": [0, 1], "activeIndex": 1}


def test_set_active_page_validates_range(make_hub) -> None:  # noqa: ANN001
    server, _handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        await server.call_tool("new_page", {})
        bad = await server.call_tool("set_active_page", {"pageIndex": 2})
        good = await server.call_tool("set_active_page", {"pageIndex": 0})
        listing = await server.call_tool("list_pages", {})
        return bad, good, listing

    bad, good, listing = asyncio.run(run())
    assert bad.is_error
    assert _payload(bad)["error"] == "InvalidIndex"
    assert _payload(bad)["message"] == "Invalid pageIndex: 2"
    assert _payload(good) == {"message": "Active page updated", "activeIndex": 0}
    assert _payload(listing)["activeIndex"] == 0


def test_set_active_page_accepts_index_alias(make_hub) -> None:  # noqa: ANN001
    server, _handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        await server.call_tool("new_page", {})
        return await server.call_tool("set_active_page", {"index": 0})

    assert _payload(asyncio.run(run()))["activeIndex"] == 0


def test_set_active_page_requires_index(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    result = asyncio.run(server.call_tool("set_active_page", {}))

    assert result.is_error
    assert _payload(result)["error"] == "InvalidArgument"
    assert handles == {}


def test_closing_last_page_clamps_active_index(make_hub) -> None:  # noqa: ANN001
    server, _handles = make_hub(enable_multi_page=True)

    async def run():
        for _ in range(3):
            await server.call_tool("new_page", {})
        closed = await server.call_tool("close_page", {"pageIndex": 2})
        listing = await server.call_tool("list_pages", {})
        return closed, listing

    closed, listing = asyncio.run(run())
    assert _payload(closed) == {"message": "Page closed", "closedIndex": 2, "remaining": 2, "activeIndex": 1}
    assert _payload(listing) == {"total": 2, "indices": [0, 1], "activeIndex": 1}


def test_multi_page_gate_off_ignores_page_index(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        await server.call_tool("new_page", {})
        await server.call_tool("set_active_page", {"pageIndex": 0})
        return await server.call_tool("goto", {"url": "https://a.test", "pageIndex": 7})

    result = asyncio.run(run())
    assert not result.is_error
    payload = _payload(result)
    assert payload["pageIndex"] == 0
    assert payload["ignored"] == ["pageIndex"]
    assert handles["default"].pages()[0].url == "https://a.test"


def test_multi_page_gate_on_rejects_bad_index_before_creating(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub(enable_multi_page=True)

    result = asyncio.run(server.call_tool("goto", {"url": "https://a.test", "pageIndex": 1}))

    assert _payload(result)["error"] == "InvalidIndex"
    assert handles["default"].pages() == []


def test_concurrent_close_page_calls_are_serialized(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        await server.call_tool("new_page", {})
        return await asyncio.gather(server.call_tool("close_page", {}), server.call_tool("close_page", {}))

    first, second = asyncio.run(run())
    closed = sorted(_payload(r)["closedIndex"] for r in (first, second))
    assert closed == [0, 1]
    assert handles["default"].pages() == []


def test_sessions_are_isolated(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {}, session_id="alice")
        await server.call_tool("new_page", {}, session_id="alice")
        return await server.call_tool("list_pages", {}, session_id="bob")

    listing = asyncio.run(run())
    assert _payload(listing) == {"total": 0, "indices": [], "activeIndex": 0}
    assert set(handles) == {"alice", "bob"}


def test_engine_failure_is_structured(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        handles["default"].fail["goto"] = RuntimeError("net::ERR_NAME_NOT_RESOLVED")
        return await server.call_tool("goto", {"url": "https://nowhere.invalid"})

    result = asyncio.run(run())
    payload = _payload(result)
    assert result.is_error
    assert payload["ok"] is False
    assert payload["error"] == "EngineFailure"
    assert payload["tool"] == "goto"
    assert "ERR_NAME_NOT_RESOLVED" in payload["message"]


def test_initialization_failure_is_reported(tmp_path, fakes) -> None:  # noqa: ANN001
    from mcp_servers.browser_hub.main import McpServer

    async def broken(session_id: str):
        raise RuntimeError("missing DEEPSEEK_API_KEY")

    server = McpServer(fakes.hub_config(tmp_path), handle_factory=broken)
    result = asyncio.run(server.call_tool("list_pages", {}))

    assert _payload(result)["error"] == "InitializationFailure"
    assert "default" not in server.sessions


def test_close_session_tool(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {}, session_id="s1")
        closed = await server.call_tool("close_session", {}, session_id="s1")
        unknown = await server.call_tool("close_session", {}, session_id="never-seen")
        return closed, unknown

    closed, unknown = asyncio.run(run())
    assert _payload(closed) == {"closed": True, "sessionId": "s1"}
    assert _payload(unknown) == {"closed": False, "sessionId": "never-seen"}
    assert handles["s1"].closed is True
    # Closing an unknown session must not construct one.
    assert "never-seen" not in handles


def test_unknown_tool_is_invalid_argument(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    result = asyncio.run(server.call_tool("teleport", {}))

    assert _payload(result)["error"] == "InvalidArgument"
    assert "teleport" in _payload(result)["message"]
    assert handles == {}


def test_negative_page_index_is_invalid_index(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub(enable_multi_page=True)

    async def run():
        await server.call_tool("new_page", {})
        return [
            await server.call_tool("set_active_page", {"pageIndex": -1}),
            await server.call_tool("close_page", {"pageIndex": -1}),
            await server.call_tool("goto", {"url": "https://a.test", "pageIndex": -1}),
        ]

    for result in asyncio.run(run()):
        payload = _payload(result)
        assert result.is_error
        assert payload["error"] == "InvalidIndex"
        assert payload["message"] == "Invalid pageIndex: -1"
    pages = handles["default"].pages()
    assert len(pages) == 1
    assert pages[0].url is None


def test_page_closed_outside_hub_reclamps_active_index(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("new_page", {})
        await server.call_tool("new_page", {})
        # The site closed its own window.
        handles["default"]._pages.pop()
        listing = await server.call_tool("list_pages", {})
        navigated = await server.call_tool("goto", {"url": "https://a.test"})
        closed = await server.call_tool("close_page", {})
        return listing, navigated, closed

    listing, navigated, closed = asyncio.run(run())
    assert _payload(listing) == {"total": 1, "indices": [0], "activeIndex": 0}
    assert _payload(navigated)["pageIndex"] == 0
    assert _payload(closed) == {"message": "Page closed", "closedIndex": 0, "remaining": 0, "activeIndex": 0}
    assert handles["default"].pages() == []


def test_stale_active_index_is_reclamped_before_close(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        for _ in range(3):
            await server.call_tool("new_page", {})
        del handles["default"]._pages[1:]
        return await server.call_tool("close_page", {})

    assert _payload(asyncio.run(run())) == {"message": "Page closed", "closedIndex": 0, "remaining": 0, "activeIndex": 0}
