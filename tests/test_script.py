from __future__ import annotations

import asyncio
import json


def test_script_for_recorded_steps() -> None:
    from mcp_servers.browser_hub.script import generate_playwright_script

    history = [
        {"method": "goto", "timestamp": "t0", "action": {"type": "goto", "url": "https://example.com"}},
        {
            "method": "act",
            "timestamp": "t1",
            "instruction": "type the query",
            "action": {"type": "fill", "selector": "#q", "value": "hello"},
        },
        {
            "method": "act",
            "timestamp": "t2",
            "instruction": "submit",
            "action": {"type": "press", "selector": "#q", "keys": "Enter"},
        },
        {"method": "act", "timestamp": "t3", "action": {"type": "scroll", "x": 0, "y": 600}},
    ]

    script = generate_playwright_script(history, test_name="search flow")

    assert script == (
        "import { test, expect } from '@playwright/test';\n"
        "\n"
        'test("search flow", async ({ page }) => {\n'
        '  await page.goto("https://example.com");\n'
        "  // Action: type the query\n"
        '  await page.fill("#q", "hello");\n'
        "  // Action: submit\n"
        '  await page.press("#q", "Enter");\n'
        "  await page.evaluate(({ x, y }) => window.scrollBy(x, y), { x: 0, y: 600 });\n"
        "});\n"
    )


def test_empty_history_still_yields_a_test() -> None:
    from mcp_servers.browser_hub.script import DEFAULT_TEST_NAME, generate_playwright_script

    script = generate_playwright_script([], test_name="   ")

    assert f'test("{DEFAULT_TEST_NAME}", async ({{ page }}) => {{\n}});\n' in script


def test_unmapped_entries_are_kept_as_comments() -> None:
    from mcp_servers.browser_hub.script import generate_playwright_script

    history = [
        {"method": "extract", "timestamp": "t0", "instruction": "get the price"},
        {"method": "act", "timestamp": "t1", "action": {"type": "hover", "selector": "#menu"}},
        {"method": "act", "timestamp": "t2", "action": {"type": "click"}},
    ]

    body = generate_playwright_script(history).splitlines()[3:-1]

    assert body == [
        "  // Unmapped action: extract {}",
        '  // Unmapped action: hover {"selector": "#menu", "type": "hover"}',
        '  // Unmapped action: click {"type": "click"}',
    ]


def test_literals_are_escaped() -> None:
    from mcp_servers.browser_hub.script import generate_playwright_script

    history = [
        {
            "method": "act",
            "timestamp": "t0",
            "instruction": "say hi\nthen stop",
            "action": {"type": "type", "selector": "input[name='q']", "value": 'He said "hi"\n'},
        },
    ]

    script = generate_playwright_script(history, test_name='quote " test')

    assert 'test("quote \\" test", async' in script
    assert "  // Action: say hi then stop\n" in script
    assert '  await page.type("input[name=\'q\']", "He said \\"hi\\"\\n");\n' in script


def test_key_press_without_selector_uses_keyboard() -> None:
    from mcp_servers.browser_hub.script import generate_playwright_script

    history = [{"method": "act", "timestamp": "t0", "action": {"type": "press", "key": "Escape"}}]

    assert '  await page.keyboard.press("Escape");\n' in generate_playwright_script(history)


def test_comments_can_be_disabled() -> None:
    from mcp_servers.browser_hub.script import generate_playwright_script

    history = [{"method": "act", "timestamp": "t0", "instruction": "click ok", "action": {"type": "click", "selector": "#ok"}}]

    script = generate_playwright_script(history, include_comments=False)

    assert "// Action" not in script
    assert '  await page.click("#ok");\n' in script


def test_generate_script_tool_reads_session_history(make_hub) -> None:  # noqa: ANN001
    server, handles = make_hub()

    async def run():
        await server.call_tool("goto", {"url": "https://example.com"})
        await server.call_tool(
            "act",
            {"instruction": "click ok", "action": {"selector": "#ok", "method": "click", "arguments": []}},
        )
        return await server.call_tool("generate_script", {"testName": "smoke"})

    result = asyncio.run(run())
    script = result.content[0].text
    assert not result.is_error
    assert 'test("smoke", async ({ page }) => {' in script
    assert '  await page.goto("https://example.com");' in script
    assert script.endswith("});\n")


def test_history_tool_lists_entries(make_hub) -> None:  # noqa: ANN001
    server, _handles = make_hub()

    async def run():
        await server.call_tool("goto", {"url": "https://example.com"})
        await server.call_tool("observe", {})
        plain = await server.call_tool("get_history", {})
        detailed = await server.call_tool("get_history", {"includeActions": True})
        summary = await server.call_tool("get_history", {"summarize": True})
        return plain, detailed, summary

    plain, detailed, summary = asyncio.run(run())
    payload = json.loads(plain.content[0].text)
    assert payload["count"] == 2
    assert [e["index"] for e in payload["entries"]] == [1, 2]
    assert [e["method"] for e in payload["entries"]] == ["goto", "observe"]
    assert "action" not in payload["entries"][0]
    assert "instruction" not in payload["entries"][1]

    entries = json.loads(detailed.content[0].text)["entries"]
    assert entries[0]["action"] == {"type": "goto", "url": "https://example.com"}

    lines = summary.content[0].text.splitlines()
    assert lines[0] == "Total operations: 2"
    assert lines[1].startswith("1. method: goto, time: ")


def test_history_is_per_session(make_hub) -> None:  # noqa: ANN001
    server, _handles = make_hub()

    async def run():
        await server.call_tool("goto", {"url": "https://a.test"}, session_id="a")
        return await server.call_tool("get_history", {}, session_id="b")

    assert json.loads(asyncio.run(run()).content[0].text) == {"count": 0, "entries": []}


def test_goto_then_click_round_trip() -> None:
    from mcp_servers.browser_hub.script import generate_playwright_script

    history = [
        {"method": "goto", "timestamp": "t0", "action": {"type": "goto", "url": "https://example.com"}},
        {"method": "act", "timestamp": "t1", "instruction": "click login", "action": {"type": "click", "selector": "#login"}},
    ]

    body = generate_playwright_script(history).splitlines()[3:-1]

    assert body == [
        '  await page.goto("https://example.com");',
        "  // Action: click login",
        '  await page.click("#login");',
    ]
