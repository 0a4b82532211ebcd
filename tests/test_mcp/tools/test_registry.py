"""Tests for ToolSpec and ToolRegistry.

Covers:
- ToolSpec immutability
- read-only filtering
- list_tools, tool_count, call_tool dispatch and error translation
"""

import asyncio
import dataclasses
import unittest
from unittest.mock import MagicMock

import mcp.types as types
import requests

from gh_discussions_sync.core.client import GitHubAPIError
from gh_discussions_sync.mcp.tools import ALL_SPECS
from gh_discussions_sync.mcp.tools.registry import ToolRegistry, ToolSpec


def _make_spec(name: str, read_only: bool = True, handler=None) -> ToolSpec:
    """Helper to create a ToolSpec for testing."""
    if handler is None:

        async def handler(sync, args):
            return types.CallToolResult(
                content=[types.TextContent(type="text", text=f"ok:{name}")]
            )

    return ToolSpec(
        tool=types.Tool(
            name=name,
            description=f"Test tool {name}",
            inputSchema={"type": "object", "properties": {}, "required": []},
        ),
        read_only=read_only,
        handler=handler,
    )


def _raising(exc: Exception):
    async def handler(sync, args):
        raise exc

    return handler


def _text(result: types.CallToolResult) -> str:
    content = result.content[0]
    assert isinstance(content, types.TextContent)
    return content.text


class TestToolSpec(unittest.TestCase):
    def test_frozen(self):
        spec = _make_spec("a")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            spec.read_only = False  # type: ignore[misc]


class TestToolRegistryFiltering(unittest.TestCase):
    def setUp(self):
        self.specs = [
            _make_spec("read_a"),
            _make_spec("write_b", read_only=False),
            _make_spec("read_c"),
        ]

    def test_all_tools_by_default(self):
        registry = ToolRegistry(self.specs)
        self.assertEqual(registry.tool_count(), 3)
        self.assertEqual(
            [t.name for t in registry.list_tools()],
            ["read_a", "write_b", "read_c"],
        )

    def test_read_only_drops_write_tools(self):
        registry = ToolRegistry(self.specs, read_only=True)
        self.assertEqual(
            [t.name for t in registry.list_tools()], ["read_a", "read_c"]
        )

    def test_read_only_discussion_tools(self):
        """Pull and repair stay available; push, comment, create do not."""
        names = {t.name for t in ToolRegistry(ALL_SPECS, read_only=True).list_tools()}
        self.assertIn("discussion_pull", names)
        self.assertIn("discussion_repair", names)
        self.assertNotIn("discussion_push", names)
        self.assertNotIn("discussion_comment", names)
        self.assertNotIn("discussion_create", names)


class TestToolRegistryCallTool(unittest.TestCase):
    def _call(self, spec: ToolSpec, arguments=None, read_only=False):
        registry = ToolRegistry([spec], read_only=read_only)
        return asyncio.run(
            registry.call_tool(spec.tool.name, arguments, MagicMock())
        )

    def test_dispatch(self):
        result = self._call(_make_spec("ping"))
        self.assertEqual(_text(result), "ok:ping")

    def test_arguments_default_to_empty_dict(self):
        seen = {}

        async def handler(sync, args):
            seen["args"] = args
            return types.CallToolResult(content=[])

        self._call(_make_spec("x", handler=handler), None)
        self.assertEqual(seen["args"], {})

    def test_unknown_tool_raises(self):
        registry = ToolRegistry([_make_spec("a")])
        with self.assertRaises(ValueError):
            asyncio.run(registry.call_tool("nope", {}, MagicMock()))

    def test_filtered_tool_raises(self):
        registry = ToolRegistry([_make_spec("w", read_only=False)], read_only=True)
        with self.assertRaises(ValueError):
            asyncio.run(registry.call_tool("w", {}, MagicMock()))

    def test_api_error_translated_with_number(self):
        spec = _make_spec(
            "pull",
            handler=_raising(GitHubAPIError("gone", error_types=["NOT_FOUND"])),
        )
        result = self._call(spec, {"number": 7})
        self.assertTrue(result.isError)
        self.assertIn("Error (not_found)", _text(result))
        self.assertIn("#7", _text(result))

    def test_transport_error(self):
        spec = _make_spec(
            "pull", handler=_raising(requests.ConnectionError("refused"))
        )
        result = self._call(spec)
        self.assertTrue(result.isError)
        self.assertIn("Error (server_error): refused", _text(result))

    def test_value_error(self):
        spec = _make_spec("pull", handler=_raising(ValueError("bad number")))
        result = self._call(spec)
        self.assertIn("Error (validation_error): bad number", _text(result))

    def test_unexpected_error(self):
        spec = _make_spec("pull", handler=_raising(KeyError("id")))
        result = self._call(spec)
        self.assertTrue(result.isError)
        self.assertIn("Error (server_error)", _text(result))
