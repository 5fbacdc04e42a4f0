"""Tests for the Paper tool wrappers and selection helpers."""

import pytest

from paperbridge import ClientConfig, ToolError
from paperbridge.paper import (
    PaperClient,
    PaperImportResult,
    get_jsx_string,
    get_selected_node_id,
    import_selection,
)


def json_item(value):
    return {"content": [{"type": "json", "json": value}]}


@pytest.fixture
def paper(fake_transport):
    config = ClientConfig(command="paper-mcp", tool_prefix="paper_")
    return PaperClient(config, transport_factory=lambda c: fake_transport)


def last_call(transport):
    return transport.requests("tools/call")[-1]["params"]


class TestPaperClient:
    """Tests for the named wrappers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, tool", [
        ("get_basic_info", "paper_get_basic_info"),
        ("get_selection", "paper_get_selection"),
    ])
    async def test_no_argument_tools(self, paper, fake_transport, method, tool):
        await getattr(paper, method)()
        assert last_call(fake_transport) == {"name": tool, "arguments": {}}
        await paper.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [
        "get_node_info", "get_children", "get_screenshot", "get_fill_image",
    ])
    async def test_node_id_tools(self, paper, fake_transport, method):
        await getattr(paper, method)("12:34")
        assert last_call(fake_transport) == {"name": f"paper_{method}", "arguments": {"nodeId": "12:34"}}
        await paper.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [
        "get_node_info", "get_children", "get_screenshot", "get_fill_image", "get_jsx",
    ])
    async def test_empty_node_id_rejected(self, paper, fake_transport, method):
        with pytest.raises(ValueError, match="node_id"):
            await getattr(paper, method)("")
        assert fake_transport.start_count == 0

    @pytest.mark.asyncio
    async def test_get_jsx_default_format(self, paper, fake_transport):
        await paper.get_jsx("n1")
        assert last_call(fake_transport)["arguments"] == {"nodeId": "n1", "format": "tailwind"}
        await paper.close()

    @pytest.mark.asyncio
    async def test_get_jsx_inline_styles(self, paper, fake_transport):
        await paper.get_jsx("n1", format="inline-styles")
        assert last_call(fake_transport)["arguments"]["format"] == "inline-styles"
        await paper.close()

    @pytest.mark.asyncio
    async def test_get_jsx_unknown_format(self, paper):
        with pytest.raises(ValueError, match="format must be one of"):
            await paper.get_jsx("n1", format="css-modules")

    @pytest.mark.asyncio
    async def test_get_computed_styles(self, paper, fake_transport):
        fake_transport.tools["paper_get_computed_styles"] = json_item({"a": {"color": "red"}})
        styles = await paper.get_computed_styles(["a", "b"])
        assert styles == {"a": {"color": "red"}}
        assert last_call(fake_transport)["arguments"] == {"nodeIds": ["a", "b"]}
        await paper.close()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("node_ids", [[], "abc", ["ok", ""]])
    async def test_get_computed_styles_rejects_bad_ids(self, paper, node_ids):
        with pytest.raises(ValueError):
            await paper.get_computed_styles(node_ids)

    @pytest.mark.asyncio
    async def test_without_prefix(self, fake_transport):
        client = PaperClient(ClientConfig(command="paper-mcp"), transport_factory=lambda c: fake_transport)
        await client.get_selection()
        assert last_call(fake_transport)["name"] == "get_selection"
        await client.close()

    @pytest.mark.asyncio
    async def test_tool_error_propagates(self, paper, fake_transport):
        fake_transport.tools["paper_get_node_info"] = {
            "isError": True,
            "content": [{"type": "text", "text": "Node not found"}],
        }
        with pytest.raises(ToolError, match="Node not found"):
            await paper.get_node_info("missing")
        await paper.close()


class TestSelectionHelpers:
    """Tests for get_selected_node_id and get_jsx_string."""

    @pytest.mark.parametrize("selection, expected", [
        ({"nodes": [{"id": "a"}, {"id": "b"}]}, "a"),
        ({"selection": [{"id": "s"}]}, "s"),
        ({"nodes": [], "id": "top"}, "top"),
        ({"id": "top"}, "top"),
        ({"nodes": [{"name": "no id"}]}, None),
        ({"nodes": [{"id": 5}]}, None),
        ({}, None),
        ("not a dict", None),
    ])
    def test_get_selected_node_id(self, selection, expected):
        assert get_selected_node_id(selection) == expected

    @pytest.mark.parametrize("result, expected", [
        ("<div />", "<div />"),
        ({"jsx": "<A />", "code": "<B />"}, "<A />"),
        ({"code": "<B />"}, "<B />"),
        ({"jsx": 3}, ""),
        (None, ""),
    ])
    def test_get_jsx_string(self, result, expected):
        assert get_jsx_string(result) == expected


class TestImportSelection:
    """Tests for import_selection."""

    @pytest.mark.asyncio
    async def test_imports_selected_node(self, paper, fake_transport):
        fake_transport.tools.update({
            "paper_get_selection": json_item({"nodes": [{"id": "abcdef123"}]}),
            "paper_get_node_info": json_item({
                "id": "abcdef123", "name": "Hero Card", "width": 320, "height": 200,
                "artboardId": "art-1",
            }),
            "paper_get_jsx": json_item({"jsx": "<div className='p-4' />"}),
        })

        result = await import_selection(paper, format="inline-styles")

        assert result == PaperImportResult(
            node_id="abcdef123",
            name="Hero Card",
            jsx="<div className='p-4' />",
            format="inline-styles",
            width=320,
            height=200,
            artboard_id="art-1",
        )
        assert last_call(fake_transport)["arguments"] == {"nodeId": "abcdef123", "format": "inline-styles"}
        await paper.close()

    @pytest.mark.asyncio
    async def test_name_fallbacks(self, paper, fake_transport):
        fake_transport.tools.update({
            "paper_get_selection": json_item({"id": "xyz98765"}),
            "paper_get_node_info": json_item({}),
            "paper_get_jsx": {"content": [{"type": "text", "text": "<span />"}]},
        })

        generated = await import_selection(paper)
        named = await import_selection(paper, fallback_name="Badge")

        assert generated.name == "PaperNode-xyz987"
        assert generated.jsx == "<span />"
        assert generated.format == "tailwind"
        assert generated.width is None
        assert named.name == "Badge"
        await paper.close()

    @pytest.mark.asyncio
    async def test_nothing_selected(self, paper, fake_transport):
        fake_transport.tools["paper_get_selection"] = json_item({"nodes": []})
        with pytest.raises(ValueError, match="No Paper node selected."):
            await import_selection(paper)
        await paper.close()
