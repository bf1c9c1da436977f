"""Tests for the built-in renderers."""

from __future__ import annotations

import sys

import pytest

from quiverlink.codec import decode
from quiverlink.config import Settings
from quiverlink.core.errors import RenderError
from quiverlink.core.models import DiagramGraph, Edge, EdgeStyle, Node
from quiverlink.render import CommandRenderer, RenderRequest, SvgRenderer, create_renderer
from tests.helpers.diagrams import SCENARIO_A_DATA, SQUARE_DATA, FakeRenderer, make_payload, make_url

URL_A = make_url(SCENARIO_A_DATA)

WRITE_URL_SCRIPT = "import pathlib, sys; pathlib.Path(sys.argv[1]).write_text(sys.argv[2])"


def _request(tmp_path, data=SCENARIO_A_DATA, name="out.svg") -> RenderRequest:
    return RenderRequest(url=make_url(data), graph=decode(make_payload(data)), output_path=tmp_path / "images" / name)


class TestSvgRenderer:
    def test_writes_svg_file(self, tmp_path):
        request = _request(tmp_path)
        SvgRenderer().render(request)

        svg = request.output_path.read_text(encoding="utf-8")
        assert svg.startswith("<svg xmlns=")
        assert svg.rstrip().endswith("</svg>")
        assert ">A</text>" in svg
        assert ">f</text>" in svg

    def test_styles(self):
        svg = SvgRenderer().to_svg(decode(make_payload(SQUARE_DATA)))

        assert svg.count("<line ") == 4
        assert 'stroke-dasharray="6 4"' in svg
        # Every arrow except the head="none" one gets a marker
        assert svg.count('marker-end="url(#head)"') == 3

    def test_hidden_body(self):
        graph = DiagramGraph(
            nodes=[Node(0, 0, 0, "A"), Node(1, 1, 0, "B")],
            edges=[Edge(0, 0, 1, "iso", EdgeStyle(body_name="none"))],
        )
        svg = SvgRenderer().to_svg(graph)
        assert "<line " not in svg
        assert ">iso</text>" in svg

    def test_labels_escaped(self):
        graph = DiagramGraph(nodes=[Node(0, 0, 0, "a<b & c")])
        svg = SvgRenderer().to_svg(graph)
        assert "a&lt;b &amp; c" in svg

    def test_loop_label(self):
        graph = DiagramGraph(nodes=[Node(0, 0, 0, "A")], edges=[Edge(0, 0, 0, "id")])
        svg = SvgRenderer().to_svg(graph)
        assert "<line " not in svg
        assert ">id</text>" in svg

    def test_size_follows_grid(self):
        graph = DiagramGraph(nodes=[Node(0, 0, 0, "A"), Node(1, 2, 1, "B")])
        svg = SvgRenderer().to_svg(graph)
        assert 'width="400" height="180"' in svg

    def test_missing_node_is_render_error(self, tmp_path):
        graph = DiagramGraph(nodes=[Node(0, 0, 0, "A")], edges=[Edge(0, 0, 5)])
        request = RenderRequest(url=URL_A, graph=graph, output_path=tmp_path / "x.svg")

        with pytest.raises(RenderError, match="missing node") as exc_info:
            SvgRenderer().render(request)
        assert exc_info.value.url == URL_A
        assert not request.output_path.exists()


class TestCommandRenderer:
    def test_runs_command_with_placeholders(self, tmp_path):
        request = _request(tmp_path, name="out.png")
        renderer = CommandRenderer(command=[sys.executable, "-c", WRITE_URL_SCRIPT, "{output}", "{url}"])

        renderer.render(request)

        assert request.output_path.read_text() == request.url

    def test_nonzero_exit(self, tmp_path):
        renderer = CommandRenderer(command=[sys.executable, "-c", "import sys; sys.stderr.write('no page'); sys.exit(3)"])
        with pytest.raises(RenderError, match="status 3: no page"):
            renderer.render(_request(tmp_path))

    def test_missing_program(self, tmp_path):
        renderer = CommandRenderer(command=["quiverlink-no-such-renderer"])
        with pytest.raises(RenderError, match="renderer not found"):
            renderer.render(_request(tmp_path))

    def test_no_output_file(self, tmp_path):
        renderer = CommandRenderer(command=[sys.executable, "-c", "pass"])
        with pytest.raises(RenderError, match="did not produce an output file"):
            renderer.render(_request(tmp_path))

    def test_timeout(self, tmp_path):
        renderer = CommandRenderer(command=[sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.5)
        with pytest.raises(RenderError, match="timed out"):
            renderer.render(_request(tmp_path))

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError, match="command is required"):
            CommandRenderer(command=[])


class TestCreateRenderer:
    def test_default_is_svg(self):
        assert isinstance(create_renderer(Settings(_env_file=None)), SvgRenderer)

    def test_command(self):
        settings = Settings(_env_file=None, renderer="command", render_command=["shot", "{url}", "{output}"], render_timeout=5)
        renderer = create_renderer(settings)

        assert isinstance(renderer, CommandRenderer)
        assert renderer.command == ["shot", "{url}", "{output}"]
        assert renderer.timeout == 5

    def test_command_without_program(self):
        with pytest.raises(ValueError):
            create_renderer(Settings(_env_file=None, renderer="command"))


class TestRendererLifecycle:
    def test_context_manager_opens_and_closes(self):
        renderer = FakeRenderer()
        with renderer as r:
            assert r is renderer
            assert renderer.opened == 1
        assert renderer.closed == 1

    def test_closed_on_error(self):
        renderer = FakeRenderer()
        with pytest.raises(RuntimeError):
            with renderer:
                raise RuntimeError("boom")
        assert renderer.closed == 1
