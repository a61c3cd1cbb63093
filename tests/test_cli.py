"""
Tests for the click command line.
"""

import io

import pytest
from click.testing import CliRunner
from PIL import Image

from conftest import make_image
from filterstack.cli import cli
from filterstack.image import decode_image, encode_image


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def source_file(tmp_path):
    path = tmp_path / "source.png"
    path.write_bytes(encode_image(make_image(height=16, width=16)))
    return path


class TestCli:

    def test_filters(self, runner):
        result = runner.invoke(cli, ["filters"])
        assert result.exit_code == 0
        assert "Sepia\tsepia" in result.output
        assert "Pixel\tpixellate" in result.output

    def test_render(self, runner, source_file, tmp_path):
        out = tmp_path / "out.png"
        result = runner.invoke(cli, ["render", str(source_file), "-f", "noir", "-b", "0.3", "-o", str(out)])
        assert result.exit_code == 0, result.output
        pixels = decode_image(out.read_bytes()).pixels
        assert (pixels[..., 0] == pixels[..., 1]).all()

    def test_render_unknown_filter(self, runner, source_file, tmp_path):
        result = runner.invoke(cli, ["render", str(source_file), "-f", "blur", "-o", str(tmp_path / "o.png")])
        assert result.exit_code == 2
        assert "unknown filter" in result.output

    def test_render_undecodable_source(self, runner, tmp_path):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"not an image")
        result = runner.invoke(cli, ["render", str(bad), "-o", str(tmp_path / "o.png")])
        assert result.exit_code == 1
        assert "Cannot load" in result.output

    def test_compare_writes_newest_first(self, runner, source_file, tmp_path):
        out_dir = tmp_path / "compare"
        result = runner.invoke(
            cli,
            ["compare", str(source_file), "-v", "sepia:0.2", "-v", "noir:-0.33", "-v", "original", "-o", str(out_dir)],
        )
        assert result.exit_code == 0, result.output
        names = sorted(p.name for p in out_dir.iterdir())
        assert names == ["00-original_+0.png", "01-noir_-33.png", "02-sepia_+20.png"]
        assert "Sepia (+20%)" in result.output
        with Image.open(io.BytesIO((out_dir / "01-noir_-33.png").read_bytes())) as img:
            assert img.size == (16, 16)

    def test_bad_config(self, runner, source_file, tmp_path):
        config = tmp_path / "c.yaml"
        config.write_text("kernel: nope\n", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(config), "filters"])
        assert result.exit_code == 1
        assert "kernel" in result.output
