import os
import re
from datetime import datetime

import pytest
from helpers import FakeConverter, FakeDumper, write_font

from fontpack.config import BuildConfig
from fontpack.errors import FontDirectoryError, MissingDependencyError, OutputExistsError
from fontpack.integrity import hash_base64
from fontpack.pipeline import (
    BatchPipeline,
    BatchSummary,
    PipelineState,
    ProcessingResult,
    discover_fonts,
)
from fontpack.tools import Woff2CompressConverter

ALPHA = {1: "Alpha", 2: "Bold", 4: "Alpha Bold", 6: "Alpha-Bold"}
GAMMA = {1: "Gamma", 2: "Light Italic", 4: "Gamma Light Italic"}

LOG_LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(INFO|WARN|ERROR|DEBUG)\] ")


@pytest.fixture
def font_dir(tmp_path):
    d = tmp_path / "fonts"
    d.mkdir()
    return d


def make_pipeline(
    font_dir,
    output_dir,
    *,
    names=None,
    failing=None,
    convert_failing=None,
    clock=None,
    **config,
):
    cfg = BuildConfig(font_dir=font_dir, output_dir=output_dir, **config)
    return BatchPipeline(
        cfg,
        dumper=FakeDumper(names=names or {}, failing=failing or set()),
        converter=FakeConverter(failing=convert_failing or set()),
        clock=clock or (lambda: datetime(2024, 5, 6, 7, 8, 9)),
    )


def test_discover_fonts_order(font_dir):
    for name in ["b.otf", "z.ttf", "a.otf", "m.ttf", "notes.txt", "c.woff2"]:
        write_font(font_dir, name)
    (font_dir / "sub.ttf").mkdir()

    found = [p.name for p in discover_fonts(font_dir)]

    assert found == ["m.ttf", "z.ttf", "a.otf", "b.otf"]


def test_summary_fold():
    summary = BatchSummary()
    summary = summary.record(ProcessingResult(source_path=None, succeeded=True))
    summary = summary.record(ProcessingResult(source_path=None, succeeded=False))
    summary = summary.record(ProcessingResult(source_path=None, succeeded=True))

    assert (summary.processed_count, summary.failed_count) == (2, 1)


def test_partial_failure_scenario(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "B.otf")
    out = tmp_path / "output"
    pipeline = make_pipeline(font_dir, out, names={"A.ttf": ALPHA}, failing={"B.otf"})

    summary = pipeline.run()

    assert pipeline.state is PipelineState.DONE
    assert summary.processed_count == 1
    assert summary.failed_count == 1
    assert summary.output_directory == out

    css = (out / "font-face.css").read_text(encoding="utf-8")
    assert css.count("@font-face {") == 1
    assert "font-family: 'Alpha';" in css
    assert "font-weight: 700;" in css
    assert "font-style: normal;" in css
    assert "url('./A.woff2') format('woff2'),\n       url('./A.ttf') format('truetype');" in css

    manifest = (out / "README.md").read_text(encoding="utf-8")
    assert manifest.count("- **File**: `") == 1
    assert "## Alpha Bold\n" in manifest
    assert "B.otf" not in manifest
    assert manifest.count("## CSS File Integrity") == 1

    assert sorted(p.name for p in out.iterdir()) == [
        "A.ttf",
        "A.woff2",
        "README.md",
        "build.log",
        "font-face.css",
    ]


def test_footer_hash_matches_stylesheet(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    out = tmp_path / "output"

    summary = make_pipeline(font_dir, out, names={"A.ttf": ALPHA}).run()

    assert summary.stylesheet_hash == hash_base64(out / "font-face.css")
    manifest = (out / "README.md").read_text(encoding="utf-8")
    assert f'integrity="sha256-{summary.stylesheet_hash}"' in manifest


def test_no_woff2(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "G.otf")
    out = tmp_path / "output"
    pipeline = make_pipeline(
        font_dir, out, names={"A.ttf": ALPHA, "G.otf": GAMMA}, enable_woff2=False
    )

    summary = pipeline.run()

    css = (out / "font-face.css").read_text(encoding="utf-8")
    assert "woff2" not in css
    assert "  src: url('./A.ttf') format('truetype');\n" in css
    assert "  src: url('./G.otf') format('opentype');\n" in css
    assert "font-style: italic;" in css
    manifest = (out / "README.md").read_text(encoding="utf-8")
    assert "CSP-Compatible Font Hash" not in manifest
    assert not list(out.glob("*.woff2"))
    assert "WOFF2 font files" not in summary.generated_files


def test_conversion_failure_keeps_font(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "G.otf")
    out = tmp_path / "output"
    pipeline = make_pipeline(
        font_dir,
        out,
        names={"A.ttf": ALPHA, "G.otf": GAMMA},
        convert_failing={"G.otf"},
    )

    summary = pipeline.run()

    assert (summary.processed_count, summary.failed_count) == (2, 0)
    css = (out / "font-face.css").read_text(encoding="utf-8")
    assert css.count("@font-face {") == 2
    assert "url('./A.woff2')" in css
    assert "  src: url('./G.otf') format('opentype');\n" in css
    manifest = (out / "README.md").read_text(encoding="utf-8")
    assert manifest.count("CSP-Compatible Font Hash") == 1

    log = (out / "build.log").read_text(encoding="utf-8")
    assert "[WARN] Failed to convert G.otf to WOFF2" in log


def test_output_exists_without_force_is_untouched(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    out = tmp_path / "output"
    out.mkdir()
    (out / "keep.txt").write_text("precious", encoding="utf-8")
    pipeline = make_pipeline(font_dir, out, names={"A.ttf": ALPHA})

    with pytest.raises(OutputExistsError):
        pipeline.run()

    assert pipeline.state is PipelineState.FAILED
    assert [p.name for p in out.iterdir()] == ["keep.txt"]
    assert (out / "keep.txt").read_text(encoding="utf-8") == "precious"


def test_force_replaces_output(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    out = tmp_path / "output"
    out.mkdir()
    (out / "stale.css").write_text("old", encoding="utf-8")

    make_pipeline(font_dir, out, names={"A.ttf": ALPHA}, force=True).run()

    assert not (out / "stale.css").exists()
    assert (out / "README.md").exists()


def test_rerun_is_deterministic(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "G.otf")
    write_font(font_dir, "B.otf")
    out = tmp_path / "output"
    names = {"A.ttf": ALPHA, "G.otf": GAMMA}

    def snapshot():
        css = (out / "font-face.css").read_bytes()
        manifest = [
            line
            for line in (out / "README.md").read_text(encoding="utf-8").splitlines()
            if not line.startswith("## Generated on:")
        ]
        return css, manifest

    make_pipeline(
        font_dir, out, names=names, failing={"B.otf"},
        clock=lambda: datetime(2024, 1, 1, 0, 0, 0), force=True,
    ).run()
    first = snapshot()
    make_pipeline(
        font_dir, out, names=names, failing={"B.otf"},
        clock=lambda: datetime(2025, 12, 31, 23, 59, 59), force=True,
    ).run()
    second = snapshot()

    assert first == second


def test_missing_dependencies(font_dir, tmp_path, monkeypatch):
    write_font(font_dir, "A.ttf")
    out = tmp_path / "output"
    monkeypatch.setattr("fontpack.pipeline.shutil.which", lambda name: None)
    pipeline = BatchPipeline(BuildConfig(font_dir=font_dir, output_dir=out))

    with pytest.raises(MissingDependencyError) as excinfo:
        pipeline.run()

    assert excinfo.value.missing == ["ttx", "woff2_compress"]
    assert pipeline.state is PipelineState.FAILED
    assert not out.exists()


def test_required_tools_without_woff2():
    pipeline = BatchPipeline(BuildConfig(enable_woff2=False))
    assert pipeline.required_tools() == ["ttx"]


def test_required_tools_fonttools_converter():
    pipeline = BatchPipeline(BuildConfig(converter="fonttools"))
    assert pipeline.required_tools() == ["ttx"]


def test_missing_font_directory(tmp_path):
    pipeline = make_pipeline(tmp_path / "nope", tmp_path / "output")

    with pytest.raises(FontDirectoryError, match="does not exist"):
        pipeline.run()
    assert not (tmp_path / "output").exists()


def test_empty_font_directory(font_dir, tmp_path):
    write_font(font_dir, "readme.txt")
    pipeline = make_pipeline(font_dir, tmp_path / "output")

    with pytest.raises(FontDirectoryError, match="No TTF or OTF files"):
        pipeline.run()


def test_all_fonts_failing_still_finalizes(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "B.otf")
    out = tmp_path / "output"
    pipeline = make_pipeline(font_dir, out, failing={"A.ttf", "B.otf"})

    summary = pipeline.run()

    assert pipeline.state is PipelineState.DONE
    assert (summary.processed_count, summary.failed_count) == (0, 2)
    assert "@font-face" not in (out / "font-face.css").read_text(encoding="utf-8")
    assert "## CSS File Integrity" in (out / "README.md").read_text(encoding="utf-8")
    assert not (out / "A.ttf").exists()
    assert not (out / "A.woff2").exists()


def test_build_log_format(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "B.otf")
    out = tmp_path / "output"

    make_pipeline(font_dir, out, names={"A.ttf": ALPHA}, failing={"B.otf"}).run()

    lines = (out / "build.log").read_text(encoding="utf-8").splitlines()
    assert lines
    assert all(LOG_LINE.match(line) for line in lines)
    text = "\n".join(lines)
    assert "[INFO] Processing font: A.ttf" in text
    assert "[ERROR] Failed to extract metadata from B.otf" in text
    assert "[INFO] Successfully processed: 1 font(s)" in text
    assert "[WARN] Failed to process: 1 font(s)" in text
    assert "\x1b[" not in text


def test_undecodable_tool_output_fails_font_only(font_dir, tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    ttx = bin_dir / "ttx"
    ttx.write_text("#!/bin/sh\nprintf '\\377\\376'\nexit 1\n", encoding="utf-8")
    ttx.chmod(0o755)
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    write_font(font_dir, "A.ttf")
    write_font(font_dir, "B.ttf")
    out = tmp_path / "output"
    pipeline = BatchPipeline(
        BuildConfig(font_dir=font_dir, output_dir=out, enable_woff2=False)
    )

    summary = pipeline.run()

    assert pipeline.state is PipelineState.DONE
    assert (summary.processed_count, summary.failed_count) == (0, 2)
    assert "## CSS File Integrity" in (out / "README.md").read_text(encoding="utf-8")


def test_conversion_permission_error_keeps_font(font_dir, tmp_path, monkeypatch):
    write_font(font_dir, "A.ttf")
    out = tmp_path / "output"

    def fake_run(argv, **kwargs):
        raise PermissionError(13, "Permission denied", argv[0])

    monkeypatch.setattr("fontpack.tools.subprocess.run", fake_run)
    monkeypatch.setattr("fontpack.pipeline.shutil.which", lambda name: "/usr/bin/" + name)
    pipeline = BatchPipeline(
        BuildConfig(font_dir=font_dir, output_dir=out),
        dumper=FakeDumper(names={"A.ttf": ALPHA}),
        converter=Woff2CompressConverter(),
        clock=lambda: datetime(2024, 5, 6, 7, 8, 9),
    )

    summary = pipeline.run()

    assert (summary.processed_count, summary.failed_count) == (1, 0)
    assert (out / "A.ttf").is_file()
    assert "  src: url('./A.ttf') format('truetype');\n" in (
        out / "font-face.css"
    ).read_text(encoding="utf-8")
    log = (out / "build.log").read_text(encoding="utf-8")
    assert "[WARN] Failed to convert A.ttf to WOFF2: cannot run woff2_compress" in log


def test_unparseable_dump_fails_font(font_dir, tmp_path):
    write_font(font_dir, "A.ttf")
    out = tmp_path / "output"
    pipeline = BatchPipeline(
        BuildConfig(font_dir=font_dir, output_dir=out),
        dumper=FakeDumper(malformed={"A.ttf"}),
        converter=FakeConverter(),
        clock=lambda: datetime(2024, 5, 6, 7, 8, 9),
    )

    summary = pipeline.run()

    assert pipeline.state is PipelineState.DONE
    assert (summary.processed_count, summary.failed_count) == (0, 1)
    assert not (out / "A.ttf").exists()
    assert not (out / "A.woff2").exists()
