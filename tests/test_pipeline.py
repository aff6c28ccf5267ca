"""Tests for per-file review context preparation."""

import asyncio
from pathlib import Path

import pytest

from diff_context import pipeline as pipeline_module
from diff_context.context.types import ExtractionResult
from diff_context.core.config import ContextConfig
from diff_context.pipeline import prepare_file_context, prepare_files

APP_JS = (
    "function greet(name) {\n"  # 1
    "  const msg = `hi ${name}`;\n"  # 2
    "  return msg;\n"  # 3
    "}\n"  # 4
)

APP_DIFF = (
    "diff --git a/src/app.js b/src/app.js\n"
    "--- a/src/app.js\n"
    "+++ b/src/app.js\n"
    "@@ -1,3 +1,4 @@\n"
    " function greet(name) {\n"
    "-  return `hi ${name}`;\n"
    "+  const msg = `hi ${name}`;\n"
    "+  return msg;\n"
    " }\n"
)

DELETE_ONLY_DIFF = "--- a/src/app.js\n+++ b/src/app.js\n@@ -1,2 +1,1 @@\n keep\n-drop\n"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.js").write_text(APP_JS, encoding="utf-8")
    return tmp_path


class TestPrepareFileContext:
    """Tests for prepare_file_context()."""

    @pytest.mark.asyncio
    async def test_numbered_diff_and_ast_context(self, project: Path) -> None:
        config = ContextConfig(project_root=project)
        context = await prepare_file_context("src/app.js", APP_DIFF, config)
        assert context.added_lines == frozenset({2, 3})
        assert "( , 2) +  const msg" in context.extended_diff
        assert context.ast_context is not None
        assert [s.name for s in context.ast_context.sections] == ["greet"]

    @pytest.mark.asyncio
    async def test_user_content_includes_ast_block(self, project: Path) -> None:
        config = ContextConfig(project_root=project)
        context = await prepare_file_context("src/app.js", APP_DIFF, config)
        assert context.user_content.startswith("## new_path: src/app.js")
        assert "## Section 1: greet" in context.user_content

    @pytest.mark.asyncio
    async def test_ast_disabled(self, project: Path) -> None:
        config = ContextConfig(project_root=project, enable_ast=False)
        context = await prepare_file_context("src/app.js", APP_DIFF, config)
        assert context.ast_context is None
        assert context.added_lines == frozenset({2, 3})

    @pytest.mark.asyncio
    async def test_deletions_only_skip_ast(self, project: Path) -> None:
        config = ContextConfig(project_root=project)
        context = await prepare_file_context("src/app.js", DELETE_ONLY_DIFF, config)
        assert context.added_lines == frozenset()
        assert context.ast_context is None

    @pytest.mark.asyncio
    async def test_to_dict(self, project: Path) -> None:
        config = ContextConfig(project_root=project)
        data = (await prepare_file_context("src/app.js", APP_DIFF, config)).to_dict()
        assert data["file_path"] == "src/app.js"
        assert data["added_lines"] == [2, 3]
        assert data["ast_context"]["sections"][0]["name"] == "greet"  # type: ignore[index]


class TestPrepareFiles:
    """Tests for prepare_files()."""

    @pytest.mark.asyncio
    async def test_keyed_by_path(self, project: Path) -> None:
        config = ContextConfig(project_root=project)
        files = {"src/app.js": APP_DIFF, "logo.png": "@@ -0,0 +1 @@\n+x\n"}
        contexts = await prepare_files(files, config)
        assert list(contexts) == ["src/app.js", "logo.png"]
        assert contexts["logo.png"].ast_context is not None
        assert contexts["logo.png"].ast_context.errors == ["unsupported_file_type"]

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(
        self, project: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        in_flight = 0
        peak = 0

        async def fake_extract(file_path, added_lines, project_root, config):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return ExtractionResult()

        monkeypatch.setattr(pipeline_module, "extract_ast_context", fake_extract)
        config = ContextConfig(project_root=project, max_parallel=2)
        files = {f"src/f{i}.js": "@@ -0,0 +1 @@\n+x\n" for i in range(6)}
        contexts = await prepare_files(files, config)
        assert len(contexts) == 6
        assert peak == 2

    @pytest.mark.asyncio
    async def test_empty(self, project: Path) -> None:
        assert await prepare_files({}, ContextConfig(project_root=project)) == {}
