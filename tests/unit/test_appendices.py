"""Tests for appending learnings sections to memory-bank documents."""

from __future__ import annotations

from workshop_pack.core.models import Appendix, AppendixAction, MirrorPair
from workshop_pack.scaffold.appendices import apply_appendices, refresh_mirrors
from workshop_pack.scaffold.mirror import mirror
from workshop_pack.scaffold.render import RenderMode, TemplateRenderer
from workshop_pack.core.models import ResolvedConfig

RUN_MODES = Appendix(
    target_name="systemPatterns.md",
    marker="## Learnings 2025-12-08 — Run Modes",
    payload="## Learnings 2025-12-08 — Run Modes\n\n- start on $API_PORT\n".encode(),
)
QUICKSTART = Appendix(
    target_name="techContext.md",
    marker="## Learnings 2025-12-08 — Quickstart",
    payload="## Learnings 2025-12-08 — Quickstart\n\n- run from repo root\n".encode(),
)
PAIRS = [
    MirrorPair("systemPatterns.md", "02-system-patterns.md"),
    MirrorPair("techContext.md", "03-tech-context.md"),
]


def _memory_bank(tmp_path, names=("systemPatterns.md", "techContext.md")):
    memory = tmp_path / "memory-bank"
    memory.mkdir()
    for name in names:
        (memory / name).write_text(f"# {name}\n\n")
    return memory


class TestApplyAppendices:
    def test_appends_to_end_of_document(self, tmp_path, log):
        memory = _memory_bank(tmp_path)

        results = apply_appendices([RUN_MODES, QUICKSTART], memory, log=log)
        assert [r.action for r in results] == [AppendixAction.APPENDED] * 2
        text = (memory / "systemPatterns.md").read_text()
        assert text.startswith("# systemPatterns.md\n\n")
        assert text.endswith("- start on $API_PORT\n")
        assert "Appended:" in log.stdout

    def test_second_application_is_noop(self, tmp_path):
        memory = _memory_bank(tmp_path)
        apply_appendices([RUN_MODES], memory)
        once = (memory / "systemPatterns.md").read_text()

        results = apply_appendices([RUN_MODES], memory)
        assert results[0].action is AppendixAction.PRESENT
        assert (memory / "systemPatterns.md").read_text() == once
        assert once.count(RUN_MODES.marker) == 1

    def test_marker_inside_other_text_does_not_count(self, tmp_path):
        memory = _memory_bank(tmp_path)
        (memory / "systemPatterns.md").write_text(f"see {RUN_MODES.marker} elsewhere\n")

        results = apply_appendices([RUN_MODES], memory)
        assert results[0].action is AppendixAction.APPENDED

    def test_non_utf8_operator_edit(self, tmp_path):
        memory = _memory_bank(tmp_path)
        (memory / "systemPatterns.md").write_bytes(b"edited caf\xe9\n")

        results = apply_appendices([RUN_MODES], memory)
        assert results[0].action is AppendixAction.APPENDED
        text = (memory / "systemPatterns.md").read_bytes()
        assert text.startswith(b"edited caf\xe9\n")
        assert text.endswith(RUN_MODES.payload)

        assert apply_appendices([RUN_MODES], memory)[0].action is AppendixAction.PRESENT

    def test_missing_target_warns(self, tmp_path, log):
        memory = _memory_bank(tmp_path, names=("techContext.md",))

        results = apply_appendices([RUN_MODES, QUICKSTART], memory, log=log)
        assert results[0].action is AppendixAction.MISSING_TARGET
        assert results[1].action is AppendixAction.APPENDED
        assert not (memory / "systemPatterns.md").exists()
        assert "learnings not appended" in log.stderr

    def test_two_sections_for_one_document_keep_order(self, tmp_path):
        memory = _memory_bank(tmp_path)
        later = Appendix(
            target_name="systemPatterns.md",
            marker="## Learnings 2025-12-09 — Images",
            payload="## Learnings 2025-12-09 — Images\n".encode(),
        )

        apply_appendices([RUN_MODES, later], memory)
        text = (memory / "systemPatterns.md").read_text()
        assert text.index(RUN_MODES.marker) < text.index(later.marker)

    def test_renderer_applies_to_payload(self, tmp_path):
        memory = _memory_bank(tmp_path)
        renderer = TemplateRenderer(RenderMode.SUBSTITUTE, ResolvedConfig(api_port=9000))

        apply_appendices([RUN_MODES], memory, renderer=renderer)
        assert "- start on 9000\n" in (memory / "systemPatterns.md").read_text()


class TestRefreshMirrors:
    def test_refreshes_only_changed_documents(self, tmp_path):
        memory = _memory_bank(tmp_path)
        rules = tmp_path / ".clinerules"
        mirror(PAIRS, memory, rules, force=False)

        results = apply_appendices([RUN_MODES], memory)
        refreshed = refresh_mirrors(results, PAIRS, memory, rules)
        assert list(refreshed) == ["02-system-patterns.md"]
        assert refreshed["02-system-patterns.md"].forced
        assert RUN_MODES.marker in (rules / "02-system-patterns.md").read_text()
        assert (rules / "03-tech-context.md").read_text() == "# techContext.md\n\n"

    def test_nothing_appended_refreshes_nothing(self, tmp_path):
        memory = _memory_bank(tmp_path)
        apply_appendices([RUN_MODES], memory)
        results = apply_appendices([RUN_MODES], memory)

        assert refresh_mirrors(results, PAIRS, memory, tmp_path / ".clinerules") == {}
        assert not (tmp_path / ".clinerules").exists()

    def test_creates_rules_directory(self, tmp_path):
        memory = _memory_bank(tmp_path)
        rules = tmp_path / ".clinerules"

        results = apply_appendices([QUICKSTART], memory)
        assert list(refresh_mirrors(results, PAIRS, memory, rules)) == ["03-tech-context.md"]
        assert (rules / "03-tech-context.md").is_file()
