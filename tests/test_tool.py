from __future__ import annotations

import pytest

from conftest import FakeOracle
from lproj_tm import tool
from lproj_tm.errors import FileWriteError, OracleFailure
from lproj_tm.store import LocalizationStore
from lproj_tm.tool_spec import validate_tool


NAME = "Localizable.strings"


def _run(tmp_path, lproj_root, *argv) -> int:
    return tool.main(["--project-root", str(tmp_path), "--root", str(lproj_root), *argv])


def test_no_command_prints_help(capsys):
    assert tool.main([]) == tool.EXIT_BAD
    assert "box_lproj_tm" in capsys.readouterr().out


def test_init_writes_config(tmp_path):
    assert tool.main(["--project-root", str(tmp_path), "init"]) == tool.EXIT_OK
    assert (tmp_path / "lproj_tm.yaml").exists()
    # 第二次：只校验
    assert tool.main(["--project-root", str(tmp_path), "init"]) == tool.EXIT_OK


def test_broken_config_is_bad_usage(tmp_path, lproj_root):
    (tmp_path / "lproj_tm.yaml").write_text("openai: 1\n", encoding="utf-8")
    assert _run(tmp_path, lproj_root, "scan") == tool.EXIT_BAD


def test_scan_lists_resources(tmp_path, lproj_root, capsys):
    assert _run(tmp_path, lproj_root, "scan") == tool.EXIT_OK
    out = capsys.readouterr().out
    assert NAME in out
    assert "de:2" in out
    assert "fr:3" in out


def test_missing_prints_sorted_keys(tmp_path, lproj_root, capsys):
    assert _run(tmp_path, lproj_root, "missing", "-r", NAME, "-l", "de") == tool.EXIT_OK
    lines = capsys.readouterr().out.splitlines()
    assert lines[:2] == ["farewell", "title"]


def test_resource_name_without_extension(tmp_path, lproj_root, capsys):
    assert _run(tmp_path, lproj_root, "missing", "-r", "Localizable", "-l", "fr") == tool.EXIT_OK
    assert capsys.readouterr().out.splitlines()[:3] == ["farewell", "greeting", "title"]


def test_unknown_resource_or_language_is_bad_usage(tmp_path, lproj_root):
    assert _run(tmp_path, lproj_root, "missing", "-r", "Nope.strings", "-l", "de") == tool.EXIT_BAD
    assert _run(tmp_path, lproj_root, "missing", "-r", NAME, "-l", "ja") == tool.EXIT_BAD


def test_export_prints_source_order(tmp_path, lproj_root, capsys):
    (lproj_root / "de.lproj" / NAME).write_text(
        '"title" = "Air Code";\n"greeting" = "Hallo";\n', encoding="utf-8"
    )
    assert _run(tmp_path, lproj_root, "export", "-r", NAME, "-l", "de") == tool.EXIT_OK
    out = capsys.readouterr().out
    assert out == '"greeting" = "Hallo";\n"title" = "Air Code";\n'


def test_remove_with_save(tmp_path, lproj_root):
    path = lproj_root / "de.lproj" / NAME
    assert _run(tmp_path, lproj_root, "remove", "-r", NAME, "-l", "de", "-k", "greeting", "--save") == tool.EXIT_OK
    assert path.read_text(encoding="utf-8") == ""


def test_remove_without_save_leaves_file(tmp_path, lproj_root):
    path = lproj_root / "de.lproj" / NAME
    before = path.read_bytes()
    assert _run(tmp_path, lproj_root, "remove", "-r", NAME, "-l", "de", "-k", "greeting") == tool.EXIT_OK
    assert path.read_bytes() == before


def test_translate_and_save(tmp_path, lproj_root, monkeypatch):
    oracle = FakeOracle()
    monkeypatch.setattr(tool, "_make_oracle", lambda cfg, args: oracle)

    code = _run(tmp_path, lproj_root, "translate", "-r", NAME, "-l", "de", "--save")

    assert code == tool.EXIT_OK
    assert [c[0] for c in oracle.calls] == ["farewell", "title"]
    assert (lproj_root / "de.lproj" / NAME).read_text(encoding="utf-8") == (
        '"farewell" = "de:Goodbye";\n'
        '"greeting" = "Hallo";\n'
        '"title" = "de:Air Code";'
    )


def test_translate_failure_saves_partial_work(tmp_path, lproj_root, monkeypatch):
    def handler(key, text, language):
        if key == "greeting":
            raise OracleFailure("quota exceeded", key=key, language=language)
        return text.upper()

    monkeypatch.setattr(tool, "_make_oracle", lambda cfg, args: FakeOracle(handler))

    code = _run(tmp_path, lproj_root, "translate", "-r", NAME, "-l", "fr", "--save")

    assert code == tool.EXIT_FAIL
    assert (lproj_root / "fr.lproj" / NAME).read_text(encoding="utf-8") == '"farewell" = "GOODBYE";'


def test_translate_without_api_key_is_bad_usage(tmp_path, lproj_root, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert _run(tmp_path, lproj_root, "translate", "-r", NAME, "-l", "de") == tool.EXIT_BAD


def test_save_failure_exit_code(tmp_path, lproj_root, monkeypatch):
    def fail(self, root, language):
        raise FileWriteError(None, "disk full")

    monkeypatch.setattr(LocalizationStore, "save", fail)
    code = _run(tmp_path, lproj_root, "remove", "-r", NAME, "-l", "de", "-k", "greeting", "--save")
    assert code == tool.EXIT_FAIL


@pytest.mark.parametrize("argv", [["missing"], ["translate", "-r", NAME]])
def test_missing_required_args(argv):
    with pytest.raises(SystemExit) as ei:
        tool.main(argv)
    assert ei.value.code == 2


def test_box_tool_metadata_is_valid():
    assert validate_tool(tool.BOX_TOOL) == []
    assert tool.BOX_TOOL["name"] == "box_lproj_tm"
    commands = {u.split()[1] for u in tool.BOX_TOOL["usage"]}
    assert commands == {"init", "scan", "missing", "translate", "export", "remove", "server"}


def test_validate_tool_reports_bad_fields():
    errors = validate_tool({"id": "", "name": "x", "category": "ios", "summary": "s",
                            "usage": [], "dependencies": [], "docs": "README.md",
                            "options": [{"flag": "--a"}], "examples": []})
    assert any("id" in e for e in errors)
    assert any("options[0].desc" in e for e in errors)


def test_help_lists_usage(capsys):
    with pytest.raises(SystemExit):
        tool.main(["--help"])
    out = capsys.readouterr().out
    assert "box_lproj_tm translate -r Localizable.strings -l de --save" in out
