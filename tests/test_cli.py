import io
import json

import pytest

from richtext.cli import main


def run(capsys, argv):
    code = main(argv)
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestCli:
    def test_renders_file_as_json(self, tmp_path, capsys):
        path = tmp_path / "note.md"
        path.write_text("hello **@alice** see [docs](http://d)\n", encoding="utf-8")

        code, out, _err = run(capsys, [str(path), "--mention", "8:14"])
        assert code == 0
        data = json.loads(out)
        assert data["text"] == "hello @alice see docs"
        assert {"range": [6, 12], "kind": "mention"} in data["highlights"]
        assert data["links"] == [{"range": [17, 21], "url": "http://d"}]

    def test_self_mention_flag(self, tmp_path, capsys):
        path = tmp_path / "note.md"
        path.write_text("hi @me", encoding="utf-8")

        code, out, _err = run(capsys, [str(path), "--self-mention", "3:6"])
        assert code == 0
        assert json.loads(out)["highlights"] == [{"range": [3, 6], "kind": "self_mention"}]

    def test_reads_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("*from stdin*"))
        code, out, _err = run(capsys, [])
        assert code == 0
        data = json.loads(out)
        assert data["text"] == "from stdin"
        assert data["highlights"][0]["style"] == {
            "bold": False,
            "italic": True,
            "underline": False,
        }

    def test_default_language_highlights_indented_code(self, tmp_path, capsys):
        path = tmp_path / "code.md"
        path.write_text("    import os\n", encoding="utf-8")

        code, out, _err = run(capsys, [str(path), "--default-language", "python"])
        assert code == 0
        kinds = {h["kind"] for h in json.loads(out)["highlights"]}
        assert "syntax" in kinds

    def test_fenced_languages_load_before_rendering(self, tmp_path, capsys):
        path = tmp_path / "code.md"
        path.write_text("```rust\nfn main() {}\n```\n\n```nope-lang\nx\n```\n", encoding="utf-8")

        code, out, _err = run(capsys, [str(path)])
        assert code == 0
        data = json.loads(out)
        assert data["text"] == "fn main() {}\n\nx"
        syntax = [h for h in data["highlights"] if h["kind"] == "syntax"]
        assert syntax[0]["range"] == [0, 2]

    def test_unknown_default_language(self, tmp_path, capsys):
        path = tmp_path / "code.md"
        path.write_text("text", encoding="utf-8")

        code, _out, err = run(capsys, [str(path), "--default-language", "nope-lang"])
        assert code == 1
        assert "unknown language" in err

    def test_missing_file(self, tmp_path, capsys):
        code, _out, err = run(capsys, [str(tmp_path / "missing.md")])
        assert code == 1
        assert "cannot read" in err

    def test_bad_range_is_a_usage_error(self, tmp_path, capsys):
        path = tmp_path / "note.md"
        path.write_text("x", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path), "--mention", "nope"])
        assert exc_info.value.code == 2
