from __future__ import annotations

import codecs
import json

import pytest

from cheat_check import pipeline
from cheat_check.cli import build_parser, filter_paths, main
from cheat_check.comparator import ComparisonOutcome
from cheat_check.errors import ComparisonTimeout


@pytest.fixture
def class_dir(tmp_path):
    (tmp_path / "alice.py").write_text("print('hello world')\n")
    (tmp_path / "bob.py").write_text("print('hello world')\r\n")
    (tmp_path / "carol.py").write_text("import this\n")
    return tmp_path


def run(*args):
    return main([*map(str, args), "--no-progress", "--threads"])


def test_reports_similar_pair(class_dir, capsys):
    assert run(class_dir / "*.py", "-s", "0.9", "-j", "2") == 0
    out = capsys.readouterr().out
    assert "1 of 3 pairs at or above 0.9" in out
    assert "alice.py" in out and "bob.py" in out


def test_needs_two_files(class_dir):
    assert run(class_dir / "alice.py", "-s", "0.5") == 1
    assert run(class_dir / "nothing*.txt", "-s", "0.5") == 1


def test_sensitivity_is_required(class_dir):
    with pytest.raises(SystemExit) as exc:
        main([str(class_dir / "*.py")])
    assert exc.value.code == 2


def test_out_of_range_sensitivity_is_rejected(class_dir):
    with pytest.raises(SystemExit) as exc:
        run(class_dir / "*.py", "-s", "1.5")
    assert exc.value.code == 2


def test_overlapping_globs_count_files_once(class_dir):
    paths = filter_paths([str(class_dir / "*.py"), str(class_dir / "alice.py")])
    assert [p.name for p in paths] == ["alice.py", "bob.py", "carol.py"]


def test_literal_paths_need_no_glob(class_dir, tmp_path):
    paths = filter_paths([str(class_dir / "carol.py"), str(class_dir / "alice.py"), str(tmp_path / "gone.py")])
    assert [p.name for p in paths] == ["carol.py", "alice.py"]


def test_recursive_glob(class_dir):
    (class_dir / "sub").mkdir()
    (class_dir / "sub" / "dave.py").write_text("pass\n")
    paths = filter_paths([str(class_dir / "**" / "*.py")])
    assert sorted(p.name for p in paths) == ["alice.py", "bob.py", "carol.py", "dave.py"]


def test_template_files_are_skipped(class_dir, capsys):
    template = class_dir / "starter.txt"
    template.write_text("print('hello world')\n")
    assert run(class_dir / "*.py", "-s", "0.0", "-t", template) == 0
    out = capsys.readouterr().out
    assert "0 of 0 pairs" in out


def test_timed_out_report_lists_template_skips(class_dir, tmp_path, monkeypatch):
    def stalled(docs, *args, **kwargs):
        raise ComparisonTimeout(1.0, ComparisonOutcome(documents=len(list(docs))))

    monkeypatch.setattr(pipeline, "compare", stalled)
    template = tmp_path / "starter.txt"
    template.write_text("import this\n")
    report = tmp_path / "report.json"
    code = run(class_dir / "*.py", "-s", "0.5", "-t", template, "--timeout", "1", "--json", report)
    assert code == 1
    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["skipped"] == [str(class_dir / "carol.py")]
    assert data["summary"]["timed_out"]


def test_writes_reports_and_comparison_log(class_dir, tmp_path):
    out = tmp_path / "out"
    code = run(
        class_dir / "*.py", "-s", "0.9", "-D",
        "--json", out / "report.json", "--csv", out / "report.csv",
        "--html", out / "report.html", "--log", out / "comparisons.log",
    )
    assert code == 0
    data = json.loads((out / "report.json").read_text(encoding="utf-8"))
    assert data["summary"]["metric"] == "damerau"
    assert data["summary"]["pairs_compared"] == 3
    assert len(data["pairs"]) == 1
    assert (out / "report.csv").read_text(encoding="utf-8").startswith("rank,first,second,score")
    assert (out / "report.html").exists()
    assert len((out / "comparisons.log").read_text(encoding="utf-8").splitlines()) == 3


def test_unreadable_file_is_reported_not_fatal(class_dir, capsys):
    (class_dir / "broken.py").write_bytes(codecs.BOM_UTF16_LE + b"\x00")
    assert run(class_dir / "*.py", "-s", "0.9") == 0
    out = capsys.readouterr().out
    assert "3 comparison(s) failed" in out


def test_fail_fast_exits_nonzero(class_dir):
    (class_dir / "broken.py").write_bytes(codecs.BOM_UTF16_LE + b"\x00")
    assert run(class_dir / "*.py", "-s", "0.9", "--fail-fast") == 1


def test_parser_defaults():
    args = build_parser().parse_args(["-s", "0.7", "a", "b"])
    assert args.jobs == 0
    assert args.files == ["a", "b"]
    assert not args.damerau and args.template is None
