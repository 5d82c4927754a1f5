import pytest

from folder2txt import __version__
from folder2txt.cli import main


def _main(*args):
    with pytest.raises(SystemExit) as exc:
        main(list(args))
    return exc.value.code


def test_writes_output_file(tmp_path, make_file, capsys):
    make_file("project/app.py", "print('hi')\n")
    make_file("project/.env", "SECRET=1")
    out = tmp_path / "result.txt"

    main(["--root", str(tmp_path / "project"), "--output", str(out)])

    text = out.read_text(encoding="utf-8")
    assert "File: app.py" in text
    assert "SECRET" not in text
    stdout = capsys.readouterr().out
    assert "Processed 1 files (0 skipped)" in stdout
    assert "Output saved to" in stdout


def test_output_inside_root_is_not_self_included(tmp_path, make_file):
    make_file("a.txt", "alpha")
    out = tmp_path / "output.txt"

    main(["--root", str(tmp_path), "-o", str(out)])
    first = out.read_text(encoding="utf-8")
    main(["--root", str(tmp_path), "-o", str(out)])

    assert out.read_text(encoding="utf-8") == first
    assert "File: output.txt" not in first


def test_threshold_and_include_all_flags(tmp_path, make_file):
    make_file("src/big.txt", "X" * 2048)
    out = tmp_path / "out.txt"

    assert _main("--root", str(tmp_path / "src"), "-o", str(out), "-t", "0.001") == 1
    assert not out.exists()

    main(["--root", str(tmp_path / "src"), "-o", str(out), "-t", "0.001", "--include-all"])
    assert "File: big.txt\nSize: 2 KB\n" in out.read_text(encoding="utf-8")


def test_empty_result_is_an_error(tmp_path, capsys):
    (tmp_path / "empty").mkdir()
    out = tmp_path / "output.txt"

    assert _main("--root", str(tmp_path / "empty"), "-o", str(out)) == 1

    assert "No content was generated" in capsys.readouterr().err
    assert not out.exists()


def test_missing_root_exits_nonzero(tmp_path, capsys):
    code = _main("--root", str(tmp_path / "nope"), "-o", str(tmp_path / "o.txt"))

    assert code == 1
    err = capsys.readouterr().err
    assert "Error:" in err
    assert "does not exist" in err


def test_negative_threshold_exits_nonzero(tmp_path, capsys):
    assert _main("--root", str(tmp_path), "-t", "-1") == 1
    assert "Threshold must be >= 0" in capsys.readouterr().err


def test_unwritable_output_exits_nonzero(tmp_path, make_file, capsys):
    make_file("src/a.txt", "a")
    out = tmp_path / "no" / "such" / "dir" / "out.txt"

    assert _main("--root", str(tmp_path / "src"), "-o", str(out)) == 1
    assert "Could not write to output file" in capsys.readouterr().err


def test_debug_reports_skips(tmp_path, make_file, capsys):
    make_file("src/a.txt", "a")
    make_file("src/node_modules/x.js", "x")
    make_file("src/yarn.lock", "lock")

    main(["--root", str(tmp_path / "src"), "-o", str(tmp_path / "o.txt"), "--debug"])

    stdout = capsys.readouterr().out
    assert "Skipping ignored item" in stdout
    assert "node_modules" in stdout
    assert "yarn.lock" in stdout
    assert "Added" in stdout


def test_version(capsys):
    assert _main("--version") == 0
    assert __version__ in capsys.readouterr().out


def test_bad_flag_is_usage_error(capsys):
    assert _main("--threshold", "lots") == 2
