"""Tests for the subprocess wrapper and its per-command logs."""

import sys
from pathlib import Path

from gmxpipe.engine import CommandRunner


def test_answers_are_piped_one_per_line(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path, log_dir=tmp_path / "logs")
    script = "import sys; data = sys.stdin.read(); print(repr(data))"

    res = runner.run([sys.executable, "-c", script], stdin=["Protein", "System"], log_name="trjconv")

    assert res.ok
    assert res.stdout.strip() == repr("Protein\nSystem\n")
    assert res.log_path == tmp_path / "logs" / "01-trjconv.log"
    log = res.log_path.read_text()
    assert log.startswith(f"CMD: {sys.executable} -c")
    assert "RC: 0" in log
    assert "--- STDIN ---\nProtein\nSystem\n" in log


def test_no_answers_means_empty_stdin(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path)
    res = runner.run([sys.executable, "-c", "import sys; print(len(sys.stdin.read()))"])
    assert res.stdout.strip() == "0"
    assert res.log_path is None


def test_nonzero_exit_is_returned_not_raised(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path, log_dir=tmp_path)
    res = runner.run([sys.executable, "-c", "import sys; sys.stderr.write('boom\\n'); sys.exit(4)"])
    assert res.returncode == 4
    assert not res.ok
    assert res.stderr.strip() == "boom"
    assert "RC: 4" in res.log_path.read_text()


def test_undecodable_output_is_replaced(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path, log_dir=tmp_path)
    script = "import sys; sys.stdout.buffer.write(b'Step \\xff\\xfe done\\n'); sys.stderr.buffer.write(b'\\x9c\\n')"

    res = runner.run([sys.executable, "-c", script], log_name="mdrun")

    assert res.ok
    assert res.stdout.startswith("Step \ufffd\ufffd done")
    assert res.stderr.strip() == "\ufffd"
    assert "Step \ufffd\ufffd done" in res.log_path.read_text(encoding="utf-8")


def test_runs_in_workdir(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path)
    res = runner.run([sys.executable, "-c", "import os; print(os.getcwd())"])
    assert Path(res.stdout.strip()).resolve() == tmp_path.resolve()


def test_missing_executable(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path)
    res = runner.run(["definitely-not-a-real-gmx-binary", "mdrun"])
    assert res.returncode == 127
    assert "command not found" in res.stderr


def test_dry_run_executes_nothing(tmp_path: Path) -> None:
    marker = tmp_path / "ran"
    runner = CommandRunner(workdir=tmp_path, log_dir=tmp_path / "logs", dry_run=True)

    res = runner.run([sys.executable, "-c", f"open({str(marker)!r}, 'w').close()"], log_name="touch")

    assert res.ok and res.skipped
    assert not marker.exists()
    assert (tmp_path / "logs" / "01-touch.log").exists()


def test_history_numbers_logs(tmp_path: Path) -> None:
    runner = CommandRunner(workdir=tmp_path, log_dir=tmp_path)
    first = runner.run([sys.executable, "-c", "pass"], log_name="a")
    second = runner.run([sys.executable, "-c", "pass"], log_name="b")
    assert [first.log_path.name, second.log_path.name] == ["01-a.log", "02-b.log"]
    assert len(runner.history) == 2
