import json
import subprocess
from pathlib import Path

import pytest

from exdrill import cli
from exdrill.cli import ExerciseNotFound, find_exercise, list_exercises, main
from exdrill.exercise import Exercise, Mode

SUCCESS_INFO = """
[[exercises]]
name = "compSuccess"
path = "compSuccess.rs"
mode = "compile"
hint = ""

[[exercises]]
name = "testSuccess"
path = "testSuccess.rs"
mode = "test"
hint = ""
"""

SUCCESS_FILES = {
    "compSuccess.rs": "fn main() {\n}\n",
    "testSuccess.rs": '#[test]\nfn passing() {\n    println!("THIS TEST TOO SHALL PASS");\n    assert!(true);\n}\n',
}

FAILURE_INFO = """
[[exercises]]
name = "compFailure"
path = "compFailure.rs"
mode = "compile"
hint = ""

[[exercises]]
name = "testFailure"
path = "testFailure.rs"
mode = "test"
hint = "Hello!"

[[exercises]]
name = "testNotPassed"
path = "testNotPassed.rs"
mode = "test"
hint = ""
"""

FAILURE_FILES = {
    "compFailure.rs": "fn main() {\n    let\n}\n",
    "compNoExercise.rs": "fn main() {\n}\n",
    "testFailure.rs": "#[test]\nfn passing() {\n    asset!(true);\n}\n",
    "testNotPassed.rs": "#[test]\nfn not_passing() {\n    assert!(false);\n}\n",
}

STATE_INFO = """
[[exercises]]
name = "pending_exercise"
path = "pending_exercise.rs"
mode = "compile"
hint = ""

[[exercises]]
name = "pending_test_exercise"
path = "pending_test_exercise.rs"
mode = "test"
hint = ""

[[exercises]]
name = "finished_exercise"
path = "finished_exercise.rs"
mode = "compile"
hint = ""
"""

STATE_FILES = {
    "finished_exercise.rs": "// fake_exercise\n\nfn main() {\n\n}\n",
    "pending_exercise.rs": "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n",
    "pending_test_exercise.rs": "// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n",
}


class FakeToolchain:
    def __init__(self):
        self.binaries = {}
        self.rustc_available = True

    @staticmethod
    def _done(args, code, stdout="", stderr=""):
        return subprocess.CompletedProcess(args, code, stdout.encode(), stderr.encode())

    def __call__(self, args, **kwargs):
        args = [str(a) for a in args]
        tool = args[0]
        if tool == "rustc":
            if "--version" in args:
                return self._done(args, 0 if self.rustc_available else 1)
            source_arg = args[2] if args[1] == "--test" else args[1]
            source = Path(source_arg).read_text()
            if "asset!" in source or "let\n}" in source:
                return self._done(args, 1, stderr="error: expected pattern")
            self.binaries[args[args.index("-o") + 1]] = source
            return self._done(args, 0)
        if tool in ("cargo", "git"):
            return self._done(args, 0)
        source = self.binaries[tool]
        if "assert!(false)" in source:
            return self._done(args, 101, stdout="test not_passing ... FAILED\n")
        phrase = "THIS TEST TOO SHALL PASS"
        stdout = phrase + "\n" if phrase in source and "--show-output" in args else ""
        return self._done(args, 0, stdout=stdout)


@pytest.fixture
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def _enter(root, monkeypatch, info, files):
    (root / "info.toml").write_text(info)
    for name, text in files.items():
        (root / name).write_text(text)
    monkeypatch.chdir(root)


@pytest.fixture
def success_dir(tmp_path, monkeypatch, toolchain):
    _enter(tmp_path, monkeypatch, SUCCESS_INFO, SUCCESS_FILES)
    return tmp_path


@pytest.fixture
def failure_dir(tmp_path, monkeypatch, toolchain):
    _enter(tmp_path, monkeypatch, FAILURE_INFO, FAILURE_FILES)
    return tmp_path


@pytest.fixture
def state_dir(tmp_path, monkeypatch, toolchain):
    _enter(tmp_path, monkeypatch, STATE_INFO, STATE_FILES)
    return tmp_path


def test_runs_without_arguments(success_dir, capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert cli.WELCOME in out
    assert cli.DEFAULT_OUT in out


def test_fails_when_in_wrong_dir(tmp_path, monkeypatch, toolchain, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert "must be run from" in capsys.readouterr().out


def test_fails_without_rustc(success_dir, toolchain, capsys):
    toolchain.rustc_available = False
    assert main(["list"]) == 1
    assert "We cannot find `rustc`." in capsys.readouterr().out


def test_version(capsys):
    assert main(["-v"]) == 0
    assert capsys.readouterr().out == "v5.5.1\n"


def test_verify_all_success(success_dir):
    assert main(["verify"]) == 0


def test_verify_fails_if_some_fails(failure_dir):
    assert main(["verify"]) == 1


def test_run_single_compile_success(success_dir):
    assert main(["run", "compSuccess"]) == 0


def test_run_single_compile_failure(failure_dir):
    assert main(["run", "compFailure"]) == 1


def test_run_single_test_success(success_dir):
    assert main(["run", "testSuccess"]) == 0


def test_run_single_test_failure(failure_dir):
    assert main(["run", "testFailure"]) == 1


def test_run_single_test_not_passed(failure_dir):
    assert main(["run", "testNotPassed.rs"]) == 1


def test_run_not_passing_test_by_name(failure_dir):
    assert main(["run", "testNotPassed"]) == 1


def test_run_single_test_no_filename(failure_dir):
    with pytest.raises(SystemExit) as exc:
        main(["run"])
    assert exc.value.code == 1


def test_run_single_test_no_exercise(failure_dir, capsys):
    assert main(["run", "compNoExercise.rs"]) == 1
    assert "No exercise found for 'compNoExercise.rs'!" in capsys.readouterr().out


def test_reset_single_exercise(success_dir, monkeypatch):
    calls = []

    def fake_popen(args, **kwargs):
        calls.append([str(a) for a in args])

    monkeypatch.setattr(subprocess, "Popen", fake_popen)
    assert main(["reset", "compSuccess"]) == 0
    assert calls == [["git", "stash", "--", "compSuccess.rs"]]


def test_reset_no_exercise(success_dir, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["reset"])
    assert exc.value.code == 1
    assert "required" in capsys.readouterr().err


def test_get_hint_for_single_test(failure_dir, capsys):
    assert main(["hint", "testFailure"]) == 0
    assert capsys.readouterr().out == "Hello!\n"


def test_run_compile_exercise_does_not_prompt(state_dir, capsys):
    assert main(["run", "pending_exercise"]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_test_exercise_does_not_prompt(state_dir, capsys):
    assert main(["run", "pending_test_exercise"]) == 0
    assert "I AM NOT DONE" not in capsys.readouterr().out


def test_run_single_test_success_with_output(success_dir, capsys):
    assert main(["--nocapture", "run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_run_single_test_success_without_output(success_dir, capsys):
    assert main(["run", "testSuccess"]) == 0
    assert "THIS TEST TOO SHALL PASS" not in capsys.readouterr().out


def test_list_no_pending(success_dir, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Pending" not in out
    assert "compSuccess" in out


def test_list_both_done_and_pending(state_dir, capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "Done" in out and "Pending" in out


def test_list_solved_only(state_dir, capsys):
    assert main(["list", "--solved"]) == 0
    assert "Pending" not in capsys.readouterr().out


def test_list_unsolved_only(state_dir, capsys):
    assert main(["list", "--unsolved"]) == 0
    assert "Done" not in capsys.readouterr().out


def test_cicvverify_records_results(success_dir):
    (success_dir / ".github" / "result").mkdir(parents=True)
    assert main(["--nocapture", "cicvverify"]) == 0
    data = json.loads((success_dir / ".github" / "result" / "check_result.json").read_text())
    assert data["statistics"]["total_exercations"] == 2
    assert data["statistics"]["total_succeeds"] == 2
    assert sorted(e["name"] for e in data["exercises"]) == ["compSuccess", "testSuccess"]


def _exercises(root):
    names = {"pending_exercise", "finished_exercise"}
    for name in names:
        (root / f"{name}.rs").write_text(STATE_FILES[f"{name}.rs"])
    return [
        Exercise(name="finished_exercise", path=root / "finished_exercise.rs", mode=Mode.COMPILE, hint=""),
        Exercise(name="pending_exercise", path=root / "pending_exercise.rs", mode=Mode.COMPILE, hint=""),
    ]


def test_find_exercise_by_name(tmp_path):
    exercises = _exercises(tmp_path)
    assert find_exercise("pending_exercise", exercises) is exercises[1]


def test_find_next_exercise(tmp_path):
    exercises = _exercises(tmp_path)
    assert find_exercise("next", exercises) is exercises[1]


def test_find_next_when_all_done(tmp_path):
    exercises = _exercises(tmp_path)[:1]
    with pytest.raises(ExerciseNotFound, match="Congratulations"):
        find_exercise("next", exercises)


def test_find_missing_exercise(tmp_path):
    with pytest.raises(ExerciseNotFound, match="No exercise found for 'nope'!"):
        find_exercise("nope", _exercises(tmp_path))


def test_list_names_with_filter(tmp_path, capsys):
    exercises = _exercises(tmp_path)
    import io
    out = io.StringIO()
    done = list_exercises(exercises, names=True, filter_text="PENDING", out=out)
    assert done == 1
    lines = out.getvalue().splitlines()
    assert lines[0] == "pending_exercise"
    assert lines[1] == "Progress: You completed 1 / 2 exercises (50.0 %)."


def test_list_paths(tmp_path):
    import io
    exercises = _exercises(tmp_path)
    out = io.StringIO()
    list_exercises(exercises, paths=True, out=out)
    lines = out.getvalue().splitlines()
    assert lines[:2] == [str(e.path) for e in exercises]


def test_list_empty_filter_shows_nothing(tmp_path):
    import io
    out = io.StringIO()
    list_exercises(_exercises(tmp_path), names=True, filter_text="", out=out)
    assert out.getvalue().splitlines() == ["Progress: You completed 1 / 2 exercises (50.0 %)."]


def test_list_header(tmp_path):
    import io
    out = io.StringIO()
    list_exercises(_exercises(tmp_path), out=out)
    header = out.getvalue().splitlines()[0]
    assert header == f"{'Name':<17}\t{'Path':<46}\t{'Status':<7}"


def test_rustc_exists_uses_rustc(toolchain):
    assert cli.rustc_exists() is True
    toolchain.rustc_available = False
    assert cli.rustc_exists() is False