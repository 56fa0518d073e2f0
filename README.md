# exdrill

`exdrill` drives a collection of small programming exercises. Each exercise is
a source file that is compiled with `rustc` (or checked through `cargo`) and,
depending on its mode, run as a program, run as a test harness, linted with
Clippy, or tested through a build-script crate. An exercise counts as finished
once it builds, passes, and its `I AM NOT DONE` marker comment has been
removed.

## Installation

```
pip install .
```

`rustc` must be on your `PATH`; `cargo` is needed for `clippy` and
`buildscript` exercises, and `git` for `reset`. Run every command from the
directory that holds `info.toml`, the list of exercises. Without `info.toml`,
or without a working `rustc --version`, every command except `--version`
prints a message and exits with status 1.

## The exercise list

`info.toml` holds one `[[exercises]]` table per exercise:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the I AM NOT DONE comment."
```

`mode` is one of `compile`, `test`, `clippy` or `buildscript`. An unknown mode
or a missing key raises `ValueError` when the list is loaded.

## Commands

```
exdrill                  # print the welcome text
exdrill --version        # print the version
exdrill watch            # re-verify whenever a .rs file under ./exercises changes
exdrill verify           # verify all exercises in order, stop at the first failure
exdrill run NAME         # compile and run (or test) one exercise; NAME may be "next"
exdrill reset NAME       # restore an exercise with "git stash -- <file>"
exdrill hint NAME        # print the hint of an exercise
exdrill list             # table of exercises and their status
exdrill lsp              # write rust-project.json for rust-analyzer
exdrill cicvverify       # run every exercise and write a JSON report
```

`--nocapture` before the subcommand shows test harness output.

`run`, `reset` and `hint` exit with status 1 when no exercise has the given
name; `run next` picks the first exercise that still has its marker.
`run` and `verify` exit with status 1 when an exercise fails.

`list` takes `--paths`/`-p`, `--names`/`-n`, `--filter`/`-f` with comma
separated patterns matched against names and paths, `--unsolved`/`-u` and
`--solved`/`-s`, and ends with a progress line.

`watch` takes `--success-hints` to show the hint of an exercise once it
passes. While watching, type `hint`, `clear`, `quit`, `help`, or `!<cmd>` to
run a command.

`lsp` writes `./rust-project.json` with one crate per `.rs` file under
`./exercises`. The standard library path comes from `RUST_SRC_PATH` if set,
otherwise from `rustc --print sysroot`.

`cicvverify` runs all exercises concurrently, always showing test output, and
writes its results to `.github/result/check_result.json`. That directory must
already exist.

Set `NO_EMOJI` in the environment for plain-text markers. Colours are used
when standard output is a terminal; `CLICOLOR_FORCE` (not `0`) forces them on
and `CLICOLOR=0` turns them off.

## Use from Python

```python
from exdrill.exercise import load_exercises
from exdrill.verify import verify, VerificationFailed

exercises = load_exercises("info.toml")
try:
    verify(exercises, (0, len(exercises)), verbose=False, success_hints=False)
except VerificationFailed as failure:
    print("stuck on", failure.exercise.name)
```

Other entry points:

- `exdrill.exercise`: `Exercise` with `compile()`, `state()` and
  `looks_done()`; `compile()` returns a `CompiledExercise` (a context manager
  that removes the temporary binary) or raises `CompilationFailed`; its
  `run()` raises `ExerciseFailed` on a non-zero exit.
- `exdrill.run`: `run(exercise, verbose)` and `reset(exercise)`, raising
  `RunFailed`.
- `exdrill.checklist`: `check_all(exercises, verbose, output_path)` returning
  an `ExerciseCheckList`.
- `exdrill.project`: `RustAnalyzerProject`.
- `exdrill.watch`: `watch(exercises, verbose, success_hints)` returning a
  `WatchStatus`.
- `exdrill.cli`: `main(argv)` returning the exit status.

## What it does not do

`exdrill` ships no exercises: it only drives those listed in an `info.toml`
you provide. Watch mode needs an `./exercises` directory and raises
`FileNotFoundError` without one.