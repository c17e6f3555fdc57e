# rustdrill

A command-line companion for working through a collection of small Rust
exercises. It compiles each exercise with `rustc` (or runs `cargo clippy` /
`cargo test` where the exercise asks for it), shows the errors, and tracks
which exercises still carry an `I AM NOT DONE` marker.

## Requirements

- Python 3.11 or later
- A Rust toolchain with `rustc` on your `PATH` (`cargo` too for clippy and
  build-script exercises)
- `git`, for `rustdrill reset`

## Installation

```
pip install .
```

## Usage

Run every command from the directory that holds `info.toml`, the list of
exercises. Each `[[exercises]]` entry has a `name`, a `path`, a `mode`
(`compile`, `test`, `clippy` or `buildscript`) and a `hint`:

```toml
[[exercises]]
name = "intro1"
path = "exercises/intro/intro1.rs"
mode = "compile"
hint = "Remove the marker comment to move on."
```

Commands:

```
rustdrill                    # welcome text and a short introduction
rustdrill --version          # print the version
rustdrill watch              # re-verify exercises as you edit them
rustdrill watch --success-hints
rustdrill verify             # verify all exercises in order
rustdrill run <name>         # compile and run (or test) one exercise
rustdrill run next           # run the first exercise not yet done
rustdrill hint <name>        # show the hint for an exercise
rustdrill reset <name>       # stash your changes to an exercise with git
rustdrill list               # table of exercises with Done/Pending status
rustdrill list --paths --unsolved
rustdrill list --filter iter,vec
rustdrill lsp                # write rust-project.json for rust-analyzer
rustdrill cicvverify         # grade every exercise, write a JSON report
```

Put `--nocapture` before the subcommand to print the output of test
exercises. `list` accepts `-p/--paths`, `-n/--names`, `-f/--filter`
(comma-separated patterns matched against names and paths),
`-u/--unsolved` and `-s/--solved`.

The command exits with status 1 when it is not started next to `info.toml`,
when `rustc` cannot be found, when an exercise name is unknown, when a run or
verification fails, and on usage errors; otherwise with 0.

### Watch mode

`rustdrill watch` verifies the exercises in order and stops at the first one
that is not done. After that, every time a `.rs` file under `./exercises`
changes, the changed exercise and then the remaining unfinished ones are
checked again. While it runs you can type:

- `hint` – print the current exercise's hint
- `clear` – clear the screen
- `quit` – leave watch mode
- `!<cmd>` – run a command, e.g. `!rustc --explain E0381`
- `help` – list these commands

### Marking an exercise as done

An exercise counts as pending while its source contains a comment line such
as `// I AM NOT DONE`. Once it compiles and passes, delete that line to move
on. When an exercise passes but still has the marker, the lines around the
marker are shown.

### Environment

- `NO_EMOJI` replaces emoji in messages with plain symbols.
- `RUST_SRC_PATH` overrides the standard-library source path that `lsp`
  writes; otherwise it is found with `rustc --print sysroot`.

### Grading report

`rustdrill cicvverify` runs every exercise one after another, prints a line
per result, and writes `.github/result/check_result.json` with the
per-exercise results and totals for successes, failures and elapsed seconds.
The `.github/result` directory must already exist.

## Using it from Python

```python
from rustdrill.exercise import load_exercises
from rustdrill.verify import VerificationFailed, verify

exercises = load_exercises("info.toml")
print([e.name for e in exercises if not e.looks_done()])

try:
    verify(exercises, (0, len(exercises)))
except VerificationFailed as failed:
    print("next up:", failed.exercise.name)
```

`Exercise.compile()` raises `CompileError` and `CompiledExercise.run()`
raises `RunError`, each carrying the process output; `rustdrill.run.run()`
and `reset()` raise `ExerciseRunFailed`.

## What it does not do

rustdrill does not ship any exercises or an `info.toml`; it works on a set of
exercises you already have. It does not create missing directories for the
files it writes, and `cicvverify` grades exercises one at a time rather than
in parallel.