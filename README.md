# rustdrills

A command-line companion for working through a collection of small Rust
exercises. Each exercise is a `.rs` file that fails to compile or fails its
tests until you fix it. `rustdrills` compiles and runs the exercises with
`rustc`, `cargo` and Clippy. It shows you what went wrong and moves on to the
next exercise once you are done.

## Requirements

- Python 3.11 or later
- A Rust toolchain with `rustc` on your `PATH`. Clippy and build-script
  exercises also need `cargo` and Clippy.

## Installing

```
pip install .
```

This installs the `rustdrills` command.

## Getting started

Run every command from the exercise directory, which is the one that holds
`info.toml`. That file lists the exercises in order. Each `[[exercises]]` entry
gives four fields:

- `name`: the exercise's name
- `path`: the path to the exercise file
- `mode`: one of `compile`, `test`, `clippy` or `buildscript`
- `hint`: the hint text

```
rustdrills watch
```

Watch mode checks the exercises in order and stops at the first one that is
not finished. When a `.rs` file under `./exercises` is created or changed,
watch mode checks again. It starts with the exercise that changed and then
goes on to the exercises that are still pending.

An exercise counts as finished when all three of these hold:

- it compiles
- it runs or passes its tests
- its source has no line that starts with a `//` or `///` comment reading
  `I AM NOT DONE`

Inside watch mode you can type these commands:

- `hint` prints the hint for the exercise that last failed
- `clear` clears the screen
- `quit` leaves watch mode
- `!<cmd>` runs a command, for example `!rustc --explain E0381`
- `help` lists these commands

## Commands

```
rustdrills                     # welcome text and a short introduction
rustdrills verify              # check all exercises in order
rustdrills watch               # check again whenever a file changes
rustdrills watch --success-hints
rustdrills run <name>          # compile and run or test one exercise
rustdrills run next            # the first exercise not yet done
rustdrills hint <name>         # print an exercise's hint
rustdrills reset <name>        # start "git stash -- <path>" for the exercise
rustdrills list                # names, paths and status of all exercises
rustdrills list --paths        # only the paths (-p)
rustdrills list --names        # only the names (-n)
rustdrills list --filter a,b   # exercises whose name or path contains a or b (-f)
rustdrills list --solved       # only the finished ones (-s)
rustdrills list --unsolved     # only the unfinished ones (-u)
rustdrills lsp                 # write rust-project.json for rust-analyzer
rustdrills cicvverify          # run every exercise and write a JSON report
rustdrills --version           # also -v
```

Put `--nocapture` before the subcommand to show the output of test
exercises, for example `rustdrills --nocapture run <name>`.

The command exits with status 1 in these cases:

- `info.toml` is missing from the current directory
- `rustc` cannot be run
- the arguments are wrong
- an exercise is not found, or `run next` finds nothing left to do
- the exercise that was run or verified fails

`list` ends with a progress line that gives how many exercises are done.

`cicvverify` runs all the exercises at the same time on a thread pool and
prints each result as it comes in. It then writes
`.github/result/check_result.json`, which lists each exercise's result and
counts the successes, the failures and the total time in seconds.

`lsp` writes `./rust-project.json` with one crate for each `.rs` file under
`./exercises`. The library source path in that file comes from `RUST_SRC_PATH`
if that variable is set. Otherwise it comes from `rustc --print sysroot`.

Set `NO_EMOJI` in the environment for plain symbols instead of emoji.

## Files it writes

- Compiled exercises are built as `./temp_<pid>_<thread>` in the current
  directory and removed afterwards.
- Clippy exercises write `./exercises/clippy/Cargo.toml`.
- Build-script exercises write `./exercises/tests/Cargo.toml`.

## Using it from Python

- `rustdrills.exercise.load_exercises(path)` reads an `info.toml` file into a
  list of `Exercise` objects.
- `Exercise.state()` returns `Done()` or `Pending(context)`. The context holds
  the `ContextLine`s around the marker.
- `Exercise.looks_done()` reports whether the marker is gone.
- `Exercise.compile()` returns a `CompiledExercise`, which you can use as a
  context manager. If compiling fails, it raises `CompilationError`.
- `CompiledExercise.run()` returns an `ExerciseOutput`. If the run fails, it
  raises `RunError`.
- `rustdrills.verify.verify(exercises, (done, total))` raises `ExerciseFailed`
  at the first exercise that is not finished.
- `rustdrills.run.run(exercise)` also raises `ExerciseFailed` when the exercise
  fails.

## What it does not do

The package contains no exercises. You need an exercise directory with its own
`info.toml` and `.rs` files. `reset` only starts `git stash`, so it needs the
exercise directory to be a git repository, and it does not wait for `git` to
finish.