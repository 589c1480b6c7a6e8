# tinyshell

A small interactive command shell. It reads a line, splits it into tokens,
checks the syntax, expands variables and runs the commands, either as
builtins inside the shell or as external programs.

## Features

- Single and double quotes. `$NAME` and `$?` are expanded outside quotes and
  inside double quotes, not inside single quotes. A variable with no value
  expands to nothing.
- Pipelines: `ls | grep py | wc -l`. The exit status is that of the last
  command.
- Redirections: `<`, `>`, `>>`, and here-documents with `<<`. Here-document
  lines are kept in temporary files under `/tmp` that are removed once the
  line has run. A quoted delimiter turns off `$` expansion inside the
  here-document.
- Builtins: `echo` (with `-n`), `cd` (`~` or no argument goes to `HOME`),
  `pwd`, `export`, `unset`, `env`, `exit`. A builtin on its own changes the
  shell's state; a builtin inside a pipeline runs on a copy, so for example
  `export A=1 | cat` leaves `A` unset.
- Syntax errors (unclosed quotes, misplaced `|`, redirections without a
  target) are reported on standard error and set the status to 258.
- A command that cannot be found gives status 127; one that is found but is
  not executable, or is a directory, gives 126.
- A program killed by a signal gives status 128 plus the signal number;
  status 131 also prints `Quit: 3`.

## Installing

```
pip install .
```

## Running

```
tinyshell
```

The shell takes no arguments; given any, it exits at once with status 1. It
starts with a copy of the process environment, prompts for input until end
of input (Ctrl-D), then prints `exit` and leaves with the status of the last
command. Ctrl-C at the prompt starts a fresh line. Line editing and history
come from Python's `readline` module when it is available.

```
$ echo "hello $USER" > greeting.txt
$ cat < greeting.txt | tr a-z A-Z
$ cat << EOF
> home is $HOME
> EOF
$ export NAME=value
$ env | grep NAME
$ exit 3
```

## Using it from Python

```python
from tinyshell.environment import Environment, ShellState
from tinyshell.cli import run_line

state = ShellState(env=Environment.from_entries(["PATH=/usr/bin:/bin"]))
run_line(state, "echo hi | tr a-z A-Z", input)
print(state.exit_status)
```

`run_line` raises `tinyshell.builtins.ShellExit` when the line runs `exit`;
its `status` attribute holds the requested status. `tinyshell.cli.repl`
runs lines from any `read_line(prompt)` function until it returns `None`,
raises `EOFError`, or `exit` is run.

The pieces can also be used alone:

- `tinyshell.lexer.tokenize` turns a line into `Element` tokens.
- `tinyshell.syntax.check_syntax` validates them and raises
  `ShellSyntaxError`.
- `tinyshell.parser.parse` builds the list of `Command` objects, expanding
  variables from a `ShellState`.
- `tinyshell.executor.execute` runs them; `tinyshell.executor.resolve_command`
  finds the program for a name and raises `CommandError` when there is none.

## What it does not do

Only the features above are understood. `;`, `&&`, `||`, `&`, wildcards,
parentheses and backslashes have no special meaning and are passed on as
ordinary text. There is no job control and no way to run a script file: the
shell only reads commands interactively.

## Tests

```
pip install ".[test]"
pytest
```