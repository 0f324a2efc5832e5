# rebos

Declarative, repeatable package management for any Linux distribution.
You describe what should be installed in TOML files and commit that
description as a *generation*. Building a generation works out what to add
and what to remove, then calls your own package-manager commands.

Rebos runs every manager command and hook through `bash -c`, and keeps
generations in a git repository. Both `bash` and `git` must be on `PATH`.

## Installation

    pip install .

This installs the `rebos` command. It refuses to run when `$USER` is
`root`; run it as your normal user. The command exits with status 0 on
success and 1 on any failure.

## Getting started

    rebos setup           # create the state directories
    rebos config init     # create a starter configuration
    rebos config check    # validate the configuration

Every command except `setup` fails until `rebos setup` has been run.

If a state directory exists at the old location `~/.rebos-base`, it is
moved to the current state location on the next run (replacing whatever
was there).

### Configuration files

The configuration lives in `$XDG_CONFIG_HOME/rebos` (by default
`~/.config/rebos`):

- `gen.toml` – the main generation file
- `machines/<hostname>/gen.toml` – items for this machine only
- `imports/<name>.toml` – files pulled in through `imports = [...]`
  (imports may themselves import; each name is read once per round)
- `managers/<name>.toml` – how each manager adds, removes, syncs,
  upgrades and lists items
- `hooks/` – scripts run before and after each stage
- `manager_order.toml` – optional `begin` and `end` lists fixing the
  order in which managers are applied

`rebos config init` creates the directories and any of `gen.toml`,
the machine `gen.toml`, `managers/system.toml`, `managers/flatpak.toml`
and `managers/cargo.toml` that do not exist yet.

A generation file lists items for each manager; unknown fields are
rejected:

```toml
imports = ["intensive_apps"]

[managers.system]
items = ["git", "htop"]

[managers.flatpak]
items = ["com.github.tchx84.Flatseal"]
```

A manager file gives the shell commands to use. `#:?` stands for the
item names. `add`, `remove`, `plural_name`, `hook_name` and the
`[config]` table are required; `sync`, `upgrade` and `list` are optional:

```toml
add = "sudo apt install #:?"
remove = "sudo apt remove #:?"
sync = "sudo apt update"
upgrade = "sudo apt upgrade"
list = "apt-mark showmanual"
plural_name = "system packages"
hook_name = "system_packages"

[config]
many_args = true   # pass all items in one command (default true)
arg_sep = " "      # separator between items (default a space)
```

With `many_args = false` the command runs once per item. `hook_name`
may only contain letters, digits, `-`, `_` and `.`.

`manager_order.toml`:

```toml
begin = ["system"]
end = ["cargo"]
```

Managers not named are applied between `begin` and `end`. A manager
named more than once is reported as a duplicate.

### Configuration check

`rebos config check` reports as errors: a user generation that cannot be
read, a manager whose `hook_name` is not filename safe, and a missing
`machines/<hostname>/gen.toml`. It warns about hook files that match no
hook name. It exits with failure when there are errors.

## Generations

State is kept in a git repository at `$XDG_STATE_HOME/rebos` (by default
`~/.local/state/rebos`). The resolved generation is written to
`generations/gen.toml` there; the files `generations/current` and
`generations/built` record the current and last built commit.

    rebos gen commit "added htop"     # record the resolved user configuration
    rebos gen list                    # list generations, newest first, marking CURRENT and BUILT
    rebos gen info                    # show the resolved user configuration
    rebos gen latest                  # show the newest generation number
    rebos gen diff 2 1                # compare two generations by list number
    rebos gen current build           # apply the current generation
    rebos gen current rollback 1      # check out the commit N places from the newest
    rebos gen current to-latest       # check out the newest commit
    rebos gen current set 3           # mark a generation by list number as current

Generations are numbered from 1, with 1 the newest. Committing with no
changes records nothing. Rollback and to-latest stash local changes
before checking out.

Building applies every item the first time. Afterwards it compares the
last built generation with the current one: for each manager it removes
dropped items and adds new ones, and managers no longer present have all
their items removed.

## Managers

    rebos managers sync
    rebos managers upgrade --sync
    rebos managers list-others --remove
    rebos managers --manager flatpak sync

Without `--manager` (which may be given more than once) every file in
`managers/` is used. `list-others` shows items a manager's `list` command
reports that the current generation does not declare; with `--remove` it
asks before removing them.

## Hooks

A script in `hooks/` named `pre_build`, `post_build`, or
`<pre|post>_<hook_name>_<add|remove|sync|upgrade>` runs at that stage. A
failing hook stops the operation.

## Scripting helpers

    rebos api echo info "message"
    rebos api echo-generic "message"
    rebos api bool-question "Continue?" yes

`echo` takes one of `info`, `success`, `warning`, `error`, `fatal`,
`note`. `bool-question` exits with success on a yes answer and failure on
a no; an empty answer takes the given fallback.

## Limitations

- `rebos gen current build` does not print a summary of what changed; it
  prints a note saying so.
- `rebos gen current set` only records the chosen commit as current; it
  does not check it out.