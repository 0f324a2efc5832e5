import pytest

from rebos.library import RebosError
from rebos.management import (
    Manager,
    ManagerConfig,
    for_each_manager,
    get_managers,
    load_manager,
    load_manager_no_config_check,
    parse_manager,
    sync_managers,
    upgrade_managers,
)

FULL = """
add = "pkg install #:?"
remove = "pkg remove #:?"
sync = "pkg sync"
upgrade = "pkg upgrade"
list = "pkg list"
plural_name = "packages"
hook_name = "packages"

[config]
many_args = false
arg_sep = ","
"""


@pytest.fixture
def config_root(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    root = tmp_path / "cfg" / "rebos"
    (root / "managers").mkdir(parents=True)
    (root / "hooks").mkdir()
    return root


def make_manager(**overrides):
    values = dict(add_command="true", remove_command="true", hook_name="pkgs", plural_name="pkgs")
    values.update(overrides)
    return Manager(**values)


def write_manager(root, name, body):
    (root / "managers" / f"{name}.toml").write_text(body)


def write_hook(root, name, body):
    path = root / "hooks" / name
    path.write_text(f"#!/bin/bash\n{body}\n")
    path.chmod(0o755)


def lines(path):
    return path.read_text().splitlines()


def test_parse_full_manager():
    manager = parse_manager(FULL)
    assert manager == Manager(
        add_command="pkg install #:?",
        remove_command="pkg remove #:?",
        hook_name="packages",
        plural_name="packages",
        sync_command="pkg sync",
        upgrade_command="pkg upgrade",
        list_command="pkg list",
        config=ManagerConfig(many_args=False, arg_sep=","),
    )


def test_parse_config_defaults():
    manager = parse_manager(
        'add = "a"\nremove = "r"\nplural_name = "p"\nhook_name = "h"\n[config]\n'
    )
    assert manager.config == ManagerConfig(many_args=True, arg_sep=" ")
    assert manager.sync_command is None
    assert manager.list_command is None


@pytest.mark.parametrize(
    "text",
    [
        'add = "a"\nremove = "r"\nplural_name = "p"\nhook_name = "h"\n',
        'remove = "r"\nplural_name = "p"\nhook_name = "h"\n[config]\n',
        FULL + 'extra = "x"\n',
        FULL.replace("many_args = false", "many_args = false\nbogus = 1"),
        FULL.replace("many_args = false", 'many_args = "no"'),
        "add = [",
    ],
)
def test_parse_rejects_bad_documents(text):
    with pytest.raises(RebosError):
        parse_manager(text)


def test_check_config_accepts_safe_hook_name():
    assert make_manager(hook_name="system_packages-1.x").check_config() == []


def test_check_config_reports_fixed_hook_name():
    errors = make_manager(hook_name="my hook!").check_config()
    assert errors == ["Field 'hook_name' must be filename safe! (Fixed version: my_hook_)"]


def test_add_many_args_joins_items(tmp_path, config_root):
    out = tmp_path / "out"
    make_manager(add_command=f"echo #:? >> {out}").add(["a", "b"])
    assert lines(out) == ["a b"]


def test_add_custom_separator(tmp_path, config_root):
    out = tmp_path / "out"
    manager = make_manager(
        add_command=f"echo #:? >> {out}", config=ManagerConfig(many_args=True, arg_sep=",")
    )
    manager.add(["a", "b"])
    assert lines(out) == ["a,b"]


def test_add_one_at_a_time_skips_blank(tmp_path, config_root):
    out = tmp_path / "out"
    manager = make_manager(
        add_command=f"echo #:? >> {out}", config=ManagerConfig(many_args=False)
    )
    manager.add(["a", " ", "b"])
    assert lines(out) == ["a", "b"]


def test_add_nothing_runs_no_command(tmp_path, config_root):
    out = tmp_path / "out"
    make_manager(add_command=f"echo #:? >> {out}").add([])
    assert not out.exists()


def test_add_failure_raises(config_root):
    with pytest.raises(RebosError, match="Failed to add pkgs!"):
        make_manager(add_command="false").add(["a"])


def test_remove_failure_raises(config_root):
    with pytest.raises(RebosError, match="Failed to remove pkgs!"):
        make_manager(remove_command="false").remove(["a"])


def test_hooks_wrap_add(tmp_path, config_root):
    out = tmp_path / "out"
    write_hook(config_root, "pre_pkgs_add", f"echo pre >> {out}")
    write_hook(config_root, "post_pkgs_add", f"echo post >> {out}")
    make_manager(add_command=f"echo cmd #:? >> {out}").add(["a"])
    assert lines(out) == ["pre", "cmd a", "post"]


def test_failing_pre_hook_stops_remove(tmp_path, config_root):
    out = tmp_path / "out"
    write_hook(config_root, "pre_pkgs_remove", "exit 1")
    with pytest.raises(RebosError):
        make_manager(remove_command=f"echo #:? >> {out}").remove(["a"])
    assert not out.exists()


def test_sync_runs_command(tmp_path, config_root):
    out = tmp_path / "out"
    make_manager(sync_command=f"echo synced >> {out}").sync()
    assert lines(out) == ["synced"]


def test_sync_failure_raises(config_root):
    with pytest.raises(RebosError, match="Failed to sync repositories!"):
        make_manager(sync_command="false").sync()


def test_upgrade_failure_raises(config_root):
    with pytest.raises(RebosError, match="Failed to upgrade pkgs!"):
        make_manager(upgrade_command="false").upgrade()


def test_list_installed_splits_whitespace(config_root):
    manager = make_manager(list_command="printf 'a b\\n\\tc\\n'")
    assert manager.list_installed() == ["a", "b", "c"]


def test_list_installed_failure_raises(config_root):
    with pytest.raises(RebosError):
        make_manager(list_command="false").list_installed()


def test_get_other_excludes_declared_items(config_root):
    manager = make_manager(list_command="printf 'a b c'")
    assert manager.get_other(["b"]) == ["a", "c"]


def test_get_other_without_list_command_is_empty(config_root):
    assert make_manager().get_other(["a"]) == []


def test_get_managers_lists_toml_files(config_root):
    write_manager(config_root, "b", FULL)
    write_manager(config_root, "a", FULL)
    (config_root / "managers" / "notes.txt").write_text("x")
    (config_root / "managers" / "dir.toml").mkdir()
    assert get_managers() == ["a", "b"]


def test_load_manager_reads_file(config_root):
    write_manager(config_root, "sys", FULL)
    assert load_manager("sys") == parse_manager(FULL)


def test_load_missing_manager_raises_os_error(config_root):
    with pytest.raises(FileNotFoundError):
        load_manager_no_config_check("absent")


def test_load_invalid_manager_raises(config_root):
    write_manager(config_root, "bad", "add = 1\n")
    with pytest.raises(RebosError, match="Failed to deserialize manager!"):
        load_manager_no_config_check("bad")


def test_load_manager_checks_config(config_root):
    write_manager(config_root, "m", FULL.replace('hook_name = "packages"', 'hook_name = "a b"'))
    assert load_manager_no_config_check("m").hook_name == "a b"
    with pytest.raises(RebosError, match="Failed manager configuration check!"):
        load_manager("m")


def test_for_each_manager_explicit_names(config_root):
    seen = []
    for_each_manager(["y", "x"], seen.append)
    assert seen == ["y", "x"]


def test_for_each_manager_defaults_to_all(config_root):
    write_manager(config_root, "b", FULL)
    write_manager(config_root, "a", FULL)
    seen = []
    for_each_manager(None, seen.append)
    assert seen == ["a", "b"]


def test_for_each_manager_stops_on_error(config_root):
    seen = []

    def operation(name):
        seen.append(name)
        raise RebosError(name)

    with pytest.raises(RebosError):
        for_each_manager(["x", "y"], operation)
    assert seen == ["x"]


def _logging_manager(log, name):
    return (
        f"add = 'true'\nremove = 'true'\nplural_name = '{name}'\nhook_name = '{name}'\n"
        f"sync = 'echo sync {name} >> {log}'\nupgrade = 'echo upgrade {name} >> {log}'\n"
        "[config]\n"
    )


def test_sync_managers_runs_each(tmp_path, config_root):
    log = tmp_path / "log"
    write_manager(config_root, "a", _logging_manager(log, "a"))
    write_manager(config_root, "b", _logging_manager(log, "b"))
    result = sync_managers(None)
    assert result is None
    assert lines(log) == ["sync a", "sync b"]


def test_upgrade_managers_syncs_first(tmp_path, config_root):
    log = tmp_path / "log"
    write_manager(config_root, "a", _logging_manager(log, "a"))
    result = upgrade_managers(True, ["a"])
    assert result is None
    assert lines(log) == ["sync a", "upgrade a"]


def test_upgrade_managers_without_sync(tmp_path, config_root):
    log = tmp_path / "log"
    write_manager(config_root, "a", _logging_manager(log, "a"))
    result = upgrade_managers(False, ["a"])
    assert result is None
    assert lines(log) == ["upgrade a"]