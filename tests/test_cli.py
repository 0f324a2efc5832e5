import io

import pytest

from rebos import cli
from rebos.library import RebosError


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("USER", "tester")
    monkeypatch.delenv("NO_COLOR", raising=False)
    return tmp_path


def test_parse_diff_numbers():
    args = cli.build_parser().parse_args(["gen", "diff", "1", "2"])
    assert (args.old, args.new) == (1, 2)
    assert args.command == "gen"


def test_parse_diff_rejects_negative():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["gen", "diff", "-1", "2"])


def test_parse_rollback_allows_integer():
    args = cli.build_parser().parse_args(["gen", "current", "rollback", "3"])
    assert args.by == 3


def test_parse_managers_repeated_option():
    args = cli.build_parser().parse_args(["managers", "-m", "a", "--manager", "b", "sync"])
    assert args.managers == ["a", "b"]


def test_parse_managers_default_is_none():
    args = cli.build_parser().parse_args(["managers", "upgrade", "--sync"])
    assert args.managers is None
    assert args.sync is True


def test_parse_list_others_remove_flag_default():
    args = cli.build_parser().parse_args(["managers", "list-others"])
    assert args.remove is False


def test_parse_requires_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_parse_bool_question_rejects_bad_fallback():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["api", "bool-question", "Go?", "maybe"])


def test_handle_command_requires_setup(env):
    args = cli.build_parser().parse_args(["gen", "list"])
    with pytest.raises(RebosError):
        cli.handle_command(args)


def test_main_setup_creates_directories(env):
    assert cli.main(["setup"]) == 0
    assert (env / "state" / "rebos" / "generations").is_dir()


def test_main_refuses_root(env, monkeypatch):
    monkeypatch.setenv("USER", "root")
    assert cli.main(["setup"]) == 1
    assert not (env / "state" / "rebos").exists()


def test_main_not_set_up_fails(env):
    assert cli.main(["config", "init"]) == 1


def test_main_moves_legacy_base(env):
    legacy = env / "home" / ".rebos-base"
    legacy.mkdir(parents=True)
    (legacy / "marker").write_text("kept")
    (env / "state").mkdir()
    assert cli.main(["setup"]) == 0
    assert not legacy.exists()
    assert (env / "state" / "rebos" / "marker").read_text() == "kept"


@pytest.mark.parametrize("answer, expected", [("y\n", 0), ("n\n", 1), ("\n", 0)])
def test_main_bool_question(env, monkeypatch, answer, expected):
    cli.main(["setup"])
    monkeypatch.setattr("sys.stdin", io.StringIO(answer))
    assert cli.main(["api", "bool-question", "Continue?", "yes"]) == expected


def test_main_echo(env, capsys):
    cli.main(["setup"])
    capsys.readouterr()
    assert cli.main(["api", "echo", "info", "hello"]) == 0
    assert "[info] hello" in capsys.readouterr().out


def test_main_config_init_and_check(env, capsys):
    cli.main(["setup"])
    assert cli.main(["config", "init"]) == 0
    assert (env / "config" / "rebos" / "managers" / "cargo.toml").is_file()
    assert cli.main(["config", "check"]) == 0


def test_main_config_check_warns_unused_hook(env, capsys):
    cli.main(["setup"])
    cli.main(["config", "init"])
    (env / "config" / "rebos" / "hooks" / "stray").write_text("true\n")
    capsys.readouterr()
    assert cli.main(["config", "check"]) == 0
    assert "stray" in capsys.readouterr().out


def test_main_config_check_fails_bad_manager(env):
    cli.main(["setup"])
    cli.main(["config", "init"])
    (env / "config" / "rebos" / "managers" / "bad.toml").write_text(
        'add = "x"\nremove = "y"\nplural_name = "bads"\nhook_name = "bad name"\n[config]\n'
    )
    assert cli.main(["config", "check"]) == 1


def test_main_gen_info_prints_managers(env, capsys):
    cli.main(["setup"])
    cli.main(["config", "init"])
    capsys.readouterr()
    assert cli.main(["gen", "info"]) == 0
    out = capsys.readouterr().out
    assert "system:" in out
    assert "flatpak:" in out


def test_main_missing_manager_fails(env):
    cli.main(["setup"])
    cli.main(["config", "init"])
    assert cli.main(["managers", "-m", "nosuch", "sync"]) == 1