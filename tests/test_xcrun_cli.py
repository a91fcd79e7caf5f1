import errno
from pathlib import Path

import pytest

import xcrun
from test_fixtures import make_tool


class Execed(Exception):
    def __init__(self, path, argv, env):
        super().__init__(path)
        self.path = path
        self.argv = argv
        self.env = env


@pytest.fixture
def fake_execve(monkeypatch):
    """Makes os.execve raise Execed instead of replacing the test process"""

    def execve(path, argv, env):
        raise Execed(path, argv, env)

    monkeypatch.setattr("os.execve", execve)


def run_cli(*args: str) -> int:
    return xcrun.run_xcrun_cli("xcrun", list(args))


def test_find_prints_path_and_does_not_exec(xcrun_env: Path, fake_execve, capsys):
    tool = make_tool(xcrun_env / "usr/bin", "clang")
    assert run_cli("-f", "clang") == 0
    assert capsys.readouterr().out == f"{tool}\n"


def test_find_with_explicit_sdk(xcrun_env: Path, capsys):
    ld = make_tool(xcrun_env / "Toolchains/DarwinARM.toolchain/usr/bin", "ld")
    assert run_cli("--sdk", "DarwinARM", "--find", "ld") == 0
    assert capsys.readouterr().out == f"{ld}\n"


def test_find_with_single_dash_long_options(xcrun_env: Path, capsys):
    tool = make_tool(xcrun_env / "usr/bin", "clang")
    assert run_cli("-sdk", "/", "-find", "/some/where/clang") == 0
    assert capsys.readouterr().out == f"{tool}\n"


def test_run_forwards_arguments_and_environment(xcrun_env: Path, fake_execve):
    tool = make_tool(xcrun_env / "Toolchains/DarwinARM.toolchain/usr/bin", "clang")
    with pytest.raises(Execed) as e:
        run_cli("--sdk", "DarwinARM", "clang", "-v", "-c", "main.c")

    assert e.value.path == tool
    assert e.value.argv == [str(tool), "-v", "-c", "main.c"]
    env = e.value.env
    assert env["SDKROOT"] == str(xcrun_env / "SDKs/DarwinARM.sdk")
    assert env["IOS_DEPLOYMENT_TARGET"] == "5.0"
    assert env["TARGET_TRIPLE"] == "armv7-apple-darwin11"
    assert env["LD_LIBRARY_PATH"] == str(xcrun_env / "Toolchains/DarwinARM.toolchain/usr/lib")
    assert env["PATH"] == (
        f"{xcrun_env / 'usr/bin'}:{xcrun_env / 'Toolchains/DarwinARM.toolchain/usr/bin'}"
    )


def test_run_option_stops_our_parsing(xcrun_env: Path, fake_execve):
    tool = make_tool(xcrun_env / "usr/bin", "cc")
    with pytest.raises(Execed) as e:
        run_cli("-r", "cc", "-v", "--version")
    assert e.value.argv == [str(tool), "-v", "--version"]


def test_log_mode_shows_command(xcrun_env: Path, fake_execve, capsys):
    make_tool(xcrun_env / "usr/bin", "cc")
    with pytest.raises(Execed):
        run_cli("-l", "cc", "hello world")
    assert "invoking command" in capsys.readouterr().err


def test_exec_failure(xcrun_env: Path, monkeypatch, capsys):
    make_tool(xcrun_env / "usr/bin", "cc")

    def execve(path, argv, env):
        raise OSError(errno.ENOEXEC, "Exec format error")

    monkeypatch.setattr("os.execve", execve)
    assert run_cli("cc") == 1
    assert "can't exec" in capsys.readouterr().err


def test_tool_not_found(xcrun_env: Path, fake_execve, capsys):
    make_tool(xcrun_env / "usr/bin", "nope", executable=False)
    assert run_cli("nope") == 1
    assert capsys.readouterr().err == "xcrun: error: unable to locate command 'nope'\n"


def test_verbose_traces_search(xcrun_env: Path, capsys):
    make_tool(xcrun_env / "usr/bin", "clang")
    assert run_cli("-v", "-f", "clang") == 0
    err = capsys.readouterr().err
    assert "xcrun: info: using developer path" in err
    assert "xcrun: info: found command's absolute path" in err


def test_verbose_without_tool_is_missing_argument(xcrun_env: Path, capsys):
    assert run_cli("-v") == 1
    assert "require -r or -f" in capsys.readouterr().err


def test_sdk_flag_requires_an_argument(xcrun_env: Path, capsys):
    assert run_cli("--sdk", "-f", "clang") == 1
    assert "sdk flag requires an argument" in capsys.readouterr().err


def test_unknown_option(xcrun_env: Path, capsys):
    assert run_cli("--frobnicate", "clang") == 1
    assert "No such option" in capsys.readouterr().err


def test_unreadable_config(xcrun_env: Path, monkeypatch, capsys):
    monkeypatch.delenv("DEVELOPER_DIR")
    assert run_cli("-f", "clang") == 1
    assert "unable to read configuration file" in capsys.readouterr().err


def test_version(capsys):
    assert run_cli("--version") == 0
    assert capsys.readouterr().out == "xcrun version 0.0.1\n"


def test_no_arguments_shows_help(capsys):
    assert run_cli() == 0
    assert "Find and execute the named command line tool" in capsys.readouterr().out


def test_cache_options_are_accepted(xcrun_env: Path, capsys):
    tool = make_tool(xcrun_env / "usr/bin", "clang")
    assert run_cli("-n", "-k", "-f", "clang") == 0
    assert capsys.readouterr().out == f"{tool}\n"


@pytest.mark.parametrize(
    "flag,expected",
    [
        ("--show-sdk-path", "{devdir}/SDKs/DarwinARM.sdk"),
        ("--show-sdk-version", "5.0"),
        ("--show-sdk-platform-path", "{devdir}"),
        ("--show-sdk-platform-version", "5.0"),
        ("--show-sdk-target-triple", "armv7-apple-darwin11"),
        ("--show-sdk-toolchain-path", "{devdir}/Toolchains/DarwinARM.toolchain"),
        ("-show-sdk-toolchain-version", "1.2"),
    ],
)
def test_sdk_queries(xcrun_env: Path, capsys, flag: str, expected: str):
    assert run_cli("--sdk", "DarwinARM", flag) == 0
    assert capsys.readouterr().out == expected.format(devdir=xcrun_env) + "\n"


def test_sdk_query_uses_default_sdk(xcrun_env: Path, monkeypatch, capsys):
    monkeypatch.setenv("SDKROOT", "DarwinARM")
    assert run_cli("--show-sdk-path") == 0
    assert capsys.readouterr().out == f"{xcrun_env}/SDKs/DarwinARM.sdk\n"


def test_sdk_query_without_sdk(xcrun_env: Path, capsys):
    assert run_cli("--show-sdk-path") == 1
    assert "no SDK is selected" in capsys.readouterr().err


def test_multicall_verbose(xcrun_env: Path, capsys):
    make_tool(xcrun_env / "usr/bin", "clang")
    with pytest.raises(SystemExit) as e:
        xcrun.main(["/usr/bin/xcrun_verbose", "-f", "clang"])
    assert e.value.code == 0
    assert "xcrun: info:" in capsys.readouterr().err


def test_multicall_log(xcrun_env: Path, fake_execve, capsys):
    make_tool(xcrun_env / "usr/bin", "clang")
    with pytest.raises(Execed):
        xcrun.main(["xcrun_log", "clang"])
    assert "invoking command" in capsys.readouterr().err


def test_multicall_as_tool_name(xcrun_env: Path, fake_execve):
    tool = make_tool(xcrun_env / "usr/bin", "clang")
    with pytest.raises(Execed) as e:
        xcrun.main(["/opt/bin/armv7-apple-darwin11-clang", "-c", "main.c"])
    assert e.value.argv == [str(tool), "-c", "main.c"]


def test_multicall_as_unknown_tool(xcrun_env: Path, capsys):
    with pytest.raises(SystemExit) as e:
        xcrun.main(["/opt/bin/mystery"])
    assert e.value.code == 1
    assert "failed to execute command 'mystery'" in capsys.readouterr().err


def test_xcrun_tool_refuses_direct_call(capsys):
    with pytest.raises(SystemExit) as e:
        xcrun.main(["xcrun-tool", "clang"])
    assert e.value.code == 1
    assert "must not be called directly" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv,ours,theirs",
    [
        (["-f", "cc", "-v"], ["-f", "cc"], ["-v"]),
        (["--sdk", "-f", "cc"], ["--sdk", "-f", "cc"], []),
        (["-sdk", "/", "--run=cc", "-x"], ["-sdk", "/", "--run=cc"], ["-x"]),
        (["cc", "-f", "x"], ["cc", "-f", "x"], []),
    ],
)
def test_split_forwarded_args(argv, ours, theirs):
    assert xcrun.split_forwarded_args(argv) == (ours, theirs)
