"""Tests for the tmux control interface."""

import subprocess
from unittest.mock import patch

import pytest

from tmuxman import tmux
from tmuxman.errors import CommandFailed, ParseError, ServerUnreachable, ToolUnavailable
from tmuxman.models import Pane, Session, Window
from tmuxman.tmux import FIELD_SEP, TmuxControl


def completed(stdout: str = "", stderr: str = "", returncode: int = 0):
    return subprocess.CompletedProcess(args=["tmux"], returncode=returncode,
                                       stdout=stdout, stderr=stderr)


class TestParsing:
    """Tests for the -F output parsers."""

    def test_parse_session_line(self):
        sessions = tmux.parse_sessions("s1|main|3|1700000000|1", sep="|")
        assert sessions == [Session(id="s1", name="main", window_count=3,
                                    created_at=1700000000, attached=True)]

    def test_parse_sessions_default_separator(self):
        output = FIELD_SEP.join(["$0", "dev box", "1", "1700000000", "0"]) + "\n"
        sessions = tmux.parse_sessions(output)
        assert sessions[0].name == "dev box"
        assert sessions[0].attached is False

    def test_attached_count_above_one_is_true(self):
        sessions = tmux.parse_sessions("$1|main|3|1700000000|2", sep="|")
        assert sessions[0].attached is True

    def test_parse_sessions_empty(self):
        assert tmux.parse_sessions("") == []
        assert tmux.parse_sessions("\n\n") == []

    def test_parse_sessions_preserves_order(self):
        output = "$3|c|1|3|0\n$1|a|1|1|0\n$2|b|1|2|0\n"
        assert [s.id for s in tmux.parse_sessions(output, sep="|")] == ["$3", "$1", "$2"]

    def test_short_line_raises(self):
        with pytest.raises(ParseError) as exc:
            tmux.parse_sessions("s1|main|3", sep="|")
        assert exc.value.line == "s1|main|3"

    def test_bad_integer_raises(self):
        with pytest.raises(ParseError, match="session_windows"):
            tmux.parse_sessions("s1|main|three|1700000000|1", sep="|")

    def test_names_with_colons_and_pipes(self):
        # Only FIELD_SEP splits, so other punctuation is safe in names
        line = FIELD_SEP.join(["@7", "2", "a|b: c", "tiled", "1", "4"])
        windows = tmux.parse_windows(line)
        assert windows == [Window("@7", 2, "a|b: c", "tiled", True, 4)]

    def test_parse_panes(self):
        line = FIELD_SEP.join(["%5", "1", "python3", "/srv/app", "120", "40", "0"])
        assert tmux.parse_panes(line) == [Pane("%5", 1, "python3", "/srv/app", 120, 40, False)]

    def test_extra_fields_are_ignored(self):
        line = FIELD_SEP.join(["%5", "1", "bash", "/", "80", "24", "1", "extra"])
        assert tmux.parse_panes(line)[0].active is True

    def test_format_round_trip(self):
        session = Session("$9", "main", 3, 1700000000, True)
        window = Window("@4", 3, "build", "even-horizontal", False, 2)
        pane = Pane("%8", 0, "htop", "/home/dev", 100, 30, True)
        assert tmux.parse_sessions(tmux.format_session(session)) == [session]
        assert tmux.parse_windows(tmux.format_window(window)) == [window]
        assert tmux.parse_panes(tmux.format_pane(pane)) == [pane]


class TestTmuxControl:
    """Tests for TmuxControl command execution."""

    def test_run_success(self):
        control = TmuxControl()
        with patch("subprocess.run", return_value=completed("output\n")) as mock_run:
            assert control.run("list-sessions") == "output\n"
        cmd = mock_run.call_args[0][0]
        assert cmd[0] == "tmux"
        assert "list-sessions" in cmd

    def test_run_with_socket_name(self):
        control = TmuxControl(socket_name="work")
        with patch("subprocess.run", return_value=completed()) as mock_run:
            control.run("list-sessions")
        assert mock_run.call_args[0][0][:3] == ["tmux", "-L", "work"]

    def test_socket_path_wins(self):
        control = TmuxControl(socket_name="work", socket_path="/tmp/test.sock")
        with patch("subprocess.run", return_value=completed()) as mock_run:
            control.run("list-sessions")
        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["tmux", "-S", "/tmp/test.sock"]
        assert "-L" not in cmd

    def test_missing_binary(self):
        control = TmuxControl(binary="no-such-tmux")
        with patch("subprocess.run", side_effect=FileNotFoundError("no-such-tmux")):
            with pytest.raises(ToolUnavailable):
                control.run("list-sessions")

    @pytest.mark.parametrize("stderr", [
        "no server running on /tmp/tmux-1000/default\n",
        "error connecting to /tmp/tmux-1000/default (No such file or directory)\n",
    ])
    def test_no_server(self, stderr):
        control = TmuxControl()
        with patch("subprocess.run", return_value=completed(stderr=stderr, returncode=1)):
            with pytest.raises(ServerUnreachable):
                control.list_sessions()

    def test_command_failed_carries_stderr(self):
        control = TmuxControl()
        result = completed(stderr="duplicate session: work\n", returncode=1)
        with patch("subprocess.run", return_value=result):
            with pytest.raises(CommandFailed) as exc:
                control.create_session("work")
        assert exc.value.stderr == "duplicate session: work"
        assert str(exc.value) == "duplicate session: work"

    def test_list_sessions_requests_format(self):
        control = TmuxControl()
        output = FIELD_SEP.join(["$1", "main", "2", "1700000000", "1"]) + "\n"
        with patch("subprocess.run", return_value=completed(output)) as mock_run:
            sessions = control.list_sessions()
        cmd = mock_run.call_args[0][0]
        assert cmd[1:3] == ["list-sessions", "-F"]
        assert cmd[3] == FIELD_SEP.join(tmux.SESSION_FIELDS)
        assert sessions[0].id == "$1"

    def test_list_windows_targets_session(self):
        control = TmuxControl()
        with patch("subprocess.run", return_value=completed("")) as mock_run:
            assert control.list_windows("$1") == []
        cmd = mock_run.call_args[0][0]
        assert cmd[1:4] == ["list-windows", "-t", "$1"]

    def test_list_panes_malformed_output(self):
        control = TmuxControl()
        with patch("subprocess.run", return_value=completed("garbage\n")):
            with pytest.raises(ParseError):
                control.list_panes("@1")

    @pytest.mark.parametrize("call, expected", [
        (lambda c: c.create_session("work"), ["new-session", "-d", "-s", "work"]),
        (lambda c: c.rename_session("$1", "new"), ["rename-session", "-t", "$1", "new"]),
        (lambda c: c.kill_session("$1"), ["kill-session", "-t", "$1"]),
        (lambda c: c.create_window("$1", "logs"), ["new-window", "-d", "-t", "$1:", "-n", "logs"]),
        (lambda c: c.rename_window("@2", "x"), ["rename-window", "-t", "@2", "x"]),
        (lambda c: c.kill_window("@2"), ["kill-window", "-t", "@2"]),
        (lambda c: c.split_pane("%3"), ["split-window", "-t", "%3"]),
        (lambda c: c.kill_pane("%3"), ["kill-pane", "-t", "%3"]),
        (lambda c: c.select_window("@2"), ["select-window", "-t", "@2"]),
        (lambda c: c.select_pane("%3"), ["select-pane", "-t", "%3"]),
    ])
    def test_mutation_commands(self, call, expected):
        control = TmuxControl()
        with patch("subprocess.run", return_value=completed()) as mock_run:
            call(control)
        assert mock_run.call_args[0][0] == ["tmux"] + expected

    def test_attach_outside_tmux_replaces_process(self, monkeypatch):
        monkeypatch.delenv("TMUX", raising=False)
        control = TmuxControl(socket_name="work")
        with patch("os.execvpe") as mock_exec:
            control.attach("$1")
        file, argv, env = mock_exec.call_args[0]
        assert file == "tmux"
        assert argv == ["tmux", "-L", "work", "attach-session", "-t", "$1"]
        assert "TMUX" not in env

    def test_attach_inside_tmux_switches_client(self, monkeypatch):
        monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,123,0")
        control = TmuxControl()
        with patch("os.execvpe") as mock_exec, \
                patch("subprocess.run", return_value=completed()) as mock_run:
            control.attach("$1:@2")
        mock_exec.assert_not_called()
        assert mock_run.call_args[0][0] == ["tmux", "switch-client", "-t", "$1:@2"]

    def test_attach_inside_tmux_same_socket_name(self, monkeypatch):
        monkeypatch.setenv("TMUX", "/tmp/tmux-1000/work,123,0")
        control = TmuxControl(socket_name="work")
        with patch("os.execvpe") as mock_exec, \
                patch("subprocess.run", return_value=completed()) as mock_run:
            control.attach("$1")
        mock_exec.assert_not_called()
        assert mock_run.call_args[0][0] == ["tmux", "-L", "work", "switch-client", "-t", "$1"]

    @pytest.mark.parametrize("kwargs", [
        {"socket_name": "work"},
        {"socket_path": "/tmp/other.sock"},
    ])
    def test_attach_to_other_server_from_inside_tmux(self, monkeypatch, kwargs):
        monkeypatch.setenv("TMUX", "/tmp/tmux-1000/default,123,0")
        control = TmuxControl(**kwargs)
        with patch("os.execvpe") as mock_exec, patch("subprocess.run") as mock_run:
            control.attach("$1")
        mock_run.assert_not_called()
        file, argv, env = mock_exec.call_args[0]
        assert argv[-3:] == ["attach-session", "-t", "$1"]
        assert "TMUX" not in env


def test_is_tmux_available():
    with patch("shutil.which", return_value="/usr/bin/tmux"):
        assert tmux.is_tmux_available()
    with patch("shutil.which", return_value=None):
        assert not tmux.is_tmux_available()
