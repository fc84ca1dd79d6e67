"""
Tests for the marker-framed remote shell bridge.
"""
import io
import unittest
from contextlib import redirect_stdout

from deployhelper.core.shell_bridge import ShellBridge, ShellState

MARKER = "__DH_END_OF_OUTPUT_test__"


class FakeStream:
    """Replays canned remote lines after each write, like an echoing terminal."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.written = []
        self.pending = []
        self.closed = False

    def write(self, text):
        self.written.append(text)
        if "; echo " not in text:
            return
        if self.replies:
            self.pending.extend(self.replies.pop(0))

    def readline(self):
        if not self.pending:
            return ""
        return self.pending.pop(0) + "\n"

    def close(self):
        self.closed = True


def make_bridge(replies, cwd="/srv/site/app"):
    out = []
    stream = FakeStream(replies)
    bridge = ShellBridge(stream, cwd, output=out.append, marker_factory=lambda: MARKER)
    return bridge, stream, out


class TestShellBridge(unittest.TestCase):

    def test_run_command_filters_noise(self):
        bridge, stream, out = make_bridge([[
            "Last login: Mon Oct 19 10:00:00 2026 from 10.0.0.1",
            "[deploy@web app]$ ls -la ; echo " + MARKER,
            "ls -la ; echo " + MARKER,
            "total 4",
            "",
            MARKER,
        ]])
        lines = bridge.run_command("ls -la")
        self.assertEqual(lines, ["total 4"])
        self.assertEqual(out, ["total 4"])
        self.assertEqual(stream.written, [f"ls -la ; echo {MARKER}\n"])
        self.assertIs(bridge.state, ShellState.IDLE)

    def test_refresh_cwd(self):
        bridge, stream, _ = make_bridge([[
            "pwd ; echo " + MARKER,
            "/srv/site",
            MARKER,
        ]])
        self.assertEqual(bridge.refresh_cwd(), "/srv/site")
        self.assertEqual(bridge.cwd, "/srv/site")

    def test_refresh_cwd_keeps_previous_when_empty(self):
        bridge, _, _ = make_bridge([[MARKER]])
        self.assertEqual(bridge.refresh_cwd(), "/srv/site/app")

    def test_eof_closes(self):
        bridge, _, _ = make_bridge([["partial output"]])
        self.assertEqual(bridge.run_command("tail -f log"), ["partial output"])
        self.assertIs(bridge.state, ShellState.CLOSED)

    def test_interact_until_exit(self):
        bridge, stream, out = make_bridge([
            ["cd .. ; echo " + MARKER, MARKER],
            ["pwd ; echo " + MARKER, "/srv/site", MARKER],
            ["echo hi ; echo " + MARKER, "hi", MARKER],
            ["/srv/site", MARKER],
        ])
        answers = ["cd ..", "", "echo hi", "exit"]
        buf = io.StringIO()
        with redirect_stdout(buf):
            bridge.interact(lambda *a: answers.pop(0))
        self.assertEqual(stream.written[0], "cd /srv/site/app\n")
        self.assertEqual(out, ["hi"])
        self.assertEqual(bridge.cwd, "/srv/site")
        self.assertTrue(stream.closed)
        self.assertIs(bridge.state, ShellState.CLOSED)

    def test_start_quotes_directory(self):
        bridge, stream, out = make_bridge([[
            "cd '/srv/my site/app'",
            "ls ; echo " + MARKER,
            "index.php",
            MARKER,
        ]], cwd="/srv/my site/app")
        bridge.start()
        self.assertEqual(stream.written, ["cd '/srv/my site/app'\n"])
        self.assertEqual(bridge.run_command("ls"), ["index.php"])

    def test_interact_eof_from_operator(self):
        bridge, stream, _ = make_bridge([])
        buf = io.StringIO()
        with redirect_stdout(buf):
            bridge.interact(lambda *a: None)
        self.assertTrue(stream.closed)


if __name__ == "__main__":
    unittest.main()
