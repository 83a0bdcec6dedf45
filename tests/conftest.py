import json
import subprocess

import pytest


class FakeBw:
    """Stands in for subprocess.run, answering bw invocations by argument list."""

    def __init__(self):
        self.calls = []
        self.responses = {}

    def add(self, args, stdout="", returncode=0, stderr=""):
        if not isinstance(stdout, str):
            stdout = json.dumps(stdout)
        self.responses[tuple(args)] = (returncode, stdout, stderr)

    def args_called(self):
        return [list(cmd[1:]) for cmd, _ in self.calls]

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        key = tuple(cmd[1:])
        if key not in self.responses:
            raise subprocess.CalledProcessError(1, cmd, output="", stderr="unexpected command")
        returncode, stdout, stderr = self.responses[key]
        if returncode:
            raise subprocess.CalledProcessError(returncode, cmd, output=stdout, stderr=stderr)
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr=stderr)


class FakeScreen:
    """Scripted replacement for bbw.ui.Screen."""

    def __init__(self, inputs=(), selections=(), confirms=()):
        self.inputs = list(inputs)
        self.selections = list(selections)
        self.confirms = list(confirms)
        self.output = []
        self.menus = []
        self.prompts = []
        self.title = None

    def banner(self, title, hint=""):
        self.title = title

    def print(self, text="", kind="plain"):
        self.output.append((kind, text))

    def info(self, message):
        self.output.append(("info", message))

    def success(self, message):
        self.output.append(("success", message))

    def warning(self, message):
        self.output.append(("warning", message))

    def error(self, message):
        self.output.append(("error", message))

    def box(self, text, title=""):
        self.output.append(("box", title + "\n" + text))

    def text_input(self, prompt, mask=None):
        self.prompts.append((prompt, mask))
        return self.inputs.pop(0) if self.inputs else "q"

    def select(self, options, title, max_height=15):
        self.menus.append((list(options), title))
        choice = self.selections.pop(0)
        if isinstance(choice, str):
            return list(options).index(choice)
        return choice

    def confirm(self, question, default=False):
        return self.confirms.pop(0) if self.confirms else default

    def messages(self, kind):
        return [text for k, text in self.output if k == kind]


class FakeClipboard:
    def __init__(self, works=True):
        self.works = works
        self.copies = []

    def copy_to_clipboard(self, text):
        if self.works:
            self.copies.append(text)
        return self.works


@pytest.fixture
def fake_bw(monkeypatch):
    bw = FakeBw()
    monkeypatch.setattr(subprocess, "run", bw)
    return bw


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture(autouse=True)
def no_debug(monkeypatch):
    monkeypatch.delenv("BW_DEBUG", raising=False)
    monkeypatch.delenv("BW_SESSION", raising=False)


LOGIN_ITEM = {
    "id": "a1",
    "name": "GitHub",
    "notes": None,
    "creationDate": "2023-01-01T10:00:00.000Z",
    "revisionDate": "2024-02-02T10:00:00.000Z",
    "passwordHistory": [
        {"lastUsedDate": "2023-06-01T10:00:00.000Z", "password": "old-secret"},
    ],
    "login": {
        "username": "octocat",
        "password": "s3cret!",
        "passwordRevisionDate": "2023-06-01T10:00:00.000Z",
        "uris": [{"match": None, "uri": "https://github.com"}],
    },
}

NOTE_ITEM = {
    "id": "b2",
    "name": "Wifi",
    "notes": "ssid: home\npsk: hunter2",
    "creationDate": "2022-01-01T10:00:00.000Z",
    "revisionDate": "2022-01-02T10:00:00.000Z",
    "passwordHistory": None,
    "secureNote": {"type": 0},
}


class FakeStdscr:
    """Scripted curses window: replays keys and keeps every drawn frame."""

    def __init__(self, keys=(), height=24, width=80):
        self.keys = list(keys)
        self.height = height
        self.width = width
        self.rows = {}
        self.frames = []

    def getmaxyx(self):
        return self.height, self.width

    def keypad(self, flag):
        pass

    def nodelay(self, flag):
        pass

    def timeout(self, delay):
        pass

    def move(self, y, x):
        pass

    def erase(self):
        self.rows = {}

    def addstr(self, y, x, text, attr=0):
        assert 0 <= y < self.height, f"row {y} outside a {self.height}-row screen"
        self.rows[y] = " " * x + text

    def refresh(self):
        self.frames.append(dict(self.rows))

    def get_wch(self):
        assert self.keys, "screen asked for more keys than scripted"
        return self.keys.pop(0)


@pytest.fixture
def curses_stub(monkeypatch):
    """Make curses calls that need a real terminal into no-ops."""
    import curses

    for name in ("curs_set", "cbreak", "noecho", "start_color", "use_default_colors", "init_pair"):
        monkeypatch.setattr(curses, name, lambda *args: None)
    monkeypatch.setattr(curses, "color_pair", lambda n: n << 8)
