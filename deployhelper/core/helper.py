"""
Interactive deploy helper: the menu, option dispatch and the REPL loop

Options that stage work build a batch of deferred commands and hand it to
prepare_batch(); nothing touches the remote until the queue is run.

Modifiers at the end of a menu line (after the option's own arguments):
  --dry / -d    dry-run the queue once the option has finished
  --run / -r    run the queue once the option has finished
  --force / -f  queue the batch without asking for confirmation
"""
import os
import re
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Union

from .. import config as _cfg
from ..operations import git_changes
from ..operations.git_changes import (CHANGE_TYPES, commit_diff_command, detect_changes,
                                      has_changes, list_branches, list_commits)
from ..operations.scanner import Order, check_relative_path, enumerate_paths
from ..operations.selectors import (PathMode, interactive_path_selector, select_branch,
                                    select_command_list, select_commit, select_environment,
                                    unix_path)
from ..utils.logging import color, echo, heading
from .command_queue import clear_queue, prepare_batch, run_queue
from .commands import RemoteExec, RemoveLocalEntry, SyncChange, UploadEntry
from .session import Session
from .shell_bridge import ShellBridge

DRY_FLAGS = ("--dry", "-d")
RUN_FLAGS = ("--run", "-r")
FORCE_FLAGS = ("--force", "-f")
MODIFIERS = DRY_FLAGS + RUN_FLAGS + FORCE_FLAGS

QUIT_KEYS = ("q", "exit")
TRUE_WORDS = ("true", "1", "on", "yes")
FALSE_WORDS = ("false", "0", "off", "no")

_LIST_STATUS_RE = re.compile(r"^([MAD])\s+")


def split_modifiers(args: list) -> tuple[list, list]:
    """
    Split the trailing run of modifiers off *args*.

    Flags inside the option's own text stay put, so `exec rm -r cache -f`
    queues `rm -r cache` and only `-f` is a modifier.
    """
    end = len(args)
    while end and args[end - 1] in MODIFIERS:
        end -= 1
    return args[:end], args[end:]


@dataclass(frozen=True)
class MenuOption:
    key: str
    description: str
    run: Callable[[bool, list], None]


class DeployHelper:
    def __init__(self, session: Session, base_dir: Optional[str] = None,
                 runner: Callable[[str], str] = git_changes.run_local):
        self.session = session
        self.base_dir = unix_path(base_dir or os.getcwd())
        self.runner = runner
        self._stopped = False
        self.options: list[Union[str, MenuOption]] = self._build_options()

    # ── menu ─────────────────────────────────────────────────────────────────

    def _build_options(self) -> list:
        options = [
            "COMMANDS",
            MenuOption("file", "Upload a file", self.upload_file),
            MenuOption("dir", "Upload a directory", self.upload_directory),
            MenuOption("list", "Present a list of files to upload", self.upload_list),
            MenuOption("local", "Run a command in the local terminal", self.run_local_command),

            "UPLOAD COMMANDS",
            MenuOption("gitchanges", "Sync active git changes", self.sync_git_changes),
            MenuOption("uploadbuild", "Upload build directory",
                       lambda auto_confirm, args: self.upload_directory(
                           auto_confirm, [self.session.env.build_directory])),
            MenuOption("commits", "Upload changes from a specific branch->commit", self.upload_commit_changes),
            MenuOption("exec", "Run a command on the remote (queued)", self.queue_remote_command),
            MenuOption("rmlocal", "Remove a local directory (queued)", self.remove_local_directory),

            "DRY RUN OR RUN COMMANDS",
            MenuOption("dry", "Dry run prepared commands", lambda auto_confirm, args: run_queue(self.session, True)),
            MenuOption("run", "Run prepared commands", lambda auto_confirm, args: run_queue(self.session, False)),

            "OTHER",
            MenuOption("config", "Show current config", self.show_config),
            MenuOption("sftp", "Check SFTP connection", self.check_connection),
            MenuOption("keep", "Set keep commands mode [arg_1: boolean]", self.set_keep_mode),
            MenuOption("shell", "Open interactive shell on remote", self.remote_shell),
            MenuOption("command", "Run a list of commands set in the config commands list", self.replay_commands),
        ]
        if len(self._environment_names()) > 1:
            options.append(MenuOption("switch", "Switch config", self.switch_environment))
        options += [
            MenuOption("clear", "Clear prepared commands", lambda auto_confirm, args: clear_queue(self.session)),
            MenuOption("exit", "Exit", self.stop),
        ]
        return options

    def _environment_names(self) -> list[str]:
        envs = self.session.config_data.get("environments") or {}
        return list(envs) if isinstance(envs, dict) else []

    def get_option(self, key: str) -> Optional[MenuOption]:
        for option in self.options:
            if isinstance(option, MenuOption) and option.key == key:
                return option
        return None

    def present_options(self) -> Optional[str]:
        width = max(len(o.key) for o in self.options if isinstance(o, MenuOption)) + 2
        for option in self.options:
            if isinstance(option, MenuOption):
                echo(option.key.ljust(width), "blue")
                echo(option.description + "\n")
            else:
                echo(f"\n{option}\n", "grey")
                echo("-" * 38 + "\n", "grey")

        s = self.session
        echo(f"\n[Current config: {color(s.env.name, 'yellow')} - {s.env.remote_base_path}]", "grey")
        keep = color("ON", "red") if s.keep_mode else color("OFF", "green")
        echo(f"\n[Prepared commands: {color(len(s.queue), 'green')}, Keep mode: {keep}]\n", "grey")
        return s.prompter.ask("Select an option", "")

    # ── loop ─────────────────────────────────────────────────────────────────

    def run(self):
        echo("\n" + "-" * 36 + "\n", "yellow")
        echo("|" + "WELCOME TO DEPLOYHELPER".center(34) + "|", "yellow")
        echo("\n" + "-" * 36 + "\n", "yellow")

        prompter = self.session.prompter
        while not self._stopped:
            if prompter.simulated_completed:
                prompter.helper_bot("All commands have been executed!", "🎉")
                prompter.simulated_completed = False

            if prompter.simulating:
                user_input = prompter.ask("Select an option", "")
            else:
                user_input = self.present_options()

            if user_input is None or user_input in QUIT_KEYS:
                echo("Exiting...\n\n", "grey")
                break
            if user_input:
                self.dispatch(user_input)

    def dispatch(self, line: str) -> bool:
        """Run one menu line. Returns False for an unknown option key."""
        parts = line.split()
        key = parts[0]
        option = self.get_option(key)
        if option is None:
            echo(f"Invalid option: {key}\n", "red")
            return False

        args, modifiers = split_modifiers(parts[1:])
        auto_confirm = any(m in FORCE_FLAGS for m in modifiers)
        auto_dry = any(m in DRY_FLAGS for m in modifiers)
        auto_run = any(m in RUN_FLAGS for m in modifiers)
        option.run(auto_confirm, args)

        if auto_dry:
            run_queue(self.session, True)
        if auto_run:
            run_queue(self.session, False)
        return True

    def stop(self, auto_confirm=False, args=None):
        self._stopped = True
        echo("Exiting...\n", "grey")

    # ── staging options ──────────────────────────────────────────────────────

    def upload_file(self, auto_confirm: bool = False, args: list = ()):
        path = args[0] if args else interactive_path_selector(self.base_dir, self.session.prompter, PathMode.FILE)
        if not path:
            echo("No file selected, aborting.\n", "grey")
            return
        path = unix_path(path.strip())
        echo(heading(f"FILE UPLOAD: {path}"))
        path = check_relative_path(path, "File")
        if not os.path.isfile(path):
            echo(f"File does not exist: {path}\n", "grey")
            return
        prepare_batch(self.session, lambda: [UploadEntry(path)], auto_confirm)

    def upload_directory(self, auto_confirm: bool = False, args: list = ()):
        directory = args[0] if args else interactive_path_selector(
            self.base_dir, self.session.prompter, PathMode.FOLDER)
        if not directory:
            echo("No directory selected, aborting.\n", "grey")
            return
        directory = unix_path(directory.strip())
        echo(heading(f"DIRECTORY UPLOAD: {directory}"))
        entries = enumerate_paths(directory, Order.PARENTS_FIRST)
        if entries:
            prepare_batch(self.session, lambda: [UploadEntry(e.path) for e in entries], auto_confirm)

    def upload_list(self, auto_confirm: bool = False, args: list = ()):
        echo(heading("LIST"))
        echo("\nType or paste a list of line separated files to upload, use empty line '' to complete process\n\n",
             "yellow")
        files = []
        while True:
            line = self.session.prompter.ask("File path", "")
            if not line:
                break
            m = _LIST_STATUS_RE.match(line)
            if m and m.group(1) == "D":
                continue
            if m:
                line = line[m.end():]
            files.append(unix_path(line.strip()))
        if not files:
            echo("No files entered\n", "grey")
            return
        prepare_batch(self.session, lambda: [UploadEntry(f) for f in files], auto_confirm)

    def sync_git_changes(self, auto_confirm: bool = False, args: list = (),
                         status_command: str = _cfg.GIT_STATUS_COMMAND):
        echo(heading("ACTIVE GIT CHANGES"))

        def show_output(command: str) -> str:
            out = self.runner(command)
            echo("Changes found:\n", "yellow")
            for line in out.splitlines():
                if line.strip():
                    echo(line.strip() + "\n")
            echo("\n")
            return out

        changes = detect_changes(status_command, runner=show_output)
        if not has_changes(changes):
            echo("No changes found\n", "green")
            return

        echo("Preparing commands:\n", "yellow")
        prepare_batch(
            self.session,
            lambda: [SyncChange(kind, path) for kind in CHANGE_TYPES for path in changes[kind]],
            auto_confirm,
        )

    def upload_commit_changes(self, auto_confirm: bool = False, args: list = ()):
        echo(heading("UPLOAD CHANGES FROM BRANCH COMMIT"))
        prompter = self.session.prompter
        branch = select_branch(list_branches(self.runner), prompter)
        if branch is None:
            return
        commit = select_commit(list_commits(branch, self.runner), prompter)
        if commit is None:
            return
        command = commit_diff_command(commit)
        echo(f"\nSelected commit: {color(commit, 'green')}\n", "grey")
        echo(f"RUNNING: {command}\n")
        self.sync_git_changes(auto_confirm, status_command=command)

    def queue_remote_command(self, auto_confirm: bool = False, args: list = ()):
        command = " ".join(args).strip() or self.session.prompter.ask("Enter remote command to queue")
        if not command:
            echo("No command entered\n", "red")
            return
        prepare_batch(self.session, lambda: [RemoteExec(command)], auto_confirm)

    def remove_local_directory(self, auto_confirm: bool = False, args: list = ()):
        directory = args[0] if args else interactive_path_selector(
            self.base_dir, self.session.prompter, PathMode.FOLDER)
        if not directory:
            echo("No directory selected, aborting.\n", "grey")
            return
        directory = unix_path(directory.strip())
        echo(heading(f"REMOVE LOCAL DIRECTORY: {directory}"))
        entries = enumerate_paths(directory, Order.CHILDREN_FIRST)
        if entries:
            prepare_batch(self.session, lambda: [RemoveLocalEntry(e.path) for e in entries], auto_confirm)

    # ── immediate options ────────────────────────────────────────────────────

    def run_local_command(self, auto_confirm: bool = False, args: list = ()):
        command = " ".join(args).strip() or self.session.prompter.ask("Enter command to run")
        if not command:
            echo("No command entered\n", "red")
            return
        result = subprocess.run(command, shell=True)
        if result.returncode != 0:
            echo(f"\nCommand exited with status {result.returncode}\n", "red")

    def show_config(self, auto_confirm: bool = False, args: list = ()):
        values = self.session.env.as_display_dict()
        width = max(len(k) for k in values)
        for key, value in values.items():
            if isinstance(value, list):
                value = ", ".join(value)
            echo(color(key.ljust(width), "white") + " => ", "grey")
            echo(f"{value}\n", "white")

    def check_connection(self, auto_confirm: bool = False, args: list = ()):
        echo("Checking SFTP connection...\n", "grey")
        self.session.connection.ensure_connected()

    def set_keep_mode(self, auto_confirm: bool = False, args: list = ()):
        value = args[0].lower() if args else None
        if value in TRUE_WORDS:
            self.session.keep_mode = True
            echo(f"Keep mode set to: {color('ON', 'green')}\n", "green")
        elif value in FALSE_WORDS:
            self.session.keep_mode = False
            echo(f"Keep mode set to: {color('OFF', 'red')}\n", "red")
        else:
            echo("Invalid argument [1]: Must be boolean eg. 'true', '1', 'on', 'yes', or the negative\n", "red")

    def remote_shell(self, auto_confirm: bool = False, args: list = ()):
        stream = self.session.connection.open_shell()
        bridge = ShellBridge(stream, self.session.env.application_path)
        bridge.interact(self.session.prompter.ask)

    def replay_commands(self, auto_confirm: bool = False, args: list = ()):
        commands = _cfg.get_commands(self.session.config_data)
        key = select_command_list(commands, self.session.prompter, args[0] if args else None)
        if key is None:
            return
        lines = commands[key]
        if not isinstance(lines, list) or not lines:
            echo(f"Command list '{key}' must be a non-empty list\n", "red")
            return
        self.session.prompter.announce(lines)
        self.session.prompter.simulate(lines)

    def switch_environment(self, auto_confirm: bool = False, args: list = ()):
        s = self.session
        if s.config_path:
            s.config_data = _cfg.load_config_file(s.config_path)
        names = _cfg.environment_names(s.config_data)
        name = select_environment(names, s.prompter, args[0] if args else None)
        if name is None:
            return
        s.switch_environment(_cfg.build_environment(s.config_data, name, source=s.config_path or "config"))
        echo(f"Config switched to: {color(name, 'yellow')}\n", "green")
