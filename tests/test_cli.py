"""
Integration tests for deployhelper CLI behaviour and config handling.

Tests:
  - config discovery: searching parent directories upward
  - config loading: JSON and YAML parsing, required-property validation
  - deployhelper init: creates a valid config, refuses overwrite without --force
  - deployhelper run: fatal config errors exit non-zero with a message
  - run options: accepted before or after the run subcommand
"""
import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


# ── Helpers ───────────────────────────────────────────────────────────────────

REPO_ROOT = Path(__file__).parent.parent


def run_deployhelper(*args, cwd=None, input_text=""):
    """Run the deployhelper CLI and return (returncode, stdout, stderr)."""
    result = subprocess.run(
        [sys.executable, "-m", "deployhelper", *args],
        cwd=str(cwd or REPO_ROOT),
        capture_output=True,
        text=True,
        input=input_text,
        env={**os.environ, "PYTHONPATH": str(REPO_ROOT)},
    )
    return result.returncode, result.stdout, result.stderr


def valid_environment(**overrides):
    env = {
        "remoteBasePath": "/var/www/site/",
        "localPrivateKeyPath": "~/.ssh/id_rsa",
        "host": "staging.example.com",
        "user": "deploy",
        "pass": "secret",
        "port": 22,
        "applicationDirectory": "app",
        "buildDirectory": "public/build",
        "activeGitChangesIgnoreFiles": ["*.env"],
    }
    env.update(overrides)
    return env


# ── Tests: config discovery ──────────────────────────────────────────────────

class TestFindConfig(unittest.TestCase):
    """Tests for find_config(): upward search through parent directories."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_find_in_same_directory(self):
        from deployhelper.config import find_config
        (self.root / "deployhelper.json").write_text("{}", encoding="utf-8")
        self.assertEqual(find_config(self.root), self.root.resolve() / "deployhelper.json")

    def test_find_in_parent_directory(self):
        from deployhelper.config import find_config
        (self.root / "deployhelper.json").write_text("{}", encoding="utf-8")
        subdir = self.root / "a" / "b" / "c"
        subdir.mkdir(parents=True)
        self.assertEqual(find_config(subdir), self.root.resolve() / "deployhelper.json")

    def test_finds_yaml_config(self):
        from deployhelper.config import find_config
        (self.root / "deployhelper.yaml").write_text("environments: {}\n", encoding="utf-8")
        self.assertEqual(find_config(self.root), self.root.resolve() / "deployhelper.yaml")

    def test_finds_nearest_config(self):
        from deployhelper.config import find_config
        (self.root / "deployhelper.json").write_text("{}", encoding="utf-8")
        sub_a = self.root / "a"
        sub_a.mkdir()
        (sub_a / "deployhelper.json").write_text("{}", encoding="utf-8")
        deep = sub_a / "b"
        deep.mkdir()
        self.assertEqual(find_config(deep), sub_a.resolve() / "deployhelper.json")


# ── Tests: config loading ─────────────────────────────────────────────────────

class TestLoadConfig(unittest.TestCase):
    """Tests for load_config_file and build_environment."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, name, content):
        p = self.root / name
        p.write_text(content, encoding="utf-8")
        return p

    def test_build_environment_basic(self):
        from deployhelper import config as cfg
        p = self._write("deployhelper.json", json.dumps({"environments": {"staging": valid_environment()}}))
        data = cfg.load_config_file(p)
        env = cfg.build_environment(data, "staging")
        self.assertEqual(env.host, "staging.example.com")
        self.assertEqual(env.port, 22)
        self.assertEqual(env.ignore_patterns, ("*.env",))
        self.assertEqual(env.remote_path("src/app.php"), "/var/www/site/src/app.php")
        self.assertEqual(env.application_path, "/var/www/site/app")

    def test_remote_path_adds_missing_separator(self):
        from deployhelper import config as cfg
        data = {"environments": {"x": valid_environment(remoteBasePath="/srv/app")}}
        env = cfg.build_environment(data, "x")
        self.assertEqual(env.remote_path("a\\b.txt"), "/srv/app/a/b.txt")

    def test_yaml_config(self):
        from deployhelper import config as cfg
        p = self._write(
            "deployhelper.yaml",
            "environments:\n"
            "  prod:\n"
            "    remoteBasePath: /srv/\n"
            "    localPrivateKeyPath: ~/.ssh/id_rsa\n"
            "    host: prod.example.com\n"
            "    user: deploy\n"
            "    pass: pw\n"
            "    port: 2222\n"
            "    applicationDirectory: app\n"
            "    buildDirectory: build\n"
            "    activeGitChangesIgnoreFiles: ['*.log']\n",
        )
        env = cfg.build_environment(cfg.load_config_file(p), "prod")
        self.assertEqual(env.port, 2222)
        self.assertEqual(env.ignore_patterns, ("*.log",))

    def test_missing_file_is_fatal(self):
        from deployhelper import config as cfg
        from deployhelper.errors import ConfigError
        with self.assertRaises(ConfigError):
            cfg.load_config_file(self.root / "nope.json")

    def test_invalid_json_is_fatal(self):
        from deployhelper import config as cfg
        from deployhelper.errors import ConfigError
        p = self._write("deployhelper.json", "{not json")
        with self.assertRaises(ConfigError) as ctx:
            cfg.load_config_file(p)
        self.assertIn("valid JSON", ctx.exception.message)

    def test_missing_required_property_names_field(self):
        from deployhelper import config as cfg
        from deployhelper.errors import ConfigError
        env = valid_environment()
        del env["host"]
        with self.assertRaises(ConfigError) as ctx:
            cfg.build_environment({"environments": {"x": env}}, "x")
        self.assertIn("'host'", ctx.exception.message)

    def test_empty_required_property_is_fatal(self):
        from deployhelper import config as cfg
        from deployhelper.errors import ConfigError
        with self.assertRaises(ConfigError) as ctx:
            cfg.build_environment({"environments": {"x": valid_environment(user="")}}, "x")
        self.assertIn("'user'", ctx.exception.message)

    def test_ignore_patterns_must_be_list(self):
        from deployhelper import config as cfg
        from deployhelper.errors import ConfigError
        env = valid_environment(activeGitChangesIgnoreFiles="*.env")
        with self.assertRaises(ConfigError) as ctx:
            cfg.build_environment({"environments": {"x": env}}, "x")
        self.assertIn("must be an array", ctx.exception.message)

    def test_display_dict_masks_password(self):
        from deployhelper import config as cfg
        env = cfg.build_environment({"environments": {"x": valid_environment(**{"pass": "hunter2"})}}, "x")
        self.assertEqual(env.as_display_dict()["pass"], "*******")

    def test_environment_names_requires_environments(self):
        from deployhelper import config as cfg
        from deployhelper.errors import ConfigError
        with self.assertRaises(ConfigError):
            cfg.environment_names({"commands": {}})
        self.assertEqual(cfg.environment_names({"environments": {"a": {}, "b": {}}}), ["a", "b"])


# ── Tests: deployhelper init ─────────────────────────────────────────────────

class TestInitCommand(unittest.TestCase):
    """Tests for the 'deployhelper init' subcommand."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.cwd = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_init_creates_valid_config(self):
        rc, out, err = run_deployhelper(
            "init", "--server", "myhost.com", "--port", "2222", "--remote", "/srv/site/",
            cwd=self.cwd,
        )
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        from deployhelper import config as cfg
        data = cfg.load_config_file(self.cwd / "deployhelper.json")
        env = cfg.build_environment(data, "production")
        self.assertEqual(env.host, "myhost.com")
        self.assertEqual(env.port, 2222)
        self.assertEqual(env.remote_base_path, "/srv/site/")

    def test_init_refuses_overwrite(self):
        (self.cwd / "deployhelper.json").write_text("{}", encoding="utf-8")
        rc, out, err = run_deployhelper("init", "--server", "myhost.com", cwd=self.cwd)
        self.assertNotEqual(rc, 0)
        self.assertIn("already exists", err)

    def test_init_force_overwrites(self):
        target = self.cwd / "deployhelper.json"
        target.write_text("{}", encoding="utf-8")
        rc, out, err = run_deployhelper("init", "--server", "newhost.com", "--force", cwd=self.cwd)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("newhost.com", target.read_text(encoding="utf-8"))

    def test_init_dry_run_does_not_write(self):
        rc, out, err = run_deployhelper("init", "--server", "myhost.com", "--dry-run", cwd=self.cwd)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertFalse((self.cwd / "deployhelper.json").exists())
        self.assertIn("dry-run", out)

    def test_init_yaml(self):
        rc, out, err = run_deployhelper("init", "--server", "yamlhost", "--yaml", "--env", "staging",
                                        cwd=self.cwd)
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        import yaml
        data = yaml.safe_load((self.cwd / "deployhelper.yaml").read_text(encoding="utf-8"))
        self.assertEqual(data["environments"]["staging"]["host"], "yamlhost")


# ── Tests: deployhelper run ──────────────────────────────────────────────────

class TestRunCommand(unittest.TestCase):
    """Fatal configuration errors end the process with a message."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.cwd = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_missing_required_field_exits(self):
        env = valid_environment()
        del env["buildDirectory"]
        cfg_file = self.cwd / "deployhelper.json"
        cfg_file.write_text(json.dumps({"environments": {"x": env}}), encoding="utf-8")
        rc, out, err = run_deployhelper("run", "--config", str(cfg_file), cwd=self.cwd)
        self.assertEqual(rc, 1)
        self.assertIn("buildDirectory", err)

    def test_repl_exits_on_q(self):
        cfg_file = self.cwd / "deployhelper.json"
        cfg_file.write_text(json.dumps({"environments": {"x": valid_environment()}}), encoding="utf-8")
        rc, out, err = run_deployhelper("--config", str(cfg_file), "--no-color", cwd=self.cwd, input_text="q\n")
        self.assertEqual(rc, 0, msg=f"stderr: {err}")
        self.assertIn("WELCOME TO DEPLOYHELPER", out)
        self.assertIn("Exiting...", out)


class TestRunArguments(unittest.TestCase):
    """Run options are honoured on either side of the 'run' subcommand."""

    def parsed(self, *argv):
        from unittest import mock
        from deployhelper import cli
        with mock.patch("deployhelper.cli.cmd_run") as cmd_run:
            cli.main(list(argv))
        cmd_run.assert_called_once()
        return cmd_run.call_args[0][0]

    def test_options_before_run(self):
        args = self.parsed("--keep", "--env", "prod", "run")
        self.assertTrue(args.keep)
        self.assertEqual(args.env, "prod")

    def test_options_after_run(self):
        args = self.parsed("run", "--keep", "-v")
        self.assertTrue(args.keep)
        self.assertTrue(args.verbose)

    def test_defaults(self):
        for argv in ((), ("run",)):
            args = self.parsed(*argv)
            self.assertFalse(args.keep)
            self.assertIsNone(args.config)
            self.assertFalse(args.no_color)


if __name__ == "__main__":
    unittest.main()
