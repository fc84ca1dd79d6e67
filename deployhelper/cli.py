#!/usr/bin/env python3
"""
deployhelper: stage, preview and run SFTP deployments interactively
===================================================================

Subcommands:
  run       Start the interactive helper (default when no subcommand given).
  init      Create a deployhelper.json config file in the current directory.

Run 'deployhelper <subcommand> --help' for more details.
"""
import argparse
import json
import os
import sys
from pathlib import Path

from .errors import ConfigError, FatalError


# ── init ─────────────────────────────────────────────────────────────────────

def cmd_init(args):
    """Create a deployhelper config file in the current directory."""
    from deployhelper import config as _cfg

    name = "deployhelper.yaml" if args.yaml else "deployhelper.json"
    target = Path.cwd() / name

    if target.exists() and not args.force:
        print(f"error: {name} already exists in {Path.cwd()}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        sys.exit(1)

    interactive = sys.stdin.isatty() and not args.dry_run

    def resolve(value, prompt, default):
        if value is not None:
            return value
        if interactive:
            entered = input(f"{prompt} [{default}]: ").strip()
            return entered or default
        return default

    host = resolve(args.server, "Server hostname", "example.com")
    user = resolve(args.user, "SSH user", "deploy")
    port = resolve(args.port, "SSH port", 22)
    try:
        port = int(port)
    except ValueError:
        print("error: port must be a number.", file=sys.stderr)
        sys.exit(1)
    remote = resolve(args.remote, "Remote base path", "/var/www/html/")
    key = resolve(args.key, "Private key path", "~/.ssh/id_rsa")

    data = _cfg.scaffold_config(name=args.env, host=host, user=user, port=port,
                                remote_base_path=remote, private_key_path=key)
    if args.yaml:
        import yaml
        content = yaml.safe_dump(data, sort_keys=False)
    else:
        content = json.dumps(data, indent=4) + "\n"

    if args.dry_run:
        print(f"[dry-run] Would write {target}:")
        print(content)
        return

    target.write_text(content, encoding="utf-8")
    print(f"Created {target}")
    print("Edit the 'pass' and 'activeGitChangesIgnoreFiles' values before connecting.")
    if args.verbose:
        print(content)


# ── run ──────────────────────────────────────────────────────────────────────

def cmd_run(args):
    """Load the nearest config and start the interactive helper."""
    from deployhelper import config as _cfg
    from deployhelper.core.helper import DeployHelper
    from deployhelper.core.session import Session
    from deployhelper.operations.selectors import select_environment
    from deployhelper.utils.logging import set_color, set_verbose
    from deployhelper.utils.prompt import Prompter

    set_verbose(args.verbose)
    set_color(sys.stdout.isatty() and not args.no_color and "NO_COLOR" not in os.environ)

    config_path = Path(args.config) if args.config else _cfg.find_config()
    if config_path is None:
        raise ConfigError("deployhelper.json config file not found in this directory or any parent. "
                          "Run 'deployhelper init' to create one.")
    config_path = config_path.resolve()

    if args.verbose:
        print(f"[config] Using {config_path}")

    data = _cfg.load_config_file(config_path)
    prompter = Prompter()
    name = select_environment(_cfg.environment_names(data), prompter, args.env)
    if name is None:
        print("No environment selected.")
        return
    env = _cfg.build_environment(data, name, source=config_path.name)

    # Paths typed at the prompt are relative to the project root
    os.chdir(config_path.parent)

    session = Session.for_environment(env, prompter=prompter, config_data=data,
                                      config_path=str(config_path), keep_mode=args.keep)
    try:
        DeployHelper(session, base_dir=str(config_path.parent)).run()
    finally:
        session.connection.disconnect()


# ── main ──────────────────────────────────────────────────────────────────────

def _add_run_arguments(p):
    p.add_argument("--config", metavar="PATH",
                   help="Config file (default: nearest deployhelper.json upward)")
    p.add_argument("--env", metavar="NAME",
                   help="Environment to activate (asked when several exist)")
    p.add_argument("--keep", action="store_true",
                   help="Start with keep mode on (real runs do not clear the queue)")
    p.add_argument("--no-color", action="store_true",
                   help="Disable coloured output")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="Show extra output")


def main(argv=None):
    """CLI entry point for deployhelper"""
    parser = argparse.ArgumentParser(
        prog="deployhelper",
        description="Stage, preview and run SFTP deployments interactively",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_run_arguments(parser)
    parser.set_defaults(func=cmd_run)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── run ───────────────────────────────────────────────────────────────────
    # Unset options leave the values parsed before 'run' alone
    run_p = subparsers.add_parser(
        "run",
        help="Start the interactive helper",
        description="Start the interactive deploy helper using the nearest config file.",
        argument_default=argparse.SUPPRESS,
    )
    _add_run_arguments(run_p)
    run_p.set_defaults(func=cmd_run)

    # ── init ──────────────────────────────────────────────────────────────────
    init_p = subparsers.add_parser(
        "init",
        help="Create a deployhelper.json config file in the current directory",
        description="Create a deployhelper config file with one environment.",
    )
    init_p.add_argument("--server", metavar="HOST",
                        help="Remote server hostname or IP")
    init_p.add_argument("--user", metavar="NAME",
                        help="SSH username (default: deploy)")
    init_p.add_argument("--port", type=int, metavar="N",
                        help="SSH port (default: 22)")
    init_p.add_argument("--remote", metavar="PATH",
                        help="Remote base path (default: /var/www/html/)")
    init_p.add_argument("--key", metavar="PATH",
                        help="Local private key path (default: ~/.ssh/id_rsa)")
    init_p.add_argument("--env", metavar="NAME", default="production",
                        help="Environment name to create (default: production)")
    init_p.add_argument("--yaml", action="store_true",
                        help="Write deployhelper.yaml instead of JSON")
    init_p.add_argument("--force", action="store_true",
                        help="Overwrite an existing config file")
    init_p.add_argument("-n", "--dry-run", action="store_true",
                        help="Preview without writing files")
    init_p.add_argument("-v", "--verbose", action="store_true",
                        help="Show extra output")
    init_p.set_defaults(func=cmd_init)

    args = parser.parse_args(argv)

    try:
        args.func(args)
    except FatalError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(130)


if __name__ == "__main__":
    main()
