#!/usr/bin/env python3
"""Plugin management CLI tool."""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables FIRST (before importing project modules)
load_dotenv('.env')

logging.basicConfig(
    level=getattr(logging, os.getenv('LOG_LEVEL', 'WARNING').upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

from plugin_host.dependencies import AppContext, create_context
from plugin_host.errors import PluginHostError
from plugin_host.plugins.environment import EnvVar


def read_source(path: str) -> str:
    """Read a plugin source file given on the command line."""
    source = Path(path)
    if not source.is_file():
        print(f"Source file does not exist: {source}")
        sys.exit(1)
    return source.read_text(encoding="utf-8")


def cmd_list(ctx: AppContext, args):
    """List all catalogued plugins."""
    plugins = asyncio.run(ctx.manager.list_plugins())

    if not plugins:
        print("No plugins found.")
        return

    print(f"{'ID':<34} {'Name':<30} {'Tools'}")
    print("-" * 100)

    for plugin_id, plugin in plugins.items():
        tools = ", ".join(tool.name for tool in plugin.tools)
        print(f"{plugin_id:<34} {plugin.name:<30} {tools}")


def cmd_info(ctx: AppContext, args):
    """Show detailed plugin information."""
    result = asyncio.run(ctx.manager.get_plugin(args.plugin_id))
    if result is None:
        print(f"Plugin '{args.plugin_id}' not found.")
        sys.exit(1)

    plugin = result.info
    print(f"Plugin: {plugin.id}")
    print(f"  Name:        {plugin.name}")
    print(f"  Description: {plugin.description or ''}")
    print(f"  Source:      {ctx.manager.source_path(plugin.id)}")
    print(f"  Tools:")
    for tool in plugin.tools:
        print(f"    - {tool.name}: {tool.description}")
        if tool.parameters is not None:
            print(f"      Parameters: {json.dumps(tool.parameters, indent=4, ensure_ascii=False)}")


def cmd_import(ctx: AppContext, args):
    """Import a plugin from a source file."""
    plugin = asyncio.run(ctx.manager.import_plugin(read_source(args.path)))
    print(f"Plugin '{plugin.name}' imported with id {plugin.id} ({len(plugin.tools)} tool(s)).")


def cmd_update(ctx: AppContext, args):
    """Replace a plugin's source."""
    plugin = asyncio.run(ctx.manager.update_plugin(args.plugin_id, read_source(args.path)))
    print(f"Plugin '{plugin.name}' ({plugin.id}) updated ({len(plugin.tools)} tool(s)).")


def cmd_remove(ctx: AppContext, args):
    """Remove a plugin."""
    asyncio.run(ctx.manager.remove_plugin(args.plugin_id))
    print(f"Plugin '{args.plugin_id}' removed.")


def cmd_exec(ctx: AppContext, args):
    """Run one tool and print its JSON result."""
    try:
        tool_args = json.loads(args.args)
    except json.JSONDecodeError as e:
        print(f"--args is not valid JSON: {e}")
        sys.exit(1)

    result = asyncio.run(ctx.manager.execute_tool(args.plugin_id, args.tool, tool_args))
    print(json.dumps(result, indent=2, ensure_ascii=False))


def cmd_env(ctx: AppContext, args):
    """List, set or unset plugin environment variables."""
    env_vars = ctx.manager.env_list()

    if args.env_command == "list":
        if not env_vars:
            print("No environment variables set.")
        for var in env_vars:
            print(f"{var.key}=***" if not args.show else f"{var.key}={var.value}")
        return

    if args.env_command == "set":
        updates = {}
        for assignment in args.assignments:
            key, sep, value = assignment.partition("=")
            if not sep or not key.strip():
                print(f"Expected KEY=VALUE, got: {assignment}")
                sys.exit(1)
            updates[key.strip()] = value
        merged = {var.key: var.value for var in env_vars}
        merged.update(updates)
        ctx.manager.env_save([EnvVar(key=k, value=v) for k, v in merged.items()])
        print(f"Set {len(updates)} variable(s).")
        return

    remaining = [var for var in env_vars if var.key not in set(args.keys)]
    ctx.manager.env_save(remaining)
    print(f"Removed {len(env_vars) - len(remaining)} variable(s).")


def cmd_doctor(ctx: AppContext, args):
    """Run health checks on the plugin system."""
    issues = []

    if not ctx.runtime.is_installed:
        issues.append(f"Script runtime '{ctx.runtime.binary}' is not installed")

    report = asyncio.run(ctx.manager.repair() if args.fix else ctx.manager.check())
    for plugin_id in report.missing_sources:
        issues.append(f"Plugin '{plugin_id}' is catalogued but its source file is missing")
    for plugin_id in report.orphaned_sources:
        issues.append(f"Source file '{plugin_id}.ts' has no catalog entry")

    if issues:
        print(f"Found {len(issues)} issue(s):")
        for i, issue in enumerate(issues, 1):
            print(f"  {i}. {issue}")
        if args.fix and not report.ok:
            print("Catalog issues repaired.")
        sys.exit(1)
    else:
        plugins = asyncio.run(ctx.manager.list_plugins())
        print(f"All checks passed. {len(plugins)} plugin(s) found.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Plugin Host Manager")
    parser.add_argument("--plugins-dir", help="Plugins directory (default: from PLUGIN_HOST_CONFIG_DIR)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list
    subparsers.add_parser("list", help="List all plugins")

    # info
    info_parser = subparsers.add_parser("info", help="Show plugin details")
    info_parser.add_argument("plugin_id", help="Plugin ID")

    # import
    import_parser = subparsers.add_parser("import", help="Import a plugin from a .ts file")
    import_parser.add_argument("path", help="Path to plugin source")

    # update
    update_parser = subparsers.add_parser("update", help="Replace a plugin's source")
    update_parser.add_argument("plugin_id", help="Plugin ID")
    update_parser.add_argument("path", help="Path to new plugin source")

    # remove
    remove_parser = subparsers.add_parser("remove", help="Remove a plugin")
    remove_parser.add_argument("plugin_id", help="Plugin ID")

    # exec
    exec_parser = subparsers.add_parser("exec", help="Run a plugin tool")
    exec_parser.add_argument("plugin_id", help="Plugin ID")
    exec_parser.add_argument("tool", help="Tool name")
    exec_parser.add_argument("--args", default="{}", help="Tool arguments as JSON (default: {})")

    # env
    env_parser = subparsers.add_parser("env", help="Manage plugin environment variables")
    env_subparsers = env_parser.add_subparsers(dest="env_command", required=True)
    env_list_parser = env_subparsers.add_parser("list", help="List variables")
    env_list_parser.add_argument("--show", action="store_true", help="Print values")
    env_set_parser = env_subparsers.add_parser("set", help="Set variables")
    env_set_parser.add_argument("assignments", nargs="+", metavar="KEY=VALUE")
    env_unset_parser = env_subparsers.add_parser("unset", help="Remove variables")
    env_unset_parser.add_argument("keys", nargs="+", metavar="KEY")

    # doctor
    doctor_parser = subparsers.add_parser("doctor", help="Run health checks")
    doctor_parser.add_argument("--fix", action="store_true", help="Repair catalog/source mismatches")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "list": cmd_list,
        "info": cmd_info,
        "import": cmd_import,
        "update": cmd_update,
        "remove": cmd_remove,
        "exec": cmd_exec,
        "env": cmd_env,
        "doctor": cmd_doctor,
    }

    ctx = create_context(Path(args.plugins_dir)) if args.plugins_dir else create_context()
    try:
        commands[args.command](ctx, args)
    except PluginHostError as e:
        print(f"{e.kind}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
