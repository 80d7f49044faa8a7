#!/usr/bin/env python3
"""CLI entry point for vmfolder-driver.

Noun-action subcommands:
- folder: VM folder lifecycle (create/read/update/delete/validate)
- preflight: Connectivity checks against a vCenter

Examples:
    vmfolder folder create -V vc1 -R build --spec-file build.yaml
    vmfolder folder read -V vc1 -R build --json-output
    vmfolder folder update -V vc1 -R build --spec-json '{"datacenter": "DC1", ...}'
    vmfolder folder delete -V vc1 -R build --yes
    vmfolder preflight -V vc1
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from common import CallContext, OperationCancelledError, OperationTimeoutError
from config import ConfigError, list_vcenters, load_vcenter_config
from folder import FolderError, FolderReconciler, FolderSpec, load_spec, requires_replacement
from inventory.base import InventoryError
from inventory.vsphere import connect
from readiness import run_preflight
from state import FolderState

NOUN_COMMANDS = {
    "folder": "VM folder lifecycle (create/read/update/delete/validate)",
    "preflight": "Connectivity checks against a vCenter",
}

FOLDER_ACTIONS = ('create', 'read', 'update', 'delete', 'validate')

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool, json_output: bool) -> None:
    """Configure logging based on flags."""
    if json_output:
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        ))
        root_logger.addHandler(stderr_handler)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _folder_parser(action: str) -> argparse.ArgumentParser:
    """Build argument parser for a folder action."""
    parser = argparse.ArgumentParser(
        prog=f'vmfolder folder {action}',
        description=f'{action.capitalize()} a VM folder',
    )
    if action != 'validate':
        parser.add_argument(
            '--vcenter', '-V',
            required=True,
            help=f'Target vCenter. Available: {", ".join(list_vcenters()) or "none configured"}',
        )
        parser.add_argument(
            '--resource', '-R',
            required=True,
            help='Resource key used to store the folder identity',
        )
        parser.add_argument(
            '--state-dir',
            type=Path,
            help='Directory holding resource state files (default: $VMFOLDER_STATE_DIR/folders or ./.states/folders)',
        )
        parser.add_argument(
            '--timeout',
            type=float,
            help='Deadline in seconds for the whole operation',
        )
    if action in ('create', 'update', 'validate'):
        parser.add_argument(
            '--spec-file',
            type=Path,
            help='Path to folder spec YAML',
        )
        parser.add_argument(
            '--spec-json',
            help='Inline folder spec JSON',
        )
    if action == 'delete':
        parser.add_argument(
            '--yes', '-y',
            action='store_true',
            help='Skip confirmation prompt',
        )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging',
    )
    parser.add_argument(
        '--json-output',
        action='store_true',
        help='Output structured JSON to stdout (logs to stderr)',
    )
    return parser


def _load_spec_arg(args) -> FolderSpec:
    if args.spec_file:
        return load_spec(args.spec_file)
    if args.spec_json:
        try:
            data = json.loads(args.spec_json)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid --spec-json: {e}") from e
        return FolderSpec.from_dict(data)
    raise ConfigError("One of --spec-file or --spec-json is required")


def _state_path(args) -> Optional[Path]:
    if args.state_dir is None:
        return None
    return args.state_dir / f'{args.resource}.json'


def _emit(args, payload: dict, lines: list[str]) -> None:
    if args.json_output:
        print(json.dumps(payload, indent=2))
    else:
        for line in lines:
            print(line)


def _applied_spec(old: FolderSpec, new: FolderSpec, fields: list[str]) -> FolderSpec:
    """Spec reflecting only the fields that were applied."""
    return replace(old, **{key: getattr(new, key) for key in fields})


def _do_create(args, reconciler: FolderReconciler, state: FolderState, ctx: CallContext) -> int:
    spec = _load_spec_arg(args)
    if state.identity:
        logger.error(f"Resource '{args.resource}' already has folder {state.identity}; use update")
        return 1
    identity = reconciler.create(spec, ctx)
    state.record(identity, spec)
    state.save(_state_path(args))
    _emit(args, {'resource': args.resource, 'identity': identity, 'spec': spec.to_dict()},
          [f"Created folder {spec.parent.rstrip('/')}/{spec.name} ({identity})"])
    return 0


def _do_read(args, reconciler: FolderReconciler, state: FolderState, ctx: CallContext) -> int:
    if state.spec is None:
        logger.error(f"No stored spec for resource '{args.resource}'")
        return 1
    observed = reconciler.read(state.identity, state.spec.datacenter, ctx)
    if observed is None:
        state.clear('absent')
        state.save(_state_path(args))
        _emit(args, {'resource': args.resource, 'identity': '', 'absent': True},
              [f"Folder for '{args.resource}' is absent"])
        return 0
    state.record(state.identity, observed)
    state.save(_state_path(args))
    _emit(args, {'resource': args.resource, 'identity': state.identity, 'spec': observed.to_dict()},
          [f"{observed.name}: parent={observed.parent} datacenter={observed.datacenter} ({state.identity})"])
    return 0


def _do_update(args, reconciler: FolderReconciler, state: FolderState, ctx: CallContext) -> int:
    new = _load_spec_arg(args)
    old = state.spec
    if old is None or not state.identity:
        logger.error(f"Resource '{args.resource}' has no folder; use create")
        return 1
    if requires_replacement(old, new):
        logger.error("Datacenter changed: delete and recreate the folder")
        return 1

    try:
        result = reconciler.update(state.identity, old, new, ctx)
    except FolderError as e:
        if e.result is not None:
            state.record(state.identity, _applied_spec(old, new, e.result.applied_fields))
            state.save(_state_path(args))
        raise

    if result.absent:
        state.clear('absent')
        state.save(_state_path(args))
        _emit(args, {'resource': args.resource, 'identity': '', 'absent': True},
              [f"Folder for '{args.resource}' is absent"])
        return 0

    state.record(state.identity, new)
    state.save(_state_path(args))
    _emit(args, {'resource': args.resource, 'identity': state.identity, 'result': result.to_dict()},
          [f"Updated folder {state.identity}: name={result.name} parent={result.parent}"])
    return 0


def _do_delete(args, reconciler: FolderReconciler, state: FolderState, ctx: CallContext) -> int:
    if not args.yes:
        response = input(f"Delete folder for '{args.resource}'? [y/N] ").strip().lower()
        if response != 'y':
            print("Aborted.")
            return 1
    reconciler.delete(state.identity, ctx)
    state.remove(_state_path(args))
    _emit(args, {'resource': args.resource, 'identity': '', 'destroyed': True},
          [f"Deleted folder for '{args.resource}'"])
    return 0


HANDLERS = {
    'create': _do_create,
    'read': _do_read,
    'update': _do_update,
    'delete': _do_delete,
}


def folder_main(argv: list) -> int:
    """Dispatch 'folder' noun to action-specific handler."""
    if not argv or argv[0].startswith('-'):
        print("Usage: vmfolder folder <action> [options]")
        print()
        print("Actions:")
        print("  create    Create a folder from a spec")
        print("  read      Refresh stored state from the inventory")
        print("  update    Rename and/or move an existing folder")
        print("  delete    Delete an empty folder")
        print("  validate  Validate and normalize a spec")
        return 1 if not argv else 0

    action = argv[0]
    if action not in FOLDER_ACTIONS:
        print(f"Error: Unknown folder action '{action}'")
        print(f"Available actions: {', '.join(FOLDER_ACTIONS)}")
        return 2

    args = _folder_parser(action).parse_args(argv[1:])
    _setup_logging(args.verbose, args.json_output)

    if action == 'validate':
        try:
            spec = _load_spec_arg(args)
        except (FolderError, ConfigError) as e:
            logger.error(str(e))
            if args.json_output:
                print(json.dumps({'valid': False, 'message': str(e)}, indent=2))
            return 1
        _emit(args, {'valid': True, 'spec': spec.to_dict()},
              [f"Valid: datacenter={spec.datacenter} parent={spec.parent} name={spec.name}"])
        return 0

    ctx = CallContext(timeout=args.timeout)
    try:
        state = FolderState.load(args.resource, _state_path(args))
        config = load_vcenter_config(args.vcenter)
        with connect(config) as client:
            return HANDLERS[action](args, FolderReconciler(client), state, ctx)
    except FolderError as e:
        logger.error(str(e))
        if args.json_output:
            print(json.dumps({'resource': args.resource, 'error': e.code, 'message': e.message}, indent=2))
        return 1
    except (ConfigError, InventoryError, OperationTimeoutError, OperationCancelledError) as e:
        logger.error(str(e))
        return 1
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"State file error for '{args.resource}': {e}")
        return 1


def preflight_main(argv: list) -> int:
    """Run connectivity checks against a vCenter."""
    parser = argparse.ArgumentParser(prog='vmfolder preflight', description='Check vCenter connectivity')
    parser.add_argument('--vcenter', '-V', required=True, help='Target vCenter')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    args = parser.parse_args(argv)
    _setup_logging(args.verbose, False)

    try:
        config = load_vcenter_config(args.vcenter)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    results = run_preflight(config)
    for name, success, message in results:
        mark = "✓" if success else "✗"
        print(f"  {mark} {name}: {message}")
    return 0 if all(success for _, success, _ in results) else 1


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] in ('-h', '--help'):
        print("Usage: vmfolder <noun> <action> [options]")
        print()
        print("Nouns:")
        for noun, description in NOUN_COMMANDS.items():
            print(f"  {noun:10} {description}")
        return 0 if argv else 1

    noun, rest = argv[0], argv[1:]
    if noun == 'folder':
        return folder_main(rest)
    if noun == 'preflight':
        return preflight_main(rest)

    print(f"Error: Unknown command '{noun}'")
    print(f"Available commands: {', '.join(NOUN_COMMANDS)}")
    return 2


if __name__ == '__main__':
    sys.exit(main())
