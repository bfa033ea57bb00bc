# main.py
import argparse
import json
import os
import signal
import sys
from pathlib import Path

from PyQt6.QtCore import QCoreApplication

from cellar.core.constants import APP_NAME, APP_VERSION, CONFIG_ENV_VAR, CONFIG_FILE_NAME, ORG_NAME
from cellar.models.result_model import OperationResult
from cellar.utils.logger_utils import logger, reconfigure_logger

# Import services
from cellar.services import (
    ActivationSwitch,
    ArchiveProvisioner,
    ConfigSaveError,
    ConfigService,
    ContainerRepository,
    ContainerService,
    ContentsService,
    IdentityAllocator,
    PatoolArchiveCodec,
    ShortcutIndex,
)

# Import utilities
from cellar.utils import TaskRunner

# Import view models
from cellar.viewmodels import ContainerManagerViewModel


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cellar", description="Manage Wine containers.")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument(
        "--config",
        type=Path,
        help=f"Settings file (default: ${CONFIG_ENV_VAR} or ./{CONFIG_FILE_NAME})",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init", help="Write the settings file and create the home directory")
    commands.add_parser("list", help="List containers")
    commands.add_parser("shortcuts", help="List desktop shortcuts of all containers")

    create = commands.add_parser("create", help="Create and provision a new container")
    create.add_argument("--name", default="Container")
    create.add_argument("--wine-version", help="Runtime entry name; the bundled one if omitted")
    create.add_argument("--screen-size")
    create.add_argument("--bionic", action="store_true", help="Use the bionic filesystem template")
    create.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=JSON",
        help="Extra config value by JSON key, e.g. showFPS=true",
    )

    for name, text in (
        ("duplicate", "Copy a container into a new one"),
        ("export", "Back up a container into the export folder"),
        ("remove", "Delete a container"),
        ("activate", "Make a container the active one"),
    ):
        sub = commands.add_parser(name, help=text)
        sub.add_argument("id", type=int)

    import_cmd = commands.add_parser("import", help="Import a container directory")
    import_cmd.add_argument("path", type=Path)

    driver = commands.add_parser("driver", help="Extract a bundled graphics driver")
    driver.add_argument("version")
    driver.add_argument("target", type=Path)

    return parser


def resolve_config_path(cli_path: Path | None) -> Path:
    if cli_path:
        return cli_path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / CONFIG_FILE_NAME


def build_container_data(args) -> dict:
    """Turns `create` options into a container config document."""
    data: dict = {"name": args.name}
    if args.wine_version:
        data["wineVersion"] = args.wine_version
    if args.screen_size:
        data["screenSize"] = args.screen_size
    if args.bionic:
        data["isBionic"] = True
    for override in args.overrides:
        key, sep, raw = override.partition("=")
        if not sep:
            raise ValueError(f"Expected KEY=JSON, got '{override}'")
        try:
            data[key] = json.loads(raw)
        except json.JSONDecodeError:
            # Bare words are taken as strings
            data[key] = raw
    return data


def run_operation(app: QCoreApplication, view_model: ContainerManagerViewModel, start) -> OperationResult | None:
    """Starts one queued operation and spins the event loop until it reports back."""
    outcome: list[OperationResult] = []

    def on_finished(name: str, result: OperationResult):
        outcome.append(result)
        app.quit()

    view_model.operation_finished.connect(on_finished)
    try:
        if start() is None:
            return None
        app.exec()
    finally:
        view_model.operation_finished.disconnect(on_finished)
    return outcome[0] if outcome else None


def print_container(container, active_id: int | None):
    marker = "*" if container.id == active_id else " "
    print(
        f"{marker} {container.id:>4}  {container.name:<24} {container.config.wine_version:<20} "
        f"{container.status.name}"
    )


def main(argv: list[str] | None = None) -> int:
    """The main entry point for the command line."""
    args = build_parser().parse_args(argv)

    # --- 1. Qt Application Setup ---
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setOrganizationName(ORG_NAME)
    app.setApplicationName(APP_NAME)

    # --- 2. Settings & Logging ---
    config_service = ConfigService(resolve_config_path(args.config))
    app_config = config_service.load_config()
    reconfigure_logger(app_config.log_dir)
    logger.info(f"{APP_NAME} {APP_VERSION} starting ({args.command})...")

    if args.command == "init":
        try:
            config_service.save_config(app_config)
            app_config.home_dir.mkdir(parents=True, exist_ok=True)
        except (ConfigSaveError, OSError) as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        print(f"Settings written to {config_service.config_path}")
        print(f"Containers live in {app_config.home_dir}")
        return 0

    # --- 3. Composition Root: Create and Wire All Dependencies ---
    try:
        allocator = IdentityAllocator()
        repository = ContainerRepository(app_config.home_dir, config_service, allocator)
        contents_service = ContentsService(app_config.contents_dir)
        provisioner = ArchiveProvisioner(
            assets_dir=app_config.assets_dir,
            wine_lib_dir=app_config.wine_lib_dir,
            contents_service=contents_service,
            codec=PatoolArchiveCodec(),
        )
        activation_switch = ActivationSwitch(repository)
        container_service = ContainerService(
            repository=repository,
            provisioner=provisioner,
            activation_switch=activation_switch,
            config_service=config_service,
            export_dir=app_config.export_dir,
        )
        shortcut_index = ShortcutIndex(repository)
        task_runner = TaskRunner(max_workers=1)
        view_model = ContainerManagerViewModel(
            container_service=container_service,
            shortcut_index=shortcut_index,
            task_runner=task_runner,
        )
        logger.info("Core services initialized.")
    except Exception as e:
        logger.critical(f"Failed to initialize core components: {e}", exc_info=True)
        return 1

    view_model.toast_requested.connect(
        lambda message, level: logger.info(f"[{level}] {message}")
    )

    # --- 4. Initial Load ---
    if run_operation(app, view_model, view_model.start_initial_load) is None:
        print("error: could not load containers", file=sys.stderr)
        return 1

    # --- 5. Commands ---
    if args.command == "list":
        active_id = activation_switch.active_container_id()
        for container in view_model.get_containers():
            print_container(container, active_id)
        return 0

    if args.command == "shortcuts":
        for shortcut in view_model.refresh_shortcuts():
            print(f"{shortcut.container_id:>4}  {shortcut.name}  {shortcut.path}")
        return 0

    if args.command == "activate":
        result = view_model.activate_container(args.id)
        return report(result, lambda c: f"Activated container {c.id} ('{c.name}')")

    if args.command == "driver":
        if provisioner.extract_graphics_driver_files(args.version, args.target):
            print(f"Driver {args.version} extracted to {args.target}")
            return 0
        print(f"error: could not extract driver {args.version}", file=sys.stderr)
        return 1

    if args.command == "create":
        try:
            data = build_container_data(args)
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        # Ctrl+C asks the worker to stop and clean up instead of killing it
        previous_handler = signal.signal(signal.SIGINT, lambda *_: view_model.cancel_creation())
        try:
            result = run_operation(app, view_model, lambda: view_model.create_container(data))
        finally:
            signal.signal(signal.SIGINT, previous_handler)
        return report(result, lambda c: f"Created container {c.id} ('{c.name}') at {c.root_dir}")

    if args.command == "duplicate":
        result = run_operation(app, view_model, lambda: view_model.duplicate_container(args.id))
        return report(result, lambda c: f"Created container {c.id} ('{c.name}') at {c.root_dir}")

    if args.command == "import":
        result = run_operation(app, view_model, lambda: view_model.import_container(args.path))
        return report(result, lambda c: f"Imported container {c.id} ('{c.name}') at {c.root_dir}")

    if args.command == "export":
        result = run_operation(app, view_model, lambda: view_model.export_container(args.id))
        return report(result, lambda path: f"Exported to {path}")

    if args.command == "remove":
        result = run_operation(app, view_model, lambda: view_model.remove_container(args.id))
        return report(result, lambda c: f"Removed container {c.id} ('{c.name}')")

    return 2


def report(result: OperationResult | None, describe) -> int:
    if result is None:
        print("error: container not found", file=sys.stderr)
        return 1
    if not result.success:
        kind = result.kind.name if result.kind else "ERROR"
        print(f"error [{kind}]: {result.error}", file=sys.stderr)
        return 1
    print(describe(result.data))
    return 0


if __name__ == "__main__":
    sys.exit(main())
