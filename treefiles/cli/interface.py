# treefiles/cli/interface.py
import os
import sys
from pathlib import Path
from typing import Any, Dict

import click
from click_option_group import optgroup
import structlog

from treefiles import __version__ as app_version
from treefiles.config.loader import load_and_merge_configs, resolve_file_options
from treefiles.config.settings import (
    DEFAULT_CONCURRENCY, DEFAULT_IGNORE_FILE_NAME, IGNORE_PATTERN_ENV_VAR,
    UNBOUNDED_MAX_RESULTS, WalkConfig,
)
from treefiles.cli.console_output import report_walk_error, walk_progress
from treefiles.core.discovery import FileWalk, walk_files
from treefiles.core.output import write_path_line
from treefiles.exceptions import TreeFilesError
from treefiles.logging_setup import configure_logging

log = structlog.get_logger(__name__)

# cli parameter names that map one-to-one onto WalkConfig fields.
WALK_OPTION_NAMES = (
    "ignore_pattern", "match_pattern", "max_results", "use_scoped_ignore_files",
    "use_global_ignore_file", "ignore_file_name", "concurrency", "absolute", "progress",
)

def _build_walk_config(ctx: click.Context, root: str, cli_params: Dict[str, Any]) -> WalkConfig:
    # layers: dataclass defaults < config files < profile < explicit command-line flags.
    effective_options = resolve_file_options(
        load_and_merge_configs(), cli_params.get("active_config_profile_name")
    )
    for name in WALK_OPTION_NAMES:
        if ctx.get_parameter_source(name) == click.core.ParameterSource.COMMANDLINE:
            effective_options[name] = cli_params[name]

    # the global excludes file follows -g unless set explicitly.
    if effective_options.get("use_global_ignore_file") is None:
        effective_options["use_global_ignore_file"] = bool(effective_options.get("use_scoped_ignore_files", False))

    log.debug("effective_walk_options", root=root, **effective_options)
    return WalkConfig(root=Path(root), **effective_options)

def _stream_paths(walk: FileWalk, show_progress: bool) -> None:
    completed = False
    try:
        with walk_progress(show_progress) as update_progress:
            for count, path in enumerate(walk, 1):
                write_path_line(path)
                update_progress(count)
        completed = True
    finally:
        if not completed:
            walk.cancel()
        walk.wait()
        sys.stdout.flush()


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument("root", required=False, default=".", type=click.Path(file_okay=True, dir_okay=True))
@optgroup.group("Filtering Options", help="Control which files and directories are listed.")
@optgroup.option("-i", "--ignore", "ignore_pattern", default=None, metavar="REGEX", help=f"Regex for names to skip (directories are pruned). Default: ${IGNORE_PATTERN_ENV_VAR} or the VCS metadata directories.")
@optgroup.option("-m", "--match", "match_pattern", default=None, metavar="REGEX", help="Only list files whose name matches this regex.")
@optgroup.option("-M", "--max-files", "max_results", type=int, default=UNBOUNDED_MAX_RESULTS, help="Fail once more than this many files are found. Default: unbounded.")
@optgroup.option("-g", "--gitignore", "use_scoped_ignore_files", is_flag=True, default=False, help="Honour .gitignore files and the global git excludes file.")
@optgroup.option("--global-ignore/--no-global-ignore", "use_global_ignore_file", default=None, help="Use git's core.excludesfile. Default: on with -g.")
@optgroup.option("--ignore-file-name", "ignore_file_name", default=DEFAULT_IGNORE_FILE_NAME, help=f"Per-directory rule file name. Default: {DEFAULT_IGNORE_FILE_NAME}.")
@optgroup.group("Output Options", help="Control how results are displayed.")
@optgroup.option("-a", "--absolute", "absolute", is_flag=True, default=False, help="Display absolute paths.")
@optgroup.option("-p", "--progress", "progress", is_flag=True, default=False, help="Show a progress counter on stderr.")
@optgroup.group("Application Behavior", help="Concurrency, configuration profiles and logging.")
@optgroup.option("-j", "--jobs", "concurrency", type=click.IntRange(min=1), default=DEFAULT_CONCURRENCY, help=f"Maximum directories walked concurrently. Default: {DEFAULT_CONCURRENCY}.")
@optgroup.option("--config-profile", "active_config_profile_name", default=None, help="Load a profile from config file(s).")
@optgroup.option("--verbose", "-v", "verbosity_level", count=True, help="Verbosity: -v info, -vv debug.")
@optgroup.option("--force-json-logs", "force_json_logs_cli", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="treefiles", prog_name="treefiles", help="Show version and exit.")
@click.pass_context
def main_cli(ctx: click.Context, root: str, **cli_params: Any):
    """treefiles: list every file under ROOT (default: current directory),
    streaming paths as they are found."""

    log_level = "warning"
    if cli_params.get("verbosity_level", 0) == 1: log_level = "info"
    elif cli_params.get("verbosity_level", 0) >= 2: log_level = "debug"
    configure_logging(log_level_str=log_level, force_json_logs=cli_params.get("force_json_logs_cli", False))

    log.debug("cli_command_invoked", root=root, params=cli_params)

    try:
        config = _build_walk_config(ctx, root, cli_params)
        walk = walk_files(config)
        _stream_paths(walk, config.progress)
    except click.exceptions.Exit as e: raise e
    except BrokenPipeError:
        # downstream closed (e.g. `| head`); keep the interpreter from complaining at exit.
        log.debug("stdout_closed_by_consumer")
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        sys.exit(0)
    except TreeFilesError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    except click.ClickException as e:
        log.error("click_exception_in_cli", error_type=type(e).__name__, message=str(e))
        e.show(); sys.exit(e.exit_code)
    except Exception as e:
        log.critical("unexpected_critical_error_in_cli", message=str(e), exc_info=True)
        click.secho(f"Unexpected critical error: {e}. Please report this.", fg="red", err=True)
        sys.exit(1)

    ctx.exit(report_walk_error(walk.error))
