# treefiles/config/loader.py
"""
Handles loading and merging of configuration from TOML files.
"""
import toml
from pathlib import Path
from typing import Dict, Any, Optional
import structlog

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".treefiles.toml", "treefiles.toml", "pyproject.toml"]
USER_CONFIG_DIR = Path.home() / ".config" / "treefiles"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

CONFIG_KEY_TO_WALKCONFIG_ATTR_MAP: Dict[str, str] = {
    "ignore_pattern": "ignore_pattern",
    "match_pattern": "match_pattern",
    "max_results": "max_results",
    "gitignore": "use_scoped_ignore_files",
    "global_ignore": "use_global_ignore_file",
    "ignore_file_name": "ignore_file_name",
    "concurrency": "concurrency",
    "absolute": "absolute",
    "progress": "progress",
}

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (toml.TomlDecodeError, OSError) as e:
        log.error("config_file_load_error", path=str(file_path), error=str(e))
        return {}
    return data.get("tool", {}).get("treefiles", {}) if file_path.name == "pyproject.toml" else data

def load_and_merge_configs(project_dir: Optional[Path] = None, user_config_file: Optional[Path] = None) -> Dict[str, Any]:
    # user-level settings first, then the first project file found overrides them.
    project_dir = project_dir or Path.cwd()
    user_config_file = user_config_file or USER_CONFIG_FILE

    merged_toml_data: Dict[str, Any] = {}
    if user_config_file.is_file():
        log.info("loading_user_global_config", path=str(user_config_file))
        merged_toml_data.update(_load_toml_file_data(user_config_file))

    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = project_dir / filename
        if not candidate.is_file():
            continue
        project_settings = _load_toml_file_data(candidate)
        if not project_settings:
            continue
        log.info("loading_project_local_config", path=str(candidate))
        user_profiles = merged_toml_data.get("profiles", {})
        project_profiles = project_settings.pop("profiles", {})
        if isinstance(user_profiles, dict) and isinstance(project_profiles, dict):
            user_profiles.update(project_profiles)
            merged_toml_data["profiles"] = user_profiles
        elif isinstance(project_profiles, dict):
            merged_toml_data["profiles"] = project_profiles
        merged_toml_data.update(project_settings)
        break

    if not merged_toml_data:
        log.debug("no_configuration_files_loaded")
    return merged_toml_data

def resolve_file_options(raw_config: Dict[str, Any], profile_name: Optional[str] = None) -> Dict[str, Any]:
    """
    Maps merged TOML data onto WalkConfig attribute names.

    Top-level keys apply first; keys from the named profile (if any) override them.
    Unknown keys are ignored.
    """
    options: Dict[str, Any] = {}
    for toml_key, attr in CONFIG_KEY_TO_WALKCONFIG_ATTR_MAP.items():
        if toml_key in raw_config:
            options[attr] = raw_config[toml_key]

    if profile_name:
        profile_values = raw_config.get("profiles", {}).get(profile_name, {})
        if profile_values:
            log.info("applying_profile_settings", profile=profile_name)
            for toml_key, attr in CONFIG_KEY_TO_WALKCONFIG_ATTR_MAP.items():
                if toml_key in profile_values:
                    options[attr] = profile_values[toml_key]
        else:
            log.warning("profile_not_found_in_config_files", profile_name=profile_name)
    return options
