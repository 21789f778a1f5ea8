"""
Config Loader - Build Settings from a YAML file, .env and the environment.

Lookup order for the file: the explicit ``--config`` path, then
``flow-recorder.yaml``/``.yml`` in the working directory, then
``config/flow-recorder.yaml``, then ``~/.config/flow-recorder/config.yaml``.
Environment variables (``FLOW_RECORDER__SECTION__KEY``) fill whatever the file
leaves out and keyword overrides beat both.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv

from flow_recorder.config.settings import Settings
from flow_recorder.exceptions.base import ConfigurationError

ENV_FILES = (".env", ".env.local")


def default_config_paths() -> List[Path]:
    """Candidate config files, most specific first."""
    return [
        Path("flow-recorder.yaml"),
        Path("flow-recorder.yml"),
        Path("config") / "flow-recorder.yaml",
        # Resolved per call so a changed HOME is honoured
        Path.home() / ".config" / "flow-recorder" / "config.yaml",
    ]


class ConfigLoader:
    """
    Resolves one config file and layers env vars and overrides over it.

    A missing explicit path falls back to the default lookup rather than
    failing, so ``--config`` pointing at a not-yet-created file still runs.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None

    def find_config_file(self) -> Optional[Path]:
        candidates = default_config_paths()
        if self.config_path:
            candidates.insert(0, self.config_path)
        return next((path for path in candidates if path.is_file()), None)

    def load_yaml_config(self, path: Path) -> Dict[str, Any]:
        """
        Read a YAML mapping of settings sections.

        Raises:
            ConfigurationError: If the file is not valid YAML or its top
                level is not a mapping
        """
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {path} must map section names to settings, "
                f"got {type(data).__name__}"
            )
        return data

    def load(
        self,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Settings:
        if env_file:
            load_dotenv(env_file)
        else:
            found = next((Path(name) for name in ENV_FILES if Path(name).exists()), None)
            if found:
                load_dotenv(found)

        config_file = self.find_config_file()
        file_config = self.load_yaml_config(config_file) if config_file else {}

        # File values win; FLOW_RECORDER__* env vars fill the remaining keys
        settings = Settings(**file_config)
        return settings.merge_with(overrides) if overrides else settings


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> Settings:
    """
    Load settings in one call.

    Example:
        >>> settings = load_config(config_path="flow-recorder.yaml")
        >>> settings = load_config(replay={"wait_strategy": "poll"})
    """
    return ConfigLoader(config_path).load(env_file=env_file, overrides=overrides or None)
