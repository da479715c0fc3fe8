import logging
import os
from typing import Optional

import yaml

logger = logging.getLogger(__name__)


class ConfigFileStore:
    """Filesystem/YAML IO for crawl config files.

    Responsibility: locate, read, and parse YAML files on disk.
    Relative paths resolve against `configs_dir`.
    """

    def __init__(self, *, configs_dir: str):
        self.configs_dir = configs_dir

    def list_config_files(self) -> list[str]:
        if not os.path.isdir(self.configs_dir):
            return []
        return sorted(
            fname
            for fname in os.listdir(self.configs_dir)
            if fname.endswith(".yml") or fname.endswith(".yaml")
        )

    def resolve_path(self, config_path: str) -> str:
        if os.path.isabs(config_path) or os.path.isfile(config_path):
            return config_path
        return os.path.join(self.configs_dir, config_path)

    def load_yaml_dict(self, config_path: str) -> Optional[dict]:
        """Return parsed YAML dict for `config_path`, or None if missing/invalid."""
        full_path = self.resolve_path(config_path)
        if not os.path.isfile(full_path):
            return None
        try:
            with open(full_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not read config %s: %s", full_path, e)
            return None
        return data if isinstance(data, dict) else None
