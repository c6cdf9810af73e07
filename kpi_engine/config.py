from pathlib import Path

import yaml

from kpi_engine.models.weights import ROLE_WEIGHTS, normalize_role, validate_weights
from kpi_engine.utils.time_windows import DEFAULT_TIME_WINDOW, parse_time_window


class Config:
    def __init__(self, config_path=None):
        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "config.yaml"

        self.config_path = Path(config_path)
        self.config = self._load_config()

    def _load_config(self):
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {self.config_path}. "
                f"Please copy config.example.yaml to config.yaml and update with your settings."
            )

        with open(self.config_path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}

    @property
    def default_time_window(self):
        """Get the time window used when a request doesn't name one

        Raises:
            TimeWindowError: If the configured window is not supported
        """
        window = (self.config.get("kpi") or {}).get("default_time_window", DEFAULT_TIME_WINDOW)
        return parse_time_window(window).range_key

    @property
    def role_weights(self):
        """Get the role weight table with overrides from config applied

        Roles missing from config keep their default rows; roles only present in
        config are added.

        Returns:
            dict: role name -> {dimension: weight}

        Raises:
            ValueError: If an overridden row is invalid (missing dimension,
                out-of-range weight, or not summing to 1.0)
        """
        table = {role: dict(weights) for role, weights in ROLE_WEIGHTS.items()}

        for role, weights in (self.config.get("role_weights") or {}).items():
            key = normalize_role(role)
            table[key] = validate_weights(dict(weights), label=f"role_weights.{key}")

        return table

    def update_role_weights(self, role, weights):
        """Update one role's weights in the config file

        Args:
            role (str): Role name
            weights (dict): New weight values for each dimension

        Raises:
            ValueError: If weights are invalid
        """
        key = normalize_role(role)
        weights = validate_weights(dict(weights), label=f"role_weights.{key}")

        role_weights = self.config.get("role_weights") or {}
        role_weights[key] = weights
        self.config["role_weights"] = role_weights

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.config, f, default_flow_style=False, sort_keys=False)

    @property
    def api_config(self):
        """Get API server configuration

        Returns:
            dict: host (default 127.0.0.1), port (default 5001), debug (default False)
        """
        default_config = {"host": "127.0.0.1", "port": 5001, "debug": False}

        config_api = self.config.get("api") or {}

        return {
            "host": config_api.get("host", default_config["host"]),
            "port": config_api.get("port", default_config["port"]),
            "debug": config_api.get("debug", default_config["debug"]),
        }
