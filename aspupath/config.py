# File: aspupath/config.py
# Location: aspupath/aspupath/config.py

"""
Configuration management module.

This module handles loading configuration from a JSON file.
All default values reside in config.json, which is included in
the installed package directory.

If no config_file is provided, this module loads the default
config.json from the package installation directory. A user file
only needs the keys it overrides; the packaged defaults fill the rest.
"""

import json
import os
from typing import Any, Dict, Optional

_DEFAULT_CONFIG = os.path.join(os.path.dirname(__file__), "config.json")


def _read_json(config_file: str) -> Dict[str, Any]:
    if not os.path.exists(config_file):
        raise FileNotFoundError(f"Configuration file '{config_file}' not found.")

    with open(config_file, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Error parsing JSON configuration: {e}") from e


def load_config(config_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a JSON file layered over the packaged defaults.

    Parameters
    ----------
    config_file : str, optional
        Path to a configuration file in JSON format. If None, only the
        package-installed 'config.json' is used.

    Returns
    -------
    dict
        Configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If the specified configuration file does not exist.
    ValueError
        If there is an error parsing the JSON configuration file.
    """
    config = _read_json(_DEFAULT_CONFIG)
    if config_file:
        config.update(_read_json(config_file))
    return config
