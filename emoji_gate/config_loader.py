# emoji_gate/config_loader.py
import os
from typing import Any, Dict, Optional

import yaml

# Operator-supplied config file. Never looked up in the working directory,
# which is the merge request's own checkout.
CONFIG_PATH_ENV = "EMOJI_GATE_CONFIG"


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """
    Load the YAML config file at `path` if given and present.
    Returns a dict (empty if not configured, missing or invalid).
    """
    if not path or not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Warning: ignoring unreadable {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}
