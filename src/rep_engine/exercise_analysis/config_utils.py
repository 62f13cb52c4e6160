import json
import os
from typing import Any, Dict


def load_exercise_config(config_path: str = None) -> Dict[str, Any]:
    """Load the exercise catalog from a JSON file."""
    if config_path is None:
        config_path = os.path.join(os.path.dirname(__file__), "exercise_profiles.json")
    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)
