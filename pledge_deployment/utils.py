import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
from eth_utils import is_address, to_checksum_address

from pledge_deployment.constants import ARTIFACTS_DIR
from pledge_deployment.errors import DeploymentConfigError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    with open(filepath, "r") as file:
        return yaml.safe_load(file)


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def _write_json(data: dict, filepath: Path, **json_format) -> Path:
    """
    Writes a JSON file to a temporary sibling first and then moves it into
    place, so that a crash never leaves a truncated file behind.
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_filepath = filepath.with_suffix(".temp.json")
    with open(temp_filepath, "w") as file:
        json.dump(data, file, **json_format)
        file.flush()
        os.fsync(file.fileno())
    os.replace(temp_filepath, filepath)
    return filepath


def get_artifact_filepath(config: Dict) -> Path:
    """Returns the filepath of the registry artifact."""
    artifact_config = config.get("artifacts", {})
    artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
    filename = artifact_config.get("filename")
    if not filename:
        raise DeploymentConfigError("artifact filename is not set in params file.")
    return artifact_dir / filename


def validate_config(config: Dict) -> Path:
    """
    Checks the structure of a parameters file and returns the
    filepath of the deployment registry it points to.
    """
    if not isinstance(config, dict):
        raise DeploymentConfigError("Parameters file must be a YAML mapping.")

    deployment = config.get("deployment")
    if not deployment:
        raise DeploymentConfigError("deployment is not set in params file.")
    if not deployment.get("name"):
        raise DeploymentConfigError("deployment name is not set in params file.")

    constants = config.get("constants")
    if constants is None:
        raise DeploymentConfigError("Parameters file missing 'constants' field.")
    if not isinstance(constants, dict):
        raise DeploymentConfigError("'constants' must be a mapping of NAME: value.")
    for name in constants:
        if not str(name).isupper():
            raise DeploymentConfigError(f"Constant '{name}' must be upper case.")

    return get_artifact_filepath(config=config)


def load_config(filepath: Path) -> Dict:
    config = _load_yaml(filepath)
    validate_config(config)
    return config


def normalize_args(value: Any) -> Any:
    """
    Returns constructor arguments in the form they are stored in the registry:
    tuples become lists and addresses are checksummed.
    """
    if isinstance(value, (list, tuple)):
        return [normalize_args(v) for v in value]
    if isinstance(value, bytes):
        return "0x" + value.hex()
    if isinstance(value, str) and is_address(value):
        return to_checksum_address(value)
    return value


def get_verifier_api_key(ecosystem_name: str) -> Optional[str]:
    """Returns the block explorer API key that ape-etherscan reads for an ecosystem, if set."""
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    if not explorer_envvar:
        return None
    return os.environ.get(explorer_envvar) or None
