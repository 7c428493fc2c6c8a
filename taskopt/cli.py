"""
Run configuration handling for the task assignment optimizer.

A run configuration is a YAML mapping:

    mode: optimize | dispatch
    driver: ga | choa | abc
    random_seed: 42            # optional
    input:
      tasks: data/tasks50.json
      workers: data/workers.yaml   # or worker_count: 6 (optimize mode only)
    output:
      root: output/choa
      overwrite: false
      plots: false
    driver_config: {...}       # optional, fields of the driver's config class
"""

from typing import Any, Dict, Optional
from pathlib import Path
import yaml

from .drivers import DRIVERS
from .exceptions import ConfigValidationError

MODES = ['optimize', 'dispatch']
REQUIRED_SECTIONS = ['driver', 'input', 'output']


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Read a run configuration file.

    Args:
        config_path: YAML file path

    Returns:
        The parsed mapping (not yet validated)

    Raises:
        FileNotFoundError: If the file is missing
        ConfigValidationError: If it is not a non-empty YAML mapping
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Run configuration not found: {config_path}")

    with open(path, 'r') as f:
        try:
            config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"{config_path} is not valid YAML: {e}")

    if not config:
        raise ConfigValidationError(f"{config_path} is empty")
    if not isinstance(config, dict):
        raise ConfigValidationError(f"{config_path} must contain a mapping at the top level")
    return config


def _validate_input(section: Any, mode: str) -> None:
    if not isinstance(section, dict):
        raise ConfigValidationError("'input' must be a mapping")
    if 'tasks' not in section:
        raise ConfigValidationError("'input.tasks' is required")

    if 'workers' not in section:
        if mode == 'dispatch':
            raise ConfigValidationError("Dispatch mode needs worker URLs: set 'input.workers'")
        if 'worker_count' not in section:
            raise ConfigValidationError("Set 'input.workers' or 'input.worker_count'")

    count = section.get('worker_count')
    if count is not None and (isinstance(count, bool) or not isinstance(count, int) or count <= 0):
        raise ConfigValidationError(f"'input.worker_count' must be a positive integer, got: {count}")

    for key in ('tasks', 'workers'):
        if key in section and not Path(section[key]).is_file():
            raise ConfigValidationError(f"'input.{key}' file not found: {section[key]}")


def _validate_output(section: Any) -> None:
    if not isinstance(section, dict):
        raise ConfigValidationError("'output' must be a mapping")
    if not section.get('root'):
        raise ConfigValidationError("'output.root' is required")


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Check a run configuration before anything is loaded or written.

    Driver-specific keys under 'driver_config' are checked later by the
    driver's own config class.

    Raises:
        ConfigValidationError: On the first problem found
    """
    mode = config.get('mode', 'optimize')
    if mode not in MODES:
        raise ConfigValidationError(f"Unknown mode '{mode}', expected one of: {', '.join(MODES)}")

    missing = [name for name in REQUIRED_SECTIONS if name not in config]
    if missing:
        raise ConfigValidationError(f"Missing required field(s): {', '.join(missing)}")

    if config['driver'] not in DRIVERS:
        raise ConfigValidationError(
            f"Unknown driver '{config['driver']}', expected one of: {', '.join(sorted(DRIVERS))}"
        )

    _validate_input(config['input'], mode)
    _validate_output(config['output'])

    seed = config.get('random_seed')
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int) or seed < 0):
        raise ConfigValidationError(f"'random_seed' must be a non-negative integer, got: {seed}")

    if not isinstance(config.get('driver_config') or {}, dict):
        raise ConfigValidationError("'driver_config' must be a mapping")


def run_from_config(
    config_path: str,
    driver: Optional[str] = None,
    seed: Optional[int] = None,
    check_only: bool = False
) -> None:
    """
    Load, validate and execute a run configuration.

    Called by taskopt_cli.py.

    Args:
        config_path: YAML file path
        driver: Replaces the config's 'driver' when given
        seed: Replaces the config's 'random_seed' when given
        check_only: Stop after validation
    """
    print(f"Reading run configuration: {config_path}")
    config = load_run_config(config_path)

    if driver is not None:
        config['driver'] = driver
        # driver_config keys belong to the configured driver
        config.pop('driver_config', None)
    if seed is not None:
        config['random_seed'] = seed

    validate_run_config(config)
    mode = config.get('mode', 'optimize')
    if check_only:
        print(f"Configuration is valid ({mode} mode, driver '{config['driver']}')")
        return

    from .orchestration import run_dispatch_mode, run_optimize_mode
    runners = {'optimize': run_optimize_mode, 'dispatch': run_dispatch_mode}
    runners[mode](config)

    print("\nRun finished.")
