"""Application configuration module for the locale sync tool."""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Dict, Optional, Any

import yaml
from dotenv import load_dotenv

from src.logging_config import setup_logger

DEFAULT_SERVICE_URL = 'http://localhost:24080/translate'
DEFAULT_CHUNK_SIZE = 5


@dataclass
class AppConfig:
    """Application configuration dataclass."""
    # Core paths
    project_root: str
    locales_folder: str
    translation_ways_file: str

    # Locale settings
    main_locale: str
    use_translation_ways: bool

    # Translation service
    service_url: str
    request_timeout: float
    chunk_size: int
    max_transport_retries: int
    retry_base_delay: float
    max_internal_error_retries: Optional[int]
    max_requests_per_minute: int

    # Processing settings
    show_progress: bool
    dry_run: bool


def _compute_project_root() -> str:
    """Compute the project root directory."""
    script_real_path = os.path.realpath(__file__)
    script_dir = os.path.dirname(script_real_path)
    return os.path.abspath(os.path.join(script_dir, os.pardir))


def _load_dotenv_files(project_root: str) -> None:
    """Load .env files from project root or docker directory."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        load_dotenv(dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        load_dotenv(dotenv_path_docker_dir)


def _load_yaml_config(project_root: str) -> Dict[str, Any]:
    """Load the YAML configuration file, falling back to an empty dict on any problem."""
    default_config_path = os.path.join(project_root, 'config.yaml')
    config_file = os.environ.get('LOCALE_SYNC_CONFIG_FILE', default_config_path)

    if not os.path.isabs(config_file):
        config_file = os.path.abspath(config_file)

    config = {}
    try:
        if not os.path.exists(config_file):
            print(f"Warning: Configuration file '{config_file}' not found. Using default configuration.",
                  file=sys.stderr)
            print(f"Tip: Create a config.yaml file in '{project_root}' or set LOCALE_SYNC_CONFIG_FILE.",
                  file=sys.stderr)
            return config

        if not os.access(config_file, os.R_OK):
            print(f"Error: Configuration file '{config_file}' exists but is not readable. Check file permissions.",
                  file=sys.stderr)
            return config

        with open(config_file, 'r', encoding='utf-8') as config_file_stream:
            loaded_config = yaml.safe_load(config_file_stream)
            if loaded_config is None:
                print(f"Warning: Configuration file '{config_file}' is empty. Using default configuration.",
                      file=sys.stderr)
            elif isinstance(loaded_config, dict):
                config = loaded_config
                print(f"Successfully loaded configuration from: {config_file}", file=sys.stderr)
            else:
                print(f"Error: Configuration file '{config_file}' must contain a YAML dictionary. Using defaults.",
                      file=sys.stderr)

    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file '{config_file}': {e}", file=sys.stderr)
        print("Please check your YAML syntax. Using default configuration.", file=sys.stderr)
    except OSError as e:
        print(f"Error: Could not read configuration file '{config_file}': {e}", file=sys.stderr)
        print("Using default configuration.", file=sys.stderr)

    return config


def _setup_logger_from_config(config: Dict[str, Any], project_root: str) -> logging.Logger:
    """Set up logger based on configuration."""
    log_config = config.get('logging') or {}
    log_level_str = str(log_config.get('log_level', 'INFO')).upper()
    log_file_path = _resolve_path(project_root, log_config.get('log_file_path', 'logs/locale_sync.log'))
    log_to_console = log_config.get('log_to_console', True)
    return setup_logger(log_level_str, log_file_path, log_to_console)


def _log_dotenv_status(logger: logging.Logger, project_root: str) -> None:
    """Log the status of .env file loading."""
    dotenv_path_project_root = os.path.join(project_root, '.env')
    dotenv_path_docker_dir = os.path.join(project_root, 'docker', '.env')

    if os.path.exists(dotenv_path_project_root):
        logger.info("Loaded environment variables from: %s", dotenv_path_project_root)
    elif os.path.exists(dotenv_path_docker_dir):
        logger.info("Loaded environment variables from: %s", dotenv_path_docker_dir)
    else:
        logger.info(
            "No .env file found in project root ('%s') or in docker/ ('%s'). Relying on system environment variables if any.",
            dotenv_path_project_root,
            dotenv_path_docker_dir
        )


def _resolve_path(project_root: str, path: str) -> str:
    """Resolve a configured path relative to the project root."""
    if os.path.isabs(path):
        return path
    return os.path.join(project_root, path)


def _parse_chunk_size(raw_value: Any, logger: logging.Logger) -> int:
    """Parse the chunk size, falling back to the default for anything but a positive integer."""
    try:
        chunk_size = int(raw_value)
    except (TypeError, ValueError):
        logger.warning("Invalid chunk_size %r, using %d.", raw_value, DEFAULT_CHUNK_SIZE)
        return DEFAULT_CHUNK_SIZE
    if chunk_size < 1:
        logger.warning("chunk_size must be positive (got %d), using %d.", chunk_size, DEFAULT_CHUNK_SIZE)
        return DEFAULT_CHUNK_SIZE
    return chunk_size


def load_app_config() -> AppConfig:
    """
    Load application configuration from YAML file and environment variables.

    Returns:
        AppConfig: The loaded application configuration.
    """
    project_root = _compute_project_root()

    _load_dotenv_files(project_root)

    config = _load_yaml_config(project_root)

    logger = _setup_logger_from_config(config, project_root)

    _log_dotenv_status(logger, project_root)

    main_locale = os.environ.get('MAIN_LOCALE', config.get('main_locale', 'ru'))
    service_url = os.environ.get('TRANSLATION_SERVICE_URL', config.get('service_url', DEFAULT_SERVICE_URL))

    max_internal_error_retries = config.get('max_internal_error_retries')
    if max_internal_error_retries is not None:
        max_internal_error_retries = int(max_internal_error_retries)

    # Chunk size with environment override
    default_chunk_size = config.get('chunk_size', DEFAULT_CHUNK_SIZE)
    chunk_size = _parse_chunk_size(os.environ.get('TRANSLATION_CHUNK_SIZE', default_chunk_size), logger)

    return AppConfig(
        project_root=project_root,
        locales_folder=_resolve_path(project_root, config.get('locales_folder', 'locales')),
        translation_ways_file=_resolve_path(
            project_root, config.get('translation_ways_file', 'translation_ways.json')
        ),
        main_locale=main_locale,
        use_translation_ways=config.get('use_translation_ways', True),
        service_url=service_url,
        request_timeout=float(config.get('request_timeout', 60)),
        chunk_size=chunk_size,
        max_transport_retries=int(config.get('max_transport_retries', 5)),
        retry_base_delay=float(config.get('retry_base_delay', 1.0)),
        max_internal_error_retries=max_internal_error_retries,
        max_requests_per_minute=int(config.get('max_requests_per_minute', 600)),
        show_progress=config.get('show_progress', True),
        dry_run=config.get('dry_run', False),
    )
