# src/flatfile_pipeline/flatfile_listener/config_loader.py

import os
import yaml
import logging
from typing import Dict, List, Optional
from dotenv import load_dotenv

from flatfile_pipeline.config.config import read_env
from .errors import ConfigurationError
from .records import SheetSchema

BLUEPRINT_PATH = os.path.join(os.path.dirname(__file__), 'blueprint.yaml')


def load_blueprint(path: Optional[str] = None) -> List[SheetSchema]:
    """
    Load the workbook blueprint (sheets, fields and per-sheet rules) from YAML.

    Raises:
        ConfigurationError: file missing or without any sheets
    """
    logger = logging.getLogger('flatfile.config')
    path = path or BLUEPRINT_PATH

    try:
        with open(path, 'r') as f:
            blueprint = yaml.safe_load(f) or {}
    except OSError as e:
        logger.error(f"Failed to read blueprint {path}: {e}")
        raise ConfigurationError(f"Failed to read blueprint {path}: {e}")

    sheets_config = (blueprint.get('workbook') or {}).get('sheets') or []
    if not sheets_config:
        raise ConfigurationError(f"Blueprint {path} declares no sheets")

    try:
        sheets = [SheetSchema.from_config(sheet) for sheet in sheets_config]
    except KeyError as e:
        raise ConfigurationError(f"Blueprint sheet is missing required key {e}")

    logger.debug(f"Loaded blueprint with sheets: {[s.slug for s in sheets]}")
    return sheets


def get_environment():
    """Detect environment from ENVIRONMENT or the Cloud Run service name"""
    env_vars = read_env()
    env = env_vars['ENVIRONMENT'].lower()
    if env in ('production', 'prod'):
        return 'production'
    if env in ('staging', 'stage'):
        return 'staging'

    service_name = env_vars['K_SERVICE']
    if 'prod' in service_name:
        return 'production'
    elif 'staging' in service_name:
        return 'staging'
    return 'development'


def setup_logging(log_level=None):
    """
    Configure logging based on environment and optional override

    Args:
        log_level (str, optional): Override log level ('DEBUG', 'INFO', 'WARN', 'ERROR')
    """
    env = get_environment()
    default_levels = {
        'development': 'DEBUG',
        'staging': 'INFO',
        'production': 'WARN'
    }

    final_level = (
        log_level or                           # Request override
        read_env()['LOG_LEVEL'] or             # Environment variable
        default_levels.get(env, 'INFO')        # Environment default
    ).upper()

    level = getattr(logging, final_level, None)
    if not isinstance(level, int):
        level = logging.INFO
        final_level = 'INFO'

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True  # Override any existing configuration
    )

    loggers = {
        'config': logging.getLogger('flatfile.config'),
        'client': logging.getLogger('flatfile.client'),
        'process': logging.getLogger('flatfile.process'),
        'submit': logging.getLogger('flatfile.submit'),
        'events': logging.getLogger('flatfile.events'),
    }

    config_logger = loggers['config']
    config_logger.info(f"Logging configured - Environment: {env}, Level: {final_level}")
    return loggers


def get_config() -> Dict:
    """Get configuration dictionary from the current environment"""
    env_vars = read_env()

    timeout = env_vars['HTTP_TIMEOUT_SECONDS']
    try:
        timeout = float(timeout)
    except ValueError:
        raise ConfigurationError(f"HTTP_TIMEOUT_SECONDS must be a number, got {timeout!r}")

    return {
        'FLATFILE_API_KEY': env_vars['FLATFILE_API_KEY'],
        'FLATFILE_API_BASE_URL': env_vars['FLATFILE_API_BASE_URL'],
        'WEBHOOK_URL': env_vars['WEBHOOK_URL'],
        'HTTP_TIMEOUT_SECONDS': timeout,
        'ENVIRONMENT': get_environment(),
    }


def validate_config(config: Optional[Dict] = None) -> Dict:
    """Validate that all required configuration is available"""
    logger = logging.getLogger('flatfile.config')
    config = config if config is not None else get_config()

    missing = [key for key in ('FLATFILE_API_KEY', 'WEBHOOK_URL') if not config.get(key)]
    if missing:
        logger.error(f"Configuration validation failed. Missing: {missing}")
        raise ConfigurationError(f"Configuration validation failed. Missing: {missing}")

    if config['HTTP_TIMEOUT_SECONDS'] <= 0:
        raise ConfigurationError("HTTP_TIMEOUT_SECONDS must be positive")

    logger.info("Configuration validation passed")
    if logger.isEnabledFor(logging.DEBUG):
        safe_config = {k: v for k, v in config.items() if k != 'FLATFILE_API_KEY'}
        safe_config['FLATFILE_API_KEY'] = f"{config['FLATFILE_API_KEY'][:6]}..."
        logger.debug(f"Validated configuration: {safe_config}")

    return config


def init_env(log_level=None):
    """
    Load .env, configure logging and validate configuration.

    Returns:
        tuple: (loggers dict, config dict)
    """
    loggers = setup_logging(log_level)
    logger = loggers['config']

    # No-op when no .env file is present
    load_dotenv()
    logger.debug("Loaded .env file (if present)")

    config = validate_config()
    logger.info(f"Environment initialization completed ({config['ENVIRONMENT']})")
    return loggers, config
