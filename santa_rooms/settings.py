"""Configuration and logging setup for santa-rooms."""
import json
import logging
import os
import re
from typing import Any, Dict, Optional

from dotenv import load_dotenv

DEFAULT_CONFIG: Dict[str, Any] = {
    'api_base_url': 'http://localhost:4000/api',
    'socket_url': None,
    'storage_dir': '~/.santa_rooms',
    'log_level': 'WARNING',
    'api_timeout_seconds': 10,
}

# Environment variables take precedence over config file values.
ENV_OVERRIDES = {
    'SANTA_API_BASE_URL': 'api_base_url',
    'SANTA_SOCKET_URL': 'socket_url',
    'SANTA_STORAGE_DIR': 'storage_dir',
    'SANTA_LOG_LEVEL': 'log_level',
}

_API_SUFFIX = re.compile(r'/?api/?$')


def setup_logging(level: str = 'WARNING') -> logging.Logger:
    """Configure the root ``santa`` logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to WARNING so normal use is quiet.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, str(level).upper(), logging.WARNING)
    logger = logging.getLogger('santa')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


def load_config(config_path: Optional[str] = 'config.json') -> Dict[str, Any]:
    """Load configuration from defaults, a JSON file and the environment.

    A ``.env`` file in the working directory is loaded first.  A missing
    config file is fine; a corrupt one is logged and ignored.
    """
    load_dotenv()
    config = dict(DEFAULT_CONFIG)

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                loaded = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logging.getLogger('santa.config').warning(
                "Could not read config file %s: %s", config_path, e)
        else:
            if isinstance(loaded, dict):
                config.update({k: v for k, v in loaded.items() if k in DEFAULT_CONFIG})

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            config[key] = value

    try:
        config['api_timeout_seconds'] = int(config['api_timeout_seconds'])
    except (TypeError, ValueError):
        config['api_timeout_seconds'] = DEFAULT_CONFIG['api_timeout_seconds']
    return config


def resolve_socket_url(config: Dict[str, Any]) -> Optional[str]:
    """Return the Socket.IO URL: explicit ``socket_url`` or the API base without ``/api``."""
    if config.get('socket_url'):
        return config['socket_url']
    api_base = config.get('api_base_url')
    if not api_base:
        return None
    return _API_SUFFIX.sub('', api_base) or None
