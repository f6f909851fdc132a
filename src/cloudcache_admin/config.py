"""Configuration, constants, and enums for cloudcache-admin."""

import os
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from .__about__ import __version__
from .errors import InputError

# Constants
VERSION = __version__

# User configuration directory (config file, log file, template overrides)
CONFIG_DIR = os.path.join(os.path.expanduser("~"), '.cloudcache-admin')
CONFIG_FILE = os.path.join(CONFIG_DIR, 'config.json')

# Log file location
LOG_PATH = os.path.join(CONFIG_DIR, 'cloudcache_admin.log')

# Logging constants
LOG_FILE_MAX_BYTES = 548576  # 0.5 MB - maximum size of log file before rotation
LOG_FILE_BACKUP_COUNT = 5  # Number of backup log files to keep

# Report templates: packaged default plus optional user overrides
DEFAULT_TEMPLATE_FILE = str(Path(__file__).parent / 'report_templates.yaml')
TEMPLATE_MODIFICATIONS_FILE = os.path.join(CONFIG_DIR, 'report_templates.yaml')

# Management API
API_DOCS_PATH = '/management/experimental/api-docs'
GFSH_URL_SUFFIX = '/gemfire/v1'
OPERATOR_USER_PREFIX = 'cluster_operator'

# API request timeouts (in seconds)
API_CONNECT_TIMEOUT = 5
API_READ_TIMEOUT = 30

# Table rendering
COLUMN_WIDTH = 20
SEPARATOR_EXTRA = 5  # separator spans COLUMN_WIDTH * columns + SEPARATOR_EXTRA

# HTTP methods that carry a request body
MUTATING_METHODS = ('POST', 'PUT', 'PATCH')

# Flags consumed by the tool itself, never forwarded to the API
JSON_FLAG = '-j'
GROUP_FLAG = '-g'
USERNAME_FLAG = '-u'
PASSWORD_FLAG = '-p'
BODY_FLAGS = ('-body', '-d')
RESERVED_FLAGS = {JSON_FLAG, GROUP_FLAG, USERNAME_FLAG, PASSWORD_FLAG, '--debug'}

# Environment variables populated by the Cloud Foundry plugin environment
ENV_TARGET = 'CFPCC'
ENV_USERNAME = 'CFLOGIN'
ENV_PASSWORD = 'CFPASSWORD'
ENV_ENDPOINT = 'CFENDPOINT'
ENV_TEMPLATE_FILE = 'CLOUDCACHE_ADMIN_TEMPLATE_FILE'

# Proxy variables, in order of precedence; lower-case names are honored too
PROXY_ENV_VARS = ('HTTPS_PROXY', 'HTTP_PROXY', 'ALL_PROXY', 'NO_PROXY')

# Name of the cf CLI binary used to look up service keys
CF_COMMAND = 'cf'
CF_COMMAND_TIMEOUT_SECONDS = 60


class OutputFormat(str, Enum):
    table = "table"
    json = "json"


@dataclass(frozen=True)
class CliConfig:
    """Settings for one invocation, resolved once at startup.

    Everything downstream of the entry point receives this object instead of
    reading the process environment.
    """
    default_target: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    endpoint: Optional[str] = None
    ca_cert: Optional[str] = None
    connect_timeout: float = API_CONNECT_TIMEOUT
    read_timeout: float = API_READ_TIMEOUT
    cf_command: str = CF_COMMAND
    template_file: str = TEMPLATE_MODIFICATIONS_FILE
    # upper-case proxy variable name -> value
    proxy_env: Dict[str, str] = field(default_factory=dict)

    @property
    def has_environment_credentials(self) -> bool:
        return bool(self.username and self.password and self.endpoint)


def _load_config_file(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    try:
        with open(path, 'r') as config_file:
            data = json.load(config_file)
    except json.JSONDecodeError as e:
        raise InputError(f"Error parsing config file:{path}. Error: {e}")
    except OSError as e:
        raise InputError(f"Error loading config file:{path}. Error: {e}")
    if not isinstance(data, dict):
        raise InputError(f"Config file:{path} must contain a JSON object.")
    return data


def load_config(environ=None, config_file: str = CONFIG_FILE) -> CliConfig:
    """Build the invocation config from the optional config file and the environment.

    Environment variables win over values from the config file.

    Args:
        environ: Mapping to read variables from (defaults to os.environ)
        config_file: Path to the JSON config file

    Returns:
        CliConfig instance

    Raises:
        InputError: If the config file exists but cannot be parsed or holds a bad timeout
    """
    if environ is None:
        environ = os.environ
    file_data = _load_config_file(config_file)

    def pick(env_name, key):
        return environ.get(env_name) or file_data.get(key) or None

    def seconds(key, default):
        value = file_data.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            raise InputError(f"Config file:{config_file} has an invalid '{key}': {value!r} is not a number of seconds.")

    proxy_env = {}
    for name in PROXY_ENV_VARS:
        value = environ.get(name) or environ.get(name.lower())
        if value:
            proxy_env[name] = value

    config = CliConfig(
        default_target=pick(ENV_TARGET, 'default_target'),
        username=pick(ENV_USERNAME, 'username'),
        password=pick(ENV_PASSWORD, 'password'),
        endpoint=pick(ENV_ENDPOINT, 'endpoint'),
        ca_cert=file_data.get('ca_cert'),
        connect_timeout=seconds('connect_timeout', API_CONNECT_TIMEOUT),
        read_timeout=seconds('read_timeout', API_READ_TIMEOUT),
        cf_command=file_data.get('cf_command', CF_COMMAND),
        template_file=pick(ENV_TEMPLATE_FILE, 'template_file') or TEMPLATE_MODIFICATIONS_FILE,
        proxy_env=proxy_env,
    )
    logging.debug(f"Loaded config: default_target={config.default_target!r}, "
                  f"endpoint={config.endpoint!r}, ca_cert={config.ca_cert!r}")
    return config
