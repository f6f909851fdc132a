"""Cluster credentials: environment, explicit flags, or cf service keys."""

import json
import logging
import subprocess
from typing import Dict, List, Tuple

from .client import Credentials
from .config import (
    CF_COMMAND_TIMEOUT_SECONDS, GFSH_URL_SUFFIX, OPERATOR_USER_PREFIX,
    PASSWORD_FLAG, USERNAME_FLAG, CliConfig,
)
from .errors import CredentialError

NO_SERVICE_KEY_MARKER = 'No service key for service instance'


def run_cf(config: CliConfig, *args: str) -> str:
    """Run a cf CLI command and return its stdout.

    Raises:
        CredentialError: If cf is missing, times out or exits non-zero
    """
    command = [config.cf_command, *args]
    logging.debug(f"Running {' '.join(command)}")
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=CF_COMMAND_TIMEOUT_SECONDS)
    except FileNotFoundError as e:
        raise CredentialError(f"The cf CLI ({config.cf_command}) was not found on PATH.") from e
    except subprocess.TimeoutExpired as e:
        raise CredentialError(f"'{' '.join(command)}' timed out after {CF_COMMAND_TIMEOUT_SECONDS}s") from e
    if result.returncode != 0:
        logging.debug(f"cf failed: {result.stderr.strip()}")
        raise CredentialError(_cf_failure_message(args, result.stdout + result.stderr))
    return result.stdout


def _cf_failure_message(args: Tuple[str, ...], output: str) -> str:
    if args and args[0] == 'service-keys':
        instance = args[1] if len(args) > 1 else ''
        return (
            f"You entered {instance} which is not a deployed PCC instance.\n"
            f"To deploy this as an instance, enter:\n\n"
            f"\tcf create-service p-cloudcache <region_plan> {instance}\n\n"
            f"For help see: cf create-service --help"
        )
    if args and args[0] == 'service-key':
        return "The cf service-key response is invalid.\n\nFor help see: cf create-service-key --help"
    return f"cf {' '.join(args)} failed: {output.strip()}"


def _no_service_key_message(instance: str) -> str:
    return (
        f"Please create a service key for {instance}.\n"
        f"To create a key enter:\n\n"
        f"\tcf create-service-key {instance} <your_key_name>\n\n"
        f"For help see: cf create-service-key --help"
    )


def parse_service_keys(output: str, instance: str) -> str:
    """Return the first key name from ``cf service-keys`` output."""
    if NO_SERVICE_KEY_MARKER in output:
        raise CredentialError(_no_service_key_message(instance))
    found_header = False
    for line in output.splitlines():
        fields = line.split()
        if not fields:
            continue
        if found_header:
            return fields[0]
        if fields[0] == 'name':
            found_header = True
    raise CredentialError(_no_service_key_message(instance))


def _base_url_from_gfsh(gfsh_url: str) -> str:
    url = gfsh_url.rstrip('/')
    if url.endswith(GFSH_URL_SUFFIX):
        url = url[:-len(GFSH_URL_SUFFIX)]
    return url


def parse_service_key(output: str, instance: str) -> Credentials:
    """Extract operator credentials and the management URL from ``cf service-key`` output.

    The JSON document follows a short header; newer cf releases nest it under
    ``credentials``.
    """
    start = output.find('{')
    if start < 0:
        raise CredentialError("The cf service-key response is invalid.")
    try:
        data = json.loads(output[start:])
    except json.JSONDecodeError as e:
        raise CredentialError(f"The cf service-key response is invalid. Error: {e}") from e
    if isinstance(data.get('credentials'), dict):
        data = data['credentials']

    gfsh_url = (data.get('urls') or {}).get('gfsh')
    if not gfsh_url:
        raise CredentialError(f"The service key of {instance} has no management URL.")

    users: List[Dict] = data.get('users') or []
    for user in users:
        username = user.get('username') or ''
        if username.startswith(OPERATOR_USER_PREFIX):
            return Credentials(username=username, password=user.get('password') or '',
                               base_url=_base_url_from_gfsh(gfsh_url))
    raise CredentialError(f"The service key of {instance} has no {OPERATOR_USER_PREFIX} user.")


def credentials_from_service_key(config: CliConfig, instance: str) -> Credentials:
    key = parse_service_keys(run_cf(config, 'service-keys', instance), instance)
    logging.info(f"Using service key '{key}' of {instance}")
    return parse_service_key(run_cf(config, 'service-key', instance, key), instance)


def resolve_credentials(config: CliConfig, target: str, parameters: Dict[str, str]) -> Credentials:
    """Obtain credentials for ``target``.

    Environment credentials are used when complete; otherwise the target's
    service key is looked up through the cf CLI. ``-u``/``-p`` flags replace
    the username and password from either source.

    Raises:
        CredentialError: If no usable credentials can be found
    """
    username = parameters.get(USERNAME_FLAG)
    password = parameters.get(PASSWORD_FLAG)
    if username and not password:
        raise CredentialError(
            f"You did not specify your password.\n"
            f"Please enter username and password: -u={username} -p=<your_password>"
        )
    if password and not username:
        raise CredentialError(
            "You did not specify your username.\n"
            "Please enter username and password: -u=<your_username> -p=<your_password>"
        )

    if config.has_environment_credentials:
        credentials = Credentials(config.username, config.password, config.endpoint.rstrip('/'))
    elif username and config.endpoint:
        credentials = Credentials(username, password, config.endpoint.rstrip('/'))
    else:
        credentials = credentials_from_service_key(config, target)

    if username:
        credentials = Credentials(username, password, credentials.base_url)
    if not (credentials.username and credentials.password and credentials.base_url):
        raise CredentialError(
            "Your request was denied.\n"
            "You are missing a username, password, or the correct endpoint."
        )
    logging.debug(f"Resolved {credentials!r} for target {target}")
    return credentials
