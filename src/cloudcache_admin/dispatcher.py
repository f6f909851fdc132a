"""Turns a parsed command into one HTTP request against the management API."""

import logging
import re
import urllib.parse
from typing import Dict, List, Optional, Tuple

from .catalog import EndpointDescriptor
from .config import BODY_FLAGS, MUTATING_METHODS, RESERVED_FLAGS
from .errors import InputError, MissingBody, MissingParameter, UnknownCommand
from .tokenizer import ParsedCommand

PATH_PLACEHOLDER = re.compile(r'\{([^{}/]+)\}')
BODY_FILE_PREFIX = '@'


def resolve_endpoint(parsed: ParsedCommand, catalog: Dict[str, EndpointDescriptor]) -> EndpointDescriptor:
    endpoint = catalog.get(parsed.command)
    if endpoint is None:
        raise UnknownCommand(parsed.command)
    return endpoint


def flag_value(parameters: Dict[str, str], name: str) -> Optional[str]:
    """Look up a parameter supplied as ``-name`` or ``--name``."""
    for flag in (f"-{name}", f"--{name}"):
        if flag in parameters:
            return parameters[flag]
    return None


def _consumed_flags(name: str) -> Tuple[str, str]:
    return f"-{name}", f"--{name}"


def build_url(endpoint: EndpointDescriptor, parsed: ParsedCommand, base_url: str) -> str:
    """Substitute path parameters and append query parameters.

    Flags that match neither a path nor a declared parameter are forwarded
    as query parameters.

    Raises:
        MissingParameter: If a path parameter or required query parameter has no value
    """
    consumed = set(RESERVED_FLAGS) | set(BODY_FLAGS)

    path_names: List[str] = PATH_PLACEHOLDER.findall(endpoint.url)
    for spec in endpoint.params_in('path'):
        if spec.name not in path_names:
            path_names.append(spec.name)

    path = endpoint.url
    for name in path_names:
        value = flag_value(parsed.parameters, name)
        if value is None:
            raise MissingParameter(parsed.command, name)
        path = path.replace('{' + name + '}', urllib.parse.quote(value, safe=''))
        consumed.update(_consumed_flags(name))

    query = []
    for spec in endpoint.params_in('query'):
        value = flag_value(parsed.parameters, spec.name)
        if value is None:
            if spec.required:
                raise MissingParameter(parsed.command, spec.name)
            continue
        query.append((spec.name, value))
        consumed.update(_consumed_flags(spec.name))

    for spec in endpoint.params_in('body'):
        consumed.update(_consumed_flags(spec.name))

    for flag, value in parsed.parameters.items():
        if flag in consumed:
            continue
        logging.debug(f"Forwarding undeclared flag {flag} as a query parameter")
        query.append((flag.lstrip('-'), value))

    url = base_url.rstrip('/') + path
    if query:
        url += '?' + urllib.parse.urlencode(query)
    return url


def load_body(parsed: ParsedCommand, method: str) -> bytes:
    """Return the request body for a mutating request.

    A value starting with ``@`` names a file to read; any other value is sent
    verbatim.

    Raises:
        MissingBody: If neither -body nor -d was supplied
        InputError: If the referenced body file cannot be read
    """
    value = None
    for flag in BODY_FLAGS:
        if flag in parsed.parameters:
            value = parsed.parameters[flag]
            break
    if not value:
        raise MissingBody(parsed.command, method)

    if value.startswith(BODY_FILE_PREFIX) and len(value) > 1:
        body_path = value[1:]
        try:
            with open(body_path, 'rb') as body_file:
                return body_file.read()
        except OSError as e:
            raise InputError(f"Cannot read request body from {body_path}: {e}") from e
    return value.encode('utf-8')


def dispatch(parsed: ParsedCommand, catalog: Dict[str, EndpointDescriptor], client, base_url: str) -> str:
    """Resolve ``parsed`` against the catalog and send exactly one request.

    Args:
        parsed: Tokenized command and flags
        catalog: Discovered endpoints, not modified
        client: ManagementClient carrying the credentials
        base_url: Base URL of the management service

    Returns:
        Raw response text

    Raises:
        UnknownCommand, MissingParameter, MissingBody: If the request cannot be built
        TransportError: If the request fails
    """
    endpoint = resolve_endpoint(parsed, catalog)
    url = build_url(endpoint, parsed, base_url)

    body = None
    if endpoint.http_method in MUTATING_METHODS:
        body = load_body(parsed, endpoint.http_method)

    logging.info(f"Executing '{parsed.command}': {endpoint.http_method} {url}")
    return client.request(endpoint.http_method, url, body=body)
