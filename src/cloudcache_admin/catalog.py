"""Endpoint discovery from the management API's self-describing document.

The document maps URL path -> HTTP method -> ``{commandName, parameters}``.
It is flattened into a catalog keyed by command name; when two entries share
a command name the one visited last wins.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from tabulate import tabulate

from .config import API_DOCS_PATH
from .errors import MalformedCatalog, TransportError, UnreachableCatalog

PARAM_LOCATIONS = ('path', 'query', 'body')


@dataclass(frozen=True)
class ParamSpec:
    name: str
    location: str = 'query'
    required: bool = False


@dataclass(frozen=True)
class EndpointDescriptor:
    command_name: str
    url: str
    http_method: str
    parameters: List[ParamSpec] = field(default_factory=list)

    def params_in(self, location: str) -> List[ParamSpec]:
        return [p for p in self.parameters if p.location == location]


def _parse_param(entry: Any, command_name: str) -> ParamSpec:
    if not isinstance(entry, dict) or not isinstance(entry.get('name'), str):
        raise MalformedCatalog(f"parameter of '{command_name}' must be an object with a 'name': {entry!r}")
    location = str(entry.get('in') or 'query').lower()
    if location not in PARAM_LOCATIONS:
        logging.debug(f"Parameter '{entry['name']}' of '{command_name}' has unsupported location '{location}', treating as query")
        location = 'query'
    return ParamSpec(name=entry['name'], location=location, required=bool(entry.get('required', False)))


def build_catalog(document: Any) -> Dict[str, EndpointDescriptor]:
    """Flatten a parsed API description document into a catalog.

    Raises:
        MalformedCatalog: If the document does not have the expected shape
    """
    if not isinstance(document, dict):
        raise MalformedCatalog("top-level value must be an object")
    # the service nests its paths under "paths"; a bare path mapping is accepted too
    paths = document['paths'] if isinstance(document.get('paths'), dict) else document

    catalog = {}
    for url, methods in paths.items():
        if not isinstance(methods, dict):
            raise MalformedCatalog(f"entry for path '{url}' must be an object")
        for method, metadata in methods.items():
            if not isinstance(metadata, dict):
                raise MalformedCatalog(f"entry for {method} {url} must be an object")
            command_name = metadata.get('commandName')
            if not command_name:
                logging.debug(f"Skipping {method} {url}: no commandName")
                continue
            params = metadata.get('parameters') or []
            if not isinstance(params, list):
                raise MalformedCatalog(f"parameters of '{command_name}' must be a list")
            if command_name in catalog:
                logging.debug(f"Command '{command_name}' redefined by {method.upper()} {url}")
            catalog[command_name] = EndpointDescriptor(
                command_name=command_name,
                url=url,
                http_method=method.upper(),
                parameters=[_parse_param(p, command_name) for p in params],
            )
    return catalog


def discover(client, base_url: str) -> Dict[str, EndpointDescriptor]:
    """Fetch the API description document and build the command catalog.

    Args:
        client: ManagementClient used for the authenticated GET
        base_url: Base URL of the cluster's management service

    Returns:
        Mapping of command name to EndpointDescriptor

    Raises:
        UnreachableCatalog: If the document cannot be fetched
        MalformedCatalog: If it cannot be parsed as the expected schema
    """
    api_docs_url = base_url.rstrip('/') + API_DOCS_PATH
    try:
        response = client.get(api_docs_url)
    except TransportError as e:
        raise UnreachableCatalog(api_docs_url, str(e)) from e

    try:
        document = json.loads(response)
    except json.JSONDecodeError as e:
        raise MalformedCatalog(f"not JSON ({e})") from e

    catalog = build_catalog(document)
    logging.info(f"Discovered {len(catalog)} commands from {api_docs_url}")
    return catalog


def describe_catalog(catalog: Dict[str, EndpointDescriptor]) -> str:
    """Render the available commands as a grid, sorted by command name."""
    if not catalog:
        return "No commands available."
    rows = []
    for name in sorted(catalog):
        endpoint = catalog[name]
        params = ', '.join(
            f"-{p.name}" if p.required else f"[-{p.name}]"
            for p in endpoint.parameters if p.location != 'body'
        )
        rows.append([name, endpoint.http_method, endpoint.url, params])
    return tabulate(rows, headers=['command', 'method', 'url', 'parameters'], tablefmt="grid")
