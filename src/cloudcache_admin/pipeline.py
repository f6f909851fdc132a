"""One invocation: tokenize, authenticate, discover, dispatch, render."""

import logging
from typing import List, Optional, Sequence

from . import catalog as endpoint_catalog
from .client import ManagementClient
from .config import GROUP_FLAG, JSON_FLAG, CliConfig, OutputFormat
from .credentials import resolve_credentials
from .dispatcher import dispatch
from .errors import ApiErrorResponse, InputError, RenderError
from .renderer import render
from .templates import TemplateRegistry
from .tokenizer import BOOLEAN_VALUE, ParsedCommand, parse

LIST_COMMANDS = 'commands'


def output_format(parsed: ParsedCommand) -> OutputFormat:
    return OutputFormat.json if parsed.has_flag(JSON_FLAG) else OutputFormat.table


def group_filter(parsed: ParsedCommand) -> Optional[List[str]]:
    """Return the groups requested with ``-g=<csv>``, or None when not filtering."""
    if not parsed.has_flag(GROUP_FLAG):
        return None
    value = parsed.parameters[GROUP_FLAG]
    groups = [g.strip() for g in value.split(',') if g.strip()]
    if value == BOOLEAN_VALUE or not groups:
        raise InputError(f"{GROUP_FLAG} needs a comma-separated list of groups, e.g. {GROUP_FLAG}=group1,group2")
    return groups


def run(config: CliConfig, args: Sequence[str], client_factory=ManagementClient,
        templates: Optional[TemplateRegistry] = None) -> str:
    """Execute one command and return the text to print.

    Args:
        config: Invocation settings
        args: Tokens following the program name: target, command words, flags
        client_factory: Builds the transport from credentials and config
        templates: Table layouts; loaded from config.template_file when omitted

    Raises:
        ApiErrorResponse: The API rejected the request; ``rendered`` holds the
            formatted error envelope when it could be rendered
        CloudCacheAdminError: Any other failure; nothing is returned in that case
    """
    target, parsed = parse(args, config.default_target)
    groups = group_filter(parsed)
    fmt = output_format(parsed)

    credentials = resolve_credentials(config, target, parsed.parameters)
    client = client_factory(credentials, config)
    logging.info(f"Target: {target} ({credentials.base_url})")

    catalog = endpoint_catalog.discover(client, credentials.base_url)
    if parsed.command == LIST_COMMANDS:
        return endpoint_catalog.describe_catalog(catalog)

    if templates is None:
        templates = TemplateRegistry(config.template_file)
    try:
        raw_response = dispatch(parsed, catalog, client, credentials.base_url)
    except ApiErrorResponse as e:
        # the error envelope is shown like a normal response; the command still fails
        try:
            e.rendered = render(e.body, parsed.command, fmt, groups, templates)
        except RenderError as render_error:
            logging.debug(f"Could not render error response: {render_error}")
        raise
    return render(raw_response, parsed.command, fmt, groups, templates)
