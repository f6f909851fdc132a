"""Response rendering: parses the management API envelope and prints it as
JSON or as a fixed-width table, optionally keeping only records that belong
to requested groups.
"""

import dataclasses
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from .config import COLUMN_WIDTH, SEPARATOR_EXTRA, OutputFormat
from .errors import InvalidEnvelope
from .templates import TemplateRegistry

GROUP_DELIMITERS = re.compile(r'[\s\[\],]+')
COLUMN_SEPARATOR = '|'


class ValueKind(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    LIST = "list"
    RECORD = "record"
    NULL = "null"


def classify(value: Any) -> ValueKind:
    """Return the JSON variant of a decoded value."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.LIST
    if isinstance(value, dict):
        return ValueKind.RECORD
    raise TypeError(f"not a JSON value: {value!r}")


def format_value(value: Any) -> str:
    """Render a decoded JSON value as table cell text."""
    kind = classify(value)
    if kind is ValueKind.NULL:
        return ''
    if kind is ValueKind.STRING:
        return value
    if kind is ValueKind.BOOLEAN:
        return 'true' if value else 'false'
    if kind is ValueKind.NUMBER:
        return f"{value:.0f}" if isinstance(value, float) else str(value)
    if kind is ValueKind.LIST:
        return '[' + ' '.join(format_value(item) for item in value) + ']'
    return json.dumps(value, separators=(',', ':'))


def pad(value: str, width: int = COLUMN_WIDTH, filler: str = ' ') -> str:
    """Fit ``value`` into a cell of exactly ``width`` characters.

    The cell always starts with one space. Values longer than ``width - 1``
    are truncated; shorter ones are filled on the right with ``filler``.
    """
    if len(value) > width - 1:
        return ' ' + value[:width - 1]
    return ' ' + value + filler * (width - 1 - len(value))


@dataclass
class MemberStatus:
    server_name: str = ''
    success: bool = False
    message: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'serverName': self.server_name, 'success': self.success, 'message': self.message}


@dataclass
class ResponseEnvelope:
    status_code: str = ''
    status_message: str = ''
    member_status: List[MemberStatus] = field(default_factory=list)
    result: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'statusCode': self.status_code,
            'statusMessage': self.status_message,
            'memberStatus': [m.to_dict() for m in self.member_status],
            'result': self.result,
        }


def _text_field(data: Dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None:
        return ''
    if classify(value) is not ValueKind.STRING:
        raise InvalidEnvelope(f"'{key}' in {where} must be a string")
    return value


def _parse_member_status(entry: Any) -> MemberStatus:
    if not isinstance(entry, dict):
        raise InvalidEnvelope("memberStatus entries must be objects")
    # member status keys have been published in both camelCase and PascalCase
    lowered = {str(k).lower(): v for k, v in entry.items()}
    return MemberStatus(
        server_name=_text_field(lowered, 'servername', 'memberStatus'),
        success=bool(lowered.get('success', False)),
        message=_text_field(lowered, 'message', 'memberStatus'),
    )


def parse_envelope(raw_json: str) -> ResponseEnvelope:
    """Deserialize the management API response.

    Raises:
        InvalidEnvelope: If the text is not JSON or the top-level shape is wrong
    """
    try:
        data = json.loads(raw_json)
    except (TypeError, ValueError) as e:
        raise InvalidEnvelope(f"not JSON ({e})") from e
    if not isinstance(data, dict):
        raise InvalidEnvelope("top-level value must be an object")

    member_status = data.get('memberStatus')
    if member_status is None:
        member_status = []
    result = data.get('result')
    if result is None:
        result = []
    if not isinstance(member_status, list):
        raise InvalidEnvelope("'memberStatus' must be a list")
    if not isinstance(result, list) or not all(isinstance(r, dict) for r in result):
        raise InvalidEnvelope("'result' must be a list of objects")

    return ResponseEnvelope(
        status_code=_text_field(data, 'statusCode', 'envelope'),
        status_message=_text_field(data, 'statusMessage', 'envelope'),
        member_status=[_parse_member_status(m) for m in member_status],
        result=result,
    )


def group_names(value: Any) -> Set[str]:
    """Split a record's ``groups`` value into group names."""
    if classify(value) is ValueKind.LIST:
        names = [format_value(item) for item in value]
    else:
        names = GROUP_DELIMITERS.split(format_value(value))
    return {name for name in names if name}


def filter_by_groups(envelope: ResponseEnvelope, groups: Iterable[str]) -> ResponseEnvelope:
    """Keep only records whose ``groups`` field shares a name with ``groups``."""
    wanted = {g for g in groups if g}
    kept = [record for record in envelope.result
            if 'groups' in record and group_names(record['groups']) & wanted]
    return dataclasses.replace(envelope, result=kept)


def render_json(envelope: ResponseEnvelope) -> str:
    return json.dumps(envelope.to_dict(), indent=2)


def render_row(record: Dict[str, Any], columns: List[str]) -> str:
    return ''.join(pad(format_value(record.get(column))) + COLUMN_SEPARATOR for column in columns)


def render_table(envelope: ResponseEnvelope, columns: List[str], summary_label: Optional[str] = None) -> str:
    lines = [f"Status Code: {envelope.status_code}"]
    if envelope.status_message:
        lines.append(f"Status Message: {envelope.status_message}")
    lines.append('')
    lines.append(''.join(pad(column) + COLUMN_SEPARATOR for column in columns))
    lines.append(pad('', COLUMN_WIDTH * len(columns) + SEPARATOR_EXTRA, '-'))
    lines.extend(render_row(record, columns) for record in envelope.result)
    if summary_label:
        lines.append('')
        lines.append(f"{summary_label}: {len(envelope.result)}")
    return '\n'.join(lines)


def render(raw_json: str, command_kind: str, format=OutputFormat.table,
           group_filter: Optional[Iterable[str]] = None,
           templates: Optional[TemplateRegistry] = None) -> str:
    """Render a management API response.

    Args:
        raw_json: Response text
        command_kind: Command phrase; selects the table columns
        format: OutputFormat.table or OutputFormat.json
        group_filter: Group names to keep; None or empty disables filtering
        templates: Table layouts (packaged defaults when omitted)

    Raises:
        InvalidEnvelope: If the response cannot be parsed
    """
    envelope = parse_envelope(raw_json)
    if group_filter:
        envelope = filter_by_groups(envelope, group_filter)

    if OutputFormat(format) is OutputFormat.json:
        return render_json(envelope)

    template = (templates or TemplateRegistry()).get(command_kind)
    return render_table(envelope, template.columns, template.summary_label)
