"""Report templates - loads the per-command table layouts from YAML.

The packaged ``report_templates.yaml`` is merged with an optional user file;
user entries replace packaged entries of the same command kind.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional

import yaml

from .config import DEFAULT_TEMPLATE_FILE, TEMPLATE_MODIFICATIONS_FILE


@dataclass(frozen=True)
class ReportTemplate:
    columns: List[str]
    summary_label: Optional[str] = None


EMPTY_TEMPLATE = ReportTemplate(columns=[])


def command_kind(command: str) -> str:
    """Normalize a command phrase to its kind (``list regions`` -> ``list-regions``)."""
    return '-'.join(command.split())


class TemplateRegistry:
    """Lookup of table layouts by command kind."""

    def __init__(self, template_modifications_path: Optional[str] = TEMPLATE_MODIFICATIONS_FILE,
                 default_template_path: Optional[str] = DEFAULT_TEMPLATE_FILE):
        self.template_modifications_path = template_modifications_path
        self.default_template_path = default_template_path
        self.templates = self._load_templates()

    def _read_file(self, path: Optional[str]) -> Dict:
        if not path or not os.path.exists(path):
            return {}
        try:
            with open(path, 'r') as f:
                data = yaml.load(f, Loader=yaml.SafeLoader) or {}
        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Error loading report templates from {path}: {e}")
            return {}
        reports = data.get('reports') if isinstance(data, dict) else None
        if not isinstance(reports, dict):
            logging.warning(f"Report template file {path} has no 'reports' section")
            return {}
        return reports

    def _load_templates(self) -> Dict[str, ReportTemplate]:
        merged = dict(self._read_file(self.default_template_path))
        merged.update(self._read_file(self.template_modifications_path))

        templates = {}
        for kind, entry in merged.items():
            if not isinstance(entry, dict) or not isinstance(entry.get('columns'), list):
                logging.warning(f"Ignoring report template '{kind}': 'columns' must be a list")
                continue
            templates[kind] = ReportTemplate(
                columns=[str(c) for c in entry['columns']],
                summary_label=entry.get('summary_label'),
            )
        return templates

    def get(self, command: str) -> ReportTemplate:
        """Return the layout for ``command``; unknown kinds get no columns."""
        return self.templates.get(command_kind(command), EMPTY_TEMPLATE)

    def get_command_names(self) -> List[str]:
        return sorted(self.templates)
