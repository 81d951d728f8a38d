"""
Text export of the derived artifacts.

The code panels of the editor and any "copy to clipboard" action read from
here. Nothing is written to disk; callers get a string.
"""

import json
from typing import Any, Dict

import yaml

ARTIFACTS = ('schema', 'ui_schema', 'form_data')
FORMATS = ('json', 'yaml')

ARTIFACT_TITLES = {
    'schema': 'Form Schema',
    'ui_schema': 'UI Schema',
    'form_data': 'Form Data',
}


def dump(obj: Any, fmt: str = 'json', indent: int = 2) -> str:
    """
    Pretty-print obj as JSON or YAML.

    Raises:
        ValueError if fmt is not a known format.
    """
    if fmt == 'json':
        return json.dumps(obj, indent=indent, ensure_ascii=False)
    if fmt == 'yaml':
        return yaml.safe_dump(obj, sort_keys=False, allow_unicode=True, indent=indent)
    raise ValueError(f"Unknown export format '{fmt}'. Valid: {', '.join(FORMATS)}")


def export_artifact(session, name: str, fmt: str = 'json', indent: int = 2) -> str:
    """Export one of 'schema', 'ui_schema', 'form_data' from session."""
    if name not in ARTIFACTS:
        raise ValueError(f"Unknown artifact '{name}'. Valid: {', '.join(ARTIFACTS)}")
    return dump(session.snapshot()[name], fmt=fmt, indent=indent)


def export_all(session, fmt: str = 'json', indent: int = 2) -> Dict[str, str]:
    """Export every artifact, keyed by artifact name."""
    snapshot = session.snapshot()
    return {name: dump(snapshot[name], fmt=fmt, indent=indent) for name in ARTIFACTS}
