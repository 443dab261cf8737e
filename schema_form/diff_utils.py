"""
Diff utilities for the schema form editor.
Compares the value as loaded with the value being edited using DeepDiff and
formats the result for the host's "changes since load" panel.
"""

from typing import Dict, Any, List, Tuple
from deepdiff import DeepDiff
import json
import re
import logging

logger = logging.getLogger(__name__)

# root['key'], root["it's"] or root[0]
_PATH_TOKEN_PATTERN = re.compile(r"\[(?:'((?:[^'\\]|\\.)*)'|\"((?:[^\"\\]|\\.)*)\"|(\d+))\]")

CHANGE_TYPES = [
    'values_changed',
    'type_changes',
    'dictionary_item_added',
    'dictionary_item_removed',
    'iterable_item_added',
    'iterable_item_removed'
]

_SECTION_TITLES = {
    'values_changed': "Modified",
    'type_changes': "Type changed",
    'dictionary_item_added': "Added",
    'dictionary_item_removed': "Removed",
    'iterable_item_added': "Added items",
    'iterable_item_removed': "Removed items"
}


def _clean_path(path: Any) -> str:
    """
    Convert a DeepDiff path to dotted display form.

    ``root['server']['hosts'][0]`` becomes ``server.hosts[0]``; the root
    itself is shown as ``<root>``.
    """
    path_str = path.path() if hasattr(path, "path") else str(path)
    parts: List[str] = []
    for key, quoted_key, index in _PATH_TOKEN_PATTERN.findall(path_str):
        if index:
            if parts:
                parts[-1] += f"[{index}]"
            else:
                parts.append(f"[{index}]")
        else:
            parts.append(key or quoted_key)
    return ".".join(parts) if parts else "<root>"


def _iter_section(section: Any) -> List[Tuple[Any, Any]]:
    # verbose_level=2 gives dicts; older releases give path sets
    if section is None:
        return []
    if hasattr(section, "items"):
        return list(section.items())
    return [(path, None) for path in section]


def calculate_diff(original: Any, modified: Any) -> Dict[str, Any]:
    """
    Calculate differences between two JSON values.

    Array order is significant: a JSON array is a sequence, so reordering is
    reported as a change.

    Args:
        original: Value as loaded
        modified: Value being edited

    Returns:
        Dict keyed by change type, each mapping a display path to its details:
        - values_changed / type_changes: {'old_value', 'new_value'}
        - dictionary_item_added / iterable_item_added: the new value
        - dictionary_item_removed / iterable_item_removed: the old value
    """
    try:
        diff = DeepDiff(original, modified, verbose_level=2)
    except Exception as e:
        logger.error(f"Error calculating diff: {e}", exc_info=True)
        return {}

    processed_diff: Dict[str, Any] = {}
    for change_type in CHANGE_TYPES:
        if change_type not in diff:
            continue
        entries: Dict[str, Any] = {}
        for path, detail in _iter_section(diff[change_type]):
            if change_type in ('values_changed', 'type_changes') and isinstance(detail, dict):
                detail = {
                    'old_value': detail.get('old_value'),
                    'new_value': detail.get('new_value')
                }
            entries[_clean_path(path)] = detail
        if entries:
            processed_diff[change_type] = entries

    logger.debug(f"Calculated diff with {sum(len(v) for v in processed_diff.values())} changes")
    return processed_diff


def has_changes(diff: Dict[str, Any]) -> bool:
    """
    Check if there are any changes in the diff.

    Args:
        diff: Diff dictionary from calculate_diff

    Returns:
        True if there are changes, False otherwise
    """
    if not diff:
        return False
    return any(diff.get(change_type) for change_type in CHANGE_TYPES)


def get_change_summary(diff: Dict[str, Any]) -> Dict[str, int]:
    """
    Get a summary of changes by type.

    Returns:
        Dictionary with modified/added/removed/type_changed/total counts
    """
    summary = {
        'modified': len(diff.get('values_changed', {})),
        'added': len(diff.get('dictionary_item_added', {})) + len(diff.get('iterable_item_added', {})),
        'removed': len(diff.get('dictionary_item_removed', {})) + len(diff.get('iterable_item_removed', {})),
        'type_changed': len(diff.get('type_changes', {})),
    }
    summary['total'] = sum(summary.values())
    return summary


def _format_value(value: Any, max_length: int = 100) -> str:
    """
    Format a value for display as JSON, truncating if necessary.
    """
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = str(value)
    if len(text) > max_length:
        return f"{text[:max_length - 3]}..."
    return text


def format_diff_for_display(diff: Dict[str, Any]) -> str:
    """
    Format diff output as Markdown for display in Streamlit.

    Args:
        diff: Diff dictionary from calculate_diff

    Returns:
        Formatted string for display
    """
    if not has_changes(diff):
        return "**No changes detected**"

    summary = get_change_summary(diff)
    formatted_lines: List[str] = [f"**{summary['total']} change(s)**", ""]

    for change_type in CHANGE_TYPES:
        entries = diff.get(change_type)
        if not entries:
            continue
        formatted_lines.append(f"**{_SECTION_TITLES[change_type]}**")
        for path, detail in entries.items():
            if change_type in ('values_changed', 'type_changes') and isinstance(detail, dict):
                formatted_lines.append(
                    f"- `{path}`: {_format_value(detail.get('old_value'))} → {_format_value(detail.get('new_value'))}"
                )
            else:
                formatted_lines.append(f"- `{path}`: {_format_value(detail)}")
        formatted_lines.append("")

    return "\n".join(formatted_lines).rstrip()
