"""
Layering of configuration dictionaries.

Later layers (project file, environment) are merged over earlier ones.
List-valued keys may be extended or pruned instead of replaced:

    security:
      +allowed_commands: [terraform]   # add to the inherited list
      -blocked_commands: [docker]      # drop from the inherited list
"""

from typing import Any

_LIST_OPERATIONS = ("+", "-")


def _apply_list_operation(current: Any, operation: str, items: list[Any]) -> list[Any] | None:
    """Extend or prune an inherited list. Returns None when there is nothing to keep."""
    inherited = current if isinstance(current, list) else None

    if operation == "+":
        merged = list(inherited or [])
        merged.extend(item for item in items if item not in merged)
        return merged

    if inherited is None:
        return None
    return [item for item in inherited if item not in items]


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Merge ``override`` over ``base`` without mutating either.

    Nested dicts merge key by key. Scalars and plain lists replace what
    they override. A ``None`` value deletes the key. Keys prefixed with
    ``+`` or ``-`` holding a list extend or prune the inherited list.

    Examples:
        >>> deep_merge({"allowed_commands": ["terraform"]}, {"+allowed_commands": ["helm"]})
        {'allowed_commands': ['terraform', 'helm']}
    """
    merged = dict(base)

    for key, value in override.items():
        if key[:1] in _LIST_OPERATIONS and isinstance(value, list):
            target = key[1:]
            updated = _apply_list_operation(merged.get(target), key[0], value)
            if updated is not None:
                merged[target] = updated
            continue

        if value is None:
            merged.pop(key, None)
            continue

        inherited = merged.get(key)
        if isinstance(value, dict) and isinstance(inherited, dict):
            merged[key] = deep_merge(inherited, value)
        else:
            merged[key] = value

    return merged


def get_nested_value(config: dict[str, Any], key_path: str) -> Any:
    """Look up a dotted path such as ``security.shell``; None when absent."""
    node: Any = config
    for part in key_path.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node


def set_nested_value(config: dict[str, Any], key_path: str, value: Any) -> dict[str, Any]:
    """
    Assign ``value`` at a dotted path, creating sections on the way.

    Used to fold ``SHELLGATE_SECTION__KEY`` environment overrides into
    the merged configuration.

    Examples:
        >>> set_nested_value({}, "security.shell", "/bin/bash")
        {'security': {'shell': '/bin/bash'}}
    """
    *sections, leaf = key_path.split(".")
    node = config
    for section in sections:
        child = node.get(section)
        if not isinstance(child, dict):
            child = node[section] = {}
        node = child
    node[leaf] = value
    return config
