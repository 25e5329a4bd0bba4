"""Lightweight payload validation utilities.

Shared by the Socket.IO handlers and the JSON routes; provides minimal
schema-like checking with clear, consistent error responses.

Schema Mini-Language (Python dict):
{
  'field_name': ('type', required: bool, extras: dict)
}
Supported types: 'str', 'int', 'bool', 'list', 'dict', 'coord'
Extras examples:
  max_len / min_len (str, list), allow_empty (str)
  item_type (list element type; 'coord' allowed)

A 'coord' is a two-element list of integers (axial q, r); it is normalized to
a tuple. Booleans are never accepted where an int is expected.

Example:
 ok, data_or_err = validate({'coordinate': [1, -1]}, GRID_CLICK)

If invalid: (False, {'field': 'coordinate', 'error': 'expected coord', 'code': 'type'})
If valid: (True, {'coordinate': (1, -1)})
"""
from __future__ import annotations
from typing import Any, Dict, Tuple

PRIMITIVES = {
    'str': str,
    'int': int,
    'bool': bool,
    'list': list,
    'dict': dict,
}
TYPES = set(PRIMITIVES) | {'coord'}


def _fail(field: str, message: str, code: str) -> Tuple[bool, Dict[str, Any]]:
    return False, {'field': field, 'error': message, 'code': code}


def is_coord(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) == 2
        and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    )


def _matches(value: Any, type_name: str) -> bool:
    if type_name == 'coord':
        return is_coord(value)
    if type_name == 'int':
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, PRIMITIVES[type_name])


def validate(payload: Any, schema: Dict[str, tuple]) -> Tuple[bool, Dict[str, Any]]:
    if not isinstance(payload, dict):
        return _fail('__root__', 'payload must be an object', 'type')
    out = {}
    for name, spec in schema.items():
        if not isinstance(spec, tuple) or len(spec) < 2:
            return _fail('__schema__', f'invalid spec for {name}', 'schema')
        type_name, required = spec[0], spec[1]
        extras = spec[2] if len(spec) > 2 else {}
        if type_name not in TYPES:
            return _fail('__schema__', f'unsupported type {type_name}', 'schema')
        if name not in payload:
            if required:
                return _fail(name, 'missing required field', 'required')
            else:
                continue
        value = payload[name]
        if not _matches(value, type_name):
            return _fail(name, f'expected {type_name}', 'type')
        if type_name == 'str':
            s = value.strip() if not extras.get('allow_empty') else value
            if not extras.get('allow_empty') and len(s) == 0:
                return _fail(name, 'must not be empty', 'empty')
            if 'max_len' in extras and len(value) > extras['max_len']:
                return _fail(name, 'too long', 'max_len')
            if 'min_len' in extras and len(value) < extras['min_len']:
                return _fail(name, 'too short', 'min_len')
            out[name] = s
        elif type_name == 'coord':
            out[name] = (value[0], value[1])
        elif type_name == 'list':
            if 'max_len' in extras and len(value) > extras['max_len']:
                return _fail(name, 'too long', 'max_len')
            item_type = extras.get('item_type')
            if item_type:
                if item_type not in TYPES:
                    return _fail('__schema__', f'unsupported item_type {item_type}', 'schema')
                for idx, elem in enumerate(value):
                    if not _matches(elem, item_type):
                        return _fail(name, f'element {idx} not {item_type}', 'item_type')
                if item_type == 'coord':
                    value = [(e[0], e[1]) for e in value]
            out[name] = value
        else:
            out[name] = value
    return True, out

# Predefined schemas used by handlers
GRID_JOIN = {
    'player_id': ('str', False, {'min_len': 1, 'max_len': 64})
}
GRID_CLICK = {
    'coordinate': ('coord', True)
}
GRID_HOVER = {
    'coordinates': ('list', True, {'item_type': 'coord', 'max_len': 400})
}
GRID_SHADOWS = {
    'enabled': ('bool', True)
}
DEBUG_LEVEL = {
    'level': ('int', True)
}
