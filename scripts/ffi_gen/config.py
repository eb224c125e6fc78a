"""
Configuration module

Policy consumed read-only by the parser: which declarations to include,
how to rename them, which symbols to expose, and the variadic call-site
signatures to specialize. Configurations are built in Python (see
scripts/bindings/) or loaded from JSON.
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ConfigError
from .ir import NativeBinding
from .varargs import VarArgFunction, parse_type_string


def _compile(patterns, key: str) -> list[re.Pattern]:
    try:
        return [re.compile(p) for p in patterns]
    except re.error as e:
        raise ConfigError(f'{key}: invalid pattern: {e}') from e


def _compile_rules(rules: dict[str, str], key: str) -> list[tuple[re.Pattern, str]]:
    patterns = _compile(list(rules), key)
    return list(zip(patterns, rules.values()))


class DeclarationFilter:
    """Include/exclude/rename rules for one declaration kind

    Patterns are regular expressions that must match the whole name.
    `include=None` includes everything not excluded; an empty list
    includes nothing. Exclusion wins over inclusion.
    """

    def __init__(self, include: Optional[list[str]] = None,
                 exclude: Optional[list[str]] = None,
                 rename: Optional[dict[str, str]] = None,
                 member_rename: Optional[dict[str, dict[str, str]]] = None,
                 symbol_address: Optional[list[str]] = None):
        self.include = None if include is None else _compile(include, 'include')
        self.exclude = _compile(exclude or [], 'exclude')
        self.rename_rules = _compile_rules(rename or {}, 'rename')
        self.member_rename_rules = [
            (_compile([decl], 'member-rename')[0], _compile_rules(members, 'member-rename'))
            for decl, members in (member_rename or {}).items()
        ]
        self.symbol_address = _compile(symbol_address or [], 'symbol-address')

    @classmethod
    def none(cls) -> 'DeclarationFilter':
        return cls(include=[])

    @staticmethod
    def _matches(patterns: list[re.Pattern], usr: str, name: str) -> bool:
        for p in patterns:
            if p.pattern == usr or p.fullmatch(name):
                return True
        return False

    def should_include(self, usr: str, name: str) -> bool:
        if self._matches(self.exclude, usr, name):
            return False
        if self.include is None:
            return True
        return self._matches(self.include, usr, name)

    def should_include_name(self, name: str) -> bool:
        return self.should_include('', name)

    def should_include_symbol_address(self, name: str) -> bool:
        return any(p.fullmatch(name) for p in self.symbol_address)

    def rename(self, name: str) -> str:
        """Apply the first matching rename rule"""
        for pattern, replacement in self.rename_rules:
            if pattern.fullmatch(name):
                return pattern.sub(replacement, name, count=1)
        return name

    def rename_member(self, decl_name: str, member_name: str) -> str:
        """Rename a member/parameter, with the enclosing declaration as context"""
        for decl_pattern, rules in self.member_rename_rules:
            if not decl_pattern.fullmatch(decl_name):
                continue
            for pattern, replacement in rules:
                if pattern.fullmatch(member_name):
                    return pattern.sub(replacement, member_name, count=1)
        return member_name

    @classmethod
    def from_dict(cls, data: Any, key: str) -> 'DeclarationFilter':
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f'{key}: expected a mapping')
        unknown = set(data) - cls.KEYS
        if unknown:
            raise ConfigError(f'{key}: unknown keys {sorted(unknown)}')
        include = data.get('include')
        symbol_address = data.get('symbol-address')
        if isinstance(symbol_address, dict):
            symbol_address = symbol_address.get('include', [])
        for k, value in (('include', include), ('exclude', data.get('exclude')),
                         ('symbol-address', symbol_address)):
            if value is not None and not _is_str_list(value):
                raise ConfigError(f'{key}.{k}: expected a list of strings')
        member_rename = data.get('member-rename', {})
        if not isinstance(member_rename, dict) or not all(
                isinstance(v, dict) for v in member_rename.values()):
            raise ConfigError(f'{key}.member-rename: expected a mapping of mappings')
        rename = data.get('rename', {})
        if not isinstance(rename, dict):
            raise ConfigError(f'{key}.rename: expected a mapping')
        return cls(
            include=include,
            exclude=data.get('exclude'),
            rename=rename,
            member_rename=member_rename,
            symbol_address=symbol_address,
        )

    KEYS = {'include', 'exclude', 'rename', 'member-rename', 'symbol-address'}


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


@dataclass
class HeaderConfig:
    """Entry-point headers and which files' declarations to bind"""
    entry_points: list[str] = field(default_factory=list)
    include_directives: list[str] = field(default_factory=list)  # globs; empty means entry points


@dataclass
class Config:
    """Complete binding policy for one library"""
    module: str = 'bindings'
    output: str = '.'
    headers: HeaderConfig = field(default_factory=HeaderConfig)
    compiler_opts: list[str] = field(default_factory=list)
    comments: bool = True

    functions: DeclarationFilter = field(default_factory=DeclarationFilter)
    structs: DeclarationFilter = field(default_factory=DeclarationFilter)
    unions: DeclarationFilter = field(default_factory=DeclarationFilter)
    enums: DeclarationFilter = field(default_factory=DeclarationFilter)
    unnamed_enums: DeclarationFilter = field(default_factory=DeclarationFilter)
    typedefs: DeclarationFilter = field(default_factory=DeclarationFilter)
    globals: DeclarationFilter = field(default_factory=DeclarationFilter)
    macros: DeclarationFilter = field(default_factory=DeclarationFilter)
    objc_interfaces: DeclarationFilter = field(default_factory=DeclarationFilter)

    leaf_functions: DeclarationFilter = field(default_factory=DeclarationFilter.none)
    expose_function_typedefs: DeclarationFilter = field(default_factory=DeclarationFilter.none)
    var_arg_functions: dict[str, list[VarArgFunction]] = field(default_factory=dict)
    native: NativeBinding = field(default_factory=NativeBinding)

    def add_var_args(self, func_name: str, *signatures: tuple[str, list[str]]):
        """Declare call-site signatures for a variadic function

        Each signature is (postfix, [type strings]).
        """
        entries = self.var_arg_functions.setdefault(func_name, [])
        for postfix, types in signatures:
            entries.append(VarArgFunction(postfix, tuple(parse_type_string(t) for t in types)))

    @classmethod
    def load(cls, json_path: str) -> 'Config':
        """Load configuration from a JSON file"""
        try:
            with open(json_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f'cannot read {json_path}: {e}') from e
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        if not isinstance(data, dict):
            raise ConfigError('configuration must be a mapping')
        unknown = set(data) - _TOP_LEVEL_KEYS
        if unknown:
            raise ConfigError(f'unknown configuration keys {sorted(unknown)}')

        config = cls()
        if 'module' in data:
            config.module = _expect_str(data['module'], 'module')
        if 'output' in data:
            config.output = _expect_str(data['output'], 'output')
        if 'comments' in data:
            if not isinstance(data['comments'], bool):
                raise ConfigError('comments: expected true or false')
            config.comments = data['comments']
        if 'compiler-opts' in data:
            opts = data['compiler-opts']
            if isinstance(opts, str):
                opts = opts.split()
            if not _is_str_list(opts):
                raise ConfigError('compiler-opts: expected a string or list of strings')
            config.compiler_opts = opts

        headers = data.get('headers', {})
        if not isinstance(headers, dict):
            raise ConfigError('headers: expected a mapping')
        entry_points = headers.get('entry-points', [])
        directives = headers.get('include-directives', [])
        if not _is_str_list(entry_points) or not _is_str_list(directives):
            raise ConfigError('headers: entry-points and include-directives must be lists of strings')
        config.headers = HeaderConfig(entry_points, directives)

        functions = data.get('functions') or {}
        if not isinstance(functions, dict):
            raise ConfigError('functions: expected a mapping')
        functions = dict(functions)
        leaf = functions.pop('leaf', None)
        expose_typedefs = functions.pop('expose-typedefs', None)
        var_args = functions.pop('variadic-arguments', {})
        config.functions = DeclarationFilter.from_dict(functions, 'functions')
        if leaf is not None:
            config.leaf_functions = DeclarationFilter.from_dict(leaf, 'functions.leaf')
        if expose_typedefs is not None:
            config.expose_function_typedefs = DeclarationFilter.from_dict(
                expose_typedefs, 'functions.expose-typedefs')
        config.var_arg_functions = _parse_var_args(var_args)

        for key, attr in _FILTER_KEYS.items():
            if key in data:
                setattr(config, attr, DeclarationFilter.from_dict(data[key], key))

        native = data.get('native', {})
        if not isinstance(native, dict) or set(native) - {'library', 'convention'}:
            raise ConfigError('native: expected a mapping with library and/or convention')
        convention = native.get('convention')
        if convention not in (None, 'cdecl', 'stdcall', 'fastcall'):
            raise ConfigError(f'native.convention: unsupported calling convention {convention!r}')
        config.native = NativeBinding(library=native.get('library'), convention=convention)
        return config


def _expect_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f'{key}: expected a string')
    return value


def _parse_var_args(data: Any) -> dict[str, list[VarArgFunction]]:
    if not isinstance(data, dict):
        raise ConfigError('functions.variadic-arguments: expected a mapping')
    result = {}
    for func_name, entries in data.items():
        if not isinstance(entries, list):
            raise ConfigError(f'functions.variadic-arguments.{func_name}: expected a list')
        parsed = []
        for i, entry in enumerate(entries):
            if isinstance(entry, list):
                entry = {'types': entry}
            if not isinstance(entry, dict) or not _is_str_list(entry.get('types', None)):
                raise ConfigError(f'functions.variadic-arguments.{func_name}[{i}]: '
                                  f'expected {{"types": [...], "postfix": "..."}}')
            postfix = entry.get('postfix', f'_{i + 1}')
            parsed.append(VarArgFunction(
                _expect_str(postfix, f'functions.variadic-arguments.{func_name}[{i}].postfix'),
                tuple(parse_type_string(t) for t in entry['types']),
            ))
        result[func_name] = parsed
    return result


_FILTER_KEYS = {
    'structs': 'structs',
    'unions': 'unions',
    'enums': 'enums',
    'unnamed-enums': 'unnamed_enums',
    'typedefs': 'typedefs',
    'globals': 'globals',
    'macros': 'macros',
    'objc-interfaces': 'objc_interfaces',
}

_TOP_LEVEL_KEYS = {
    'module', 'output', 'headers', 'compiler-opts', 'comments',
    'functions', 'native',
} | set(_FILTER_KEYS)
