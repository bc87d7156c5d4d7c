import copy
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List

from .errors import (ColumnIndexError, FlagConflictError, FlagError,
                     MissingRequiredFlagError, RowParseError)

ALL_SUFFIX = "_ALL"

class FlagType(str, Enum):
    STRING = "string"
    INT = "int"
    INT64 = "int64"
    UINT64 = "uint64"
    FLOAT64 = "float64"
    BOOL = "bool"
    RUNE = "rune"
    STRING_SLICE = "stringSlice"
    STRING_ARRAY = "stringArray"

_INT_TYPES = (FlagType.INT, FlagType.INT64, FlagType.UINT64)
_LIST_TYPES = (FlagType.STRING_SLICE, FlagType.STRING_ARRAY)
_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1
_UINT64_MAX = 2 ** 64 - 1
_TRUE = ("1", "t", "T", "TRUE", "true", "True")
_FALSE = ("0", "f", "F", "FALSE", "false", "False")

def zero_value(t: FlagType) -> Any:
    if t in _INT_TYPES:
        return 0
    if t == FlagType.FLOAT64:
        return 0.0
    if t == FlagType.BOOL:
        return False
    if t in _LIST_TYPES:
        return None
    return ""

def type_matches(t: FlagType, value: Any) -> bool:
    """Does value have the runtime type the flag type declares?"""
    if t in (FlagType.STRING, FlagType.RUNE):
        return isinstance(value, str) and (t == FlagType.STRING or len(value) == 1)
    if t in _INT_TYPES:
        if not isinstance(value, int) or isinstance(value, bool):
            return False
        if t == FlagType.UINT64:
            return 0 <= value <= _UINT64_MAX
        return _INT64_MIN <= value <= _INT64_MAX
    if t == FlagType.FLOAT64:
        return isinstance(value, float)
    if t == FlagType.BOOL:
        return isinstance(value, bool)
    return isinstance(value, list) and all(isinstance(v, str) for v in value)

def parse(t: FlagType, cell: str) -> Any:
    """
    Parse a string (usually a CSV cell) into the flag type.
    Raises ValueError if it can't.
    """
    s = str(cell)
    if t == FlagType.STRING:
        return s
    if t in _INT_TYPES:
        if not _INT_RE.match(s):
            raise ValueError(f"invalid syntax for {t.value}")
        v = int(s)
        if not type_matches(t, v):
            raise ValueError(f"value out of range for {t.value}")
        return v
    if t == FlagType.FLOAT64:
        return float(s)
    if t == FlagType.BOOL:
        if s in _TRUE:
            return True
        if s in _FALSE:
            return False
        raise ValueError("invalid syntax for bool")
    if t == FlagType.RUNE:
        if len(s) != 1:
            raise ValueError("rune must be exactly one character")
        return s
    if t == FlagType.STRING_SLICE:
        return s.split(",")
    return [s]

@dataclass
class Flag():
    """
    Declaration of a single command flag.
    defaults maps a command name to that command's default value and every
    default must already have the declared type.  available_for, required and
    recursive list command names.  exclude_from_all keeps the flag out of the
    derived _ALL schema (used for things that make no sense as one constant
    for a whole batch, like a resource id).
    """
    type: FlagType|str = field(default=FlagType.STRING)
    description: str = field(default="")
    available_for: List[str] = field(default_factory=list)
    defaults: dict[str,Any] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    recursive: List[str] = field(default_factory=list)
    exclude_from_all: bool = field(default=False)

    def __post_init__(self) -> None:
        self.fixup()

    def fixup(self) -> None:
        if not isinstance(self.type, FlagType):
            self.type = FlagType(str(self.type))
        for command, default in self.defaults.items():
            if not type_matches(self.type, default):
                raise TypeError(f"default for {command} is {default!r}, not a {self.type.value}")

    def default(self, command: str) -> Any:
        v = self.defaults.get(command, None)
        if v is None:
            return zero_value(self.type)
        return copy.copy(v)

    def is_available(self, command: str) -> bool:
        return command in self.available_for

    def is_required(self, command: str) -> bool:
        return command in self.required

@dataclass
class Value():
    """
    The resolved value of one flag for one invocation (or one CSV row).
    index is the 1 based CSV column the value comes from, 0 means the
    declared default.  all_flag marks a value taken from the _ALL variant
    that applies to every row.
    """
    value: Any = field(default=None)
    type: FlagType = field(default=FlagType.STRING)
    changed: bool = field(default=False)
    index: int = field(default=0)
    all_flag: bool = field(default=False)

    def __bool__(self) -> bool:
        return self.changed

    def __str__(self) -> str:
        return str(self.value)

    def is_set(self) -> bool:
        return self.changed

    def get_string(self) -> str:
        return "" if self.value is None else str(self.value)

    def get_int(self) -> int:
        return 0 if self.value is None else int(self.value)

    def get_float(self) -> float:
        return 0.0 if self.value is None else float(self.value)

    def get_bool(self) -> bool:
        return bool(self.value)

    def get_rune(self) -> str:
        return self.get_string()

    def get_string_slice(self) -> List[str]:
        return [] if self.value is None else list(self.value)

# flag name -> Flag, one per command group
FlagSet = dict[str,Flag]
# flag name -> Value, one per invocation or CSV row
ParameterMap = dict[str,Value]

def all_flags(flags: FlagSet) -> FlagSet:
    """
    Derive the _ALL schema: every flag that isn't excluded gets a
    <name>_ALL twin that carries one constant for all rows of a batch.
    _ALL flags are never required themselves, the requirement is checked
    against the pair.
    """
    derived = {}
    for name, f in flags.items():
        if f.exclude_from_all:
            continue
        derived[name + ALL_SUFFIX] = Flag(type=f.type, description=f.description,
                                          available_for=list(f.available_for),
                                          defaults=dict(f.defaults))
    return derived

def recursive_flags(flags: FlagSet, command: str) -> FlagSet:
    """The flags a recursive (per user / per file) variant of command accepts"""
    return {name: f for name, f in flags.items() if command in f.recursive}

def _constant(name: str, f: Flag, value: Any) -> Any:
    if isinstance(value, str) and f.type != FlagType.STRING:
        try:
            return parse(f.type, value)
        except ValueError as e:
            raise FlagError(f"{name}: {e}") from e
    if f.type == FlagType.STRING_SLICE and isinstance(value, (tuple, set)):
        value = list(value)
    if not type_matches(f.type, value):
        raise FlagError(f"{name}: {value!r} is not a {f.type.value}")
    return value

def _unknown(command: str, flags: FlagSet, values: dict, allow_all: bool) -> None:
    for k in values:
        base = k[:-len(ALL_SUFFIX)] if allow_all and k.endswith(ALL_SUFFIX) else k
        f = flags.get(base, None)
        if f is None or not f.is_available(command):
            raise FlagError(f"unknown flag for {command}: {k}")
        if base != k and f.exclude_from_all:
            raise FlagError(f"{base} can't be used as {k}")

def flags_to_map(command: str, flags: FlagSet, values: dict[str,Any]) -> ParameterMap:
    """
    Resolve a one-shot invocation: every flag available for command gets a
    Value, the user supplied ones marked as changed, the rest defaulted.
    """
    _unknown(command, flags, values, allow_all=False)
    m = {}
    for name, f in flags.items():
        if not f.is_available(command):
            continue
        if name in values:
            m[name] = Value(_constant(name, f, values[name]), f.type, changed=True)
        elif f.is_required(command):
            raise MissingRequiredFlagError(f"{name} is required for {command}")
        else:
            m[name] = Value(f.default(command), f.type)
    return m

def consolidate(command: str, flags: FlagSet, values: dict[str,Any]) -> ParameterMap:
    """
    Merge the column flags and their _ALL twins for a batch.
    values maps a flag name to a 1 based column index or <name>_ALL to a
    constant.  Setting both forms of a flag is an error, as is leaving a
    required flag unset in both forms.  Nothing is read here so misuse is
    reported before any file is touched.
    """
    _unknown(command, flags, values, allow_all=True)
    m = {}
    for name, f in flags.items():
        if not f.is_available(command):
            continue
        all_name = name + ALL_SUFFIX
        if name in values and all_name in values:
            raise FlagConflictError(f"{name} and {all_name} are mutually exclusive")
        if all_name in values:
            m[name] = Value(_constant(all_name, f, values[all_name]), f.type, changed=True, all_flag=True)
        elif name in values:
            idx = values[name]
            if not isinstance(idx, int) or isinstance(idx, bool) or idx < 0:
                raise ColumnIndexError(f"{name}: column must be a positive integer, got {idx!r}")
            m[name] = Value(f.default(command), f.type, changed=idx > 0, index=idx)
            if not idx and f.is_required(command):
                raise MissingRequiredFlagError(f"{name} or {all_name} is required for {command}")
        elif f.is_required(command):
            raise MissingRequiredFlagError(f"{name} or {all_name} is required for {command}")
        else:
            m[name] = Value(f.default(command), f.type)
    return m

def check_indices(consolidated: ParameterMap, columns: int) -> None:
    """Every referenced column must exist, columns are 1 indexed"""
    for name, v in consolidated.items():
        if v.all_flag or not v.index:
            continue
        if v.index < 1 or v.index > columns:
            raise ColumnIndexError(f"{name}: column {v.index} is out of range (1-{columns})")

def coerce_cell(name: str, f: Flag, cell: str, row: int = 0) -> Any:
    try:
        return parse(f.type, cell)
    except ValueError as e:
        raise RowParseError(name, row, cell, str(e)) from e

def row_to_map(consolidated: ParameterMap, flags: FlagSet, line: List[str], row: int = 0) -> ParameterMap:
    """
    Build the ParameterMap for one CSV line.
    Raises RowParseError for the first cell that can't be coerced.
    """
    m = {}
    for name, v in consolidated.items():
        if v.all_flag or not v.index:
            m[name] = Value(copy.copy(v.value), v.type, v.changed, 0, v.all_flag)
            continue
        if v.index > len(line):
            raise RowParseError(name, row, "", f"line has no column {v.index}")
        m[name] = Value(coerce_cell(name, flags[name], line[v.index - 1], row), v.type, True, v.index)
    return m

def flag_to_dict(value: str) -> dict[str,str]:
    """
    Split "a=1;b=2" style attribute lists.  Entries without '=' are ignored.
    """
    m = {}
    if value:
        for att in value.split(";"):
            kv = att.split("=", 1)
            if len(kv) > 1:
                m[kv[0]] = kv[1]
    return m
