"""
Operation registry for gitconnector.

Maps the operation names a workflow engine sends (``createBranch``,
``resetRepository``, ...) to GitConnector methods, and binds the raw
parameter dictionary to keyword arguments: names are normalized from
camelCase, booleans are coerced from strings, unknown and missing
parameters are rejected.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import InvalidParameter

_CAMEL_RE = re.compile(r"(?<=[a-z0-9])([A-Z])")

TRUE_VALUES = ('true', 'yes', 'on', '1')
FALSE_VALUES = ('false', 'no', 'off', '0', '')


def snake_case(name: str) -> str:
    """overrideDirectory -> override_directory; snake_case passes through."""
    return _CAMEL_RE.sub(r"_\1", name).lower()


@dataclass(frozen=True)
class Parameter:
    """One operation parameter."""
    name: str
    kind: type = str
    required: bool = False
    default: Any = None
    aliases: Tuple[str, ...] = ()

    def coerce(self, value: Any) -> Any:
        if value is None:
            return None
        if self.kind is bool:
            if isinstance(value, bool):
                return value
            if isinstance(value, str) and value.strip().lower() in TRUE_VALUES:
                return True
            if isinstance(value, str) and value.strip().lower() in FALSE_VALUES:
                return False
            raise InvalidParameter(f"Parameter '{self.name}' must be a boolean, got {value!r}")
        if self.kind is list:
            # A list, or one semicolon-delimited string
            if isinstance(value, str):
                return value
            if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
                return list(value)
            raise InvalidParameter(f"Parameter '{self.name}' must be a string or a list of strings")
        if not isinstance(value, str):
            raise InvalidParameter(f"Parameter '{self.name}' must be a string, got {type(value).__name__}")
        return value


@dataclass(frozen=True)
class OperationSpec:
    """An invocable operation and the parameters it accepts."""
    name: str
    method: str
    parameters: Tuple[Parameter, ...]
    network: bool = False

    def lookup(self, key: str) -> Optional[Parameter]:
        normalized = snake_case(key)
        for parameter in self.parameters:
            if normalized == parameter.name or normalized in parameter.aliases:
                return parameter
        return None


_OVERRIDE = Parameter("override_directory")

OPERATIONS: Dict[str, OperationSpec] = {spec.name: spec for spec in (
    OperationSpec("clone", "clone", (
        Parameter("uri", required=True),
        Parameter("bare", bool, default=False),
        Parameter("remote", default="origin"),
        Parameter("branch", default="HEAD"),
        _OVERRIDE,
    ), network=True),
    OperationSpec("add", "add", (
        Parameter("file_patterns", list),
        Parameter("force_all", bool, default=False),
        Parameter("strict", bool),
        _OVERRIDE,
    )),
    OperationSpec("create_branch", "create_branch", (
        Parameter("name", required=True, aliases=("branch_name",)),
        Parameter("force", bool, default=False),
        Parameter("start_point", default="HEAD"),
        _OVERRIDE,
    )),
    OperationSpec("delete_branch", "delete_branch", (
        Parameter("name", required=True, aliases=("branch_name",)),
        Parameter("force", bool, required=True),
        _OVERRIDE,
    )),
    OperationSpec("commit", "commit", (
        Parameter("msg", required=True, aliases=("message",)),
        Parameter("committer_name", required=True),
        Parameter("committer_email", required=True),
        Parameter("author_name"),
        Parameter("author_email"),
        Parameter("all", bool, default=False),
        _OVERRIDE,
    )),
    OperationSpec("push", "push", (
        Parameter("remote", default="origin"),
        Parameter("force", bool, default=False),
        _OVERRIDE,
    ), network=True),
    OperationSpec("pull", "pull", (
        Parameter("remote"),
        _OVERRIDE,
    ), network=True),
    OperationSpec("fetch", "fetch", (
        Parameter("remote"),
        _OVERRIDE,
    ), network=True),
    OperationSpec("checkout", "checkout", (
        Parameter("branch", required=True),
        Parameter("start_point"),
        _OVERRIDE,
    )),
    OperationSpec("reset_repository", "reset_repository", (
        Parameter("branch", default="HEAD"),
        _OVERRIDE,
    )),
)}


def get_operation(name: str) -> OperationSpec:
    """Look up an operation by engine (camelCase) or Python name."""
    spec = OPERATIONS.get(snake_case(name or ""))
    if spec is None:
        raise InvalidParameter(
            f"Unknown operation '{name}'. Available: {', '.join(sorted(OPERATIONS))}"
        )
    return spec


def bind_parameters(spec: OperationSpec, params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Turn raw engine parameters into keyword arguments for spec's method.

    Raises:
        InvalidParameter: unknown, duplicated, mistyped or missing parameters
    """
    bound: Dict[str, Any] = {}
    for key, value in (params or {}).items():
        parameter = spec.lookup(key)
        if parameter is None:
            raise InvalidParameter(f"Operation '{spec.name}' has no parameter '{key}'")
        if parameter.name in bound:
            raise InvalidParameter(f"Parameter '{parameter.name}' given more than once")
        bound[parameter.name] = parameter.coerce(value)

    for parameter in spec.parameters:
        value = bound.get(parameter.name)
        if parameter.required and (value is None or (isinstance(value, str) and not value.strip())):
            raise InvalidParameter(f"Operation '{spec.name}' requires parameter '{parameter.name}'")
        if value is None:
            if parameter.default is None:
                bound.pop(parameter.name, None)
            else:
                bound[parameter.name] = parameter.default
    return bound
