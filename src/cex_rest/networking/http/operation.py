"""
Operation Declarations and Parameter Classification

An OperationSpec is the immutable, declarative description of one remote
REST operation: HTTP method, path template and the ordered list of typed
parameters with their roles. Specs are built once when a binding is defined
and shared by every invocation.

Usage:
    ORDER_STATUS = (
        OperationSpec.builder("order_status", HTTPMethod.GET, "/api/v3/order")
        .query("symbol")
        .query("order_id", shape=ParamShape.OPTIONAL, alias="orderId")
        .timestamp()
        .signature()
        .returns(BinanceOrder)
        .build()
    )
"""

from dataclasses import dataclass, field
from enum import Enum
from string import Formatter
from typing import Any, FrozenSet, List, Optional, Sequence, Tuple

from cex_rest.exceptions import InvalidOperationSpec
from .structs import HTTPMethod


class RoleKind(Enum):
    QUERY = "query"
    FORM = "form"
    JSON = "json"
    HEADER = "header"
    TIMESTAMP = "timestamp"
    SIGNATURE = "signature"
    PATH = "path"


class ParamShape(Enum):
    """How an argument value expands into canonical pairs."""
    SCALAR = "scalar"
    OPTIONAL = "optional"
    LIST = "list"
    STRING_MAP = "string_map"


@dataclass(frozen=True)
class ParamRole:
    """Closed set of parameter roles.

    ``key`` is the header name for HEADER, the wire key for TIMESTAMP and
    SIGNATURE. ``header`` moves a SIGNATURE from the query into that header.
    """
    kind: RoleKind
    key: Optional[str] = None
    header: Optional[str] = None

    @classmethod
    def query(cls) -> 'ParamRole':
        return cls(RoleKind.QUERY)

    @classmethod
    def form(cls) -> 'ParamRole':
        return cls(RoleKind.FORM)

    @classmethod
    def json(cls) -> 'ParamRole':
        return cls(RoleKind.JSON)

    @classmethod
    def header_param(cls, name: str) -> 'ParamRole':
        return cls(RoleKind.HEADER, key=name)

    @classmethod
    def timestamp(cls, key: str = "timestamp") -> 'ParamRole':
        return cls(RoleKind.TIMESTAMP, key=key)

    @classmethod
    def signature(cls, key: str = "signature", header: Optional[str] = None) -> 'ParamRole':
        return cls(RoleKind.SIGNATURE, key=key, header=header)

    @classmethod
    def path(cls) -> 'ParamRole':
        return cls(RoleKind.PATH)


@dataclass(frozen=True)
class Param:
    """Declared parameter before classification. ``role=None`` means default."""
    name: str
    role: Optional[ParamRole] = None
    shape: ParamShape = ParamShape.SCALAR
    alias: Optional[str] = None


@dataclass(frozen=True)
class ParamSpec:
    """Classified parameter: the role is always resolved."""
    name: str
    role: ParamRole
    shape: ParamShape = ParamShape.SCALAR
    alias: Optional[str] = None

    @property
    def key(self) -> str:
        """Key used on the wire."""
        if self.role.kind in (RoleKind.HEADER, RoleKind.TIMESTAMP, RoleKind.SIGNATURE):
            return self.role.key
        return self.alias or self.name

    @property
    def required(self) -> bool:
        """Caller must supply a value. Timestamp and signature are resolved by the executor."""
        if self.role.kind in (RoleKind.TIMESTAMP, RoleKind.SIGNATURE):
            return False
        return self.shape is not ParamShape.OPTIONAL


def default_role(method: HTTPMethod) -> ParamRole:
    """Form for body-carrying methods, query otherwise."""
    return ParamRole.form() if method.carries_body else ParamRole.query()


def classify_params(method: HTTPMethod, declared: Sequence[Param]) -> Tuple[ParamSpec, ...]:
    """Resolve default roles. Validation happens when the OperationSpec is created."""
    return tuple(
        ParamSpec(
            name=param.name,
            role=param.role or default_role(method),
            shape=param.shape,
            alias=param.alias,
        )
        for param in declared
    )


_PAIR_ROLES = (RoleKind.QUERY, RoleKind.FORM)
_SCALAR_ONLY_ROLES = (RoleKind.TIMESTAMP, RoleKind.SIGNATURE, RoleKind.PATH)


def _path_placeholders(template: str) -> FrozenSet[str]:
    try:
        return frozenset(name for _, name, _, _ in Formatter().parse(template) if name)
    except ValueError as e:
        raise InvalidOperationSpec(f"malformed path template '{template}': {e}")


@dataclass(frozen=True)
class OperationSpec:
    """Immutable description of one REST operation."""
    name: str
    method: HTTPMethod
    path_template: str
    params: Tuple[ParamSpec, ...] = ()
    response_type: Any = None
    retry_category: str = "global"
    rate_limit_categories: Optional[Tuple[str, ...]] = None
    path_names: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'params', tuple(self.params))
        object.__setattr__(self, 'path_names', _path_placeholders(self.path_template))
        self._validate()

    def _validate(self) -> None:
        where = f"operation '{self.name}'"
        names = [p.name for p in self.params]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise InvalidOperationSpec(f"{where}: duplicate parameter names {duplicates}")

        kinds = [p.role.kind for p in self.params]
        for kind in (RoleKind.JSON, RoleKind.SIGNATURE, RoleKind.TIMESTAMP):
            if kinds.count(kind) > 1:
                raise InvalidOperationSpec(f"{where}: at most one {kind.value} parameter is allowed")

        if RoleKind.JSON in kinds and RoleKind.FORM in kinds:
            raise InvalidOperationSpec(f"{where}: form and json body parameters are mutually exclusive")

        if not self.method.carries_body and (RoleKind.JSON in kinds or RoleKind.FORM in kinds):
            raise InvalidOperationSpec(f"{where}: {self.method.value} cannot carry a request body")

        for param in self.params:
            kind = param.role.kind
            if param.shape in (ParamShape.LIST, ParamShape.STRING_MAP) and kind not in _PAIR_ROLES:
                raise InvalidOperationSpec(
                    f"{where}: {param.shape.value} shape is only valid for query/form parameter '{param.name}'"
                )
            if kind in _SCALAR_ONLY_ROLES and param.shape is not ParamShape.SCALAR:
                raise InvalidOperationSpec(f"{where}: {kind.value} parameter '{param.name}' must be scalar")
            if kind in (RoleKind.HEADER, RoleKind.TIMESTAMP, RoleKind.SIGNATURE) and not param.role.key:
                raise InvalidOperationSpec(f"{where}: {kind.value} parameter '{param.name}' needs a key")

        path_params = {p.name for p in self.params if p.role.kind is RoleKind.PATH}
        if path_params != set(self.path_names):
            raise InvalidOperationSpec(
                f"{where}: path placeholders {sorted(self.path_names)} do not match "
                f"path parameters {sorted(path_params)}"
            )

    @classmethod
    def builder(cls, name: str, method: HTTPMethod, path_template: str) -> 'OperationSpecBuilder':
        return OperationSpecBuilder(name, method, path_template)

    def param(self, name: str) -> Optional[ParamSpec]:
        for param in self.params:
            if param.name == name:
                return param
        return None

    def params_of(self, kind: RoleKind) -> List[ParamSpec]:
        return [p for p in self.params if p.role.kind is kind]

    @property
    def timestamp_param(self) -> Optional[ParamSpec]:
        found = self.params_of(RoleKind.TIMESTAMP)
        return found[0] if found else None

    @property
    def signature_param(self) -> Optional[ParamSpec]:
        found = self.params_of(RoleKind.SIGNATURE)
        return found[0] if found else None

    @property
    def is_signed(self) -> bool:
        return self.signature_param is not None

    @property
    def limiter_categories(self) -> Tuple[str, ...]:
        if self.rate_limit_categories is None:
            return (self.retry_category,)
        return self.rate_limit_categories


class OperationSpecBuilder:
    """Fluent builder collecting declared parameters in order."""

    def __init__(self, name: str, method: HTTPMethod, path_template: str):
        self._name = name
        self._method = method
        self._path_template = path_template
        self._declared: List[Param] = []
        self._response_type: Any = None
        self._retry_category = "global"
        self._rate_limit_categories: Optional[Tuple[str, ...]] = None

    def param(self, name: str, role: Optional[ParamRole] = None,
              shape: ParamShape = ParamShape.SCALAR, alias: Optional[str] = None) -> 'OperationSpecBuilder':
        self._declared.append(Param(name, role, shape, alias))
        return self

    def query(self, name: str, shape: ParamShape = ParamShape.SCALAR,
              alias: Optional[str] = None) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.query(), shape, alias)

    def form(self, name: str, shape: ParamShape = ParamShape.SCALAR,
             alias: Optional[str] = None) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.form(), shape, alias)

    def json(self, name: str, shape: ParamShape = ParamShape.SCALAR) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.json(), shape)

    def header(self, name: str, header_name: str,
               shape: ParamShape = ParamShape.SCALAR) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.header_param(header_name), shape)

    def path(self, name: str) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.path())

    def timestamp(self, name: str = "timestamp", key: Optional[str] = None) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.timestamp(key or name))

    def signature(self, name: str = "signature", key: Optional[str] = None,
                  header: Optional[str] = None) -> 'OperationSpecBuilder':
        return self.param(name, ParamRole.signature(key or name, header))

    def returns(self, response_type: Any) -> 'OperationSpecBuilder':
        self._response_type = response_type
        return self

    def category(self, retry_category: str,
                 rate_limits: Optional[Sequence[str]] = None) -> 'OperationSpecBuilder':
        self._retry_category = retry_category
        if rate_limits is not None:
            self._rate_limit_categories = tuple(rate_limits)
        return self

    def build(self) -> OperationSpec:
        return OperationSpec(
            name=self._name,
            method=self._method,
            path_template=self._path_template,
            params=classify_params(self._method, self._declared),
            response_type=self._response_type,
            retry_category=self._retry_category,
            rate_limit_categories=self._rate_limit_categories,
        )
