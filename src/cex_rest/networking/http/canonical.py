"""
Canonical Request Builder

Renders an OperationSpec plus call arguments into ordered key/value pairs
and an optional serialized body. The same canonical form feeds both the
wire request and the signature, so rendering must be deterministic: for
identical arguments and an identical timestamp the output is identical.

Pairs keep parameter declaration order. They are never sorted.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import quote

import msgspec

from cex_rest.exceptions import InvalidKey, InvalidOperationSpec
from .operation import OperationSpec, ParamShape, ParamSpec, RoleKind
from .strategies.auth import ParamsDigest, render_pairs
from .structs import CanonicalPair, HTTPMethod, PreparedRequest
from .time_provider import TimestampProvider

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class SigningProfile:
    """Exchange-specific canonicalization switches.

    ``conflate_form`` signs form fields as part of the canonical query
    instead of as a separate body.

    The wire query and the form body are both percent-encoded with
    ``render_pairs(..., url_encode=True)``. A separate body is signed exactly
    as sent, while query pairs are signed raw unless the signer was built
    with ``url_encode=True``. Values containing reserved characters (space,
    ``/``, ``&``) therefore need an encoding signer to sign the same bytes
    as the wire carries.
    """
    conflate_form: bool = False


@dataclass(frozen=True)
class RestInvocation:
    """Exact signing input. Fully materialized before the signer runs."""
    method: HTTPMethod
    path: str
    query: Tuple[CanonicalPair, ...]
    headers: Tuple[CanonicalPair, ...]
    body: Optional[str] = None

    @property
    def query_string(self) -> str:
        return render_pairs(self.query)


@dataclass(frozen=True)
class CanonicalRequest:
    """Rendered channels of one call, before signature placement."""
    invocation: RestInvocation
    explicit_query: Tuple[CanonicalPair, ...]
    explicit_form: Tuple[CanonicalPair, ...]
    explicit_headers: Tuple[CanonicalPair, ...]
    body: Optional[str]
    content_type: Optional[str]


def render_value(value: Any) -> str:
    """String form of a scalar argument as it appears on the wire."""
    if isinstance(value, Enum):
        return render_value(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def _expand(param: ParamSpec, value: Any) -> List[CanonicalPair]:
    key = param.key
    if param.shape is ParamShape.LIST:
        return [(key, render_value(item)) for item in value]
    if param.shape is ParamShape.STRING_MAP:
        # Map entries keep the mapping's own iteration order.
        return [(render_value(k), render_value(v)) for k, v in value.items()]
    return [(key, render_value(value))]


class CanonicalRequestBuilder:
    """Deterministic renderer shared by every operation of a client."""

    def __init__(self, profile: Optional[SigningProfile] = None):
        self.profile = profile or SigningProfile()

    def render(self, spec: OperationSpec, args: Mapping[str, Any],
               timestamp_provider: Optional[TimestampProvider] = None) -> CanonicalRequest:
        unknown = sorted(set(args) - {p.name for p in spec.params})
        if unknown:
            raise InvalidOperationSpec(f"operation '{spec.name}': unknown arguments {unknown}")

        explicit_query: List[CanonicalPair] = []
        explicit_form: List[CanonicalPair] = []
        explicit_headers: List[CanonicalPair] = []
        path_values = {}
        json_value: Any = None
        has_json = False

        for param in spec.params:
            kind = param.role.kind
            if kind in (RoleKind.TIMESTAMP, RoleKind.SIGNATURE):
                continue

            value = args.get(param.name)
            if value is None:
                if param.required:
                    raise InvalidOperationSpec(
                        f"operation '{spec.name}': missing required argument '{param.name}'"
                    )
                continue

            if kind is RoleKind.QUERY:
                explicit_query.extend(_expand(param, value))
            elif kind is RoleKind.FORM:
                explicit_form.extend(_expand(param, value))
            elif kind is RoleKind.HEADER:
                explicit_headers.append((param.key, render_value(value)))
            elif kind is RoleKind.PATH:
                path_values[param.name] = quote(render_value(value), safe="")
            elif kind is RoleKind.JSON:
                json_value = value
                has_json = True

        ts_param = spec.timestamp_param
        if ts_param is not None:
            explicit_query.append((ts_param.key, str(self._timestamp(spec, ts_param, args, timestamp_provider))))

        body = None
        content_type = None
        if has_json:
            body = msgspec.json.encode(json_value).decode("utf-8")
            content_type = JSON_CONTENT_TYPE
        elif explicit_form:
            body = render_pairs(explicit_form, url_encode=True)
            content_type = FORM_CONTENT_TYPE

        if self.profile.conflate_form and explicit_form:
            canonical_query = tuple(explicit_query) + tuple(explicit_form)
            signed_body = None
        else:
            canonical_query = tuple(explicit_query)
            signed_body = body

        invocation = RestInvocation(
            method=spec.method,
            path=spec.path_template.format(**path_values) if spec.path_names else spec.path_template,
            query=canonical_query,
            headers=tuple(explicit_headers),
            body=signed_body,
        )
        return CanonicalRequest(
            invocation=invocation,
            explicit_query=tuple(explicit_query),
            explicit_form=tuple(explicit_form),
            explicit_headers=tuple(explicit_headers),
            body=body,
            content_type=content_type,
        )

    @staticmethod
    def _timestamp(spec: OperationSpec, param: ParamSpec, args: Mapping[str, Any],
                   provider: Optional[TimestampProvider]) -> int:
        explicit = args.get(param.name)
        if explicit is not None:
            if isinstance(explicit, bool) or not isinstance(explicit, int):
                raise InvalidOperationSpec(
                    f"operation '{spec.name}': timestamp override must be int milliseconds"
                )
            return explicit
        if provider is None:
            raise InvalidOperationSpec(f"operation '{spec.name}': no timestamp provider configured")
        return provider.create_value()

    def build(self, spec: OperationSpec, args: Mapping[str, Any],
              timestamp_provider: Optional[TimestampProvider] = None,
              signer: Optional[ParamsDigest] = None) -> PreparedRequest:
        """Render, sign if the operation declares a signature, and place the signature."""
        canonical = self.render(spec, args, timestamp_provider)
        query = canonical.explicit_query
        headers = canonical.explicit_headers

        sig_param = spec.signature_param
        if sig_param is not None:
            override = args.get(sig_param.name)
            if override is not None:
                if not isinstance(override, ParamsDigest):
                    raise InvalidOperationSpec(
                        f"operation '{spec.name}': signature argument must be a ParamsDigest"
                    )
                signer = override
            if signer is None:
                raise InvalidKey(f"operation '{spec.name}' is signed but no signer is configured")

            invocation = canonical.invocation
            signature = signer.sign(invocation.method, invocation.query, invocation.body)
            if sig_param.role.header:
                headers = headers + ((sig_param.role.header, signature),)
            else:
                query = query + ((sig_param.key, signature),)

        return PreparedRequest(
            method=spec.method,
            path=canonical.invocation.path,
            query=query,
            headers=headers,
            body=canonical.body,
            content_type=canonical.content_type,
        )
