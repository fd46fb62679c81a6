"""
Unit tests for canonical request rendering and signature placement.
"""

import hashlib
import hmac
from decimal import Decimal
from enum import Enum

import msgspec
import pytest

from cex_rest.exceptions import InvalidKey, InvalidOperationSpec
from cex_rest.networking.http import (
    CanonicalRequestBuilder,
    FixedTimestamp,
    HmacParamsDigest,
    HTTPMethod,
    OperationSpec,
    ParamShape,
    SigningProfile,
    build_url,
)

SECRET = "test-secret"


def expected_signature(payload: str) -> str:
    return hmac.new(SECRET.encode(), payload.encode(), hashlib.sha256).hexdigest()


class Side(Enum):
    BUY = "BUY"


@pytest.fixture
def builder():
    return CanonicalRequestBuilder()


@pytest.fixture
def signer():
    return HmacParamsDigest(SECRET)


@pytest.fixture
def signed_get():
    return (OperationSpec.builder("order_status", HTTPMethod.GET, "/api/v3/order")
            .query("symbol")
            .timestamp()
            .signature()
            .build())


class TestCanonicalRendering:

    def test_signed_get_scenario(self, builder, signer, signed_get):
        """GET symbol=BTCUSDT at t=1000 signs exactly 'symbol=BTCUSDT&timestamp=1000'"""
        canonical = builder.render(signed_get, {"symbol": "BTCUSDT"}, FixedTimestamp(1000))
        assert canonical.invocation.query_string == "symbol=BTCUSDT&timestamp=1000"
        assert canonical.invocation.body is None

        request = builder.build(signed_get, {"symbol": "BTCUSDT"}, FixedTimestamp(1000), signer)
        assert request.query == (
            ("symbol", "BTCUSDT"),
            ("timestamp", "1000"),
            ("signature", expected_signature("symbol=BTCUSDT&timestamp=1000")),
        )

    def test_rendering_is_deterministic(self, builder, signer, signed_get):
        args = {"symbol": "ETHUSDT"}
        first = builder.build(signed_get, args, FixedTimestamp(1234), signer)
        second = builder.build(signed_get, args, FixedTimestamp(1234), signer)
        assert first == second

    def test_pairs_follow_declaration_order_not_sorted(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.GET, "/x")
                .query("zeta").query("alpha").build())
        canonical = builder.render(spec, {"zeta": 1, "alpha": 2})
        assert canonical.explicit_query == (("zeta", "1"), ("alpha", "2"))

    def test_timestamp_appended_after_query(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.GET, "/x")
                .timestamp().query("symbol").build())
        canonical = builder.render(spec, {"symbol": "BTCUSDT"}, FixedTimestamp(5))
        assert canonical.explicit_query == (("symbol", "BTCUSDT"), ("timestamp", "5"))

    def test_optional_absent_contributes_nothing(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.GET, "/x")
                .query("symbol").query("limit", shape=ParamShape.OPTIONAL).build())
        canonical = builder.render(spec, {"symbol": "BTCUSDT", "limit": None})
        assert canonical.explicit_query == (("symbol", "BTCUSDT"),)

    def test_list_contributes_one_pair_per_element(self, builder):
        spec = OperationSpec.builder("op", HTTPMethod.GET, "/x").query("id", shape=ParamShape.LIST).build()
        canonical = builder.render(spec, {"id": [3, 1, 2]})
        assert canonical.explicit_query == (("id", "3"), ("id", "1"), ("id", "2"))

    def test_string_map_contributes_entries(self, builder):
        spec = OperationSpec.builder("op", HTTPMethod.GET, "/x").query("extra", shape=ParamShape.STRING_MAP).build()
        canonical = builder.render(spec, {"extra": {"a": "1", "b": "2"}})
        assert set(canonical.explicit_query) == {("a", "1"), ("b", "2")}

    def test_value_rendering(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.GET, "/x")
                .query("side").query("flag").query("price").build())
        canonical = builder.render(spec, {"side": Side.BUY, "flag": True, "price": Decimal("0.10")})
        assert canonical.explicit_query == (("side", "BUY"), ("flag", "true"), ("price", "0.10"))

    def test_alias_is_wire_key(self, builder):
        spec = OperationSpec.builder("op", HTTPMethod.GET, "/x").query("order_id", alias="orderId").build()
        canonical = builder.render(spec, {"order_id": 7})
        assert canonical.explicit_query == (("orderId", "7"),)

    def test_headers_and_path(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.GET, "/orders/{order_id}")
                .path("order_id").header("api_key", "X-API-KEY").build())
        canonical = builder.render(spec, {"order_id": "a/b", "api_key": "key"})
        assert canonical.invocation.path == "/orders/a%2Fb"
        assert canonical.explicit_headers == (("X-API-KEY", "key"),)

    def test_missing_required_argument(self, builder, signed_get):
        with pytest.raises(InvalidOperationSpec):
            builder.render(signed_get, {}, FixedTimestamp(1))

    def test_unknown_argument(self, builder, signed_get):
        with pytest.raises(InvalidOperationSpec):
            builder.render(signed_get, {"symbol": "X", "bogus": 1}, FixedTimestamp(1))

    def test_timestamp_without_provider(self, builder, signed_get):
        with pytest.raises(InvalidOperationSpec):
            builder.render(signed_get, {"symbol": "X"})

    def test_explicit_timestamp_overrides_provider(self, builder, signed_get):
        canonical = builder.render(signed_get, {"symbol": "X", "timestamp": 42}, FixedTimestamp(1))
        assert ("timestamp", "42") in canonical.explicit_query


class TestBodies:

    def test_form_body(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.POST, "/x")
                .form("symbol").form("qty").build())
        canonical = builder.render(spec, {"symbol": "BTCUSDT", "qty": "1.5"})
        assert canonical.body == "symbol=BTCUSDT&qty=1.5"
        assert canonical.content_type == "application/x-www-form-urlencoded"
        assert canonical.invocation.body == "symbol=BTCUSDT&qty=1.5"

    def test_json_body(self, builder):
        spec = OperationSpec.builder("op", HTTPMethod.POST, "/x").json("payload").build()
        canonical = builder.render(spec, {"payload": {"symbol": "BTCUSDT", "qty": 1}})
        assert msgspec.json.decode(canonical.body) == {"symbol": "BTCUSDT", "qty": 1}
        assert canonical.content_type == "application/json"

    def test_conflated_profile_signs_form_as_query(self, signer):
        builder = CanonicalRequestBuilder(SigningProfile(conflate_form=True))
        spec = (OperationSpec.builder("op", HTTPMethod.POST, "/x")
                .form("symbol").timestamp().signature().build())
        canonical = builder.render(spec, {"symbol": "BTCUSDT"}, FixedTimestamp(1000))
        assert canonical.invocation.query == (("timestamp", "1000"), ("symbol", "BTCUSDT"))
        assert canonical.invocation.body is None

        request = builder.build(spec, {"symbol": "BTCUSDT"}, FixedTimestamp(1000), signer)
        assert request.body == "symbol=BTCUSDT"
        assert request.query[-1] == ("signature", expected_signature("timestamp=1000&symbol=BTCUSDT"))

    def test_post_signs_query_plus_body(self, builder, signer):
        spec = (OperationSpec.builder("op", HTTPMethod.POST, "/x")
                .form("symbol").timestamp().signature().build())
        request = builder.build(spec, {"symbol": "BTCUSDT"}, FixedTimestamp(1000), signer)
        assert request.query[-1] == ("signature", expected_signature("timestamp=1000symbol=BTCUSDT"))

    def test_reserved_characters_use_one_encoding(self, builder):
        spec = (OperationSpec.builder("op", HTTPMethod.POST, "/x")
                .query("tag").form("note").timestamp().signature().build())
        signer = HmacParamsDigest(SECRET, url_encode=True)
        args = {"tag": "a b", "note": "c/d e&f"}

        request = builder.build(spec, args, FixedTimestamp(1000), signer)

        assert request.body == "note=c%2Fd%20e%26f"
        url = build_url("https://api.example.com", request)
        signed_query = url.split("?", 1)[1].rsplit("&signature=", 1)[0]
        assert signed_query == "tag=a%20b&timestamp=1000"
        assert request.query[-1] == ("signature", expected_signature(signed_query + request.body))


class TestSignaturePlacement:

    def test_signature_in_header(self, builder, signer):
        spec = (OperationSpec.builder("op", HTTPMethod.GET, "/x")
                .query("symbol").timestamp().signature(header="X-SIGN").build())
        request = builder.build(spec, {"symbol": "BTCUSDT"}, FixedTimestamp(1000), signer)
        assert request.query == (("symbol", "BTCUSDT"), ("timestamp", "1000"))
        assert request.headers == (("X-SIGN", expected_signature("symbol=BTCUSDT&timestamp=1000")),)

    def test_custom_signature_key(self, builder, signer):
        spec = OperationSpec.builder("op", HTTPMethod.GET, "/x").query("a").signature(key="sig").build()
        request = builder.build(spec, {"a": "1"}, signer=signer)
        assert request.query[-1][0] == "sig"

    def test_signer_argument_overrides_default(self, builder, signer, signed_get):
        other = HmacParamsDigest("other-secret")
        request = builder.build(signed_get, {"symbol": "X", "signature": other}, FixedTimestamp(1), signer)
        assert request.query[-1][1] == other.digest([("symbol", "X"), ("timestamp", "1")])

    def test_signed_operation_without_signer(self, builder, signed_get):
        with pytest.raises(InvalidKey):
            builder.build(signed_get, {"symbol": "X"}, FixedTimestamp(1))

    def test_unsigned_operation_has_no_signature(self, builder):
        spec = OperationSpec.builder("op", HTTPMethod.GET, "/x").query("a").build()
        request = builder.build(spec, {"a": "1"})
        assert request.query == (("a", "1"),)
