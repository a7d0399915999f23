"""Tests for scheme constructors, derived names and scope aggregation."""

import pytest
from fastapi.openapi.models import (
    APIKey,
    APIKeyIn,
    HTTPBase,
    HTTPBearer,
    OAuth2,
    OAuthFlowImplicit,
    OAuthFlows,
    OpenIdConnect,
)
from pydantic import ValidationError

from route_auth.schemes import (
    AuthorizationCodeFlow,
    AuthSchemeObject,
    ClientCredentialsFlow,
    ImplicitFlow,
    PasswordFlow,
    all_scopes,
    api_key,
    auto_name,
    basic,
    bearer,
    oauth2,
    openid_connect,
)


def test_basic_default_id():
    scheme = basic()
    assert isinstance(scheme.scheme, HTTPBase)
    assert scheme.scheme.scheme == "basic"
    assert scheme.id == "http_basic"


def test_basic_explicit_id_and_description():
    scheme = basic(id="BasicAuth", description="Username and password")
    assert scheme.id == "BasicAuth"
    assert scheme.scheme.description == "Username and password"


def test_bearer_names_include_format():
    assert bearer().id == "http_bearer"
    assert bearer(format="JWT").id == "http_bearer_JWT"


def test_api_key_defaults():
    scheme = api_key()
    assert isinstance(scheme.scheme, APIKey)
    assert scheme.scheme.name == "X-API-Key"
    assert scheme.scheme.in_ == APIKeyIn.header
    assert scheme.id == "apiKey_header"


def test_api_key_location_changes_name():
    assert api_key(location=APIKeyIn.query).id == "apiKey_query"
    assert api_key(location=APIKeyIn.cookie).id == "apiKey_cookie"


def test_api_key_header_name_is_not_part_of_default_id():
    first = api_key(name="X-API-Key")
    second = api_key(name="X-Other")
    # Same kind and location -> same derived id, but the schemes differ.
    assert first.id == second.id == "apiKey_header"
    assert first != second


def test_api_key_explicit_ids_keep_schemes_apart():
    first = api_key(id="primaryKey", name="X-API-Key")
    second = api_key(id="otherKey", name="X-Other")
    assert first.id != second.id


@pytest.mark.parametrize(
    ("flow", "expected"),
    [
        (ImplicitFlow(authorization_url="https://a/authorize"), "oauth2_implicit"),
        (PasswordFlow(token_url="https://a/token"), "oauth2_password"),
        (ClientCredentialsFlow(token_url="https://a/token"), "oauth2_clientCredentials"),
        (
            AuthorizationCodeFlow(authorization_url="https://a/authorize", token_url="https://a/token"),
            "oauth2_authorizationCode",
        ),
    ],
)
def test_oauth2_names_per_flow(flow, expected):
    assert oauth2(flow).id == expected


def test_oauth2_builds_single_flow_with_refresh_url_and_scopes():
    scheme = oauth2(
        ClientCredentialsFlow(token_url="https://a/token"),
        refresh_url="https://a/refresh",
        scopes={"read": "Read"},
    )
    assert isinstance(scheme.scheme, OAuth2)
    flows = scheme.scheme.flows
    assert flows.implicit is None
    assert flows.password is None
    assert flows.authorizationCode is None
    assert flows.clientCredentials.tokenUrl == "https://a/token"
    assert flows.clientCredentials.refreshUrl == "https://a/refresh"
    assert flows.clientCredentials.scopes == {"read": "Read"}


def test_oauth2_flow_fields_validated_by_openapi_models():
    with pytest.raises(ValidationError):
        oauth2(PasswordFlow(token_url=None))


def test_openid_connect():
    scheme = openid_connect(url="https://id.example.com/.well-known/openid-configuration")
    assert isinstance(scheme.scheme, OpenIdConnect)
    assert scheme.scheme.openIdConnectUrl == "https://id.example.com/.well-known/openid-configuration"
    assert scheme.id == "openIdConnect"


def test_auto_name_lists_flows_in_fixed_order():
    scheme = OAuth2(
        flows=OAuthFlows(
            implicit=OAuthFlowImplicit(authorizationUrl="https://a/authorize"),
            password={"tokenUrl": "https://a/token"},
            clientCredentials={"tokenUrl": "https://a/token"},
        )
    )
    assert auto_name(scheme) == "oauth2_password_clientCredentials_implicit"


def test_auto_name_is_deterministic():
    assert auto_name(bearer(format="JWT").scheme) == auto_name(bearer(format="JWT").scheme)


def test_auto_name_skips_empty_bearer_format():
    assert bearer(format="").id == "http_bearer"


def test_all_scopes_unions_flows_in_order():
    scheme = OAuth2(
        flows=OAuthFlows(
            implicit={"authorizationUrl": "https://a/authorize", "scopes": {"a": "", "shared": ""}},
            authorizationCode={
                "authorizationUrl": "https://a/authorize",
                "tokenUrl": "https://a/token",
                "scopes": {"b": ""},
            },
            password={"tokenUrl": "https://a/token", "scopes": {"shared": "", "d": ""}},
        )
    )
    assert all_scopes(scheme) == ["a", "shared", "b", "d"]


def test_all_scopes_empty_for_non_oauth2():
    assert all_scopes(basic().scheme) == []
    assert all_scopes(api_key().scheme) == []
    assert openid_connect(url="https://id").scopes == []


def test_auth_scheme_object_equality_by_value():
    assert bearer(format="JWT") == bearer(format="JWT")
    assert bearer(format="JWT") != bearer(format="JWT", id="jwt")
    assert bearer(format="JWT") != bearer(format="opaque")


def test_auth_scheme_object_is_immutable():
    scheme = basic()
    with pytest.raises(AttributeError):
        scheme.id = "other"


def test_auth_scheme_object_empty_id_falls_back_to_auto_name():
    scheme = AuthSchemeObject(HTTPBase(scheme="digest"), id="")
    assert scheme.id == "http_digest"


def test_auth_scheme_object_copies_the_caller_model():
    model = HTTPBearer(bearerFormat="JWT")
    scheme = AuthSchemeObject(model)

    model.bearerFormat = "opaque"

    assert scheme.id == "http_bearer_JWT"
    assert scheme.scheme.bearerFormat == "JWT"
    assert scheme == bearer(format="JWT")


def test_auth_scheme_object_scheme_property_cannot_change_value():
    scheme = bearer(format="JWT")

    scheme.scheme.bearerFormat = "opaque"

    assert scheme.scheme.bearerFormat == "JWT"
    assert auto_name(scheme.scheme) == scheme.id == "http_bearer_JWT"
    assert scheme == bearer(format="JWT")


def test_auth_scheme_object_is_hashable():
    schemes = {basic(), basic(), bearer(format="JWT"), bearer(format="JWT"), api_key(name="X-Other")}
    assert len(schemes) == 3
    assert hash(oauth2(PasswordFlow(token_url="https://a/token"), scopes={"x": "", "y": ""})) == hash(
        oauth2(PasswordFlow(token_url="https://a/token"), scopes={"y": "", "x": ""})
    )
