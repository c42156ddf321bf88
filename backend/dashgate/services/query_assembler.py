"""Query assembler. Turns a trusted widget query template into the query to run.

The client only ever picks a query *name* and supplies placeholder values;
the query text itself always comes from the widget's server-side
configuration. Tenant isolation predicates are injected last and can not be
supplied or overridden by the client.

Placeholder resolution order (must not change):
1. client values (``queryValues``), literal and case-sensitive; a key ``v``
   fills the token ``{{v}}``; a key may not name or span a tenant token
2. ``{{contextCondition}}`` / ``{{contextContainsCondition}}``
3. ``{{tenantDomain}}`` (also fills the domain inside the step 2 predicates)
4. ``{{tenantId}}``
"""

from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dashgate.core.errors import DataProviderError, ErrorKind
from dashgate.schemas.data_provider import SubscriptionRequest
from dashgate.services.tenant_resolver import AdminTenantResolver

logger = structlog.stdlib.get_logger(__name__)

QUERY_DATA = "queryData"
QUERY_PROPERTY_NAME = "query"

SUPER_TENANT_DOMAIN = "carbon.super"

NOT_LIKE_CONTEXT_PATH = "not like '/t/%'"
LIKE_CONTEXT_PATH = "like '/t/{{tenantDomain}}/%'"
STRING_NOT_CONTAIN_CONTEXT = "NOT(str:contains(CONTEXT,'/t/'))"
STRING_CONTAIN_CONTEXT = "(str:contains(CONTEXT,'/t/{{tenantDomain}}'))"

CONTEXT_CONDITION_KEY = "{{contextCondition}}"
CONTEXT_CONTAINS_CONDITION_KEY = "{{contextContainsCondition}}"
TENANT_DOMAIN_KEY = "{{tenantDomain}}"
TENANT_ID_KEY = "{{tenantId}}"

RESERVED_PLACEHOLDERS = frozenset(
    {CONTEXT_CONDITION_KEY, CONTEXT_CONTAINS_CONDITION_KEY, TENANT_DOMAIN_KEY, TENANT_ID_KEY}
)


# ── Configuration schemas ───────────────────────────────────────────────
# Trusted side: provider_config["configs"]["config"]["queryData"]


class _DataProviderConfig(BaseModel):
    query_data: dict[str, Any] = Field(alias="queryData")


class _MainConfig(BaseModel):
    config: _DataProviderConfig


class TrustedProviderConfig(BaseModel):
    configs: _MainConfig

    @property
    def queries(self) -> dict[str, Any]:
        return self.configs.config.query_data


# Client side: query_configuration["queryData"]


class _ClientQueryData(BaseModel):
    # Numeric query names ("queryName": 5) are looked up by their text
    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    query_name: str = Field(alias="queryName")
    query_values: dict[str, Any] | None = Field(default=None, alias="queryValues")


class ClientQueryConfiguration(BaseModel):
    model_config = ConfigDict(extra="allow")

    query_data: _ClientQueryData = Field(alias="queryData")


@dataclass(frozen=True)
class TenantContext:
    domain: str
    id: str


def tenant_domain_of(username: str) -> str:
    """``admin@acme.com`` -> ``acme.com``; a name without ``@`` is its own domain."""
    return username.split("@")[-1]


def _fail(kind: ErrorKind, message: str) -> DataProviderError:
    logger.error("query_assembly_failed", kind=kind.value, error=message)
    return DataProviderError(kind=kind, message=message)


def _render_value(value: Any) -> str | None:
    """JSON scalar -> replacement text; None for null/object/array."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class QueryAssembler:
    """Rewrites the client's data provider configuration with the final query."""

    def __init__(self, tenant_resolver: AdminTenantResolver):
        self._tenant_resolver = tenant_resolver

    async def assemble(
        self,
        username: str,
        request: SubscriptionRequest,
        trusted_config: dict[str, Any] | None,
    ) -> None:
        """Resolve the template chosen by the client and attach it to ``request``.

        Mutates ``request.query_configuration["queryData"]["query"]``.

        Raises:
            DataProviderError: VALIDATION for a malformed client configuration,
                DATA_INTEGRITY for a widget configuration without the requested
                query, or any tenant resolver error.
        """
        tenant_domain = tenant_domain_of(username)

        queries = self._trusted_queries(trusted_config)
        client_query = self._client_query_data(request)

        query_name = client_query.query_name
        template = queries.get(query_name) if query_name else None
        if not isinstance(template, str):
            raise _fail(
                ErrorKind.DATA_INTEGRITY,
                "Cannot find the query in the widget configuration.",
            )

        query = self._substitute_values(template, client_query.query_values)

        if tenant_domain:
            tenant_id = await self._tenant_resolver.resolve_tenant_id(username)
            query = apply_tenant_isolation(
                query, TenantContext(domain=tenant_domain, id=tenant_id)
            )

        assert request.query_configuration is not None
        request.query_configuration[QUERY_DATA][QUERY_PROPERTY_NAME] = query
        logger.debug("query_assembled", query_name=query_name, tenant_domain=tenant_domain)

    def _trusted_queries(self, trusted_config: dict[str, Any] | None) -> dict[str, Any]:
        try:
            return TrustedProviderConfig.model_validate(trusted_config).queries
        except ValidationError as e:
            error = _fail(
                ErrorKind.DATA_INTEGRITY,
                "Cannot find the query data in the widget configuration.",
            )
            raise error from e

    def _client_query_data(self, request: SubscriptionRequest) -> _ClientQueryData:
        try:
            parsed = ClientQueryConfiguration.model_validate(request.query_configuration)
        except ValidationError as e:
            raise _fail(ErrorKind.VALIDATION, _describe_client_error(e)) from e
        return parsed.query_data

    def _substitute_values(self, query: str, values: dict[str, Any] | None) -> str:
        if not values:
            return query
        for key, value in values.items():
            token = placeholder_token(key)
            if any(reserved in token for reserved in RESERVED_PLACEHOLDERS):
                raise _fail(
                    ErrorKind.VALIDATION,
                    f"Query value key {key} is reserved for tenant isolation.",
                )
            if not _is_simple_placeholder(token):
                raise _fail(
                    ErrorKind.VALIDATION,
                    f"Query value key {key} is not a valid placeholder name.",
                )
            replacement = _render_value(value)
            if replacement is None:
                raise _fail(
                    ErrorKind.VALIDATION,
                    f"Cannot find the replaceable value for {key}.",
                )
            query = query.replace(token, replacement)
        return query


def placeholder_token(key: str) -> str:
    """``v`` -> ``{{v}}``; keys already written as ``{{v}}`` are used verbatim."""
    if key.startswith("{{") and key.endswith("}}"):
        return key
    return "{{" + key + "}}"


def apply_tenant_isolation(query: str, tenant: TenantContext) -> str:
    """Fill the four tenant placeholders for ``tenant``.

    The super tenant sees everything outside ``/t/``; any other tenant only
    sees its own ``/t/<domain>`` context.
    """
    if tenant.domain.casefold() == SUPER_TENANT_DOMAIN:
        context_path = NOT_LIKE_CONTEXT_PATH
        context_contains_condition = STRING_NOT_CONTAIN_CONTEXT
    else:
        context_path = LIKE_CONTEXT_PATH
        context_contains_condition = STRING_CONTAIN_CONTEXT

    return (
        query.replace(CONTEXT_CONDITION_KEY, context_path)
        .replace(CONTEXT_CONTAINS_CONDITION_KEY, context_contains_condition)
        .replace(TENANT_DOMAIN_KEY, tenant.domain)
        .replace(TENANT_ID_KEY, tenant.id)
    )


def _is_simple_placeholder(token: str) -> bool:
    """``{{name}}`` where ``name`` holds no brace, so a token never spans two placeholders."""
    name = token[2:-2]
    return bool(name) and "{" not in name and "}" not in name


def _describe_client_error(exc: ValidationError) -> str:
    """Name the client field that failed, defaulting to the query name."""
    for error in exc.errors():
        if error["loc"][:2] == (QUERY_DATA, "queryValues"):
            return "Query Values in the data provider configuration must be an object."
    return "Query Name cannot be found in the data provider configuration root."
