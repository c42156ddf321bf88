"""Remote tenant resolver. Asks the admin service which tenant owns a user.

The admin service base URL and credentials come from the ``auth.configs``
deployment section and are re-read on every call. Nothing is cached: a
stale tenant id would be a cross-tenant data leak.

Outcome classification:
- 200 + {"tenantId": ...}  -> tenant id (empty id is an error)
- 401                      -> REMOTE_UNAUTHORIZED
- any other status         -> REMOTE_ERROR
- transport failure        -> REMOTE_UNREACHABLE (caller may retry)
- undecodable body         -> REMOTE_DECODE
"""

import time
from collections.abc import Callable

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dashgate.core.config import settings
from dashgate.core.config_provider import ConfigProvider
from dashgate.core.errors import ConfigurationError, DataProviderError, ErrorKind
from dashgate.core.metrics import tenant_lookup_duration_seconds, tenant_lookups_total

logger = structlog.stdlib.get_logger(__name__)

AUTH_CONFIGS_HEADER = "auth.configs"
AUTH_CONFIGS_PROPERTIES_HEADER = "properties"
TENANT_ID_PATH = "tenantId"


class AdminAuthConfig(BaseModel):
    """Validated ``auth.configs.properties`` block."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    admin_service_base_url: str = Field(alias="adminServiceBaseUrl", min_length=1)
    admin_username: str = Field(alias="adminUsername", min_length=1)
    admin_password: str = Field(alias="adminPassword", min_length=1)


class TenantIdInfo(BaseModel):
    tenant_id: str | int | None = Field(alias="tenantId")


ClientFactory = Callable[[AdminAuthConfig], httpx.AsyncClient]


def default_client_factory(auth_config: AdminAuthConfig) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=auth_config.admin_service_base_url,
        auth=httpx.BasicAuth(auth_config.admin_username, auth_config.admin_password),
        timeout=settings.admin_service.admin_service_timeout,
        verify=settings.admin_service.admin_service_verify_tls,
    )


def _fail(kind: ErrorKind, message: str) -> DataProviderError:
    logger.error("tenant_lookup_failed", kind=kind.value, error=message)
    return DataProviderError(kind=kind, message=message)


class AdminTenantResolver:
    """Resolves tenant ids through the admin REST API."""

    def __init__(
        self,
        config_provider: ConfigProvider,
        client_factory: ClientFactory = default_client_factory,
    ):
        self._config_provider = config_provider
        self._client_factory = client_factory

    def load_auth_config(self) -> AdminAuthConfig:
        """Read and validate the admin credentials. Raises CONFIGURATION errors."""
        try:
            auth_configs = self._config_provider.get_configuration_object(
                AUTH_CONFIGS_HEADER
            )
        except ConfigurationError as e:
            error = _fail(
                ErrorKind.CONFIGURATION,
                f"Error occurred while getting the {AUTH_CONFIGS_HEADER} "
                "configuration from the deployment configuration.",
            )
            raise error from e

        if auth_configs is None:
            raise _fail(
                ErrorKind.CONFIGURATION,
                f"Cannot find {AUTH_CONFIGS_HEADER} in the deployment configuration.",
            )
        if AUTH_CONFIGS_PROPERTIES_HEADER not in auth_configs:
            raise _fail(
                ErrorKind.CONFIGURATION,
                f"Cannot find {AUTH_CONFIGS_PROPERTIES_HEADER} header under the "
                f"{AUTH_CONFIGS_HEADER} in the deployment configuration.",
            )
        properties = auth_configs[AUTH_CONFIGS_PROPERTIES_HEADER]
        if not properties:
            raise _fail(
                ErrorKind.CONFIGURATION,
                f"{AUTH_CONFIGS_PROPERTIES_HEADER} header under {AUTH_CONFIGS_HEADER} "
                "in the deployment configuration cannot be empty",
            )

        try:
            return AdminAuthConfig.model_validate(properties)
        except ValidationError as e:
            raise _fail(ErrorKind.CONFIGURATION, _describe_config_error(e)) from e

    async def resolve_tenant_id(self, username: str) -> str:
        auth_config = self.load_auth_config()

        start = time.monotonic()
        try:
            async with self._client_factory(auth_config) as client:
                response = await client.get(
                    TENANT_ID_PATH, params={"username": username}
                )
        except httpx.TransportError as e:
            tenant_lookups_total.labels(status="unreachable").inc()
            error = _fail(
                ErrorKind.REMOTE_UNREACHABLE, "Unable to reach the admin rest api."
            )
            raise error from e
        finally:
            tenant_lookup_duration_seconds.observe(time.monotonic() - start)

        tenant_lookups_total.labels(status=str(response.status_code)).inc()
        if response.status_code == 401:
            raise _fail(
                ErrorKind.REMOTE_UNAUTHORIZED,
                "Unauthorized to get response from admin rest api. "
                f"Status Code: {response.status_code}",
            )
        if response.status_code != 200:
            raise _fail(
                ErrorKind.REMOTE_ERROR,
                "Unknown Error occurred while getting response from admin rest api. "
                f"Status Code: {response.status_code}",
            )

        try:
            info = TenantIdInfo.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            error = _fail(
                ErrorKind.REMOTE_DECODE,
                "Error occurred while parsing the admin rest api response.",
            )
            raise error from e

        tenant_id = "" if info.tenant_id is None else str(info.tenant_id)
        if not tenant_id:
            raise _fail(ErrorKind.REMOTE_ERROR, "Tenant Id cannot be found.")
        logger.debug("tenant_id_resolved", username=username, tenant_id=tenant_id)
        return tenant_id


def _describe_config_error(exc: ValidationError) -> str:
    """Turn the first schema violation into an actionable message naming the key."""
    first = exc.errors()[0]
    key = str(first["loc"][0]) if first["loc"] else AUTH_CONFIGS_PROPERTIES_HEADER
    if first["type"] == "missing":
        return (
            f"Cannot find property {key} under {AUTH_CONFIGS_HEADER} in the "
            "deployment configuration."
        )
    return (
        f"Value of the property '{key}' cannot be empty. Please define the value for "
        f"the property under {AUTH_CONFIGS_HEADER} in the deployment configuration."
    )
