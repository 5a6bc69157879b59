"""
Immutable per-run context.

Everything the reconciliation engine needs that is fixed for the whole
run: active scope codes, the mapping table, the metafield keys selected on
the credential and the attribute snapshot.
"""

from dataclasses import dataclass
from typing import Optional
import structlog

from config import settings
from models.connector import ImportMapping, ShopifyCredential
from models.import_batch import ImportJob
from services.attribute_cache import AttributeMetadataCache
from exceptions import ConfigurationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RunContext:
    """Read-only state shared by every component of one run."""
    import_run_id: str
    locale: str
    channel: str
    currency: str
    family_id: str
    mapping: ImportMapping
    attributes: AttributeMetadataCache
    metafield_keys: tuple[str, ...] = ()


def resolve_credential_id(job: ImportJob) -> Optional[str]:
    """Credential named by the job, falling back to the configured default."""
    return job.filters.credentials or settings.import_credentials_id


def check_credential(credential: Optional[ShopifyCredential], credential_id: Optional[str]) -> ShopifyCredential:
    """
    Reject missing or disabled credentials.

    Raises:
        ConfigurationError: If the credential cannot be used
    """
    if credential is None:
        raise ConfigurationError(
            "Shopify credentials not found",
            details={"credentials": credential_id}
        )
    if not credential.active:
        raise ConfigurationError(
            "Disabled Shopify credentials",
            details={"credentials": credential.id}
        )
    return credential


def build_run_context(
    job: ImportJob,
    credential: Optional[ShopifyCredential],
    mapping: ImportMapping,
    attributes: AttributeMetadataCache
) -> RunContext:
    """
    Validate the job configuration and freeze it.

    Args:
        job: Import job (filters may leave scope codes to the defaults)
        credential: Credential named by the job
        mapping: Connector attribute mapping
        attributes: Loaded attribute snapshot

    Returns:
        RunContext

    Raises:
        ConfigurationError: Disabled/missing credential, missing scope codes
            or no family mapping
    """
    credential = check_credential(credential, resolve_credential_id(job))

    filters = job.filters
    locale = filters.locale or settings.import_locale
    channel = filters.channel or settings.import_channel
    currency = filters.currency or settings.import_currency

    missing = [
        name for name, value in (("locale", locale), ("channel", channel), ("currency", currency))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            "Import scope is incomplete",
            details={"missing": missing}
        )

    if not mapping.family_variant:
        raise ConfigurationError(
            "No attribute family mapped for imported products",
            details={"setting": "family_variant"}
        )

    context = RunContext(
        import_run_id=job.id,
        locale=locale,
        channel=channel,
        currency=currency,
        family_id=mapping.family_variant,
        mapping=mapping,
        attributes=attributes,
        metafield_keys=credential.metafield_keys,
    )
    logger.info(
        "run_context_built",
        job_id=job.id,
        locale=locale,
        channel=channel,
        currency=currency,
        family_id=context.family_id,
        metafield_keys=len(context.metafield_keys)
    )
    return context
