"""
Tenant-scoped intelligence thresholds.

Each tenant may store partial overrides, for example
``{"pace": {"warningThresholdMultiplier": 1.3}}``. Missing sections and
fields fall back to the defaults on PaceConfig, HealthConfig,
OpportunityConfig and SampleConfig.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from account_intelligence.core.repository import IntelligenceRepository
from account_intelligence.models.schemas import TenantIntelligenceConfig

logger = logging.getLogger(__name__)

CONFIG_SECTIONS = ("pace", "health", "opportunity", "sample")


def merge_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override sections field by field; unknown sections are ignored.

    A base section that is not a mapping is discarded. An override section
    that is not a mapping replaces the base section unchanged, so that
    validating the merged result reports it as a ValidationError.
    """
    merged: Dict[str, Any] = {}
    for section in CONFIG_SECTIONS:
        current = base.get(section)
        merged[section] = dict(current) if isinstance(current, dict) else {}

        values = overrides.get(section)
        if values is None:
            continue
        if isinstance(values, dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


async def get_tenant_intelligence_config(
    repo: IntelligenceRepository,
    tenant_id: str,
) -> TenantIntelligenceConfig:
    """
    Load the tenant's thresholds, falling back to defaults.

    A tenant without stored overrides gets the defaults. Stored overrides
    that no longer validate are logged and ignored rather than failing every
    computation for that tenant. Repository failures still propagate.
    """
    overrides = await repo.get_tenant_config(tenant_id)
    if overrides and not isinstance(overrides, dict):
        logger.warning(f"Stored intelligence config for tenant {tenant_id} is not an object, using defaults")
        return TenantIntelligenceConfig()
    if not overrides:
        logger.debug(f"No intelligence config stored for tenant {tenant_id}, using defaults")
        return TenantIntelligenceConfig()

    try:
        return TenantIntelligenceConfig.model_validate(merge_overrides({}, overrides))
    except ValidationError as e:
        logger.warning(f"Invalid intelligence config for tenant {tenant_id}, using defaults: {e}")
        return TenantIntelligenceConfig()


async def update_tenant_intelligence_config(
    repo: IntelligenceRepository,
    tenant_id: str,
    overrides: Dict[str, Any],
) -> TenantIntelligenceConfig:
    """
    Merge new overrides into the stored ones and persist them.

    Raises:
        pydantic.ValidationError: If the merged overrides are invalid.
            Nothing is written in that case.
    """
    existing = await repo.get_tenant_config(tenant_id)
    if not isinstance(existing, dict):
        existing = {}
    merged = merge_overrides(existing, overrides)

    config = TenantIntelligenceConfig.model_validate(merged)

    await repo.save_tenant_config(
        tenant_id,
        {section: values for section, values in merged.items() if values},
    )
    logger.info(f"Updated intelligence config for tenant {tenant_id}")
    return config
