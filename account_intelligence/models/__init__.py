"""
Package initialization file for account intelligence models.

Re-exports every enumeration and pydantic schema so other modules can write:

    from account_intelligence.models import PaceMetric, PaceRiskLevel, TenantIntelligenceConfig
"""

# =============================================================================
# Enums
# =============================================================================

from account_intelligence.models.enums import (
    PaceRiskLevel,
    HealthRiskLevel,
    RankingMetric,
    RevenueHealthStatus,
    PaceStatus,
    CustomerInterest,
    AlertType,
    ActionItemType,
    PACE_RISK_ORDER,
    HEALTH_RISK_ORDER,
    ALERT_PRIORITY,
)

# =============================================================================
# Schemas
# =============================================================================

from account_intelligence.models.schemas import (
    # Source records
    Account,
    OrderLine,
    DeliveredOrder,
    TenantOrderLine,
    Product,
    SalesRep,
    # Tenant configuration
    PaceConfig,
    HealthConfig,
    OpportunityConfig,
    SampleConfig,
    TenantIntelligenceConfig,
    # Computed value objects
    PaceMetric,
    MonthlyRevenue,
    HealthScore,
    HealthSnapshot,
    ProductDemand,
    Opportunity,
    OpportunitySummary,
    # Sample ledger
    SampleTransferCreate,
    SampleTransfer,
    TastingFeedbackCreate,
    TastingFeedback,
    SampleAllowance,
    # Orchestrator outputs
    PaceSection,
    HealthSection,
    SampleSection,
    OpportunitySection,
    DashboardMetrics,
    AccountInsights,
    Alert,
    ActionItem,
    ActionableAlerts,
)


__all__ = [
    # Enums
    'PaceRiskLevel',
    'HealthRiskLevel',
    'RankingMetric',
    'RevenueHealthStatus',
    'PaceStatus',
    'CustomerInterest',
    'AlertType',
    'ActionItemType',
    'PACE_RISK_ORDER',
    'HEALTH_RISK_ORDER',
    'ALERT_PRIORITY',
    # Source records
    'Account',
    'OrderLine',
    'DeliveredOrder',
    'TenantOrderLine',
    'Product',
    'SalesRep',
    # Tenant configuration
    'PaceConfig',
    'HealthConfig',
    'OpportunityConfig',
    'SampleConfig',
    'TenantIntelligenceConfig',
    # Computed value objects
    'PaceMetric',
    'MonthlyRevenue',
    'HealthScore',
    'HealthSnapshot',
    'ProductDemand',
    'Opportunity',
    'OpportunitySummary',
    # Sample ledger
    'SampleTransferCreate',
    'SampleTransfer',
    'TastingFeedbackCreate',
    'TastingFeedback',
    'SampleAllowance',
    # Orchestrator outputs
    'PaceSection',
    'HealthSection',
    'SampleSection',
    'OpportunitySection',
    'DashboardMetrics',
    'AccountInsights',
    'Alert',
    'ActionItem',
    'ActionableAlerts',
]
