"""
Business logic services for the account intelligence core.

Modules:
- pace_tracker: ARPDD ordering-cadence metrics and pace risk
- health_scorer: Revenue health scores and append-only snapshots
- opportunity_detector: Unpurchased-product ranking from tenant-wide demand
- sample_manager: Sample ledger, monthly allowance and tasting feedback
- tenant_config: Per-tenant threshold overrides
- metrics_service: Tenant dashboards, account insights and alerts

Example usage:
    from account_intelligence.services import calculate_dashboard_metrics

    metrics = await calculate_dashboard_metrics(repo, tenant_id)
"""

# =============================================================================
# Pace
# =============================================================================

from account_intelligence.services.pace_tracker import (
    calculate_interval_days,
    calculate_arpdd,
    classify_pace,
    compute_pace_metric,
    calculate_account_pace,
)

# =============================================================================
# Health
# =============================================================================

from account_intelligence.services.health_scorer import (
    group_monthly_revenue,
    calculate_percentage_change,
    classify_health,
    compute_health_score,
    calculate_account_health,
    build_health_snapshot,
    save_health_snapshot,
)

# =============================================================================
# Opportunities
# =============================================================================

from account_intelligence.services.opportunity_detector import (
    build_demand_index,
    purchased_product_ids,
    rank_opportunities,
    detect_customer_opportunities,
    detect_tenant_opportunities,
    summarize_opportunities,
    get_opportunity_summary,
)

# =============================================================================
# Samples
# =============================================================================

from account_intelligence.services.sample_manager import (
    compute_sample_allowance,
    get_rep_sample_allowance,
    record_sample_transfer,
    record_tasting_feedback,
    get_pending_feedback,
)

# =============================================================================
# Tenant Configuration
# =============================================================================

from account_intelligence.services.tenant_config import (
    get_tenant_intelligence_config,
    update_tenant_intelligence_config,
)

# =============================================================================
# Orchestration
# =============================================================================

from account_intelligence.services.metrics_service import (
    calculate_tenant_pace,
    calculate_tenant_health,
    calculate_dashboard_metrics,
    calculate_account_insights,
    build_actionable_alerts,
    get_actionable_alerts,
)

__all__ = [
    # Pace
    'calculate_interval_days',
    'calculate_arpdd',
    'classify_pace',
    'compute_pace_metric',
    'calculate_account_pace',
    # Health
    'group_monthly_revenue',
    'calculate_percentage_change',
    'classify_health',
    'compute_health_score',
    'calculate_account_health',
    'build_health_snapshot',
    'save_health_snapshot',
    # Opportunities
    'build_demand_index',
    'purchased_product_ids',
    'rank_opportunities',
    'detect_customer_opportunities',
    'detect_tenant_opportunities',
    'summarize_opportunities',
    'get_opportunity_summary',
    # Samples
    'compute_sample_allowance',
    'get_rep_sample_allowance',
    'record_sample_transfer',
    'record_tasting_feedback',
    'get_pending_feedback',
    # Tenant configuration
    'get_tenant_intelligence_config',
    'update_tenant_intelligence_config',
    # Orchestration
    'calculate_tenant_pace',
    'calculate_tenant_health',
    'calculate_dashboard_metrics',
    'calculate_account_insights',
    'build_actionable_alerts',
    'get_actionable_alerts',
]
