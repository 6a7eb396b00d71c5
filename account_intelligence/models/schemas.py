"""
Pydantic models for the account intelligence core.

This module provides type-safe validation and serialization for:
- Source records read through the repository (accounts, delivered orders,
  order lines, catalog products, sales reps)
- Tenant-scoped configuration (pace, health, opportunity, sample thresholds)
  bundled into TenantIntelligenceConfig
- Computed value objects (PaceMetric, HealthScore, Opportunity,
  SampleAllowance) and the orchestrator outputs (DashboardMetrics,
  AccountInsights, ActionableAlerts)
- Append-only records (HealthSnapshot, SampleTransfer, TastingFeedback)

Field names use camelCase to match the portal's JSON contracts.
All models use Pydantic v2 syntax.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from account_intelligence.models.enums import (
    ActionItemType,
    AlertType,
    CustomerInterest,
    HealthRiskLevel,
    PaceRiskLevel,
    PaceStatus,
    RankingMetric,
    RevenueHealthStatus,
)


# =============================================================================
# Source Records (read through the repository)
# =============================================================================


class Account(BaseModel):
    """A B2B customer account scoped to one tenant."""
    id: str = Field(..., min_length=1)
    tenantId: str = Field(..., min_length=1)
    name: str = Field(..., description="Display name (customers.companyName)")
    isActive: bool = True


class OrderLine(BaseModel):
    """A single line of a delivered order."""
    productId: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=0)
    revenue: float = Field(..., ge=0.0, description="Line subtotal")
    isSample: bool = False


class DeliveredOrder(BaseModel):
    """
    An order whose delivery has been confirmed.

    Only delivered orders count toward pace, health and opportunity
    calculations. Immutable from this core's point of view.
    """
    id: str
    accountId: str
    deliveredAt: datetime
    lines: List[OrderLine] = Field(default_factory=list)

    @property
    def revenue(self) -> float:
        return sum(line.revenue for line in self.lines)


class TenantOrderLine(BaseModel):
    """
    A delivered order line flattened across the whole tenant.

    Used to build the tenant-wide product demand index once per batch
    instead of joining the catalog against order history per account.
    """
    accountId: str
    productId: str
    quantity: int = Field(..., ge=0)
    revenue: float = Field(..., ge=0.0)
    deliveredAt: datetime


class Product(BaseModel):
    """A catalog product. isActive=False marks a discontinued product."""
    id: str
    name: str
    category: Optional[str] = None
    supplierName: Optional[str] = None
    isActive: bool = True


class SalesRep(BaseModel):
    """An internal sales rep or sales manager who pulls samples."""
    id: str
    tenantId: str
    name: str


# =============================================================================
# Tenant Configuration
# =============================================================================


class PaceConfig(BaseModel):
    """Thresholds for ordering-cadence (ARPDD) tracking."""
    model_config = ConfigDict(frozen=True)

    minimumOrdersRequired: int = Field(default=3, ge=1)
    lookbackDays: int = Field(default=180, ge=1)
    warningThresholdMultiplier: float = Field(default=1.2, gt=0.0)
    criticalThresholdMultiplier: float = Field(default=1.5, gt=0.0)


class HealthConfig(BaseModel):
    """Thresholds for revenue-health scoring."""
    model_config = ConfigDict(frozen=True)

    minimumMonthsRequired: int = Field(default=3, ge=1)
    lookbackMonths: int = Field(default=6, ge=1)
    warningThresholdPercent: float = -10.0
    criticalThresholdPercent: float = -15.0
    excludeCurrentMonth: bool = True


class OpportunityConfig(BaseModel):
    """Window and cut-offs for unpurchased-product ranking."""
    model_config = ConfigDict(frozen=True)

    lookbackDays: int = Field(default=180, ge=1)
    topN: int = Field(default=20, ge=1)
    excludeDiscontinued: bool = True
    minimumCustomerThreshold: int = Field(default=3, ge=0)


class SampleConfig(BaseModel):
    """Monthly sample allowance and tasting feedback rules."""
    model_config = ConfigDict(frozen=True)

    defaultMonthlyAllowance: int = Field(default=60, ge=0)
    requireManagerApprovalOver: int = Field(default=60, ge=0)
    trackTastingFeedback: bool = True
    minimumFeedbackDays: int = Field(default=14, ge=0)


class TenantIntelligenceConfig(BaseModel):
    """
    All tenant-scoped thresholds, loaded once per computation.

    Every service function receives the section it needs explicitly;
    nothing reads thresholds from module-level state.
    """
    model_config = ConfigDict(frozen=True)

    pace: PaceConfig = Field(default_factory=PaceConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    opportunity: OpportunityConfig = Field(default_factory=OpportunityConfig)
    sample: SampleConfig = Field(default_factory=SampleConfig)


# =============================================================================
# Pace
# =============================================================================


class PaceMetric(BaseModel):
    """
    Ordering-cadence metric for one account.

    daysSinceLastOrder is -1 when the account has no delivered order in the
    lookback window. That value is a sentinel, not a day count.
    """
    accountId: str
    accountName: str
    arpdd: Optional[float] = Field(default=None, description="Mean days between consecutive deliveries")
    daysSinceLastOrder: int
    lastOrderDate: Optional[datetime] = None
    orderCount: int = Field(..., ge=0)
    isPastDue: bool
    riskLevel: PaceRiskLevel
    nextExpectedOrderDate: Optional[datetime] = None
    calculatedAt: datetime


# =============================================================================
# Health
# =============================================================================


class MonthlyRevenue(BaseModel):
    """Delivered revenue for one calendar month."""
    year: int
    month: int = Field(..., ge=1, le=12)
    revenue: float = 0.0
    orderCount: int = 0


class HealthScore(BaseModel):
    """
    Revenue-health score for one account.

    percentageChange is 0 when the baseline is 0. That is a divide-by-zero
    guard, not evidence of stable revenue.
    """
    accountId: str
    accountName: str
    currentMonthRevenue: float
    baselineAverage: float
    percentageChange: float
    isAtRisk: bool
    riskLevel: HealthRiskLevel
    monthlyRevenues: List[MonthlyRevenue] = Field(default_factory=list)
    calculatedAt: datetime


class HealthSnapshot(BaseModel):
    """An immutable, append-only row of account_health_snapshots."""
    id: str
    tenantId: str
    accountId: str
    snapshotDate: datetime
    revenueHealthStatus: RevenueHealthStatus
    currentMonthRevenue: float
    averageMonthRevenue: float
    revenueDropPercent: float
    paceStatus: PaceStatus
    establishedPaceDays: Optional[float] = None
    daysSinceLastOrder: Optional[int] = None
    monthlyRevenues: List[MonthlyRevenue] = Field(default_factory=list)


# =============================================================================
# Opportunities
# =============================================================================


class ProductDemand(BaseModel):
    """Tenant-wide purchase aggregates for one product in the lookback window."""
    productId: str
    totalRevenue: float = 0.0
    totalUnits: int = 0
    customersPurchased: int = 0
    penetrationPercent: float = 0.0


class Opportunity(BaseModel):
    """A catalog product the account has not bought recently, ranked by demand."""
    productId: str
    productName: str
    productCategory: Optional[str] = None
    supplierName: Optional[str] = None
    rankingMetric: RankingMetric
    metricValue: float
    rank: int = Field(..., ge=1)
    totalRevenue: float
    totalUnits: int
    customersPurchased: int
    penetrationPercent: float


class OpportunitySummary(BaseModel):
    """Opportunity counts by category and supplier for one account."""
    totalOpportunities: int
    byCategory: Dict[str, int] = Field(default_factory=dict)
    bySupplier: Dict[str, int] = Field(default_factory=dict)
    topOpportunity: Optional[Opportunity] = None


# =============================================================================
# Samples
# =============================================================================


class SampleTransferCreate(BaseModel):
    """
    Request to record one physical sample pull.

    Example:
        {
            "tenantId": "t1",
            "salesRepId": "rep-7",
            "accountId": "acct-42",
            "productId": "prod-cab-2021",
            "quantity": 1,
            "purposeNotes": "Tasting with new buyer"
        }
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    tenantId: str = Field(..., min_length=1)
    salesRepId: str = Field(..., min_length=1)
    accountId: str = Field(..., min_length=1)
    productId: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)
    transferDate: Optional[datetime] = None
    purposeNotes: Optional[str] = None
    approvedByManagerId: Optional[str] = None
    followUpActivityId: Optional[str] = None


class SampleTransfer(BaseModel):
    """A sample_transfers ledger row. One row per physical sample pull."""
    id: str
    tenantId: str
    salesRepId: str
    accountId: str
    productId: str
    quantity: int = Field(..., ge=1)
    transferDate: datetime
    purposeNotes: Optional[str] = None
    approvedByManagerId: Optional[str] = None
    followUpActivityId: Optional[str] = None


class TastingFeedbackCreate(BaseModel):
    """Request to capture tasting feedback for a sample transfer."""
    model_config = ConfigDict(str_strip_whitespace=True)

    sampleTransferId: str = Field(..., min_length=1)
    accountId: str = Field(..., min_length=1)
    productId: str = Field(..., min_length=1)
    feedbackDate: Optional[datetime] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    customerInterest: CustomerInterest
    orderPlaced: bool = False
    orderAmount: Optional[float] = Field(default=None, ge=0.0)
    notes: Optional[str] = None
    followUpRequired: bool = False


class TastingFeedback(BaseModel):
    """A tasting_feedback row keyed to its sample transfer."""
    id: str
    tenantId: str
    sampleTransferId: str
    accountId: str
    productId: str
    feedbackDate: datetime
    rating: Optional[int] = None
    customerInterest: CustomerInterest
    orderPlaced: bool
    orderAmount: Optional[float] = None
    notes: Optional[str] = None
    followUpRequired: bool


class SampleAllowance(BaseModel):
    """A rep's sample usage for one calendar month."""
    tenantId: str
    salesRepId: str
    salesRepName: str
    year: int
    month: int = Field(..., ge=1, le=12)
    allowance: int
    pullsThisMonth: int
    remainingAllowance: int = Field(..., ge=0)
    isOverAllowance: bool
    transfersThisMonth: List[SampleTransfer] = Field(default_factory=list)


# =============================================================================
# Orchestrator Outputs
# =============================================================================


class PaceSection(BaseModel):
    atRiskCount: int
    criticalCount: int
    warningCount: int
    accounts: List[PaceMetric] = Field(default_factory=list)


class HealthSection(BaseModel):
    atRiskCount: int
    criticalCount: int
    warningCount: int
    accounts: List[HealthScore] = Field(default_factory=list)


class SampleSection(BaseModel):
    totalPullsThisMonth: int
    repsOverAllowance: int
    pendingFeedbackCount: int
    allowances: List[SampleAllowance] = Field(default_factory=list)


class OpportunitySection(BaseModel):
    totalCustomersAnalyzed: int
    averageOpportunitiesPerCustomer: float
    topOpportunities: List[Opportunity] = Field(default_factory=list)


class DashboardMetrics(BaseModel):
    """Tenant-wide dashboard summary."""
    tenantId: str
    pace: PaceSection
    health: HealthSection
    samples: SampleSection
    opportunities: OpportunitySection
    calculatedAt: datetime


class AccountInsights(BaseModel):
    """Single-account insight bundle."""
    accountId: str
    accountName: str
    pace: PaceMetric
    health: HealthScore
    opportunities: List[Opportunity] = Field(default_factory=list)
    opportunitySummary: OpportunitySummary
    calculatedAt: datetime


class Alert(BaseModel):
    """A prioritized alert. accountId is None for rep-level alerts."""
    type: AlertType
    message: str
    priority: int = Field(..., ge=1)
    accountId: Optional[str] = None
    salesRepId: Optional[str] = None


class ActionItem(BaseModel):
    """A suggested follow-up for a sales rep or manager."""
    type: ActionItemType
    message: str
    accountId: Optional[str] = None
    dueDate: Optional[datetime] = None


class ActionableAlerts(BaseModel):
    """
    Alerts derived from dashboard metrics.

    alerts holds every alert ordered by priority; criticalAlerts and
    warningAlerts partition the same list.
    """
    alerts: List[Alert] = Field(default_factory=list)
    criticalAlerts: List[Alert] = Field(default_factory=list)
    warningAlerts: List[Alert] = Field(default_factory=list)
    actionItems: List[ActionItem] = Field(default_factory=list)
    calculatedAt: datetime
