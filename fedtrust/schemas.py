"""
Pydantic data models for the fedtrust scoring engine.

Defines all core data structures: Events, Instance Facts, Rule Patterns,
Policy Analysis, Network Health, Metadata Maturity and the Composite Score.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Literal, Optional, Dict, Any, List, Tuple
from datetime import datetime
from enum import Enum


# ==================== Event System ====================

class EventLevel(str, Enum):
    """Windows Event Viewer style event levels"""
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


class EventCategory(str, Enum):
    """Event category taxonomy"""
    SCORING = "Scoring"
    POLICY = "Policy"
    SYSTEM = "System"


class Event(BaseModel):
    """
    Windows Event Viewer style event.

    Maps to SIEM index fields for Splunk/Sentinel integration.
    """
    event_id: int  # FTS-1001 to FTS-4003
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    level: EventLevel
    category: EventCategory
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    domain: Optional[str] = None

    def to_jsonl(self) -> str:
        """Serialize to JSONL format for logging"""
        return self.model_dump_json()


# ==================== Inputs ====================

class Severity(str, Enum):
    """Severity attached to an external blocklist entry"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class ModerationRule(BaseModel):
    """One published moderation rule"""
    id: str
    text: str


class BlocklistMatch(BaseModel):
    """The instance appears on an external blocklist"""
    list_name: str
    severity: Severity
    reason: Optional[str] = None


class InstanceMetadata(BaseModel):
    """
    Profile metadata consumed by the maturity evaluator.

    Every field is optional; None means "not published" and is scored
    neutrally. Build from raw NodeInfo/security.txt payloads with
    from_nodeinfo() so presence is checked once, at ingestion.
    """
    model_config = ConfigDict(frozen=True)

    has_node_info: bool = False
    user_count: Optional[int] = Field(default=None, ge=0)
    active_month_users: Optional[int] = Field(default=None, ge=0)
    age_days: Optional[int] = Field(default=None, ge=0)
    open_registrations: Optional[bool] = None
    approval_required: Optional[bool] = None
    has_contact: bool = False
    has_privacy_policy: bool = False
    has_terms: bool = False
    has_security_txt: bool = False
    security_contacts: Tuple[str, ...] = ()
    metadata_field_count: int = Field(default=0, ge=0)
    description: Optional[str] = None

    @classmethod
    def from_nodeinfo(
        cls,
        node_info: Optional[Dict[str, Any]] = None,
        security_txt: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
        now: Optional[datetime] = None
    ) -> "InstanceMetadata":
        """
        Build the record from loosely-typed NodeInfo and security.txt blobs.

        Args:
            node_info: Parsed NodeInfo document (or None if not fetched)
            security_txt: Parsed security.txt fields (or None if absent)
            created_at: Instance creation date from a directory, if known
            now: Reference time for age calculation (defaults to utcnow)

        Returns:
            InstanceMetadata with explicit presence flags
        """
        fields: Dict[str, Any] = {}

        if isinstance(node_info, dict):
            fields["has_node_info"] = True

            usage = node_info.get("usage")
            users = usage.get("users") if isinstance(usage, dict) else None
            if isinstance(users, dict):
                total = users.get("total")
                if _is_count(total):
                    fields["user_count"] = int(total)
                active = users.get("activeMonth")
                if _is_count(active):
                    fields["active_month_users"] = int(active)

            if isinstance(node_info.get("openRegistrations"), bool):
                fields["open_registrations"] = node_info["openRegistrations"]

            metadata = node_info.get("metadata")
            if isinstance(metadata, dict) and metadata:
                fields["metadata_field_count"] = len(metadata)
                fields["has_contact"] = _any_present(metadata, "contact", "email", "adminContact")
                fields["has_privacy_policy"] = _any_present(
                    metadata, "privacyPolicy", "privacy", "privacyPolicyUrl"
                )
                fields["has_terms"] = _any_present(metadata, "terms", "termsOfService", "tosUrl")

                approval = metadata.get("approvalRequired", metadata.get("approval_required"))
                if isinstance(approval, bool):
                    fields["approval_required"] = approval

                for key in ("description", "shortDescription", "about"):
                    value = metadata.get(key)
                    if isinstance(value, str) and value:
                        fields["description"] = value
                        break

        if isinstance(security_txt, dict):
            fields["has_security_txt"] = True
            contacts = security_txt.get("contact") or []
            if isinstance(contacts, str):
                contacts = [contacts]
            contacts = tuple(c for c in contacts if isinstance(c, str) and c)
            fields["security_contacts"] = contacts
            if contacts:
                fields["has_contact"] = True

        if created_at is not None:
            reference = now or datetime.utcnow()
            if created_at.tzinfo is not None and reference.tzinfo is None:
                created_at = created_at.replace(tzinfo=None)
            fields["age_days"] = max(0, (reference - created_at).days)

        return cls(**fields)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _any_present(metadata: Dict[str, Any], *keys: str) -> bool:
    return any(metadata.get(key) for key in keys)


class InstanceFacts(BaseModel):
    """
    Everything the engine needs about one instance.

    Produced by external collaborators (directory fetchers, blocklist
    checks, uptime monitors) and validated once on ingestion.
    """
    domain: str = Field(min_length=1, max_length=253)
    rules: List[ModerationRule] = Field(default_factory=list)
    reachable: bool = False
    status_source: Literal["direct", "fediverse-observer", "fedidb", "unknown"] = "unknown"
    peer_count: int = Field(default=0, ge=0, description="Peers after truncation")
    peers_total_count: Optional[int] = Field(default=None, ge=0, description="Peers before truncation")
    blocked_instances: Optional[List[str]] = Field(
        default=None,
        description="None when the instance does not expose a block list"
    )
    blocklist_matches: List[BlocklistMatch] = Field(default_factory=list)
    covenant_member: bool = False
    collection_error_count: int = Field(default=0, ge=0)
    metadata: Optional[InstanceMetadata] = None

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def effective_peer_count(self) -> int:
        """Peer count before truncation when known"""
        return self.peers_total_count or self.peer_count


# ==================== Reference Snapshots ====================

class FederationPercentiles(BaseModel):
    """Peer-count distribution snapshot across known instances"""
    model_config = ConfigDict(frozen=True)

    p25: float = Field(ge=0)
    p50: float = Field(ge=0)
    p75: float = Field(ge=0)
    p90: float = Field(ge=0)
    p95: float = Field(ge=0)

    @model_validator(mode="after")
    def check_ordering(self) -> "FederationPercentiles":
        values = [self.p25, self.p50, self.p75, self.p90, self.p95]
        if values != sorted(values):
            raise ValueError("percentiles must be non-decreasing")
        return self


class ReputationEntry(BaseModel):
    """One curated reputation-list entry"""
    model_config = ConfigDict(frozen=True)

    domain: str
    reputation: Literal["trusted", "neutral", "problematic", "blocked"]
    reason: Optional[str] = None
    tags: Tuple[str, ...] = ()


class ReputationSnapshot(BaseModel):
    """Curated trusted and problematic lists, keyed by domain"""
    model_config = ConfigDict(frozen=True)

    trusted: Dict[str, ReputationEntry] = Field(default_factory=dict)
    problematic: Dict[str, ReputationEntry] = Field(default_factory=dict)

    def lookup(self, domain: str) -> Tuple[str, Optional[ReputationEntry]]:
        """Return (level, entry) for a domain; trusted wins over problematic"""
        domain = domain.lower()
        if domain in self.trusted:
            return "trusted", self.trusted[domain]
        if domain in self.problematic:
            return "problematic", self.problematic[domain]
        return "neutral", None


# ==================== Policy Analysis ====================

class RulePattern(BaseModel):
    """
    One categorized rule pattern with per-language regex variants.

    Weight is signed: red flags carry negative weights.
    """
    model_config = ConfigDict(frozen=True)

    category: str
    subcategory: str
    label: str
    weight: float
    patterns: Dict[str, Tuple[str, ...]]
    is_red_flag: bool = False
    is_positive: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return self.category, self.subcategory


class MatchedSignal(BaseModel):
    """A single pattern occurrence in policy text, kept for audit display"""
    model_config = ConfigDict(frozen=True)

    category: str
    subcategory: str
    weight: float  # Effective weight after negation
    matched_text: str
    context: str
    is_negated: bool
    language: str
    pattern_used: str


class CovenantAlignment(BaseModel):
    """Coverage of the four areas required by the server covenant"""
    score: int = Field(ge=0, le=100)
    meets_requirements: bool
    has_racism_policy: bool
    has_sexism_policy: bool
    has_homophobia_policy: bool
    has_transphobia_policy: bool

    def missing_areas(self) -> List[str]:
        missing = []
        if not self.has_racism_policy:
            missing.append("racism")
        if not self.has_sexism_policy:
            missing.append("sexism")
        if not self.has_homophobia_policy:
            missing.append("homophobia")
        if not self.has_transphobia_policy:
            missing.append("transphobia")
        return missing


class PolicyAnalysisResult(BaseModel):
    """
    Full moderation-policy analysis with explainability.

    normalized_score is the 0-37.5 display value; only its first 25 points
    count toward the composite total.
    """
    raw_score: float = Field(ge=0.0)
    normalized_score: float = Field(ge=0.0, le=37.5)
    confidence: int = Field(ge=0, le=100)

    categories_covered: List[str] = Field(default_factory=list)
    protected_classes_covered: List[str] = Field(default_factory=list)
    positive_indicators: List[str] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)
    missing_categories: List[str] = Field(default_factory=list)

    matched_signals: List[MatchedSignal] = Field(default_factory=list)
    detected_languages: List[str] = Field(default_factory=list)
    covenant_alignment: CovenantAlignment

    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)

    total_keywords: int = 0
    meets_minimum: bool = False
    flags: List[str] = Field(default_factory=list)
    diagnostics: List[str] = Field(default_factory=list)


# ==================== Network Health ====================

class NetworkHealthBreakdown(BaseModel):
    federation_health: int = Field(ge=0, le=10)
    reputation: int = Field(ge=0, le=8)
    blocking_behavior: int = Field(ge=0, le=4)
    reciprocity: int = Field(ge=0, le=3)


class NetworkHealthDetails(BaseModel):
    peer_count: int = 0
    peer_percentile: Optional[int] = None
    reputation_level: Literal["trusted", "neutral", "problematic", "unknown"] = "unknown"
    block_count: int = 0
    block_ratio: Optional[float] = None
    blocked_by_count: int = 0
    is_widely_blocked: bool = False


class NetworkHealthResult(BaseModel):
    """Network health score (0-25)"""
    total_score: int = Field(ge=0, le=25)
    breakdown: NetworkHealthBreakdown
    details: NetworkHealthDetails
    flags: List[str] = Field(default_factory=list)
    degraded: bool = False


# ==================== Metadata Maturity ====================

class MetadataMaturityBreakdown(BaseModel):
    maturity: int = Field(ge=0, le=8)
    transparency: int = Field(ge=0, le=7)
    registration: int = Field(ge=0, le=5)
    description: int = Field(ge=0, le=5)


class MetadataMaturityDetails(BaseModel):
    age_days: Optional[int] = None
    user_count: Optional[int] = None
    has_privacy_policy: bool = False
    has_terms: bool = False
    has_contact: bool = False
    has_security_contact: bool = False
    registration_policy: str = "unknown"
    description_length: int = 0
    description_quality: str = "none"


class MetadataMaturityResult(BaseModel):
    """Metadata maturity score (0-25)"""
    total_score: int = Field(ge=0, le=25)
    breakdown: MetadataMaturityBreakdown
    details: MetadataMaturityDetails
    flags: List[str] = Field(default_factory=list)


# ==================== Composite Score ====================

class SafetyBreakdown(BaseModel):
    """
    Per-axis contributions.

    moderation may reach 37.5 for display; the composite total only
    counts the first 25 points of it.
    """
    uptime: float = Field(ge=0, le=25)
    moderation: float = Field(ge=0, le=37.5)
    federation: float = Field(ge=0, le=25)
    trust: float = Field(ge=0, le=25)


class CompositeSafetyScore(BaseModel):
    """Overall 0-100 trust score"""
    overall: int = Field(ge=0, le=100)
    breakdown: SafetyBreakdown
    flags: List[str] = Field(default_factory=list)


class InstanceReport(BaseModel):
    """Everything the engine produces for one instance"""
    domain: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    safety_score: CompositeSafetyScore
    score_label: str
    policy_analysis: PolicyAnalysisResult
    network_health: NetworkHealthResult
    metadata_maturity: MetadataMaturityResult
    network_summary: str
    metadata_summary: str
    recommendations: List[str] = Field(default_factory=list)


# ==================== API Request/Response Models ====================

class PolicyAnalysisRequest(BaseModel):
    """API request model for standalone policy analysis"""
    rules: List[ModerationRule] = Field(default_factory=list, max_length=500)


class SystemStatus(BaseModel):
    """API response model for system health check"""
    status: str
    version: str
    pattern_count: int
    pattern_diagnostics: int
    percentiles_loaded: bool
    reputation_loaded: bool
    event_count: int
