from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from enum import Enum


class ValidationStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


class FeatureType(str, Enum):
    SEO_AUDIT = "seo_audit"
    AI_REWRITE = "ai_rewrite"
    AI_META = "ai_meta"
    AI_CONTENT_PLAN = "ai_content_plan"
    AI_BLOG = "ai_blog"
    IMAGE_ALT = "image_alt"
    TECHNICAL_SEO = "technical_seo"
    PDF_EXPORT = "pdf_export"
    WHITELABEL = "whitelabel"


class UserTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    AGENCY = "agency"


class AppRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class OrganizationRole(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class AlertFilter(str, Enum):
    ALL = "all"
    UNREAD = "unread"
    ERROR = "error"
    WARNING = "warning"


class DraftStatus(str, Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


# ─── Validation results ────────────────────────────────────────────────────────

class ValidationResult(BaseModel):
    status: ValidationStatus
    message: str
    score: Optional[int] = None


class SEOResultBase(BaseModel):
    type: str
    status: ValidationStatus
    value: Dict[str, Any]
    validation: ValidationResult
    timestamp: str
    ai_enhanced: bool = False


class MetaTitleValue(BaseModel):
    title: str
    length: int
    keyword_present: bool
    suggested_title: Optional[str] = None


class MetaTitleResult(SEOResultBase):
    type: str = "meta_title"
    value: MetaTitleValue


class MetaDescriptionValue(BaseModel):
    description: str
    length: int
    unique: bool = True
    has_cta: bool
    suggested_description: Optional[str] = None


class MetaDescriptionResult(SEOResultBase):
    type: str = "meta_description"
    value: MetaDescriptionValue


class AIRewriteImprovements(BaseModel):
    keyword_density: float = 0
    readability_score: float = 0
    cta_added: bool = False
    grammar_fixes: int = 0


class AIRewriteValue(BaseModel):
    original: str = ""
    rewritten: str = ""
    improvements: AIRewriteImprovements
    confidence: float = 0


class AIRewriteResult(SEOResultBase):
    type: str = "ai_rewrite"
    value: AIRewriteValue
    ai_enhanced: bool = True


# Remaining result kinds are stored as produced by the analysis backend.
RESULT_TYPES = (
    "meta_title", "meta_description", "headings", "alt_text", "pagespeed",
    "schema", "internal_links", "ai_rewrite", "topic_map", "auto_fix",
    "search_intent", "predictive_ranking", "multi_language", "trend_detection",
)


class RegularSEO(BaseModel):
    meta_title: Optional[MetaTitleResult] = None
    meta_description: Optional[MetaDescriptionResult] = None
    headings: Optional[SEOResultBase] = None
    alt_text: Optional[SEOResultBase] = None
    pagespeed: Optional[SEOResultBase] = None
    schema_markup: Optional[SEOResultBase] = Field(None, alias="schema")
    internal_links: Optional[SEOResultBase] = None

    model_config = {"populate_by_name": True}


class AISEO(BaseModel):
    ai_rewrite: Optional[AIRewriteResult] = None
    topic_map: Optional[SEOResultBase] = None
    auto_fix: Optional[SEOResultBase] = None
    search_intent: Optional[SEOResultBase] = None
    predictive_ranking: Optional[SEOResultBase] = None
    multi_language: Optional[SEOResultBase] = None
    trend_detection: Optional[SEOResultBase] = None


class StandardizedSEOAnalysis(BaseModel):
    url: str
    scan_id: str
    timestamp: str
    user_id: str = ""
    processing_time_ms: float = 0
    regular_seo: RegularSEO
    ai_seo: AISEO
    overall_score: int
    validation_errors: List[str] = []


# ─── Request Models ────────────────────────────────────────────────────────────

class Heading(BaseModel):
    level: int = Field(..., ge=1, le=6)
    text: str


class MetaTitleRequest(BaseModel):
    title: str
    keyword: Optional[str] = None


class MetaDescriptionRequest(BaseModel):
    description: str
    keyword: Optional[str] = None


class HeadingsRequest(BaseModel):
    headings: List[Heading] = []


class PageSpeedRequest(BaseModel):
    mobile_score: float = Field(..., ge=0, le=100)
    desktop_score: float = Field(..., ge=0, le=100)


class AltTextRequest(BaseModel):
    total_images: int = Field(..., ge=0)
    missing_alt: int = Field(0, ge=0)
    keyword_matches: int = Field(0, ge=0)


class AnalysisRequest(BaseModel):
    url: Optional[str] = None
    analysis: Dict[str, Any] = {}


class PageSpeedScores(BaseModel):
    mobile_score: Optional[float] = Field(None, ge=0, le=100)
    desktop_score: Optional[float] = Field(None, ge=0, le=100)

    model_config = {"extra": "allow"}


class ImageStats(BaseModel):
    total_images: Optional[int] = Field(None, ge=0)
    missing_alt: int = Field(0, ge=0)
    keyword_matches: int = Field(0, ge=0)

    model_config = {"extra": "allow"}


class ScanSEOPayload(BaseModel):
    """SEO section of a scan as the analysis backend sends it. Unknown keys are kept."""
    title: Optional[str] = None
    description: Optional[str] = None
    keyword: Optional[str] = None
    suggested_title: Optional[str] = None
    suggested_description: Optional[str] = None
    headings: Optional[List[Heading]] = None
    pagespeed: Optional[PageSpeedScores] = None
    images: Optional[ImageStats] = None
    issues: Optional[List[Dict[str, Any]]] = None

    model_config = {"extra": "allow"}


class AIRewritePayload(BaseModel):
    original: str = ""
    improved: str = ""
    keyword_density: float = 0
    readability: float = 0
    cta_added: bool = False
    grammar_fixes: int = 0
    confidence: float = 0

    model_config = {"extra": "allow"}


class ScanAIPayload(BaseModel):
    score: Optional[float] = Field(None, ge=0, le=100)
    rewrite: Optional[AIRewritePayload] = None

    model_config = {"extra": "allow"}


class ScanCreateRequest(BaseModel):
    url: str = Field(..., description="Website URL that was analysed")
    seo: ScanSEOPayload = Field(default_factory=ScanSEOPayload, description="SEO payload from the analysis backend")
    ai_analysis: Optional[ScanAIPayload] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "url": "https://example.com",
                "seo": {"title": "Example Domain", "description": "..."},
            }
        }
    }


class DraftCreateRequest(BaseModel):
    plan_id: str
    title: str = ""
    content: str = ""


class DraftUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    status: Optional[DraftStatus] = None


class ReviewRequest(BaseModel):
    decision: DraftStatus
    feedback: str = ""


class FeedbackRequest(BaseModel):
    comment: str


class DraftScheduleRequest(BaseModel):
    target_sites: List[str]
    scheduled_date: Optional[str] = None


class WordPressSiteRequest(BaseModel):
    site_name: str = ""
    site_url: str = ""
    application_password: str = ""
    default_category: str = "general"
    default_status: str = "publish"


class TokenCreateRequest(BaseModel):
    token_name: str = ""
    permissions: Optional[List[str]] = None
    expires_in_days: Optional[int] = Field(None, ge=1, le=3650)


class PackageRequest(BaseModel):
    name: str
    description: str = ""
    base_price_vnd: int = Field(0, ge=0)
    is_default: bool = False
    is_recommended: bool = False
    is_active: bool = True


class PackageFeatureToggle(BaseModel):
    feature_type: FeatureType
    enabled: bool


class PackageFeatureLimit(BaseModel):
    feature_type: FeatureType
    custom_limit: int = Field(..., ge=0)


class UserUpdateRequest(BaseModel):
    tier: Optional[UserTier] = None
    role: Optional[AppRole] = None


class AdminSettingRequest(BaseModel):
    setting_value: Optional[str] = None
    description: Optional[str] = None


class ScheduledScanRequest(BaseModel):
    website_url: str
    frequency_days: int = Field(30, ge=1, le=365)
    email_alerts: bool = True
    auto_optimize: bool = False


class OptimizationRecordRequest(BaseModel):
    website_url: str
    seo_score_before: int = 0
    seo_score_after: int = 0
    desktop_speed_before: int = 0
    desktop_speed_after: int = 0
    mobile_speed_before: int = 0
    mobile_speed_after: int = 0
    fixes_applied: List[Any] = []
    backup_url: Optional[str] = None
    report_url: Optional[str] = None
    status: str = "completed"


class OrganizationRequest(BaseModel):
    name: str
    description: Optional[str] = None


class InviteRequest(BaseModel):
    email: str
    role: OrganizationRole = OrganizationRole.VIEWER


class MemberRoleRequest(BaseModel):
    role: OrganizationRole


class EventRequest(BaseModel):
    event_name: str
    event_data: Dict[str, Any] = {}
    page_url: Optional[str] = None
