"""
seodash/routers/validation_router.py
Stateless badge checks used by the editors (meta optimizer, heading view, ...).
"""
from fastapi import APIRouter, Depends

from ..models import (
    AltTextRequest,
    AnalysisRequest,
    HeadingsRequest,
    MetaDescriptionRequest,
    MetaTitleRequest,
    PageSpeedRequest,
    ValidationResult,
)
from ..services import seo_validator
from ..services.ai_standardizer import standardize_ai_analysis
from ..utils.auth import get_current_user

router = APIRouter(prefix="/validate", tags=["Validation"])


@router.post("/meta-title", response_model=ValidationResult)
async def meta_title(body: MetaTitleRequest, current_user: dict = Depends(get_current_user)):
    return seo_validator.validate_meta_title(body.title, body.keyword)


@router.post("/meta-description", response_model=ValidationResult)
async def meta_description(body: MetaDescriptionRequest, current_user: dict = Depends(get_current_user)):
    return seo_validator.validate_meta_description(body.description, body.keyword)


@router.post("/headings")
async def headings(body: HeadingsRequest, current_user: dict = Depends(get_current_user)):
    return {
        "result": seo_validator.validate_headings(body.headings),
        "duplicates": seo_validator.find_duplicate_headings(body.headings),
        "logical_structure": seo_validator.has_logical_heading_structure(body.headings),
    }


@router.post("/page-speed", response_model=ValidationResult)
async def page_speed(body: PageSpeedRequest, current_user: dict = Depends(get_current_user)):
    return seo_validator.validate_page_speed(body.mobile_score, body.desktop_score)


@router.post("/alt-text", response_model=ValidationResult)
async def alt_text(body: AltTextRequest, current_user: dict = Depends(get_current_user)):
    return seo_validator.validate_alt_text(body.total_images, body.missing_alt, body.keyword_matches)


@router.post("/analysis")
async def analysis(body: AnalysisRequest, current_user: dict = Depends(get_current_user)):
    """Validate and standardise a complete analysis payload."""
    payload = dict(body.analysis)
    payload.setdefault("user_id", current_user["sub"])
    result = await seo_validator.validate_analysis(payload, body.url)
    standardized = result["standardized"]
    return {
        "is_valid": result["is_valid"],
        "errors": result["errors"],
        "standardized": standardized.model_dump(mode="json", by_alias=True) if standardized else None,
    }


@router.post("/ai-analysis")
async def ai_analysis(raw: dict, current_user: dict = Depends(get_current_user)):
    return standardize_ai_analysis(raw)
