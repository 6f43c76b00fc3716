"""
SEO validator tests: badge rules for titles, descriptions, headings,
page speed and alt text, plus whole-analysis standardisation.
Run with: pytest tests/ -v
"""
import pytest

from seodash.models import Heading, ValidationStatus
from seodash.services import seo_validator
from seodash.services.seo_validator import (
    calculate_overall_score,
    convert_to_standardized,
    find_duplicate_headings,
    has_cta,
    has_logical_heading_structure,
    validate_alt_text,
    validate_headings,
    validate_meta_description,
    validate_meta_title,
    validate_page_speed,
)
from seodash.utils import store


# ─── Meta title ────────────────────────────────────────────────────────────────

class TestMetaTitle:

    def test_empty_title_is_error(self):
        result = validate_meta_title("")
        assert result.status == ValidationStatus.ERROR
        assert result.score == 0
        assert result.message == "Meta title trống"

    def test_45_chars_is_valid(self):
        result = validate_meta_title("a" * 45)
        assert result.status == ValidationStatus.VALID
        assert result.score == 95
        assert result.message == "45 ký tự - Tối ưu tốt"

    def test_short_title_warns(self):
        result = validate_meta_title("a" * 20)
        assert result.status == ValidationStatus.WARNING
        assert result.score == 50
        assert "Quá ngắn" in result.message

    def test_long_title_warns(self):
        result = validate_meta_title("a" * 61)
        assert result.status == ValidationStatus.WARNING
        assert result.score == 70
        assert "Quá dài" in result.message

    def test_boundaries_are_inclusive(self):
        assert validate_meta_title("a" * 30).status == ValidationStatus.VALID
        assert validate_meta_title("a" * 60).status == ValidationStatus.VALID

    def test_keyword_match_is_case_insensitive(self):
        title = "x" * 40 + " seo"
        assert validate_meta_title(title, "SEO").status == ValidationStatus.VALID

    def test_missing_keyword_warns(self):
        result = validate_meta_title("x" * 40, "marketing")
        assert result.status == ValidationStatus.WARNING
        assert result.score == 75
        assert "Thiếu từ khóa chính" in result.message


# ─── Meta description ──────────────────────────────────────────────────────────

class TestMetaDescription:

    def test_empty_is_error(self):
        result = validate_meta_description("")
        assert result.status == ValidationStatus.ERROR
        assert result.score == 0

    def test_170_chars_is_too_long(self):
        result = validate_meta_description("a" * 170)
        assert result.status == ValidationStatus.WARNING
        assert result.score == 70
        assert "Quá dài" in result.message

    def test_short_description_warns(self):
        result = validate_meta_description("a" * 100)
        assert result.status == ValidationStatus.WARNING
        assert result.score == 60

    def test_cta_and_good_length_is_valid(self):
        result = validate_meta_description("xem " + "a" * 126)
        assert result.status == ValidationStatus.VALID
        assert result.score == 80

    def test_missing_cta_costs_ten_points(self):
        result = validate_meta_description("a" * 130)
        assert result.status == ValidationStatus.WARNING
        assert result.score == 70
        assert "thiếu CTA" in result.message

    def test_missing_keyword_costs_fifteen_points(self):
        result = validate_meta_description("xem " + "a" * 126, keyword="seo")
        assert result.score == 65
        assert "thiếu từ khóa" in result.message

    def test_cta_must_be_a_whole_word(self):
        assert has_cta("Liên hệ ngay hôm nay")
        assert has_cta("XEM thêm")
        assert not has_cta("xempage")

    def test_cta_words_with_vietnamese_letters_match_whole_words(self):
        assert has_cta("Hãy đặt hàng ngay")
        assert has_cta("Nhấn đăng ký để nhận tin")
        assert not has_cta("đặtxyz")


# ─── Headings ──────────────────────────────────────────────────────────────────

class TestHeadings:

    def test_no_headings_is_error(self):
        result = validate_headings([])
        assert result.status == ValidationStatus.ERROR
        assert result.score == 0

    def test_clean_structure_scores_base(self):
        result = validate_headings([
            {"level": 1, "text": "Title"},
            {"level": 2, "text": "A"},
            {"level": 3, "text": "B"},
        ])
        assert result.score == 70
        assert result.status == ValidationStatus.WARNING
        assert "Cấu trúc tốt" in result.message

    def test_missing_h1_loses_30(self):
        result = validate_headings([{"level": 2, "text": "A"}])
        assert result.score == 40
        assert result.status == ValidationStatus.ERROR

    def test_multiple_h1_and_duplicates_stack(self):
        result = validate_headings([{"level": 1, "text": "A"}, {"level": 1, "text": "A"}])
        assert result.score == 35
        assert "2 H1 tags" in result.message

    def test_skipped_level_loses_10(self):
        result = validate_headings([{"level": 1, "text": "A"}, {"level": 3, "text": "B"}])
        assert result.score == 60
        assert result.status == ValidationStatus.WARNING

    def test_find_duplicates_reports_each_text_once(self):
        headings = [
            {"level": 1, "text": "A"},
            {"level": 2, "text": "B"},
            {"level": 2, "text": "A"},
            {"level": 3, "text": "A"},
        ]
        assert find_duplicate_headings(headings) == ["A"]

    def test_logical_structure_allows_stepping_back_up(self):
        levels = [Heading(level=l, text=str(i)) for i, l in enumerate([1, 2, 3, 2, 3])]
        assert has_logical_heading_structure(levels) is True
        assert has_logical_heading_structure([Heading(level=1, text="a"), Heading(level=3, text="b")]) is False


# ─── Page speed & alt text ─────────────────────────────────────────────────────

class TestPageSpeed:

    def test_fast_site_is_valid(self):
        result = validate_page_speed(95, 95)
        assert result.status == ValidationStatus.VALID
        assert result.score == 100
        assert result.message == "Mobile: 95/100 - Desktop: 95/100 - Xuất sắc"

    def test_slow_site_is_error(self):
        result = validate_page_speed(50, 50)
        assert result.status == ValidationStatus.ERROR
        assert result.score == 40

    def test_average_between_70_and_90_warns(self):
        result = validate_page_speed(80, 70)
        assert result.status == ValidationStatus.WARNING
        assert result.score == 75


class TestAltText:

    def test_no_images_is_valid(self):
        result = validate_alt_text(0, 0, 0)
        assert result.status == ValidationStatus.VALID
        assert result.score == 100

    def test_full_coverage_with_keywords(self):
        assert validate_alt_text(10, 0, 5).score == 100

    def test_low_keyword_coverage_loses_20(self):
        result = validate_alt_text(10, 0, 1)
        assert result.score == 80
        assert "ít từ khóa trong alt" in result.message

    def test_missing_alt_reduces_coverage(self):
        result = validate_alt_text(10, 5, 0)
        assert result.score == 30
        assert result.status == ValidationStatus.ERROR
        assert "5 ảnh thiếu alt" in result.message


# ─── Whole analysis ────────────────────────────────────────────────────────────

class TestStandardization:

    def test_overall_score_is_mean_of_present_scores(self):
        assert calculate_overall_score({}) == 0
        assert calculate_overall_score({"seo": {"title": "a" * 45}}) == 95
        assert calculate_overall_score({"seo": {"title": "a" * 45}, "ai_analysis": {"score": 85}}) == 90

    def test_convert_fills_meta_and_rewrite(self):
        analysis = {
            "seo": {"title": "a" * 45, "description": "xem " + "b" * 126},
            "ai_analysis": {"rewrite": {"original": "old", "improved": "new", "confidence": 0.9}},
        }
        result = convert_to_standardized(analysis, "https://example.com")
        assert result.url == "https://example.com"
        assert result.regular_seo.meta_title.value.length == 45
        assert result.regular_seo.meta_description.value.has_cta is True
        assert result.ai_seo.ai_rewrite.value.rewritten == "new"
        dumped = result.model_dump(mode="json", by_alias=True)
        assert "schema" in dumped["regular_seo"]

    def test_convert_without_ai_leaves_ai_sections_empty(self):
        result = convert_to_standardized({"seo": {}}, "https://example.com")
        assert result.ai_seo.ai_rewrite is None
        assert result.overall_score == 0

    @pytest.mark.asyncio
    async def test_missing_url_is_invalid_and_logged(self):
        result = await seo_validator.validate_analysis({"seo": {"title": "x"}}, None)
        assert result["is_valid"] is False
        assert result["errors"] == ["Missing URL"]
        assert result["standardized"] is None
        logs = await store.find("api_logs")
        assert len(logs) == 1
        assert logs[0]["success"] is False
        assert logs[0]["status_code"] == 400

    @pytest.mark.asyncio
    async def test_valid_analysis_logs_success(self):
        result = await seo_validator.validate_analysis({"url": "https://example.com"}, None)
        assert result["is_valid"] is True
        assert result["standardized"].url == "https://example.com"
        logs = await store.find("api_logs")
        assert logs[0]["domain"] == "example.com"
