"""
seodash/routers/reports_router.py
PDF export for stored scans, built with reportlab. Requires a plan with
the PDF feature.
"""
import logging
import os
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from ..config import get_settings
from ..services import plans
from ..services.seo_validator import convert_to_standardized
from ..utils import store
from ..utils.auth import require_permission
from .scans_router import validate_seo_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])
settings = get_settings()

CHECK_LABELS = [
    ("meta_title",       "Meta Title"),
    ("meta_description", "Meta Description"),
    ("headings",         "Headings"),
    ("pagespeed",        "PageSpeed"),
    ("alt_text",         "Image Alt Text"),
]

BADGE_HEX = {"valid": "#10b981", "warning": "#f59e0b", "error": "#ef4444"}


def score_label(score) -> str:
    if score is None: return "N/A"
    if score >= 80: return "Excellent"
    if score >= 60: return "Good"
    if score >= 40: return "Fair"
    return "Poor"


def score_hex(score) -> str:
    if score is None: return "#6b7280"
    if score >= 80: return "#10b981"
    if score >= 60: return "#f59e0b"
    if score >= 40: return "#f97316"
    return "#ef4444"


def _build_pdf(scan: dict, checks: dict, path: str):
    from reportlab.lib import colors
    from reportlab.lib.enums import TA_CENTER
    from reportlab.lib.pagesizes import A4
    from reportlab.lib.styles import ParagraphStyle
    from reportlab.lib.units import mm
    from reportlab.platypus import (
        HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
    )

    doc = SimpleDocTemplate(
        path, pagesize=A4,
        leftMargin=22 * mm, rightMargin=22 * mm,
        topMargin=22 * mm, bottomMargin=22 * mm,
    )
    story = []

    INDIGO   = colors.HexColor("#6366f1")
    MID_GRAY = colors.HexColor("#6b7280")
    RULE     = colors.HexColor("#e5e7eb")

    score = scan.get("overall_score")
    score_color = colors.HexColor(score_hex(score))

    brand = ParagraphStyle("brand", fontSize=22, fontName="Helvetica-Bold",
                           textColor=INDIGO, spaceAfter=2)
    subtitle_st = ParagraphStyle("subtitle", fontSize=10, fontName="Helvetica",
                                 textColor=MID_GRAY, spaceAfter=16)
    url_st = ParagraphStyle("url", fontSize=11, fontName="Helvetica",
                            textColor=colors.HexColor("#374151"), spaceAfter=4)
    score_st = ParagraphStyle("score_num", fontSize=52, fontName="Helvetica-Bold",
                              textColor=score_color, alignment=TA_CENTER, leading=58)
    score_label_st = ParagraphStyle("score_label", fontSize=14, fontName="Helvetica-Bold",
                                    textColor=score_color, alignment=TA_CENTER, spaceAfter=16)
    section_st = ParagraphStyle("section", fontSize=11, fontName="Helvetica-Bold",
                                textColor=INDIGO, spaceBefore=18, spaceAfter=6)
    body_st = ParagraphStyle("body", fontSize=10, fontName="Helvetica",
                             textColor=colors.HexColor("#4b5563"), leading=15, spaceAfter=8)
    footer_st = ParagraphStyle("footer", fontSize=8, fontName="Helvetica",
                               textColor=MID_GRAY, alignment=TA_CENTER, spaceBefore=20)

    # Header
    story.append(Paragraph("SEO Auto Tool", brand))
    story.append(Paragraph("SEO Analysis Report", subtitle_st))
    story.append(HRFlowable(width="100%", thickness=1, color=RULE))
    story.append(Spacer(1, 6 * mm))

    created = (scan.get("created_at") or "")[:19].replace("T", " ")
    story.append(Paragraph(f"URL: {escape(scan.get('url') or 'N/A')}", url_st))
    story.append(Paragraph(f"Scanned: {created} UTC  |  Scan ID: {scan.get('id', '')[:8]}", subtitle_st))

    # Score
    story.append(Paragraph(str(score) if score is not None else "-", score_st))
    story.append(Paragraph(f"{score_label(score)}  (out of 100)", score_label_st))
    story.append(HRFlowable(width="100%", thickness=1, color=RULE))

    # Validation badges
    rows = [(label, checks[key]) for key, label in CHECK_LABELS if key in checks]
    if rows:
        story.append(Paragraph("Validation", section_st))
        table_data = [["Check", "Score", "Status", "Note"]]
        badge_styles = []
        for i, (label, check) in enumerate(rows, 1):
            status = check.get("status", "")
            table_data.append([
                label,
                "-" if check.get("score") is None else str(check["score"]),
                status.upper(),
                Paragraph(escape(str(check.get("message", ""))[:120]), body_st),
            ])
            badge_styles.append(("TEXTCOLOR", (2, i), (2, i), colors.HexColor(BADGE_HEX.get(status, "#6b7280"))))

        tbl = Table(table_data, colWidths=[40 * mm, 16 * mm, 22 * mm, 84 * mm], repeatRows=1)
        tbl.setStyle(TableStyle([
            ("BACKGROUND",    (0, 0), (-1, 0),  INDIGO),
            ("TEXTCOLOR",     (0, 0), (-1, 0),  colors.white),
            ("FONTNAME",      (0, 0), (-1, 0),  "Helvetica-Bold"),
            ("FONTSIZE",      (0, 0), (-1, -1), 9),
            ("FONTNAME",      (2, 1), (2, -1),  "Helvetica-Bold"),
            ("TOPPADDING",    (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f9fafb")]),
            ("GRID",          (0, 0), (-1, -1), 0.4, RULE),
            ("VALIGN",        (0, 0), (-1, -1), "MIDDLE"),
            *badge_styles,
        ]))
        story.append(tbl)

    # AI summary
    standardized = convert_to_standardized(scan, scan.get("url"))
    ai = standardized.ai_seo
    if ai and ai.ai_rewrite:
        story.append(Paragraph("AI Rewrite", section_st))
        value = ai.ai_rewrite.value
        story.append(Paragraph(f"Original: {escape(value.original)}", body_st))
        story.append(Paragraph(f"Rewritten: {escape(value.rewritten)}", body_st))
        story.append(Paragraph(
            f"Readability {value.improvements.readability_score:g} · "
            f"confidence {value.confidence:g}", body_st))

    story.append(Spacer(1, 8 * mm))
    story.append(HRFlowable(width="100%", thickness=1, color=RULE))
    story.append(Paragraph(f"Generated by SEO Auto Tool · {created} UTC", footer_st))

    doc.build(story)


@router.get("/{scan_id}/pdf")
async def export_pdf(scan_id: str, current_user: dict = Depends(require_permission("results"))):
    """Generate and return a PDF report for one of the user's scans."""
    scan = await store.find_one("scans", {"id": scan_id})
    if not scan or scan.get("user_id") != current_user["sub"]:
        raise HTTPException(status_code=404, detail="Scan not found")

    check = await plans.check_plan_limit(current_user["sub"], "pdf")
    if not check["allowed"]:
        raise HTTPException(status_code=402, detail=check["error"])

    os.makedirs(settings.reports_dir, exist_ok=True)
    pdf_path = os.path.join(settings.reports_dir, f"{scan_id}.pdf")
    checks = scan.get("validation") or validate_seo_payload(scan.get("seo") or {})
    try:
        _build_pdf(scan, checks, pdf_path)
    except Exception as e:
        logger.error("PDF generation failed for scan %s: %s", scan_id, e)
        raise HTTPException(status_code=500, detail=f"PDF generation failed: {e}")

    return FileResponse(
        pdf_path,
        media_type="application/pdf",
        filename=f"seo-report-{scan_id[:8]}.pdf",
    )
