"""
seodash/routers/drafts_router.py
Content workflow: drafts move draft → review → approved → scheduled → published.

Writers own their drafts and move them between draft and review. Approval
decisions come from reviewers (site admins, or admins and editors of an
organization) and never from the draft's own writer. Publishing itself is
done by the WordPress publishing backend; scheduling here only records the
target sites and date it will pick up.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import (
    DraftCreateRequest,
    DraftScheduleRequest,
    DraftStatus,
    DraftUpdateRequest,
    FeedbackRequest,
    OrganizationRole,
    ReviewRequest,
)
from ..utils import store
from ..utils.auth import is_admin, require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drafts", tags=["Content Workflow"])

TRANSITIONS = {
    "draft":     {"review"},
    "review":    {"approved", "rejected", "draft"},
    "rejected":  {"draft", "review"},
    "approved":  {"scheduled", "published", "review"},
    "scheduled": {"published", "approved"},
    "published": set(),
}

# Moves a writer may make with PATCH; everything else has its own endpoint
WRITER_MOVES = {
    ("draft", "review"),
    ("review", "draft"),
    ("rejected", "draft"),
    ("rejected", "review"),
    ("approved", "review"),
    ("scheduled", "approved"),
}
RESERVED_HINTS = {
    "approved": "Approval decisions are made by a reviewer via POST /drafts/{id}/review",
    "rejected": "Approval decisions are made by a reviewer via POST /drafts/{id}/review",
    "scheduled": "Use POST /drafts/{id}/schedule to pick target sites",
    "published": "Use POST /drafts/{id}/publish",
}
REVIEWER_ORG_ROLES = [OrganizationRole.ADMIN.value, OrganizationRole.EDITOR.value]


def can_transition(current: str, new: str) -> bool:
    return current == new or new in TRANSITIONS.get(current, set())


async def is_reviewer(user_id: str) -> bool:
    if await is_admin(user_id):
        return True
    membership = await store.find_one("organization_members", {
        "user_id": user_id, "status": "active", "role": {"$in": REVIEWER_ORG_ROLES},
    })
    return membership is not None


async def _draft_or_404(draft_id: str) -> dict:
    draft = await store.find_one("content_drafts", {"id": draft_id})
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


async def _owned_draft(draft_id: str, user_id: str) -> dict:
    draft = await _draft_or_404(draft_id)
    if draft.get("writer_id") != user_id:
        raise HTTPException(status_code=403, detail="Not your draft")
    return draft


async def _visible_draft(draft_id: str, user_id: str) -> dict:
    """The writer and any reviewer can read a draft and comment on it."""
    draft = await _draft_or_404(draft_id)
    if draft.get("writer_id") != user_id and not await is_reviewer(user_id):
        raise HTTPException(status_code=403, detail="Not your draft")
    return draft


async def _set_status(draft: dict, new_status: str, extra: Optional[dict] = None) -> dict:
    if not can_transition(draft["status"], new_status):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move draft from '{draft['status']}' to '{new_status}'",
        )
    values = {"status": new_status, **(extra or {})}
    await store.update("content_drafts", {"id": draft["id"]}, values)
    draft.update(values)
    return draft


async def _add_feedback(draft_id: str, reviewer_id: str, comment: str) -> dict:
    return await store.insert("content_feedback", {
        "draft_id": draft_id,
        "reviewer_id": reviewer_id,
        "comment": comment,
    })


@router.post("/", status_code=201)
async def create_draft(body: DraftCreateRequest, current_user: dict = Depends(require_session)):
    draft = await store.insert("content_drafts", {
        "plan_id": body.plan_id,
        "writer_id": current_user["sub"],
        "title": body.title.strip(),
        "content": body.content,
        "status": "draft",
        "target_sites": [],
        "published_sites": None,
        "scheduled_date": None,
        "last_saved_at": store.now_iso(),
    })
    return {"success": True, "draft": draft}


@router.get("/")
async def list_drafts(
    status: Optional[DraftStatus] = Query(None),
    current_user: dict = Depends(require_session),
):
    query = {"writer_id": current_user["sub"]}
    if status:
        query["status"] = status.value
    drafts = await store.find("content_drafts", query, sort="updated_at")
    items = [
        {**d, "word_count": len((d.get("content") or "").split())}
        for d in drafts
    ]
    return {"total": len(items), "drafts": items}


@router.get("/stats")
async def workflow_stats(current_user: dict = Depends(require_session)):
    drafts = await store.find("content_drafts", {"writer_id": current_user["sub"]})
    stats = {"total_drafts": 0, "pending_review": 0, "approved": 0, "published": 0}
    keys = {"draft": "total_drafts", "review": "pending_review", "approved": "approved", "published": "published"}
    for d in drafts:
        key = keys.get(d.get("status"))
        if key:
            stats[key] += 1
    return stats


@router.get("/review")
async def review_queue(current_user: dict = Depends(require_session)):
    """Drafts waiting for review by someone other than their writer, latest save first."""
    if not await is_reviewer(current_user["sub"]):
        raise HTTPException(status_code=403, detail="Reviewer access required")
    drafts = await store.find("content_drafts", {"status": "review"}, sort="last_saved_at")
    queue = [d for d in drafts if d.get("writer_id") != current_user["sub"]]
    return {"total": len(queue), "drafts": queue}


@router.get("/{draft_id}")
async def get_draft(draft_id: str, current_user: dict = Depends(require_session)):
    draft = await _visible_draft(draft_id, current_user["sub"])
    feedback = await store.find("content_feedback", {"draft_id": draft_id}, sort="created_at", descending=False)
    return {**draft, "feedback": feedback}


@router.patch("/{draft_id}")
async def update_draft(draft_id: str, body: DraftUpdateRequest, current_user: dict = Depends(require_session)):
    draft = await _owned_draft(draft_id, current_user["sub"])
    if draft["status"] == "published":
        raise HTTPException(status_code=409, detail="Published drafts are read-only")

    values = {}
    if body.title is not None:
        values["title"] = body.title.strip()
    if body.content is not None:
        values["content"] = body.content
        values["last_saved_at"] = store.now_iso()

    new_status = body.status.value if body.status is not None else None
    if new_status is not None and new_status != draft["status"]:
        if not can_transition(draft["status"], new_status):
            raise HTTPException(
                status_code=409,
                detail=f"Cannot move draft from '{draft['status']}' to '{new_status}'",
            )
        if (draft["status"], new_status) not in WRITER_MOVES:
            raise HTTPException(status_code=400, detail=RESERVED_HINTS.get(new_status, "Status change not allowed"))
        if draft["status"] == "scheduled":
            values.update({"target_sites": [], "scheduled_date": None})
        draft = await _set_status(draft, new_status, values)
    elif values:
        await store.update("content_drafts", {"id": draft_id}, values)
        draft.update(values)
    return {"success": True, "draft": draft}


@router.post("/{draft_id}/feedback", status_code=201)
async def add_feedback(draft_id: str, body: FeedbackRequest, current_user: dict = Depends(require_session)):
    comment = body.comment.strip()
    if not comment:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    await _visible_draft(draft_id, current_user["sub"])
    feedback = await _add_feedback(draft_id, current_user["sub"], comment)
    return {"success": True, "feedback": feedback}


@router.post("/{draft_id}/review")
async def review_draft(draft_id: str, body: ReviewRequest, current_user: dict = Depends(require_session)):
    """Approve or reject a draft waiting for review, optionally leaving feedback."""
    if body.decision not in (DraftStatus.APPROVED, DraftStatus.REJECTED):
        raise HTTPException(status_code=400, detail="Decision must be 'approved' or 'rejected'")
    reviewer_id = current_user["sub"]
    draft = await _draft_or_404(draft_id)
    if draft.get("writer_id") == reviewer_id:
        raise HTTPException(status_code=403, detail="Writers cannot review their own drafts")
    if not await is_reviewer(reviewer_id):
        raise HTTPException(status_code=403, detail="Reviewer access required")
    if draft["status"] != "review":
        raise HTTPException(status_code=409, detail="Draft is not waiting for review")

    draft = await _set_status(draft, body.decision.value, {"reviewed_by": reviewer_id})
    if body.feedback.strip():
        await _add_feedback(draft_id, reviewer_id, body.feedback.strip())
    logger.info("Draft %s %s by %s", draft_id, body.decision.value, reviewer_id)
    return {"success": True, "draft": draft}


@router.post("/{draft_id}/schedule")
async def schedule_draft(draft_id: str, body: DraftScheduleRequest, current_user: dict = Depends(require_session)):
    draft = await _owned_draft(draft_id, current_user["sub"])
    if not body.target_sites:
        raise HTTPException(status_code=400, detail="Select at least one WordPress site")

    owned = await store.find("wordpress_sites", {"user_id": current_user["sub"], "id": {"$in": body.target_sites}})
    missing = set(body.target_sites) - {s["id"] for s in owned}
    if missing:
        raise HTTPException(status_code=404, detail=f"Unknown WordPress site(s): {', '.join(sorted(missing))}")

    draft = await _set_status(draft, "scheduled", {
        "target_sites": body.target_sites,
        "scheduled_date": body.scheduled_date or store.now_iso(),
    })
    return {"success": True, "draft": draft}


@router.post("/{draft_id}/publish")
async def publish_draft(draft_id: str, current_user: dict = Depends(require_session)):
    """Record that an approved or scheduled draft went live on its target sites."""
    draft = await _owned_draft(draft_id, current_user["sub"])
    if draft["status"] == "published":
        raise HTTPException(status_code=409, detail="Draft is already published")
    draft = await _set_status(draft, "published", {
        "published_sites": draft.get("target_sites") or [],
        "published_at": store.now_iso(),
    })
    logger.info("Draft %s published to %d site(s)", draft_id, len(draft["published_sites"]))
    return {"success": True, "draft": draft}


@router.delete("/{draft_id}")
async def delete_draft(draft_id: str, current_user: dict = Depends(require_session)):
    await _owned_draft(draft_id, current_user["sub"])
    await store.delete("content_drafts", {"id": draft_id})
    await store.delete("content_feedback", {"draft_id": draft_id})
    return {"success": True}
