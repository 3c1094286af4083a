from uuid import UUID
from typing import List, Dict
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request, Response, Security
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

import serenity.core.config as config
from serenity.ai.ai_service import AIService
from serenity.ai.parsing import TagsFallback
from serenity.auth.service import get_current_user_id
from serenity.core.database import get_db
from serenity.core.dependency import get_ai_service
from serenity.journals.enrichment import (
    build_enrichment_payload,
    compute_embedding,
    dispatch_enrichment,
    resolve_webhook_url,
)
from serenity.journals.schemas import (
    JournalCreatedResponse,
    JournalEntryBase,
    JournalEntryCreate,
    JournalWebhookPayload,
    JournalWebhookResult,
)
from serenity.journals.db import (
    apply_enrichment,
    create_journal,
    delete_journal,
    finalize_journal,
    get_journal,
    get_journal_by_id,
    get_user_journals,
)

router = APIRouter(prefix="/journal", tags=["Journals"])
logger = logging.getLogger(__name__)

JOURNAL_LIST_CACHE_CONTROL = "private, s-maxage=30, stale-while-revalidate=60"


@router.get(
    "",
    response_model=List[JournalEntryBase],
    summary="Get all journal entries",
    description="Retrieve the authenticated user's journal entries, newest first.",
    responses={
        200: {"description": "Journal entries retrieved successfully."},
        401: {"description": "Unauthorized."},
        500: {"description": "Failed to retrieve journal entries."},
    },
)
def get_journals_route(
    response: Response,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> List[JournalEntryBase]:
    try:
        journals = get_user_journals(db, user_id, skip, limit)
    except Exception as e:
        logger.error(f"Error fetching journals for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch journal entries")
    response.headers["Cache-Control"] = JOURNAL_LIST_CACHE_CONTROL
    return journals


@router.post(
    "",
    response_model=JournalCreatedResponse,
    summary="Create a new journal",
    description="""
                Create a journal entry with generated tags. The entry is returned in the
                processing state; summary, mood tags and keywords arrive later through the
                enrichment webhook.
                """,
    responses={
        200: {"description": "Journal created and queued for processing."},
        401: {"description": "Unauthorized."},
        500: {"description": "Failed to create journal."},
    },
)
def create_journal_route(
    journal: JournalEntryCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
    ai_service: AIService = Depends(get_ai_service),
):
    logger.info(f"Journal creation started for user {user_id}: content length={len(journal.content)} chars")

    result = ai_service.generate_tags(journal.content)
    if isinstance(result, TagsFallback):
        logger.warning(f"Creating journal without tags for user {user_id}: {result.reason}")
    else:
        logger.info(f"Generated tags: {result.tags}")

    try:
        entry = create_journal(db, journal, user_id, result.tags)
    except Exception as e:
        logger.error(f"Error creating journal for user {user_id}: {e}")
        db.rollback()
        return JSONResponse(status_code=500, content={"error": "Failed to create journal"})

    logger.info(f"Initial journal created with ID: {entry.id}")

    webhook_url = resolve_webhook_url(request.headers.get("host"))
    payload = build_enrichment_payload(entry.id, entry.content, webhook_url, journal.location)
    background_tasks.add_task(dispatch_enrichment, payload)

    return JournalCreatedResponse.model_validate(entry)


@router.post(
    "/webhook",
    response_model=JournalWebhookResult,
    summary="Finalize an enriched journal",
    description="Callback for the journal processing service. Stores the enrichment result once.",
    responses={
        200: {"description": "Journal finalized, or already finalized."},
        401: {"description": "Invalid webhook secret."},
        404: {"description": "Journal not found."},
        500: {"description": "Failed to finalize journal."},
    },
)
def journal_webhook_route(
    data: JournalWebhookPayload,
    x_webhook_secret: str | None = Header(None),
    db: Session = Depends(get_db),
    ai_service: AIService = Depends(get_ai_service),
) -> JournalWebhookResult:
    if config.JOURNAL_WEBHOOK_SECRET and x_webhook_secret != config.JOURNAL_WEBHOOK_SECRET:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    try:
        journal = get_journal_by_id(db, data.journal_id)
        if journal is None:
            raise HTTPException(status_code=404, detail="Journal not found")
        if not journal.is_processing:
            logger.warning(f"Ignoring repeated webhook for already processed journal {journal.id}")
            return JournalWebhookResult(status="already_processed", journal_id=journal.id)

        apply_enrichment(journal, data)
        embedding = compute_embedding(ai_service, journal)
        finalize_journal(db, journal, embedding)
        logger.info(f"Journal {journal.id} finalized (embedding={'yes' if embedding else 'no'})")
        return JournalWebhookResult(status="processed", journal_id=journal.id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error finalizing journal {data.journal_id}: {e}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to finalize journal")


@router.get(
    "/{journal_id}",
    response_model=JournalEntryBase,
    summary="Get a journal by ID",
    responses={
        200: {"description": "Journal retrieved successfully."},
        401: {"description": "Unauthorized."},
        404: {"description": "Journal not found."},
        500: {"description": "Failed to retrieve journal."},
    },
)
def read_journal_route(
    journal_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> JournalEntryBase:
    try:
        journal = get_journal(db, journal_id, user_id)
        if journal is None:
            raise HTTPException(status_code=404, detail="Journal not found")
        return journal
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error retrieving journal {journal_id} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to retrieve journal")


@router.delete(
    "/{journal_id}",
    response_model=Dict[str, str],
    summary="Delete a journal by ID",
    responses={
        200: {"description": "Journal deleted successfully."},
        401: {"description": "Unauthorized."},
        404: {"description": "Journal not found."},
        500: {"description": "Failed to delete journal."},
    },
)
def delete_journal_route(
    journal_id: UUID,
    db: Session = Depends(get_db),
    user_id: UUID = Security(get_current_user_id),
) -> Dict[str, str]:
    try:
        deleted = delete_journal(db, journal_id, user_id)
        if deleted is None:
            raise HTTPException(status_code=404, detail="Journal not found")
        return {"detail": "Journal deleted successfully."}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting journal {journal_id} for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete journal")
