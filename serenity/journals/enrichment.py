"""
Dispatch of journal content to the external processing service.

The processing service analyses the text and later calls back
``POST /journal/webhook`` with the summary, mood tags, keywords and sentences.
Dispatch is best-effort: the journal already exists in the processing state,
so every failure here is logged and swallowed.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import requests

import serenity.core.config as config
from serenity.ai.ai_service import AIService
import serenity.ai.prompts as prompts
from serenity.journals.models import JournalEntry

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/journal/webhook"


def resolve_webhook_url(host: Optional[str], environment: Optional[str] = None) -> str:
    """
    Returns the callback URL the processing service should post results to.

    In development the service cannot reach localhost, so DEV_WEBHOOK_URL (a
    public tunnel) is used when set; otherwise the URL is derived from the
    request's Host header.
    """
    environment = environment or config.ENVIRONMENT
    if environment == "development":
        if config.DEV_WEBHOOK_URL:
            return config.DEV_WEBHOOK_URL
        logger.warning("DEV_WEBHOOK_URL not set; the processing service may not reach the webhook")
    scheme = "https" if environment == "production" else "http"
    return f"{scheme}://{host or 'localhost:8000'}{WEBHOOK_PATH}"


def location_name(location: Optional[Dict[str, Any]]) -> Optional[str]:
    if not location:
        return None
    return location.get("placeName") or config.DEFAULT_PLACE_NAME


def build_enrichment_payload(
    journal_id: UUID, content: str, webhook_url: str, location: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "text": content,
        "journal_id": str(journal_id),
        "webhook_url": webhook_url,
        "location": location_name(location),
    }


def dispatch_enrichment(
    payload: Dict[str, Any], api_url: Optional[str] = None, timeout: Optional[float] = None
) -> bool:
    """
    Sends one request to the journal processing service.

    Args:
        payload (dict): Body built by `build_enrichment_payload`.
        api_url (str): Base URL of the processing service. Defaults to config.
        timeout (float): Seconds before the request is aborted. Defaults to config.

    Returns:
        bool: True when the service accepted the job with a 200.
    """
    api_url = api_url or config.JOURNAL_PROCESSING_API_URL
    timeout = timeout or config.ENRICHMENT_TIMEOUT_SECONDS
    journal_id = payload.get("journal_id")

    if not api_url:
        logger.warning(f"JOURNAL_PROCESSING_API_URL not set; journal {journal_id} stays in processing")
        return False

    url = f"{api_url.rstrip('/')}/journal-async"
    logger.info(f"Dispatching journal {journal_id} to {url}")
    try:
        resp = requests.post(url, json=payload, timeout=timeout)
    except requests.Timeout:
        logger.error(f"Request to processing service timed out after {timeout} seconds for journal {journal_id}")
        return False
    except requests.RequestException as e:
        logger.error(f"Failed to send journal {journal_id} to processing service: {e}")
        return False

    if resp.status_code != 200:
        logger.error(
            f"Processing service returned status {resp.status_code} for journal {journal_id}: {resp.text[:500]}"
        )
        return False

    logger.info(f"Processing service accepted journal {journal_id}: {resp.text[:100]}")
    return True


def embedding_text(journal: JournalEntry) -> str:
    return prompts.EMBEDDING_TEXT_TEMPLATE.format(
        title=journal.title or "",
        content=journal.content,
        summary=journal.summary or "",
        mood_tags=", ".join(journal.mood_tags or []),
        keywords=", ".join(journal.keywords or []),
        song=journal.song or "",
        tags=", ".join(journal.tags or []),
    ).strip()


def compute_embedding(ai_service: AIService, journal: JournalEntry) -> Optional[List[float]]:
    """Embedding of the enriched entry, or None when the embedding call fails."""
    try:
        return ai_service.embed(embedding_text(journal))
    except Exception as e:
        logger.warning(f"Embedding failed for journal {journal.id}: {e}")
        return None
