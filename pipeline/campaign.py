from datetime import datetime, timezone
from typing import Any, List, Optional
from loguru import logger

from pipeline.normalize import as_int, as_text, decode_payload, dig
from pipeline.state import EmailCampaignResult, LeadershipContact, SendResult, SEND_STATUSES


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def synthesize_results(contacts: List[LeadershipContact], timestamp: str) -> List[SendResult]:
    """One 'sent' entry per contact, assuming full success."""
    return [
        {
            "recipient_email": contact["email"],
            "recipient_name": contact["name"],
            "status": "sent",
            "timestamp": timestamp,
        }
        for contact in contacts
    ]


def normalize_send_result(item: Any, timestamp: str) -> Optional[SendResult]:
    if not isinstance(item, dict):
        return None

    status = as_text(item.get("status"))
    status = status.lower() if status else "sent"
    if status not in SEND_STATUSES:
        logger.warning(f"Unknown send status '{status}', recording as failed")
        status = "failed"

    result: SendResult = {
        "recipient_email": as_text(item.get("recipient_email")) or "",
        "recipient_name": as_text(item.get("recipient_name")) or "",
        "status": status,
        "timestamp": as_text(item.get("timestamp")) or timestamp,
    }
    error = as_text(item.get("error"))
    if error:
        result["error"] = error
    return result


def aggregate(payload: Any, selected_contacts: List[LeadershipContact], preview_text: str) -> EmailCampaignResult:
    """
    Merge what the outreach agent reported with locally synthesized fallbacks.

    Agent-supplied counts and results are used as reported; anything missing
    assumes every selected contact was sent. Reported counts are not
    reconciled against the number of selected contacts.

    Args:
        payload: Raw outreach agent response
        selected_contacts: Contacts the campaign was sent to
        preview_text: Representative email body sent to the agent

    Returns:
        Complete EmailCampaignResult
    """
    data = decode_payload(payload)
    if not isinstance(data, dict):
        data = {}

    timestamp = _now_iso()
    recipients = len(selected_contacts)
    defaulted: List[str] = []

    total = as_int(dig(data, "campaign_summary", "total_recipients"))
    if total is None:
        defaulted.append("total_recipients")
        total = recipients

    sent = as_int(dig(data, "campaign_summary", "successfully_sent"))
    if sent is None:
        defaulted.append("successfully_sent")
        sent = recipients

    failed = as_int(dig(data, "campaign_summary", "failed"))
    if failed is None:
        defaulted.append("failed")
        failed = 0

    preview_out = as_text(data.get("email_preview"))
    if preview_out is None:
        defaulted.append("preview_text")
        preview_out = preview_text

    raw_results = data.get("send_results")
    if isinstance(raw_results, list):
        per_recipient = [
            result for result in
            (normalize_send_result(item, timestamp) for item in raw_results)
            if result is not None
        ]
    else:
        defaulted.append("per_recipient")
        per_recipient = synthesize_results(selected_contacts, timestamp)

    if defaulted:
        logger.info(f"Campaign result synthesized for: {defaulted}")

    return {
        "total_recipients": total,
        "successfully_sent": sent,
        "failed": failed,
        "preview_text": preview_out,
        "per_recipient": per_recipient,
        "defaulted_fields": defaulted,
    }
