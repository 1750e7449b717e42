"""Hero card payloads and activity builders."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from state import Activity

HERO_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.hero"

_CARD_IMAGE_URL = "https://aka.ms/bf-welcome-card-image"
_CARD_TEXT = "These are the top support items for you today."
_CARD_LINKS = (
    (
        "Investor Solutions",
        "https://docs.microsoft.com/en-us/azure/bot-service/?view=azure-bot-service-4.0",
    ),
    (
        "Creative Financial Advisory",
        "https://stackoverflow.com/questions/tagged/botframework",
    ),
    (
        "Alpha Advisory",
        "https://docs.microsoft.com/en-us/azure/bot-service/bot-builder-howto-deploy-azure?view=azure-bot-service-4.0",
    ),
)


def _open_url_action(title: str, url: str) -> Dict[str, str]:
    return {
        "type": "openUrl",
        "title": title,
        "text": title,
        "displayText": title,
        "value": url,
    }


def build_intro_card(today: Optional[date] = None) -> Dict[str, Any]:
    """Return the intro hero card attachment, titled after the current weekday."""

    day = today or date.today()
    return {
        "contentType": HERO_CARD_CONTENT_TYPE,
        "content": {
            "title": f"Happy {day.strftime('%A')}!",
            "text": _CARD_TEXT,
            "images": [{"url": _CARD_IMAGE_URL}],
            "buttons": [_open_url_action(title, url) for title, url in _CARD_LINKS],
        },
    }


def text_activity(text: str) -> Activity:
    return {"type": "message", "text": text}


def attachment_activity(attachment: Dict[str, Any]) -> Activity:
    return {"type": "message", "attachments": [attachment]}


def render_activity_text(activity: Activity) -> str:
    """Flatten an outgoing activity into plain text for console hosts."""

    lines = []
    if activity.get("text"):
        lines.append(activity["text"])
    for attachment in activity.get("attachments", []):
        content = attachment.get("content", {})
        if content.get("title"):
            lines.append(f"[{content['title']}]")
        if content.get("text"):
            lines.append(content["text"])
        for button in content.get("buttons", []):
            lines.append(f"  - {button.get('title', '')}: {button.get('value', '')}")
    return "\n".join(lines)


__all__ = [
    "HERO_CARD_CONTENT_TYPE",
    "build_intro_card",
    "text_activity",
    "attachment_activity",
    "render_activity_text",
]
