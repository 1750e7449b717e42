"""HTTP host for the welcome bot.

Exposes the activity endpoint chat channels post to. Replies produced during
the turn are returned in the response body.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import Body, FastAPI, HTTPException

from bot import InvalidActivityError, WelcomeUserBot
from config import configure_logging, get_settings
from state import Activity

logger = logging.getLogger(__name__)


def create_app(bot: Optional[WelcomeUserBot] = None) -> FastAPI:
    """Build the FastAPI app around one bot instance shared by all requests."""

    app = FastAPI(title="ReplyHelper Bot")
    if bot is None:
        bot = WelcomeUserBot(get_settings())

    @app.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    # Sync on purpose: runs in the threadpool while greeting delays sleep.
    @app.post("/api/messages")
    def messages(activity: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        replies: List[Activity] = []
        try:
            bot.on_turn(activity, replies.append)
        except InvalidActivityError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Unhandled error during turn")
            raise HTTPException(status_code=500, detail="The bot encountered an error.") from exc
        return {"activities": replies}

    return app


def run_server() -> None:
    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run_server()
