"""LangGraph application assembly with checkpointed per-conversation memory."""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Optional

from langgraph.checkpoint.sqlite import SqliteSaver
from langgraph.graph import END, StateGraph

from nodes import (
    capture_name_node,
    classify_message_node,
    info_node,
    support_node,
    welcome_message_node,
)
from state import ConversationState

_PROJECT_ROOT = Path(__file__).resolve().parent
_DEFAULT_CHECKPOINT_PATH = _PROJECT_ROOT / "checkpoints" / "bot.sqlite"


def open_checkpointer(checkpoint_path: Optional[os.PathLike[str] | str] = None) -> SqliteSaver:
    """Return a SQLite-backed checkpointer; ``":memory:"`` keeps state in-process."""

    if isinstance(checkpoint_path, str) and checkpoint_path.strip() == ":memory:":
        connection = sqlite3.connect(":memory:", check_same_thread=False)
    else:
        resolved_path = Path(checkpoint_path) if checkpoint_path else _DEFAULT_CHECKPOINT_PATH
        resolved_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(resolved_path, check_same_thread=False)
    return SqliteSaver(connection)


def build_bot_graph(checkpoint_path: Optional[os.PathLike[str] | str] = None):
    """Compile the message-handling graph with Sqlite-backed memory."""

    def classification_node(state: ConversationState) -> ConversationState:
        classify_message_node(state)
        return state

    graph = StateGraph(ConversationState)
    graph.add_node("classify", classification_node)
    graph.add_node("capture_name", capture_name_node)
    graph.add_node("info", info_node)
    graph.add_node("support", support_node)
    graph.add_node("welcome", welcome_message_node)

    graph.set_entry_point("classify")
    graph.add_conditional_edges(
        "classify",
        lambda state: state.get("intent", "welcome"),
        {
            "capture_name": "capture_name",
            "info": "info",
            "support": "support",
            "welcome": "welcome",
        },
    )

    graph.add_edge("capture_name", END)
    graph.add_edge("info", END)
    graph.add_edge("support", END)
    graph.add_edge("welcome", END)

    return graph.compile(checkpointer=open_checkpointer(checkpoint_path))


__all__ = ["open_checkpointer", "build_bot_graph"]
