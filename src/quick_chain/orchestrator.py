"""Tool-orchestration loop for `uses` steps."""

from __future__ import annotations

import logging
from typing import Sequence

from quick_chain.errors import ToolSessionError
from quick_chain.models.tool_descriptor import ToolDescriptor
from quick_chain.provider import ModelClient
from quick_chain.tool_bridge import to_session_tool

DEFAULT_TOOL_GUIDANCE = "Use the supplied tools to assist the user."

logger = logging.getLogger(__name__)


async def execute_tools(
    descriptors: Sequence[ToolDescriptor],
    raw_text: str,
    client: ModelClient,
    *,
    model: str,
    guidance: str | None = None,
) -> str:
    """
    Lets the model call any of the described tools until it answers in plain text.
    Raises ToolSessionError if the session ends without that text.
    """
    names = [descriptor.name for descriptor in descriptors]
    if len(set(names)) != len(names):
        raise ValueError(f"Tool names must be unique, got {names}.")
    tools = [to_session_tool(descriptor) for descriptor in descriptors]
    logger.debug("Starting tool session with tools %s", names)
    final_content = await client.run_tool_session(
        guidance or DEFAULT_TOOL_GUIDANCE,
        raw_text,
        tools,
        model,
    )
    if not final_content:
        raise ToolSessionError("Tool session ended without final content.")
    return final_content
