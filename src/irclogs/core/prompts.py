"""
System prompt for the ask assistant.
The base instructions are followed by a live listing of searchable channels.
"""

from __future__ import annotations

from irclogs.core.channels import ChannelTree

# Assistant System Instructions
SYSTEM_INSTRUCTIONS = """\
You are an IRC log search assistant. Search IRC logs using tools and compile relevant excerpts into an output document.

Workflow:
1. Use display to tell the user what you're searching for
2. Use search to find relevant messages (use n first to gauge volume, then C for context)
3. Use copy to include relevant log lines in the output
4. Use output to add titles, separators, and factual summaries
5. Use done to save and finish -- you MUST always call done to produce a result

Rules:
- Only retrieve and summarize IRC log content
- Summaries must be grounded in the log data -- no speculation
- If the query is unrelated to IRC log search, call abort immediately
- NEVER respond with just text -- always produce an output document via done
- Format all output text as markdown (headings, lists, code blocks for log excerpts)
"""

CHANNELS_HEADER = "\nAvailable channels:\n"


def render_channel_listing(channels: ChannelTree) -> str:
    """One ``- path (first to last, N files)`` line per searchable channel with logs."""
    lines = []
    for channel in channels.iter_channels():
        if not channel.is_public:
            continue
        dates = channel.dates()
        if dates:
            lines.append(f"- {channel.path} ({dates[0]} to {dates[-1]}, {len(dates)} files)\n")
    return "".join(lines)


def build_system_prompt(channels: ChannelTree, base_instructions: str | None = None) -> str:
    """Build the system prompt sent with every model request.

    Args:
        channels: Channel tree to list
        base_instructions: Operator override for the built-in instructions

    Returns:
        Instructions followed by the channel listing
    """
    base = base_instructions if base_instructions is not None else SYSTEM_INSTRUCTIONS
    return base + CHANNELS_HEADER + render_channel_listing(channels)
