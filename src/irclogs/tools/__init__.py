"""
Tools Module - Ask Assistant Tools
==================================

Modules:
    registry: Tool definitions sent to the model
    dispatch: Runs parsed tool calls against the channel tree and output buffer
    search: Regex search over a channel's dated logs
    line_spec: Line selection parser for the copy tool
    output_buffer: Per-session output buffer and artifact writing
"""
