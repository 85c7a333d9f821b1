"""
Core Layer - Configuration, Channel Tree and Prompts
====================================================

Modules:
    constants: Configuration values, limits, and Pydantic settings validation
    channels: Channel discovery and lookup over the log roots
    exceptions: Tool and model API error taxonomy
    prompts: System instructions and the channel listing shown to the model
"""
