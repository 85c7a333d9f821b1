"""
Models Module - Data Models and Type Definitions
=================================================

Provides Pydantic models for type safety, runtime validation, and API responses.

Modules:
    api_models: Messages API response shapes
    transcript_models: Conversation blocks and the session transcript
    tool_models: Typed inputs for the ask tools
    event_models: Ask session stream events
    error_models: Standardized error responses
    schemas: REST response schemas
"""
