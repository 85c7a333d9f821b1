"""
Integrations Module - External System Integrations
===================================================

Modules:
    messages_api: Async client for the model's Messages endpoint
"""
