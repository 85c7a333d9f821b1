"""
Utilities Module - Logging, HTTP clients, Metrics and Log Files
===============================================================

Modules:
    logger: Console and JSON file logging
    http_logger: httpx request/response logging hooks
    client_factory: httpx client creation with model-call timeouts
    metrics: Prometheus metrics
    log_files: Dated log file listing and reading (plain or zstd)
"""
