"""Packet encryption, retry policies, error types and event dispatch for a voice connection driver."""

__version__ = "0.1.0"
__all__ = ["crypto", "retry", "errors", "events", "event_store", "context"]