"""
Result envelopes and the in-flight handle returned by every facade call.

A facade call does its work immediately and hands back a `PendingResult`. Awaiting
the handle waits out the simulated network latency and then yields the envelope;
`result()` returns the same envelope straight away. The store has already been
changed by the time the handle exists, so calls take effect in the order they were
made no matter when their handles are awaited.
"""
# healthnet/envelope.py

import asyncio


def success(message: str = None, **payload) -> dict:
    envelope = {"ok": True}
    if message:
        envelope["message"] = message
    envelope.update(payload)
    return envelope


def failure(error) -> dict:
    return {"ok": False, "message": error.message, "error": error.to_dict()}


class PendingResult:
    """An operation that has been applied but whose result is not yet observed."""

    def __init__(self, operation: str, envelope: dict, latency: float = 0.0):
        self.operation = operation
        self._envelope = envelope
        self._latency = latency

    @property
    def ok(self) -> bool:
        return self._envelope["ok"]

    def result(self) -> dict:
        """Returns the envelope without waiting for the simulated latency."""
        return self._envelope

    async def _resolve(self) -> dict:
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        return self._envelope

    def __await__(self):
        return self._resolve().__await__()

    def __repr__(self):
        return f"<PendingResult {self.operation} ok={self.ok}>"
