"""
Roulette Feed Service
=====================

Poller, spin ledger, pattern store, snapshot persistence and live
WebSocket fan-out.

Components:
- tasks: feed client, normalizer and the fixed-interval poller
- store: ledger (dedup + bounded retention) and pattern store (merge)
- persistence: JSON snapshot document
- realtime: broadcast hub for WebSocket subscribers
- routers: FastAPI endpoints
"""
