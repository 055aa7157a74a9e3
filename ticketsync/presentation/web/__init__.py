"""
Web presentation layer for ticketsync.

Architectural Intent:
- Receives ConnectWise and PagerDuty webhooks over HTTP
- Exposes the manual sync and last-event debug endpoints
- Uses Python stdlib only (http.server + asyncio)
"""
