"""
Customer-facing approval endpoints.

No login: each route is gated by an unguessable per-quote token carried in
the URL. Responses use the storefront envelope {"ok": true, "data": ...}.
"""
