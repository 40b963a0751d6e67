"""app.integrations: External service gateway modules.

All outbound HTTP calls to third-party APIs must go through a gateway in
this package, never via bare `requests` calls in services.

Every call is:
  - Authenticated (API key injected by the gateway)
  - Retried with exponential backoff where the operation allows it
  - Classified into a typed error taxonomy
  - Recorded as an audit entry

Current gateways:
  sohar_port.SoharPortClient: Sohar Port gate-pass API (real + mock backends)
"""
