"""
Firewall Service package for the request firewall.

This package decides whether incoming HTTP requests are granted, denied or
left to further processing. It provides:

- app.firewall: Rules, firewalls, strategies and the firewall map.
- app.middleware: Starlette/FastAPI middleware adapter.
- app.main: Service wiring (settings, logging, metrics, routes).

Guidelines:
- Evaluation is synchronous and deterministic: insertion order decides.
- Configuration errors surface while building, never during a request.
- The core never writes to a transport; handlers record the outcome.
"""
