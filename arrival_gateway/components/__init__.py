"""
WebSocket Gateway Components.

Organized into domain-specific modules:
- core/       - Foundational components (constants, log sanitization)
- connection/ - Connection handles and the recipient/observer registry
- events/     - Message value objects and the router
- broadcast/  - Presence snapshots
- endpoints/  - WebSocket endpoints (base, mixins, handlers)
- metrics/    - Observability (collector)

New code should import from specific submodules for clarity.
"""
