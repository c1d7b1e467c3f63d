# presence_gateway/core/__init__.py
"""
Core application modules.
Contains the presence gateway components:
- protocol: Wire envelope decoding and encoding
- registry: In-memory session registry (user -> live connection)
- heartbeat: Periodic sweep evicting sessions with expired heartbeats
- gateway: Wiring of the components and inbound frame handling
- db: Tortoise ORM configuration for the account store
"""
