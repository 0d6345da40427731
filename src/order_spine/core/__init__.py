"""
Core primitives shared by every layer of the order service.

Modules:
    errors      ─ typed error hierarchy with retry semantics
    models      ─ Order input and persisted OrderRecord
    protocols   ─ OrderStore / CartClient contracts
    hashing     ─ record-key derivation for submitted orders
    pagination  ─ in-memory page slicing over ordered results
    timestamps  ─ ISO-8601 UTC helpers and display dates
    logging     ─ structlog configuration and context binding
    settings    ─ pydantic-settings configuration
    health      ─ health endpoints over pipeline state
"""
