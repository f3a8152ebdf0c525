"""
Storage Package.

This package manages all ledger persistence.

Modules:
- database: Engine, session factory and transaction scope
- models/: ORM tables of the persisted layout
- repositories/: Data access layer
"""
