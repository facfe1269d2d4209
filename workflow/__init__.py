"""Call lifecycle, upsell ledger and bulk import for the telesales CRM.

- call_states: status transitions and display labels (pure)
- timer: elapsed-time helpers (pure)
- ledger: original vs new order bookkeeping (pure)
- actions: persisted agent actions, each appending call history
- importer: CSV rows -> call records with round-robin assignment
"""
