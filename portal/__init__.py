"""
TaxDesk — Admin Portal Backend Package (v1.4.0)

Architecture:
  portal/
  ├── config/     — Constants, feature flags, role matrix, directory columns
  ├── db/         — Database abstraction, per-user preference store
  ├── auth/       — JWT, bcrypt, role levels, tenant context
  ├── search/     — Search box operator parsing (=, ^, @, $) and record matching
  ├── filtering/  — One-pass directory filter evaluator + filter pills
  ├── columns/    — Column visibility state with best-effort persistence
  ├── export/     — CSV/TSV export of filtered users, filename convention
  ├── bulk/       — Bulk role/status/department changes with dry-run preview
  ├── members/    — Team member form validation
  ├── invoices/   — Billing invoice listing
  └── server.py   — FastAPI routing layer

Each module is self-contained with clear imports and no circular dependencies.
"""
