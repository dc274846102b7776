"""VATCalc - marketing site backend with a live-synchronized settings store.

Architecture Overview:
- **API Layer**: FastAPI routes for the calculator, site content and the
  settings administration, plus a server-sent event stream
- **Core Layer**: Configuration, logging, tracing, exceptions and the
  timeout helpers shared by every layer
- **Domain Layer**: The site settings aggregate, its synchronizer and the
  VAT arithmetic
- **Infrastructure Layer**: Settings stores (memory, JSON document, row per
  field) and the local fallback file
"""
