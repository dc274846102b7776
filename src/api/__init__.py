"""HTTP API layer with FastAPI for the VATCalc site.

Key components:
- **main**: Application factory and lifecycle management
- **routes**: Settings administration, public site content and calculator
- **middleware**: Correlation IDs, request logging, maintenance gate and
  centralized error handling
- **schemas**: Pydantic request and response models
- **utils**: orjson response class
"""
