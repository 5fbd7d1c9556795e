"""Example protected operation: creating money-movement transactions.

- models.py: ``transactions`` table
- schemas.py: request/response bodies (camelCase JSON)
- service.py: create and list queries
- routes.py: ``/api/transactions`` endpoints
"""

from idempotent_create.transactions.routes import router

__all__ = ["router"]
