"""
Services layer - Business logic goes here.
Keep services focused on one part of the report lifecycle.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services receive their collaborators explicitly (see container.py)
- Trust scores change only through the trust ledger
- Report read-modify-write goes through the report store lock
"""
