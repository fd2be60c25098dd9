"""Service layer — record, contact, batch, search, and interchange services.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
