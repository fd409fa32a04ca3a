"""Route modules mounted by :func:`rag_service.api.main.create_app`."""
