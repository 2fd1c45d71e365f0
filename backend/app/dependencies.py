"""Request-scoped dependencies beyond the database session."""
from fastapi import Request

from app.services.undo_buffer import DeleteUndoBuffer


def get_undo_buffer(request: Request) -> DeleteUndoBuffer:
    """The process-wide undo buffer created in app.main and kept on app.state."""
    return request.app.state.undo_buffer
