"""Single-player quiz sessions with resumable progress."""
