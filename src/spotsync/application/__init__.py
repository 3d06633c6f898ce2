"""Application layer: playlist services and the undo store."""
