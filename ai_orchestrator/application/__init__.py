"""Application layer: job orchestration services and their composition root."""
