"""Business services: batch planning and the manufacture order lifecycle."""
