"""Page rasterization, text recognition, and document assembly."""
