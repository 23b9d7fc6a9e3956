"""Page bitmap preprocessing for text recognition."""
