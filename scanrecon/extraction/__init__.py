"""Field extraction through an LLM chat-completion service."""
