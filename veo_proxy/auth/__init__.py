from .token_dependency import get_bearer_token, extract_bearer_token

__all__ = ["get_bearer_token", "extract_bearer_token"]
