from .http import Auth, BasicAuth, HttpClient, HttpError

__all__ = ["Auth", "BasicAuth", "HttpClient", "HttpError"]
