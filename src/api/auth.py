import hmac

from fastapi import Header, HTTPException, Request


def verify_api_key(request: Request, x_api_key: str = Header(...)) -> str:
    """Validates API key from X-API-Key header."""
    api_key = request.app.state.settings.api.key

    if not api_key:
        raise HTTPException(status_code=500, detail="API_KEY not configured")

    if not hmac.compare_digest(x_api_key, api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")
    return x_api_key
