import hashlib
import hmac


def generate_appsecret_proof(*, access_token: str, app_secret: str) -> str:
    """
    Sign an access token with the app secret.

    Parameters
    ----------
    access_token : str
        Token sent with the request.
    app_secret : str
        Application secret used as the HMAC key.

    Returns
    -------
    str
        Hex-encoded HMAC-SHA256 digest expected in ``appsecret_proof``.
    """
    return hmac.new(
        key=app_secret.encode("utf-8"),
        msg=access_token.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()
