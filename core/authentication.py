from rest_framework.authentication import TokenAuthentication


class BearerTokenAuthentication(TokenAuthentication):
    """
    Token authentication reading ``Authorization: Bearer <key>``.

    Token issuance lives outside this service; only verification happens here.
    """
    keyword = 'Bearer'


def actor_type(user) -> str:
    """Audit actor discriminator for a request user."""
    return 'Admin' if getattr(user, 'is_staff', False) else 'User'


def actor_name(user) -> str:
    if user is None:
        return 'System'
    full_name = user.get_full_name() if hasattr(user, 'get_full_name') else ''
    return full_name or user.get_username() or actor_type(user)
