from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
import logging

logger = logging.getLogger(__name__)


class CustomJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that rejects disabled or soft-deleted accounts and
    carries the role claim onto the user object.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)

        if not user.is_active or getattr(user, 'is_deleted', False):
            logger.warning(f"Inactive user attempted authentication: {user.email}")
            raise InvalidToken("User account is disabled")

        user.role = validated_token.get("role", getattr(user, "role", None))
        logger.debug(f"Authenticated {user.email} (role: {user.role})")
        return user
