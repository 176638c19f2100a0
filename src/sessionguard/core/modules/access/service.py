from sessionguard.core.core import Service
from sessionguard.core.modules.session.models import Role, User
from sessionguard.errors import AccessDeniedError, AuthenticationError


class AccessService(Service):
    def ensure_authenticated(self) -> User:
        """Ensure a user is signed in."""
        snapshot = self.core.services.session.snapshot()
        if not snapshot.is_authenticated or snapshot.user is None:
            raise AuthenticationError("Not signed in")
        return snapshot.user

    def ensure_role(self, *roles: Role) -> User:
        """Ensure the signed-in user holds one of the given roles, raise AccessDeniedError if not."""
        user = self.ensure_authenticated()
        if roles and user.role not in roles:
            raise AccessDeniedError(f"Access denied: role '{user.role}' is not allowed")
        return user
