from .auth import AuthService
from .firebase import FirebaseAuthProvider

__all__ = ["AuthService", "FirebaseAuthProvider"]
