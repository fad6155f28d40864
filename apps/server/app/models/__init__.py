"""ORM model exports."""

from .admin import Admin
from .mentee import Mentee
from .mentor import Mentor
from .user import User, UserType

__all__ = [
	"Admin",
	"Mentee",
	"Mentor",
	"User",
	"UserType",
]
