"""Principal value type and ownership rules for tutors, students and admins."""

from dataclasses import dataclass

from app.models.item_request import ItemRequest
from app.models.user import User, UserRole
from app.services.errors import PermissionDeniedError


@dataclass(frozen=True)
class Principal:
    """Authenticated caller identity handed to every core operation."""

    user_id: int
    role: str

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(user_id=user.id, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_tutor(self) -> bool:
        return self.role == UserRole.TUTOR

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT


def ensure_manages_student(principal: Principal, student: User) -> None:
    """Admins manage every student; tutors only their assigned students."""
    if principal.is_admin:
        return
    if principal.is_tutor and student.tutor_id == principal.user_id:
        return
    raise PermissionDeniedError("Student not assigned to this tutor")


def ensure_can_process(principal: Principal, request: ItemRequest) -> None:
    """Only an admin or the request's tutor may approve or reject it."""
    if principal.is_admin:
        return
    if principal.is_tutor and request.tutor_id == principal.user_id:
        return
    raise PermissionDeniedError("This request belongs to another tutor")


def ensure_can_view(principal: Principal, request: ItemRequest) -> None:
    if principal.is_admin:
        return
    if principal.is_tutor and request.tutor_id == principal.user_id:
        return
    if principal.is_student and request.student_id == principal.user_id:
        return
    raise PermissionDeniedError("Unauthorized to view this request")
