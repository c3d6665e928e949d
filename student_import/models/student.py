from __future__ import annotations

from dataclasses import dataclass

"""Student record models owned by the record store.

Students are never physically removed: deactivation flips is_active and the
record stays in storage, excluded from duplicate detection.
"""

__all__ = [
    "StudentRecord",
    "NewStudent",
    "GENDER_MALE",
    "GENDER_FEMALE",
]

GENDER_MALE = "Laki-laki"
GENDER_FEMALE = "Perempuan"


@dataclass(frozen=True)
class StudentRecord:
    """Persisted student as returned by the store snapshot."""
    id: str  # internal primary key
    student_id: str  # NIS, external-facing code
    name: str
    class_name: str
    gender: str
    is_active: bool = True


@dataclass(frozen=True)
class NewStudent:
    """Field-set for inserting a new student."""
    student_id: str
    name: str
    class_name: str
    gender: str
    is_active: bool = True

    def as_tuple(self) -> tuple[str, str, str, str, bool]:
        return (self.student_id, self.name, self.class_name, self.gender, self.is_active)
