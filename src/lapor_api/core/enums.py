"""Enumerated domain values shared by models, schemas, and services."""

import enum


class UserRole(enum.StrEnum):
    """Roles carried by every user record and access token."""

    ADMIN = "admin"
    WARGA = "warga"


class Divisi(enum.StrEnum):
    """Handling divisions an admin belongs to and a report is routed to."""

    KEBERSIHAN = "kebersihan"
    KESEHATAN = "kesehatan"
    FASILITAS_UMUM = "fasilitas umum"
    KRIMINALITAS = "kriminalitas"


class LaporanStatus(enum.StrEnum):
    """Lifecycle status of a report. New reports always start as pending."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class LaporanTipe(enum.StrEnum):
    """Visibility of a report.

    ``publik`` reports appear in the public listing, ``private`` ones only to
    their author and admins, and ``anonim`` ones carry no user reference.
    """

    PUBLIK = "publik"
    PRIVATE = "private"
    ANONIM = "anonim"


def enum_values(enum_cls: type[enum.StrEnum]) -> list[str]:
    """Return the string values of a StrEnum in declaration order."""
    return [member.value for member in enum_cls]
