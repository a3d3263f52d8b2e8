from dataclasses import dataclass

ADMIN_ROLE = "ADMIN"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as asserted by the upstream auth layer."""

    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role.upper() == ADMIN_ROLE
