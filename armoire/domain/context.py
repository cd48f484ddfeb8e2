# armoire/domain/context.py
from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Uwierzytelniony uzytkownik biezacego requestu, przekazywany jawnie do serwisow."""

    user_id: int
    role: str = "USER"

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"
