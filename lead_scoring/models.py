"""
Lead and conversation types shared by the lead scoring components.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class LeadValidationError(ValueError):
    """Raised when a turn carries malformed lead data."""


class CreditType(Enum):
    """Consortium categories offered on the intake form."""
    IMOVEL = "IMÓVEL"
    AUTO = "AUTO"
    NEGOCIO = "NEGÓCIO"
    EDUCACAO = "EDUCAÇÃO"

    @property
    def label(self) -> str:
        return _CREDIT_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> "CreditType":
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            raise LeadValidationError(f"Unknown credit type: {value!r}")


_CREDIT_LABELS = {
    CreditType.IMOVEL: "imóvel",
    CreditType.AUTO: "automóvel",
    CreditType.NEGOCIO: "negócio",
    CreditType.EDUCACAO: "educação",
}


class TurnRole(Enum):
    """Author of a conversation turn."""
    LEAD = "user"
    AGENT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message of the guided conversation."""
    role: TurnRole
    content: str

    @property
    def is_lead(self) -> bool:
        return self.role == TurnRole.LEAD

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Turn":
        return cls(role=TurnRole(data["role"]), content=data.get("content") or "")


def lead_texts(turns: List[Turn]) -> List[str]:
    """Texts authored by the lead, in order."""
    return [t.content for t in turns if t.is_lead]


@dataclass(frozen=True)
class LeadIdentity:
    """Stable key correlating the turns of one conversation."""
    email: str
    phone: str

    @property
    def key(self) -> str:
        return f"{self.email}-{self.phone}"


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


@dataclass
class LeadData:
    """Contact fields submitted with the intake form."""
    name: str
    email: str
    phone: str
    credit_type: CreditType
    message: Optional[str] = None

    @property
    def identity(self) -> LeadIdentity:
        return LeadIdentity(email=self.email, phone=self.phone)

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0]

    def validate(self):
        """Reject lead data missing a required contact field."""
        missing = [
            name for name in ("name", "email", "phone")
            if not (getattr(self, name) or "").strip()
        ]
        if missing:
            raise LeadValidationError(f"Missing required lead fields: {', '.join(missing)}")
        if not isinstance(self.credit_type, CreditType):
            raise LeadValidationError(f"Unknown credit type: {self.credit_type!r}")
        if not EMAIL_PATTERN.match(self.email):
            raise LeadValidationError(f"Invalid email: {self.email}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "credit_type": self.credit_type.value,
            "message": self.message,
        }
