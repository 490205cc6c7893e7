# portal/models/user.py
from flask_login import UserMixin

ROLES = ("client", "agent", "admin")

DASHBOARDS = {
    "client": "client.dashboard",
    "agent": "agent.dashboard",
    "admin": "admin.dashboard",
}


def _as_flag(val) -> bool:
    if isinstance(val, str):
        return val.strip().lower() in {"1", "true", "yes", "on"}
    return bool(val)


class SessionUser(UserMixin):
    """The signed-in identity as issued by the backend; never persisted here."""

    def __init__(self, id, name="", email="", role="client", status="Active",
                 phone="", company="", pending_approval=False):
        self.id = str(id)
        self.name = name or ""
        self.email = email or ""
        self.role = (role or "client").lower()
        self.status = status or "Active"
        self.phone = phone or ""
        self.company = company or ""
        self.pending_approval = bool(pending_approval)

    @classmethod
    def from_api(cls, data: dict) -> "SessionUser":
        return cls(
            id=data.get("id", ""),
            name=data.get("fullName") or data.get("name") or "",
            email=data.get("email") or "",
            role=data.get("role") or "client",
            status=data.get("status") or "Active",
            phone=data.get("mobile") or data.get("phone") or "",
            company=data.get("companyName") or data.get("company") or "",
            pending_approval=_as_flag(data.get("pendingApproval")),
        )

    def to_session(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "phone": self.phone,
            "company": self.company,
            "pending_approval": self.pending_approval,
        }

    @classmethod
    def from_session(cls, data: dict) -> "SessionUser":
        return cls(**{k: data.get(k) for k in (
            "id", "name", "email", "role", "status", "phone", "company", "pending_approval")})

    @property
    def is_active(self):
        # flask_login refuses login_user() for inactive accounts
        return self.status == "Active" and not self.pending_approval

    @property
    def dashboard_endpoint(self) -> str:
        return DASHBOARDS.get(self.role, "main.index")

    def has_role(self, *roles) -> bool:
        return self.role in roles

    def __repr__(self):
        return f"<SessionUser {self.id} {self.role}>"
