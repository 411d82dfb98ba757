from __future__ import annotations

import logging
from typing import Iterable

from werkzeug.security import check_password_hash

from app.company import company_id_candidates
from app.db import is_integrity_error
from app.domain.contracts import AuthLoginInput, AuthRegisterInput, AuthUser
from app.errors import ConflictError, ValidationError
from app.infrastructure.repositories.carrier_repository import CarrierRepository
from app.infrastructure.repositories.company_repository import CompanyRepository
from app.infrastructure.repositories.profile_repository import ProfileRepository
from app.policies import normalize_role


LOGGER = logging.getLogger("cotafrete.auth")
SELF_SERVICE_ROLES = {"CLIENTE", "TRANSPORTADOR"}


class AuthService:
    def __init__(
        self,
        profiles: ProfileRepository | None = None,
        companies: CompanyRepository | None = None,
        carriers: CarrierRepository | None = None,
    ) -> None:
        self.profiles = profiles or ProfileRepository()
        self.companies = companies or CompanyRepository()
        self.carriers = carriers or CarrierRepository()

    def login(self, db, auth_input: AuthLoginInput, raw_users: object) -> AuthUser | None:
        email = (auth_input.email or "").strip().lower()
        password = auth_input.password or ""
        if not email or not password:
            return None

        profile = self.profiles.find_by_email(db, email)
        if profile:
            if check_password_hash(profile["password_hash"], password):
                return self._to_auth_user(profile)
            return None

        for user in self._parse_users(raw_users):
            if user["email"] == email and user["password"] == password:
                return self._bootstrap_user(db, user)
        return None

    def register(self, db, auth_input: AuthRegisterInput) -> AuthUser:
        email = (auth_input.email or "").strip().lower()
        password = auth_input.password or ""
        full_name = (auth_input.full_name or "").strip() or None
        company_name = (auth_input.company_name or "").strip() or None
        carrier_name = (auth_input.carrier_name or "").strip() or None

        if not email or not password:
            raise ValidationError(code="credentials_required", http_status=400, critical=False)

        role = normalize_role(auth_input.role or "CLIENTE")
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError(code="role_invalid", http_status=400, critical=False)
        if role == "CLIENTE" and not company_name:
            raise ValidationError(code="company_name_required", http_status=400, critical=False)
        if role == "TRANSPORTADOR" and not carrier_name:
            raise ValidationError(code="carrier_name_required", http_status=400, critical=False)

        if self.profiles.email_exists(db, email):
            raise ConflictError(code="email_already_registered", http_status=409, critical=False)

        company_id = self._claim_company(db, company_name) if role == "CLIENTE" else None

        try:
            user_id = self.profiles.create_profile(
                db,
                email=email,
                password=password,
                full_name=full_name,
                role=role,
                company_id=company_id,
            )
        except Exception as exc:
            if is_integrity_error(exc):
                raise ConflictError(code="email_already_registered", http_status=409, critical=False) from exc
            raise

        carrier_id = None
        if role == "TRANSPORTADOR":
            carrier_id = self.carriers.create_carrier(db, name=carrier_name, owner_user_id=user_id)

        LOGGER.info("user_registered", extra={"user_id": user_id, "role": role, "company_id": company_id})
        return AuthUser(
            user_id=user_id,
            email=email,
            display_name=full_name or email.split("@")[0],
            role=role,
            company_id=company_id,
            carrier_id=carrier_id,
        )

    def _claim_company(self, db, company_name: str) -> str:
        """A self-registered client always gets a company of its own."""
        for company_id in company_id_candidates(company_name):
            if self.companies.create_company(db, company_id, company_name):
                return company_id
        raise ConflictError(code="company_already_registered", http_status=409, critical=False)

    def profile_payload(self, db, user_id: int) -> dict | None:
        profile = self.profiles.get_by_id(db, user_id)
        if not profile:
            return None
        profile.pop("password_hash", None)
        return profile

    def _bootstrap_user(self, db, user: dict) -> AuthUser:
        """Give an APP_USERS entry a real profile row on first login."""
        role = user["role"]
        company_id = user["company_id"] if role != "TRANSPORTADOR" else None
        if company_id:
            self.companies.ensure_company(db, company_id, f"Empresa {company_id}")
        user_id = self.profiles.create_profile(
            db,
            email=user["email"],
            password=user["password"],
            full_name=user["display_name"],
            role=role,
            company_id=company_id,
        )
        if role == "TRANSPORTADOR":
            self.carriers.create_carrier(db, name=user["display_name"], owner_user_id=user_id)
        LOGGER.info("bootstrap_user_created", extra={"user_id": user_id, "role": role})
        return self._to_auth_user(self.profiles.get_by_id(db, user_id))

    @staticmethod
    def _to_auth_user(profile: dict) -> AuthUser:
        email = profile["email"]
        carrier_id = profile.get("carrier_id")
        return AuthUser(
            user_id=int(profile["id"]),
            email=email,
            display_name=profile.get("full_name") or email.split("@")[0],
            role=normalize_role(profile.get("role")),
            company_id=profile.get("company_id"),
            carrier_id=int(carrier_id) if carrier_id else None,
        )

    @staticmethod
    def _parse_users(raw_users: object) -> Iterable[dict]:
        if not raw_users:
            return []
        if isinstance(raw_users, str):
            entries = []
            for chunk in raw_users.replace("\n", ",").replace(";", ",").split(","):
                entry = chunk.strip()
                if entry:
                    entries.append(entry)
        elif isinstance(raw_users, (list, tuple, set)):
            entries = [str(item).strip() for item in raw_users if str(item).strip()]
        else:
            return []

        users = []
        for entry in entries:
            parts = [part.strip() for part in entry.split(":")]
            if len(parts) < 3:
                continue
            email, password, company_id = parts[0].lower(), parts[1], parts[2]
            display_name = parts[3] if len(parts) > 3 and parts[3] else email.split("@")[0]
            role = normalize_role(parts[4] if len(parts) > 4 else "CLIENTE", default="CLIENTE")
            users.append(
                {
                    "email": email,
                    "password": password,
                    "company_id": company_id,
                    "display_name": display_name,
                    "role": role,
                }
            )
        return users
