"""Identity-token verification.

Two issuers are supported:

* ``firebase``: Firebase Authentication ID tokens, verified by the
  ``firebase_admin`` SDK for the configured project.
* ``local``: HS256 tokens signed with ``SECRET_KEY``; used for local
  development and the test-suite, minted with :func:`create_identity_token`.

Both return a :class:`VerifiedIdentity`; nothing here touches the database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from .config import settings
from .logging_utils import log_event, log_warning

LOCAL_ISSUER = "eventhall-local"
LOCAL_AUDIENCE = "eventhall"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class IdentityVerificationError(Exception):
    """The token is missing, malformed, expired or signed by someone else."""


class IdentityProviderUnavailable(Exception):
    """The provider's signing keys could not be fetched."""


@dataclass(frozen=True)
class VerifiedIdentity:
    uid: str
    email: Optional[str]
    name: Optional[str] = None
    picture: Optional[str] = None


def _identity_from_claims(claims: dict) -> VerifiedIdentity:
    uid = claims.get("sub") or claims.get("uid")
    if not uid:
        raise IdentityVerificationError("Token has no subject")
    email = claims.get("email")
    return VerifiedIdentity(
        uid=str(uid),
        email=str(email).strip() if email else None,
        name=claims.get("name"),
        picture=claims.get("picture"),
    )


class IdentityVerifier:
    provider = "base"

    def verify(self, token: str) -> VerifiedIdentity:
        raise NotImplementedError

    def describe(self) -> dict:
        return {"provider": self.provider}


class LocalIdentityVerifier(IdentityVerifier):
    provider = "local"

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self.secret_key = secret_key
        self.algorithm = algorithm

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=LOCAL_AUDIENCE,
                issuer=LOCAL_ISSUER,
            )
        except ExpiredSignatureError:
            raise IdentityVerificationError("Token expired")
        except JWTError as exc:
            raise IdentityVerificationError(f"Invalid token: {exc}")
        return _identity_from_claims(claims)

    def describe(self) -> dict:
        return {"provider": self.provider, "secret_key": "set" if self.secret_key else "missing"}


class FirebaseIdentityVerifier(IdentityVerifier):
    """Checks Firebase ID tokens through the Admin SDK.

    Signature, issuer, audience, expiry and ``auth_time`` checks as well as
    signing-certificate caching all happen inside ``firebase_admin.auth``.
    Without a service-account key the app falls back to application default
    credentials, which token verification does not need.
    """

    provider = "firebase"

    def __init__(self, project_id: str, client_email: Optional[str] = None, private_key: Optional[str] = None):
        self.project_id = project_id
        self.uses_service_account = bool(client_email and private_key)
        credential = None
        if self.uses_service_account:
            credential = credentials.Certificate(_service_account_info(project_id, client_email, private_key))
        self.app = _firebase_app(f"eventhall-{project_id}", credential, project_id)
        log_event(
            "identity_provider_initialized",
            provider=self.provider,
            project_id=project_id,
            service_account=self.uses_service_account,
        )

    def verify(self, token: str) -> VerifiedIdentity:
        try:
            claims = firebase_auth.verify_id_token(token, app=self.app)
        except firebase_auth.CertificateFetchError as exc:
            log_warning("identity_certs_fetch_failed", provider=self.provider, error=str(exc))
            raise IdentityProviderUnavailable("Could not fetch identity provider certificates") from exc
        except firebase_auth.ExpiredIdTokenError:
            raise IdentityVerificationError("Token expired")
        except (ValueError, firebase_auth.InvalidIdTokenError) as exc:
            raise IdentityVerificationError(f"Invalid token: {exc}")
        return _identity_from_claims(claims)

    def describe(self) -> dict:
        return {
            "provider": self.provider,
            "project_id": "set" if self.project_id else "missing",
            "credentials": "service_account" if self.uses_service_account else "application_default",
        }


def _service_account_info(project_id: str, client_email: str, private_key: str) -> dict:
    # hosted env vars often store the PEM with literal "\n" sequences
    if "\\n" in private_key:
        private_key = private_key.replace("\\n", "\n")
    return {
        "type": "service_account",
        "project_id": project_id,
        "client_email": client_email,
        "private_key": private_key,
        "token_uri": GOOGLE_TOKEN_URI,
    }


def _firebase_app(name: str, credential, project_id: str) -> firebase_admin.App:
    try:
        return firebase_admin.get_app(name)
    except ValueError:
        return firebase_admin.initialize_app(credential, {"projectId": project_id}, name=name)


def create_identity_token(
    uid: str,
    email: Optional[str],
    name: Optional[str] = None,
    picture: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a token accepted by :class:`LocalIdentityVerifier`."""
    if not settings.secret_key:
        raise RuntimeError("SECRET_KEY is required to mint local identity tokens")
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.local_token_expire_minutes))
    claims = {
        "sub": uid,
        "iss": LOCAL_ISSUER,
        "aud": LOCAL_AUDIENCE,
        "iat": now,
        "exp": expire,
    }
    if email:
        claims["email"] = email
    if name:
        claims["name"] = name
    if picture:
        claims["picture"] = picture
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


_verifier: Optional[IdentityVerifier] = None


def build_identity_verifier() -> IdentityVerifier:
    if settings.identity_provider == "local":
        if not settings.secret_key:
            raise RuntimeError("SECRET_KEY is required when IDENTITY_PROVIDER=local")
        return LocalIdentityVerifier(settings.secret_key, settings.algorithm)
    if not settings.firebase_project_id:
        raise RuntimeError("FIREBASE_PROJECT_ID is required when IDENTITY_PROVIDER=firebase")
    return FirebaseIdentityVerifier(
        settings.firebase_project_id,
        client_email=settings.firebase_client_email,
        private_key=settings.firebase_private_key,
    )


def get_identity_verifier() -> IdentityVerifier:
    global _verifier
    if _verifier is None:
        _verifier = build_identity_verifier()
    return _verifier


def reset_identity_verifier() -> None:
    global _verifier
    _verifier = None
