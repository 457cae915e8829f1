from dataclasses import dataclass, field


@dataclass(frozen=True)
class Identity:
    subject: str
    claims: dict = field(default_factory=dict)

    def claim(self, *names):
        for name in names:
            value = self.claims.get(name)
            if value:
                return value
        return None

    @property
    def email(self):
        return self.claim("email")

    @property
    def display_name(self):
        return self.claim("name", "nickname", "cognito:username")

    @property
    def birthdate(self):
        return self.claim("birthdate")


def _authorizer(event):
    request_context = (event or {}).get("requestContext") or {}
    authorizer = request_context.get("authorizer")
    return authorizer if isinstance(authorizer, dict) else {}


def _raw_claims(authorizer):
    claims = authorizer.get("claims")
    if isinstance(claims, dict):
        return claims
    jwt_ctx = authorizer.get("jwt")
    if isinstance(jwt_ctx, dict) and isinstance(jwt_ctx.get("claims"), dict):
        return jwt_ctx["claims"]
    lambda_ctx = authorizer.get("lambda")
    if isinstance(lambda_ctx, dict):
        return lambda_ctx
    return {k: v for k, v in authorizer.items() if not isinstance(v, (dict, list))}


def get_identity(event):
    """
    Caller identity from an API Gateway authorizer context, or None.

    The token has already been verified by the authorizer; nothing here
    looks at the raw Authorization header.
    """
    authorizer = _authorizer(event)
    if not authorizer:
        return None
    claims = {
        str(k): str(v) for k, v in _raw_claims(authorizer).items()
        if v is not None and not isinstance(v, (dict, list))
    }
    subject = claims.get("sub") or authorizer.get("principalId")
    if not isinstance(subject, str) or not subject.strip():
        return None
    return Identity(subject=subject.strip(), claims=claims)


def get_user_id(event):
    identity = get_identity(event)
    return identity.subject if identity else None


def get_email(event):
    identity = get_identity(event)
    return identity.email if identity else None


def get_display_name(event):
    identity = get_identity(event)
    return identity.display_name if identity else None


def get_birthdate(event):
    identity = get_identity(event)
    return identity.birthdate if identity else None
