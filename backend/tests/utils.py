from scrapx.auth.security import create_access_token, hash_password
from scrapx.enums.user import UserRole
from scrapx.models.user import User


def make_user(db, username, role=UserRole.USER, password="password123", **kwargs):
    user = User(
        email=f"{username}@example.com",
        username=username,
        full_name=username.title(),
        hashed_password=hash_password(password),
        role=role,
        is_verified=kwargs.pop("is_verified", True),
        **kwargs
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
