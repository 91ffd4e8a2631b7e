from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..models.user import User
from ..models.musician import Musician
from ..models.venue import Venue


def get_current_user(
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the calling user from the ``X-User-Id`` header.

    Session handling lives in front of this service; by the time a request
    arrives the gateway has already authenticated it and set the header.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )
    if x_user_id is None:
        raise credentials_exception
    # Eager load both profiles; dependents decide which side the user is on
    user = (
        db.query(User)
        .options(selectinload(User.musician_profile), selectinload(User.venue_profile))
        .filter(User.id == x_user_id)
        .first()
    )
    if user is None:
        raise credentials_exception
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


def get_current_musician(current_user: User = Depends(get_current_user)) -> Musician:
    """Ensure the current user has a musician profile."""
    if current_user.musician_profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Musician profile does not exist. Please create one.",
        )
    return current_user.musician_profile


def get_current_venue(current_user: User = Depends(get_current_user)) -> Venue:
    """Ensure the current user has a venue profile."""
    if current_user.venue_profile is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Venue profile does not exist. Please create one.",
        )
    return current_user.venue_profile
